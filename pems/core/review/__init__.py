"""Reviewer roster cache and consensus engine."""

from .consensus import (
    Reconciliation,
    apply_verdict,
    derive_overall_status,
    find_decision,
    reconcile_reviewers,
    reset_decisions,
)
from .roster import DEFAULT_ROSTER_TTL_SECONDS, ReviewerRosterCache

__all__ = [
    "DEFAULT_ROSTER_TTL_SECONDS",
    "Reconciliation",
    "ReviewerRosterCache",
    "apply_verdict",
    "derive_overall_status",
    "find_decision",
    "reconcile_reviewers",
    "reset_decisions",
]
