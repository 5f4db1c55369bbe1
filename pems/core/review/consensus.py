"""Consensus engine for per-reviewer decisions.

A reviewer only ever sets their own decision slot. The achievement-level
status is derived from the whole slot list: one rejection vetoes, approval
needs every slot approved. All functions here return new objects and leave
their inputs untouched.
"""

from datetime import datetime
from typing import Iterable, NamedTuple

from ..errors import ReviewerSlotMissingError, VerdictError
from ..models.achievement import Achievement, ReviewDecision, ReviewerProfile
from ..models.base import utc_now
from ..models.enums import AchievementStatus, ReviewStatus
from ...observability.logger import get_logger

logger = get_logger(__name__)

VERDICT_STATUSES = frozenset({ReviewStatus.APPROVED.value, ReviewStatus.REJECTED.value})


class Reconciliation(NamedTuple):
    """Slots after reconciliation and whether anything needs persisting."""

    slots: list[ReviewDecision]
    changed: bool


def reconcile_reviewers(
    slots: Iterable[ReviewDecision], reviewers: Iterable[ReviewerProfile]
) -> Reconciliation:
    """Align decision slots with the active reviewer set.

    Missing reviewers get a fresh ``submitted`` slot appended, drifted
    display names and external ids are refreshed, and slots of reviewers who
    are no longer active are kept as they are.

    Args:
        slots: Current decision slots of one achievement
        reviewers: Active reviewer roster

    Returns:
        Reconciliation with the new slot list and a changed flag
    """
    active = {}
    for reviewer in reviewers:
        active.setdefault(reviewer.id, reviewer)

    result: list[ReviewDecision] = []
    seen: set[str] = set()
    changed = False

    for slot in slots:
        seen.add(slot.reviewer_id)
        reviewer = active.get(slot.reviewer_id)
        if reviewer is not None and (
            slot.reviewer_name != reviewer.name
            or slot.reviewer_external_id != reviewer.external_id
        ):
            slot = slot.model_copy(
                update={
                    "reviewer_name": reviewer.name,
                    "reviewer_external_id": reviewer.external_id,
                }
            )
            changed = True
        else:
            slot = slot.model_copy()
        result.append(slot)

    for reviewer_id, reviewer in active.items():
        if reviewer_id in seen:
            continue
        result.append(
            ReviewDecision(
                reviewer_id=reviewer.id,
                reviewer_name=reviewer.name,
                reviewer_external_id=reviewer.external_id,
            )
        )
        changed = True

    return Reconciliation(slots=result, changed=changed)


def derive_overall_status(slots: Iterable[ReviewDecision]) -> AchievementStatus:
    """Achievement status implied by the decision slots."""
    statuses = [slot.status for slot in slots]
    if not statuses:
        return AchievementStatus.SUBMITTED
    if any(status == ReviewStatus.REJECTED for status in statuses):
        return AchievementStatus.REJECTED
    if all(status == ReviewStatus.APPROVED for status in statuses):
        return AchievementStatus.APPROVED
    return AchievementStatus.SUBMITTED


def find_decision(slots: Iterable[ReviewDecision], reviewer_id: str) -> ReviewDecision | None:
    return next((slot for slot in slots if slot.reviewer_id == reviewer_id), None)


def reset_decisions(slots: Iterable[ReviewDecision]) -> list[ReviewDecision]:
    """Put every slot back to ``submitted`` with comment and timestamp cleared."""
    return [
        slot.model_copy(
            update={"status": ReviewStatus.SUBMITTED.value, "comment": None, "reviewed_at": None}
        )
        for slot in slots
    ]


def apply_verdict(
    achievement: Achievement,
    reviewer_id: str,
    status: ReviewStatus | str,
    comment: str | None = None,
    now: datetime | None = None,
) -> Achievement:
    """Set one reviewer's verdict and re-derive the achievement status.

    Raises:
        VerdictError: Unknown status, a rejection without comment, or a
            draft achievement
        ReviewerSlotMissingError: The reviewer has no slot on the achievement
    """
    verdict = status.value if isinstance(status, ReviewStatus) else str(status or "")
    if verdict not in VERDICT_STATUSES:
        raise VerdictError("无效的状态值")

    comment = (comment or "").strip() or None
    if verdict == ReviewStatus.REJECTED.value and comment is None:
        raise VerdictError("退回时需填写审核说明")

    if achievement.status == AchievementStatus.DRAFT:
        raise VerdictError("草稿状态的成果不可审核")

    if find_decision(achievement.reviews, reviewer_id) is None:
        raise ReviewerSlotMissingError()

    stamped = now or utc_now()
    slots = [
        slot.model_copy(update={"status": verdict, "comment": comment, "reviewed_at": stamped})
        if slot.reviewer_id == reviewer_id
        else slot.model_copy()
        for slot in achievement.reviews
    ]
    overall = derive_overall_status(slots)

    updated = achievement.model_copy(deep=True)
    updated.reviews = slots
    updated.status = overall
    updated.updated_at = stamped

    logger.info(
        "verdict_applied",
        achievement_id=achievement.id,
        reviewer_id=reviewer_id,
        verdict=verdict,
        overall_status=updated.status,
    )
    return updated
