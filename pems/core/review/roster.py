"""Reviewer roster cache.

The active-reviewer lookup is the one piece of shared mutable state in the
review flow. It is held in an explicit cache object that callers inject, so
tests can drive time and staleness through ``clock``.
"""

import threading
import time
from typing import Any, Callable, Iterable

from ..errors import InfrastructureError
from ..models.achievement import ReviewerProfile
from ...observability.logger import get_logger

logger = get_logger(__name__)

DEFAULT_ROSTER_TTL_SECONDS = 300.0

ReviewerFetcher = Callable[[], Iterable[ReviewerProfile | dict[str, Any]]]


class ReviewerRosterCache:
    """Active reviewers, refreshed lazily at most once per TTL window."""

    def __init__(
        self,
        fetch_reviewers: ReviewerFetcher,
        ttl_seconds: float = DEFAULT_ROSTER_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize cache.

        Args:
            fetch_reviewers: Identity lookup returning the active reviewers
            ttl_seconds: Freshness window of a fetched roster
            clock: Monotonic time source
        """
        self._fetch = fetch_reviewers
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._roster: list[ReviewerProfile] | None = None
        self._last_refreshed: float | None = None
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def last_refreshed(self) -> float | None:
        """Clock reading of the last successful refresh."""
        return self._last_refreshed

    def is_stale(self) -> bool:
        if not self._roster or self._last_refreshed is None:
            return True
        return self._clock() - self._last_refreshed >= self._ttl

    def get(self) -> list[ReviewerProfile]:
        """Return the active roster, refreshing it when stale or empty."""
        with self._lock:
            if self.is_stale():
                return self._refresh()
            return list(self._roster or [])

    def force_refresh(self) -> list[ReviewerProfile]:
        """Refetch regardless of freshness."""
        with self._lock:
            return self._refresh()

    def invalidate(self) -> None:
        """Drop the cached roster; the next read refetches."""
        with self._lock:
            self._roster = None
            self._last_refreshed = None

    def _refresh(self) -> list[ReviewerProfile]:
        try:
            roster = [ReviewerProfile.model_validate(r) for r in self._fetch()]
        except Exception as exc:
            if self._roster is not None:
                logger.warning(
                    "roster_refresh_failed",
                    error=str(exc),
                    serving_cached=len(self._roster),
                )
                return list(self._roster)
            logger.error("roster_unavailable", error=str(exc))
            raise InfrastructureError("fetch_active_reviewers") from exc

        self._roster = roster
        self._last_refreshed = self._clock()
        logger.debug("roster_refreshed", reviewers=len(roster))
        return list(roster)
