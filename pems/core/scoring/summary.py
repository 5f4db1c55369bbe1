"""Score Summary Aggregator - applies per-student point caps across achievements."""

from typing import Iterable, Sequence

from ..models.achievement import Achievement
from ..models.base import round2
from ..models.enums import AchievementStatus, ScoreBucket
from ..models.scorecard import ScoreDetail, ScoreSummary
from .calculator import score_achievement

ACADEMIC_CAP = 15.0
COMPREHENSIVE_CAP = 5.0

DEFAULT_SUMMARY_STATUSES: tuple[AchievementStatus, ...] = (
    AchievementStatus.SUBMITTED,
    AchievementStatus.APPROVED,
)

BUCKET_CAPS = {
    ScoreBucket.ACADEMIC: ACADEMIC_CAP,
    ScoreBucket.COMPREHENSIVE: COMPREHENSIVE_CAP,
}


def consumption_order(achievements: Iterable[Achievement]) -> list[Achievement]:
    """Order in which achievements consume the caps: earliest obtained first.

    Ties on ``obtained_at`` fall back to creation time and then id so the
    order does not depend on how storage happened to return the records.
    """
    return sorted(achievements, key=lambda a: (a.obtained_at, a.created_at, a.id))


def calculate_score_summary(
    achievements: Iterable[Achievement],
    student_id: str | None = None,
    statuses: Sequence[AchievementStatus | str] | None = None,
) -> ScoreSummary:
    """Compute capped totals for one student's achievements.

    Args:
        achievements: Achievement records handed over by storage
        student_id: Keep only this student's records when given
        statuses: Status filter (defaults to submitted + approved; the
            ranking passes approved only)

    Returns:
        ScoreSummary with both capped totals and the itemized details
    """
    wanted = {AchievementStatus(s).value for s in (statuses or DEFAULT_SUMMARY_STATUSES)}
    selected = [
        a
        for a in achievements
        if a.status in wanted and (student_id is None or a.student_id == student_id)
    ]

    # Caps are consumed in the same two-decimal units the details report,
    # so the applied scores of a bucket always sum to at most its cap.
    running = {ScoreBucket.ACADEMIC: 0.0, ScoreBucket.COMPREHENSIVE: 0.0}
    details: list[ScoreDetail] = []

    for achievement in consumption_order(selected):
        base = score_achievement(achievement)
        bucket = ScoreBucket(base.bucket)
        cap = BUCKET_CAPS[bucket]
        raw = round2(base.raw_score)
        applied = max(min(raw, round2(cap - running[bucket])), 0.0)
        running[bucket] = min(round2(running[bucket] + applied), cap)

        details.append(
            ScoreDetail(
                achievement_id=achievement.id,
                title=achievement.title,
                category=achievement.category,
                raw_score=raw,
                applied_score=round2(applied),
                bucket=bucket,
                notes=base.notes,
            )
        )

    capped_academic = running[ScoreBucket.ACADEMIC]
    capped_comprehensive = running[ScoreBucket.COMPREHENSIVE]

    return ScoreSummary(
        student_id=student_id,
        academic_score=running[ScoreBucket.ACADEMIC],
        comprehensive_score=running[ScoreBucket.COMPREHENSIVE],
        capped_academic_score=round2(capped_academic),
        capped_comprehensive_score=round2(capped_comprehensive),
        total_score=round2(capped_academic + capped_comprehensive),
        details=details,
    )
