"""Ranking Aggregator - builds the recommendation leaderboard.

The leaderboard is a read-only snapshot computed at call time: each ranked
student's approved achievements are capped through the score summary, the
GPA is folded in at 80%, and rows are ordered into a strict sequence.
"""

from collections import defaultdict
from typing import Any, Iterable, Mapping

from ..models.achievement import Achievement
from ..models.base import round2
from ..models.enums import AchievementStatus, ScoreBucket
from ..models.scorecard import RankingEntry, ScoreDetail, ScoreSummary
from ..models.student import AcademicRecord, StudentProfile
from ..scoring.gpa import GPA_WEIGHT, gpa_to_score
from ..scoring.summary import calculate_score_summary
from ...observability.logger import get_logger

logger = get_logger(__name__)

BUCKET_LABELS = {
    ScoreBucket.ACADEMIC.value: "学术",
    ScoreBucket.COMPREHENSIVE.value: "综合",
}
REASON_SEPARATOR = "；"


def _detail_clause(detail: ScoreDetail) -> str:
    label = BUCKET_LABELS.get(detail.bucket, "综合")
    clause = f"{detail.title}（{label}，{detail.applied_score:.2f}分"
    if detail.notes:
        clause += f"，{detail.notes}"
    return clause + "）"


def _gpa_clause(record: AcademicRecord, gpa_score: float, gpa_weighted: float) -> str:
    return f"绩点：{round2(record.gpa):.2f}（折算{gpa_score:.2f}分，计入{gpa_weighted:.2f}分）"


def build_reason_summary(
    details: Iterable[ScoreDetail],
    record: AcademicRecord | None = None,
    gpa_score: float = 0.0,
    gpa_weighted: float = 0.0,
) -> str:
    """Human-readable reason string for one leaderboard row."""
    clauses = [_detail_clause(d) for d in details if d.applied_score > 0]
    if record is not None:
        clauses.append(_gpa_clause(record, gpa_score, gpa_weighted))
    return REASON_SEPARATOR.join(clauses)


class RankingAggregator:
    """Computes the ordered leaderboard over the active student population."""

    def __init__(self):
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    def build(
        self,
        students: Iterable[StudentProfile],
        achievements: Iterable[Achievement],
        records: Iterable[AcademicRecord] | Mapping[str, AcademicRecord] = (),
    ) -> list[RankingEntry]:
        """Rank every active student with at least one non-draft achievement.

        Args:
            students: Student profiles (inactive accounts are skipped)
            achievements: All achievements of the population
            records: Academic records, as a list or keyed by student id

        Returns:
            Leaderboard rows with strict 1-based ranks
        """
        by_student: dict[str, list[Achievement]] = defaultdict(list)
        for achievement in achievements:
            by_student[achievement.student_id].append(achievement)

        if isinstance(records, Mapping):
            record_map = dict(records)
        else:
            record_map = {record.student_id: record for record in records}

        rows: list[dict[str, Any]] = []
        for student in students:
            if not student.is_active:
                continue
            owned = by_student.get(student.id, [])
            if not any(a.status != AchievementStatus.DRAFT for a in owned):
                continue
            summary = calculate_score_summary(
                owned, student_id=student.id, statuses=[AchievementStatus.APPROVED]
            )
            rows.append(self._row(student, summary, record_map.get(student.id)))

        rows.sort(key=self._sort_key)
        entries = [RankingEntry(rank=index, **row) for index, row in enumerate(rows, start=1)]

        self.logger.info(
            "ranking_built",
            students=len(entries),
            top_score=entries[0].total_score if entries else None,
        )
        return entries

    @staticmethod
    def _row(
        student: StudentProfile, summary: ScoreSummary, record: AcademicRecord | None
    ) -> dict[str, Any]:
        gpa_score = gpa_to_score(record.gpa) if record is not None else None
        gpa_weighted = round2((gpa_score or 0.0) * GPA_WEIGHT)
        total = round2(
            gpa_weighted + summary.capped_academic_score + summary.capped_comprehensive_score
        )
        return {
            "student": student,
            "academic_score": summary.capped_academic_score,
            "comprehensive_score": summary.capped_comprehensive_score,
            "gpa": record.gpa if record is not None else None,
            "gpa_score": gpa_score,
            "gpa_weighted_score": gpa_weighted,
            "total_score": total,
            "evidence_url": record.evidence_url if record is not None else None,
            "details": summary.details,
            "reason_summary": build_reason_summary(
                summary.details, record, gpa_score or 0.0, gpa_weighted
            ),
            "ranking_metadata": {
                "academic_running_score": summary.academic_score,
                "comprehensive_running_score": summary.comprehensive_score,
            },
        }

    @staticmethod
    def _sort_key(row: dict[str, Any]) -> tuple:
        # Student number and id only settle exact three-way ties so reruns agree.
        student: StudentProfile = row["student"]
        return (
            -row["total_score"],
            -row["academic_score"],
            -row["comprehensive_score"],
            student.student_number,
            student.id,
        )


def rank_from_store(store: Any) -> list[RankingEntry]:
    """Build the leaderboard from everything the object store holds."""
    return RankingAggregator().build(
        students=store.list_students(),
        achievements=store.list_achievements(),
        records=store.list_academic_records(),
    )
