"""Score summary and ranking models (Pydantic only)."""

from typing import Any

from pydantic import Field

from .base import PEMSBaseModel
from .enums import AchievementCategory, ScoreBucket
from .student import StudentProfile


class BaseScore(PEMSBaseModel):
    """Calculator output for a single achievement."""

    raw_score: float = Field(0.0, description="Uncapped category score")
    bucket: ScoreBucket = Field(ScoreBucket.ACADEMIC, description="Scoring pool")
    notes: str | None = Field(None, description="Human-readable scoring note")


class ScoreDetail(PEMSBaseModel):
    """Per-achievement contribution inside a summary."""

    achievement_id: str = Field(..., description="Achievement identifier")
    title: str = Field(..., description="Achievement title")
    category: AchievementCategory = Field(..., description="Achievement category")
    raw_score: float = Field(..., description="Calculator score")
    applied_score: float = Field(..., ge=0.0, description="Score counted after caps")
    bucket: ScoreBucket = Field(..., description="Scoring pool")
    notes: str | None = Field(None, description="Scoring note")


class ScoreSummary(PEMSBaseModel):
    """Capped totals for one student. Derived on every query, never stored."""

    student_id: str | None = Field(None, description="Student identifier")
    academic_score: float = Field(0.0, description="Academic running total")
    comprehensive_score: float = Field(0.0, description="Comprehensive running total")
    capped_academic_score: float = Field(0.0, ge=0.0, le=15.0, description="Academic total (<=15)")
    capped_comprehensive_score: float = Field(
        0.0, ge=0.0, le=5.0, description="Comprehensive total (<=5)"
    )
    total_score: float = Field(0.0, ge=0.0, description="Sum of capped totals")
    details: list[ScoreDetail] = Field(default_factory=list, description="Itemized contributions")


class RankingEntry(PEMSBaseModel):
    """One student's row in the leaderboard."""

    rank: int = Field(..., ge=1, description="Strict 1-based position")
    student: StudentProfile = Field(..., description="Student identity")
    academic_score: float = Field(..., description="Capped academic score")
    comprehensive_score: float = Field(..., description="Capped comprehensive score")
    gpa: float | None = Field(None, description="GPA when a record exists")
    gpa_score: float | None = Field(None, description="GPA x 25 when a record exists")
    gpa_weighted_score: float = Field(0.0, description="GPA score x 0.8")
    total_score: float = Field(..., description="Weighted GPA + capped scores")
    evidence_url: str | None = Field(None, description="GPA evidence reference")
    details: list[ScoreDetail] = Field(default_factory=list, description="Approved contributions")
    reason_summary: str = Field("", description="Human-readable reason string")

    # Metadata
    ranking_metadata: dict[str, Any] = Field(
        default_factory=dict, description="Additional ranking metadata"
    )
