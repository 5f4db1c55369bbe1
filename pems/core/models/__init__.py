"""PEMS data models for achievements, reviews, scoring, and ranking."""

from .achievement import Achievement, ReviewDecision, ReviewerProfile
from .base import (
    IdentifiedSchema,
    PEMSBaseModel,
    TimestampSchema,
    VersionedSchema,
    round2,
    utc_now,
)
from .enums import (
    AchievementCategory,
    AchievementStatus,
    CatalogCategory,
    CatalogFlag,
    ReviewStatus,
    ScoreBucket,
    SubmissionStatus,
    ViolationSeverity,
)
from .scorecard import BaseScore, RankingEntry, ScoreDetail, ScoreSummary
from .student import GPA_MAX, GPA_SCORE_MULTIPLIER, AcademicRecord, StudentProfile
from .submission import (
    Attachment,
    ExistingSubmission,
    PolicyViolation,
    StudentSnapshot,
    Submission,
    TeamMember,
    ValidationReport,
)

__all__ = [
    # Base
    "PEMSBaseModel",
    "IdentifiedSchema",
    "TimestampSchema",
    "VersionedSchema",
    "round2",
    "utc_now",
    # Enums
    "AchievementCategory",
    "AchievementStatus",
    "CatalogCategory",
    "CatalogFlag",
    "ReviewStatus",
    "ScoreBucket",
    "SubmissionStatus",
    "ViolationSeverity",
    # Achievement
    "Achievement",
    "ReviewDecision",
    "ReviewerProfile",
    # Student
    "AcademicRecord",
    "StudentProfile",
    "GPA_MAX",
    "GPA_SCORE_MULTIPLIER",
    # Scoring
    "BaseScore",
    "ScoreDetail",
    "ScoreSummary",
    "RankingEntry",
    # Submission
    "Attachment",
    "TeamMember",
    "Submission",
    "ExistingSubmission",
    "StudentSnapshot",
    "PolicyViolation",
    "ValidationReport",
]
