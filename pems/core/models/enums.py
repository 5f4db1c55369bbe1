"""Enumeration types for PEMS models."""

from enum import Enum


class AchievementCategory(str, Enum):
    """Scored achievement categories."""

    PAPER = "paper"
    PATENT = "patent"
    CONTEST = "contest"
    INNOVATION = "innovation"
    VOLUNTEER = "volunteer"
    HONOR = "honor"
    SOCIAL = "social"
    SPORTS = "sports"


class AchievementStatus(str, Enum):
    """Lifecycle status of an achievement."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewStatus(str, Enum):
    """A single reviewer's verdict."""

    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class ScoreBucket(str, Enum):
    """Scoring pools, each with its own cap."""

    ACADEMIC = "academic"
    COMPREHENSIVE = "comprehensive"


class CatalogCategory(str, Enum):
    """Categories of the program's bonus-point catalog."""

    PAPER = "paper"
    PATENT = "patent"
    COMPETITION = "competition"
    INNOVATION = "innovation"
    INTERNATIONAL_INTERNSHIP = "international_internship"
    VOLUNTEER = "volunteer"
    HONOR = "honor"
    SOCIAL_WORK = "social_work"
    SPORTS = "sports"
    SPECIAL_ACADEMIC = "special_academic"


class CatalogFlag(str, Enum):
    """Eligibility flags attached to catalog items."""

    REQUIRES_FIRST_AUTHOR = "requiresFirstAuthor"
    REQUIRES_FIRST_INSTITUTION = "requiresFirstInstitution"
    REQUIRES_TEAM = "requiresTeam"
    REQUIRES_PUBLIC_DEFENSE = "requiresPublicDefense"
    REQUIRES_PUBLICITY = "requiresPublicity"
    REQUIRES_PROFESSOR_ENDORSEMENT = "requiresProfessorEndorsement"
    LIMITS_COUNT = "limitsCount"
    LIMITED_QUOTA = "limitedQuota"
    SCORE_CAP = "scoreCap"
    BREAKS_THRESHOLD = "breaksThreshold"
    NSC_DOUBLE_A = "nscDoubleA"
    SINGLE_SUBMISSION_PER_CONTEST = "singleSubmissionPerContest"


class SubmissionStatus(str, Enum):
    """Status of a catalog submission filed through intake."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class ViolationSeverity(str, Enum):
    """Whether a policy finding blocks the submission."""

    ERROR = "error"
    WARNING = "warning"
