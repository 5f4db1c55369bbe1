"""Achievement and review-decision models (Pydantic only)."""

from datetime import datetime
from typing import Any

from pydantic import Field

from .base import IdentifiedSchema, PEMSBaseModel, TimestampSchema, VersionedSchema
from .enums import AchievementCategory, AchievementStatus, ReviewStatus


class ReviewerProfile(PEMSBaseModel):
    """An active reviewer account as returned by the identity lookup."""

    id: str = Field(..., description="Reviewer account identifier")
    name: str = Field(..., description="Display name")
    external_id: str = Field(..., description="Staff/student number")


class ReviewDecision(PEMSBaseModel):
    """One reviewer's verdict slot on one achievement."""

    reviewer_id: str = Field(..., description="Reviewer account identifier")
    reviewer_name: str = Field(..., description="Display name snapshotted at assignment")
    reviewer_external_id: str = Field(..., description="External id snapshotted at assignment")
    status: ReviewStatus = Field(ReviewStatus.SUBMITTED, description="Verdict status")
    comment: str | None = Field(None, description="Verdict comment, mandatory on rejection")
    reviewed_at: datetime | None = Field(None, description="When the verdict was set")


class Achievement(IdentifiedSchema, TimestampSchema, VersionedSchema):
    """A student's claimed accomplishment."""

    student_id: str = Field(..., description="Owning student identifier")
    title: str = Field(..., min_length=1, description="Achievement title")
    category: AchievementCategory = Field(..., description="Scoring category")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Category-specific metadata")
    obtained_at: datetime = Field(..., description="When the achievement was obtained")
    description: str | None = Field(None, description="Free-text description")
    evidence_url: str | None = Field(None, description="Evidence reference")
    status: AchievementStatus = Field(AchievementStatus.DRAFT, description="Lifecycle status")
    score: float = Field(0.0, description="Raw score for the current metadata")
    reviews: list[ReviewDecision] = Field(default_factory=list, description="Reviewer slots")
    revision: int = Field(0, ge=0, description="Bumped on every persisted write")
