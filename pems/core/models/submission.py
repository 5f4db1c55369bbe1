"""Submission intake DTOs and validation results (Pydantic only)."""

from datetime import date, datetime
from typing import Any

from pydantic import AnyUrl, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .base import IdentifiedSchema, PEMSBaseModel
from .enums import CatalogCategory, SubmissionStatus, ViolationSeverity


class WireSchema(PEMSBaseModel):
    """Intake payloads arrive with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Attachment(WireSchema):
    """An evidence file attached to a submission."""

    url: AnyUrl = Field(..., description="File location")
    name: str = Field(..., min_length=1, description="Display name")
    mime_type: str | None = Field(None, min_length=1, description="MIME type")
    size: int | None = Field(None, gt=0, description="Size in bytes")


class TeamMember(WireSchema):
    """A member of a team submission."""

    name: str = Field(..., min_length=1, description="Member name")
    role: str = Field(..., min_length=1, description="Role in the team")
    student_id: str | None = Field(None, min_length=6, description="Student number")
    contribution_percent: float | None = Field(
        None, ge=0, le=100, description="Contribution (0-100)"
    )
    is_leader: bool | None = Field(None, description="Whether the member leads the team")


class Submission(WireSchema):
    """A prospective catalog submission as handed over by intake.

    Fields are kept loosely typed on purpose: shape problems are reported by
    the validator as field-scoped messages rather than raised while parsing.
    """

    item_slug: str = Field("", description="Target catalog item")
    obtained_at: str | date | datetime | None = Field(None, description="Date on the evidence")
    summary: str = Field("", description="Applicant summary")
    attachments: list[dict[str, Any]] = Field(default_factory=list, description="Evidence files")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Category-specific metadata")
    team_members: list[dict[str, Any]] | None = Field(None, description="Team roster")


class ExistingSubmission(IdentifiedSchema, WireSchema):
    """Snapshot of a submission the student already filed."""

    item_slug: str = Field(..., description="Catalog item")
    category: CatalogCategory = Field(..., description="Catalog category")
    status: SubmissionStatus = Field(SubmissionStatus.SUBMITTED, description="Current status")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Submitted metadata")


class StudentSnapshot(PEMSBaseModel):
    """Read-only view of a student's existing filings used by the validator."""

    student_id: str = Field(..., description="Student identifier")
    submissions: list[ExistingSubmission] = Field(default_factory=list)
    academic_score: float = Field(0.0, ge=0.0, description="Already accumulated academic score")
    comprehensive_score: float = Field(
        0.0, ge=0.0, description="Already accumulated comprehensive score"
    )


class PolicyViolation(PEMSBaseModel):
    """One field-scoped finding."""

    path: str = Field(..., description="Dotted field path, e.g. metadata.authorRank")
    message: str = Field(..., description="Message for the submission UI")
    severity: ViolationSeverity = Field(ViolationSeverity.ERROR)


class ValidationReport(PEMSBaseModel):
    """Outcome of validating one submission."""

    accepted: bool = Field(..., description="True when no blocking violation exists")
    violations: list[PolicyViolation] = Field(default_factory=list)

    @property
    def errors(self) -> dict[str, str]:
        """Blocking findings as ``{field path: message}``."""
        return self._by_path(ViolationSeverity.ERROR)

    @property
    def warnings(self) -> dict[str, str]:
        """Non-blocking findings as ``{field path: message}``."""
        return self._by_path(ViolationSeverity.WARNING)

    def _by_path(self, severity: ViolationSeverity) -> dict[str, str]:
        result: dict[str, str] = {}
        for violation in self.violations:
            if violation.severity == severity:
                result.setdefault(violation.path, violation.message)
        return result
