"""Student identity and academic record models (Pydantic only)."""

from pydantic import Field, computed_field

from .base import PEMSBaseModel, TimestampSchema, round2

GPA_MAX = 4.0
GPA_SCORE_MULTIPLIER = 25


class StudentProfile(PEMSBaseModel):
    """Student identity as carried on ranking rows."""

    id: str = Field(..., description="Student account identifier")
    name: str = Field(..., description="Student name")
    student_number: str = Field("", description="Student number")
    department: str = Field("", description="Department")
    major: str = Field("", description="Major")
    grade: str = Field("", description="Grade / enrolment year")
    class_name: str = Field("", description="Class")
    is_active: bool = Field(True, description="Whether the account is active")


class AcademicRecord(TimestampSchema):
    """A student's GPA with its mandatory evidence. At most one per student."""

    student_id: str = Field(..., description="Owning student identifier")
    gpa: float = Field(..., ge=0.0, le=GPA_MAX, description="Grade point average (0-4)")
    evidence_url: str = Field(..., min_length=1, description="GPA evidence reference")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def score(self) -> float:
        """GPA converted to the 100-point academic scale."""
        return round2(min(max(self.gpa, 0.0), GPA_MAX) * GPA_SCORE_MULTIPLIER)
