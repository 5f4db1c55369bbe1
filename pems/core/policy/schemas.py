"""Metadata shape schemas, one per catalog category.

Keys arrive camelCase from intake; error locations therefore carry the
camelCase name (``metadata.authorRank``), which is what the submission UI
highlights.
"""

from datetime import date
from typing import Literal

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..models.base import PEMSBaseModel
from ..models.enums import CatalogCategory

Scope = Literal["international", "national", "provincial", "school"]
Tier = Literal["national", "provincial", "school"]


class MetadataSchema(PEMSBaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaperMetadata(MetadataSchema):
    publication_type: Literal["journal", "conference", "preprint"] | None = None
    level: Literal["A", "B", "C", "NSC"] | None = None
    first_unit: bool
    author_rank: int = Field(..., ge=1)
    is_advisor_included: bool = False
    is_equal_first_author: bool = False
    impact_factor: float | None = Field(None, ge=0)


class PatentMetadata(MetadataSchema):
    patent_type: Literal["invention"] = "invention"
    first_unit: bool
    inventor_rank: int = Field(..., ge=1)
    is_advisor_inventor: bool = False


class CompetitionMetadata(MetadataSchema):
    competition_name: str = Field(..., min_length=2)
    level: Literal["A+", "A", "A-", "B"] | None = None
    scope: Scope
    award: str = Field(..., min_length=1)
    work_name: str = Field(..., min_length=1)
    is_same_work_submitted: bool | None = None
    is_outside_school_project: bool | None = None
    team_size: int = Field(..., ge=1, le=20)
    role: str = Field(..., min_length=1)


class InnovationMetadata(MetadataSchema):
    project_level: Tier
    role: Literal["leader", "member"]
    is_concluded: bool | None = None


class InternshipMetadata(MetadataSchema):
    organisation: str = Field(..., min_length=1)
    duration_months: float = Field(..., ge=1)


class Recognition(MetadataSchema):
    level: Tier | None = None
    title: str = Field(..., min_length=1)


class VolunteerMetadata(MetadataSchema):
    total_hours: float = Field(..., ge=0)
    recognitions: list[Recognition] | None = None


class HonorMetadata(MetadataSchema):
    level: Tier
    year: str | None = Field(None, min_length=4, max_length=4)
    title: str = Field(..., min_length=1)


class SocialWorkMetadata(MetadataSchema):
    position: str = Field(..., min_length=1)
    academic_year: str = Field(..., min_length=4)
    coefficient: float = Field(..., ge=0)
    advisor_score: float = Field(..., ge=0, le=100)


class SportsMetadata(MetadataSchema):
    competition_name: str = Field(..., min_length=1)
    level: Scope
    ranking: int = Field(..., ge=1)
    is_team: bool = True


class SpecialAcademicMetadata(MetadataSchema):
    route: Literal["paper", "competition"]
    has_professor_endorsement: bool
    defense_planned_date: str | None = None

    @field_validator("defense_planned_date")
    @classmethod
    def _check_date(cls, value: str | None) -> str | None:
        if value:
            try:
                date.fromisoformat(value[:10])
            except ValueError as exc:
                raise ValueError("公开答辩时间格式错误") from exc
        return value


METADATA_SCHEMAS: dict[CatalogCategory, type[MetadataSchema]] = {
    CatalogCategory.PAPER: PaperMetadata,
    CatalogCategory.PATENT: PatentMetadata,
    CatalogCategory.COMPETITION: CompetitionMetadata,
    CatalogCategory.INNOVATION: InnovationMetadata,
    CatalogCategory.INTERNATIONAL_INTERNSHIP: InternshipMetadata,
    CatalogCategory.VOLUNTEER: VolunteerMetadata,
    CatalogCategory.HONOR: HonorMetadata,
    CatalogCategory.SOCIAL_WORK: SocialWorkMetadata,
    CatalogCategory.SPORTS: SportsMetadata,
    CatalogCategory.SPECIAL_ACADEMIC: SpecialAcademicMetadata,
}
