"""GPA conversion used by the ranking and the score preview."""

import math

from pydantic import Field

from ..models.base import PEMSBaseModel, round2
from ..models.student import GPA_MAX, GPA_SCORE_MULTIPLIER
from .summary import ACADEMIC_CAP, COMPREHENSIVE_CAP

GPA_WEIGHT = 0.8


class GpaScores(PEMSBaseModel):
    """GPA-derived components of the final score."""

    gpa_score: float = Field(..., description="GPA x 25")
    gpa_weighted_score: float = Field(..., description="GPA score x 0.8")
    final_score: float = Field(..., description="Weighted GPA + capped bonus scores")


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp ``value`` into ``[minimum, maximum]``; NaN clamps to the minimum."""
    if value is None or math.isnan(value):
        return minimum
    return min(max(value, minimum), maximum)


def gpa_to_score(gpa: float | None) -> float:
    """Convert a GPA to the 100-point scale (0 when there is no record)."""
    if gpa is None:
        return 0.0
    return round2(clamp(gpa, 0.0, GPA_MAX) * GPA_SCORE_MULTIPLIER)


def convert_gpa_to_scores(
    gpa: float | None,
    academic_specialty_score: float = 0.0,
    comprehensive_performance_score: float = 0.0,
) -> GpaScores:
    """Combine a GPA with the capped bonus scores into the final score.

    Example:
        >>> convert_gpa_to_scores(3.6, 12, 3).final_score
        87.0
    """
    gpa_score = gpa_to_score(gpa)
    gpa_weighted = round2(gpa_score * GPA_WEIGHT)
    academic = clamp(academic_specialty_score, 0.0, ACADEMIC_CAP)
    comprehensive = clamp(comprehensive_performance_score, 0.0, COMPREHENSIVE_CAP)
    return GpaScores(
        gpa_score=gpa_score,
        gpa_weighted_score=gpa_weighted,
        final_score=round2(gpa_weighted + academic + comprehensive),
    )
