"""Scoring rules, cap consumption and GPA conversion."""

from .calculator import calculate_base_score, parse_scoring_metadata, score_achievement
from .gpa import GpaScores, convert_gpa_to_scores, gpa_to_score
from .summary import (
    ACADEMIC_CAP,
    COMPREHENSIVE_CAP,
    calculate_score_summary,
    consumption_order,
)

__all__ = [
    "ACADEMIC_CAP",
    "COMPREHENSIVE_CAP",
    "GpaScores",
    "calculate_base_score",
    "calculate_score_summary",
    "consumption_order",
    "convert_gpa_to_scores",
    "gpa_to_score",
    "parse_scoring_metadata",
    "score_achievement",
]
