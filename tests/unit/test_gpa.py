"""GPA conversion."""

import math

from pems.core.scoring.gpa import convert_gpa_to_scores, gpa_to_score


def test_reference_example():
    scores = convert_gpa_to_scores(3.6, 12, 3)
    assert scores.gpa_score == 90.0
    assert scores.gpa_weighted_score == 72.0
    assert scores.final_score == 87.0


def test_inputs_are_clamped():
    scores = convert_gpa_to_scores(5.2, 40, 9)
    assert scores.gpa_score == 100.0
    assert scores.final_score == 100.0

    low = convert_gpa_to_scores(-1, -3, -2)
    assert low.final_score == 0.0


def test_missing_or_nan_gpa_scores_zero():
    assert gpa_to_score(None) == 0.0
    assert gpa_to_score(math.nan) == 0.0
    assert convert_gpa_to_scores(None, 10, 2).final_score == 12.0


def test_two_decimal_rounding():
    assert gpa_to_score(3.41) == 85.25
    assert convert_gpa_to_scores(3.41).gpa_weighted_score == 68.2
