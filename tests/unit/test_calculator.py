"""Category Score Calculator rules."""

import pytest

from pems.core.models.enums import AchievementCategory, ScoreBucket
from pems.core.scoring.calculator import (
    SCORING_VARIANTS,
    CategoryScoring,
    calculate_base_score,
    parse_scoring_metadata,
)


def test_paper_a_scores_ten_in_academic_bucket():
    result = calculate_base_score("paper", {"level": "A"})
    assert result.raw_score == 10
    assert result.bucket == ScoreBucket.ACADEMIC
    assert result.notes == "论文等级：A"


def test_paper_level_defaults_to_b_and_is_case_insensitive():
    assert calculate_base_score("paper", {}).raw_score == 6
    assert calculate_base_score("paper", {"level": "c"}).raw_score == 1
    assert calculate_base_score("paper", {"level": "Z"}).raw_score == 0


def test_patent_invention_vs_utility():
    assert calculate_base_score("patent", {}).raw_score == 2
    assert calculate_base_score("patent", {"type": "发明专利"}).raw_score == 2
    assert calculate_base_score("patent", {"type": "utility"}).raw_score == 1


@pytest.mark.parametrize(
    ("level", "award", "expected"),
    [
        ("international", "special", 10),
        ("national", "first", 6),
        ("provincial", "other", 0.5),
        ("school", "third", 0.2),
        ("国家级", "一等奖", 6),
        ("galactic", "first", 0),
    ],
)
def test_contest_matrix(level, award, expected):
    result = calculate_base_score("contest", {"level": level, "award": award})
    assert result.raw_score == expected
    assert result.bucket == ScoreBucket.ACADEMIC


def test_contest_defaults_to_provincial_third():
    result = calculate_base_score("contest", {})
    assert result.raw_score == 1
    assert result.notes == "竞赛：省级三等奖"


def test_innovation_and_honor_levels():
    assert calculate_base_score("innovation", {"level": "national"}).raw_score == 2
    assert calculate_base_score("innovation", {}).raw_score == 1.5
    assert calculate_base_score("innovation", {"level": "unknown"}).raw_score == 0.5
    assert calculate_base_score("honor", {}).raw_score == 1
    assert calculate_base_score("honor", {"level": "省级"}).raw_score == 1.5
    assert calculate_base_score("honor", {}).bucket == ScoreBucket.COMPREHENSIVE


def test_volunteer_hours_saturate_at_one():
    assert calculate_base_score("volunteer", {"hours": 350}).raw_score == 1
    assert calculate_base_score("volunteer", {"hours": 100}).raw_score == 0.5
    assert calculate_base_score("volunteer", {"hours": "not a number"}).raw_score == 0
    assert calculate_base_score("volunteer", {"hours": -40}).raw_score == 0


def test_social_months_capped_at_two():
    assert calculate_base_score("social", {"months": 4}).raw_score == pytest.approx(1.2)
    assert calculate_base_score("social", {"months": 12}).raw_score == 2


def test_sports_place_divides_level_base():
    assert calculate_base_score("sports", {"level": "national", "rank": 1}).raw_score == 1.5
    assert calculate_base_score("sports", {"level": "international", "rank": 4}).raw_score == 0.5
    # missing or non-positive place counts as third
    assert calculate_base_score("sports", {"level": "provincial"}).raw_score == pytest.approx(1 / 3)
    assert calculate_base_score("sports", {"level": "provincial", "rank": 0}).raw_score == (
        pytest.approx(1 / 3)
    )


def test_unknown_category_scores_zero():
    result = calculate_base_score("cooking", {"level": "A"})
    assert result.raw_score == 0
    assert result.bucket == ScoreBucket.ACADEMIC
    assert parse_scoring_metadata("cooking", {}) is None


def test_every_category_has_a_variant():
    assert set(SCORING_VARIANTS) == set(AchievementCategory)


def test_category_scoring_base_is_abstract():
    with pytest.raises(TypeError):
        CategoryScoring()
