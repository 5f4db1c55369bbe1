"""Score Summary Aggregator cap consumption."""

from datetime import datetime, timedelta, timezone

from pems.core.models.achievement import Achievement
from pems.core.scoring.summary import calculate_score_summary

BASE_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_achievement(title, category, metadata, day, status="submitted", student_id="stu1"):
    return Achievement(
        id=f"{student_id}-{title}",
        student_id=student_id,
        title=title,
        category=category,
        metadata=metadata,
        obtained_at=BASE_DATE + timedelta(days=day),
        status=status,
    )


def eight_pointer(title, day, **kwargs):
    # international first prize: 8 points
    return make_achievement(title, "contest", {"level": "international", "award": "first"}, day, **kwargs)


def test_first_served_consumption_of_academic_cap():
    achievements = [eight_pointer("c", 3), eight_pointer("a", 1), eight_pointer("b", 2)]

    summary = calculate_score_summary(achievements, student_id="stu1")

    assert [d.title for d in summary.details] == ["a", "b", "c"]
    assert [d.applied_score for d in summary.details] == [8, 7, 0]
    assert summary.capped_academic_score == 15
    assert summary.total_score == 15


def test_comprehensive_cap_is_five():
    achievements = [
        make_achievement(f"v{i}", "volunteer", {"hours": 400}, i) for i in range(7)
    ]
    summary = calculate_score_summary(achievements)
    assert summary.capped_comprehensive_score == 5
    assert sum(d.applied_score for d in summary.details) == 5
    assert summary.details[-1].applied_score == 0


def test_status_filter_and_student_filter():
    achievements = [
        make_achievement("draft", "paper", {"level": "A"}, 1, status="draft"),
        make_achievement("rejected", "paper", {"level": "A"}, 2, status="rejected"),
        make_achievement("approved", "paper", {"level": "C"}, 3, status="approved"),
        make_achievement("other", "paper", {"level": "A"}, 4, student_id="stu2"),
    ]

    default = calculate_score_summary(achievements, student_id="stu1")
    assert [d.title for d in default.details] == ["approved"]
    assert default.capped_academic_score == 1

    approved_only = calculate_score_summary(achievements, statuses=["approved"])
    assert [d.title for d in approved_only.details] == ["approved"]


def test_summary_is_idempotent():
    achievements = [eight_pointer("a", 1), make_achievement("v", "volunteer", {"hours": 50}, 2)]
    first = calculate_score_summary(achievements)
    second = calculate_score_summary(list(reversed(achievements)))
    assert first == second


def test_scores_are_rounded_to_two_decimals():
    achievements = [make_achievement("s", "sports", {"level": "provincial", "rank": 3}, 1)]
    summary = calculate_score_summary(achievements)
    assert summary.details[0].raw_score == 0.33
    assert summary.capped_comprehensive_score == 0.33


def test_empty_input_yields_zero_summary():
    summary = calculate_score_summary([], student_id="stu1")
    assert summary.total_score == 0
    assert summary.details == []


def test_fractional_scores_never_overshoot_the_cap():
    # school-level third place: 0.5 / 3, reported as 0.17
    achievements = [
        make_achievement(f"s{i:02d}", "sports", {"level": "school", "rank": 3}, i, status="approved")
        for i in range(31)
    ]

    summary = calculate_score_summary(achievements, statuses=["approved"])

    applied = [d.applied_score for d in summary.details]
    assert all(d.raw_score == 0.17 for d in summary.details)
    assert round(sum(applied), 2) == 5
    assert summary.capped_comprehensive_score == 5
    assert applied[29] == 0.07
    assert applied[30] == 0
