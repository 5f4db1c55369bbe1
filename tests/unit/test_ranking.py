"""Ranking Aggregator ordering and reason strings."""

from datetime import datetime, timedelta, timezone

from pems.core.models.achievement import Achievement
from pems.core.models.student import AcademicRecord, StudentProfile
from pems.core.ranking.aggregator import RankingAggregator

BASE_DATE = datetime(2024, 3, 1, tzinfo=timezone.utc)


def student(idx, **kwargs):
    return StudentProfile(
        id=f"stu{idx}", name=f"学生{idx}", student_number=f"2021000{idx}", **kwargs
    )


def achievement(student_id, title, category, metadata, status="approved", day=0):
    return Achievement(
        id=f"{student_id}-{title}",
        student_id=student_id,
        title=title,
        category=category,
        metadata=metadata,
        obtained_at=BASE_DATE + timedelta(days=day),
        status=status,
    )


def record(student_id, gpa):
    return AcademicRecord(student_id=student_id, gpa=gpa, evidence_url=f"https://files/{student_id}.png")


aggregator = RankingAggregator()


def test_total_combines_weighted_gpa_and_capped_scores():
    entries = aggregator.build(
        students=[student(1)],
        achievements=[
            achievement("stu1", "论文", "paper", {"level": "B"}, day=1),
            achievement("stu1", "竞赛", "contest", {"level": "national", "award": "first"}, day=2),
            achievement("stu1", "志愿", "volunteer", {"hours": 300}, day=3),
        ],
        records=[record("stu1", 3.6)],
    )
    entry = entries[0]
    assert entry.rank == 1
    assert entry.academic_score == 12
    assert entry.comprehensive_score == 1
    assert entry.gpa_score == 90
    assert entry.gpa_weighted_score == 72
    assert entry.total_score == 85
    assert entry.evidence_url == "https://files/stu1.png"


def test_reason_summary_format():
    entries = aggregator.build(
        students=[student(1)],
        achievements=[
            achievement("stu1", "顶会论文", "paper", {"level": "A"}, day=1),
            achievement("stu1", "另一篇", "paper", {"level": "A"}, day=2),
            achievement("stu1", "第三篇", "paper", {"level": "A"}, day=3),
        ],
        records=[record("stu1", 3.6)],
    )
    assert entries[0].reason_summary == (
        "顶会论文（学术，10.00分，论文等级：A）；"
        "另一篇（学术，5.00分，论文等级：A）；"
        "绩点：3.60（折算90.00分，计入72.00分）"
    )


def test_only_approved_achievements_count_and_drafts_do_not_qualify():
    entries = aggregator.build(
        students=[student(1), student(2)],
        achievements=[
            achievement("stu1", "待审", "paper", {"level": "A"}, status="submitted"),
            achievement("stu2", "草稿", "paper", {"level": "A"}, status="draft"),
        ],
    )
    assert [e.student.id for e in entries] == ["stu1"]
    assert entries[0].total_score == 0
    assert entries[0].gpa_score is None
    assert entries[0].reason_summary == ""


def test_inactive_students_are_skipped():
    entries = aggregator.build(
        students=[student(1, is_active=False)],
        achievements=[achievement("stu1", "论文", "paper", {"level": "A"})],
    )
    assert entries == []


def test_tie_breaks_and_strict_ranks():
    students = [student(1), student(2), student(3), student(4)]
    achievements = [
        # stu1: 10 academic
        achievement("stu1", "a", "paper", {"level": "A"}),
        # stu2: 9 academic + 1 comprehensive
        achievement("stu2", "b", "contest", {"level": "international", "award": "first"}),
        achievement("stu2", "c", "contest", {"level": "school", "award": "first"}),
        achievement("stu2", "d", "volunteer", {"hours": 200}),
        # stu3 and stu4 tie exactly on every score
        achievement("stu3", "e", "paper", {"level": "B"}),
        achievement("stu4", "f", "paper", {"level": "B"}),
    ]
    records = {"stu1": record("stu1", 3.0), "stu2": record("stu2", 3.0)}

    first = aggregator.build(students, achievements, records)
    second = aggregator.build(list(reversed(students)), list(reversed(achievements)), records)

    assert [e.student.id for e in first] == ["stu1", "stu2", "stu3", "stu4"]
    assert [e.rank for e in first] == [1, 2, 3, 4]
    assert first[0].total_score == first[1].total_score == 70
    assert [(e.student.id, e.rank) for e in first] == [(e.student.id, e.rank) for e in second]
