"""Policy Validator shape and policy layers."""

from datetime import date

import pytest

from pems.core.errors import ErrorKind, InfrastructureError
from pems.core.models.submission import ExistingSubmission, StudentSnapshot
from pems.core.policy.catalog import find_catalog_item, search_catalog_items
from pems.core.policy.validator import PolicyValidator

ATTACHMENT = {"url": "https://files.example.edu/evidence.pdf", "name": "evidence.pdf"}
TEAM = [{"name": "李雷", "role": "队长", "isLeader": True}]


def submission(item_slug, metadata, **overrides):
    payload = {
        "itemSlug": item_slug,
        "obtainedAt": "2024-05-01",
        "summary": "本人作为主要完成人参与了该项成果的全部工作",
        "attachments": [ATTACHMENT],
        "metadata": metadata,
    }
    payload.update(overrides)
    return payload


def existing(item_slug, category, status="submitted", **metadata):
    return ExistingSubmission(
        item_slug=item_slug, category=category, status=status, metadata=metadata
    )


def snapshot(*submissions, academic=0.0, comprehensive=0.0):
    return StudentSnapshot(
        student_id="stu1",
        submissions=list(submissions),
        academic_score=academic,
        comprehensive_score=comprehensive,
    )


COMPETITION = {
    "competitionName": "挑战杯",
    "scope": "national",
    "award": "一等奖",
    "workName": "智能导盲杖",
    "teamSize": 3,
    "role": "队长",
}

validator = PolicyValidator()


def test_valid_paper_is_accepted():
    report = validator.validate(
        submission("paper-a-tier", {"firstUnit": True, "authorRank": 1}), snapshot()
    )
    assert report.accepted
    assert report.errors == {}


def test_paper_author_rank_and_first_unit():
    report = validator.validate(
        submission("paper-b-tier", {"firstUnit": False, "authorRank": 3}), snapshot()
    )
    assert not report.accepted
    assert report.errors["metadata.authorRank"] == "仅计前两作者（导师除外）"
    assert report.errors["metadata.firstUnit"] == "需证明厦门大学为第一单位"


def test_policy_rules_wait_for_valid_shape():
    report = validator.validate(submission("paper-a-tier", {"firstUnit": False}), snapshot())
    assert "metadata.authorRank" in report.errors
    assert "metadata.firstUnit" not in report.errors


def test_c_tier_quota_counts_active_submissions_only():
    metadata = {"firstUnit": True, "authorRank": 1, "level": "C"}
    full = snapshot(existing("paper-c-tier", "paper"), existing("paper-c-tier", "paper"))
    report = validator.validate(submission("paper-c-tier", metadata), full)
    assert report.errors["itemSlug"] == "C 类论文最多计 2 篇"

    one_rejected = snapshot(
        existing("paper-c-tier", "paper"), existing("paper-c-tier", "paper", status="rejected")
    )
    assert validator.validate(submission("paper-c-tier", metadata), one_rejected).accepted


def test_nsc_requires_impact_factor_ten():
    metadata = {"firstUnit": True, "authorRank": 1, "impactFactor": 8.5}
    report = validator.validate(submission("paper-nsc-top", metadata), snapshot())
    assert report.errors == {"metadata.impactFactor": "NSC 系列需 IF≥10"}


def test_patent_requires_first_unit():
    report = validator.validate(
        submission("patent-national-invention", {"firstUnit": False, "inventorRank": 1}),
        snapshot(),
    )
    assert report.errors["metadata.firstUnit"] == "需提供厦门大学第一单位证明"


def test_competition_requires_team_members():
    report = validator.validate(submission("competition-national-a", COMPETITION), snapshot())
    assert report.errors == {"teamMembers": "该项目需填写团队成员信息"}

    with_team = submission("competition-national-a", COMPETITION, teamMembers=TEAM)
    assert validator.validate(with_team, snapshot()).accepted


def test_competition_quota_of_three():
    filed = snapshot(
        *(existing("competition-provincial-a", "competition", workName=f"作品{i}") for i in range(3))
    )
    report = validator.validate(
        submission("competition-national-a", COMPETITION, teamMembers=TEAM), filed
    )
    assert report.errors["itemSlug"] == "同学竞赛加分累计不超过 3 项"


def test_competition_outside_school_limit_and_duplicate_work():
    metadata = {**COMPETITION, "isOutsideSchoolProject": True}
    filed = snapshot(
        existing(
            "competition-provincial-a",
            "competition",
            workName="智能导盲杖",
            isOutsideSchoolProject=True,
        )
    )
    report = validator.validate(
        submission("competition-national-a", metadata, teamMembers=TEAM), filed
    )
    assert report.errors["metadata.isOutsideSchoolProject"] == "非信息学院竞赛加分最多 1 项"
    assert report.errors["metadata.workName"] == "同一作品仅可申报一次，请勿重复提交"


def test_volunteer_needs_two_hundred_hours():
    report = validator.validate(submission("volunteer-service", {"totalHours": 150}), snapshot())
    assert report.errors == {"metadata.totalHours": "志愿服务需累计满 200 小时"}
    assert validator.validate(submission("volunteer-service", {"totalHours": 260}), snapshot()).accepted


def test_social_work_converted_score_limit():
    metadata = {"position": "班长", "academicYear": "2023-2024", "coefficient": 3, "advisorScore": 90}
    report = validator.validate(submission("social-work", metadata), snapshot())
    assert report.errors == {"metadata.advisorScore": "社会工作折算分数不应超过 2 分"}


def test_special_academic_needs_endorsement():
    metadata = {"route": "paper", "hasProfessorEndorsement": False}
    report = validator.validate(submission("special-academic-excellence", metadata), snapshot())
    assert report.errors["metadata.hasProfessorEndorsement"] == "需提供三名教授联名推荐证明"


def test_special_academic_defense_date_format():
    metadata = {"route": "paper", "hasProfessorEndorsement": True, "defensePlannedDate": "soon"}
    report = validator.validate(submission("special-academic-excellence", metadata), snapshot())
    assert report.errors == {"metadata.defensePlannedDate": "公开答辩时间格式错误"}


@pytest.mark.parametrize(
    ("obtained_at", "accepted"),
    [
        ("2024-08-31", True),
        ("2024-08-31T23:30:00Z", True),
        ("2024-09-01", False),
        ("not-a-date", False),
    ],
)
def test_cutoff_date(obtained_at, accepted):
    payload = submission("volunteer-service", {"totalHours": 260}, obtainedAt=obtained_at)
    report = validator.validate(payload, snapshot())
    assert report.accepted is accepted
    if not accepted:
        assert "obtainedAt" in report.errors


def test_cutoff_date_can_be_configured():
    late = PolicyValidator(cutoff_date=date(2025, 8, 31))
    payload = submission("volunteer-service", {"totalHours": 260}, obtainedAt="2025-03-01")
    assert late.validate(payload, snapshot()).accepted
    report = validator.validate(payload, snapshot())
    assert report.errors["obtainedAt"] == "材料日期需不晚于 2024-08-31"


def test_envelope_shape_errors():
    payload = submission(
        "volunteer-service",
        {"totalHours": 260},
        summary="太短",
        attachments=[{"url": "https://x"}],
    )
    report = validator.validate(payload, snapshot())
    assert "summary" in report.errors
    assert "attachments.0.name" in report.errors

    no_files = validator.validate(
        submission("volunteer-service", {"totalHours": 260}, attachments=[]), snapshot()
    )
    assert no_files.errors == {"attachments": "请至少上传一份证明材料"}


def test_malformed_envelope_is_reported_not_raised():
    null_metadata = validator.validate(
        submission("volunteer-service", None), snapshot()
    )
    assert not null_metadata.accepted
    assert "metadata" in null_metadata.errors

    numeric_summary = validator.validate(
        submission("volunteer-service", {"totalHours": 260}, summary=12345678901), snapshot()
    )
    assert not numeric_summary.accepted
    assert "summary" in numeric_summary.errors

    bad_attachments = validator.validate(
        submission("volunteer-service", {"totalHours": 260}, attachments="evidence.pdf"),
        snapshot(),
    )
    assert "attachments" in bad_attachments.errors

    not_a_mapping = validator.validate(["volunteer-service"], snapshot())
    assert not not_a_mapping.accepted
    assert "submission" in not_a_mapping.errors


def test_attachment_and_team_member_constraints():
    report = validator.validate(
        submission(
            "volunteer-service",
            {"totalHours": 260},
            attachments=[{"url": "not a url", "name": "", "mimeType": "", "size": -5}],
        ),
        snapshot(),
    )
    assert not report.accepted
    for path in ("url", "name", "mimeType", "size"):
        assert f"attachments.0.{path}" in report.errors

    team = [{"name": "韩梅梅", "role": "", "studentId": "123", "contributionPercent": 120}]
    team_report = validator.validate(
        submission("competition-national-a", COMPETITION, teamMembers=team), snapshot()
    )
    for path in ("role", "studentId", "contributionPercent"):
        assert f"teamMembers.0.{path}" in team_report.errors

    sized = validator.validate(
        submission(
            "volunteer-service",
            {"totalHours": 260},
            attachments=[{**ATTACHMENT, "mimeType": "application/pdf", "size": 2048}],
        ),
        snapshot(),
    )
    assert sized.accepted


def test_unknown_item_slug():
    report = validator.validate(submission("does-not-exist", {}), snapshot())
    assert report.errors["itemSlug"] == "未知的加分项目，请刷新目录后重试"


def test_soft_cap_warnings_do_not_block():
    academic = validator.validate(
        submission("paper-a-tier", {"firstUnit": True, "authorRank": 1}),
        snapshot(academic=15),
    )
    assert academic.accepted
    assert "15 分封顶" in academic.warnings["itemSlug"]

    comprehensive = validator.validate(
        submission("volunteer-service", {"totalHours": 260}), snapshot(comprehensive=5)
    )
    assert comprehensive.accepted
    assert "上限 5 分" in comprehensive.warnings["itemSlug"]


def test_loader_failure_is_infrastructure_error():
    def broken_loader(student_id):
        raise RuntimeError("database down")

    checker = PolicyValidator(snapshot_loader=broken_loader)
    with pytest.raises(InfrastructureError) as excinfo:
        checker.validate_for_student(submission("volunteer-service", {"totalHours": 260}), "stu1")
    assert excinfo.value.kind == ErrorKind.INFRASTRUCTURE
    assert "database down" not in str(excinfo.value)


def test_validate_for_student_uses_loader():
    filed = snapshot(existing("paper-c-tier", "paper"), existing("paper-c-tier", "paper"))
    checker = PolicyValidator(snapshot_loader=lambda student_id: filed)
    report = checker.validate_for_student(
        submission("paper-c-tier", {"firstUnit": True, "authorRank": 2}), "stu1"
    )
    assert not report.accepted


def test_catalog_lookup_and_search():
    assert find_catalog_item("paper-a-tier").bucket == "academic"
    assert find_catalog_item("volunteer-service").bucket == "comprehensive"
    team_items = search_catalog_items(flags=["requiresTeam"])
    assert {item.slug for item in team_items} >= {"competition-national-a", "innovation-training"}
    assert all(item.category == "paper" for item in search_catalog_items(category="paper"))
    assert [item.slug for item in search_catalog_items(search="志愿")] == ["volunteer-service"]
