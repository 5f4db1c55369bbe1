"""End-to-end CLI smoke test over a file-backed store."""

import csv
import json

import pytest
from typer.testing import CliRunner

from pems.cli.export import EXPORT_COLUMNS
from pems.cli.main import app
from pems.core.models.achievement import ReviewerProfile
from pems.core.models.student import StudentProfile
from pems.core.services.achievements import AchievementService
from pems.core.storage.object_store import ObjectStore

runner = CliRunner()


@pytest.fixture
def seeded_store(tmp_path, monkeypatch):
    store_dir = tmp_path / "store"
    monkeypatch.setenv("PEMS_STORAGE__OBJECT_STORE_DIR", str(store_dir))
    monkeypatch.setenv("PEMS_LOGGING__LEVEL", "WARNING")

    store = ObjectStore(store_dir)
    store.upsert_reviewer(ReviewerProfile(id="r1", name="Alice", external_id="T001"))
    for idx in (1, 2):
        store.save_student(
            StudentProfile(
                id=f"stu{idx}", name=f"学生{idx}", student_number=f"2021000{idx}", major="计算机"
            )
        )

    service = AchievementService(store)
    paper = service.create(
        "stu1",
        {
            "title": "CCF-A 论文",
            "category": "paper",
            "obtainedAt": "2024-03-01",
            "metadata": {"level": "A"},
            "evidenceUrl": "https://files/paper.pdf",
            "status": "submitted",
        },
    )
    service.review(paper.id, "r1", "approved")
    service.create(
        "stu2",
        {
            "title": "校级荣誉",
            "category": "honor",
            "obtainedAt": "2024-04-01",
            "status": "submitted",
        },
    )
    service.upsert_academic_record("stu1", 3.6, "https://files/gpa1.png")
    return store


def test_ranking_export(seeded_store, tmp_path):
    export = tmp_path / "out" / "ranking.csv"
    result = runner.invoke(app, ["ranking", "--export", str(export)])
    assert result.exit_code == 0, result.output

    with export.open(encoding="utf-8-sig", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == EXPORT_COLUMNS
    assert rows[1][1] == "20210001"
    assert rows[1][7] == "82.00"
    assert rows[1][11] == "https://files/paper.pdf"
    assert rows[2][1] == "20210002"
    assert rows[2][7] == "0.00"


def test_review_rejection_requires_comment(seeded_store):
    achievement = seeded_store.list_achievements("stu2")[0]
    result = runner.invoke(
        app,
        ["review", "--achievement", achievement.id, "--reviewer", "r1", "--status", "rejected"],
    )
    assert result.exit_code == 1
    assert "退回时需填写审核说明" in result.output

    result = runner.invoke(
        app,
        [
            "review",
            "--achievement",
            achievement.id,
            "--reviewer",
            "r1",
            "--status",
            "rejected",
            "--comment",
            "缺少证书",
        ],
    )
    assert result.exit_code == 0, result.output
    assert seeded_store.load_achievement(achievement.id).status == "rejected"


def test_validate_submission_file(seeded_store, tmp_path):
    payload = {
        "itemSlug": "volunteer-service",
        "obtainedAt": "2024-06-01",
        "summary": "两年累计志愿服务 260 小时",
        "attachments": [{"url": "https://files/volunteer.pdf", "name": "volunteer.pdf"}],
        "metadata": {"totalHours": 260},
    }
    path = tmp_path / "submission.json"
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")

    result = runner.invoke(app, ["validate", "--student", "stu1", "--file", str(path), "--record"])
    assert result.exit_code == 0, result.output
    assert "Submission accepted" in result.output
    assert len(seeded_store.list_submissions("stu1")) == 1

    payload["metadata"] = {"totalHours": 20}
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    result = runner.invoke(app, ["validate", "--student", "stu1", "--file", str(path)])
    assert result.exit_code == 1
    assert "Submission rejected" in result.output


def test_validate_malformed_submission_file(seeded_store, tmp_path):
    payload = {
        "itemSlug": "volunteer-service",
        "obtainedAt": "2024-06-01",
        "summary": 12345678901,
        "attachments": [{"url": "https://files/volunteer.pdf", "name": "volunteer.pdf"}],
        "metadata": None,
    }
    path = tmp_path / "malformed.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    result = runner.invoke(app, ["validate", "--student", "stu1", "--file", str(path), "--record"])
    assert result.exit_code == 1
    assert "Submission rejected" in result.output
    assert seeded_store.list_submissions("stu1") == []


def test_summary_reviewers_catalog_and_init(seeded_store):
    assert runner.invoke(app, ["summary", "--student", "stu1"]).exit_code == 0
    assert runner.invoke(app, ["reviewers"]).exit_code == 0
    assert runner.invoke(app, ["catalog", "--flag", "requiresTeam"]).exit_code == 0
    assert runner.invoke(app, ["catalog", "--flag", "bogus"]).exit_code == 1
    assert runner.invoke(app, ["init-store"]).exit_code == 0
