"""Ranking export in the registration-sheet layout."""

import csv
from pathlib import Path
from typing import Mapping

from ..core.models.achievement import Achievement
from ..core.models.scorecard import RankingEntry

EXPORT_COLUMNS = [
    "序号",
    "学号",
    "姓名",
    "专业",
    "学业综合成绩",
    "学术专长成绩",
    "综合表现成绩",
    "推免综合成绩",
    "类别",
    "加分原因",
    "加分分值",
    "证明材料链接",
    "绩点证明链接",
]

CATEGORY_LABELS = {
    "paper": "论文",
    "patent": "专利",
    "contest": "竞赛",
    "innovation": "创新项目",
    "volunteer": "志愿服务",
    "honor": "荣誉称号",
    "social": "社会工作",
    "sports": "体育竞赛",
}


def _fmt(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else ""


def ranking_rows(
    entries: list[RankingEntry], achievements: Mapping[str, Achievement]
) -> list[list[str]]:
    """One row per counted achievement; students without one get a single row."""
    rows: list[list[str]] = []
    for entry in entries:
        student_columns = [
            entry.student.student_number,
            entry.student.name,
            entry.student.major,
            _fmt(entry.gpa_score),
            _fmt(entry.academic_score),
            _fmt(entry.comprehensive_score),
            _fmt(entry.total_score),
        ]
        counted = [d for d in entry.details if d.applied_score > 0]
        if not counted:
            rows.append(student_columns + ["", "", "", "", entry.evidence_url or ""])
            continue
        for detail in counted:
            source = achievements.get(detail.achievement_id)
            reason = f"{detail.title}（{detail.notes}）" if detail.notes else detail.title
            rows.append(
                student_columns
                + [
                    CATEGORY_LABELS.get(detail.category, detail.category),
                    reason,
                    _fmt(detail.applied_score),
                    (source.evidence_url if source else None) or "",
                    entry.evidence_url or "",
                ]
            )
    return [[str(index)] + row for index, row in enumerate(rows, start=1)]


def write_ranking_csv(
    path: Path, entries: list[RankingEntry], achievements: Mapping[str, Achievement]
) -> int:
    """Write the export and return the number of data rows."""
    rows = ranking_rows(entries, achievements)
    path.parent.mkdir(parents=True, exist_ok=True)
    # utf-8-sig so spreadsheet tools detect the encoding of the Chinese headers
    with path.open("w", newline="", encoding="utf-8-sig") as f:
        writer = csv.writer(f)
        writer.writerow(EXPORT_COLUMNS)
        writer.writerows(rows)
    return len(rows)
