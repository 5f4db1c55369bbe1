"""File-based object store for students, achievements and review state.

Every record is a JSON file under a base directory. Achievement writes are
compare-and-swap on ``revision`` so concurrent writers on the same record
cannot silently overwrite each other's decision slots.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Iterator

from ..errors import InfrastructureError, NotFoundError, RevisionConflictError
from ..models.achievement import Achievement, ReviewerProfile
from ..models.student import AcademicRecord, StudentProfile
from ..models.submission import ExistingSubmission
from ...observability.logger import get_logger

logger = get_logger(__name__)


class ObjectStore:
    """Simple JSON-backed persistence layer."""

    def __init__(self, base_dir: str | Path | None = None):
        self.base_dir = Path(base_dir) if base_dir else Path("data/store")
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._write_lock = threading.RLock()

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------
    def _dir(self, name: str) -> Path:
        path = self.base_dir / name
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _dump(self, path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except OSError as exc:
            logger.error("store_write_failed", path=str(path), error=str(exc))
            raise InfrastructureError("store_write") from exc

    def _load(self, path: Path) -> Any | None:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("store_read_failed", path=str(path), error=str(exc))
            raise InfrastructureError("store_read") from exc

    def _iter_dir(self, name: str) -> Iterator[dict[str, Any]]:
        for path in sorted(self._dir(name).glob("*.json")):
            data = self._load(path)
            if data:
                yield data

    # ------------------------------------------------------------------
    # Students
    # ------------------------------------------------------------------
    def save_student(self, student: StudentProfile) -> None:
        self._dump(self._dir("students") / f"{student.id}.json", student.model_dump(mode="json"))

    def load_student(self, student_id: str) -> StudentProfile | None:
        data = self._load(self._dir("students") / f"{student_id}.json")
        return StudentProfile(**data) if data else None

    def list_students(self) -> list[StudentProfile]:
        return [StudentProfile(**data) for data in self._iter_dir("students")]

    # ------------------------------------------------------------------
    # Reviewer accounts (identity lookup)
    # ------------------------------------------------------------------
    @property
    def _reviewers_path(self) -> Path:
        return self.base_dir / "reviewers.json"

    def _reviewer_accounts(self) -> list[dict[str, Any]]:
        return self._load(self._reviewers_path) or []

    def upsert_reviewer(self, reviewer: ReviewerProfile, is_active: bool = True) -> None:
        with self._write_lock:
            accounts = [a for a in self._reviewer_accounts() if a.get("id") != reviewer.id]
            accounts.append({**reviewer.model_dump(mode="json"), "is_active": is_active})
            self._dump(self._reviewers_path, accounts)

    def set_reviewer_active(self, reviewer_id: str, is_active: bool) -> None:
        with self._write_lock:
            accounts = self._reviewer_accounts()
            for account in accounts:
                if account.get("id") == reviewer_id:
                    account["is_active"] = is_active
                    break
            else:
                raise NotFoundError(f"reviewer {reviewer_id} not found")
            self._dump(self._reviewers_path, accounts)

    def fetch_active_reviewers(self) -> list[ReviewerProfile]:
        """Active reviewer accounts, in the order they were registered."""
        return [
            ReviewerProfile(id=a["id"], name=a["name"], external_id=a["external_id"])
            for a in self._reviewer_accounts()
            if a.get("is_active", True)
        ]

    # ------------------------------------------------------------------
    # Achievements
    # ------------------------------------------------------------------
    def _achievement_path(self, achievement_id: str) -> Path:
        return self._dir("achievements") / f"{achievement_id}.json"

    def load_achievement(self, achievement_id: str) -> Achievement | None:
        data = self._load(self._achievement_path(achievement_id))
        return Achievement(**data) if data else None

    def list_achievements(self, student_id: str | None = None) -> list[Achievement]:
        achievements = [Achievement(**data) for data in self._iter_dir("achievements")]
        if student_id is not None:
            achievements = [a for a in achievements if a.student_id == student_id]
        return achievements

    def insert_achievement(self, achievement: Achievement) -> Achievement:
        """Persist a new achievement at revision 0."""
        with self._write_lock:
            path = self._achievement_path(achievement.id)
            if path.exists():
                raise RevisionConflictError(achievement.id, expected=-1, actual=0)
            stored = achievement.model_copy(update={"revision": 0})
            self._dump(path, stored.model_dump(mode="json"))
            return stored

    def save_achievement(self, achievement: Achievement, expected_revision: int) -> Achievement:
        """Compare-and-swap write.

        Raises:
            NotFoundError: The achievement was deleted meanwhile
            RevisionConflictError: Another writer got there first
        """
        with self._write_lock:
            current = self._load(self._achievement_path(achievement.id))
            if current is None:
                raise NotFoundError(f"achievement {achievement.id} not found")
            actual = int(current.get("revision", 0))
            if actual != expected_revision:
                raise RevisionConflictError(achievement.id, expected_revision, actual)
            stored = achievement.model_copy(update={"revision": expected_revision + 1})
            self._dump(self._achievement_path(achievement.id), stored.model_dump(mode="json"))
            return stored

    def delete_achievement(self, achievement_id: str) -> bool:
        with self._write_lock:
            path = self._achievement_path(achievement_id)
            if not path.exists():
                return False
            path.unlink()
            return True

    # ------------------------------------------------------------------
    # Academic records (one per student)
    # ------------------------------------------------------------------
    def save_academic_record(self, record: AcademicRecord) -> None:
        path = self._dir("academic_records") / f"{record.student_id}.json"
        self._dump(path, record.model_dump(mode="json", exclude={"score"}))

    def load_academic_record(self, student_id: str) -> AcademicRecord | None:
        data = self._load(self._dir("academic_records") / f"{student_id}.json")
        return AcademicRecord(**data) if data else None

    def list_academic_records(self) -> list[AcademicRecord]:
        return [AcademicRecord(**data) for data in self._iter_dir("academic_records")]

    # ------------------------------------------------------------------
    # Catalog submissions (intake snapshot)
    # ------------------------------------------------------------------
    def list_submissions(self, student_id: str) -> list[ExistingSubmission]:
        data = self._load(self._dir("submissions") / f"{student_id}.json") or []
        return [ExistingSubmission.model_validate(item) for item in data]

    def save_submission(self, student_id: str, submission: ExistingSubmission) -> None:
        with self._write_lock:
            current = [s for s in self.list_submissions(student_id) if s.id != submission.id]
            current.append(submission)
            self._dump(
                self._dir("submissions") / f"{student_id}.json",
                [s.model_dump(mode="json", by_alias=True) for s in current],
            )
