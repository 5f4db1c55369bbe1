"""Achievement workflow service.

Owner and reviewer mutations run as read-modify-write on a single document:
load, reconcile the reviewer roster, apply exactly one mutation, rescore and
re-derive, then write back with compare-and-swap on ``revision``. Writers in
this process are serialized per achievement; writers elsewhere lose the CAS
and are retried.
"""

import threading
import weakref
from typing import Any, Callable, Sequence

from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import (
    InvalidInputError,
    NotFoundError,
    OwnershipError,
    RevisionConflictError,
)
from ..models.achievement import Achievement, ReviewDecision
from ..models.base import utc_now
from ..models.enums import (
    AchievementCategory,
    AchievementStatus,
    CatalogCategory,
    ReviewStatus,
    SubmissionStatus,
)
from ..models.scorecard import ScoreSummary
from ..models.student import GPA_MAX, AcademicRecord
from ..models.submission import (
    ExistingSubmission,
    StudentSnapshot,
    Submission,
    ValidationReport,
)
from ..policy.catalog import find_catalog_item
from ..policy.validator import PolicyValidator
from ..review.consensus import (
    apply_verdict,
    find_decision,
    reconcile_reviewers,
    reset_decisions,
)
from ..review.roster import ReviewerRosterCache
from ..scoring.calculator import calculate_base_score
from ..scoring.summary import calculate_score_summary
from ..storage.object_store import ObjectStore
from ...observability.logger import get_logger, log_context

logger = get_logger(__name__)

EDITABLE_FIELDS = ("title", "category", "obtained_at", "description", "evidence_url", "metadata")
FIELD_ALIASES = {"obtainedAt": "obtained_at", "evidenceUrl": "evidence_url"}
OWNER_SETTABLE_STATUSES = frozenset(
    {AchievementStatus.DRAFT.value, AchievementStatus.SUBMITTED.value}
)
REVIEWABLE_STATUSES = frozenset(
    {
        AchievementStatus.SUBMITTED.value,
        AchievementStatus.APPROVED.value,
        AchievementStatus.REJECTED.value,
    }
)

Mutation = Callable[[Achievement], Achievement]

# One lock per achievement id, dropped once no caller holds it
_record_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_record_locks_guard = threading.Lock()


def _lock_for(record_id: str) -> threading.Lock:
    with _record_locks_guard:
        lock = _record_locks.get(record_id)
        if lock is None:
            lock = threading.Lock()
            _record_locks[record_id] = lock
        return lock


def _rescored(achievement: Achievement) -> Achievement:
    base = calculate_base_score(achievement.category, achievement.metadata)
    achievement.score = base.raw_score
    return achievement


class AchievementService:
    """Owner and reviewer operations over the object store."""

    def __init__(
        self,
        store: ObjectStore,
        roster: ReviewerRosterCache | None = None,
        validator: PolicyValidator | None = None,
    ):
        """Initialize service.

        Args:
            store: Storage collaborator
            roster: Active-reviewer cache (defaults to one backed by the store)
            validator: Intake validator (defaults to one reading snapshots from
                this service)
        """
        self.store = store
        self.roster = roster or ReviewerRosterCache(store.fetch_active_reviewers)
        self.validator = validator or PolicyValidator(snapshot_loader=self.load_snapshot)
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    # ==========================================================================
    # Read-modify-write core
    # ==========================================================================

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        retry=retry_if_exception_type(RevisionConflictError),
        reraise=True,
    )
    def _read_modify_write(
        self,
        achievement_id: str,
        mutate: Mutation | None = None,
        owner_id: str | None = None,
    ) -> Achievement:
        with _lock_for(achievement_id):
            current = self._load(achievement_id, owner_id)
            reconciled = reconcile_reviewers(current.reviews, self.roster.get())

            working = current.model_copy(deep=True)
            working.reviews = reconciled.slots
            if mutate is None:
                if not reconciled.changed:
                    return current
            else:
                working = mutate(working)

            stored = self.store.save_achievement(working, expected_revision=current.revision)
            if reconciled.changed:
                self.logger.debug(
                    "reviewer_slots_reconciled",
                    achievement_id=achievement_id,
                    slots=len(stored.reviews),
                )
            return stored

    def _load(self, achievement_id: str, owner_id: str | None = None) -> Achievement:
        achievement = self.store.load_achievement(achievement_id)
        if achievement is None:
            raise NotFoundError("未找到成果")
        if owner_id is not None and achievement.student_id != owner_id:
            raise OwnershipError()
        return achievement

    # ==========================================================================
    # Owner operations
    # ==========================================================================

    def create(self, student_id: str, payload: dict[str, Any]) -> Achievement:
        """Create an achievement for ``student_id``.

        Status is ``submitted`` only when explicitly requested, ``draft``
        otherwise. The score is computed and reviewer slots are seeded.
        """
        fields = {FIELD_ALIASES.get(k, k): v for k, v in (payload or {}).items()}
        if not fields.get("title") or not fields.get("category") or not fields.get("obtained_at"):
            raise InvalidInputError()
        metadata = fields.get("metadata")
        status = fields.get("status")

        try:
            achievement = Achievement(
                student_id=student_id,
                title=fields["title"],
                category=AchievementCategory(fields["category"]),
                obtained_at=fields["obtained_at"],
                description=fields.get("description"),
                evidence_url=fields.get("evidence_url"),
                metadata=metadata if isinstance(metadata, dict) else {},
                status=(
                    AchievementStatus.SUBMITTED
                    if status == AchievementStatus.SUBMITTED.value
                    else AchievementStatus.DRAFT
                ),
            )
        except (ValueError, ValidationError) as exc:
            raise InvalidInputError(str(exc)) from exc

        achievement = _rescored(achievement)
        achievement.reviews = reconcile_reviewers([], self.roster.get()).slots
        stored = self.store.insert_achievement(achievement)

        self.logger.info(
            "achievement_created",
            achievement_id=stored.id,
            student_id=student_id,
            category=stored.category,
            status=stored.status,
            score=stored.score,
        )
        return stored

    def get(self, achievement_id: str, student_id: str) -> Achievement:
        """Owner read; reconciles the roster first and persists only on change."""
        return self._read_modify_write(achievement_id, owner_id=student_id)

    def list_for_student(
        self, student_id: str, status: AchievementStatus | str | None = None
    ) -> list[Achievement]:
        """Owner listing, newest obtained first."""
        wanted = AchievementStatus(status).value if status else None
        results = []
        for achievement in self.store.list_achievements(student_id):
            if wanted and achievement.status != wanted:
                continue
            results.append(self._read_modify_write(achievement.id, owner_id=student_id))
        return sorted(results, key=lambda a: a.obtained_at, reverse=True)

    def update(self, achievement_id: str, student_id: str, changes: dict[str, Any]) -> Achievement:
        """Apply an owner edit.

        Only the editable fields are applied; ``status`` may move to draft or
        submitted and is otherwise ignored. While the achievement is draft or
        submitted every decision slot restarts from ``submitted``.
        """
        fields = {FIELD_ALIASES.get(k, k): v for k, v in (changes or {}).items()}

        def mutate(achievement: Achievement) -> Achievement:
            try:
                for name in EDITABLE_FIELDS:
                    if name not in fields:
                        continue
                    value = fields[name]
                    if name == "metadata" and not isinstance(value, dict):
                        value = {}
                    setattr(achievement, name, value)
                if fields.get("status") in OWNER_SETTABLE_STATUSES:
                    achievement.status = fields["status"]
            except ValidationError as exc:
                raise InvalidInputError(str(exc)) from exc

            if achievement.status in OWNER_SETTABLE_STATUSES:
                achievement.reviews = reset_decisions(achievement.reviews)
            achievement.updated_at = utc_now()
            return _rescored(achievement)

        stored = self._read_modify_write(achievement_id, mutate, owner_id=student_id)
        self.logger.info(
            "achievement_updated",
            achievement_id=achievement_id,
            fields=sorted(k for k in fields if k in EDITABLE_FIELDS or k == "status"),
            status=stored.status,
            score=stored.score,
        )
        return stored

    def delete(self, achievement_id: str, student_id: str) -> None:
        """Delete an owned achievement regardless of its review state."""
        with _lock_for(achievement_id):
            self._load(achievement_id, owner_id=student_id)
            self.store.delete_achievement(achievement_id)
        self.logger.info("achievement_deleted", achievement_id=achievement_id, student_id=student_id)

    # ==========================================================================
    # Reviewer operations
    # ==========================================================================

    def _require_active_reviewer(self, reviewer_id: str) -> None:
        if not any(r.id == reviewer_id for r in self.roster.get()):
            raise OwnershipError()

    def review(
        self,
        achievement_id: str,
        reviewer_id: str,
        status: ReviewStatus | str,
        comment: str | None = None,
    ) -> Achievement:
        """Record one reviewer's verdict and re-derive the overall status."""
        with log_context(achievement_id=achievement_id, reviewer_id=reviewer_id):
            self._require_active_reviewer(reviewer_id)
            stored = self._read_modify_write(
                achievement_id,
                lambda achievement: apply_verdict(achievement, reviewer_id, status, comment),
            )
            self.logger.info("achievement_reviewed", overall_status=stored.status)
        return stored

    def list_for_reviewer(
        self, reviewer_id: str, status: ReviewStatus | str | None = None
    ) -> list[tuple[Achievement, ReviewDecision | None]]:
        """Reviewable achievements with the reviewer's own decision slot.

        Args:
            reviewer_id: Reviewer account
            status: Keep only items whose slot for this reviewer has this
                status (``"all"`` or None keeps everything)

        Returns:
            (achievement, decision) pairs, newest first
        """
        self._require_active_reviewer(reviewer_id)
        wanted = None if status in (None, "all") else ReviewStatus(status).value

        pairs = []
        for achievement in self.store.list_achievements():
            if achievement.status not in REVIEWABLE_STATUSES:
                continue
            achievement = self._read_modify_write(achievement.id)
            decision = find_decision(achievement.reviews, reviewer_id)
            slot_status = decision.status if decision else ReviewStatus.SUBMITTED.value
            if wanted and slot_status != wanted:
                continue
            pairs.append((achievement, decision))
        return sorted(pairs, key=lambda pair: pair[0].created_at, reverse=True)

    # ==========================================================================
    # Scores and academic records
    # ==========================================================================

    def score_summary(
        self,
        student_id: str,
        statuses: Sequence[AchievementStatus | str] | None = None,
    ) -> ScoreSummary:
        return calculate_score_summary(
            self.store.list_achievements(student_id), student_id=student_id, statuses=statuses
        )

    def upsert_academic_record(
        self, student_id: str, gpa: float | None, evidence_url: str | None
    ) -> AcademicRecord:
        """Create or replace the student's single academic record."""
        if not isinstance(gpa, (int, float)) or isinstance(gpa, bool) or not 0 <= gpa <= GPA_MAX:
            raise InvalidInputError("请填写 0-4 之间的绩点")
        if not evidence_url or not isinstance(evidence_url, str) or not evidence_url.strip():
            raise InvalidInputError("请上传绩点佐证图片")

        existing = self.store.load_academic_record(student_id)
        record = AcademicRecord(
            student_id=student_id,
            gpa=float(gpa),
            evidence_url=evidence_url,
            created_at=existing.created_at if existing else utc_now(),
            updated_at=utc_now(),
        )
        self.store.save_academic_record(record)
        self.logger.info("academic_record_saved", student_id=student_id, gpa_score=record.score)
        return record

    # ==========================================================================
    # Catalog submissions
    # ==========================================================================

    def load_snapshot(self, student_id: str) -> StudentSnapshot:
        """Existing filings and accumulated scores used by the validator."""
        summary = self.score_summary(student_id)
        return StudentSnapshot(
            student_id=student_id,
            submissions=self.store.list_submissions(student_id),
            academic_score=summary.capped_academic_score,
            comprehensive_score=summary.capped_comprehensive_score,
        )

    def file_submission(
        self, student_id: str, submission: Submission | dict[str, Any]
    ) -> ValidationReport:
        """Validate a catalog submission and record it when accepted.

        Malformed payloads come back as a rejected report, like any other
        violation.
        """
        with log_context(student_id=student_id):
            report = self.validator.validate_for_student(submission, student_id)
        if report.accepted:
            if not isinstance(submission, Submission):
                submission = Submission.model_validate(submission)
            item = find_catalog_item(submission.item_slug)
            self.store.save_submission(
                student_id,
                ExistingSubmission(
                    item_slug=submission.item_slug,
                    category=CatalogCategory(item.category),
                    status=SubmissionStatus.SUBMITTED,
                    metadata=submission.metadata,
                ),
            )
        return report
