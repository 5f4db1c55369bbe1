"""Policy Validator - rejects ineligible submissions at intake time.

Validation runs in two layers. The shape layer checks the envelope and the
metadata against the schema of the target item's category. The policy layer
runs only when the metadata is well formed and applies the category and
item rules plus the soft-cap warnings. Expected violations come back as a
``ValidationReport``; only a failed snapshot lookup raises.
"""

from datetime import date, datetime, timezone
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from ..errors import InfrastructureError, PEMSError
from ..models.enums import (
    CatalogCategory,
    CatalogFlag,
    ScoreBucket,
    SubmissionStatus,
    ViolationSeverity,
)
from ..models.submission import (
    Attachment,
    ExistingSubmission,
    PolicyViolation,
    StudentSnapshot,
    Submission,
    TeamMember,
    ValidationReport,
)
from ...observability.logger import get_logger
from .catalog import POLICY_META, CatalogItemPolicy, cutoff_deadline, find_catalog_item
from .schemas import (
    METADATA_SCHEMAS,
    CompetitionMetadata,
    PaperMetadata,
    PatentMetadata,
    SocialWorkMetadata,
    SpecialAcademicMetadata,
    VolunteerMetadata,
)

logger = get_logger(__name__)

SnapshotLoader = Callable[[str], StudentSnapshot]

ACTIVE_SUBMISSION_STATUSES = frozenset(
    {
        SubmissionStatus.SUBMITTED.value,
        SubmissionStatus.UNDER_REVIEW.value,
        SubmissionStatus.APPROVED.value,
    }
)

SUMMARY_MIN_LENGTH = 10
SUMMARY_MAX_LENGTH = 2000
C_TIER_SLUG = "paper-c-tier"
C_TIER_QUOTA = 2
NSC_SLUG = "paper-nsc-top"
NSC_MIN_IMPACT_FACTOR = 10
COMPETITION_QUOTA = 3
OUTSIDE_SCHOOL_QUOTA = 1
VOLUNTEER_MIN_HOURS = 200
SOCIAL_WORK_MAX_SCORE = 2


class _Findings:
    """Collects violations, keeping the first message per field path."""

    def __init__(self) -> None:
        self.violations: list[PolicyViolation] = []
        self._seen: set[tuple[str, str]] = set()

    def add(
        self, path: str, message: str, severity: ViolationSeverity = ViolationSeverity.ERROR
    ) -> None:
        key = (path, severity.value)
        if key in self._seen:
            return
        self._seen.add(key)
        self.violations.append(PolicyViolation(path=path, message=message, severity=severity))

    def warn(self, path: str, message: str) -> None:
        self.add(path, message, ViolationSeverity.WARNING)

    def has_errors(self, prefix: str = "") -> bool:
        return any(
            v.severity == ViolationSeverity.ERROR and v.path.startswith(prefix)
            for v in self.violations
        )

    def add_pydantic_errors(self, prefix: str, error: ValidationError) -> None:
        for issue in error.errors():
            parts = [prefix, *(str(part) for part in issue["loc"])]
            path = ".".join(part for part in parts if part) or "submission"
            message = issue["msg"].removeprefix("Value error, ")
            self.add(path, message)


def _parse_date(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip().replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _active(snapshot: StudentSnapshot) -> list[ExistingSubmission]:
    return [s for s in snapshot.submissions if s.status in ACTIVE_SUBMISSION_STATUSES]


def _normalise(text: Any) -> str:
    return " ".join(str(text or "").split()).lower()


def _slug_of(payload: Any) -> str | None:
    if isinstance(payload, dict):
        slug = payload.get("itemSlug", payload.get("item_slug"))
        return slug if isinstance(slug, str) else None
    return None


class PolicyValidator:
    """Validates catalog submissions against shape and eligibility rules."""

    def __init__(
        self,
        snapshot_loader: SnapshotLoader | None = None,
        cutoff_date: date | None = None,
    ):
        """Initialize validator.

        Args:
            snapshot_loader: Returns a student's existing filings; used by
                ``validate_for_student``
            cutoff_date: Program cutoff for evidence dates (defaults to the
                catalog constant)
        """
        self.snapshot_loader = snapshot_loader
        self.cutoff_date = cutoff_date or POLICY_META["cutoff_date"]
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def validate_for_student(
        self, submission: Submission | dict[str, Any], student_id: str
    ) -> ValidationReport:
        """Validate against the student's current filings fetched via the loader."""
        if self.snapshot_loader is None:
            raise InfrastructureError("load_student_snapshot")
        try:
            snapshot = self.snapshot_loader(student_id)
        except PEMSError:
            raise
        except Exception as exc:
            self.logger.exception("snapshot_lookup_failed", student_id=student_id, error=str(exc))
            raise InfrastructureError("load_student_snapshot") from exc
        return self.validate(submission, snapshot)

    def validate(
        self, submission: Submission | dict[str, Any], snapshot: StudentSnapshot
    ) -> ValidationReport:
        """Validate one submission against a snapshot of existing filings."""
        findings = _Findings()
        if not isinstance(submission, Submission):
            try:
                submission = Submission.model_validate(submission)
            except ValidationError as exc:
                findings.add_pydantic_errors("", exc)
                return self._report(findings, snapshot, item_slug=_slug_of(submission))

        item = find_catalog_item(submission.item_slug)
        if item is None:
            findings.add("itemSlug", "未知的加分项目，请刷新目录后重试")

        self._check_envelope(submission, findings)

        if item is not None:
            metadata = self._check_metadata(item, submission.metadata, findings)
            if metadata is not None:
                self._check_policy(item, metadata, snapshot, findings)
            self._check_soft_caps(item, snapshot, findings)
            if item.has_flag(CatalogFlag.REQUIRES_TEAM) and not submission.team_members:
                findings.add("teamMembers", "该项目需填写团队成员信息")

        return self._report(findings, snapshot, item_slug=submission.item_slug)

    def _report(
        self, findings: _Findings, snapshot: StudentSnapshot, item_slug: str | None
    ) -> ValidationReport:
        report = ValidationReport(
            accepted=not findings.has_errors(), violations=findings.violations
        )
        self.logger.info(
            "submission_validated" if report.accepted else "submission_rejected",
            student_id=snapshot.student_id,
            item_slug=item_slug,
            errors=len(report.errors),
            warnings=len(report.warnings),
        )
        return report

    # ------------------------------------------------------------------
    # Shape layer
    # ------------------------------------------------------------------
    def _check_envelope(self, submission: Submission, findings: _Findings) -> None:
        obtained_at = _parse_date(submission.obtained_at)
        if obtained_at is None:
            findings.add("obtainedAt", "日期格式错误")
        elif obtained_at > cutoff_deadline(self.cutoff_date):
            findings.add("obtainedAt", f"材料日期需不晚于 {self.cutoff_date.isoformat()}")

        summary_length = len(submission.summary or "")
        if summary_length < SUMMARY_MIN_LENGTH:
            findings.add("summary", f"成果简介至少 {SUMMARY_MIN_LENGTH} 个字")
        elif summary_length > SUMMARY_MAX_LENGTH:
            findings.add("summary", f"成果简介不超过 {SUMMARY_MAX_LENGTH} 个字")

        if not submission.attachments:
            findings.add("attachments", "请至少上传一份证明材料")
        for index, attachment in enumerate(submission.attachments):
            self._check_entry(Attachment, attachment, f"attachments.{index}", findings)

        for index, member in enumerate(submission.team_members or []):
            self._check_entry(TeamMember, member, f"teamMembers.{index}", findings)

    @staticmethod
    def _check_entry(
        schema: type[BaseModel], payload: Any, prefix: str, findings: _Findings
    ) -> None:
        try:
            schema.model_validate(payload)
        except ValidationError as exc:
            findings.add_pydantic_errors(prefix, exc)

    @staticmethod
    def _check_metadata(
        item: CatalogItemPolicy, metadata: dict[str, Any], findings: _Findings
    ) -> BaseModel | None:
        schema = METADATA_SCHEMAS[CatalogCategory(item.category)]
        try:
            return schema.model_validate(metadata or {})
        except ValidationError as exc:
            findings.add_pydantic_errors("metadata", exc)
            return None

    # ------------------------------------------------------------------
    # Policy layer
    # ------------------------------------------------------------------
    def _check_policy(
        self,
        item: CatalogItemPolicy,
        metadata: BaseModel,
        snapshot: StudentSnapshot,
        findings: _Findings,
    ) -> None:
        active = _active(snapshot)

        if isinstance(metadata, PaperMetadata):
            if item.has_flag(CatalogFlag.REQUIRES_FIRST_INSTITUTION) and not metadata.first_unit:
                findings.add("metadata.firstUnit", "需证明厦门大学为第一单位")
            if item.has_flag(CatalogFlag.REQUIRES_FIRST_AUTHOR) and metadata.author_rank > 2:
                findings.add("metadata.authorRank", "仅计前两作者（导师除外）")
            if item.slug == C_TIER_SLUG or metadata.level == "C":
                filed = sum(1 for s in active if s.item_slug == C_TIER_SLUG)
                if filed >= C_TIER_QUOTA:
                    findings.add("itemSlug", f"C 类论文最多计 {C_TIER_QUOTA} 篇")
            if (
                item.slug == NSC_SLUG
                and metadata.impact_factor is not None
                and metadata.impact_factor < NSC_MIN_IMPACT_FACTOR
            ):
                findings.add("metadata.impactFactor", f"NSC 系列需 IF≥{NSC_MIN_IMPACT_FACTOR}")

        elif isinstance(metadata, PatentMetadata):
            if item.has_flag(CatalogFlag.REQUIRES_FIRST_INSTITUTION) and not metadata.first_unit:
                findings.add("metadata.firstUnit", "需提供厦门大学第一单位证明")

        elif isinstance(metadata, CompetitionMetadata):
            competitions = [s for s in active if s.category == CatalogCategory.COMPETITION.value]
            if item.has_flag(CatalogFlag.LIMITED_QUOTA) and len(competitions) >= COMPETITION_QUOTA:
                findings.add("itemSlug", f"同学竞赛加分累计不超过 {COMPETITION_QUOTA} 项")
            if metadata.is_outside_school_project:
                outside = sum(1 for s in competitions if s.metadata.get("isOutsideSchoolProject"))
                if outside >= OUTSIDE_SCHOOL_QUOTA:
                    findings.add(
                        "metadata.isOutsideSchoolProject",
                        f"非信息学院竞赛加分最多 {OUTSIDE_SCHOOL_QUOTA} 项",
                    )
            work_name = _normalise(metadata.work_name)
            if any(_normalise(s.metadata.get("workName")) == work_name for s in competitions):
                findings.add("metadata.workName", "同一作品仅可申报一次，请勿重复提交")

        elif isinstance(metadata, VolunteerMetadata):
            if metadata.total_hours < VOLUNTEER_MIN_HOURS:
                findings.add("metadata.totalHours", f"志愿服务需累计满 {VOLUNTEER_MIN_HOURS} 小时")

        elif isinstance(metadata, SocialWorkMetadata):
            if metadata.coefficient * metadata.advisor_score / 100 > SOCIAL_WORK_MAX_SCORE:
                findings.add(
                    "metadata.advisorScore", f"社会工作折算分数不应超过 {SOCIAL_WORK_MAX_SCORE} 分"
                )

        elif isinstance(metadata, SpecialAcademicMetadata):
            if not metadata.has_professor_endorsement:
                findings.add("metadata.hasProfessorEndorsement", "需提供三名教授联名推荐证明")

    @staticmethod
    def _check_soft_caps(
        item: CatalogItemPolicy, snapshot: StudentSnapshot, findings: _Findings
    ) -> None:
        if item.bucket == ScoreBucket.ACADEMIC:
            if snapshot.academic_score >= POLICY_META["academic_score_cap"]:
                findings.warn("itemSlug", "当前学术专长分数已达到 15 分封顶，提交可能不计分")
        elif item.bucket == ScoreBucket.COMPREHENSIVE:
            if snapshot.comprehensive_score >= POLICY_META["comprehensive_score_cap"]:
                findings.warn("itemSlug", "综合表现分已达上限 5 分，提交可能不计分")
