"""Error taxonomy for the exemption engine.

Expected validation failures are never raised; they travel as
``ValidationReport`` data. Everything below is raised and carries an
``ErrorKind`` so the calling layer can map it to a boundary response
without looking at message text.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced by the core."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    INFRASTRUCTURE = "infrastructure"


class PEMSError(Exception):
    """Base class for every error raised by the core."""

    kind: ErrorKind = ErrorKind.INFRASTRUCTURE
    public_message: str = "操作失败，请稍后重试"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)


class NotFoundError(PEMSError):
    """The requested record does not exist."""

    kind = ErrorKind.NOT_FOUND
    public_message = "未找到记录"


class OwnershipError(PEMSError):
    """The caller does not own the record it tried to read or change."""

    kind = ErrorKind.FORBIDDEN
    public_message = "无访问权限"


class InvalidInputError(PEMSError):
    """A service call carried missing or out-of-range fields."""

    kind = ErrorKind.VALIDATION
    public_message = "请填写完整的成果信息"


class VerdictError(PEMSError):
    """A reviewer verdict was malformed (bad status, missing comment)."""

    kind = ErrorKind.VALIDATION
    public_message = "审核意见无效"


class ReviewerSlotMissingError(PEMSError):
    """The reviewer has no decision slot on the achievement."""

    kind = ErrorKind.FORBIDDEN
    public_message = "未找到对应审核角色"


class RevisionConflictError(PEMSError):
    """A compare-and-swap write lost the race against another writer."""

    kind = ErrorKind.CONFLICT
    public_message = "记录已被修改，请刷新后重试"

    def __init__(self, record_id: str, expected: int, actual: int):
        self.record_id = record_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"revision conflict on {record_id}: expected {expected}, found {actual}"
        )


class InfrastructureError(PEMSError):
    """Storage or identity lookup failed.

    ``str(error)`` is the generic public message; the underlying cause stays
    on ``__cause__`` and in the logs.
    """

    kind = ErrorKind.INFRASTRUCTURE
    public_message = "服务暂时不可用，请稍后重试"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(self.public_message)
