"""Base Pydantic schemas and helpers for PEMS models."""

import math
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Pydantic Base Classes
# =============================================================================


class PEMSBaseModel(BaseModel):
    """Base Pydantic model for all schemas with common configuration."""

    model_config = ConfigDict(
        # Allow conversion from storage records
        from_attributes=True,
        # Validate on assignment
        validate_assignment=True,
        # Use enum values instead of enum members
        use_enum_values=True,
        str_strip_whitespace=True,
    )


class TimestampSchema(PEMSBaseModel):
    """Schema with timestamp fields."""

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class VersionedSchema(PEMSBaseModel):
    """Stored records carry the layout version they were written with."""

    schema_version: str = Field(default="1.0.0", description="Stored record layout version")


class IdentifiedSchema(PEMSBaseModel):
    """Schema with UUID identifier."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique identifier")


# =============================================================================
# Utility Functions
# =============================================================================


def utc_now() -> datetime:
    """Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def round2(value: float) -> float:
    """Round a score to two decimal places, half away from zero.

    Published scores round 2.345 up to 2.35; the built-in ``round`` would
    give banker's rounding on the binary value instead.
    """
    if value is None or math.isnan(value):
        return 0.0
    sign = -1.0 if value < 0 else 1.0
    return sign * math.floor(abs(value) * 100 + 0.5 + 1e-9) / 100
