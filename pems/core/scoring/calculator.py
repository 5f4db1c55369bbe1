"""Category Score Calculator.

Maps one achievement's category and metadata to a raw point value and the
bucket it counts toward. The rule table is fixed and versioned; it is not
configurable at runtime.

Each category parses its loosely-typed metadata map into its own variant
model, and every variant owns its formula. Malformed values fall back to
the category defaults, so scoring never raises.
"""

import math
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping

from pydantic import Field

from ..models.achievement import Achievement
from ..models.base import PEMSBaseModel
from ..models.enums import AchievementCategory, ScoreBucket
from ..models.scorecard import BaseScore

SCORING_RULES_VERSION = "2024.1"

LEVEL_ALIASES = {
    "国际级": "international",
    "国家级": "national",
    "省级": "provincial",
    "校级": "school",
}
LEVEL_LABELS = {value: key for key, value in LEVEL_ALIASES.items()}

AWARD_ALIASES = {
    "特等奖": "special",
    "一等奖": "first",
    "二等奖": "second",
    "三等奖": "third",
    "其他": "other",
}
AWARD_LABELS = {value: key for key, value in AWARD_ALIASES.items()}

CONTEST_MATRIX: dict[str, dict[str, float]] = {
    "international": {"special": 10, "first": 8, "second": 6, "third": 4, "other": 2},
    "national": {"special": 8, "first": 6, "second": 4, "third": 2, "other": 1},
    "provincial": {"special": 6, "first": 4, "second": 2, "third": 1, "other": 0.5},
    "school": {"special": 2, "first": 1, "second": 0.5, "third": 0.2, "other": 0.1},
}

PAPER_LEVEL_SCORES = {"A": 10.0, "B": 6.0, "C": 1.0}
TIERED_LEVEL_SCORES = {"national": 2.0, "provincial": 1.5, "school": 1.0}
SPORTS_LEVEL_BASE = {"international": 2.0, "national": 1.5, "provincial": 1.0, "school": 0.5}


# =============================================================================
# Lenient metadata readers
# =============================================================================


def _text(metadata: Mapping[str, Any], key: str, default: str) -> str:
    value = metadata.get(key)
    if value is None or value == "" or value is False:
        return default
    return str(value).strip() or default


def _number(metadata: Mapping[str, Any], key: str, default: float = 0.0) -> float:
    value = metadata.get(key)
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _level(metadata: Mapping[str, Any], default: str) -> str:
    raw = _text(metadata, "level", default)
    return LEVEL_ALIASES.get(raw, raw.lower())


def _award(metadata: Mapping[str, Any], default: str) -> str:
    raw = _text(metadata, "award", default)
    return AWARD_ALIASES.get(raw, raw.lower())


# =============================================================================
# Category variants
# =============================================================================


class CategoryScoring(PEMSBaseModel, ABC):
    """Typed metadata for one category plus its scoring formula."""

    bucket: ClassVar[ScoreBucket]

    @classmethod
    @abstractmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "CategoryScoring":
        """Parse a loosely-typed metadata map, falling back to defaults."""
        pass

    @abstractmethod
    def score(self) -> BaseScore:
        """Return the raw score, bucket and notes for this category."""
        pass

    def _result(self, raw_score: float, notes: str) -> BaseScore:
        return BaseScore(raw_score=raw_score, bucket=self.bucket, notes=notes)


class PaperScoring(CategoryScoring):
    bucket: ClassVar[ScoreBucket] = ScoreBucket.ACADEMIC

    level: str = Field("B")

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "PaperScoring":
        return cls(level=_text(metadata, "level", "B").upper())

    def score(self) -> BaseScore:
        return self._result(PAPER_LEVEL_SCORES.get(self.level, 0.0), f"论文等级：{self.level}")


class PatentScoring(CategoryScoring):
    bucket: ClassVar[ScoreBucket] = ScoreBucket.ACADEMIC

    patent_type: str = Field("invention")

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "PatentScoring":
        return cls(patent_type=_text(metadata, "type", "invention"))

    def score(self) -> BaseScore:
        is_invention = "invention" in self.patent_type.lower() or "发明" in self.patent_type
        return self._result(2.0 if is_invention else 1.0, f"专利类型：{self.patent_type}")


class ContestScoring(CategoryScoring):
    bucket: ClassVar[ScoreBucket] = ScoreBucket.ACADEMIC

    level: str = Field("provincial")
    award: str = Field("third")

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "ContestScoring":
        return cls(level=_level(metadata, "provincial"), award=_award(metadata, "third"))

    def score(self) -> BaseScore:
        raw_score = CONTEST_MATRIX.get(self.level, {}).get(self.award, 0.0)
        label = LEVEL_LABELS.get(self.level, self.level) + AWARD_LABELS.get(self.award, self.award)
        return self._result(float(raw_score), f"竞赛：{label}")


class InnovationScoring(CategoryScoring):
    bucket: ClassVar[ScoreBucket] = ScoreBucket.ACADEMIC

    level: str = Field("provincial")

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "InnovationScoring":
        return cls(level=_level(metadata, "provincial"))

    def score(self) -> BaseScore:
        raw_score = TIERED_LEVEL_SCORES.get(self.level, 0.5)
        return self._result(raw_score, f"双创项目：{LEVEL_LABELS.get(self.level, self.level)}")


class VolunteerScoring(CategoryScoring):
    bucket: ClassVar[ScoreBucket] = ScoreBucket.COMPREHENSIVE

    hours: float = Field(0.0, ge=0.0)

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "VolunteerScoring":
        return cls(hours=max(_number(metadata, "hours"), 0.0))

    def score(self) -> BaseScore:
        return self._result(min(self.hours / 200, 1.0), f"志愿时长：{self.hours:g}h")


class HonorScoring(CategoryScoring):
    bucket: ClassVar[ScoreBucket] = ScoreBucket.COMPREHENSIVE

    level: str = Field("school")

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "HonorScoring":
        return cls(level=_level(metadata, "school"))

    def score(self) -> BaseScore:
        raw_score = TIERED_LEVEL_SCORES.get(self.level, 0.5)
        return self._result(raw_score, f"荣誉：{LEVEL_LABELS.get(self.level, self.level)}")


class SocialScoring(CategoryScoring):
    bucket: ClassVar[ScoreBucket] = ScoreBucket.COMPREHENSIVE

    months: float = Field(0.0, ge=0.0)

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "SocialScoring":
        return cls(months=max(_number(metadata, "months"), 0.0))

    def score(self) -> BaseScore:
        return self._result(min(self.months * 0.3, 2.0), f"社会工作月份：{self.months:g}")


class SportsScoring(CategoryScoring):
    bucket: ClassVar[ScoreBucket] = ScoreBucket.COMPREHENSIVE

    level: str = Field("school")
    place: float = Field(3.0, gt=0.0)

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "SportsScoring":
        place = _number(metadata, "rank", _number(metadata, "placeRank", 3.0))
        return cls(level=_level(metadata, "school"), place=place if place > 0 else 3.0)

    def score(self) -> BaseScore:
        base = SPORTS_LEVEL_BASE.get(self.level, 0.3)
        label = LEVEL_LABELS.get(self.level, self.level)
        return self._result(max(base, 0.1) / self.place, f"体育：{label} 第{self.place:g}名")


SCORING_VARIANTS: dict[AchievementCategory, type[CategoryScoring]] = {
    AchievementCategory.PAPER: PaperScoring,
    AchievementCategory.PATENT: PatentScoring,
    AchievementCategory.CONTEST: ContestScoring,
    AchievementCategory.INNOVATION: InnovationScoring,
    AchievementCategory.VOLUNTEER: VolunteerScoring,
    AchievementCategory.HONOR: HonorScoring,
    AchievementCategory.SOCIAL: SocialScoring,
    AchievementCategory.SPORTS: SportsScoring,
}

_missing = set(AchievementCategory) - set(SCORING_VARIANTS)
if _missing:
    raise TypeError(f"no scoring variant for categories: {sorted(c.value for c in _missing)}")


# =============================================================================
# Public API
# =============================================================================


def parse_scoring_metadata(
    category: AchievementCategory | str, metadata: Mapping[str, Any] | None
) -> CategoryScoring | None:
    """Parse raw metadata into the category's variant, or None for unknown categories."""
    try:
        key = AchievementCategory(category)
    except ValueError:
        return None
    return SCORING_VARIANTS[key].from_metadata(metadata or {})


def calculate_base_score(
    category: AchievementCategory | str, metadata: Mapping[str, Any] | None = None
) -> BaseScore:
    """Score one achievement. Unknown categories score zero in the academic bucket."""
    variant = parse_scoring_metadata(category, metadata)
    if variant is None:
        return BaseScore(raw_score=0.0, bucket=ScoreBucket.ACADEMIC, notes=None)
    return variant.score()


def score_achievement(achievement: Achievement) -> BaseScore:
    """Score an achievement record using its current category and metadata."""
    return calculate_base_score(achievement.category, achievement.metadata)
