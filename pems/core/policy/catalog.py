"""Bonus-point catalog and fixed program constants.

The catalog is a versioned rule table: each item names its category, the
flags that drive eligibility checks, and the keywords used by catalog search.
"""

from datetime import date, datetime, time, timezone

from pydantic import Field

from ..models.base import PEMSBaseModel
from ..models.enums import CatalogCategory, CatalogFlag, ScoreBucket

CATALOG_VERSION = "2024.1"

POLICY_META = {
    "cutoff_date": date(2024, 8, 31),
    "academic_score_cap": 15,
    "comprehensive_score_cap": 5,
    "total_score_formula": "综合成绩 = 学业综合成绩×80% + 学术专长成绩（≤15）+ 综合表现成绩（≤5）",
}

ACADEMIC_CATALOG_CATEGORIES = frozenset(
    {
        CatalogCategory.PAPER,
        CatalogCategory.PATENT,
        CatalogCategory.COMPETITION,
        CatalogCategory.INNOVATION,
    }
)
COMPREHENSIVE_CATALOG_CATEGORIES = frozenset(
    {
        CatalogCategory.INTERNATIONAL_INTERNSHIP,
        CatalogCategory.VOLUNTEER,
        CatalogCategory.HONOR,
        CatalogCategory.SOCIAL_WORK,
        CatalogCategory.SPORTS,
    }
)


class CatalogCategoryPolicy(PEMSBaseModel):
    """A catalog category as shown in the catalog browser."""

    slug: CatalogCategory
    title: str
    order: int
    policy_notes: list[str] = Field(default_factory=list)


class CatalogItemPolicy(PEMSBaseModel):
    """One item students can file a submission against."""

    slug: str
    category: CatalogCategory
    title: str
    short_description: str = ""
    max_score: float | None = None
    flags: list[CatalogFlag] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)

    def has_flag(self, flag: CatalogFlag) -> bool:
        return CatalogFlag(flag).value in self.flags

    @property
    def bucket(self) -> ScoreBucket | None:
        category = CatalogCategory(self.category)
        if category in ACADEMIC_CATALOG_CATEGORIES:
            return ScoreBucket.ACADEMIC
        if category in COMPREHENSIVE_CATALOG_CATEGORIES:
            return ScoreBucket.COMPREHENSIVE
        return None


_F = CatalogFlag

CATALOG_CATEGORIES: list[CatalogCategoryPolicy] = [
    CatalogCategoryPolicy(slug=CatalogCategory.PAPER, title="论文成果", order=1),
    CatalogCategoryPolicy(
        slug=CatalogCategory.PATENT,
        title="专利授权",
        order=2,
        policy_notes=["授权证书日期不得晚于 8 月 31 日", "独立发明人按 100% 计分"],
    ),
    CatalogCategoryPolicy(slug=CatalogCategory.COMPETITION, title="学科竞赛", order=3),
    CatalogCategoryPolicy(
        slug=CatalogCategory.INNOVATION,
        title="创新创业训练",
        order=4,
        policy_notes=["组长需说明项目职责，成员需提供任务分工说明"],
    ),
    CatalogCategoryPolicy(slug=CatalogCategory.INTERNATIONAL_INTERNSHIP, title="国际组织实习", order=5),
    CatalogCategoryPolicy(slug=CatalogCategory.VOLUNTEER, title="志愿服务", order=6),
    CatalogCategoryPolicy(slug=CatalogCategory.HONOR, title="荣誉称号", order=7),
    CatalogCategoryPolicy(slug=CatalogCategory.SOCIAL_WORK, title="社会工作", order=8),
    CatalogCategoryPolicy(slug=CatalogCategory.SPORTS, title="体育比赛", order=9),
    CatalogCategoryPolicy(slug=CatalogCategory.SPECIAL_ACADEMIC, title="特殊学术专长", order=10),
]

_PAPER_FLAGS = [
    _F.REQUIRES_FIRST_AUTHOR,
    _F.REQUIRES_FIRST_INSTITUTION,
    _F.SCORE_CAP,
    _F.LIMITS_COUNT,
]
_COMPETITION_FLAGS = [
    _F.REQUIRES_TEAM,
    _F.SCORE_CAP,
    _F.LIMITED_QUOTA,
    _F.SINGLE_SUBMISSION_PER_CONTEST,
]

CATALOG_ITEMS: list[CatalogItemPolicy] = [
    CatalogItemPolicy(
        slug="paper-a-tier",
        category=CatalogCategory.PAPER,
        title="论文 A 类（CCF-A / Top 期刊）",
        short_description="厦大第一单位，学生为前两作者的 A 类论文。",
        max_score=10,
        flags=_PAPER_FLAGS,
        keywords=["CCF A", "Top", "论文", "A 类", "第一作者", "厦大"],
    ),
    CatalogItemPolicy(
        slug="paper-b-tier",
        category=CatalogCategory.PAPER,
        title="论文 B 类（CCF-B / 重要期刊）",
        short_description="厦大第一单位，学生为前两作者的 B 类论文。共同第一作者各 50%。",
        max_score=6,
        flags=_PAPER_FLAGS,
        keywords=["CCF B", "论文", "B 类", "厦门大学", "第一作者"],
    ),
    CatalogItemPolicy(
        slug="paper-c-tier",
        category=CatalogCategory.PAPER,
        title="论文 C 类（CCF-C / 其他核心）",
        short_description="厦大第一单位，学生为前两作者的 C 类论文，每人最多计 2 篇。",
        max_score=1,
        flags=_PAPER_FLAGS,
        keywords=["CCF C", "论文", "C 类", "最多两篇"],
    ),
    CatalogItemPolicy(
        slug="paper-nsc-top",
        category=CatalogCategory.PAPER,
        title="NSC 系列（Cell 系列 IF≥10）",
        short_description="Nature/Science/Cell 主刊及子刊且影响因子≥10，等价两篇 A，最高 20 分。",
        max_score=20,
        flags=[
            _F.REQUIRES_FIRST_AUTHOR,
            _F.REQUIRES_FIRST_INSTITUTION,
            _F.NSC_DOUBLE_A,
            _F.SCORE_CAP,
            _F.LIMITS_COUNT,
        ],
        keywords=["NSC", "Nature", "Science", "Cell", "IF≥10"],
    ),
    CatalogItemPolicy(
        slug="patent-national-invention",
        category=CatalogCategory.PATENT,
        title="国家发明专利授权",
        short_description="厦大第一单位的国家发明专利授权，除导师外第一发明人按 80% 计。",
        max_score=2,
        flags=[_F.REQUIRES_FIRST_INSTITUTION, _F.SCORE_CAP],
        keywords=["专利", "国家发明", "授权", "厦大第一单位"],
    ),
    CatalogItemPolicy(
        slug="competition-national-a-plus",
        category=CatalogCategory.COMPETITION,
        title="国家级 A+ 类竞赛一等奖",
        short_description="列入学院竞赛项目库的国家级 A+ 类赛事最高奖，按 30 分基准计入学术专长。",
        max_score=30,
        flags=_COMPETITION_FLAGS,
        keywords=["竞赛", "国家级", "A+", "挑战杯", "ICPC", "一等奖"],
    ),
    CatalogItemPolicy(
        slug="competition-national-a",
        category=CatalogCategory.COMPETITION,
        title="国家级 A 类竞赛获奖",
        short_description="国家级 A 类赛事按等级计分：一等奖 15，二等奖 10，三等奖 5。",
        max_score=15,
        flags=_COMPETITION_FLAGS,
        keywords=["竞赛", "国家级", "一等奖", "二等奖", "三等奖", "A 类"],
    ),
    CatalogItemPolicy(
        slug="competition-provincial-a",
        category=CatalogCategory.COMPETITION,
        title="省级 A 类竞赛获奖",
        short_description="省级赛事按奖项折算，团队需提供分工说明。",
        max_score=10,
        flags=_COMPETITION_FLAGS,
        keywords=["省级", "竞赛", "网信柏鹭杯", "程序设计"],
    ),
    CatalogItemPolicy(
        slug="innovation-training",
        category=CatalogCategory.INNOVATION,
        title="创新创业训练计划",
        short_description="国/省/校级创新创业训练项目，组长最高 2 分，成员按 50% 折算。",
        max_score=2,
        flags=[_F.REQUIRES_TEAM, _F.SCORE_CAP],
        keywords=["创新创业", "训练计划", "项目", "结题"],
    ),
    CatalogItemPolicy(
        slug="international-internship-long-term",
        category=CatalogCategory.INTERNATIONAL_INTERNSHIP,
        title="国际组织实习（≥1 学年）",
        short_description="在国际组织连续实习满 1 学年，可计 1 分。",
        max_score=1,
        flags=[_F.SCORE_CAP],
        keywords=["国际组织", "实习", "长期", "学年"],
    ),
    CatalogItemPolicy(
        slug="volunteer-service",
        category=CatalogCategory.VOLUNTEER,
        title="志愿服务累计",
        short_description="志愿服务累计时长达到 200 小时起计，上限 1 分。",
        max_score=1,
        flags=[_F.SCORE_CAP],
        keywords=["志愿服务", "200 小时", "工时", "表彰"],
    ),
    CatalogItemPolicy(
        slug="honor-titles",
        category=CatalogCategory.HONOR,
        title="荣誉称号",
        short_description="国家级 2 分、省级 1 分、校级 0.2 分，同一年度仅取最高，累计封顶 2 分。",
        max_score=2,
        flags=[_F.SCORE_CAP, _F.LIMITED_QUOTA],
        keywords=["荣誉称号", "国家级", "省级", "校级"],
    ),
    CatalogItemPolicy(
        slug="social-work",
        category=CatalogCategory.SOCIAL_WORK,
        title="学生干部社会工作",
        short_description="按岗位系数 × 导师评分 / 100 折算，上限 2 分。",
        max_score=2,
        flags=[_F.SCORE_CAP],
        keywords=["学生干部", "社会工作", "岗位系数", "导师评分"],
    ),
    CatalogItemPolicy(
        slug="sports-competition",
        category=CatalogCategory.SPORTS,
        title="体育比赛成绩",
        short_description="国际/国家级团体名次按表折算，个人成绩按 1/3，取最高奖项计分。",
        max_score=2,
        flags=[_F.SCORE_CAP, _F.SINGLE_SUBMISSION_PER_CONTEST],
        keywords=["体育", "竞赛", "名次", "团体", "个人"],
    ),
    CatalogItemPolicy(
        slug="special-academic-excellence",
        category=CatalogCategory.SPECIAL_ACADEMIC,
        title="特殊学术专长申请",
        short_description="以第一作者在指定目录发表长文，或获国家级 A+/A 竞赛全国一等奖及以上。",
        max_score=None,
        flags=[
            _F.REQUIRES_PROFESSOR_ENDORSEMENT,
            _F.REQUIRES_PUBLIC_DEFENSE,
            _F.REQUIRES_PUBLICITY,
            _F.BREAKS_THRESHOLD,
        ],
        keywords=["特殊学术专长", "破外语线", "破排名线", "公开答辩"],
    ),
]

_ITEMS_BY_SLUG = {item.slug: item for item in CATALOG_ITEMS}


def cutoff_deadline(cutoff: date | None = None) -> datetime:
    """Last instant (UTC) on which evidence may be dated."""
    day = cutoff or POLICY_META["cutoff_date"]
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def find_catalog_item(slug: str) -> CatalogItemPolicy | None:
    return _ITEMS_BY_SLUG.get(slug)


def find_catalog_category(slug: CatalogCategory | str) -> CatalogCategoryPolicy | None:
    value = slug.value if isinstance(slug, CatalogCategory) else slug
    return next((c for c in CATALOG_CATEGORIES if c.slug == value), None)


def search_catalog_items(
    search: str | None = None,
    flags: list[CatalogFlag | str] | None = None,
    category: str | None = None,
) -> list[CatalogItemPolicy]:
    """Filter the catalog by category, required flags and a keyword."""
    items = list(CATALOG_ITEMS)
    if category:
        items = [item for item in items if item.category == category]
    if flags:
        wanted = [CatalogFlag(flag) for flag in flags]
        items = [item for item in items if all(item.has_flag(flag) for flag in wanted)]
    if search:
        keyword = search.lower()
        items = [
            item
            for item in items
            if keyword in item.title.lower()
            or keyword in item.short_description.lower()
            or any(keyword in k.lower() for k in item.keywords)
        ]
    return items
