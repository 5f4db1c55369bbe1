"""Submission intake policy: catalog, metadata schemas and the validator."""

from .catalog import (
    CATALOG_CATEGORIES,
    CATALOG_ITEMS,
    CATALOG_VERSION,
    POLICY_META,
    CatalogCategoryPolicy,
    CatalogItemPolicy,
    cutoff_deadline,
    find_catalog_category,
    find_catalog_item,
    search_catalog_items,
)
from .schemas import METADATA_SCHEMAS
from .validator import ACTIVE_SUBMISSION_STATUSES, PolicyValidator

__all__ = [
    "ACTIVE_SUBMISSION_STATUSES",
    "CATALOG_CATEGORIES",
    "CATALOG_ITEMS",
    "CATALOG_VERSION",
    "METADATA_SCHEMAS",
    "POLICY_META",
    "CatalogCategoryPolicy",
    "CatalogItemPolicy",
    "PolicyValidator",
    "cutoff_deadline",
    "find_catalog_category",
    "find_catalog_item",
    "search_catalog_items",
]
