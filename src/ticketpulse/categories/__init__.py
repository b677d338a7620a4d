"""
Categories: per-service canonical labels and highlighted categories.
"""

from .normalizer import CategoryNormalizer, CategoryRule, normalize_category
from .services import (
    HIGHLIGHTED_CATEGORIES,
    ServiceDefinition,
    build_service_definitions,
    filter_service_records,
    get_highlighted_categories,
    is_highlighted_category,
)

__all__ = [
    "CategoryNormalizer",
    "CategoryRule",
    "HIGHLIGHTED_CATEGORIES",
    "ServiceDefinition",
    "build_service_definitions",
    "filter_service_records",
    "get_highlighted_categories",
    "is_highlighted_category",
    "normalize_category",
]
