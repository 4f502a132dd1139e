"""Response normalization package."""

from expense_ai.normalization.normalizer import (
    clean_answer,
    extract_json_array,
    normalize_category,
    parse_insights,
    require_insights,
)

__all__ = [
    "clean_answer",
    "extract_json_array",
    "normalize_category",
    "parse_insights",
    "require_insights",
]
