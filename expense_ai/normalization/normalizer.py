"""
Response Normalizer

Converts an arbitrary provider payload into the typed value the caller
expects. Providers return strict JSON, JSON buried in prose, markdown
fenced JSON, or garbage - all of it lands here.

DESIGN DECISION: "Nothing usable" is not an exception for insights -
parse_insights() returns an empty list and the orchestrator decides
that an empty list means "try the next provider" (require_insights).
Answers and categories raise NormalizationError directly because they
have no meaningful empty value.
"""

import json
import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from expense_ai.models.expense import ExpenseCategory
from expense_ai.models.insight import Insight, InsightType
from expense_ai.providers.base import NormalizationError


logger = structlog.get_logger(__name__)

DEFAULT_TITLE = "Insight"

_FENCE_RE = re.compile(r"```[a-zA-Z]*\n?")
_LABEL_RE = re.compile(r"^(Answer|Response|Advice):\s*", re.IGNORECASE)
_BLANK_LINES_RE = re.compile(r"\n{3,}")
_CATEGORY_LABEL_RE = re.compile(r"^category\s*:\s*", re.IGNORECASE)
_ANSWER_FIELDS = ("answer", "text", "response")


# =============================================================================
# JSON ARRAY EXTRACTION
# =============================================================================

def _bracket_spans(text: str) -> list[tuple[int, int]]:
    """
    (start, end) of every matched '[' ... ']' pair, ordered by start.

    One pass. Brackets inside JSON strings (including escaped quotes)
    are ignored once a '[' is open; quotes in surrounding prose are not
    tracked. Unmatched brackets produce no span.
    """
    open_positions: list[int] = []
    spans: list[tuple[int, int]] = []
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"' and open_positions:
            in_string = True
        elif ch == "[":
            open_positions.append(i)
        elif ch == "]" and open_positions:
            spans.append((open_positions.pop(), i))
    spans.sort()
    return spans


def extract_json_array(text: str) -> Optional[list]:
    """
    Find the first top-level bracket-matched JSON array in text.

    Candidates are tried left to right, so a stray "[note]" in prose
    before the real array does not hide it. Arrays nested inside a
    candidate that failed to parse are not tried on their own.
    """
    if not text:
        return None

    skip_until = -1
    for start, end in _bracket_spans(text):
        if start <= skip_until:
            continue
        try:
            parsed = json.loads(text[start:end + 1])
        except (ValueError, RecursionError):
            # JSONDecodeError is a ValueError; absurd nesting recurses
            parsed = None
        if isinstance(parsed, list):
            return parsed
        skip_until = end
    return None


# =============================================================================
# INSIGHTS
# =============================================================================

def _coerce_type(value: Any) -> InsightType:
    try:
        return InsightType(str(value).strip().lower())
    except ValueError:
        return InsightType.INFO


def _coerce_confidence(value: Any, default: float) -> float:
    # bool is an int subclass; True is not a confidence
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    # float() of an int beyond float range raises OverflowError
    confidence = float(value)
    if math.isnan(confidence):
        return default
    return min(1.0, max(0.0, confidence))


def _coerce_amount(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        amount = Decimal(str(value).replace(",", "").replace("₹", "").strip())
    except (InvalidOperation, ValueError):
        return None
    return amount if amount.is_finite() else None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_insights(
    text: str,
    default_confidence: float = 0.8,
    id_prefix: str = "insight",
) -> list[Insight]:
    """
    Map the first JSON array in text to Insight objects.

    - unknown or missing type -> info
    - missing title -> "Insight"; missing message -> element dropped
    - confidence missing/non-numeric -> default_confidence, clamped to [0, 1]
    - elements whose fields cannot be coerced are dropped
    - missing or repeated id -> "{id_prefix}-{n}" (deterministic)

    Returns [] when no usable array is found.
    """
    items = extract_json_array(text)
    if not items:
        return []

    insights: list[Insight] = []
    seen_ids: set[str] = set()

    for position, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            continue

        message = _optional_text(item.get("message"))
        if not message:
            continue

        insight_id = _optional_text(item.get("id"))
        if not insight_id or insight_id in seen_ids:
            insight_id = f"{id_prefix}-{position}"
            suffix = 1
            while insight_id in seen_ids:
                suffix += 1
                insight_id = f"{id_prefix}-{position}-{suffix}"
        seen_ids.add(insight_id)

        try:
            insights.append(Insight(
                id=insight_id,
                type=_coerce_type(item.get("type")),
                title=_optional_text(item.get("title")) or DEFAULT_TITLE,
                message=message,
                action=_optional_text(item.get("action")),
                confidence=_coerce_confidence(item.get("confidence"), default_confidence),
                category=_optional_text(item.get("category")),
                amount=_coerce_amount(item.get("amount")),
            ))
        except (ValidationError, OverflowError, ValueError) as e:
            logger.debug("insight_element_skipped", position=position, error=str(e))

    return insights


def require_insights(
    text: str,
    default_confidence: float = 0.8,
    id_prefix: str = "insight",
) -> list[Insight]:
    """parse_insights(), but zero insights is a NormalizationError."""
    insights = parse_insights(text, default_confidence, id_prefix)
    if not insights:
        raise NormalizationError("No valid insights could be extracted from the response")
    return insights


# =============================================================================
# FREE-TEXT ANSWERS
# =============================================================================

def _unwrap_json_answer(text: str) -> str:
    if not (text.startswith("{") and text.endswith("}")):
        return text
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(parsed, dict):
        for field in _ANSWER_FIELDS:
            value = parsed.get(field)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return text


def clean_answer(text: str) -> str:
    """
    Clean a free-text answer for display.

    Raises:
        NormalizationError: if nothing is left after cleaning
    """
    cleaned = _FENCE_RE.sub("", (text or "").strip()).strip()
    cleaned = _unwrap_json_answer(cleaned)
    cleaned = _LABEL_RE.sub("", cleaned)
    cleaned = _BLANK_LINES_RE.sub("\n\n", cleaned).strip()

    if not cleaned:
        raise NormalizationError("Empty answer after cleaning the response")
    return cleaned


# =============================================================================
# CATEGORY LABELS
# =============================================================================

def normalize_category(text: str) -> ExpenseCategory:
    """
    Match a classifier reply against the closed category set.

    Tolerates surrounding quotes, a trailing period and a "Category:"
    label. Anything else that is not a known label is a failure, so the
    next provider (or the keyword classifier) gets a chance.
    """
    candidate = _FENCE_RE.sub("", (text or "").strip())
    candidate = candidate.strip().splitlines()[0] if candidate.strip() else ""
    candidate = _CATEGORY_LABEL_RE.sub("", candidate)
    candidate = candidate.strip(" \"'*`.!").lower()

    for category in ExpenseCategory:
        if category.value.lower() == candidate:
            return category

    raise NormalizationError(f"Unrecognized category label: {(text or '')[:50]!r}")
