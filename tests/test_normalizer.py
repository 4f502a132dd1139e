"""Tests for response normalization."""

from decimal import Decimal

import pytest

from conftest import VALID_INSIGHTS_JSON
from expense_ai.models import ExpenseCategory, InsightType
from expense_ai.normalization import (
    clean_answer,
    extract_json_array,
    normalize_category,
    parse_insights,
    require_insights,
)
from expense_ai.providers import NormalizationError


class TestJsonExtraction:
    """Tests for locating the JSON array in a reply."""

    def test_fenced_and_bare_arrays_normalize_identically(self):
        """Test that markdown fences do not change the result."""
        fenced = f"```json\n{VALID_INSIGHTS_JSON}\n```"
        assert parse_insights(fenced) == parse_insights(VALID_INSIGHTS_JSON)
        assert len(parse_insights(fenced)) == 2

    def test_array_inside_prose(self):
        """Test extraction from surrounding text."""
        text = f"Here are your insights:\n{VALID_INSIGHTS_JSON}\nHope this helps!"
        assert len(parse_insights(text)) == 2

    def test_stray_bracket_before_array(self):
        """Test that a non-JSON bracket in prose is skipped."""
        text = '[note] see below: [{"message": "Spend less"}]'
        assert extract_json_array(text) == [{"message": "Spend less"}]

    def test_brackets_inside_strings(self):
        """Test that brackets in string values do not end the array."""
        text = '[{"message": "Use the ] key wisely [really]"}]'
        assert extract_json_array(text) == [{"message": "Use the ] key wisely [really]"}]

    def test_no_array(self):
        """Test that a reply without an array yields nothing."""
        assert extract_json_array("I cannot help with that.") is None
        assert parse_insights("I cannot help with that.") == []

    def test_deeply_nested_array(self):
        """Test that nesting beyond the JSON reader's depth yields nothing."""
        assert extract_json_array("[" * 100000 + "]" * 100000) is None
        assert parse_insights("[" * 100000 + "]" * 100000) == []

    def test_array_after_unparseable_nesting(self):
        """Test that a later array is still found after a broken one."""
        text = '[[oops]] then [{"message": "Spend less"}]'
        assert extract_json_array(text) == [{"message": "Spend less"}]

    def test_empty_array_yields_no_insights(self):
        """Test that an empty array is zero insights, not an error."""
        assert parse_insights("[]") == []


class TestInsightCoercion:
    """Tests for mapping array elements to insights."""

    def test_unknown_type_becomes_info(self):
        """Test type coercion."""
        insights = parse_insights('[{"type": "alert", "message": "m"}]')
        assert insights[0].type == InsightType.INFO

    def test_type_is_case_insensitive(self):
        """Test that WARNING is accepted as warning."""
        insights = parse_insights('[{"type": "WARNING", "message": "m"}]')
        assert insights[0].type == InsightType.WARNING

    def test_defaults_for_missing_fields(self):
        """Test default title, confidence and generated id."""
        insights = parse_insights('[{"message": "m"}]', default_confidence=0.85, id_prefix="groq-insight")
        assert insights[0].title == "Insight"
        assert insights[0].confidence == 0.85
        assert insights[0].id == "groq-insight-1"

    def test_elements_without_message_are_dropped(self):
        """Test that message-less elements are skipped."""
        insights = parse_insights('[{"title": "t"}, "text", {"message": "kept"}]')
        assert [i.message for i in insights] == ["kept"]

    def test_confidence_is_clamped(self):
        """Test confidence clamping and non-numeric fallback."""
        insights = parse_insights(
            '[{"message": "a", "confidence": 3}, {"message": "b", "confidence": -1},'
            ' {"message": "c", "confidence": "high"}]',
            default_confidence=0.7,
        )
        assert [i.confidence for i in insights] == [1.0, 0.0, 0.7]

    def test_confidence_beyond_float_range_drops_element(self):
        """Test that an integer confidence too large for a float drops only that element."""
        text = '[{"message": "x", "confidence": 1' + "0" * 400 + '}, {"message": "kept"}]'
        insights = parse_insights(text, default_confidence=0.7)
        assert [i.message for i in insights] == ["kept"]

    def test_nan_confidence_uses_default(self):
        """Test that NaN confidence falls back to the default."""
        insights = parse_insights('[{"message": "m", "confidence": NaN}]', default_confidence=0.7)
        assert insights[0].confidence == 0.7

    def test_duplicate_ids_are_replaced(self):
        """Test that ids stay unique within a batch."""
        insights = parse_insights('[{"id": "x", "message": "a"}, {"id": "x", "message": "b"}]')
        assert insights[0].id == "x"
        assert insights[1].id == "insight-2"

    def test_amount_parsing(self):
        """Test that amounts with symbols parse and garbage is dropped."""
        insights = parse_insights(
            '[{"message": "a", "amount": "₹1,250.50"}, {"message": "b", "amount": "lots"}]'
        )
        assert insights[0].amount == Decimal("1250.50")
        assert insights[1].amount is None

    def test_require_insights_raises_on_empty(self):
        """Test that zero insights is a normalization failure."""
        with pytest.raises(NormalizationError):
            require_insights("no json here")


class TestAnswerCleaning:
    """Tests for free-text answers."""

    def test_strips_fences_and_label(self):
        """Test fence and label removal."""
        assert clean_answer("```\nAnswer: Save 20% of income.\n```") == "Save 20% of income."

    def test_unwraps_json_answer(self):
        """Test unwrapping a JSON object reply."""
        assert clean_answer('{"answer": "Cook at home more often."}') == "Cook at home more often."

    def test_collapses_blank_lines(self):
        """Test that runs of blank lines collapse to one."""
        assert clean_answer("First\n\n\n\nSecond") == "First\n\nSecond"

    def test_empty_answer_raises(self):
        """Test that an empty reply is a normalization failure."""
        with pytest.raises(NormalizationError):
            clean_answer("```\n```")


class TestCategoryNormalization:
    """Tests for category labels."""

    @pytest.mark.parametrize(
        "reply,expected",
        [
            ("Transportation", ExpenseCategory.TRANSPORTATION),
            ("food", ExpenseCategory.FOOD),
            ('"Bills".', ExpenseCategory.BILLS),
            ("Category: Healthcare", ExpenseCategory.HEALTHCARE),
        ],
    )
    def test_known_labels(self, reply, expected):
        """Test tolerant matching of known labels."""
        assert normalize_category(reply) == expected

    def test_unknown_label_raises(self):
        """Test that an unknown label is a normalization failure."""
        with pytest.raises(NormalizationError):
            normalize_category("Groceries and household items")
