"""
Unit tests for locating references and function calls.
"""
import logging

import pytest

from expressions.exceptions import MalformedReferenceError
from expressions.items import ReferenceType
from expressions.matcher import (
    AGGREGATE_PATTERN, IS_NULL_PATTERN, iter_function_calls, iter_references, match_closing,
    normalize_function_case,
)


class TestIterReferences:
    """Tests for iter_references."""

    def test_all_reference_types(self):
        formula = "#{de.coc} + D{pr.de} + A{pr.at} + I{pi} + R{ds.REPORTING_RATE} + C{c} + OUG{g} * [days]"
        references = list(iter_references(formula))

        assert [r.reference_type for r in references] == [
            ReferenceType.DATA_ELEMENT_OPERAND,
            ReferenceType.PROGRAM_DATA_ELEMENT,
            ReferenceType.PROGRAM_ATTRIBUTE,
            ReferenceType.PROGRAM_INDICATOR,
            ReferenceType.REPORTING_RATE,
            ReferenceType.CONSTANT,
            ReferenceType.ORG_UNIT_GROUP,
            ReferenceType.DAYS,
        ]

    def test_span_and_parts(self):
        reference = next(iter_references("1 + #{de.coc.aoc}"))

        assert reference.parts == ("de", "coc", "aoc")
        assert reference.key == "de.coc.aoc"
        assert (reference.start, reference.end) == (4, 17)
        assert reference.text == "#{de.coc.aoc}"
        assert reference.is_dimensional

    def test_wildcards(self):
        reference = next(iter_references("#{de.*.aoc}"))
        assert reference.parts == ("de", "*", "aoc")

    def test_too_many_parts_is_not_a_reference(self):
        assert list(iter_references("#{a.b.c.d}")) == []

    def test_prefix_must_not_follow_a_word_character(self):
        assert list(iter_references("XC{abc}")) == []

    def test_empty(self):
        assert list(iter_references("")) == []
        assert list(iter_references(None)) == []


class TestMatchClosing:
    """Tests for match_closing."""

    def test_nested(self):
        text = "AVG(1 + (2 * [3]))"
        assert match_closing(text, 4) == len(text) - 1

    def test_unmatched(self):
        assert match_closing("AVG(1 + (2)", 4) == -1


class TestIterFunctionCalls:
    """Tests for iter_function_calls."""

    def test_nested_calls_are_consumed(self):
        calls = list(iter_function_calls("SUM(AVG(1)) + MAX(2)", AGGREGATE_PATTERN))

        assert [c.name for c in calls] == ["SUM", "MAX"]
        assert calls[0].argument("SUM(AVG(1)) + MAX(2)") == "AVG(1)"

    def test_case_insensitive(self):
        calls = list(iter_function_calls("isnull(#{a}) + ISNULL(#{b})", IS_NULL_PATTERN))
        assert len(calls) == 2

    def test_malformed_call_is_logged(self, caplog):
        """Test an unclosed call is reported at its argument offset."""
        formula = "AVG(#{de} + 1"
        with caplog.at_level(logging.WARNING, logger="expressions"):
            calls = list(iter_function_calls(formula, AGGREGATE_PATTERN))

        assert len(calls) == 1
        assert calls[0].malformed
        assert calls[0].argument(formula) is None
        assert f"Bad expression starting at 4 in {formula}" in caplog.text

    def test_malformed_call_strict(self):
        with pytest.raises(MalformedReferenceError) as excinfo:
            list(iter_function_calls("1 + SUM(2", AGGREGATE_PATTERN, strict=True))
        assert excinfo.value.offset == 8

    def test_scanning_resumes_after_malformed_call(self):
        """Test calls after the opening parenthesis of a malformed call are found."""
        calls = list(iter_function_calls("SUM(AVG(1)", AGGREGATE_PATTERN))

        assert [c.name for c in calls] == ["SUM", "AVG"]
        assert calls[0].malformed
        assert not calls[1].malformed


class TestNormalizeFunctionCase:
    """Tests for normalize_function_case."""

    def test_upper_cases_known_functions(self):
        assert normalize_function_case("avg(1) + isNull(2) + round (3)") == "AVG(1) + ISNULL(2) + ROUND (3)"

    def test_leaves_other_words(self):
        assert normalize_function_case("true && average(1)") == "true && average(1)"
