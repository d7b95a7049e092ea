"""
Unit tests for references, dimensional identifiers and their resolution.
"""
import pytest

from catalog.dimensional import (
    DataElementOperand, ProgramDataElementDimensionItem, ReportingRate,
)
from expressions.items import (
    DAYS_DESCRIPTION, DimensionItemType, DimensionalItemId, ItemResolver, ReferenceType,
    ReportingRateMetric, check_parts, to_item_id,
)

from .conftest import FakeObject


class TestReferenceType:
    """Tests for ReferenceType."""

    def test_from_key(self):
        assert ReferenceType.from_key("OUG") is ReferenceType.ORG_UNIT_GROUP
        assert ReferenceType.from_key("#") is ReferenceType.DATA_ELEMENT_OPERAND

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            ReferenceType.from_key("X")

    def test_dimensional(self):
        assert ReferenceType.REPORTING_RATE.is_dimensional
        assert not ReferenceType.CONSTANT.is_dimensional
        assert not ReferenceType.DAYS.is_dimensional


class TestCheckParts:
    """Tests for check_parts."""

    @pytest.mark.parametrize("reference_type,parts", [
        (ReferenceType.DATA_ELEMENT_OPERAND, ("de",)),
        (ReferenceType.DATA_ELEMENT_OPERAND, ("de", "coc")),
        (ReferenceType.DATA_ELEMENT_OPERAND, ("de", "*", "aoc")),
        (ReferenceType.PROGRAM_DATA_ELEMENT, ("pr", "de")),
        (ReferenceType.REPORTING_RATE, ("ds", "ACTUAL_REPORTS")),
        (ReferenceType.CONSTANT, ("c",)),
        (ReferenceType.DAYS, ()),
    ])
    def test_well_formed(self, reference_type, parts):
        assert check_parts(reference_type, parts) is None

    @pytest.mark.parametrize("reference_type,parts", [
        (ReferenceType.DATA_ELEMENT_OPERAND, ("*",)),
        (ReferenceType.PROGRAM_DATA_ELEMENT, ("pr",)),
        (ReferenceType.PROGRAM_INDICATOR, ("pi", "x")),
        (ReferenceType.REPORTING_RATE, ("ds", "UNKNOWN_METRIC")),
        (ReferenceType.CONSTANT, ("c", "*")),
        (ReferenceType.AGGREGATE, ("x",)),
    ])
    def test_malformed(self, reference_type, parts):
        assert check_parts(reference_type, parts)


class TestDimensionalItemId:
    """Tests for to_item_id and DimensionalItemId."""

    def test_data_element(self):
        item_id = to_item_id(ReferenceType.DATA_ELEMENT_OPERAND, ("de",))
        assert item_id == DimensionalItemId(DimensionItemType.DATA_ELEMENT, "de")

    def test_operand(self):
        item_id = to_item_id(ReferenceType.DATA_ELEMENT_OPERAND, ("de", "coc"))
        assert item_id.item_type is DimensionItemType.DATA_ELEMENT_OPERAND
        assert item_id.dimension_item == "de.coc"

    def test_program_indicator(self):
        item_id = to_item_id(ReferenceType.PROGRAM_INDICATOR, ("pi",))
        assert item_id == DimensionalItemId(DimensionItemType.PROGRAM_INDICATOR, "pi")

    def test_not_dimensional(self):
        assert to_item_id(ReferenceType.CONSTANT, ("c",)) is None

    def test_malformed(self):
        assert to_item_id(ReferenceType.PROGRAM_DATA_ELEMENT, ("pr",)) is None


class TestDimensionalItems:
    """Tests for composite dimensional items."""

    def test_operand(self, data_element, option_combo):
        operand = DataElementOperand(data_element, option_combo)

        assert operand.dimension_item == "deA.cocA"
        assert operand.display_name == "Malaria cases Under 5"
        assert operand.item_type is DimensionItemType.DATA_ELEMENT_OPERAND

    def test_operand_with_attribute_combo_only(self, data_element):
        operand = DataElementOperand(data_element, None, FakeObject("aocA", "Partner A"))
        assert operand.dimension_item == "deA.*.aocA"

    def test_operand_without_combos(self, data_element):
        operand = DataElementOperand(data_element)

        assert operand.dimension_item == "deA"
        assert operand.item_type is DimensionItemType.DATA_ELEMENT

    def test_operands_are_hashable(self, data_element, option_combo):
        operands = {DataElementOperand(data_element, option_combo), DataElementOperand(data_element, option_combo)}
        assert len(operands) == 1

    def test_missing_members(self):
        operand = DataElementOperand(None, None)
        assert operand.dimension_item == ""
        assert operand.display_name == ""

    def test_program_data_element(self, data_element):
        item = ProgramDataElementDimensionItem(FakeObject("prA", "ANC"), data_element)

        assert item.dimension_item == "prA.deA"
        assert item.display_name == "ANC Malaria cases"

    def test_reporting_rate(self):
        rate = ReportingRate(FakeObject("dsA", "Facility reports"), ReportingRateMetric.ACTUAL_REPORTS)

        assert rate.dimension_item == "dsA.ACTUAL_REPORTS"
        assert rate.display_name == "Facility reports Actual reports"


class TestItemResolver:
    """Tests for ItemResolver."""

    @pytest.fixture
    def resolver(self, lookups) -> ItemResolver:
        return ItemResolver(lookups)

    def test_resolved_constant(self, resolver):
        outcome = resolver.resolve(ReferenceType.CONSTANT, ("constA",))

        assert outcome.is_resolved
        assert outcome.obj.value == 5.0

    def test_unresolved_constant(self, resolver):
        outcome = resolver.resolve(ReferenceType.CONSTANT, ("nope",))

        assert outcome.is_unresolved
        assert "nope" in outcome.message

    def test_resolved_operand(self, resolver):
        outcome = resolver.resolve(ReferenceType.DATA_ELEMENT_OPERAND, ("deA", "cocA"))
        assert outcome.obj.display_name == "Malaria cases Under 5"

    def test_unresolved_item(self, resolver):
        assert resolver.resolve(ReferenceType.PROGRAM_INDICATOR, ("piB",)).is_unresolved

    def test_invalid(self, resolver):
        assert resolver.resolve(ReferenceType.PROGRAM_DATA_ELEMENT, ("prA",)).is_invalid

    def test_org_unit_group(self, resolver):
        outcome = resolver.resolve(ReferenceType.ORG_UNIT_GROUP, ("groupA",))
        assert outcome.obj.member_count == 4

    def test_days(self, resolver):
        outcome = resolver.resolve(ReferenceType.DAYS, ())
        assert outcome.obj.display_name == DAYS_DESCRIPTION
