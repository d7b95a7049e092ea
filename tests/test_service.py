"""
Unit tests for ExpressionService backed by in-memory lookups.
"""
import logging
from types import SimpleNamespace

import pytest

from catalog.dimensional import DataElementOperand
from expressions.enums import ExpressionValidationOutcome as Outcome
from expressions.enums import MissingValueStrategy
from expressions.exceptions import InvalidIdentifierReferenceError, MalformedReferenceError
from expressions.items import DimensionItemType, DimensionalItemId
from indicators.utils import Period


def make_indicator(numerator, denominator, factor=1, annualized=False):
    return SimpleNamespace(
        numerator=numerator,
        denominator=denominator,
        indicator_type=SimpleNamespace(factor=factor),
        annualized=annualized,
        exploded_numerator=None,
        exploded_denominator=None,
    )


class TestGetExpressionValue:
    """Tests for evaluating expressions."""

    def test_value_with_constant(self, service):
        value = service.get_expression_value(
            "#{deA.cocA} + C{constA}",
            value_map={"deA.cocA": 10},
            constant_map={"constA": 5},
            missing_value_strategy=MissingValueStrategy.NEVER_SKIP,
        )
        assert value == 15.0

    def test_skip_if_any_value_missing(self, service):
        value = service.get_expression_value(
            "#{deA.cocA} + C{constA}",
            value_map={},
            constant_map={"constA": 5},
            missing_value_strategy=MissingValueStrategy.SKIP_IF_ANY_VALUE_MISSING,
        )
        assert value is None

    def test_skip_if_all_values_missing(self, service):
        strategy = MissingValueStrategy.SKIP_IF_ALL_VALUES_MISSING

        assert service.get_expression_value("#{deA} + #{deB}", {"deA": 2}, missing_value_strategy=strategy) == 2.0
        assert service.get_expression_value("#{deA} + #{deB}", {}, missing_value_strategy=strategy) is None

    def test_never_skip_all_missing(self, service):
        assert service.get_expression_value("#{deA} * 3", {}) == 0.0

    def test_value_map_keyed_by_items(self, service, data_element, option_combo):
        value_map = {DataElementOperand(data_element, option_combo): 4}
        assert service.get_expression_value("#{deA.cocA} * 2", value_map) == 8.0

    def test_days(self, service):
        assert service.get_expression_value("#{deA} / [days]", {"deA": 62}, days=31) == 2.0

    def test_is_null(self, service):
        formula = "IF(isNull(#{deA.cocA}), -1, #{deA.cocA} * 2)"

        assert service.get_expression_value(formula, {}) == -1.0
        assert service.get_expression_value(formula, {"deA.cocA": 4}) == 8.0

    def test_aggregate(self, service):
        value = service.get_expression_value("avg(#{deA}) * 2", {}, aggregate_map={"#{deA}": [1, 2, 3]})
        assert value == 4.0

    def test_aggregate_missing_samples(self, service):
        assert service.get_expression_value(
            "SUM(#{deA})", {}, aggregate_map={},
            missing_value_strategy=MissingValueStrategy.SKIP_IF_ANY_VALUE_MISSING,
        ) is None

    def test_malformed_aggregate_is_logged(self, service, caplog):
        """Test an unclosed aggregate is reported at its argument offset."""
        with caplog.at_level(logging.WARNING, logger="expressions"):
            value = service.get_expression_value("AVG(#{deA} + 1", {}, aggregate_map={})

        assert value == 0.0
        assert "Bad expression starting at 4 in AVG(#{deA} + 1" in caplog.text

    def test_malformed_aggregate_strict(self, service):
        with pytest.raises(MalformedReferenceError):
            service.get_expression_value("AVG(#{deA} + 1", {}, aggregate_map={}, strict=True)

    def test_negative_value_is_raised_as_a_whole(self, service):
        assert service.get_expression_value("#{deA}^2", {"deA": -3.0}) == 9.0

    def test_negative_constant_is_raised_as_a_whole(self, service):
        assert service.get_expression_value("C{constA}^2", {}, {"constA": -2.0}) == 4.0

    def test_division_by_zero(self, service):
        """Test a non-finite result counts as no value, which never-skip turns into zero."""
        assert service.get_expression_value("#{deA} / #{deB}", {"deA": 1, "deB": 0}) == 0.0

    def test_none_expression(self, service):
        assert service.get_expression_value(None, {}) is None

    def test_generate_expression(self, service):
        text = service.generate_expression("#{deA} + C{constA}", {"deA": 1}, constant_map={"constA": 2})
        assert text == "1.0 + 2.0"

    def test_stored_expression_strategy(self, service):
        expression = SimpleNamespace(
            expression="#{deA} + #{deB}",
            missing_value_strategy=MissingValueStrategy.SKIP_IF_ANY_VALUE_MISSING,
        )
        assert service.get_expression_value_for(expression, {"deA": 1}) is None


class TestDescriptions:
    """Tests for describing expressions."""

    def test_description(self, service):
        description = service.get_expression_description("(#{deA.cocA} + I{piA}) / OUG{groupA}")
        assert description == "(Malaria cases Under 5 + ANC visits) / District hospitals"

    def test_reporting_rate(self, service):
        assert service.get_expression_description("R{dsA.REPORTING_RATE}") == "Facility reports Reporting rate"

    def test_unknown_reference(self, service):
        with pytest.raises(InvalidIdentifierReferenceError):
            service.get_expression_description("#{deA} + #{missing}")

    def test_empty(self, service):
        assert service.get_expression_description("") == ""
        assert service.get_indicator_expression_description(None) == ""


class TestValidation:
    """Tests for validating expressions."""

    @pytest.mark.parametrize("formula,outcome", [
        ("#{deA.cocA} + C{constA} * OUG{groupA} / [days]", Outcome.VALID),
        ("", Outcome.EXPRESSION_IS_EMPTY),
        (None, Outcome.EXPRESSION_IS_EMPTY),
        ("#{missing}", Outcome.DIMENSIONAL_ITEM_OBJECT_DOES_NOT_EXIST),
        ("#{deA.nope}", Outcome.DIMENSIONAL_ITEM_OBJECT_DOES_NOT_EXIST),
        ("C{nope}", Outcome.CONSTANT_DOES_NOT_EXIST),
        ("OUG{nope}", Outcome.ORG_UNIT_GROUP_DOES_NOT_EXIST),
        ("#{deA.cocA} +", Outcome.EXPRESSION_IS_NOT_WELL_FORMED),
        ("R{dsA.UNKNOWN_METRIC}", Outcome.EXPRESSION_IS_NOT_WELL_FORMED),
        ("AVG(#{deA})", Outcome.EXPRESSION_IS_NOT_WELL_FORMED),
        ("#{deA} / 0", Outcome.VALID),
    ])
    def test_validation_rule(self, service, formula, outcome):
        assert service.validation_rule_expression_is_valid(formula) is outcome

    def test_predictor_allows_aggregates(self, service):
        assert service.predictor_expression_is_valid("AVG(#{deA}) + stddev(#{deB})") is Outcome.VALID

    def test_indicator(self, service):
        assert service.indicator_expression_is_valid("#{deA.cocA} * 100") is Outcome.VALID
        assert service.indicator_expression_is_valid("#{missing}") is Outcome.EXPRESSION_IS_NOT_WELL_FORMED
        assert service.indicator_expression_is_valid("#{deA} *") is Outcome.EXPRESSION_IS_NOT_WELL_FORMED

    def test_outcome_description(self):
        assert Outcome.CONSTANT_DOES_NOT_EXIST.description == "Constant does not exist"
        assert Outcome.VALID.is_valid
        assert not Outcome.EXPRESSION_IS_EMPTY.is_valid


class TestExtraction:
    """Tests for extracting referenced identifiers and objects."""

    FORMULA = "#{deA.cocA} + #{deB} + I{piA} + C{constA} * OUG{groupA} + #{missing}"

    def test_dimensional_item_ids(self, service):
        assert service.get_expression_dimensional_item_ids(self.FORMULA) == {
            DimensionalItemId(DimensionItemType.DATA_ELEMENT_OPERAND, "deA", "cocA"),
            DimensionalItemId(DimensionItemType.DATA_ELEMENT, "deB"),
            DimensionalItemId(DimensionItemType.PROGRAM_INDICATOR, "piA"),
            DimensionalItemId(DimensionItemType.DATA_ELEMENT, "missing"),
        }

    def test_dimensional_item_objects(self, service, lookups):
        names = {item.display_name for item in service.get_expression_dimensional_item_objects(self.FORMULA)}
        assert names == {"Malaria cases Under 5", "Population", "ANC visits"}

    def test_org_unit_groups(self, service):
        groups = service.get_expression_org_unit_groups("OUG{groupA} + OUG{nope}")
        assert {g.uid for g in groups} == {"groupA"}
        assert service.get_organisation_unit_groups_in_expression(None) == set()

    def test_data_elements(self, service):
        elements = service.get_data_elements_in_expression(self.FORMULA)
        assert {e.uid for e in elements} == {"deA", "deB"}

    def test_option_combos(self, service):
        combos = service.get_option_combos_in_expression("#{deA.cocA} + #{deB.*} + #{deA.nope}")
        assert {c.uid for c in combos} == {"cocA"}

    def test_operands(self, service, data_element, option_combo):
        operands = service.get_operands_in_expression("#{deA.cocA} + #{deA} + #{deA.cocA}")
        assert operands == {DataElementOperand(data_element, option_combo), DataElementOperand(data_element, None)}

    def test_elements_and_option_combos(self, service):
        keys = service.get_elements_and_option_combos_in_expression("#{deA.cocA} + #{deB.*.aocA} + C{constA}")
        assert keys == {"deA.cocA", "deB"}

    def test_aggregates_and_non_aggregates(self, service):
        aggregates, non_aggregates = service.get_aggregates_and_non_aggregates_in_expression(
            "1 + SUM(#{deA}) * avg(#{deB} + 1) - 2"
        )

        assert aggregates == {"#{deA}", "#{deB} + 1"}
        assert non_aggregates == {"1 + ", " * ", " - 2"}

    def test_aggregates_of_empty_expression(self, service):
        assert service.get_aggregates_and_non_aggregates_in_expression(None) == (set(), set())

    def test_indicator_items(self, service):
        indicators = [make_indicator("#{deA}", "#{deB}"), make_indicator("I{piA}", "OUG{groupA}")]

        items = service.get_indicator_dimensional_item_objects(indicators)
        groups = service.get_indicator_org_unit_groups(indicators)

        assert {i.display_name for i in items} == {"Malaria cases", "Population", "ANC visits"}
        assert {g.uid for g in groups} == {"groupA"}

    def test_indicator_items_of_none(self, service):
        assert service.get_indicator_dimensional_item_objects(None) == set()
        assert service.get_indicator_org_unit_groups(None) == set()


class TestIndicators:
    """Tests for indicator values and batch substitution."""

    def test_value(self, service):
        indicator = make_indicator("#{deA}", "#{deB}", factor=100)

        value = service.get_indicator_value_object(indicator, value_map={"deA": 25, "deB": 50})

        assert value.numerator_value == 25.0
        assert value.denominator_value == 50.0
        assert value.multiplier == 100
        assert value.divisor == 1
        assert value.value == 50.0

    def test_annualized(self, service):
        indicator = make_indicator("#{deA}", "#{deB}", factor=100, annualized=True)
        periods = [Period("2024-01-01", "2024-01-31")]

        value = service.get_indicator_value_object(indicator, periods, value_map={"deA": 31, "deB": 365})

        assert value.multiplier == 36500
        assert value.divisor == 31
        assert value.value == pytest.approx(100.0)

    def test_days_in_expression(self, service):
        indicator = make_indicator("#{deA} / [days]", "1")
        periods = [Period("2024-01-01", "2024-01-10"), Period("2024-02-01", "2024-02-10")]

        value = service.get_indicator_value_object(indicator, periods, value_map={"deA": 40})

        assert value.numerator_value == 2.0

    def test_zero_denominator(self, service):
        indicator = make_indicator("#{deA}", "#{deB}")
        assert service.get_indicator_value_object(indicator, value_map={"deA": 1, "deB": 0}) is None

    def test_missing_expression(self, service):
        assert service.get_indicator_value_object(make_indicator(None, "1")) is None
        assert service.get_indicator_value_object(None) is None

    def test_substitute_expressions(self, service):
        indicators = [
            make_indicator("#{deA} * C{constA}", "OUG{groupA} * [days]"),
            make_indicator("C{nope}", None),
        ]

        service.substitute_expressions(indicators, days=30)

        assert indicators[0].exploded_numerator == "#{deA} * 5.0"
        assert indicators[0].exploded_denominator == "4 * 30"
        assert indicators[1].exploded_numerator == "0"
        assert indicators[1].exploded_denominator is None

    def test_substitute_expression(self, service):
        indicator = make_indicator("C{constA}", "1")
        service.substitute_expression(indicator)
        assert indicator.exploded_numerator == "5.0"
