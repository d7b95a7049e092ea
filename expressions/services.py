"""
Expression service: evaluation, description, validation and reference
extraction for indicator, validation rule and predictor expressions.
"""
import logging
from typing import Collection, List, Mapping, Optional, Set, Tuple

from catalog.dimensional import DataElementOperand
from catalog.lookups import ModelLookupService
from indicators.utils import DAYS_IN_YEAR, IndicatorValue, get_days_from_periods

from .enums import ExpressionValidationOutcome, MissingValueStrategy
from .exceptions import ExpressionError
from .items import DimensionalItemId, ItemResolver, ReferenceType, WILDCARD, check_parts
from .lookups import LookupCache, LookupService
from .matcher import AGGREGATE_PATTERN, iter_function_calls, iter_references
from .missing_values import apply_missing_value_strategy
from .models import Expression
from .substitution import (
    SubstitutionContext, SubstitutionMode, explode_expression, substitute,
)
from .utils import calculate_expression

logger = logging.getLogger(__name__)


class ExpressionService:
    """
    Entry point for everything the engine does with expression strings.

    Every call is independent: counters, buffers and resolution caches live
    only for the duration of the call, so one instance can be shared.
    """

    def __init__(self, lookups: Optional[LookupService] = None):
        self.lookups = lookups or ModelLookupService()
        self.resolver = ItemResolver(self.lookups)

    # -------------------------------------------------------------------------
    # Expression CRUD operations
    # -------------------------------------------------------------------------

    def add_expression(self, expression: Expression) -> int:
        expression.save()
        return expression.id

    def update_expression(self, expression: Expression) -> None:
        expression.save()

    def delete_expression(self, expression: Expression) -> None:
        expression.delete()

    def get_expression(self, expression_id: int) -> Optional[Expression]:
        try:
            return Expression.objects.get(pk=expression_id)
        except Expression.DoesNotExist:
            return None

    def get_all_expressions(self) -> List[Expression]:
        return list(Expression.objects.all())

    # -------------------------------------------------------------------------
    # Indicator expression logic
    # -------------------------------------------------------------------------

    def get_indicator_dimensional_item_objects(self, indicators) -> Set:
        item_ids = set()
        for indicator in indicators or []:
            item_ids |= self.get_expression_dimensional_item_ids(indicator.numerator)
            item_ids |= self.get_expression_dimensional_item_ids(indicator.denominator)

        return self.lookups.get_dimensional_items(item_ids)

    def get_indicator_org_unit_groups(self, indicators) -> Set:
        groups = set()
        for indicator in indicators or []:
            groups |= self.get_expression_org_unit_groups(indicator.numerator)
            groups |= self.get_expression_org_unit_groups(indicator.denominator)

        return groups

    def get_indicator_value_object(
        self,
        indicator,
        periods=None,
        value_map: Optional[Mapping] = None,
        constant_map: Optional[Mapping[str, float]] = None,
        org_unit_count_map: Optional[Mapping[str, int]] = None,
    ) -> Optional[IndicatorValue]:
        """
        Evaluate numerator and denominator of an indicator.

        Args:
            indicator: Indicator with numerator, denominator, indicator_type and annualized
            periods: Periods the values cover; used for [days] and annualization
            value_map: Values keyed by dimensional item
            constant_map: Constant values keyed by uid
            org_unit_count_map: Organisation unit group member counts keyed by uid

        Returns:
            IndicatorValue, or None if a value is missing or the denominator is zero
        """
        if indicator is None or indicator.numerator is None or indicator.denominator is None:
            return None

        days = get_days_from_periods(periods) if periods is not None else None

        denominator_value = self.get_expression_value(
            indicator.denominator, value_map, constant_map, org_unit_count_map, days,
            MissingValueStrategy.NEVER_SKIP,
        )
        numerator_value = self.get_expression_value(
            indicator.numerator, value_map, constant_map, org_unit_count_map, days,
            MissingValueStrategy.NEVER_SKIP,
        )

        if denominator_value is None or denominator_value == 0 or numerator_value is None:
            return None

        multiplier = indicator.indicator_type.factor
        divisor = 1

        if indicator.annualized and periods is not None:
            multiplier *= DAYS_IN_YEAR
            divisor = days

        return IndicatorValue(
            numerator_value=numerator_value,
            denominator_value=denominator_value,
            multiplier=multiplier,
            divisor=divisor,
        )

    def indicator_expression_is_valid(self, expression: Optional[str]) -> ExpressionValidationOutcome:
        try:
            self.get_indicator_expression_description(expression)
        except ExpressionError:
            return ExpressionValidationOutcome.EXPRESSION_IS_NOT_WELL_FORMED

        return self._validate(expression, allow_aggregates=False)

    def get_indicator_expression_description(self, expression: Optional[str]) -> str:
        """Describe an expression, raising for references that cannot be resolved."""
        if expression is None:
            return ""

        return self.get_expression_description(expression)

    # -------------------------------------------------------------------------
    # Expression logic
    # -------------------------------------------------------------------------

    def get_expression_dimensional_item_objects(self, expression: Optional[str]) -> Set:
        return self.lookups.get_dimensional_items(self.get_expression_dimensional_item_ids(expression))

    def get_expression_dimensional_item_ids(self, expression: Optional[str]) -> Set[DimensionalItemId]:
        return substitute(expression, SubstitutionMode.EXTRACT_IDS).item_ids

    def get_expression_org_unit_groups(self, expression: Optional[str]) -> Set:
        group_ids = substitute(expression, SubstitutionMode.EXTRACT_IDS).org_unit_group_ids
        groups = (self.lookups.get_organisation_unit_group(uid) for uid in group_ids)
        return {group for group in groups if group is not None}

    def generate_expression(
        self,
        expression: Optional[str],
        value_map: Optional[Mapping] = None,
        constant_map: Optional[Mapping[str, float]] = None,
        org_unit_count_map: Optional[Mapping[str, int]] = None,
        days: Optional[int] = None,
        missing_value_strategy: Optional[MissingValueStrategy] = None,
        aggregate_map: Optional[Mapping[str, List[float]]] = None,
    ) -> Optional[str]:
        """Return the expression with every reference replaced by a number, or None if skipped."""
        context = SubstitutionContext(
            value_map=value_map or {},
            constant_map=constant_map,
            org_unit_count_map=org_unit_count_map,
            days=days,
            missing_value_strategy=missing_value_strategy,
            aggregate_map=aggregate_map,
        )
        return substitute(expression, SubstitutionMode.EVALUATE, context).text

    def get_expression_value(
        self,
        expression: Optional[str],
        value_map: Optional[Mapping] = None,
        constant_map: Optional[Mapping[str, float]] = None,
        org_unit_count_map: Optional[Mapping[str, int]] = None,
        days: Optional[int] = None,
        missing_value_strategy: Optional[MissingValueStrategy] = None,
        aggregate_map: Optional[Mapping[str, List[float]]] = None,
        strict: bool = False,
    ) -> Optional[float]:
        """
        Evaluate an expression.

        Args:
            expression: The expression text
            value_map: Values keyed by dimensional item, identifier or key string
            constant_map: Constant values keyed by uid
            org_unit_count_map: Organisation unit group member counts keyed by uid
            days: Value of [days]
            missing_value_strategy: How missing values affect the result; defaults to NEVER_SKIP
            aggregate_map: Samples keyed by aggregate function argument
            strict: Raise ParseError and MalformedReferenceError instead of logging them

        Returns:
            The value, or None if the expression is None or skipped for missing values
        """
        if expression is None:
            return None

        context = SubstitutionContext(
            value_map=value_map or {},
            constant_map=constant_map,
            org_unit_count_map=org_unit_count_map,
            days=days,
            missing_value_strategy=missing_value_strategy,
            aggregate_map=aggregate_map,
            strict=strict,
        )
        result = substitute(expression, SubstitutionMode.EVALUATE, context)

        if result.skipped:
            logger.debug(f"Skipping expression for missing values: {expression}")
            return None

        value = calculate_expression(result.text, strict=strict) if result.text else None

        return apply_missing_value_strategy(
            missing_value_strategy, result.items_found, result.item_values_found, value,
        )

    def get_expression_value_for(
        self,
        expression: Expression,
        value_map: Optional[Mapping] = None,
        constant_map: Optional[Mapping[str, float]] = None,
        org_unit_count_map: Optional[Mapping[str, int]] = None,
        days: Optional[int] = None,
        aggregate_map: Optional[Mapping[str, List[float]]] = None,
    ) -> Optional[float]:
        """Evaluate a stored expression with its own missing value strategy."""
        return self.get_expression_value(
            expression.expression, value_map, constant_map, org_unit_count_map, days,
            expression.missing_value_strategy, aggregate_map,
        )

    def get_data_elements_in_expression(self, expression: Optional[str]) -> Set:
        elements = set()
        for reference in self._operand_references(expression):
            data_element = self.lookups.get_data_element(reference.parts[0])
            if data_element is not None:
                elements.add(data_element)
        return elements

    def get_option_combos_in_expression(self, expression: Optional[str]) -> Set:
        combos = set()
        for reference in self._operand_references(expression):
            if len(reference.parts) < 2 or reference.parts[1] == WILDCARD:
                continue
            combo = self.lookups.get_category_option_combo(reference.parts[1])
            if combo is not None:
                combos.add(combo)
        return combos

    def get_organisation_unit_groups_in_expression(self, expression: Optional[str]) -> Set:
        return self.get_expression_org_unit_groups(expression)

    def get_operands_in_expression(self, expression: Optional[str]) -> Set[DataElementOperand]:
        """
        Operands for every ``#{..}`` reference. The data element or option
        combo is None when it does not exist.
        """
        operands = set()
        for reference in self._operand_references(expression):
            data_element = self.lookups.get_data_element(reference.parts[0])
            combo_uid = reference.parts[1] if len(reference.parts) > 1 else None
            option_combo = None
            if combo_uid and combo_uid != WILDCARD:
                option_combo = self.lookups.get_category_option_combo(combo_uid)
            operands.add(DataElementOperand(data_element, option_combo))
        return operands

    def get_elements_and_option_combos_in_expression(self, expression: Optional[str]) -> Set[str]:
        """Data element and option combo uids of each ``#{..}`` reference, e.g. ``deUid.cocUid``."""
        keys = set()
        for reference in self._operand_references(expression):
            parts = [p for p in reference.parts[:2] if p != WILDCARD]
            keys.add(".".join(parts))
        return keys

    def get_aggregates_and_non_aggregates_in_expression(self, expression: Optional[str]) -> Tuple[Set[str], Set[str]]:
        """
        Split an expression into the arguments of its aggregate functions and
        the text around them.

        Returns:
            Tuple of (aggregates, non_aggregates)
        """
        aggregates = set()
        non_aggregates = set()

        if not expression:
            return aggregates, non_aggregates

        scan = 0
        for call in iter_function_calls(expression, AGGREGATE_PATTERN):
            if call.malformed:
                continue
            non_aggregates.add(expression[scan:call.start])
            aggregates.add(call.argument(expression))
            scan = call.end + 1

        if scan < len(expression):
            non_aggregates.add(expression[scan:])

        return aggregates, non_aggregates

    def predictor_expression_is_valid(self, expression: Optional[str]) -> ExpressionValidationOutcome:
        return self._validate(expression, allow_aggregates=True)

    def validation_rule_expression_is_valid(self, expression: Optional[str]) -> ExpressionValidationOutcome:
        return self._validate(expression, allow_aggregates=False)

    def get_expression_description(self, expression: Optional[str]) -> Optional[str]:
        """
        Replace each reference with the display name of what it references.

        Raises:
            InvalidIdentifierReferenceError: A reference cannot be resolved
        """
        if not expression:
            return expression

        context = SubstitutionContext(resolver=self.resolver, strict=True)
        return substitute(expression, SubstitutionMode.DESCRIBE, context).text

    def substitute_expressions(self, indicators: Collection, days: Optional[int] = None,
                               cache: Optional[LookupCache] = None) -> None:
        """
        Set the exploded numerator and denominator of each indicator:
        constants, organisation unit groups and [days] replaced by numbers.
        Constants and groups are loaded once for the whole batch unless a
        cache is passed in.
        """
        if not indicators:
            return

        cache = cache or LookupCache.load(self.lookups)

        for indicator in indicators:
            indicator.exploded_numerator = explode_expression(indicator.numerator, cache, days)
            indicator.exploded_denominator = explode_expression(indicator.denominator, cache, days)

    def substitute_expression(self, indicator, days: Optional[int] = None,
                              cache: Optional[LookupCache] = None) -> None:
        self.substitute_expressions([indicator], days, cache)

    # -------------------------------------------------------------------------
    # Supportive methods
    # -------------------------------------------------------------------------

    def _validate(self, expression: Optional[str], allow_aggregates: bool) -> ExpressionValidationOutcome:
        context = SubstitutionContext(resolver=self.resolver, allow_aggregates=allow_aggregates)
        return substitute(expression, SubstitutionMode.VALIDATE, context).outcome

    def _operand_references(self, expression: Optional[str]):
        """Well-formed ``#{..}`` references in source order."""
        return [
            reference for reference in iter_references(expression)
            if reference.reference_type is ReferenceType.DATA_ELEMENT_OPERAND
            and not check_parts(reference.reference_type, reference.parts)
        ]
