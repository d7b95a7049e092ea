"""
Rewrites expressions by replacing each reference with a value, a name or a
placeholder, depending on what the caller needs:

- EVALUATE replaces references with numbers so the result can be calculated
- DESCRIBE replaces references with display names
- VALIDATE replaces references with a placeholder after checking they exist,
  then checks the remaining arithmetic
- EXTRACT_IDS only collects the identifiers that are referenced

Every pass builds its output from the match records of a fresh scan, so no
state is shared between calls.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Set

from .enums import ExpressionValidationOutcome, MissingValueStrategy
from .exceptions import ExpressionError, InvalidIdentifierReferenceError
from .items import DimensionalItemId, ItemResolver, ReferenceOutcome, ReferenceType, check_parts, to_item_id
from .lookups import LookupCache
from .matcher import (
    AGGREGATE_PATTERN, IS_NULL_PATTERN, REFERENCE_PATTERN,
    iter_function_calls, iter_references, normalize_function_case,
)
from .missing_values import resolve_strategy
from .utils import expression_has_errors, format_number

logger = logging.getLogger(__name__)

# Substituted for references without a value
NULL_REPLACEMENT = "0"

# Substituted for existing references when checking well-formedness
VALIDATION_PLACEHOLDER = "1.1"

TRUE_VALUE = "true"
FALSE_VALUE = "false"

# Existence checks run in this order, each over the whole expression
_VALIDATION_CHECKS = (
    (lambda reference: reference.is_dimensional,
     ExpressionValidationOutcome.DIMENSIONAL_ITEM_OBJECT_DOES_NOT_EXIST),
    (lambda reference: reference.reference_type is ReferenceType.CONSTANT,
     ExpressionValidationOutcome.CONSTANT_DOES_NOT_EXIST),
    (lambda reference: reference.reference_type is ReferenceType.ORG_UNIT_GROUP,
     ExpressionValidationOutcome.ORG_UNIT_GROUP_DOES_NOT_EXIST),
)


class SubstitutionMode(Enum):
    EVALUATE = "evaluate"
    DESCRIBE = "describe"
    VALIDATE = "validate"
    EXTRACT_IDS = "extract_ids"


@dataclass
class SubstitutionContext:
    """Inputs to a single substitution call."""

    value_map: Mapping = field(default_factory=dict)
    constant_map: Optional[Mapping[str, float]] = None
    org_unit_count_map: Optional[Mapping[str, int]] = None
    days: Optional[int] = None
    missing_value_strategy: Optional[MissingValueStrategy] = None
    aggregate_map: Optional[Mapping[str, List[float]]] = None
    resolver: Optional[ItemResolver] = None
    allow_aggregates: bool = False
    strict: bool = False


@dataclass
class SubstitutionResult:
    """
    Output of a substitution call. ``text`` is None when an evaluation was
    skipped because of missing values.
    """

    text: Optional[str] = None
    items_found: int = 0
    item_values_found: int = 0
    skipped: bool = False
    outcome: Optional[ExpressionValidationOutcome] = None
    item_ids: Set[DimensionalItemId] = field(default_factory=set)
    constant_ids: Set[str] = field(default_factory=set)
    org_unit_group_ids: Set[str] = field(default_factory=set)


def normalize_value_map(value_map: Optional[Mapping]) -> Dict[str, float]:
    """
    Key a value map by dimension item string. Keys may be strings or any
    object with a ``dimension_item`` attribute; None values are dropped.
    """
    normalized = {}
    for key, value in (value_map or {}).items():
        if value is None:
            continue
        normalized[key if isinstance(key, str) else key.dimension_item] = value
    return normalized


def _number_or_null(values: Optional[Mapping], key: str) -> str:
    value = values.get(key) if values is not None else None
    return format_number(value) if value is not None else NULL_REPLACEMENT


def _format_samples(samples) -> str:
    return "[" + ", ".join(format_number(s) for s in samples if s is not None) + "]"


def _resolve(resolver: ItemResolver, reference, cache: Dict) -> ReferenceOutcome:
    key = (reference.reference_type, reference.parts)
    if key not in cache:
        cache[key] = resolver.resolve(reference.reference_type, reference.parts)
    return cache[key]


def substitute_aggregates(expression: str, aggregate_map: Optional[Mapping[str, List[float]]],
                          strategy: MissingValueStrategy, strict: bool = False) -> Optional[str]:
    """
    Replace the argument of each aggregate function with its samples from
    ``aggregate_map``, upper-casing the function name. Without a map the
    arguments are left as they are, as are arguments starting with ``<``.
    Returns None when samples are missing and the strategy skips on any
    missing value.
    """
    pieces = []
    tail = 0

    for call in iter_function_calls(expression, AGGREGATE_PATTERN, strict):
        pieces.append(expression[tail:call.start])
        pieces.append(expression[call.start:call.arg_start].upper())

        if call.malformed:
            tail = call.arg_start
            continue

        sub_expression = call.argument(expression)

        if aggregate_map is None or sub_expression.startswith("<"):
            pieces.append(sub_expression)
        else:
            samples = aggregate_map.get(sub_expression)

            if samples is None:
                if strategy == MissingValueStrategy.SKIP_IF_ANY_VALUE_MISSING:
                    return None
                pieces.append("[]")
            else:
                pieces.append(_format_samples(samples))

        tail = call.end

    pieces.append(expression[tail:])
    return "".join(pieces)


def substitute_is_null(expression: str, value_map: Mapping[str, float], strict: bool = False) -> str:
    """
    Replace ``isNull(ref)`` calls with ``true`` or ``false``. Other
    occurrences of a null argument are replaced with zero, so the expression
    is not disqualified merely because the argument appears there too.
    """
    pieces = []
    tail = 0
    null_args = []

    for call in iter_function_calls(expression, IS_NULL_PATTERN, strict):
        if call.malformed:
            continue

        arg = call.argument(expression)
        reference = next((r for r in iter_references(arg) if r.is_dimensional), None)

        if reference is None:
            continue

        pieces.append(expression[tail:call.start])

        if reference.key in value_map:
            pieces.append(FALSE_VALUE)
        else:
            pieces.append(TRUE_VALUE)
            null_args.append(arg.strip())

        tail = call.end + 1

    pieces.append(expression[tail:])
    expression = "".join(pieces)

    for arg in null_args:
        expression = expression.replace(arg, NULL_REPLACEMENT)

    return expression


def _evaluate(formula: str, context: SubstitutionContext) -> SubstitutionResult:
    strategy = resolve_strategy(context.missing_value_strategy)
    value_map = normalize_value_map(context.value_map)

    expression = substitute_aggregates(formula, context.aggregate_map, strategy, context.strict)

    if expression is None:
        logger.debug(f"Aggregate samples missing, skipping expression: {formula}")
        return SubstitutionResult(skipped=True)

    expression = substitute_is_null(expression, value_map, context.strict)
    expression = normalize_function_case(expression)

    pieces = []
    tail = 0
    items_found = 0
    item_values_found = 0

    for reference in iter_references(expression):
        pieces.append(expression[tail:reference.start])
        tail = reference.end

        if reference.is_dimensional:
            items_found += 1
            value = value_map.get(reference.key)

            if value is None:
                if strategy == MissingValueStrategy.SKIP_IF_ANY_VALUE_MISSING:
                    return SubstitutionResult(items_found=items_found, item_values_found=item_values_found,
                                              skipped=True)
                pieces.append(NULL_REPLACEMENT)
            else:
                item_values_found += 1
                pieces.append(format_number(value))

        elif reference.reference_type is ReferenceType.CONSTANT:
            pieces.append(_number_or_null(context.constant_map, reference.key))

        elif reference.reference_type is ReferenceType.ORG_UNIT_GROUP:
            pieces.append(_number_or_null(context.org_unit_count_map, reference.key))

        elif reference.reference_type is ReferenceType.DAYS:
            pieces.append(format_number(context.days) if context.days is not None else NULL_REPLACEMENT)

    pieces.append(expression[tail:])

    if (strategy == MissingValueStrategy.SKIP_IF_ALL_VALUES_MISSING
            and items_found > 0 and item_values_found == 0):
        return SubstitutionResult(items_found=items_found, item_values_found=item_values_found, skipped=True)

    return SubstitutionResult(
        text="".join(pieces),
        items_found=items_found,
        item_values_found=item_values_found,
    )


def _describe(formula: str, context: SubstitutionContext) -> SubstitutionResult:
    resolver = _require_resolver(context)
    outcomes = {}
    pieces = []
    tail = 0

    for reference in iter_references(formula):
        outcome = _resolve(resolver, reference, outcomes)

        if not outcome.is_resolved:
            raise InvalidIdentifierReferenceError(reference.reference_type, reference.key, outcome.message)

        name = outcome.obj.display_name

        if REFERENCE_PATTERN.search(name):
            raise ExpressionError(f"Display name '{name}' of {reference.text} looks like a reference")

        pieces.append(formula[tail:reference.start])
        pieces.append(name)
        tail = reference.end

    pieces.append(formula[tail:])
    return SubstitutionResult(text="".join(pieces))


def _validate(formula: str, context: SubstitutionContext) -> SubstitutionResult:
    resolver = _require_resolver(context)
    outcomes = {}
    references = list(iter_references(formula))

    for applies_to, not_found in _VALIDATION_CHECKS:
        for reference in filter(applies_to, references):
            outcome = _resolve(resolver, reference, outcomes)

            if outcome.is_invalid:
                logger.debug(f"Invalid reference {reference.text}: {outcome.message}")
                return SubstitutionResult(outcome=ExpressionValidationOutcome.EXPRESSION_IS_NOT_WELL_FORMED)

            if outcome.is_unresolved:
                return SubstitutionResult(outcome=not_found)

    pieces = []
    tail = 0

    for reference in references:
        pieces.append(formula[tail:reference.start])
        pieces.append(VALIDATION_PLACEHOLDER)
        tail = reference.end

    pieces.append(formula[tail:])
    text = normalize_function_case("".join(pieces))

    if expression_has_errors(text, context.allow_aggregates):
        return SubstitutionResult(text=text, outcome=ExpressionValidationOutcome.EXPRESSION_IS_NOT_WELL_FORMED)

    return SubstitutionResult(text=text, outcome=ExpressionValidationOutcome.VALID)


def _extract_ids(formula: str, context: SubstitutionContext) -> SubstitutionResult:
    result = SubstitutionResult()

    for reference in iter_references(formula):
        problem = check_parts(reference.reference_type, reference.parts)

        if problem:
            logger.warning(f"Ignoring reference {reference.text} in {formula}: {problem}")
            continue

        if reference.is_dimensional:
            result.item_ids.add(to_item_id(reference.reference_type, reference.parts))
        elif reference.reference_type is ReferenceType.CONSTANT:
            result.constant_ids.add(reference.key)
        elif reference.reference_type is ReferenceType.ORG_UNIT_GROUP:
            result.org_unit_group_ids.add(reference.key)

    return result


def _require_resolver(context: SubstitutionContext) -> ItemResolver:
    if context.resolver is None:
        raise ValueError("An item resolver is required to describe or validate expressions")
    return context.resolver


def _empty_result(mode: SubstitutionMode) -> SubstitutionResult:
    if mode is SubstitutionMode.DESCRIBE:
        return SubstitutionResult(text="")
    if mode is SubstitutionMode.VALIDATE:
        return SubstitutionResult(outcome=ExpressionValidationOutcome.EXPRESSION_IS_EMPTY)
    return SubstitutionResult()


_MODE_HANDLERS = {
    SubstitutionMode.EVALUATE: _evaluate,
    SubstitutionMode.DESCRIBE: _describe,
    SubstitutionMode.VALIDATE: _validate,
    SubstitutionMode.EXTRACT_IDS: _extract_ids,
}


def substitute(formula: Optional[str], mode: SubstitutionMode,
               context: Optional[SubstitutionContext] = None) -> SubstitutionResult:
    """
    Substitute the references of ``formula`` according to ``mode``.

    Args:
        formula: The expression text; None or empty short-circuits
        mode: What to substitute references with
        context: Value maps, strategy and resolver for this call

    Returns:
        SubstitutionResult with the text, counters, outcome or identifiers
        relevant to the mode

    Raises:
        InvalidIdentifierReferenceError: DESCRIBE mode met a reference which
            cannot be resolved
        MalformedReferenceError: EVALUATE mode met an unclosed function call
            and ``context.strict`` is set
    """
    if not formula:
        return _empty_result(mode)

    return _MODE_HANDLERS[mode](formula, context or SubstitutionContext())


def explode_expression(expression: Optional[str], cache: LookupCache, days: Optional[int] = None) -> Optional[str]:
    """
    Replace constants with their values, organisation unit groups with their
    member counts and ``[days]`` with ``days``. Item references are kept.
    """
    if not expression:
        return None

    pieces = []
    tail = 0

    for reference in iter_references(expression):
        if reference.reference_type is ReferenceType.CONSTANT:
            constant = cache.get_constant(reference.key)
            replacement = format_number(constant.value) if constant is not None else NULL_REPLACEMENT
        elif reference.reference_type is ReferenceType.ORG_UNIT_GROUP:
            group = cache.get_organisation_unit_group(reference.key)
            replacement = str(group.member_count) if group is not None else NULL_REPLACEMENT
        elif reference.reference_type is ReferenceType.DAYS:
            replacement = str(days) if days is not None else NULL_REPLACEMENT
        else:
            continue

        pieces.append(expression[tail:reference.start])
        pieces.append(replacement)
        tail = reference.end

    pieces.append(expression[tail:])
    return "".join(pieces)
