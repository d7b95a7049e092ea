"""
Arithmetic utilities for the expression engine.
"""
import logging
import math
from typing import Optional

from .conf import get_setting
from .dsl import Tokenizer, Parser, Evaluator, ALLOWED_FUNCTIONS, SCALAR_FUNCTIONS
from .exceptions import ParseError

logger = logging.getLogger(__name__)

# Returned by lenient callers when an expression cannot be parsed
DOUBLE_VALUE_IF_NULL = 0.0


def _evaluate(expression: str, functions) -> object:
    tokens = Tokenizer(expression).generate_tokens()
    ast = Parser(tokens, expression).parse()
    return Evaluator(functions=functions, text=expression).eval(ast)


def calculate_expression(expression: str, strict: bool = False, allow_aggregates: bool = True) -> Optional[float]:
    """
    Evaluate a fully substituted expression.

    Uses the safe DSL parser to avoid eval() security issues.

    Supported operations:
    - Arithmetic: +, -, *, /, %, ^ and unary minus
    - Comparison operators: >, <, >=, <=, ==, !=
    - Logical operators: &&, ||, !
    - Scalar functions: IF, ISNULL, ABS, CEIL, FLOOR, ROUND, SQRT, EXP, LOG, LOG10
    - Aggregate functions over lists: AVG, COUNT, MAX, MEDIAN, MIN, PERCENTILE,
      RANK, STDDEV, SUM, VARIANCE

    Examples:
    - "(10.0 + 5.0) * 0.5"
    - "IF(true, 0, 12.5)"
    - "AVG([1.0, 2.0, 3.0]) / 2"

    Args:
        expression: Expression containing only literals, operators and functions
        strict: Raise ParseError instead of logging it and returning 0.0
        allow_aggregates: Whether aggregate functions may be used

    Returns:
        The result, or None when the result is not a finite number
    """
    functions = ALLOWED_FUNCTIONS if allow_aggregates else SCALAR_FUNCTIONS

    try:
        result = _evaluate(expression, functions)
    except ParseError as e:
        if strict:
            raise
        if get_setting("LOG_PARSE_WARNINGS"):
            logger.warning(str(e))
        return DOUBLE_VALUE_IF_NULL

    if isinstance(result, list):
        if strict:
            raise ParseError("Expression evaluates to a list", expression)
        logger.warning(f"Expression evaluates to a list parsing expression '{expression}'")
        return DOUBLE_VALUE_IF_NULL

    result = float(result)

    if math.isnan(result) or math.isinf(result):
        return None

    return result


def expression_has_errors(expression: str, allow_aggregates: bool = False) -> bool:
    """
    Check whether an expression is well-formed. Every function argument is
    evaluated, so both branches of IF are checked.
    """
    try:
        calculate_expression(expression, strict=True, allow_aggregates=allow_aggregates)
    except ParseError as e:
        logger.debug(f"Expression has errors: {e}")
        return True
    return False


def format_number(value) -> str:
    """
    Render a number as a literal the DSL tokenizer accepts. Negative numbers
    are parenthesised so they stay a single operand next to ``^``.
    """
    text = str(float(value))
    return f"({text})" if text.startswith("-") else text
