"""
Missing value policy applied after an expression has been substituted.
"""
import logging
from typing import Optional

from .conf import get_setting
from .enums import MissingValueStrategy

logger = logging.getLogger(__name__)


def resolve_strategy(strategy) -> MissingValueStrategy:
    """Return the strategy as an enum member, falling back to the configured default."""
    if not strategy:
        strategy = get_setting("DEFAULT_MISSING_VALUE_STRATEGY")
    return MissingValueStrategy(strategy)


def apply_missing_value_strategy(
    strategy,
    items_found: int,
    item_values_found: int,
    value: Optional[float],
    fallthrough: Optional[bool] = None,
) -> Optional[float]:
    """
    Decide the value of an expression from how many of its items had values.

    Rules, checked in order:

    | Strategy                   | Condition                              | Result |
    |----------------------------|----------------------------------------|--------|
    | SKIP_IF_ANY_VALUE_MISSING  | item_values_found < items_found         | None   |
    | SKIP_IF_ALL_VALUES_MISSING | items_found and not item_values_found   | None   |
    | NEVER_SKIP                 | value is None                          | 0.0    |
    | any                        | otherwise                              | value  |

    With ``fallthrough`` each strategy that does not skip continues with the
    rows below it, so a skip strategy still turns a None value into 0.0. Without
    it the strategies are exclusive and a skip strategy returns the raw value.
    Defaults to the ``MISSING_VALUE_FALLTHROUGH`` setting.

    Args:
        strategy: MissingValueStrategy (or its string value); None means the default
        items_found: Number of item references in the expression
        item_values_found: Number of those references which had a value
        value: Result of evaluating the substituted expression
        fallthrough: Whether rules fall through to the following ones

    Returns:
        The value of the expression, or None if it should be skipped
    """
    strategy = resolve_strategy(strategy)

    if fallthrough is None:
        fallthrough = get_setting("MISSING_VALUE_FALLTHROUGH")

    if strategy == MissingValueStrategy.SKIP_IF_ANY_VALUE_MISSING:
        if item_values_found < items_found:
            logger.debug(f"Skipping expression: {items_found - item_values_found} of {items_found} values missing")
            return None
        if not fallthrough:
            return value

    if strategy in (MissingValueStrategy.SKIP_IF_ANY_VALUE_MISSING, MissingValueStrategy.SKIP_IF_ALL_VALUES_MISSING):
        if items_found != 0 and item_values_found == 0:
            logger.debug(f"Skipping expression: all {items_found} values missing")
            return None
        if not fallthrough:
            return value

    if value is None:
        return 0.0

    return value
