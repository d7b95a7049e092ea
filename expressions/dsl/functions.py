import math
import statistics
from typing import List


def _ensure_list(args):
    """Flatten arguments into a single list of values."""
    values = []
    for arg in args:
        if isinstance(arg, (list, tuple)):
            values.extend(arg)
        else:
            values.append(arg)
    return values


def _percentile(samples, fraction):
    """Linear interpolation between closest ranks, ``fraction`` in [0, 1]."""
    values = sorted(_ensure_list([samples]))
    if not values or not 0 <= fraction <= 1:
        return math.nan
    position = (len(values) - 1) * fraction
    lower = math.floor(position)
    upper = math.ceil(position)
    if lower == upper:
        return values[int(position)]
    return values[lower] + (values[upper] - values[lower]) * (position - lower)


def _rank(samples, value):
    """Rank of ``value`` among the samples, the highest sample ranking 1."""
    return 1 + sum(1 for sample in _ensure_list([samples]) if sample > value)


def _spread(func, values: List[float]) -> float:
    return func(values) if len(values) > 1 else 0.0


def _round(value, digits=0):
    return round(value, int(digits))


SCALAR_FUNCTIONS = {
    "IF": lambda cond, a, b: a if cond else b,
    "ISNULL": lambda value: value is None,
    "ABS": abs,
    "CEIL": math.ceil,
    "FLOOR": math.floor,
    "ROUND": _round,
    "SQRT": math.sqrt,
    "EXP": math.exp,
    "LOG": math.log,
    "LOG10": math.log10,
}

AGGREGATE_FUNCTIONS = {
    "AVG": lambda *args: statistics.mean(_ensure_list(args)) if _ensure_list(args) else 0,
    "COUNT": lambda *args: len(_ensure_list(args)),
    "MAX": lambda *args: max(_ensure_list(args)) if _ensure_list(args) else 0,
    "MEDIAN": lambda *args: statistics.median(_ensure_list(args)) if _ensure_list(args) else 0,
    "MIN": lambda *args: min(_ensure_list(args)) if _ensure_list(args) else 0,
    "PERCENTILE": _percentile,
    "RANK": _rank,
    "STDDEV": lambda *args: _spread(statistics.stdev, _ensure_list(args)),
    "SUM": lambda *args: sum(_ensure_list(args)),
    "VARIANCE": lambda *args: _spread(statistics.variance, _ensure_list(args)),
}

ALLOWED_FUNCTIONS = {**SCALAR_FUNCTIONS, **AGGREGATE_FUNCTIONS}
