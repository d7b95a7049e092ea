"""
Locates references and function calls inside expression strings.

Item references (``#{..}``, ``D{..}``, ``A{..}``, ``I{..}``, ``R{..}``,
``C{..}``, ``OUG{..}``, ``[days]``) never nest and are found with a regular
expression. Function calls such as ``AVG(...)`` or ``isNull(...)`` may
contain nested parentheses and further references, so their closing
delimiter is found by counting depth.

All scanners are generators over an immutable string: each call starts a
fresh scan and yields immutable match records in source order.
"""
import logging
import re
from dataclasses import dataclass
from typing import Iterator, Optional, Pattern, Tuple

from .dsl import AGGREGATE_FUNCTIONS, SCALAR_FUNCTIONS
from .exceptions import MalformedReferenceError
from .items import ReferenceType

logger = logging.getLogger(__name__)

REFERENCE_PATTERN = re.compile(
    r"(?<![\w])(?P<key>OUG|#|C|D|A|I|R)\{(?P<id>[\w*]+(?:\.[\w*]+){0,2})\}"
    r"|(?P<days>\[days\])"
)

AGGREGATE_PATTERN = re.compile(
    r"(?i)\b(?P<name>" + "|".join(sorted(AGGREGATE_FUNCTIONS)) + r")\s*\("
)

IS_NULL_PATTERN = re.compile(r"(?i)\b(?P<name>isNull)\s*\(")

FUNCTION_PATTERN = re.compile(
    r"(?i)\b(?P<name>" + "|".join(sorted(set(SCALAR_FUNCTIONS) | set(AGGREGATE_FUNCTIONS))) + r")\s*\("
)

OPENERS = "(["
CLOSERS = ")]"


@dataclass(frozen=True)
class ReferenceMatch:
    """An item reference and the span ``[start, end)`` it occupies."""

    reference_type: ReferenceType
    parts: Tuple[str, ...]
    start: int
    end: int
    text: str

    @property
    def key(self) -> str:
        """The dotted identifier, e.g. ``deUid.cocUid``."""
        return ".".join(self.parts)

    @property
    def is_dimensional(self) -> bool:
        return self.reference_type.is_dimensional


@dataclass(frozen=True)
class FunctionMatch:
    """
    A function call. ``arg_start`` is the offset just after the opening
    parenthesis and ``end`` the offset of the matching closing one, or -1
    when there is none.
    """

    name: str
    start: int
    arg_start: int
    end: int

    @property
    def malformed(self) -> bool:
        return self.end < 0

    def argument(self, formula: str) -> Optional[str]:
        if self.malformed:
            return None
        return formula[self.arg_start:self.end]


def match_closing(text: str, start: int) -> int:
    """
    Return the offset of the delimiter closing the one just before
    ``start``, counting nested parentheses and brackets, or -1.
    """
    depth = 1
    for index in range(start, len(text)):
        char = text[index]
        if char in OPENERS:
            depth += 1
        elif char in CLOSERS:
            depth -= 1
            if depth == 0:
                return index
    return -1


def iter_references(formula: str) -> Iterator[ReferenceMatch]:
    """Yield the item references of a formula from left to right."""
    if not formula:
        return

    for match in REFERENCE_PATTERN.finditer(formula):
        if match.group("days"):
            yield ReferenceMatch(ReferenceType.DAYS, (), match.start(), match.end(), match.group(0))
        else:
            yield ReferenceMatch(
                ReferenceType.from_key(match.group("key")),
                tuple(match.group("id").split(".")),
                match.start(),
                match.end(),
                match.group(0),
            )


def iter_function_calls(formula: str, pattern: Pattern = FUNCTION_PATTERN,
                        strict: bool = False) -> Iterator[FunctionMatch]:
    """
    Yield calls of the functions matched by ``pattern``. A well-formed call
    is consumed whole, so calls nested inside its argument are not reported.
    A malformed call is logged (or raised when ``strict``) and scanning
    resumes after its opening parenthesis.
    """
    if not formula:
        return

    scan = 0
    length = len(formula)

    while scan < length:
        match = pattern.search(formula, scan)
        if not match:
            return

        arg_start = match.end()
        end = match_closing(formula, arg_start)

        if end < 0:
            if strict:
                raise MalformedReferenceError(formula, arg_start)
            logger.warning(f"Bad expression starting at {arg_start} in {formula}")
            scan = arg_start
        else:
            scan = end + 1

        yield FunctionMatch(match.group("name"), match.start(), arg_start, end)


def normalize_function_case(formula: str, pattern: Pattern = FUNCTION_PATTERN) -> str:
    """Rewrite function names to upper case, e.g. ``avg (`` becomes ``AVG (``."""
    if not formula:
        return formula
    return pattern.sub(lambda m: m.group(0).upper(), formula)
