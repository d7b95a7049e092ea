"""
Typed references found in expressions and their resolution.

A reference such as ``#{deUid.cocUid}`` or ``C{constUid}`` carries a type
tag and up to three identifier parts. The resolver turns a tag and its parts
into one of three outcomes: the referenced object, "unresolved" when the
reference is well-formed but nothing exists behind it, and "invalid" when
the tag or parts are malformed.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .lookups import LookupService

UID_PATTERN = re.compile(r"^\w+$")
WILDCARD = "*"

DAYS_DESCRIPTION = "[Number of days]"


class ReferenceType(Enum):
    DATA_ELEMENT_OPERAND = ("#", "a data element or data element operand")
    PROGRAM_DATA_ELEMENT = ("D", "a program data element")
    PROGRAM_ATTRIBUTE = ("A", "a program attribute")
    PROGRAM_INDICATOR = ("I", "a program indicator")
    REPORTING_RATE = ("R", "a reporting rate")
    CONSTANT = ("C", "a constant")
    ORG_UNIT_GROUP = ("OUG", "an organisation unit group")
    DAYS = ("[days]", "the number of days")
    AGGREGATE = ("aggregate", "an aggregate sub-expression")

    def __init__(self, key, label):
        self.key = key
        self.label = label

    @classmethod
    def from_key(cls, key: str) -> "ReferenceType":
        for reference_type in cls:
            if reference_type.key == key:
                return reference_type
        raise ValueError(f"Unknown reference key '{key}'")

    @property
    def is_dimensional(self) -> bool:
        return self in DIMENSIONAL_REFERENCE_TYPES


DIMENSIONAL_REFERENCE_TYPES = frozenset({
    ReferenceType.DATA_ELEMENT_OPERAND,
    ReferenceType.PROGRAM_DATA_ELEMENT,
    ReferenceType.PROGRAM_ATTRIBUTE,
    ReferenceType.PROGRAM_INDICATOR,
    ReferenceType.REPORTING_RATE,
})


class DimensionItemType(Enum):
    DATA_ELEMENT = "DATA_ELEMENT"
    DATA_ELEMENT_OPERAND = "DATA_ELEMENT_OPERAND"
    PROGRAM_DATA_ELEMENT = "PROGRAM_DATA_ELEMENT"
    PROGRAM_ATTRIBUTE = "PROGRAM_ATTRIBUTE"
    PROGRAM_INDICATOR = "PROGRAM_INDICATOR"
    REPORTING_RATE = "REPORTING_RATE"


class ReportingRateMetric(Enum):
    REPORTING_RATE = "REPORTING_RATE"
    REPORTING_RATE_ON_TIME = "REPORTING_RATE_ON_TIME"
    ACTUAL_REPORTS = "ACTUAL_REPORTS"
    ACTUAL_REPORTS_ON_TIME = "ACTUAL_REPORTS_ON_TIME"
    EXPECTED_REPORTS = "EXPECTED_REPORTS"


@dataclass(frozen=True)
class DimensionalItemId:
    """Identifies a referenceable data value; used as a value map key."""

    item_type: DimensionItemType
    id0: str
    id1: Optional[str] = None
    id2: Optional[str] = None

    @property
    def dimension_item(self) -> str:
        return ".".join(part for part in (self.id0, self.id1, self.id2) if part)

    def __str__(self):
        return f"{self.item_type.value}:{self.dimension_item}"


class OutcomeStatus(Enum):
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"
    INVALID = "invalid"


@dataclass(frozen=True)
class ReferenceOutcome:
    status: OutcomeStatus
    obj: Any = None
    message: str = ""

    @classmethod
    def resolved(cls, obj) -> "ReferenceOutcome":
        return cls(OutcomeStatus.RESOLVED, obj)

    @classmethod
    def unresolved(cls, message: str) -> "ReferenceOutcome":
        return cls(OutcomeStatus.UNRESOLVED, message=message)

    @classmethod
    def invalid(cls, message: str) -> "ReferenceOutcome":
        return cls(OutcomeStatus.INVALID, message=message)

    @property
    def is_resolved(self) -> bool:
        return self.status is OutcomeStatus.RESOLVED

    @property
    def is_unresolved(self) -> bool:
        return self.status is OutcomeStatus.UNRESOLVED

    @property
    def is_invalid(self) -> bool:
        return self.status is OutcomeStatus.INVALID


@dataclass(frozen=True)
class Days:
    """Stands in for the ``[days]`` marker when describing expressions."""

    display_name: str = DAYS_DESCRIPTION


# Allowed identifier part counts per dimensional reference type
_ARITY = {
    ReferenceType.DATA_ELEMENT_OPERAND: (1, 3),
    ReferenceType.PROGRAM_DATA_ELEMENT: (2, 2),
    ReferenceType.PROGRAM_ATTRIBUTE: (2, 2),
    ReferenceType.PROGRAM_INDICATOR: (1, 1),
    ReferenceType.REPORTING_RATE: (2, 2),
    ReferenceType.CONSTANT: (1, 1),
    ReferenceType.ORG_UNIT_GROUP: (1, 1),
    ReferenceType.DAYS: (0, 0),
}


def check_parts(reference_type: ReferenceType, parts: Tuple[str, ...]) -> Optional[str]:
    """Returns why the parts are malformed for the type, or None."""
    if reference_type not in _ARITY:
        return f"{reference_type.name} is not an item reference"

    low, high = _ARITY[reference_type]
    if not low <= len(parts) <= high:
        return f"{reference_type.name} takes {low}-{high} identifier parts, got {len(parts)}"

    for index, part in enumerate(parts):
        if part == WILDCARD and reference_type is ReferenceType.DATA_ELEMENT_OPERAND and index > 0:
            continue
        if not UID_PATTERN.match(part or ""):
            return f"Invalid identifier part '{part}'"

    if reference_type is ReferenceType.REPORTING_RATE:
        if parts[1] not in ReportingRateMetric.__members__:
            return f"Unknown reporting rate metric '{parts[1]}'"

    return None


def to_item_id(reference_type: ReferenceType, parts: Tuple[str, ...]) -> Optional[DimensionalItemId]:
    """Builds the identifier of a dimensional reference, or None if malformed."""
    if not reference_type.is_dimensional or check_parts(reference_type, parts):
        return None

    if reference_type is ReferenceType.DATA_ELEMENT_OPERAND:
        item_type = DimensionItemType.DATA_ELEMENT if len(parts) == 1 else DimensionItemType.DATA_ELEMENT_OPERAND
    else:
        item_type = DimensionItemType[reference_type.name]

    return DimensionalItemId(item_type, *parts)


class ItemResolver:
    """
    Resolves references against a lookup service.

    The set of reference types is fixed by the grammar, so dispatch is a
    plain table rather than a registry.
    """

    def __init__(self, lookups: LookupService):
        self.lookups = lookups
        self._handlers: Dict[ReferenceType, Any] = {
            ReferenceType.DATA_ELEMENT_OPERAND: self._resolve_dimensional_item,
            ReferenceType.PROGRAM_DATA_ELEMENT: self._resolve_dimensional_item,
            ReferenceType.PROGRAM_ATTRIBUTE: self._resolve_dimensional_item,
            ReferenceType.PROGRAM_INDICATOR: self._resolve_dimensional_item,
            ReferenceType.REPORTING_RATE: self._resolve_dimensional_item,
            ReferenceType.CONSTANT: self._resolve_constant,
            ReferenceType.ORG_UNIT_GROUP: self._resolve_org_unit_group,
            ReferenceType.DAYS: self._resolve_days,
        }

    def resolve(self, reference_type: ReferenceType, parts: Tuple[str, ...]) -> ReferenceOutcome:
        parts = tuple(parts)
        problem = check_parts(reference_type, parts)
        if problem:
            return ReferenceOutcome.invalid(problem)
        return self._handlers[reference_type](reference_type, parts)

    def _resolve_dimensional_item(self, reference_type, parts):
        item_id = to_item_id(reference_type, parts)
        item = self.lookups.get_dimensional_item(item_id)
        if item is None:
            return ReferenceOutcome.unresolved(
                f"Identifier does not reference a dimensional item object: {item_id.dimension_item}"
            )
        return ReferenceOutcome.resolved(item)

    def _resolve_constant(self, reference_type, parts):
        constant = self.lookups.get_constant(parts[0])
        if constant is None:
            return ReferenceOutcome.unresolved(f"Identifier does not reference a constant: {parts[0]}")
        return ReferenceOutcome.resolved(constant)

    def _resolve_org_unit_group(self, reference_type, parts):
        group = self.lookups.get_organisation_unit_group(parts[0])
        if group is None:
            return ReferenceOutcome.unresolved(
                f"Identifier does not reference an organisation unit group: {parts[0]}"
            )
        return ReferenceOutcome.resolved(group)

    def _resolve_days(self, reference_type, parts):
        return ReferenceOutcome.resolved(Days())
