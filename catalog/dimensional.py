"""
Dimensional items composed of other metadata objects.

These are not stored; they are built on demand from the references found in
expressions, e.g. ``#{deUid.cocUid}`` becomes a DataElementOperand. Members
may be None when the object they reference does not exist.
"""
from dataclasses import dataclass
from typing import Any, Optional

from expressions.items import DimensionItemType, ReportingRateMetric

SEPARATOR = "."
SPACE = " "


def _uid(obj) -> Optional[str]:
    return obj.uid if obj is not None else None


def _join(*parts) -> str:
    return SEPARATOR.join(part for part in parts if part)


@dataclass(frozen=True)
class DataElementOperand:
    """A data element, optionally disaggregated by category and attribute option combo."""

    data_element: Any
    category_option_combo: Any = None
    attribute_option_combo: Any = None

    @property
    def item_type(self) -> DimensionItemType:
        if self.category_option_combo is None and self.attribute_option_combo is None:
            return DimensionItemType.DATA_ELEMENT
        return DimensionItemType.DATA_ELEMENT_OPERAND

    @property
    def dimension_item(self) -> str:
        coc = _uid(self.category_option_combo)
        aoc = _uid(self.attribute_option_combo)
        if coc is None and aoc is not None:
            coc = "*"
        return _join(_uid(self.data_element), coc, aoc)

    @property
    def display_name(self) -> str:
        names = [obj.display_name for obj in (self.data_element, self.category_option_combo,
                                              self.attribute_option_combo) if obj is not None]
        return SPACE.join(names)


@dataclass(frozen=True)
class ProgramDataElementDimensionItem:
    program: Any
    data_element: Any

    item_type = DimensionItemType.PROGRAM_DATA_ELEMENT

    @property
    def dimension_item(self) -> str:
        return _join(_uid(self.program), _uid(self.data_element))

    @property
    def display_name(self) -> str:
        if self.program is None or self.data_element is None:
            return self.dimension_item
        return f"{self.program.display_name} {self.data_element.display_name}"


@dataclass(frozen=True)
class ProgramTrackedEntityAttributeDimensionItem:
    program: Any
    attribute: Any

    item_type = DimensionItemType.PROGRAM_ATTRIBUTE

    @property
    def dimension_item(self) -> str:
        return _join(_uid(self.program), _uid(self.attribute))

    @property
    def display_name(self) -> str:
        if self.program is None or self.attribute is None:
            return self.dimension_item
        return f"{self.program.display_name} {self.attribute.display_name}"


@dataclass(frozen=True)
class ReportingRate:
    """A reporting rate metric of a data set, e.g. ``R{dsUid.REPORTING_RATE}``."""

    data_set: Any
    metric: ReportingRateMetric = ReportingRateMetric.REPORTING_RATE

    item_type = DimensionItemType.REPORTING_RATE

    @property
    def dimension_item(self) -> str:
        return _join(_uid(self.data_set), self.metric.value)

    @property
    def display_name(self) -> str:
        metric_name = self.metric.value.replace("_", " ").capitalize()
        if self.data_set is None:
            return metric_name
        return f"{self.data_set.display_name} {metric_name}"
