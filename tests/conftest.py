"""
Pytest configuration and fixtures.
"""
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Dict

import pytest

from catalog.dimensional import DataElementOperand, ReportingRate
from catalog.models import (
    CategoryOptionCombo, Constant, DataElement, DataSet, OrganisationUnit, OrganisationUnitGroup,
    Program, ProgramIndicator, TrackedEntityAttribute,
)
from expressions.items import DimensionItemType, DimensionalItemId, ReportingRateMetric
from expressions.lookups import LookupService
from expressions.services import ExpressionService


@dataclass(frozen=True)
class FakeObject:
    uid: str
    name: str

    @property
    def display_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class FakeConstant(FakeObject):
    value: float = 0.0


@dataclass(frozen=True)
class FakeGroup(FakeObject):
    member_count: int = 0


@dataclass
class InMemoryLookupService(LookupService):
    """Lookup service backed by dictionaries keyed by uid."""

    data_elements: Dict[str, FakeObject] = field(default_factory=dict)
    option_combos: Dict[str, FakeObject] = field(default_factory=dict)
    constants: Dict[str, FakeConstant] = field(default_factory=dict)
    groups: Dict[str, FakeGroup] = field(default_factory=dict)
    items: Dict[DimensionalItemId, object] = field(default_factory=dict)

    def get_data_element(self, uid):
        return self.data_elements.get(uid)

    def get_category_option_combo(self, uid):
        return self.option_combos.get(uid)

    def get_constant(self, uid):
        return self.constants.get(uid)

    def get_organisation_unit_group(self, uid):
        return self.groups.get(uid)

    def get_dimensional_item(self, item_id):
        return self.items.get(item_id)

    def get_constants(self):
        return list(self.constants.values())

    def get_organisation_unit_groups(self):
        return list(self.groups.values())


@pytest.fixture
def data_element() -> FakeObject:
    return FakeObject("deA", "Malaria cases")


@pytest.fixture
def option_combo() -> FakeObject:
    return FakeObject("cocA", "Under 5")


@pytest.fixture
def lookups(data_element, option_combo) -> InMemoryLookupService:
    """
    Metadata available to the engine:

    - data elements deA (Malaria cases) and deB (Population)
    - option combo cocA (Under 5)
    - constant constA (Population factor) = 5
    - organisation unit group groupA (District hospitals) with 4 members
    - program indicator piA (ANC visits)
    - data set dsA (Facility reports)
    """
    population = FakeObject("deB", "Population")
    data_set = FakeObject("dsA", "Facility reports")

    return InMemoryLookupService(
        data_elements={"deA": data_element, "deB": population},
        option_combos={"cocA": option_combo},
        constants={"constA": FakeConstant("constA", "Population factor", 5.0)},
        groups={"groupA": FakeGroup("groupA", "District hospitals", 4)},
        items={
            DimensionalItemId(DimensionItemType.DATA_ELEMENT, "deA"): data_element,
            DimensionalItemId(DimensionItemType.DATA_ELEMENT, "deB"): population,
            DimensionalItemId(DimensionItemType.DATA_ELEMENT_OPERAND, "deA", "cocA"):
                DataElementOperand(data_element, option_combo),
            DimensionalItemId(DimensionItemType.PROGRAM_INDICATOR, "piA"): FakeObject("piA", "ANC visits"),
            DimensionalItemId(DimensionItemType.REPORTING_RATE, "dsA", "REPORTING_RATE"):
                ReportingRate(data_set, ReportingRateMetric.REPORTING_RATE),
        },
    )


@pytest.fixture
def service(lookups) -> ExpressionService:
    """Create service instance backed by in-memory lookups."""
    return ExpressionService(lookups)


@pytest.fixture
def catalog_objects(db):
    """Catalog rows mirroring the in-memory lookups."""
    malaria = DataElement.objects.create(uid="deA", name="Malaria cases")
    population = DataElement.objects.create(uid="deB", name="Population")
    under_five = CategoryOptionCombo.objects.create(uid="cocA", name="Under 5")
    constant = Constant.objects.create(uid="constA", name="Population factor", value=5)

    group = OrganisationUnitGroup.objects.create(uid="groupA", name="District hospitals")
    district = OrganisationUnit.objects.create(uid="ouA", name="District")
    for index in range(4):
        group.members.add(OrganisationUnit.objects.create(uid=f"ouA{index}", name=f"Hospital {index}", parent=district))

    program = Program.objects.create(uid="prA", name="ANC")
    program.data_elements.add(malaria)
    attribute = TrackedEntityAttribute.objects.create(uid="atA", name="Age")
    program_indicator = ProgramIndicator.objects.create(uid="piA", name="ANC visits", program=program)
    data_set = DataSet.objects.create(uid="dsA", name="Facility reports")

    return SimpleNamespace(
        malaria=malaria, population=population, under_five=under_five, constant=constant, group=group,
        program=program, attribute=attribute, program_indicator=program_indicator, data_set=data_set,
    )
