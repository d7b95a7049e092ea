"""
Django ORM implementation of the expression engine's lookup service.
"""
import logging

from expressions.items import DimensionItemType, DimensionalItemId, ReportingRateMetric
from expressions.lookups import LookupService

from .dimensional import (
    DataElementOperand, ProgramDataElementDimensionItem,
    ProgramTrackedEntityAttributeDimensionItem, ReportingRate,
)
from .models import (
    CategoryOptionCombo, Constant, DataElement, DataSet, OrganisationUnitGroup,
    Program, ProgramIndicator, TrackedEntityAttribute,
)

logger = logging.getLogger(__name__)

WILDCARD = "*"


def _get_by_uid(model, uid):
    if not uid or uid == WILDCARD:
        return None
    return model.objects.filter(uid=uid).first()


class ModelLookupService(LookupService):
    """Looks up referenced objects by uid in the catalog tables."""

    def get_data_element(self, uid):
        return _get_by_uid(DataElement, uid)

    def get_category_option_combo(self, uid):
        return _get_by_uid(CategoryOptionCombo, uid)

    def get_constant(self, uid):
        return _get_by_uid(Constant, uid)

    def get_organisation_unit_group(self, uid):
        return _get_by_uid(OrganisationUnitGroup, uid)

    def get_constants(self):
        return Constant.objects.all()

    def get_organisation_unit_groups(self):
        return OrganisationUnitGroup.objects.prefetch_related("members")

    def get_dimensional_item(self, item_id: DimensionalItemId):
        if item_id is None:
            return None

        handler = {
            DimensionItemType.DATA_ELEMENT: self._data_element,
            DimensionItemType.DATA_ELEMENT_OPERAND: self._data_element_operand,
            DimensionItemType.PROGRAM_DATA_ELEMENT: self._program_data_element,
            DimensionItemType.PROGRAM_ATTRIBUTE: self._program_attribute,
            DimensionItemType.PROGRAM_INDICATOR: self._program_indicator,
            DimensionItemType.REPORTING_RATE: self._reporting_rate,
        }.get(item_id.item_type)

        if handler is None:
            logger.warning(f"Unsupported dimensional item type: {item_id.item_type}")
            return None

        return handler(item_id)

    def _data_element(self, item_id):
        return self.get_data_element(item_id.id0)

    def _data_element_operand(self, item_id):
        """
        Wildcard option combos are allowed; any other option combo must
        exist for the operand to exist.
        """
        data_element = self.get_data_element(item_id.id0)
        if data_element is None:
            return None

        combo = self.get_category_option_combo(item_id.id1)
        if combo is None and item_id.id1 not in (None, WILDCARD):
            return None

        attribute_combo = self.get_category_option_combo(item_id.id2)
        if attribute_combo is None and item_id.id2 not in (None, WILDCARD):
            return None

        return DataElementOperand(data_element, combo, attribute_combo)

    def _program_data_element(self, item_id):
        program = _get_by_uid(Program, item_id.id0)
        data_element = self.get_data_element(item_id.id1)
        if program is None or data_element is None:
            return None
        return ProgramDataElementDimensionItem(program, data_element)

    def _program_attribute(self, item_id):
        program = _get_by_uid(Program, item_id.id0)
        attribute = _get_by_uid(TrackedEntityAttribute, item_id.id1)
        if program is None or attribute is None:
            return None
        return ProgramTrackedEntityAttributeDimensionItem(program, attribute)

    def _program_indicator(self, item_id):
        return _get_by_uid(ProgramIndicator, item_id.id0)

    def _reporting_rate(self, item_id):
        data_set = _get_by_uid(DataSet, item_id.id0)
        if data_set is None:
            return None
        return ReportingRate(data_set, ReportingRateMetric[item_id.id1])
