"""
Lookup services consumed by the expression engine.

The engine never queries storage itself; it asks a LookupService for the
objects behind identifiers. ``catalog.lookups.ModelLookupService`` is the
Django ORM implementation.
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional, Set


class LookupService(ABC):
    """Read-only access to objects referenced by expressions."""

    @abstractmethod
    def get_data_element(self, uid: str):
        """Return the data element with the given uid, or None."""

    @abstractmethod
    def get_category_option_combo(self, uid: str):
        """Return the category option combo with the given uid, or None."""

    @abstractmethod
    def get_constant(self, uid: str):
        """Return the constant with the given uid, or None."""

    @abstractmethod
    def get_organisation_unit_group(self, uid: str):
        """Return the organisation unit group with the given uid, or None."""

    @abstractmethod
    def get_dimensional_item(self, item_id):
        """Return the dimensional item object for a DimensionalItemId, or None."""

    @abstractmethod
    def get_constants(self) -> Iterable:
        """Return all constants."""

    @abstractmethod
    def get_organisation_unit_groups(self) -> Iterable:
        """Return all organisation unit groups."""

    def get_dimensional_items(self, item_ids) -> Set:
        items = set()
        for item_id in item_ids:
            item = self.get_dimensional_item(item_id)
            if item is not None:
                items.add(item)
        return items


class LookupCache:
    """
    Constants and organisation unit groups keyed by uid, loaded once for a
    batch operation. Create one per batch call and let it go afterwards.
    """

    def __init__(self, constants: Optional[Dict[str, object]] = None,
                 org_unit_groups: Optional[Dict[str, object]] = None):
        self.constants = constants or {}
        self.org_unit_groups = org_unit_groups or {}

    @classmethod
    def load(cls, lookups: LookupService) -> "LookupCache":
        return cls(
            constants={c.uid: c for c in lookups.get_constants()},
            org_unit_groups={g.uid: g for g in lookups.get_organisation_unit_groups()},
        )

    def get_constant(self, uid: str):
        return self.constants.get(uid)

    def get_organisation_unit_group(self, uid: str):
        return self.org_unit_groups.get(uid)
