from django.db import models

from expressions.items import DimensionItemType


class IdentifiableModel(models.Model):
    """Metadata object addressed in expressions by its 11 character uid."""

    uid = models.CharField(max_length=11, unique=True)
    code = models.CharField(max_length=64, blank=True)
    name = models.CharField(max_length=255)
    short_name = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["name"]

    @property
    def display_name(self) -> str:
        return self.name

    def __str__(self) -> str:
        return f"{self.uid}: {self.name}"


class CategoryOptionCombo(IdentifiableModel):
    """A combination of category options disaggregating a data element."""

    is_default = models.BooleanField(default=False)


class DataElement(IdentifiableModel):
    """An aggregate or tracker data element."""

    class DomainType(models.TextChoices):
        AGGREGATE = "aggregate", "Aggregate"
        TRACKER = "tracker", "Tracker"

    domain_type = models.CharField(max_length=16, choices=DomainType.choices, default=DomainType.AGGREGATE)
    description = models.TextField(blank=True)

    @property
    def dimension_item(self) -> str:
        return self.uid

    @property
    def item_type(self) -> DimensionItemType:
        return DimensionItemType.DATA_ELEMENT


class Constant(IdentifiableModel):
    """A named number that expressions refer to as C{uid}."""

    value = models.FloatField()
    description = models.TextField(blank=True)


class OrganisationUnit(IdentifiableModel):
    parent = models.ForeignKey("self", on_delete=models.CASCADE, null=True, blank=True, related_name="children")


class OrganisationUnitGroup(IdentifiableModel):
    """A group of organisation units; expressions use its member count."""

    members = models.ManyToManyField(OrganisationUnit, blank=True, related_name="groups")

    @property
    def member_count(self) -> int:
        return self.members.count()


class Program(IdentifiableModel):
    data_elements = models.ManyToManyField(DataElement, blank=True, related_name="programs")


class TrackedEntityAttribute(IdentifiableModel):
    programs = models.ManyToManyField(Program, blank=True, related_name="attributes")


class ProgramIndicator(IdentifiableModel):
    program = models.ForeignKey(Program, on_delete=models.CASCADE, related_name="indicators")
    expression = models.TextField(blank=True)
    filter = models.TextField(blank=True)

    @property
    def dimension_item(self) -> str:
        return self.uid

    @property
    def item_type(self) -> DimensionItemType:
        return DimensionItemType.PROGRAM_INDICATOR


class DataSet(IdentifiableModel):
    data_elements = models.ManyToManyField(DataElement, blank=True, related_name="data_sets")
