from django.contrib import admin
from .models import (
    CategoryOptionCombo, Constant, DataElement, DataSet, OrganisationUnit,
    OrganisationUnitGroup, Program, ProgramIndicator, TrackedEntityAttribute,
)


class IdentifiableAdmin(admin.ModelAdmin):
    list_display = ("uid", "name", "code", "updated_at")
    search_fields = ("uid", "name", "code")
    readonly_fields = ("created_at", "updated_at")


@admin.register(DataElement)
class DataElementAdmin(IdentifiableAdmin):
    list_display = ("uid", "name", "code", "domain_type", "updated_at")
    list_filter = ("domain_type",)


@admin.register(Constant)
class ConstantAdmin(IdentifiableAdmin):
    list_display = ("uid", "name", "code", "value", "updated_at")


@admin.register(OrganisationUnitGroup)
class OrganisationUnitGroupAdmin(IdentifiableAdmin):
    filter_horizontal = ("members",)


@admin.register(ProgramIndicator)
class ProgramIndicatorAdmin(IdentifiableAdmin):
    list_display = ("uid", "name", "program", "updated_at")
    list_filter = ("program",)


admin.site.register(CategoryOptionCombo, IdentifiableAdmin)
admin.site.register(OrganisationUnit, IdentifiableAdmin)
admin.site.register(Program, IdentifiableAdmin)
admin.site.register(TrackedEntityAttribute, IdentifiableAdmin)
admin.site.register(DataSet, IdentifiableAdmin)
