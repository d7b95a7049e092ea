from django.contrib import admin
from .models import Indicator, IndicatorType


@admin.register(IndicatorType)
class IndicatorTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "factor", "number")
    search_fields = ("name",)


@admin.register(Indicator)
class IndicatorAdmin(admin.ModelAdmin):
    list_display = ("uid", "name", "indicator_type", "annualized", "updated_at")
    list_filter = ("indicator_type", "annualized")
    search_fields = ("uid", "code", "name", "numerator", "denominator")
    readonly_fields = ("id", "exploded_numerator", "exploded_denominator", "created_at", "updated_at")
