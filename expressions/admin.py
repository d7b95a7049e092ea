from django.contrib import admin
from .models import Expression


@admin.register(Expression)
class ExpressionAdmin(admin.ModelAdmin):
    list_display = ("id", "description", "expression", "missing_value_strategy", "sliding_window", "created_at")
    list_filter = ("missing_value_strategy", "sliding_window")
    search_fields = ("description", "expression")
    readonly_fields = ("id", "created_at", "updated_at")
