from django.db import models

from .enums import MissingValueStrategy


class Expression(models.Model):
    """An expression of a validation rule side or a predictor generator."""

    id = models.BigAutoField(primary_key=True)
    expression = models.TextField(help_text="e.g. #{deUid.cocUid} + C{constUid} * [days]")
    description = models.CharField(max_length=255, blank=True)
    missing_value_strategy = models.CharField(
        max_length=32,
        choices=MissingValueStrategy.choices,
        default=MissingValueStrategy.NEVER_SKIP,
    )
    sliding_window = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.description or self.expression
