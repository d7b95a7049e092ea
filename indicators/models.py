from django.db import models


class IndicatorType(models.Model):
    """Scaling applied to an indicator, e.g. Percentage with factor 100."""

    id = models.BigAutoField(primary_key=True)
    name = models.CharField(max_length=255, unique=True)
    factor = models.IntegerField(default=1)
    number = models.BooleanField(default=False, help_text="Whether values are plain numbers without a factor")

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} (x{self.factor})"


class Indicator(models.Model):
    """A ratio of two expressions scaled by its indicator type."""

    id = models.BigAutoField(primary_key=True)
    uid = models.CharField(max_length=11, unique=True)
    code = models.CharField(max_length=64, blank=True)
    name = models.CharField(max_length=255)
    indicator_type = models.ForeignKey(IndicatorType, on_delete=models.PROTECT, related_name="indicators")
    annualized = models.BooleanField(default=False)

    numerator = models.TextField()
    numerator_description = models.TextField(blank=True)
    denominator = models.TextField()
    denominator_description = models.TextField(blank=True)

    # Numerator and denominator with constants, group counts and [days] substituted
    exploded_numerator = models.TextField(null=True, blank=True)
    exploded_denominator = models.TextField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["uid"]),
        ]

    def __str__(self) -> str:
        return f"{self.uid}: {self.name}"
