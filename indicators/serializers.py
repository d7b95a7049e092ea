from rest_framework import serializers

from expressions.exceptions import ExpressionError
from expressions.services import ExpressionService

from .models import Indicator, IndicatorType


class IndicatorTypeSerializer(serializers.ModelSerializer):
    """Serializer for indicator types."""
    class Meta:
        model = IndicatorType
        fields = ["id", "name", "factor", "number"]
        read_only_fields = ["id"]


class IndicatorSerializer(serializers.ModelSerializer):
    """Serializer for creating, updating and viewing indicators."""
    indicator_type_name = serializers.CharField(source="indicator_type.name", read_only=True)
    numerator_text = serializers.SerializerMethodField()
    denominator_text = serializers.SerializerMethodField()

    class Meta:
        model = Indicator
        fields = [
            "id", "uid", "code", "name", "indicator_type", "indicator_type_name", "annualized",
            "numerator", "numerator_description", "numerator_text",
            "denominator", "denominator_description", "denominator_text",
            "exploded_numerator", "exploded_denominator",
            "created_at", "updated_at",
        ]
        read_only_fields = ["id", "exploded_numerator", "exploded_denominator", "created_at", "updated_at"]

    def __init__(self, *args, service=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service or ExpressionService()

    def _validate_side(self, value):
        outcome = self.service.indicator_expression_is_valid(value)
        if not outcome.is_valid:
            raise serializers.ValidationError(outcome.description)
        return value

    def validate_numerator(self, value):
        """Validate the numerator expression."""
        return self._validate_side(value)

    def validate_denominator(self, value):
        """Validate the denominator expression."""
        return self._validate_side(value)

    def _describe(self, expression):
        try:
            return self.service.get_indicator_expression_description(expression)
        except ExpressionError:
            return None

    def get_numerator_text(self, obj):
        """Return the numerator with references replaced by display names."""
        return self._describe(obj.numerator)

    def get_denominator_text(self, obj):
        """Return the denominator with references replaced by display names."""
        return self._describe(obj.denominator)
