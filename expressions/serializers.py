from rest_framework import serializers

from .exceptions import ExpressionError
from .models import Expression
from .services import ExpressionService


class ExpressionSerializer(serializers.ModelSerializer):
    """Serializer for validation rule and predictor expressions."""

    description_text = serializers.SerializerMethodField()

    class Meta:
        model = Expression
        fields = [
            "id", "expression", "description", "missing_value_strategy",
            "sliding_window", "description_text", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def __init__(self, *args, service=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service or ExpressionService()

    def validate_expression(self, value):
        """Reject expressions which are empty, malformed or reference missing objects."""
        outcome = self.service.validation_rule_expression_is_valid(value)
        if not outcome.is_valid:
            raise serializers.ValidationError(outcome.description)
        return value

    def get_description_text(self, obj):
        """Return the expression with references replaced by display names."""
        try:
            return self.service.get_expression_description(obj.expression)
        except ExpressionError:
            return None
