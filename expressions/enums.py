from enum import Enum

from django.db import models


class MissingValueStrategy(models.TextChoices):
    SKIP_IF_ANY_VALUE_MISSING = "SKIP_IF_ANY_VALUE_MISSING", "Skip if any value is missing"
    SKIP_IF_ALL_VALUES_MISSING = "SKIP_IF_ALL_VALUES_MISSING", "Skip if all values are missing"
    NEVER_SKIP = "NEVER_SKIP", "Never skip"


class ExpressionValidationOutcome(Enum):
    VALID = "Valid"
    EXPRESSION_IS_EMPTY = "Expression is empty"
    DIMENSIONAL_ITEM_OBJECT_DOES_NOT_EXIST = "Dimensional item object does not exist"
    CONSTANT_DOES_NOT_EXIST = "Constant does not exist"
    ORG_UNIT_GROUP_DOES_NOT_EXIST = "Organisation unit group does not exist"
    EXPRESSION_IS_NOT_WELL_FORMED = "Expression is not well-formed"

    @property
    def description(self) -> str:
        return self.value

    @property
    def is_valid(self) -> bool:
        return self is ExpressionValidationOutcome.VALID
