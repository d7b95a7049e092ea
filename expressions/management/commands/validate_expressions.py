"""
Management command to report the validation outcome of stored expressions
and indicator numerators / denominators.
"""

from django.core.management.base import BaseCommand

from expressions.models import Expression
from expressions.services import ExpressionService
from indicators.models import Indicator


class Command(BaseCommand):
    help = "Validate stored expressions and indicator expressions"

    def add_arguments(self, parser):
        parser.add_argument(
            "--predictor",
            action="store_true",
            help="Validate stored expressions as predictor generators, allowing aggregate functions",
        )
        parser.add_argument(
            "--skip-indicators",
            action="store_true",
            help="Only validate stored expressions",
        )

    def handle(self, *args, **options):
        service = ExpressionService()
        validate = (
            service.predictor_expression_is_valid if options["predictor"]
            else service.validation_rule_expression_is_valid
        )

        checked = 0
        invalid = 0

        self.stdout.write("Validating expressions...")

        for expression in Expression.objects.all():
            checked += 1
            outcome = validate(expression.expression)
            if not outcome.is_valid:
                invalid += 1
                self.stdout.write(
                    self.style.WARNING(f"  ⚠ Expression {expression.id} '{expression.expression}': {outcome.description}")
                )

        if not options["skip_indicators"]:
            self.stdout.write("Validating indicators...")

            for indicator in Indicator.objects.all():
                for side in ("numerator", "denominator"):
                    checked += 1
                    outcome = service.indicator_expression_is_valid(getattr(indicator, side))
                    if not outcome.is_valid:
                        invalid += 1
                        self.stdout.write(
                            self.style.WARNING(f"  ⚠ Indicator {indicator.uid} {side}: {outcome.description}")
                        )

        if invalid:
            self.stdout.write(self.style.ERROR(f"✗ {invalid} of {checked} expressions are invalid"))
        else:
            self.stdout.write(self.style.SUCCESS(f"✓ All {checked} expressions are valid"))
