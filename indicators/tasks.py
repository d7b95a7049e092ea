"""
Celery tasks for indicator expressions.
"""
import logging
from typing import Optional

from celery import shared_task
from django.db import transaction

from expressions.exceptions import ExpressionError
from expressions.lookups import LookupCache
from expressions.services import ExpressionService

from .models import Indicator
from .utils import Period

logger = logging.getLogger(__name__)


def describe_indicator(service: ExpressionService, indicator: Indicator) -> bool:
    """
    Refresh the stored numerator and denominator descriptions of an indicator.

    Returns:
        True if both descriptions were computed, False otherwise
    """
    try:
        indicator.numerator_description = service.get_indicator_expression_description(indicator.numerator)
        indicator.denominator_description = service.get_indicator_expression_description(indicator.denominator)
        return True
    except ExpressionError as e:
        logger.error(f"Error describing indicator {indicator.uid}: {str(e)}", exc_info=True)
        return False


@shared_task(bind=True, max_retries=3)
def explode_indicator_expressions(self, period_start_iso: Optional[str] = None, period_end_iso: Optional[str] = None):
    """
    Celery task to store every indicator's numerator and denominator with
    constants, organisation unit group counts and [days] substituted.

    Args:
        period_start_iso: ISO format date string for period start (YYYY-MM-DD)
        period_end_iso: ISO format date string for period end (YYYY-MM-DD)
    """
    try:
        days = None
        if period_start_iso and period_end_iso:
            days = Period(period_start_iso, period_end_iso).days_in_period

        service = ExpressionService()

        with transaction.atomic():
            indicators = list(Indicator.objects.all())
            cache = LookupCache.load(service.lookups)

            service.substitute_expressions(indicators, days, cache)

            Indicator.objects.bulk_update(indicators, ["exploded_numerator", "exploded_denominator"])

        logger.info(f"Exploded expressions of {len(indicators)} indicators (days: {days})")
        return len(indicators)

    except Exception as e:
        logger.error(
            f"Error in explode_indicator_expressions task for period {period_start_iso} to {period_end_iso}: {str(e)}",
            exc_info=True
        )
        raise self.retry(exc=e, countdown=60 * (self.request.retries + 1))


@shared_task(bind=True, max_retries=3)
def describe_indicator_expressions(self):
    """
    Celery task to refresh the numerator and denominator descriptions of
    every indicator. Indicators referencing missing objects are logged and
    skipped.
    """
    try:
        service = ExpressionService()
        described = []
        error_count = 0

        for indicator in Indicator.objects.select_related("indicator_type"):
            if describe_indicator(service, indicator):
                described.append(indicator)
            else:
                error_count += 1

        Indicator.objects.bulk_update(described, ["numerator_description", "denominator_description"])

        logger.info(f"Described {len(described)} indicators, {error_count} errors")
        return len(described)

    except Exception as e:
        logger.error(f"Error in describe_indicator_expressions task: {str(e)}", exc_info=True)
        raise self.retry(exc=e, countdown=60 * (self.request.retries + 1))
