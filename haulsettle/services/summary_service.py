"""
Weekly summary aggregation.
"""
import logging
from datetime import date
from decimal import Decimal
from haulsettle.core.utils import round_money
from haulsettle.db.repository import SettlementRepository
from haulsettle.models.settlement import WeeklySummary

logger = logging.getLogger(__name__)


def recompute_weekly_summary(
    organization_id: str,
    driver_id: str,
    week_end_date: date,
    repo: SettlementRepository
) -> WeeklySummary:
    """
    Rebuild a driver's weekly totals from their settlement items and upsert
    the summary row. Totals are always summed from scratch, never adjusted
    incrementally, so calling this again without new items changes nothing.
    Does not commit.

    An existing summary row is locked before the items are read, so two
    settlements for the same driver and week recompute one after the other
    and the later one sees the earlier one's item. When no row exists yet,
    the unique constraint on (organization, driver, week) lets only one
    transaction create it; the other fails as a retryable store error.
    """
    repo.get_summary(organization_id, driver_id, week_end_date, for_update=True)
    items = repo.items_for_week(organization_id, driver_id, week_end_date)

    total_quantity = sum((Decimal(item.quantity) for item in items), Decimal(0))
    total_amount = sum((Decimal(item.amount) for item in items), Decimal(0))

    summary = repo.upsert(WeeklySummary(
        organization_id=organization_id,
        driver_id=driver_id,
        week_end_date=week_end_date,
        total_quantity=total_quantity,
        total_amount=round_money(total_amount),
        item_count=len(items)
    ))

    logger.info(
        f"Weekly summary for driver {driver_id} week ending {week_end_date}: "
        f"{summary.item_count} loads, {summary.total_amount}"
    )
    return summary
