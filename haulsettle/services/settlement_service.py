"""
Settlement service: turn a ticket into a payable settlement item.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from haulsettle.core.config import SettlementConfig
from haulsettle.core.exceptions import (
    DuplicateTicketError, NoApplicableRateError, SettlementError,
    SettlementStoreError, TicketInputError
)
from haulsettle.core.utils import round_money, round_quantity, week_ending_date
from haulsettle.db.repository import SettlementRepository
from haulsettle.models.pay_rate import PayRate, RateType
from haulsettle.models.settlement import SettlementItem, WeeklySummary
from haulsettle.schemas.ticket import TicketPayload
from haulsettle.services.rate_catalog import find_candidate_rates
from haulsettle.services.rate_selection import select_rate
from haulsettle.services.sequence_service import SequenceGenerator, format_settlement_number
from haulsettle.services.summary_service import recompute_weekly_summary

logger = logging.getLogger(__name__)

SETTLEMENT_SEQUENCE = "settlement_item"


@dataclass
class SettlementResult:
    """Created item plus the driver's recomputed week."""
    item: SettlementItem
    summary: WeeklySummary


def validate_ticket(ticket: TicketPayload):
    """Reject tickets missing driver, load or ticket number before touching the store."""
    missing = [
        field for field in ("driver_id", "load_id", "ticket_number")
        if not getattr(ticket, field, None)
    ]
    if missing:
        raise TicketInputError(f"Missing required ticket fields: {', '.join(missing)}")


def settlement_quantity(rate: PayRate, ticket: TicketPayload) -> Decimal:
    """
    Quantity the rate is paid against: net tons for PER_TON, one load for
    PER_LOAD, miles for PER_MILE and hours for PER_HOUR. Rounded to the
    stored precision so the saved quantity times the rate gives the amount.
    """
    rate_type = RateType(rate.rate_type)
    quantity: Optional[Decimal]
    if rate_type == RateType.PER_TON:
        quantity = ticket.net_quantity
    elif rate_type == RateType.PER_LOAD:
        quantity = Decimal(1)
    elif rate_type == RateType.PER_MILE:
        quantity = ticket.miles
    else:
        quantity = ticket.hours

    if quantity is not None:
        quantity = round_quantity(quantity)
    if not quantity:
        raise TicketInputError(
            f"Missing quantity for rate calculation ({rate_type.value}) on ticket {ticket.ticket_number}"
        )
    return quantity


def calculate_amount(quantity: Decimal, rate_value: Decimal) -> Decimal:
    """quantity * rate, rounded to cents half away from zero."""
    return round_money(Decimal(quantity) * Decimal(rate_value))


def build_settlement_item(
    ticket: TicketPayload,
    rate: PayRate,
    organization_id: str,
    config: SettlementConfig
) -> SettlementItem:
    """Compute the amount and week for a ticket under the selected rate. Nothing is written."""
    quantity = settlement_quantity(rate, ticket)
    return SettlementItem(
        organization_id=organization_id,
        driver_id=ticket.driver_id,
        load_id=ticket.load_id,
        ticket_number=ticket.ticket_number,
        ticket_date=ticket.ticket_date,
        week_end_date=week_ending_date(ticket.ticket_date, config.week_end_weekday),
        material_type=ticket.material_type,
        customer_id=ticket.customer_id,
        job_id=ticket.job_id,
        equipment_type=ticket.equipment_type,
        quantity=quantity,
        amount=calculate_amount(quantity, rate.rate_value),
        rate_id=rate.id,
        rate_name=rate.rate_name,
        rate_type=rate.rate_type,
        rate_value=rate.rate_value,
    )


def settle_ticket(
    ticket: TicketPayload,
    organization_id: str,
    repo: SettlementRepository,
    sequences: SequenceGenerator,
    config: SettlementConfig
) -> SettlementResult:
    """
    Settle one ticket: look up and select a rate, build the item, insert
    it and recompute the driver's week, all in one transaction.

    Raises TicketInputError, NoApplicableRateError, DuplicateTicketError or
    SettlementStoreError. On any failure nothing is committed.
    """
    validate_ticket(ticket)

    try:
        candidates = find_candidate_rates(ticket, organization_id, repo)
        rate = select_rate(candidates, ticket.driver_id, config.rate_precedence)
        item = build_settlement_item(ticket, rate, organization_id, config)

        # Fast path; the unique constraint still decides concurrent inserts
        if repo.exists(ticket.driver_id, ticket.ticket_number):
            raise DuplicateTicketError(ticket.driver_id, ticket.ticket_number)

        item.settlement_number = format_settlement_number(
            config.settlement_number_prefix,
            sequences.next_value(SETTLEMENT_SEQUENCE)
        )
        item = repo.insert(item)
        summary = recompute_weekly_summary(organization_id, item.driver_id, item.week_end_date, repo)
        repo.commit()
    except (DuplicateTicketError, NoApplicableRateError) as e:
        repo.rollback()
        logger.warning(f"Settlement rejected for ticket {ticket.ticket_number}: {e.message}")
        raise
    except SettlementStoreError:
        repo.rollback()
        logger.error(f"Store failure settling ticket {ticket.ticket_number}", exc_info=True)
        raise
    except SettlementError:
        repo.rollback()
        raise

    logger.info(
        f"Settled ticket {item.ticket_number} for driver {item.driver_id}: "
        f"{item.quantity} x {item.rate_value} ({item.rate_name}) = {item.amount}, "
        f"week ending {item.week_end_date}"
    )
    return SettlementResult(item=item, summary=summary)
