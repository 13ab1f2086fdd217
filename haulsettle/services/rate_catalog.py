"""
Rate catalog lookup: candidate pay rates for a ticket.
"""
import logging
from typing import List
from haulsettle.core.exceptions import TicketInputError
from haulsettle.db.repository import SettlementRepository
from haulsettle.models.pay_rate import PayRate
from haulsettle.schemas.ticket import TicketPayload

logger = logging.getLogger(__name__)


def find_candidate_rates(
    ticket: TicketPayload,
    organization_id: str,
    repo: SettlementRepository
) -> List[PayRate]:
    """
    Get every rate that could apply to the ticket.

    A rate is a candidate when its scope matches the ticket's driver,
    material or customer, or it is the organization default, and the
    ticket date falls inside its effective period. An empty list is a
    valid answer; the caller decides whether that is fatal.
    """
    if not ticket.driver_id:
        raise TicketInputError("driver_id is required to look up pay rates")

    candidates = repo.find(
        organization_id,
        ticket.driver_id,
        material_type=ticket.material_type or None,
        customer_id=ticket.customer_id or None,
        on_date=ticket.ticket_date,
    )

    logger.debug(
        f"{len(candidates)} rates effective on {ticket.ticket_date} for driver {ticket.driver_id}"
    )
    return candidates
