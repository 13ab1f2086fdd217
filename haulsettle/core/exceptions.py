"""
Typed errors raised by the settlement core.

Routes map these onto HTTP status codes; services never raise HTTPException.
"""


class SettlementError(Exception):
    """Base class for settlement failures."""
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TicketInputError(SettlementError):
    """Required ticket fields are missing or unusable."""


class NoApplicableRateError(SettlementError):
    """No configured pay rate matches the ticket."""

    def __init__(self, driver_id: str):
        super().__init__(
            f"No applicable pay rate for driver {driver_id}. "
            "An administrator must configure a driver, material, customer or default rate."
        )
        self.driver_id = driver_id


class DuplicateTicketError(SettlementError):
    """A settlement item already exists for this driver and ticket number."""

    def __init__(self, driver_id: str, ticket_number: str):
        super().__init__(f"Ticket {ticket_number} has already been settled for driver {driver_id}")
        self.driver_id = driver_id
        self.ticket_number = ticket_number


class SettlementStoreError(SettlementError):
    """The database was unreachable or rejected the write."""
    retryable = True
