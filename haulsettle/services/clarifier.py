"""
Ticket clarifier: structural checks over a raw ticket batch.

Runs before a batch is committed and never touches the database. Each
row yields at most one issue, the most severe one found.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterator, Mapping, Optional, Sequence
from haulsettle.core.utils import to_decimal

NET_WEIGHT_MISMATCH = "net_weight_mismatch"
MISSING_GROSS_OR_TARE = "missing_gross_or_tare"
MISSING_QUANTITY_OR_RATE = "missing_quantity_or_rate"

REASONS = {
    NET_WEIGHT_MISMATCH: "net weight mismatch",
    MISSING_GROSS_OR_TARE: "missing gross or tare weight",
    MISSING_QUANTITY_OR_RATE: "missing quantity or rate",
}

# Upload templates disagree on column names
FIELD_ALIASES = {
    "gross": ("gross_weight", "gross"),
    "tare": ("tare_weight", "tare"),
    "net": ("net_weight", "net"),
    "quantity": ("quantity", "net_quantity"),
    "bill_rate": ("bill_rate", "rate"),
}


@dataclass(frozen=True)
class ValidationIssue:
    """A flagged row. Not persisted."""
    index: int
    code: str
    ticket_id: Optional[str] = None
    ticket_number: Optional[str] = None

    @property
    def reason(self) -> str:
        return REASONS[self.code]


def _raw(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _number(record: Any, field: str) -> Optional[Decimal]:
    for name in FIELD_ALIASES[field]:
        value = to_decimal(_raw(record, name))
        if value is not None:
            return value
    return None


def _text(record: Any, name: str) -> Optional[str]:
    value = _raw(record, name)
    return None if value is None else str(value)


def check_ticket(record: Any, tolerance: Decimal = Decimal("0.01")) -> Optional[str]:
    """Return the issue code for one row, or None when it looks consistent."""
    gross = _number(record, "gross")
    tare = _number(record, "tare")
    net = _number(record, "net")

    if gross is not None and tare is not None and net is not None:
        if abs(gross - tare - net) > tolerance:
            return NET_WEIGHT_MISMATCH
    elif (gross is None) != (tare is None):
        return MISSING_GROSS_OR_TARE

    if _number(record, "quantity") is None or _number(record, "bill_rate") is None:
        return MISSING_QUANTITY_OR_RATE
    return None


class TicketClarifier:
    """
    Lazy, restartable view of the issues in a batch.

    Every iteration re-checks the batch from the start, so iterating twice
    over the same rows yields the same issues.
    """

    def __init__(self, records: Sequence[Any], tolerance: Decimal = Decimal("0.01")):
        self.records = records
        self.tolerance = Decimal(tolerance)

    def __iter__(self) -> Iterator[ValidationIssue]:
        for index, record in enumerate(self.records):
            code = check_ticket(record, self.tolerance)
            if code is None:
                continue
            yield ValidationIssue(
                index=index,
                code=code,
                ticket_id=_text(record, "id"),
                ticket_number=_text(record, "ticket_number"),
            )


def clarify(records: Sequence[Any], tolerance: Decimal = Decimal("0.01")) -> TicketClarifier:
    return TicketClarifier(records, tolerance)
