"""Models package - Import all models for SQLAlchemy registration."""
from haulsettle.models.pay_rate import PayRate, RateScope, RateType
from haulsettle.models.settlement import SettlementItem, WeeklySummary
from haulsettle.models.sequence import SequenceCounter

__all__ = [
    "PayRate",
    "RateScope",
    "RateType",
    "SettlementItem",
    "WeeklySummary",
    "SequenceCounter",
]
