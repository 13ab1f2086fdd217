"""
Sequence generator for human-readable document numbers.
"""
from typing import Protocol
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from haulsettle.core.exceptions import SettlementStoreError
from haulsettle.models.sequence import SequenceCounter


class SequenceGenerator(Protocol):
    """Hands out increasing integers per sequence name."""

    def next_value(self, name: str) -> int:
        ...


class DatabaseSequenceGenerator:
    """
    Counter rows in ``sequence_counters``, locked for update where the
    database supports it. Runs inside the caller's transaction, so a
    rolled back settlement also gives its number back.
    """

    def __init__(self, db: Session):
        self.db = db

    def next_value(self, name: str) -> int:
        try:
            counter = self.db.query(SequenceCounter).filter(
                SequenceCounter.name == name
            ).with_for_update().first()

            if counter is None:
                counter = SequenceCounter(name=name, value=0)
                self.db.add(counter)

            counter.value += 1
            self.db.flush()
            return counter.value
        except SQLAlchemyError as e:
            self.db.rollback()
            raise SettlementStoreError(f"Failed to allocate next value for sequence '{name}': {e}") from e


def format_settlement_number(prefix: str, value: int) -> str:
    return f"{prefix}-{value:06d}"
