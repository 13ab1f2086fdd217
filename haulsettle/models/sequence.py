"""
Named counters backing the sequence generator.
"""
from sqlalchemy import Column, String, Integer
from haulsettle.db.base import BaseModel


class SequenceCounter(BaseModel):
    """Last value handed out for a named sequence."""
    __tablename__ = "sequence_counters"

    name = Column(String(64), unique=True, nullable=False)
    value = Column(Integer, nullable=False, default=0)
