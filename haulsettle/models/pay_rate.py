"""
Pay rate model for driver settlement.
"""
from sqlalchemy import Column, String, Numeric, Date, Enum as SQLEnum, Index
from haulsettle.db.base import BaseModel
import enum


class RateScope(str, enum.Enum):
    """What a pay rate is keyed on."""
    DRIVER = "driver"
    MATERIAL = "material"
    CUSTOMER = "customer"
    DEFAULT = "default"


class RateType(str, enum.Enum):
    """Unit the rate value is paid per."""
    PER_TON = "PER_TON"
    PER_LOAD = "PER_LOAD"
    PER_MILE = "PER_MILE"
    PER_HOUR = "PER_HOUR"


class PayRate(BaseModel):
    """Pay-rate rule owned by an organization."""
    __tablename__ = "pay_rates"

    organization_id = Column(String(64), nullable=False, index=True)
    scope_type = Column(SQLEnum(RateScope), nullable=False)
    scope_value = Column(String(100), nullable=True)  # NULL for default rates
    rate_name = Column(String(120), nullable=False)
    rate_type = Column(SQLEnum(RateType), nullable=False, default=RateType.PER_TON)
    rate_value = Column(Numeric(12, 4), nullable=False)
    effective_start = Column(Date, nullable=True)
    effective_end = Column(Date, nullable=True)

    __table_args__ = (
        Index("ix_pay_rates_org_scope", "organization_id", "scope_type", "scope_value"),
    )

    def __repr__(self):
        return f"<PayRate(id={self.id}, scope={self.scope_type}, value={self.rate_value})>"
