"""
Settlement models: one item per settled ticket and the weekly rollup.
"""
from sqlalchemy import Column, String, Numeric, Date, ForeignKey, Integer, Enum as SQLEnum, UniqueConstraint
from sqlalchemy.orm import relationship
from haulsettle.db.base import BaseModel
from haulsettle.models.pay_rate import RateType


class SettlementItem(BaseModel):
    """Payable amount for one ticket under the rate that was applied."""
    __tablename__ = "settlement_items"

    organization_id = Column(String(64), nullable=False, index=True)
    settlement_number = Column(String(32), nullable=False, unique=True)

    driver_id = Column(String(64), nullable=False, index=True)
    load_id = Column(String(64), nullable=False)
    ticket_number = Column(String(64), nullable=False)
    ticket_date = Column(Date, nullable=False)
    week_end_date = Column(Date, nullable=False, index=True)

    material_type = Column(String(100), nullable=True)
    customer_id = Column(String(64), nullable=True)
    job_id = Column(String(64), nullable=True)
    equipment_type = Column(String(64), nullable=True)

    quantity = Column(Numeric(12, 3), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)

    # Snapshot of the applied rate for audit
    rate_id = Column(Integer, ForeignKey("pay_rates.id"), nullable=False)
    rate_name = Column(String(120), nullable=False)
    rate_type = Column(SQLEnum(RateType), nullable=False)
    rate_value = Column(Numeric(12, 4), nullable=False)

    rate = relationship("PayRate")

    # Duplicate signal: one item per driver and ticket number
    __table_args__ = (
        UniqueConstraint("driver_id", "ticket_number", name="uq_settlement_driver_ticket"),
    )


class WeeklySummary(BaseModel):
    """Per-driver, per-week totals derived from settlement items."""
    __tablename__ = "weekly_summaries"

    organization_id = Column(String(64), nullable=False, index=True)
    driver_id = Column(String(64), nullable=False, index=True)
    week_end_date = Column(Date, nullable=False, index=True)
    total_quantity = Column(Numeric(14, 3), nullable=False, default=0)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    item_count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("organization_id", "driver_id", "week_end_date", name="uq_summary_org_driver_week"),
    )
