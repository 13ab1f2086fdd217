"""
Pydantic schemas for settlement items and weekly summaries.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from haulsettle.models.pay_rate import RateType


class SettlementItemResponse(BaseModel):
    """Schema for a created settlement item."""
    id: int
    settlement_number: str
    driver_id: str
    load_id: str
    ticket_number: str
    ticket_date: date
    week_end_date: date
    material_type: Optional[str] = None
    customer_id: Optional[str] = None
    job_id: Optional[str] = None
    quantity: Decimal
    amount: Decimal
    rate_id: int
    rate_name: str
    rate_type: RateType
    rate_value: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class WeeklySummaryResponse(BaseModel):
    """Schema for a driver's weekly totals."""
    driver_id: str
    week_end_date: date
    total_quantity: Decimal
    total_amount: Decimal
    item_count: int

    class Config:
        from_attributes = True


class SettlementResultResponse(BaseModel):
    """Schema returned after settling a ticket."""
    item: SettlementItemResponse
    summary: WeeklySummaryResponse
