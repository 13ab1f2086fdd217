"""
Pydantic schemas for PayRate entity.
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from haulsettle.models.pay_rate import RateScope, RateType


class PayRateBase(BaseModel):
    """Base pay rate schema."""
    scope_type: RateScope
    scope_value: Optional[str] = None  # driver id, material name or customer id
    rate_name: str = Field(min_length=1, max_length=120)
    rate_type: RateType = RateType.PER_TON
    rate_value: Decimal = Field(gt=0)
    effective_start: Optional[date] = None
    effective_end: Optional[date] = None


class PayRateCreate(PayRateBase):
    """Schema for pay rate creation."""

    @model_validator(mode="after")
    def check_scope_and_period(self):
        if self.scope_type == RateScope.DEFAULT:
            self.scope_value = None
        elif not self.scope_value:
            raise ValueError(f"scope_value is required for {self.scope_type.value} rates")
        if self.effective_start and self.effective_end and self.effective_end < self.effective_start:
            raise ValueError("effective_end must not be before effective_start")
        return self


class PayRateResponse(PayRateBase):
    """Schema for pay rate response."""
    id: int
    organization_id: str
    created_at: datetime

    class Config:
        from_attributes = True
