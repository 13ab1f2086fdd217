"""
Pydantic schemas for inbound tickets.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date
from decimal import Decimal


class TicketPayload(BaseModel):
    """
    A completed haul submitted for settlement.

    Unknown keys are rejected so loosely shaped JSON never reaches the
    settlement logic. Blank identifiers are caught by the settlement
    service and reported as input errors.
    """
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    driver_id: str
    load_id: str
    ticket_number: str
    ticket_date: date
    net_quantity: Optional[Decimal] = Field(default=None, ge=0)  # tons or units
    material_type: Optional[str] = None
    customer_id: Optional[str] = None
    job_id: Optional[str] = None
    equipment_type: Optional[str] = None
    miles: Optional[Decimal] = Field(default=None, ge=0)
    hours: Optional[Decimal] = Field(default=None, ge=0)
