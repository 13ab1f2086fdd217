"""
Pydantic schemas for the ticket clarifier.
"""
from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class ClarifyRequest(BaseModel):
    """A raw ticket batch as uploaded, before any settlement."""
    tickets: List[Dict[str, Any]]


class ValidationIssueResponse(BaseModel):
    """Schema for one flagged ticket row."""
    index: int
    ticket_id: Optional[str] = None
    ticket_number: Optional[str] = None
    code: str
    reason: str


class ClarifyResponse(BaseModel):
    """Schema for clarifier results."""
    checked: int
    issues: List[ValidationIssueResponse]
