"""
Ticket batch routes.
"""
from fastapi import APIRouter, Depends
from haulsettle.core.config import SettlementConfig
from haulsettle.schemas.clarifier import ClarifyRequest, ClarifyResponse, ValidationIssueResponse
from haulsettle.services.clarifier import clarify
from haulsettle.api.dependencies import Principal, get_current_principal, get_settlement_config

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.post("/clarify", response_model=ClarifyResponse)
async def clarify_tickets(
    request: ClarifyRequest,
    principal: Principal = Depends(get_current_principal),
    config: SettlementConfig = Depends(get_settlement_config)
):
    """Flag structurally inconsistent rows in an uploaded ticket batch."""
    issues = [
        ValidationIssueResponse(
            index=issue.index,
            ticket_id=issue.ticket_id,
            ticket_number=issue.ticket_number,
            code=issue.code,
            reason=issue.reason
        )
        for issue in clarify(request.tickets, config.net_weight_tolerance)
    ]
    return ClarifyResponse(checked=len(request.tickets), issues=issues)
