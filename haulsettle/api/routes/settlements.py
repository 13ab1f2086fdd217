"""
Driver settlement routes.
"""
import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from haulsettle.db.session import get_db
from haulsettle.db.repository import SettlementRepository
from haulsettle.core.config import SettlementConfig
from haulsettle.core.exceptions import (
    DuplicateTicketError, NoApplicableRateError, SettlementStoreError, TicketInputError
)
from haulsettle.models.settlement import SettlementItem
from haulsettle.schemas.settlement import (
    SettlementItemResponse, SettlementResultResponse, WeeklySummaryResponse
)
from haulsettle.schemas.ticket import TicketPayload
from haulsettle.services.sequence_service import DatabaseSequenceGenerator
from haulsettle.services.settlement_service import settle_ticket
from haulsettle.services.summary_service import recompute_weekly_summary
from haulsettle.api.dependencies import Principal, get_current_principal, get_settlement_config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.post("", response_model=SettlementResultResponse, status_code=status.HTTP_201_CREATED)
async def create_settlement(
    ticket: TicketPayload,
    principal: Principal = Depends(get_current_principal),
    config: SettlementConfig = Depends(get_settlement_config),
    db: Session = Depends(get_db)
):
    """Settle one ticket and return the item with the driver's updated week."""
    try:
        result = settle_ticket(
            ticket,
            principal.organization_id,
            SettlementRepository(db),
            DatabaseSequenceGenerator(db),
            config
        )
    except TicketInputError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    except NoApplicableRateError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    except DuplicateTicketError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except SettlementStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Settlement could not be saved, retry later: {e.message}"
        )

    return SettlementResultResponse(
        item=SettlementItemResponse.model_validate(result.item),
        summary=WeeklySummaryResponse.model_validate(result.summary)
    )


@router.get("/drivers/{driver_id}/weeks/{week_end_date}", response_model=WeeklySummaryResponse)
async def get_weekly_summary(
    driver_id: str,
    week_end_date: date,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Recompute and return a driver's totals for a settlement week."""
    repo = SettlementRepository(db)
    try:
        summary = recompute_weekly_summary(principal.organization_id, driver_id, week_end_date, repo)
        repo.commit()
    except SettlementStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)

    return summary


@router.get("/drivers/{driver_id}/items", response_model=List[SettlementItemResponse])
async def list_settlement_items(
    driver_id: str,
    week_end_date: Optional[date] = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """List a driver's settlement items, optionally for a single week."""
    query = db.query(SettlementItem).filter(
        SettlementItem.organization_id == principal.organization_id,
        SettlementItem.driver_id == driver_id
    )
    if week_end_date:
        query = query.filter(SettlementItem.week_end_date == week_end_date)

    return query.order_by(SettlementItem.week_end_date.desc(), SettlementItem.id.asc()).all()
