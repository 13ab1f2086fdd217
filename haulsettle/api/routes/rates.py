"""
Pay rate configuration routes.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from haulsettle.db.session import get_db
from haulsettle.models.pay_rate import PayRate, RateScope
from haulsettle.schemas.pay_rate import PayRateCreate, PayRateResponse
from haulsettle.api.dependencies import Principal, get_current_principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rates", tags=["rates"])


@router.post("", response_model=PayRateResponse, status_code=status.HTTP_201_CREATED)
async def create_rate(
    rate_data: PayRateCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Configure a new pay rate for the caller's organization."""
    rate = PayRate(
        organization_id=principal.organization_id,
        **rate_data.model_dump()
    )
    db.add(rate)
    db.commit()
    db.refresh(rate)

    logger.info(
        f"Pay rate {rate.id} '{rate.rate_name}' ({rate.scope_type.value}) created "
        f"for organization {principal.organization_id}"
    )
    return rate


@router.get("", response_model=List[PayRateResponse])
async def list_rates(
    scope_type: Optional[RateScope] = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """List pay rates for the caller's organization, newest first."""
    query = db.query(PayRate).filter(PayRate.organization_id == principal.organization_id)
    if scope_type:
        query = query.filter(PayRate.scope_type == scope_type)
    return query.order_by(PayRate.created_at.desc(), PayRate.id.desc()).all()
