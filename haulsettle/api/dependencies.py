"""
Shared route dependencies: bearer-token principal and settlement config.
"""
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from haulsettle.core.config import SettlementConfig, settings
from haulsettle.core.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Principal:
    """Caller identified by the bearer token."""
    subject: str
    organization_id: str


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Principal:
    """Resolve the caller from a Bearer JWT carrying sub and organization_id."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub") or not payload.get("organization_id"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Principal(subject=str(payload["sub"]), organization_id=str(payload["organization_id"]))


def get_settlement_config() -> SettlementConfig:
    return SettlementConfig.from_settings(settings)
