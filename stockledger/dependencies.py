from typing import Optional

from fastapi import Depends, Header, Request

from stockledger.config import Settings
from stockledger.core.errors import AuthenticationError
from stockledger.core.identity import IdentityProvider
from stockledger.core.security import authenticate_request
from stockledger.schemas.user import CurrentUser
from stockledger.services.ledger_service import InventoryLedger


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_ledger(request: Request) -> InventoryLedger:
    return request.app.state.ledger


def get_identity(request: Request) -> IdentityProvider:
    return request.app.state.identity


def require_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    identity: IdentityProvider = Depends(get_identity),
) -> CurrentUser:
    claims = authenticate_request(authorization, request.app.state.settings)
    # Role and name come from the users table so role changes apply to live tokens.
    user = identity.get_user(claims.id)
    if user is None:
        raise AuthenticationError("User no longer exists")
    return user


__all__ = ["get_identity", "get_ledger", "get_settings_from_app", "require_user"]
