from fastapi import APIRouter, Depends

from stockledger.config import Settings
from stockledger.core.errors import AuthenticationError
from stockledger.core.identity import IdentityProvider
from stockledger.core.security import create_access_token
from stockledger.dependencies import get_identity, get_settings_from_app, require_user
from stockledger.schemas.user import CurrentUser, LoginRequest, TokenResponse

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    identity: IdentityProvider = Depends(get_identity),
    settings: Settings = Depends(get_settings_from_app),
):
    user = identity.authenticate(payload.email, payload.password)
    if user is None:
        raise AuthenticationError("Invalid email or password.")
    return TokenResponse(access_token=create_access_token(user, settings), user=user)


@router.get("/me", response_model=CurrentUser)
def me(user: CurrentUser = Depends(require_user)):
    return user
