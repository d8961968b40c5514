from __future__ import annotations

from datetime import timedelta
from typing import Optional

import jwt

from stockledger.config import Settings, get_settings
from stockledger.core.dates import utc_now
from stockledger.core.errors import AuthenticationError
from stockledger.schemas.user import CurrentUser


def _require_secret(settings: Settings) -> str:
    if not settings.JWT_SECRET:
        raise AuthenticationError("JWT auth is not configured")
    return settings.JWT_SECRET


def get_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def create_access_token(user: CurrentUser, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    now = utc_now()
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    }
    if settings.JWT_AUDIENCE:
        claims["aud"] = settings.JWT_AUDIENCE
    if settings.JWT_ISSUER:
        claims["iss"] = settings.JWT_ISSUER
    return jwt.encode(claims, _require_secret(settings), algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> CurrentUser:
    settings = settings or get_settings()
    options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
    try:
        payload = jwt.decode(
            token,
            _require_secret(settings),
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options=options,
        )
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Invalid JWT") from exc

    try:
        return CurrentUser(
            id=int(payload["sub"]),
            name=payload.get("name") or "User",
            email=payload["email"],
            role=payload.get("role") or "worker",
        )
    except (KeyError, ValueError) as exc:
        raise AuthenticationError("JWT is missing user claims") from exc


def authenticate_request(
    authorization: Optional[str],
    settings: Optional[Settings] = None,
) -> CurrentUser:
    token = get_bearer_token(authorization)
    if not token:
        raise AuthenticationError("Not authenticated")
    return decode_access_token(token, settings)
