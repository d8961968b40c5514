from __future__ import annotations

import logging
from typing import Optional

from stockledger.core.constants import ROLE_ADMIN, ROLE_WORKER
from stockledger.core.errors import PermissionDeniedError
from stockledger.schemas.user import CurrentUser

logger = logging.getLogger(__name__)

PRODUCT_CREATE = "product:create"
PRODUCT_SELL = "product:sell"
PRODUCT_UPDATE = "product:update"
PRODUCT_ARCHIVE = "product:archive"
ANALYTICS_VIEW = "analytics:view"
USERS_MANAGE = "users:manage"

ROLE_PERMISSIONS = {
    ROLE_ADMIN: frozenset(
        {
            PRODUCT_CREATE,
            PRODUCT_SELL,
            PRODUCT_UPDATE,
            PRODUCT_ARCHIVE,
            ANALYTICS_VIEW,
            USERS_MANAGE,
        }
    ),
    ROLE_WORKER: frozenset({PRODUCT_CREATE, PRODUCT_SELL, PRODUCT_ARCHIVE}),
}


def has_permission(actor: Optional[CurrentUser], permission: str) -> bool:
    if actor is None:
        return False
    return permission in ROLE_PERMISSIONS.get(actor.role, frozenset())


def authorize(actor: Optional[CurrentUser], permission: str) -> CurrentUser:
    if actor is None:
        raise PermissionDeniedError("Authentication is required for {}.".format(permission))
    if not has_permission(actor, permission):
        logger.warning(
            "Denied %s for user %s with role %s.", permission, actor.email, actor.role
        )
        raise PermissionDeniedError(
            "Role '{}' is not allowed to perform {}.".format(actor.role, permission)
        )
    return actor


__all__ = [
    "ANALYTICS_VIEW",
    "PRODUCT_ARCHIVE",
    "PRODUCT_CREATE",
    "PRODUCT_SELL",
    "PRODUCT_UPDATE",
    "ROLE_PERMISSIONS",
    "USERS_MANAGE",
    "authorize",
    "has_permission",
]
