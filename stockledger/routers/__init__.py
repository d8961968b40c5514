from stockledger.routers.analytics import router as analytics_router
from stockledger.routers.auth import router as auth_router
from stockledger.routers.health import router as health_router
from stockledger.routers.history import router as history_router
from stockledger.routers.products import router as products_router
from stockledger.routers.users import router as users_router

__all__ = [
    "analytics_router",
    "auth_router",
    "health_router",
    "history_router",
    "products_router",
    "users_router",
]
