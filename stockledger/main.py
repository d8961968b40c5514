import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.engine import Engine

from stockledger.adapters.persistence import DocumentStore
from stockledger.config import Settings, get_settings
from stockledger.core.constants import ROLE_ADMIN
from stockledger.core.errors import (
    AuthenticationError,
    DuplicateProductIdError,
    DuplicateUserError,
    InsufficientStockError,
    LedgerError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)
from stockledger.core.identity import IdentityProvider
from stockledger.core.logging import setup_logging
from stockledger.core.scheduler import Scheduler
from stockledger.database import Base, build_session_factory, ensure_sqlite_schema
from stockledger.database import engine as default_engine
from stockledger.models import import_all_models
from stockledger.routers import (
    analytics_router,
    auth_router,
    health_router,
    history_router,
    products_router,
    users_router,
)
from stockledger.services.ledger_service import InventoryLedger

logger = logging.getLogger(__name__)

_ERROR_STATUS = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (InsufficientStockError, 409),
    (DuplicateProductIdError, 409),
    (DuplicateUserError, 409),
    (PersistenceError, 503),
)


def _status_for(exc: LedgerError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def _ledger_error_handler(_request: Request, exc: LedgerError):
    content = {"detail": str(exc)}
    if isinstance(exc, ValidationError) and exc.errors:
        content["errors"] = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors
        ]
    return JSONResponse(status_code=_status_for(exc), content=content)


def _bootstrap_admin(identity: IdentityProvider, settings: Settings) -> None:
    if not (settings.BOOTSTRAP_ADMIN_EMAIL and settings.BOOTSTRAP_ADMIN_PASSWORD):
        return
    identity.ensure_user(
        name=settings.BOOTSTRAP_ADMIN_NAME,
        email=settings.BOOTSTRAP_ADMIN_EMAIL,
        password=settings.BOOTSTRAP_ADMIN_PASSWORD,
        role=ROLE_ADMIN,
    )


def create_app(settings: Optional[Settings] = None, *, engine: Optional[Engine] = None) -> FastAPI:
    settings = settings or get_settings()
    engine = engine or default_engine
    session_factory = build_session_factory(engine)

    ledger = InventoryLedger(
        DocumentStore(session_factory),
        retention_days=settings.SOLD_RETENTION_DAYS,
        enforce_unique_product_id=settings.ENFORCE_UNIQUE_PRODUCT_ID,
    )
    identity = IdentityProvider(session_factory, rounds=settings.PBKDF2_ROUNDS)
    scheduler = Scheduler(poll_seconds=settings.SCHEDULER_POLL_SECONDS)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        import_all_models()
        Base.metadata.create_all(bind=engine)
        ensure_sqlite_schema(engine)
        _bootstrap_admin(identity, settings)

        ledger.bootstrap()
        if settings.CLEANUP_ENABLED:
            if not scheduler.jobs:
                scheduler.add_interval_job(
                    "cleanup-old-sold-products",
                    settings.CLEANUP_INTERVAL_SECONDS,
                    ledger.cleanup_old_sold_products,
                )
            scheduler.start()
        try:
            yield
        finally:
            scheduler.stop()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.ledger = ledger
    app.state.identity = identity
    app.state.scheduler = scheduler
    app.add_exception_handler(LedgerError, _ledger_error_handler)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(products_router)
    app.include_router(history_router)
    app.include_router(analytics_router)

    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(url="/dashboard/summary", status_code=302)

    return app


setup_logging()
app = create_app()


__all__ = ["app", "create_app"]
