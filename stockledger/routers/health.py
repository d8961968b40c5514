from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from stockledger.config import Settings
from stockledger.dependencies import get_ledger, get_settings_from_app
from stockledger.services.ledger_service import InventoryLedger

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(
    settings: Settings = Depends(get_settings_from_app),
    ledger: InventoryLedger = Depends(get_ledger),
):
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "products": len(ledger.products),
        "time": datetime.now(timezone.utc).isoformat(),
    }
