from fastapi import APIRouter, Depends

from stockledger.config import Settings
from stockledger.dependencies import get_ledger, get_settings_from_app, require_user
from stockledger.schemas.analytics import DashboardSummary, InventoryAnalytics
from stockledger.schemas.user import CurrentUser
from stockledger.services.analytics_service import dashboard_summary, inventory_analytics
from stockledger.services.ledger_service import InventoryLedger

router = APIRouter(tags=["Analytics"])


@router.get("/dashboard/summary", response_model=DashboardSummary)
def summary(
    ledger: InventoryLedger = Depends(get_ledger),
    settings: Settings = Depends(get_settings_from_app),
    _user: CurrentUser = Depends(require_user),
):
    return dashboard_summary(ledger, low_stock_threshold=settings.LOW_STOCK_THRESHOLD)


@router.get("/analytics", response_model=InventoryAnalytics)
def analytics(
    ledger: InventoryLedger = Depends(get_ledger),
    actor: CurrentUser = Depends(require_user),
):
    return inventory_analytics(ledger, actor=actor)
