from stockledger.services.analytics_service import dashboard_summary, inventory_analytics
from stockledger.services.ledger_service import InventoryLedger

__all__ = [
    "InventoryLedger",
    "dashboard_summary",
    "inventory_analytics",
]
