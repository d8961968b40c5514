from typing import List

from fastapi import APIRouter, Depends

from stockledger.dependencies import get_ledger, require_user
from stockledger.schemas.product import HistoryRead
from stockledger.schemas.user import CurrentUser
from stockledger.services.ledger_service import InventoryLedger

router = APIRouter(prefix="/history", tags=["History"])


@router.get("", response_model=List[HistoryRead])
def list_history(
    ledger: InventoryLedger = Depends(get_ledger),
    _user: CurrentUser = Depends(require_user),
):
    return list(ledger.history)
