from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from stockledger.dependencies import get_ledger, require_user
from stockledger.schemas.product import (
    HistoryRead,
    ProductCreate,
    ProductRead,
    ProductReadWithHistory,
    SaleRequest,
)
from stockledger.schemas.user import CurrentUser
from stockledger.services.ledger_service import InventoryLedger

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=List[ProductRead])
def list_products(
    q: Optional[str] = Query(None, description="Matches name, product id, seller or buyer"),
    category: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    ledger: InventoryLedger = Depends(get_ledger),
    _user: CurrentUser = Depends(require_user),
):
    return ledger.search_products(q, category=category, status=status_filter)


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def add_product(
    payload: ProductCreate,
    ledger: InventoryLedger = Depends(get_ledger),
    actor: CurrentUser = Depends(require_user),
):
    return ledger.add_product(payload, actor=actor)


@router.get("/{product_id}", response_model=ProductReadWithHistory)
def get_product(
    product_id: int,
    ledger: InventoryLedger = Depends(get_ledger),
    _user: CurrentUser = Depends(require_user),
):
    product = ledger.get_product_by_id(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found.")
    return ProductReadWithHistory(
        **product.model_dump(),
        history=ledger.get_history_for_product(product_id),
    )


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: int,
    updates: dict = Body(...),
    ledger: InventoryLedger = Depends(get_ledger),
    actor: CurrentUser = Depends(require_user),
):
    return ledger.update_product(product_id, updates, actor=actor)


@router.post("/{product_id}/sell", response_model=ProductRead)
def sell_product(
    product_id: int,
    sale: SaleRequest,
    ledger: InventoryLedger = Depends(get_ledger),
    actor: CurrentUser = Depends(require_user),
):
    return ledger.mark_as_sold(
        product_id,
        sale.sale_date,
        sale.quantity,
        sale_price=sale.sale_price,
        seller=sale.seller or actor.email.split("@")[0],
        buyer=sale.buyer,
        actor=actor,
    )


@router.delete("/{product_id}", response_model=ProductRead)
def archive_product(
    product_id: int,
    ledger: InventoryLedger = Depends(get_ledger),
    actor: CurrentUser = Depends(require_user),
):
    return ledger.archive_product(product_id, actor=actor)


@router.get("/{product_id}/history", response_model=List[HistoryRead])
def product_history(
    product_id: int,
    ledger: InventoryLedger = Depends(get_ledger),
    _user: CurrentUser = Depends(require_user),
):
    return ledger.get_history_for_product(product_id)
