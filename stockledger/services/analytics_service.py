"""Dashboard and analytics figures derived from a ledger snapshot.

Sales figures are estimated from product records: only products that reached
Sold contribute, using their last recorded sale price and quantity.
"""
from collections import defaultdict
from datetime import date
from typing import Optional

from stockledger.core.constants import (
    RECENT_PRODUCTS_LIMIT,
    STATUS_IN_STOCK,
    STATUS_SOLD,
    UNKNOWN_PRODUCT_NAME,
)
from stockledger.core.dates import month_key
from stockledger.core.permissions import ANALYTICS_VIEW, authorize
from stockledger.schemas.analytics import (
    DashboardSummary,
    InventoryAnalytics,
    MonthlyAmount,
    PriceHistoryItem,
)
from stockledger.schemas.user import CurrentUser
from stockledger.services.ledger_service import InventoryLedger


def _units_purchased(product) -> int:
    return product.stock + (product.sale_quantity or 0)


def _sale_amount(product) -> float:
    return (product.sale_price or 0) * (product.sale_quantity or 1)


def _monthly(totals: dict) -> list[MonthlyAmount]:
    return [MonthlyAmount(month=month, amount=round(amount, 2)) for month, amount in sorted(totals.items())]


def dashboard_summary(ledger: InventoryLedger, *, low_stock_threshold: int = 2) -> DashboardSummary:
    products = ledger.products
    recent = sorted(
        products,
        key=lambda p: p.purchase_date or date.min,
        reverse=True,
    )[:RECENT_PRODUCTS_LIMIT]
    return DashboardSummary(
        total_products=len(products),
        in_stock=sum(1 for p in products if p.status == STATUS_IN_STOCK),
        sold=sum(1 for p in products if p.status == STATUS_SOLD),
        low_stock=sum(
            1 for p in products if p.status == STATUS_IN_STOCK and p.stock <= low_stock_threshold
        ),
        recent_products=recent,
    )


def inventory_analytics(ledger: InventoryLedger, *, actor: Optional[CurrentUser]) -> InventoryAnalytics:
    authorize(actor, ANALYTICS_VIEW)
    products = ledger.products
    names = {p.id: p.name for p in products}

    total_value = sum(p.price * p.stock for p in products if p.price and p.stock)
    total_purchase_cost = sum((p.price or 0) * _units_purchased(p) for p in products)
    total_purchased = sum(_units_purchased(p) for p in products)

    sold = [p for p in products if p.status == STATUS_SOLD]
    total_sales = sum(_sale_amount(p) for p in sold if p.sale_price)
    total_sold = sum(p.sale_quantity or 1 for p in sold)

    sales_by_month = defaultdict(float)
    for product in sold:
        key = month_key(product.sale_date)
        if key and product.sale_price:
            sales_by_month[key] += _sale_amount(product)

    purchases_by_month = defaultdict(float)
    for product in products:
        key = month_key(product.purchase_date)
        if key and product.price:
            purchases_by_month[key] += product.price * product.stock

    priced = sorted(
        (entry for entry in ledger.history if entry.price is not None),
        key=lambda entry: entry.timestamp,
        reverse=True,
    )
    price_history = [
        PriceHistoryItem(
            id=entry.id,
            product_id=entry.product_id,
            product_name=names.get(entry.product_id, UNKNOWN_PRODUCT_NAME),
            change=entry.change,
            price=entry.price,
            date=entry.timestamp,
        )
        for entry in priced
    ]

    return InventoryAnalytics(
        total_inventory_value=round(total_value, 2),
        total_purchase_cost=round(total_purchase_cost, 2),
        total_sales=round(total_sales, 2),
        total_purchased=total_purchased,
        total_sold=total_sold,
        average_purchase_price=round(total_purchase_cost / total_purchased, 2) if total_purchased else 0.0,
        monthly_sales=_monthly(sales_by_month),
        monthly_purchases=_monthly(purchases_by_month),
        price_history=price_history,
    )


__all__ = ["dashboard_summary", "inventory_analytics"]
