"""
Inventory Ledger

Owns the in-memory ``products`` and ``history`` collections and mediates every
product mutation. Invariants:

- A product is created In Stock with stock >= 1.
- A sale never takes more units than the product holds; selling the last unit
  (or archiving) moves it to Sold with stock 0. There is no way back.
- Every mutation appends at least one history entry. Entries are never changed.
- A sale appends two entries, the generic update line and the sale line, in that
  order; the sale line is written only after the stock update committed.
- Caches change only once every write of an operation succeeded.
- Mutations, reloads and the cleanup sweep hold the ledger lock from the stock
  check through the cache commit, so no check ever sees a stale product.
"""
from __future__ import annotations

import logging
import threading
from datetime import date, timedelta
from typing import Callable, Iterable, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from stockledger.adapters.persistence import DocumentStore
from stockledger.core.constants import (
    CHANGE_PRICE_UPDATED,
    CHANGE_PRODUCT_ADDED,
    CHANGE_PRODUCT_ARCHIVED,
    CHANGE_PRODUCT_UPDATED,
    CHANGE_STOCK_UPDATED,
    DEFAULT_SELLER,
    HISTORY_COLLECTION,
    PRODUCTS_COLLECTION,
    STATUS_IN_STOCK,
    STATUS_SOLD,
)
from stockledger.core.dates import utc_today
from stockledger.core.errors import (
    DuplicateProductIdError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from stockledger.core.permissions import (
    PRODUCT_ARCHIVE,
    PRODUCT_CREATE,
    PRODUCT_SELL,
    PRODUCT_UPDATE,
    authorize,
)
from stockledger.schemas.product import (
    HistoryRead,
    ProductCreate,
    ProductRead,
    ProductUpdate,
    SaleRequest,
)
from stockledger.schemas.user import CurrentUser

logger = logging.getLogger(__name__)


def _validate(schema: type[BaseModel], data) -> BaseModel:
    if isinstance(data, schema):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise ValidationError(
            "Invalid {}: {}".format(schema.__name__, ", ".join(fields) or "payload"),
            errors=exc.errors(include_url=False),
        ) from exc


def describe_update(current: ProductRead, updates: dict) -> tuple[str, Optional[float]]:
    """Pick the single history line for an update: stock beats price beats generic."""
    if "stock" in updates and updates["stock"] != current.stock:
        return CHANGE_STOCK_UPDATED, updates.get("price", current.price)
    if "price" in updates and updates["price"] != current.price:
        return CHANGE_PRICE_UPDATED, updates["price"]
    return CHANGE_PRODUCT_UPDATED, current.price


def describe_sale(quantity: int, seller: str, buyer: Optional[str]) -> str:
    change = "{} units sold by {}".format(quantity, seller)
    if buyer:
        change += " to {}".format(buyer)
    return change


class InventoryLedger:
    def __init__(
        self,
        store: DocumentStore,
        *,
        retention_days: int = 30,
        enforce_unique_product_id: bool = True,
        today: Callable[[], date] = utc_today,
    ):
        self._store = store
        self._retention_days = retention_days
        self._enforce_unique_product_id = enforce_unique_product_id
        self._today = today
        self._lock = threading.RLock()
        self._products: list[ProductRead] = []
        self._history: list[HistoryRead] = []

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def products(self) -> tuple[ProductRead, ...]:
        with self._lock:
            return tuple(self._products)

    @property
    def history(self) -> tuple[HistoryRead, ...]:
        with self._lock:
            return tuple(self._history)

    def get_product_by_id(self, product_id: int) -> Optional[ProductRead]:
        with self._lock:
            for product in self._products:
                if product.id == product_id:
                    return product
        return None

    def get_history_for_product(self, product_id: int) -> list[HistoryRead]:
        with self._lock:
            return [entry for entry in self._history if entry.product_id == product_id]

    def search_products(
        self,
        query: Optional[str] = None,
        *,
        category: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[ProductRead]:
        needle = (query or "").strip().casefold()
        matches = []
        for product in self.products:
            if category is not None and product.category != category:
                continue
            if status is not None and product.status != status:
                continue
            if needle:
                haystack = (product.name, product.product_id, product.seller, product.buyer)
                if not any(needle in value.casefold() for value in haystack if value):
                    continue
            matches.append(product)
        return matches

    def refresh(self) -> None:
        with self._lock:
            products = [ProductRead.model_validate(r) for r in self._store.list_all(PRODUCTS_COLLECTION)]
            history = [HistoryRead.model_validate(r) for r in self._store.list_all(HISTORY_COLLECTION)]
            self._products = products
            self._history = history
        logger.info("Loaded %d products and %d history entries.", len(products), len(history))

    def bootstrap(self) -> None:
        self.cleanup_old_sold_products()
        self.refresh()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_product(self, data, *, actor: Optional[CurrentUser]) -> ProductRead:
        authorize(actor, PRODUCT_CREATE)
        payload = _validate(ProductCreate, data)
        record = payload.model_dump()
        record.update(status=STATUS_IN_STOCK, archived=False)

        with self._lock:
            self._ensure_unique_product_id(payload.product_id)
            new_id = self._store.put(PRODUCTS_COLLECTION, record)
            product = self._load_product(new_id)
            entry = self._append_history(new_id, CHANGE_PRODUCT_ADDED, price=payload.price)
            self._commit([product], [entry])

        logger.info(
            "Product %s (%s) added by %s with stock %d.",
            product.id, product.product_id, actor.email, product.stock,
        )
        return product

    def update_product(self, product_id: int, updates, *, actor: Optional[CurrentUser]) -> ProductRead:
        authorize(actor, PRODUCT_UPDATE)
        with self._lock:
            current = self._require_product(product_id)
            changes = _validate(ProductUpdate, updates).model_dump(exclude_unset=True)

            if current.status == STATUS_SOLD and changes.get("stock", 0) > 0:
                raise ValidationError("Sold products cannot be restocked.")
            if "product_id" in changes and changes["product_id"] != current.product_id:
                self._ensure_unique_product_id(changes["product_id"], exclude_id=current.id)

            product, entry = self._write_update(current, changes)
            self._commit([product], [entry])
        logger.info("Product %s updated by %s: %s.", product.id, actor.email, entry.change)
        return product

    def mark_as_sold(
        self,
        product_id: int,
        sale_date,
        quantity: int,
        sale_price: Optional[float] = None,
        seller: Optional[str] = None,
        buyer: Optional[str] = None,
        *,
        actor: Optional[CurrentUser],
    ) -> ProductRead:
        authorize(actor, PRODUCT_SELL)
        sale = _validate(
            SaleRequest,
            {
                "sale_date": sale_date,
                "quantity": quantity,
                "sale_price": sale_price,
                "seller": seller,
                "buyer": buyer,
            },
        )
        seller_name = sale.seller or DEFAULT_SELLER
        buyer_name = sale.buyer or None

        with self._lock:
            current = self._require_product(product_id)
            if sale.quantity > current.stock:
                raise InsufficientStockError(current.id, sale.quantity, current.stock)

            price = sale.sale_price if sale.sale_price is not None else current.price
            remaining = max(0, current.stock - sale.quantity)

            product, update_entry = self._write_update(
                current,
                {
                    "status": STATUS_IN_STOCK if remaining > 0 else STATUS_SOLD,
                    "stock": remaining,
                    "sale_date": sale.sale_date,
                    "sale_quantity": sale.quantity,
                    "sale_price": price,
                    "seller": seller_name,
                    "buyer": buyer_name,
                },
            )
            sale_entry = self._append_history(
                current.id,
                describe_sale(sale.quantity, seller_name, buyer_name),
                price=price,
                seller=seller_name,
                buyer=buyer_name,
            )
            self._commit([product], [update_entry, sale_entry])

        logger.info(
            "Product %s: %d units sold by %s, %d remaining (%s).",
            product.id, sale.quantity, seller_name, product.stock, product.status,
        )
        return product

    def archive_product(self, product_id: int, *, actor: Optional[CurrentUser]) -> ProductRead:
        authorize(actor, PRODUCT_ARCHIVE)
        with self._lock:
            current = self._require_product(product_id)
            product, update_entry = self._write_update(
                current, {"status": STATUS_SOLD, "stock": 0, "archived": True}
            )
            archive_entry = self._append_history(current.id, CHANGE_PRODUCT_ARCHIVED)
            self._commit([product], [update_entry, archive_entry])

        logger.info("Product %s archived by %s.", product.id, actor.email)
        return product

    def cleanup_old_sold_products(self, *, today: Optional[date] = None) -> int:
        """Flag Sold products whose sale is older than the retention window as archived.

        Only the flag of the matched products changes in the cache; everything else
        in it stays as the mutations committed it. Never raises.
        """
        try:
            cutoff = (today or self._today()) - timedelta(days=self._retention_days)
            with self._lock:
                stale = self._store.list_where(
                    PRODUCTS_COLLECTION,
                    ("status", "==", STATUS_SOLD),
                    ("sale_date", "<=", cutoff),
                )
                for record in stale:
                    self._store.update(PRODUCTS_COLLECTION, record["id"], {"archived": True})
                self._flag_archived({record["id"] for record in stale})
        except Exception:
            logger.exception("Error archiving old sold products")
            return 0

        logger.info("Archived %d old sold products", len(stale))
        return len(stale)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_product(self, product_id: int) -> ProductRead:
        product = self.get_product_by_id(product_id)
        if product is None:
            raise NotFoundError("Product {} not found.".format(product_id))
        return product

    def _ensure_unique_product_id(self, sku: str, *, exclude_id: Optional[int] = None) -> None:
        if not self._enforce_unique_product_id:
            return
        for product in self.products:
            if product.product_id == sku and product.id != exclude_id:
                raise DuplicateProductIdError("Product ID {} already exists.".format(sku))

    def _load_product(self, product_id: int) -> ProductRead:
        record = self._store.get(PRODUCTS_COLLECTION, product_id)
        if record is None:
            raise NotFoundError("Product {} vanished from the store.".format(product_id))
        return ProductRead.model_validate(record)

    def _write_update(self, current: ProductRead, updates: dict) -> tuple[ProductRead, HistoryRead]:
        change, price = describe_update(current, updates)
        self._store.update(PRODUCTS_COLLECTION, current.id, updates)
        product = self._load_product(current.id)
        entry = self._append_history(current.id, change, price=price)
        return product, entry

    def _append_history(
        self,
        product_id: int,
        change: str,
        *,
        price: Optional[float] = None,
        seller: Optional[str] = None,
        buyer: Optional[str] = None,
    ) -> HistoryRead:
        record = {"product_id": product_id, "change": change}
        if price is not None:
            record["price"] = price
        if seller:
            record["seller"] = seller
        if buyer:
            record["buyer"] = buyer
        entry_id = self._store.put(HISTORY_COLLECTION, record)
        stored = self._store.get(HISTORY_COLLECTION, entry_id)
        if stored is None:
            raise NotFoundError("History entry {} vanished from the store.".format(entry_id))
        return HistoryRead.model_validate(stored)

    def _flag_archived(self, product_ids: set[int]) -> None:
        if not product_ids:
            return
        with self._lock:
            self._products = [
                p.model_copy(update={"archived": True}) if p.id in product_ids else p
                for p in self._products
            ]

    def _commit(self, products: Iterable[ProductRead], entries: Iterable[HistoryRead]) -> None:
        with self._lock:
            by_id = {product.id: product for product in products}
            merged = [by_id.pop(p.id, p) for p in self._products]
            merged.extend(by_id.values())
            self._products = merged
            self._history.extend(entries)


__all__ = ["InventoryLedger", "describe_sale", "describe_update"]
