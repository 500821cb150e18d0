"""
Sales Service - sale creation, amendment and stock reconciliation

Stock is only ever changed through the paths in this module (plus manual
inventory adjustments), so a product's stock equals its seed value plus the
signed sum of every delta applied here.

Known limitation: a sale and the matching stock change are two separate
writes. If the sale write lands and the stock write is rejected, the store is
left inconsistent; nothing is rolled back.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal

from ..models import CartItem, ModificationEntry, PaymentMethod, Sale
from ..money import round_money, to_decimal
from ..validation import NotFoundError
from pos.time_utils import to_utc_z, utcnow
from .store_service import DataStore, generate_id

logger = logging.getLogger(__name__)


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SaleNotFoundError(SaleError, NotFoundError):
    pass


def compute_totals(items: list[CartItem], discount) -> tuple[float, float]:
    """(total, finalTotal) where total = sum(price * qty) and finalTotal = total - discount."""
    total = Decimal("0")
    for item in items:
        total += to_decimal(item.price) * item.quantity
    total = to_decimal(round_money(total))
    return round_money(total), round_money(total - to_decimal(discount))


def _coerce_payment_method(value) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        raise SaleError(
            "Invalid payment method",
            details={"payment_method": value, "allowed": [m.value for m in PaymentMethod]},
        )


def list_sales(store: DataStore) -> list[Sale]:
    return store.sales()


def get_sale(store: DataStore, sale_id: str) -> Sale | None:
    return next((s for s in store.sales() if s.id == sale_id), None)


def apply_stock_deltas(store: DataStore, deltas: dict[str, int]) -> bool:
    """
    Add each signed delta to the matching product's stock.

    Products no longer in the catalog are skipped. No floor is applied, so
    stock can go negative after an oversell.
    """
    if not deltas:
        return True
    products = store.products()
    by_id = {p.id: p for p in products}
    touched = False
    for product_id, delta in deltas.items():
        if delta == 0:
            continue
        product = by_id.get(product_id)
        if product is None:
            logger.info("Skipping stock change for missing product %s (%+d)", product_id, delta)
            continue
        product.stock += delta
        touched = True
    if not touched:
        return True
    return store.save_products(products)


def create_sale(
    store: DataStore,
    *,
    items: list[CartItem],
    discount=0,
    payment_method,
    username: str,
) -> Sale:
    """
    Record a completed sale and take its quantities out of stock.

    The items are copied, so later edits to the cart or the catalog never
    reach the stored sale.
    """
    if not items:
        raise SaleError("Cannot create sale with no items")
    for item in items:
        if item.quantity < 1:
            raise SaleError(
                "Item quantity must be at least 1",
                details={"product_id": item.id, "quantity": item.quantity},
            )
    if discount is None:
        discount = 0
    if discount < 0:
        raise SaleError("Discount must be >= 0", details={"discount": discount})

    method = _coerce_payment_method(payment_method)
    snapshot = [replace(item) for item in items]
    total, final_total = compute_totals(snapshot, discount)

    sale = Sale(
        id=generate_id("sale"),
        items=snapshot,
        total=total,
        discount=discount,
        final_total=final_total,
        payment_method=method,
        date=to_utc_z(utcnow()),
        user=username,
    )

    # 1. Sale record, newest first
    sales = store.sales()
    sales.insert(0, sale)
    store.save_sales(sales)

    # 2. Stock
    apply_stock_deltas(store, {pid: -qty for pid, qty in sale.quantities().items()})

    return sale


def stock_deltas(original: Sale, edited: Sale) -> dict[str, int]:
    """
    Net stock change per product when `original` is replaced by `edited`.

    Positive means units come back into stock (fewer sold), negative means
    more units leave. Products whose net change is zero are omitted.
    """
    changes = original.quantities()
    for product_id, quantity in edited.quantities().items():
        changes[product_id] = changes.get(product_id, 0) - quantity
    return {pid: delta for pid, delta in changes.items() if delta != 0}


def update_sale(store: DataStore, original: Sale, edited: Sale) -> bool:
    """
    Replace a stored sale with its edited version and reconcile stock.

    Quantities are not re-validated here; callers bound each edited quantity
    by the original one. A sale that is no longer stored is a logged no-op
    (returns False).
    """
    sales = store.sales()
    index = next((i for i, s in enumerate(sales) if s.id == original.id), None)
    if index is None:
        logger.error("Sale to update not found: %s", original.id)
        return False

    sales[index] = edited
    store.save_sales(sales)

    apply_stock_deltas(store, stock_deltas(original, edited))
    return True


def amend_sale(
    store: DataStore,
    sale_id: str,
    *,
    quantities: dict[str, int],
    reason: str,
    username: str,
) -> Sale:
    """
    Edit the quantities of a stored sale (returns, corrections).

    - quantities maps product id -> new quantity; products not named keep theirs
    - each new quantity must be an integer between 0 and the sold quantity
    - lines that end at 0 are dropped; totals are recomputed, discount kept
    - an unchanged sale is returned as-is; otherwise a reason is required and
      a modification-history entry describing the change is appended
    """
    original = get_sale(store, sale_id)
    if original is None:
        raise SaleNotFoundError("Sale not found", details={"sale_id": sale_id})

    known = {item.id for item in original.items}
    unknown = [pid for pid in quantities if pid not in known]
    if unknown:
        raise SaleError("Products are not part of this sale", details={"product_ids": unknown})

    edited_items: list[CartItem] = []
    changes: list[str] = []
    for item in original.items:
        new_qty = quantities.get(item.id, item.quantity)
        if isinstance(new_qty, bool) or not isinstance(new_qty, int):
            raise SaleError("Quantity must be an integer", details={"product_id": item.id, "quantity": new_qty})
        if new_qty < 0 or new_qty > item.quantity:
            raise SaleError(
                "Quantity must be between 0 and the sold quantity",
                details={"product_id": item.id, "quantity": new_qty, "sold": item.quantity},
            )
        if new_qty != item.quantity:
            changes.append(f"{item.name}: Qty {item.quantity} -> {new_qty}")
        if new_qty > 0:
            edited_items.append(replace(item, quantity=new_qty))

    if not changes:
        return original

    reason = (reason or "").strip()
    if not reason:
        raise SaleError("Reason for modification is required.")

    total, final_total = compute_totals(edited_items, original.discount)
    entry = ModificationEntry(
        date=to_utc_z(utcnow()),
        user=username,
        reason=reason,
        changes=", ".join(changes),
    )
    edited = replace(
        original,
        items=edited_items,
        total=total,
        final_total=final_total,
        modification_history=[*original.modification_history, entry],
    )

    update_sale(store, original, edited)
    return edited
