# Overview: Active cart handling and checkout for the single register.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..models import CartItem, Sale, SoundCue
from ..money import round_money, to_decimal
from ..validation import NotFoundError
from .sales_service import SaleError, create_sale
from .store_service import DataStore


class CartError(Exception):
    """Raised for cart operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass
class CartResult:
    items: list[CartItem]
    cue: SoundCue | None = None


@dataclass
class CheckoutResult:
    sale: Sale
    change: float | None = None
    cue: SoundCue | None = None


def _cue(store: DataStore, cue: SoundCue | None) -> SoundCue | None:
    """Drop the cue when sound effects are switched off."""
    if cue is None or not store.settings().sound_effects_enabled:
        return None
    return cue


def get_cart(store: DataStore) -> list[CartItem]:
    return store.cart()


def cart_totals(items: list[CartItem], discount=0) -> dict:
    subtotal = Decimal("0")
    projected_profit = Decimal("0")
    for item in items:
        subtotal += to_decimal(item.price) * item.quantity
        projected_profit += (to_decimal(item.price) - to_decimal(item.unit_cost)) * item.quantity
    return {
        "subtotal": round_money(subtotal),
        "discount": discount,
        "total": round_money(subtotal - to_decimal(discount)),
        "projected_profit": round_money(projected_profit),
        "item_count": sum(item.quantity for item in items),
    }


def add_to_cart(store: DataStore, product_id: str) -> CartResult:
    """
    Add one unit of a product.

    Refused (cart unchanged, error cue) once the cart already holds as many
    units as the product has in stock.
    """
    product = next((p for p in store.products() if p.id == product_id), None)
    if product is None:
        raise NotFoundError("Product not found")

    items = store.cart()
    existing = next((item for item in items if item.id == product_id), None)
    current = existing.quantity if existing else 0

    if product.stock <= current:
        return CartResult(items=items, cue=_cue(store, SoundCue.ERROR))

    if existing:
        existing.quantity += 1
    else:
        items.append(CartItem.from_product(product, quantity=1))
    store.save_cart(items)
    return CartResult(items=items, cue=_cue(store, SoundCue.ITEM_ADDED))


def remove_from_cart(store: DataStore, product_id: str) -> CartResult:
    items = [item for item in store.cart() if item.id != product_id]
    store.save_cart(items)
    return CartResult(items=items)


def update_quantity(store: DataStore, product_id: str, quantity: int) -> CartResult:
    """
    Set a line's quantity. Zero or less removes the line; more than the
    stock seen when the item was added clamps to that stock (error cue).
    """
    if quantity <= 0:
        return remove_from_cart(store, product_id)

    items = store.cart()
    item = next((i for i in items if i.id == product_id), None)
    if item is None:
        raise CartError("Product is not in the cart", details={"product_id": product_id})

    cue = None
    if quantity <= item.stock:
        item.quantity = quantity
    else:
        item.quantity = item.stock
        cue = SoundCue.ERROR
    store.save_cart(items)
    return CartResult(items=items, cue=_cue(store, cue))


def clear_cart(store: DataStore) -> CartResult:
    had_items = bool(store.cart())
    store.save_cart([])
    return CartResult(items=[], cue=_cue(store, SoundCue.CART_CLEARED if had_items else None))


def checkout(
    store: DataStore,
    *,
    discount=0,
    payment_method,
    username: str,
    amount_received=None,
) -> CheckoutResult:
    """
    Turn the active cart into a sale, then empty the cart.

    When amount_received is given it must cover the total; the change due is
    returned with the sale.
    """
    items = store.cart()
    if not items:
        raise CartError("Cart is empty")

    totals = cart_totals(items, discount or 0)
    change = None
    if amount_received is not None:
        if to_decimal(amount_received) < to_decimal(totals["total"]):
            raise CartError(
                "Amount received does not cover the total",
                details={"total": totals["total"], "amount_received": amount_received},
            )
        change = round_money(to_decimal(amount_received) - to_decimal(totals["total"]))

    try:
        sale = create_sale(
            store,
            items=items,
            discount=discount or 0,
            payment_method=payment_method,
            username=username,
        )
    except SaleError as exc:
        raise CartError(str(exc), details=exc.details) from exc

    store.save_cart([])
    return CheckoutResult(sale=sale, change=change, cue=_cue(store, SoundCue.SALE_COMPLETED))
