# backend/pos/services/products_service.py
"""
Products Service - catalog CRUD and manual stock adjustments

Deleting a product never touches historical sales: each sale keeps its own
copy of the product fields it was sold with.
"""
from __future__ import annotations

from ..models import Product, StockHistoryEntry
from ..validation import NotFoundError, ValidationError
from pos.time_utils import to_utc_z, utcnow
from .store_service import DataStore, generate_id

PRODUCT_MUTABLE_FIELDS = {"name", "price", "cost", "stock", "category", "image", "barcode"}


class ProductError(Exception):
    """Raised for product operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        if k == "category" and v is None:
            v = ""
        setattr(p, k, v)


def list_products(store: DataStore, query: str | None = None, category: str | None = None) -> list[Product]:
    """
    Catalog in stored order, optionally filtered.

    query matches a case-insensitive substring of the name, or any part of
    the barcode; category matches case-insensitively.
    """
    products = store.products()
    if category:
        wanted = category.strip().lower()
        products = [p for p in products if p.category.lower() == wanted]
    if query:
        needle = query.strip().lower()
        products = [
            p for p in products
            if needle in p.name.lower() or (p.barcode is not None and query.strip() in p.barcode)
        ]
    return products


def get_product(store: DataStore, product_id: str) -> Product | None:
    return next((p for p in store.products() if p.id == product_id), None)


def find_by_barcode(store: DataStore, barcode: str) -> Product | None:
    code = (barcode or "").strip()
    if not code:
        return None
    return next((p for p in store.products() if p.barcode == code), None)


def create_product(store: DataStore, *, patch: dict) -> Product:
    """Create product from a validated patch dict (name and price required)."""
    if "name" not in patch or "price" not in patch:
        raise ValidationError("name and price are required")

    product = Product(id=generate_id("prod"), name=patch["name"], price=patch["price"], stock=0)
    apply_product_patch(product, patch)

    products = store.products()
    products.append(product)
    store.save_products(products)
    return product


def update_product(store: DataStore, product_id: str, *, patch: dict) -> Product:
    products = store.products()
    product = next((p for p in products if p.id == product_id), None)
    if product is None:
        raise NotFoundError("Product not found")

    apply_product_patch(product, patch)
    store.save_products(products)
    return product


def delete_product(store: DataStore, product_id: str) -> bool:
    products = store.products()
    remaining = [p for p in products if p.id != product_id]
    if len(remaining) == len(products):
        return False
    store.save_products(remaining)
    return True


def adjust_stock(
    store: DataStore,
    product_id: str,
    *,
    new_stock: int,
    reason: str,
    username: str,
) -> Product:
    """
    Set a product's stock to a counted value and log the change.

    The history entry records the signed change and the resulting stock.
    """
    if isinstance(new_stock, bool) or not isinstance(new_stock, int):
        raise ProductError("new_stock must be an integer", details={"new_stock": new_stock})
    if new_stock < 0:
        raise ProductError("new_stock must be >= 0", details={"new_stock": new_stock})
    reason = (reason or "").strip()
    if not reason:
        raise ProductError("reason is required")

    products = store.products()
    product = next((p for p in products if p.id == product_id), None)
    if product is None:
        raise NotFoundError("Product not found")

    change = new_stock - product.stock
    product.stock_history.append(
        StockHistoryEntry(
            date=to_utc_z(utcnow()),
            user=username,
            reason=reason,
            change=change,
            new_stock=new_stock,
        )
    )
    product.stock = new_stock
    store.save_products(products)
    return product


def list_categories(store: DataStore) -> list[str]:
    seen: dict[str, str] = {}
    for p in store.products():
        if p.category and p.category.lower() not in seen:
            seen[p.category.lower()] = p.category
    return sorted(seen.values(), key=str.lower)
