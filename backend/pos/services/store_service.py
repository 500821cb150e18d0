# Overview: Key-value data store for the POS collections (products, sales, users, expenses, cart, settings).

"""
Data Store

The whole application state lives in a single shared key-value medium: one
key per collection, each value a JSON document that is replaced wholesale on
every write. There are no transactions between keys; the last write wins.

Invariants:
- Reads never raise. A missing key or a value that does not parse as the
  expected structure reads as an empty collection (default settings for the
  settings key).
- Writes are best-effort. A rejected write is logged, reported through the
  notice hook and reported back as False; it is never re-raised.
- Settings are merged over defaults on read; unknown keys survive.
"""
from __future__ import annotations

import json
import logging
import random
import string
import time
from typing import Callable, Iterable, Protocol

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import (
    CartItem,
    Expense,
    Product,
    RecordError,
    Role,
    Sale,
    Settings,
    StoreEntry,
    StoredUser,
)

logger = logging.getLogger(__name__)


PRODUCTS_KEY = "pos-products"
SALES_KEY = "pos-sales"
USERS_KEY = "pos-users"
EXPENSES_KEY = "pos-expenses"
CART_KEY = "pos-cart"
SETTINGS_KEY = "pos-settings"

ALL_KEYS = (PRODUCTS_KEY, SALES_KEY, USERS_KEY, EXPENSES_KEY, CART_KEY, SETTINGS_KEY)

# Keys first-run seeding must create; cart and settings fall back to defaults
SEEDED_KEYS = (PRODUCTS_KEY, USERS_KEY, SALES_KEY, EXPENSES_KEY)

WRITE_FAILURE_NOTICE = "Error: Could not save data. Storage might be full or disabled."

_ID_ALPHABET = string.digits + string.ascii_lowercase


class StorageError(Exception):
    """Raised by a backend when the underlying medium fails."""


class StorageWriteError(StorageError):
    """The medium rejected a write (quota exceeded, read-only, disabled)."""


class KeyValueBackend(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryKeyValueBackend:
    """
    Dict-backed medium. Used by tests and throwaway sessions.

    `fail_writes_for` lists keys whose writes are rejected, to exercise the
    partial-failure paths.
    """

    def __init__(self, initial: dict[str, str] | None = None, fail_writes_for: Iterable[str] = ()):
        self.data: dict[str, str] = dict(initial or {})
        self.fail_writes_for = set(fail_writes_for)

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if key in self.fail_writes_for:
            raise StorageWriteError(f"write rejected for {key}")
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self.data)


class SqlKeyValueBackend:
    """Medium stored in the pos_entries table; each set commits on its own."""

    def get(self, key: str) -> str | None:
        try:
            entry = db.session.get(StoreEntry, key)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError(str(exc)) from exc
        return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        try:
            entry = db.session.get(StoreEntry, key)
            if entry is None:
                db.session.add(StoreEntry(key=key, value=value))
            else:
                entry.value = value
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageWriteError(str(exc)) from exc

    def delete(self, key: str) -> None:
        try:
            db.session.query(StoreEntry).filter_by(key=key).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageWriteError(str(exc)) from exc

    def keys(self) -> list[str]:
        try:
            return [row.key for row in db.session.query(StoreEntry.key).all()]
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError(str(exc)) from exc


def generate_id(prefix: str) -> str:
    """`{prefix}-{epoch millis}-{9 random base36 chars}`; unique in practice, not guaranteed."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def demo_products() -> list[Product]:
    rows = [
        ("Laptop Pro", 1200, 800, 50, "Electronics", "1234567890123", "laptop"),
        ("Wireless Mouse", 25, 15, 200, "Accessories", "2345678901234", "mouse"),
        ("Coffee Mug", 15, 7, 150, "Kitchenware", "3456789012345", "mug"),
        ("Notebook", 5, 2, 500, "Stationery", "4567890123456", "notebook"),
        ("T-Shirt", 20, 12, 100, "Apparel", "5678901234567", "shirt"),
        ("Water Bottle", 10, 4, 300, "Accessories", "6789012345678", "bottle"),
        ("Backpack", 50, 30, 80, "Bags", "7890123456789", "backpack"),
        ("Headphones", 150, 90, 60, "Electronics", "8901234567890", "headphones"),
    ]
    return [
        Product(
            id=generate_id("prod"),
            name=name,
            price=price,
            cost=cost,
            stock=stock,
            category=category,
            barcode=barcode,
            image=f"https://picsum.photos/seed/{seed}/200",
        )
        for name, price, cost, stock, category, barcode, seed in rows
    ]


def demo_users() -> list[StoredUser]:
    # Plaintext on purpose: equality check only, not a credential store
    return [
        StoredUser(id=1, username="admin", password="password", role=Role.ADMIN),
        StoredUser(id=2, username="cashier", password="password", role=Role.CASHIER),
    ]


class DataStore:
    """
    Typed access to the collections in a KeyValueBackend.

    `notify` receives a human-readable message whenever a write is rejected.
    """

    def __init__(self, backend: KeyValueBackend, notify: Callable[[str], None] | None = None):
        self.backend = backend
        self.notify = notify

    # -- raw JSON ---------------------------------------------------------

    def _read_json(self, key: str):
        try:
            raw = self.backend.get(key)
        except StorageError:
            logger.exception("Failed to read key %s", key)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Stored value for %s is not valid JSON; treating as empty", key)
            return None

    def _write_json(self, key: str, value) -> bool:
        try:
            self.backend.set(key, json.dumps(value))
        except StorageError:
            logger.exception("Failed to save key %s", key)
            if self.notify is not None:
                self.notify(WRITE_FAILURE_NOTICE)
            return False
        return True

    def has_key(self, key: str) -> bool:
        try:
            return self.backend.get(key) is not None
        except StorageError:
            return False

    # -- collections ------------------------------------------------------

    def read(self, key: str, record_cls) -> list:
        data = self._read_json(key)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Stored value for %s is not a list; treating as empty", key)
            return []
        try:
            return [record_cls.from_dict(row) for row in data]
        except (RecordError, AttributeError, TypeError) as exc:
            logger.warning("Stored value for %s is malformed (%s); treating as empty", key, exc)
            return []

    def write(self, key: str, records: Iterable) -> bool:
        return self._write_json(key, [record.to_dict() for record in records])

    def products(self) -> list[Product]:
        return self.read(PRODUCTS_KEY, Product)

    def save_products(self, products: Iterable[Product]) -> bool:
        return self.write(PRODUCTS_KEY, products)

    def sales(self) -> list[Sale]:
        return self.read(SALES_KEY, Sale)

    def save_sales(self, sales: Iterable[Sale]) -> bool:
        return self.write(SALES_KEY, sales)

    def users(self) -> list[StoredUser]:
        return self.read(USERS_KEY, StoredUser)

    def save_users(self, users: Iterable[StoredUser]) -> bool:
        return self.write(USERS_KEY, users)

    def expenses(self) -> list[Expense]:
        return self.read(EXPENSES_KEY, Expense)

    def save_expenses(self, expenses: Iterable[Expense]) -> bool:
        return self.write(EXPENSES_KEY, expenses)

    def cart(self) -> list[CartItem]:
        return self.read(CART_KEY, CartItem)

    def save_cart(self, items: Iterable[CartItem]) -> bool:
        return self.write(CART_KEY, items)

    # -- settings ---------------------------------------------------------

    def settings(self) -> Settings:
        return Settings.from_dict(self._read_json(SETTINGS_KEY))

    def save_settings(self, settings: Settings) -> bool:
        return self._write_json(SETTINGS_KEY, settings.to_dict())

    # -- lifecycle --------------------------------------------------------

    def initialize(self, seed_demo: bool = True) -> list[str]:
        """
        First-run seeding. Only keys that are absent are written, so this is
        safe to call on every start. Returns the keys that were seeded.
        """
        seeded = []
        defaults = [
            (PRODUCTS_KEY, demo_products() if seed_demo else []),
            (USERS_KEY, demo_users() if seed_demo else []),
            (SALES_KEY, []),
            (EXPENSES_KEY, []),
        ]
        for key, records in defaults:
            if self.has_key(key):
                continue
            if self.write(key, records):
                seeded.append(key)
        return seeded

    def is_initialized(self) -> bool:
        return all(self.has_key(key) for key in SEEDED_KEYS)

    def clear(self, keys: Iterable[str]) -> None:
        for key in keys:
            try:
                self.backend.delete(key)
            except StorageError:
                logger.exception("Failed to clear key %s", key)
                if self.notify is not None:
                    self.notify(WRITE_FAILURE_NOTICE)
