"""
Record shapes persisted in the key-value store.

Each record serializes to the camelCase JSON layout the stored collections
have always used (finalTotal, paymentMethod, stockHistory, ...), so existing
data keeps loading across upgrades. `from_dict` raises RecordError when a
stored value does not have the expected shape; the store turns that into an
empty collection.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    MULTIPLE = "multiple"


class Role(str, Enum):
    ADMIN = "admin"
    CASHIER = "cashier"


class SoundCue(str, Enum):
    ITEM_ADDED = "addItem"
    SALE_COMPLETED = "completeSale"
    CART_CLEARED = "clearCart"
    ERROR = "error"


EXPENSE_CATEGORIES = (
    "rent", "utilities", "salaries", "marketing", "cogs",
    "shipping", "maintenance", "supplies", "taxes_fees", "other",
)

STOCK_ADJUSTMENT_REASONS = ("stocktake", "damaged", "received", "returned", "other")

DEFAULT_CURRENCY = "LYD "
DEFAULT_LOW_STOCK_THRESHOLD = 10


class RecordError(ValueError):
    """Stored value does not match the expected record shape."""


def _field(data: Any, key: str) -> Any:
    if not isinstance(data, dict):
        raise RecordError("record must be an object")
    if key not in data:
        raise RecordError(f"missing field: {key}")
    return data[key]


def _number(value: Any, key: str):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RecordError(f"{key} must be a number")
    return value


def _optional_number(data: dict, key: str):
    value = data.get(key)
    if value is None:
        return None
    return _number(value, key)


def _text(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise RecordError(f"{key} must be a string")
    return value


def _optional_text(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    return _text(value, key)


def _list(value: Any, key: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise RecordError(f"{key} must be a list")
    return value


@dataclass
class StockHistoryEntry:
    date: str
    user: str
    reason: str
    change: int
    new_stock: int

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "user": self.user,
            "reason": self.reason,
            "change": self.change,
            "newStock": self.new_stock,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "StockHistoryEntry":
        return cls(
            date=_text(_field(data, "date"), "date"),
            user=_text(_field(data, "user"), "user"),
            reason=_text(_field(data, "reason"), "reason"),
            change=_number(_field(data, "change"), "change"),
            new_stock=_number(_field(data, "newStock"), "newStock"),
        )


@dataclass
class Product:
    id: str
    name: str
    price: float
    stock: int
    category: str = ""
    cost: float | None = None
    image: str | None = None
    barcode: str | None = None
    stock_history: list[StockHistoryEntry] = field(default_factory=list)

    @property
    def unit_cost(self) -> float:
        """Cost for profit purposes; missing cost counts as zero."""
        return self.cost or 0

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "stock": self.stock,
            "category": self.category,
        }
        if self.cost is not None:
            data["cost"] = self.cost
        if self.image is not None:
            data["image"] = self.image
        if self.barcode is not None:
            data["barcode"] = self.barcode
        if self.stock_history:
            data["stockHistory"] = [entry.to_dict() for entry in self.stock_history]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Product":
        return cls(
            id=_text(_field(data, "id"), "id"),
            name=_text(_field(data, "name"), "name"),
            price=_number(_field(data, "price"), "price"),
            stock=_number(_field(data, "stock"), "stock"),
            category=_text(data.get("category") or "", "category"),
            cost=_optional_number(data, "cost"),
            image=_optional_text(data, "image"),
            barcode=_optional_text(data, "barcode"),
            stock_history=[
                StockHistoryEntry.from_dict(entry)
                for entry in _list(data.get("stockHistory"), "stockHistory")
            ],
        )


@dataclass
class CartItem:
    """Frozen copy of a product's fields plus the quantity being sold."""
    id: str
    name: str
    price: float
    quantity: int
    stock: int = 0
    category: str = ""
    cost: float | None = None
    image: str | None = None
    barcode: str | None = None

    @property
    def unit_cost(self) -> float:
        return self.cost or 0

    @classmethod
    def from_product(cls, product: Product, quantity: int = 1) -> "CartItem":
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            quantity=quantity,
            stock=product.stock,
            category=product.category,
            cost=product.cost,
            image=product.image,
            barcode=product.barcode,
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "stock": self.stock,
            "category": self.category,
        }
        if self.cost is not None:
            data["cost"] = self.cost
        if self.image is not None:
            data["image"] = self.image
        if self.barcode is not None:
            data["barcode"] = self.barcode
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "CartItem":
        return cls(
            id=_text(_field(data, "id"), "id"),
            name=_text(_field(data, "name"), "name"),
            price=_number(_field(data, "price"), "price"),
            quantity=_number(_field(data, "quantity"), "quantity"),
            stock=_number(data.get("stock", 0), "stock"),
            category=_text(data.get("category") or "", "category"),
            cost=_optional_number(data, "cost"),
            image=_optional_text(data, "image"),
            barcode=_optional_text(data, "barcode"),
        )


@dataclass
class ModificationEntry:
    date: str
    user: str
    reason: str
    changes: str

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "user": self.user,
            "reason": self.reason,
            "changes": self.changes,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ModificationEntry":
        return cls(
            date=_text(_field(data, "date"), "date"),
            user=_text(_field(data, "user"), "user"),
            reason=_text(_field(data, "reason"), "reason"),
            changes=_text(_field(data, "changes"), "changes"),
        )


@dataclass
class Sale:
    id: str
    items: list[CartItem]
    total: float
    discount: float
    final_total: float
    payment_method: PaymentMethod
    date: str
    user: str
    modification_history: list[ModificationEntry] = field(default_factory=list)

    def quantities(self) -> dict[str, int]:
        """Sold quantity per product id (lines for the same id are summed)."""
        result: dict[str, int] = {}
        for item in self.items:
            result[item.id] = result.get(item.id, 0) + item.quantity
        return result

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "discount": self.discount,
            "finalTotal": self.final_total,
            "paymentMethod": self.payment_method.value,
            "date": self.date,
            "user": self.user,
        }
        if self.modification_history:
            data["modificationHistory"] = [entry.to_dict() for entry in self.modification_history]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Sale":
        method = _field(data, "paymentMethod")
        try:
            payment_method = PaymentMethod(method)
        except ValueError:
            raise RecordError(f"unknown payment method: {method!r}")
        return cls(
            id=_text(_field(data, "id"), "id"),
            items=[CartItem.from_dict(item) for item in _list(_field(data, "items"), "items")],
            total=_number(_field(data, "total"), "total"),
            discount=_number(data.get("discount", 0), "discount"),
            final_total=_number(_field(data, "finalTotal"), "finalTotal"),
            payment_method=payment_method,
            date=_text(_field(data, "date"), "date"),
            user=_text(_field(data, "user"), "user"),
            modification_history=[
                ModificationEntry.from_dict(entry)
                for entry in _list(data.get("modificationHistory"), "modificationHistory")
            ],
        )


@dataclass
class Expense:
    id: str
    category: str
    description: str
    amount: float
    date: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "description": self.description,
            "amount": self.amount,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Expense":
        return cls(
            id=_text(_field(data, "id"), "id"),
            category=_text(data.get("category") or "other", "category"),
            description=_text(data.get("description") or "", "description"),
            amount=_number(_field(data, "amount"), "amount"),
            date=_text(_field(data, "date"), "date"),
        )


@dataclass
class StoredUser:
    id: int
    username: str
    role: Role
    password: str | None = None

    def public_dict(self) -> dict:
        """User as handed to callers: never includes the password."""
        return {"id": self.id, "username": self.username, "role": self.role.value}

    def to_dict(self) -> dict:
        data = self.public_dict()
        if self.password is not None:
            data["password"] = self.password
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "StoredUser":
        user_id = _field(data, "id")
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise RecordError("id must be an integer")
        role = _field(data, "role")
        try:
            role = Role(role)
        except ValueError:
            raise RecordError(f"unknown role: {role!r}")
        return cls(
            id=user_id,
            username=_text(_field(data, "username"), "username"),
            role=role,
            password=_optional_text(data, "password"),
        )


@dataclass
class Settings:
    currency: str = DEFAULT_CURRENCY
    low_stock_threshold: float = DEFAULT_LOW_STOCK_THRESHOLD
    sound_effects_enabled: bool = True
    # Keys written by other versions; carried through untouched
    extra: dict = field(default_factory=dict)

    KNOWN_KEYS = ("currency", "lowStockThreshold", "soundEffectsEnabled")

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            "currency": self.currency,
            "lowStockThreshold": self.low_stock_threshold,
            "soundEffectsEnabled": self.sound_effects_enabled,
        })
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Settings":
        """Merge a stored settings object over the defaults."""
        settings = cls()
        if not isinstance(data, dict):
            return settings

        currency = data.get("currency")
        if isinstance(currency, str):
            settings.currency = currency

        threshold = data.get("lowStockThreshold")
        if isinstance(threshold, (int, float)) and not isinstance(threshold, bool) and threshold >= 0:
            settings.low_stock_threshold = threshold

        sound = data.get("soundEffectsEnabled")
        if isinstance(sound, bool):
            settings.sound_effects_enabled = sound

        settings.extra = {k: v for k, v in data.items() if k not in cls.KNOWN_KEYS}
        return settings
