from .store import StoreEntry
from .auth import SessionToken
from .records import (
    CartItem,
    Expense,
    ModificationEntry,
    PaymentMethod,
    Product,
    RecordError,
    Role,
    Sale,
    Settings,
    SoundCue,
    StockHistoryEntry,
    StoredUser,
)

__all__ = [
    'StoreEntry', 'SessionToken',
    'CartItem', 'Expense', 'ModificationEntry', 'PaymentMethod', 'Product',
    'RecordError', 'Role', 'Sale', 'Settings', 'SoundCue', 'StockHistoryEntry',
    'StoredUser',
]
