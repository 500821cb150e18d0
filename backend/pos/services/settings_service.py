from __future__ import annotations

from ..models import Settings
from .store_service import DataStore


class SettingsError(ValueError):
    pass


def get_settings(store: DataStore) -> Settings:
    """Stored settings merged over the defaults."""
    return store.settings()


def update_settings(store: DataStore, patch: dict) -> Settings:
    """
    Partial update. `patch` uses the stored camelCase keys and has already
    been validated (SETTINGS_POLICY); keys not mentioned keep their value and
    keys this version does not know about are left alone.
    """
    settings = store.settings()
    if "currency" in patch:
        settings.currency = patch["currency"]
    if "lowStockThreshold" in patch:
        threshold = patch["lowStockThreshold"]
        if threshold < 0:
            raise SettingsError("lowStockThreshold must be >= 0")
        settings.low_stock_threshold = threshold
    if "soundEffectsEnabled" in patch:
        settings.sound_effects_enabled = bool(patch["soundEffectsEnabled"])
    store.save_settings(settings)
    return settings
