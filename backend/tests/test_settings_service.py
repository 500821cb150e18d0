import json
import unittest

from pos.services import settings_service
from pos.services.settings_service import SettingsError
from pos.services.store_service import SETTINGS_KEY, DataStore, MemoryKeyValueBackend
from pos.validation import SETTINGS_POLICY, ValidationError, validate_payload


class SettingsServiceTests(unittest.TestCase):
    def setUp(self):
        self.backend = MemoryKeyValueBackend()
        self.store = DataStore(self.backend)

    def test_defaults_when_nothing_stored(self):
        settings = settings_service.get_settings(self.store)
        self.assertEqual(settings.to_dict(), {
            "currency": "LYD ",
            "lowStockThreshold": 10,
            "soundEffectsEnabled": True,
        })

    def test_partial_update_keeps_other_values(self):
        settings_service.update_settings(self.store, {"currency": "$"})
        settings = settings_service.update_settings(self.store, {"soundEffectsEnabled": False})

        self.assertEqual(settings.currency, "$")
        self.assertFalse(settings.sound_effects_enabled)
        self.assertEqual(settings.low_stock_threshold, 10)

    def test_update_preserves_unknown_keys(self):
        self.backend.data[SETTINGS_KEY] = json.dumps({"language": "ar", "currency": "LYD "})
        settings_service.update_settings(self.store, {"lowStockThreshold": 3})

        raw = json.loads(self.backend.data[SETTINGS_KEY])
        self.assertEqual(raw["language"], "ar")
        self.assertEqual(raw["lowStockThreshold"], 3)

    def test_negative_threshold_rejected(self):
        with self.assertRaises(SettingsError):
            settings_service.update_settings(self.store, {"lowStockThreshold": -1})


class SettingsPolicyTests(unittest.TestCase):
    def test_currency_keeps_trailing_space(self):
        patch = validate_payload(payload={"currency": "LYD "}, policy=SETTINGS_POLICY, partial=True)
        self.assertEqual(patch["currency"], "LYD ")

    def test_rejects_unknown_and_mistyped_fields(self):
        with self.assertRaises(ValidationError):
            validate_payload(payload={"theme": "dark"}, policy=SETTINGS_POLICY, partial=True)
        with self.assertRaises(ValidationError):
            validate_payload(payload={"lowStockThreshold": -2}, policy=SETTINGS_POLICY, partial=True)
        with self.assertRaises(ValidationError):
            validate_payload(payload={"soundEffectsEnabled": "maybe"}, policy=SETTINGS_POLICY, partial=True)
