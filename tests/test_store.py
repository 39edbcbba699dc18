"""
Tests for the per-merchant config store.
"""

import pytest

from returns_intel.schemas import MerchantConfig, MerchantRules
from returns_intel.store import KEY_PREFIX, ConfigStore, ConfigStoreError


class TestConfigStore:
    def test_unknown_merchant_gets_defaults(self, store):
        config = store.get_config("42")
        assert config.boltic_url == ""
        assert config.rules.auto_approve_threshold == 500
        assert config.rules.enable_ai is True
        assert config.updated_at is None

    def test_set_then_get(self, store):
        saved = store.set_config("1", MerchantConfig(
            boltic_url="https://hooks.example.com/returns",
            rules=MerchantRules(auto_approve_threshold=750, enable_ai=False),
        ))
        assert saved.updated_at

        loaded = store.get_config("1")
        assert loaded.boltic_url == "https://hooks.example.com/returns"
        assert loaded.rules.auto_approve_threshold == 750
        assert loaded.rules.enable_ai is False
        assert loaded.updated_at == saved.updated_at

    def test_last_write_wins(self, store):
        store.set_config("1", MerchantConfig(boltic_url="https://a.example.com"))
        store.set_config("1", MerchantConfig(boltic_url="https://b.example.com"))
        assert store.get_config("1").boltic_url == "https://b.example.com"

    def test_merchants_are_isolated(self, store):
        store.set_config("1", MerchantConfig(boltic_url="https://a.example.com"))
        assert store.get_config("2").boltic_url == ""

    def test_extra_fields_survive(self, store):
        store.set_config("1", MerchantConfig.model_validate({"boltic_url": "", "store_name": "Acme"}))
        assert store.get_config("1").model_dump()["store_name"] == "Acme"

    def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "shared.db")
        ConfigStore(path).set_config("7", MerchantConfig(boltic_url="https://c.example.com"))
        assert ConfigStore(path).get_config("7").boltic_url == "https://c.example.com"

    def test_corrupt_value_raises(self, store):
        store._set_raw(KEY_PREFIX + "9", "{not json")
        with pytest.raises(ConfigStoreError):
            store.get_config("9")

    def test_unopenable_path_raises(self, tmp_path):
        with pytest.raises(ConfigStoreError):
            ConfigStore(str(tmp_path))
