"""
Tests for synthetic return events.
"""

from datetime import datetime, timezone

from returns_intel.schemas import MerchantRules
from returns_intel.simulate import RISK_INDICATORS, build_return_event, enrich_event

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestBuildReturnEvent:
    def test_fraud_trips_every_indicator(self):
        event = build_return_event("fraud", now=NOW)
        assert event["event"] == "return.requested"
        assert set(event["risk_indicators"]) == set(RISK_INDICATORS)
        assert all(event["risk_indicators"].values())
        assert event["customer"]["account_age_days"] == 3
        assert event["return_details"]["reason"] == "color"

    def test_clean_trips_none(self):
        event = build_return_event("clean", now=NOW)
        assert not any(event["risk_indicators"].values())
        assert event["customer"]["name"] == "Sarah Johnson"
        assert event["return_details"]["reason"] == "size"

    def test_identifiers_and_overrides(self):
        event = build_return_event("clean", company_id="99", reason="damaged", comments="cracked", now=NOW)
        assert event["company_id"] == "99"
        assert event["return_id"].startswith("RTN-")
        assert event["order_id"].startswith("ORD-2024-")
        assert event["return_details"]["reason"] == "damaged"
        assert event["return_details"]["comments"] == "cracked"
        assert event["return_details"]["requested_at"] == NOW.isoformat()
        assert event["amount"] == 1299


class TestEnrichEvent:
    def test_adds_rules_and_timestamp(self):
        event = build_return_event("fraud", now=NOW)
        enriched = enrich_event(event, MerchantRules(auto_approve_threshold=250, enable_ai=False))
        assert enriched["merchant_rules"] == {"auto_approve_threshold": 250, "enable_ai": False}
        assert enriched["timestamp"]
        assert enriched["return_id"] == event["return_id"]
        assert "merchant_rules" not in event

    def test_default_rules(self):
        enriched = enrich_event({"event": "return.requested"})
        assert enriched["merchant_rules"] == {"auto_approve_threshold": 500, "enable_ai": True}
