"""
Tests for the judgment -> canonical record mapper and dashboard filters.
"""

from returns_intel.mapper import DEFAULT_PINCODE, filter_records, map_judgment, map_judgments


class TestDefaults:
    def test_empty_judgment_gets_every_default(self):
        r = map_judgment({}, 3)
        assert r.id == "return-3"
        assert r.user_id == "anonymous"
        assert r.user_name == "Anonymous User"
        assert r.user_email == "N/A"
        assert r.user_mobile == "N/A"
        assert r.refund_amount == 0
        assert r.delivery_state == "Unknown"
        assert r.delivery_city == "Unknown"
        assert r.delivery_pincode == DEFAULT_PINCODE
        assert r.reason_text == "Return requested"
        assert r.pattern_flags == []
        assert r.flag_count == 0
        assert r.is_cod is False
        assert r.decision is None
        assert r.risk_level == "Low"

    def test_custom_fallback_pincode(self):
        assert map_judgment({}, 0, fallback_pincode="Unknown").delivery_pincode == "Unknown"

    def test_non_dict_input_is_treated_as_empty(self):
        assert map_judgment(None, 1).id == "return-1"


class TestIdentity:
    def test_id_prefers_shipment_id(self):
        assert map_judgment({"shipment_id": "SHP-9"}, 0).id == "SHP-9"

    def test_fallback_ids_are_positional_and_unique(self):
        records = map_judgments([{}, {"shipment_id": "S1"}, {}])
        assert [r.id for r in records] == ["return-0", "S1", "return-2"]


class TestUserName:
    def test_explicit_name_wins(self):
        assert map_judgment({"user_name": "Asha", "user_id": "7"}, 0).user_name == "Asha"

    def test_name_from_user_id(self):
        assert map_judgment({"user_id": "7"}, 0).user_name == "User 7"

    def test_literal_undefined_user_id_is_anonymous(self):
        assert map_judgment({"user_id": "undefined"}, 0).user_name == "Anonymous User"


class TestFlags:
    def test_flag_count_matches_distinct_flags(self):
        r = map_judgment({"key_flags": ["a", "b", "a", "c"]}, 0)
        assert r.pattern_flags == ["a", "b", "c"]
        assert r.flag_count == len(r.pattern_flags) == 3
        assert r.risk_level == "High"

    def test_medium_tier(self):
        assert map_judgment({"key_flags": ["a", "b"]}, 0).risk_level == "Medium"

    def test_cod_flags_set_is_cod(self):
        assert map_judgment({"key_flags": ["high_cod_dependency"]}, 0).is_cod is True
        assert map_judgment({"key_flags": ["exclusive_cod_user"]}, 0).is_cod is True
        assert map_judgment({"key_flags": ["rapid_returns"]}, 0).is_cod is False

    def test_non_list_flags_are_ignored(self):
        assert map_judgment({"key_flags": "rapid_returns"}, 0).flag_count == 0


class TestAmountsAndPassThrough:
    def test_negative_or_garbage_refund_becomes_zero(self):
        assert map_judgment({"refund_amount": -50}, 0).refund_amount == 0
        assert map_judgment({"refund_amount": "abc"}, 0).refund_amount == 0

    def test_numeric_string_refund_is_parsed(self):
        assert map_judgment({"refund_amount": "1299.50"}, 0).refund_amount == 1299.5

    def test_scores_pass_through_unchanged(self):
        raw = {
            "fraud_score": 8,
            "confidence": 0.91,
            "prime_score": 77,
            "segment": "repeat_buyer",
            "reasoning": {"text": "t", "behavioral": "b", "history": "h"},
            "weighted_breakdown": {"text_score": 2.5, "behavioral_score": 3.0, "history_score": 2.5},
        }
        r = map_judgment(raw, 0)
        assert r.fraud_score == 8
        assert isinstance(r.fraud_score, int)
        assert r.confidence == 0.91
        assert r.prime_score == 77
        assert r.segment == "repeat_buyer"
        assert r.reasoning == raw["reasoning"]
        assert r.weighted_breakdown == raw["weighted_breakdown"]

    def test_string_and_garbage_scores_are_kept_as_sent(self):
        assert map_judgment({"fraud_score": "8", "confidence": "0.7"}, 0).fraud_score == "8"
        assert map_judgment({"fraud_score": "8", "confidence": "0.7"}, 0).confidence == "0.7"
        assert map_judgment({"fraud_score": "n/a"}, 0).fraud_score == "n/a"
        assert map_judgment({}, 0).fraud_score is None

    def test_mapping_is_deterministic(self):
        raw = {"shipment_id": "S1", "key_flags": ["x"], "refund_amount": 10}
        assert map_judgment(raw, 5) == map_judgment(raw, 5)


class TestFilters:
    def _records(self):
        return map_judgments([
            {"shipment_id": "S1", "user_name": "Asha Rao", "decision": "reject",
             "key_flags": ["a", "b", "c"], "delivery_state": "Delhi"},
            {"shipment_id": "S2", "user_name": "Ben", "decision": "approve",
             "key_flags": [], "delivery_state": "Goa", "user_mobile": "+91 98765"},
            {"shipment_id": "S3", "decision": "manual_review", "key_flags": ["a"]},
        ])

    def test_no_filters_returns_everything(self):
        assert len(filter_records(self._records())) == 3

    def test_search_matches_name_mobile_shipment_and_city(self):
        records = self._records()
        assert [r.id for r in filter_records(records, search="asha")] == ["S1"]
        assert [r.id for r in filter_records(records, search="98765")] == ["S2"]
        assert [r.id for r in filter_records(records, search="s3")] == ["S3"]
        assert [r.id for r in filter_records(records, search="goa")] == ["S2"]

    def test_status_and_risk(self):
        records = self._records()
        assert [r.id for r in filter_records(records, status="approve")] == ["S2"]
        assert [r.id for r in filter_records(records, risk="high")] == ["S1"]
        assert [r.id for r in filter_records(records, risk="medium")] == ["S3"]
        assert len(filter_records(records, status="all", risk="all")) == 3
