from typing import Any, Dict, Iterable, List, Optional

from .schemas import JudgmentRecord
from .scoring import risk_tier

DEFAULT_PINCODE = "400001"
UNKNOWN = "Unknown"

COD_FLAGS = ("high_cod_dependency", "exclusive_cod_user")

SEARCH_FIELDS = ("user_name", "user_mobile", "shipment_id", "delivery_city")


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _amount(value: Any) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if amount != amount or amount < 0:  # NaN or negative
        return 0.0
    return amount


def _flags(value: Any) -> List[str]:
    # flags are a set; keep first-seen order for stable output
    if not isinstance(value, (list, tuple, set)):
        return []
    seen: List[str] = []
    for flag in value:
        if flag is None:
            continue
        flag = str(flag)
        if flag not in seen:
            seen.append(flag)
    return seen


def _user_name(raw: Dict[str, Any]) -> str:
    explicit = _text(raw.get("user_name"))
    if explicit:
        return explicit
    user_id = _text(raw.get("user_id"))
    if not user_id or user_id == "undefined":
        return "Anonymous User"
    return f"User {user_id}"


def map_judgment(raw: Dict[str, Any], index: int, fallback_pincode: str = DEFAULT_PINCODE) -> JudgmentRecord:
    """Turn one upstream judgment into a canonical record. Pure; index only feeds the fallback id."""
    raw = raw if isinstance(raw, dict) else {}

    shipment_id = _text(raw.get("shipment_id"))
    flags = _flags(raw.get("key_flags"))
    state = _text(raw.get("delivery_state")) or UNKNOWN

    return JudgmentRecord(
        id=shipment_id or f"return-{index}",
        order_id=_text(raw.get("order_id")),
        user_id=_text(raw.get("user_id")) or "anonymous",
        user_name=_user_name(raw),
        user_email=_text(raw.get("user_email")) or "N/A",
        user_mobile=_text(raw.get("user_mobile")) or "N/A",
        shipment_id=shipment_id,
        refund_amount=_amount(raw.get("refund_amount")),
        total_value=_amount(raw.get("total_value")),
        is_cod=any(f in flags for f in COD_FLAGS),
        delivery_city=state,
        delivery_state=state,
        delivery_pincode=_text(raw.get("delivery_pincode")) or fallback_pincode,
        reason_text=_text(raw.get("explanation")) or "Return requested",
        pattern_flags=flags,
        flag_count=len(flags),
        risk_level=risk_tier(len(flags)),
        decision=_text(raw.get("decision")),
        fraud_score=raw.get("fraud_score"),
        confidence=raw.get("confidence"),
        prime_score=raw.get("prime_score"),
        segment=raw.get("segment"),
        incentive=raw.get("incentive"),
        recommended_action=raw.get("recommended_action"),
        reasoning=raw.get("reasoning"),
        weighted_breakdown=raw.get("weighted_breakdown"),
    )


def map_judgments(raw_judgments: Iterable[Dict[str, Any]], fallback_pincode: str = DEFAULT_PINCODE) -> List[JudgmentRecord]:
    return [
        map_judgment(raw, index, fallback_pincode=fallback_pincode)
        for index, raw in enumerate(raw_judgments)
    ]


# ---------------------------
# Dashboard filters
# ---------------------------

def filter_records(
    records: List[JudgmentRecord],
    search: Optional[str] = None,
    status: Optional[str] = None,
    risk: Optional[str] = None,
) -> List[JudgmentRecord]:
    """
    Narrow the dashboard list the same way the table filters do:
    - search: substring over name / mobile / shipment id / city
    - status: exact decision match ("all" disables)
    - risk: high / medium / low tier ("all" disables)
    """
    out = list(records)

    q = (search or "").strip().lower()
    if q:
        out = [
            r for r in out
            if any(q in (getattr(r, f) or "").lower() for f in SEARCH_FIELDS)
        ]

    if status and status != "all":
        out = [r for r in out if r.decision == status]

    if risk and risk != "all":
        out = [r for r in out if r.risk_level.lower() == risk.lower()]

    return out
