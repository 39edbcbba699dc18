import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Literal, Optional

from .schemas import DashboardSummary, JudgmentRecord

HIGH_RISK_FLAGS = 3

# (high, medium) highRiskCount thresholds per map granularity
PINCODE_THRESHOLDS = (3, 1)
STATE_THRESHOLDS = (5, 2)

EXCLUSIVE_COD_FLAGS = ("exclusive_cod_user", "exclusive_cod")


def risk_tier(flag_count: int) -> Literal["High", "Medium", "Low"]:
    if flag_count >= HIGH_RISK_FLAGS:
        return "High"
    if flag_count >= 1:
        return "Medium"
    return "Low"


def _band(high_risk_count: int, thresholds) -> Literal["high", "medium", "low"]:
    high, medium = thresholds
    if high_risk_count >= high:
        return "high"
    if high_risk_count >= medium:
        return "medium"
    return "low"


def pincode_risk_level(high_risk_count: int) -> Literal["high", "medium", "low"]:
    return _band(high_risk_count, PINCODE_THRESHOLDS)


def state_risk_level(high_risk_count: int) -> Literal["high", "medium", "low"]:
    return _band(high_risk_count, STATE_THRESHOLDS)


def round_half_up(value: float, digits: int = 0) -> float:
    q = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def as_number(value: Any) -> Optional[float]:
    """Numbers as-is, numeric strings parsed. Bools, NaN, infinities and anything else give None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return value


def _count(value: Any) -> Optional[int]:
    n = as_number(value)
    if n is None:
        return None
    return max(0, int(n))


def _first(*values: Optional[int]) -> int:
    for v in values:
        if v is not None:
            return v
    return 0


def return_rate(reject_count: int, analyzed: int) -> int:
    if analyzed <= 0:
        return 0
    rate = int(round_half_up(100.0 * reject_count / analyzed))
    return max(0, min(100, rate))


def mean_fraud_score(records: List[JudgmentRecord]) -> float:
    if not records:
        return 0.0
    total = sum(as_number(r.fraud_score) or 0 for r in records)
    return round_half_up(total / len(records), 1)


def summarize(
    records: List[JudgmentRecord],
    summary: Optional[Dict[str, Any]] = None,
    raw_count: Optional[int] = None,
) -> DashboardSummary:
    """
    Dashboard KPIs for one batch.

    Decision counts and the mean fraud score prefer what the workflow
    reported (flat `reject_count` style first, then the older
    `decisions.<key>` block) and fall back to counting the records.
    `total_value` is always summed locally.
    """
    summary = summary if isinstance(summary, dict) else {}
    decisions = summary.get("decisions") if isinstance(summary.get("decisions"), dict) else {}

    counted = {"reject": 0, "approve": 0, "manual_review": 0}
    for r in records:
        if r.decision in counted:
            counted[r.decision] += 1

    reject_count = _first(_count(summary.get("reject_count")), _count(decisions.get("reject")), counted["reject"])
    approve_count = _first(_count(summary.get("approve_count")), _count(decisions.get("approve")), counted["approve"])
    review_count = _first(_count(summary.get("review_count")), _count(decisions.get("manual_review")), counted["manual_review"])

    analyzed = _count(summary.get("total_analyzed")) or (raw_count if raw_count is not None else len(records))
    # an upstream summary may undercount; never report fewer analyzed than decided
    analyzed = max(analyzed, reject_count + approve_count + review_count)

    avg_fraud_score = as_number(summary.get("avg_fraud_score")) or mean_fraud_score(records)

    return DashboardSummary(
        analyzed_returns=analyzed,
        total_value=sum(r.refund_amount for r in records),
        avg_return_rate=return_rate(reject_count, analyzed),
        avg_fraud_score=avg_fraud_score,
        exclusive_cod_users=sum(
            1 for r in records if any(f in r.pattern_flags for f in EXCLUSIVE_COD_FLAGS)
        ),
        high_risk_count=sum(1 for r in records if r.flag_count >= HIGH_RISK_FLAGS),
        reject_count=reject_count,
        approve_count=approve_count,
        review_count=review_count,
    )
