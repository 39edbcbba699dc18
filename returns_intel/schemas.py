from pydantic import BaseModel, Field
from typing import List, Optional, Literal, Dict, Any

RiskLevel = Literal["high", "medium", "low"]


class JudgmentRecord(BaseModel):
    id: str
    order_id: Optional[str] = None
    user_id: str = "anonymous"
    user_name: str
    user_email: str = "N/A"
    user_mobile: str = "N/A"
    shipment_id: Optional[str] = None
    refund_amount: float = 0
    total_value: float = 0
    is_cod: bool = False
    delivery_city: str = "Unknown"
    delivery_state: str = "Unknown"
    delivery_pincode: str
    reason_text: str = "Return requested"
    pattern_flags: List[str] = Field(default_factory=list)
    flag_count: int = 0
    risk_level: Literal["High", "Medium", "Low"] = "Low"

    # passed through from upstream untouched
    decision: Optional[str] = None
    fraud_score: Optional[Any] = None
    confidence: Optional[Any] = None
    prime_score: Optional[Any] = None
    segment: Optional[Any] = None
    incentive: Optional[Any] = None
    recommended_action: Optional[Any] = None
    reasoning: Optional[Any] = None
    weighted_breakdown: Optional[Any] = None


class DashboardSummary(BaseModel):
    analyzed_returns: int = 0
    total_value: float = 0
    avg_return_rate: int = 0
    avg_fraud_score: float = 0
    exclusive_cod_users: int = 0
    high_risk_count: int = 0
    reject_count: int = 0
    approve_count: int = 0
    review_count: int = 0


class NormalizedResponse(BaseModel):
    """Raw judgments pulled out of whichever upstream shape arrived."""
    raw_judgments: List[Dict[str, Any]] = Field(default_factory=list)
    summary: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    shape: str = "unknown"

    @classmethod
    def empty(cls) -> "NormalizedResponse":
        return cls()


class ReturnsResponse(BaseModel):
    success: bool = True
    summary: DashboardSummary
    returns: List[JudgmentRecord]
    total_returns: int = 0
    metadata: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None


# ---------------------------
# Risk map (camelCase on the wire)
# ---------------------------

class Coordinates(BaseModel):
    lat: float
    lng: float


class PincodeRisk(BaseModel):
    pincode: str
    returns: int
    high_risk_count: int = Field(alias="highRiskCount")
    avg_fraud_score: float = Field(alias="avgFraudScore")
    risk_level: RiskLevel = Field(alias="riskLevel")
    coordinates: Coordinates

    model_config = {"populate_by_name": True}


class StateRisk(BaseModel):
    state: str
    total_returns: int = Field(alias="totalReturns")
    high_risk_count: int = Field(alias="highRiskCount")
    avg_fraud_score: float = Field(alias="avgFraudScore")
    risk_level: RiskLevel = Field(alias="riskLevel")
    center: Optional[Coordinates] = None
    pincodes: List[PincodeRisk] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class RiskMapResponse(BaseModel):
    success: bool = True
    data: List[StateRisk]
    total_states: int = Field(alias="totalStates")
    total_high_risk_locations: int = Field(alias="totalHighRiskLocations")
    fallback: bool = False

    model_config = {"populate_by_name": True}


# ---------------------------
# Merchant config
# ---------------------------

class MerchantRules(BaseModel):
    auto_approve_threshold: float = 500
    enable_ai: bool = True


class MerchantConfig(BaseModel):
    boltic_url: str = ""
    rules: MerchantRules = Field(default_factory=MerchantRules)
    updated_at: Optional[str] = None

    model_config = {
        "extra": "allow"
    }


# ---------------------------
# Return simulation
# ---------------------------

class SimulateReturnRequest(BaseModel):
    scenario: Literal["clean", "fraud"] = "clean"
    company_id: str = "1"
    reason: Optional[str] = None
    comments: Optional[str] = None


class SimulateReturnResponse(BaseModel):
    success: bool
    message: str
    payload: Dict[str, Any]
    demo_mode: bool = False
    note: Optional[str] = None
