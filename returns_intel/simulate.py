import random
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from .schemas import MerchantRules

RISK_INDICATORS = ("new_account", "high_return_rate", "mismatched_address", "temp_email", "rapid_returns")

PRODUCT = {
    "id": "prod_shirt_001",
    "name": "Premium Cotton Classic Fit Shirt",
    "variant": "Size: L • Color: Navy Blue",
    "price": 1299,
    "category": "Apparel",
}

CUSTOMERS = {
    "fraud": {
        "id": "cust_suspicious_001",
        "name": "John Doe",
        "email": "temp_email_xyz@tempmail.com",
        "phone": "+91 0000000000",
        "account_age_days": 3,
        "previous_returns": 12,
        "total_orders": 14,
        "return_rate": "85.7%",
    },
    "clean": {
        "id": "cust_verified_042",
        "name": "Sarah Johnson",
        "email": "sarah.johnson@gmail.com",
        "phone": "+91 9876543210",
        "account_age_days": 847,
        "previous_returns": 1,
        "total_orders": 23,
        "return_rate": "4.3%",
    },
}

IMAGES = {
    "fraud": ["https://images.pexels.com/photos/991509/pexels-photo-991509.jpeg"],
    "clean": ["https://images.pexels.com/photos/220453/pexels-photo-220453.jpeg"],
}


def _base36(n: int) -> str:
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    out = ""
    while n:
        n, r = divmod(n, 36)
        out = digits[r] + out
    return out or "0"


def _order_id() -> str:
    return f"ORD-2024-{random.randint(10000, 99999)}"


def build_return_event(
    scenario: str = "clean",
    company_id: str = "1",
    reason: Optional[str] = None,
    comments: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Synthetic `return.requested` event; the fraud scenario trips every risk indicator."""
    is_fraud = scenario == "fraud"
    key = "fraud" if is_fraud else "clean"
    now = now or datetime.now(timezone.utc)
    customer = dict(CUSTOMERS[key])

    return {
        "event": "return.requested",
        "company_id": company_id,
        "return_id": f"RTN-{_base36(int(time.time() * 1000))}",
        "order_id": _order_id(),
        "customer_id": customer["id"],
        "customer": customer,
        "order": {
            "id": _order_id(),
            "total": PRODUCT["price"],
            "placed_at": (now - timedelta(days=2 if is_fraud else 5)).isoformat(),
        },
        "product": dict(PRODUCT),
        "return_details": {
            "reason": reason or ("color" if is_fraud else "size"),
            "reason_text": "Wrong color received" if is_fraud else "Size too small",
            "comments": comments or (
                "Product is totally different from what I ordered!!!" if is_fraud
                else "Would like to exchange for XL if possible."
            ),
            "requested_at": now.isoformat(),
        },
        "risk_indicators": {name: is_fraud for name in RISK_INDICATORS},
        "amount": PRODUCT["price"],
        "scenario": scenario,
        "images": list(IMAGES[key]),
    }


def enrich_event(event: Dict[str, Any], rules: Optional[MerchantRules] = None) -> Dict[str, Any]:
    """Attach the merchant's approval rules and a send timestamp before forwarding."""
    rules = rules or MerchantRules()
    return {
        **event,
        "merchant_rules": rules.model_dump(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
