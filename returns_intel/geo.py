"""
Geographic roll-up for the risk map.

Records are bucketed State -> Pincode. Pincodes get synthetic coordinates
from a zone heuristic (no geocoder); a pincode bucket with no usable
points sits on its state's centroid instead.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .mapper import UNKNOWN
from .schemas import Coordinates, JudgmentRecord, PincodeRisk, StateRisk
from .scoring import HIGH_RISK_FLAGS, as_number, pincode_risk_level, round_half_up, state_risk_level

logger = logging.getLogger(__name__)

INDIA_CENTER = (20.5937, 78.9629)

# (first-two-digit range), (lat base, lat span), (lng base, lng span)
PINCODE_ZONES = [
    ("north", (10, 17), (28, 8), (70, 15)),
    ("east", (18, 28), (20, 10), (85, 8)),
    ("west", (30, 39), (18, 12), (68, 12)),
    ("south", (40, 68), (8, 15), (76, 8)),
]
DEFAULT_ZONE = ("default", None, (20, 15), (75, 15))

# approximate centroids of states / union territories
STATE_CENTERS: Dict[str, Tuple[float, float]] = {
    "Maharashtra": (19.7515, 75.7139),
    "Karnataka": (15.3173, 75.7139),
    "Tamil Nadu": (11.1271, 78.6569),
    "Delhi": (28.7041, 77.1025),
    "Uttar Pradesh": (26.8467, 80.9462),
    "West Bengal": (22.9868, 87.8550),
    "Gujarat": (22.2587, 71.1924),
    "Rajasthan": (27.0238, 74.2179),
    "Madhya Pradesh": (22.9734, 78.6569),
    "Andhra Pradesh": (15.9129, 79.0193),
    "Telangana": (18.1124, 79.0193),
    "Kerala": (10.8505, 76.9386),
    "Punjab": (31.1471, 75.3412),
    "Haryana": (29.0588, 76.7176),
    "Bihar": (25.0961, 85.3131),
    "Odisha": (20.9517, 85.0975),
    "Chhattisgarh": (21.2787, 81.8661),
    "Jharkhand": (23.6102, 85.2799),
    "Uttarakhand": (30.0668, 78.2676),
    "Himachal Pradesh": (31.1048, 77.1734),
    "Jammu and Kashmir": (34.0837, 74.8216),
    "Goa": (15.2993, 74.1240),
    "Mizoram": (23.1645, 92.9376),
    "Manipur": (24.6637, 93.9063),
    "Meghalaya": (25.4670, 91.3662),
    "Nagaland": (26.1584, 94.5624),
    "Arunachal Pradesh": (28.2180, 94.7278),
    "Sikkim": (27.5330, 88.5122),
    "Tripura": (23.9408, 91.9882),
    "Assam": (26.2006, 92.9376),
    "Puducherry": (11.9416, 79.8083),
    "Chandigarh": (30.7333, 76.7794),
    "Andaman and Nicobar Islands": (11.7401, 92.6586),
    "Dadra and Nagar Haveli and Daman and Diu": (20.1809, 73.0169),
    "Lakshadweep": (10.5667, 72.6369),
    "Ladakh": (34.1526, 77.5772),
    UNKNOWN: INDIA_CENTER,
}


def is_valid_pincode(pincode: Optional[str]) -> bool:
    return bool(pincode) and len(pincode) == 6 and pincode.isascii() and pincode.isdigit()


def state_center(state: str) -> Tuple[float, float]:
    return STATE_CENTERS.get(state, INDIA_CENTER)


def _zone_for(pincode: str):
    prefix = int(pincode[:2])
    for zone in PINCODE_ZONES:
        lo, hi = zone[1]
        if lo <= prefix <= hi:
            return zone
    return DEFAULT_ZONE


def pincode_coordinates(pincode: str) -> Tuple[float, float]:
    """
    Deterministic (lat, lng) for a pincode.

    The first two digits pick a zone, the last four interpolate across that
    zone's bounding box. Anything that is not six ASCII digits lands on the
    centre of India.
    """
    if not is_valid_pincode(pincode):
        return INDIA_CENTER

    fraction = int(pincode[2:]) / 10000
    _name, _range, (lat_base, lat_span), (lng_base, lng_span) = _zone_for(pincode)
    lat = lat_base + fraction * lat_span
    lng = lng_base + fraction * lng_span
    return round(lat, 6), round(lng, 6)


# ---------------------------
# Aggregation
# ---------------------------

class _Bucket:
    __slots__ = ("returns", "high_risk", "fraud_total", "points")

    def __init__(self):
        self.returns = 0
        self.high_risk = 0
        self.fraud_total = 0.0
        self.points: List[Tuple[float, float]] = []

    def add(self, record: JudgmentRecord):
        self.returns += 1
        self.fraud_total += as_number(record.fraud_score) or 0
        if record.flag_count >= HIGH_RISK_FLAGS:
            self.high_risk += 1

    @property
    def avg_fraud_score(self) -> float:
        if not self.returns:
            return 0.0
        return round_half_up(self.fraud_total / self.returns, 1)


def aggregate_by_location(records: List[JudgmentRecord]) -> List[StateRisk]:
    """
    Group records by delivery state then pincode.

    "Unknown" is an ordinary key while counting; the Unknown pincode bucket
    is dropped from the per-state list at the end but its returns still
    count toward the state totals.
    """
    states: Dict[str, _Bucket] = {}
    pincodes: Dict[str, Dict[str, _Bucket]] = {}

    for record in records:
        state = record.delivery_state or UNKNOWN
        pincode = record.delivery_pincode or UNKNOWN

        state_bucket = states.setdefault(state, _Bucket())
        pin_bucket = pincodes.setdefault(state, {}).setdefault(pincode, _Bucket())

        state_bucket.add(record)
        pin_bucket.add(record)
        if is_valid_pincode(pincode):
            pin_bucket.points.append(pincode_coordinates(pincode))

    result: List[StateRisk] = []
    for state, bucket in states.items():
        center_lat, center_lng = state_center(state)

        pins: List[PincodeRisk] = []
        for pincode, pin in pincodes[state].items():
            if pincode == UNKNOWN:
                continue
            if pin.points:
                lat = round(sum(p[0] for p in pin.points) / len(pin.points), 6)
                lng = round(sum(p[1] for p in pin.points) / len(pin.points), 6)
            else:
                lat, lng = center_lat, center_lng
            pins.append(PincodeRisk(
                pincode=pincode,
                returns=pin.returns,
                high_risk_count=pin.high_risk,
                avg_fraud_score=pin.avg_fraud_score,
                risk_level=pincode_risk_level(pin.high_risk),
                coordinates=Coordinates(lat=lat, lng=lng),
            ))

        result.append(StateRisk(
            state=state,
            total_returns=bucket.returns,
            high_risk_count=bucket.high_risk,
            avg_fraud_score=bucket.avg_fraud_score,
            risk_level=state_risk_level(bucket.high_risk),
            center=Coordinates(lat=center_lat, lng=center_lng),
            pincodes=pins,
        ))

    logger.debug("Aggregated %d records into %d states", len(records), len(result))
    return result


def count_high_risk_locations(states: List[StateRisk]) -> int:
    return sum(1 for s in states for p in s.pincodes if p.risk_level == "high")


# ---------------------------
# Demo dataset shown when the workflow is unreachable
# ---------------------------

def _pin(pincode, returns, high_risk, score, lat, lng) -> PincodeRisk:
    return PincodeRisk(
        pincode=pincode,
        returns=returns,
        high_risk_count=high_risk,
        avg_fraud_score=score,
        risk_level=pincode_risk_level(high_risk),
        coordinates=Coordinates(lat=lat, lng=lng),
    )


def fallback_risk_data() -> List[StateRisk]:
    rows = [
        ("Maharashtra", 45, 8, 6.2, [
            _pin("400001", 12, 3, 7.1, 18.9220, 72.8347),
            _pin("411001", 8, 2, 5.8, 18.5204, 73.8567),
        ]),
        ("Delhi", 32, 5, 5.9, [
            _pin("110001", 15, 3, 6.4, 28.6139, 77.2090),
            _pin("110092", 6, 1, 4.2, 28.6505, 77.2311),
        ]),
        ("Karnataka", 28, 4, 5.1, [
            _pin("560001", 14, 2, 5.7, 12.9716, 77.5946),
        ]),
    ]
    out = []
    for state, total, high_risk, score, pins in rows:
        lat, lng = state_center(state)
        out.append(StateRisk(
            state=state,
            total_returns=total,
            high_risk_count=high_risk,
            avg_fraud_score=score,
            risk_level=state_risk_level(high_risk),
            center=Coordinates(lat=lat, lng=lng),
            pincodes=pins,
        ))
    return out
