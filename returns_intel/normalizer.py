# returns_intel/normalizer.py
# Shape-sniffing normalizer for the workflow endpoint.
# - The endpoint changed its JSON layout at least twice without a version field
# - Every known layout is flattened into (raw judgments, summary, metadata)
# - Never raises on odd input; unknown layouts yield an empty result

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from .schemas import NormalizedResponse

logger = logging.getLogger(__name__)

SHAPE_DIRECT = "direct_array"
SHAPE_ROOT_WRAPPED = "root_wrapped"
SHAPE_LEGACY_WRAPPED = "legacy_wrapped"
SHAPE_NESTED_BATCH = "nested_batch"
SHAPE_OUTPUT_LIST = "output_list"
SHAPE_UNKNOWN = "unknown"


# ---------------------------
# Small helpers
# ---------------------------

def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _looks_like_judgment(item: Any) -> bool:
    return isinstance(item, dict) and bool(item.get("shipment_id"))


def _preview(payload: Any, limit: int = 200) -> str:
    try:
        text = json.dumps(payload, default=str)
    except (TypeError, ValueError):
        text = repr(payload)
    return text[:limit]


# ---------------------------
# Shape detectors
# ---------------------------

def _from_direct_array(payload: Any) -> Optional[List[Dict[str, Any]]]:
    """Newest layout: the body is the judgment list itself."""
    if isinstance(payload, list) and payload and _looks_like_judgment(payload[0]):
        return [j for j in payload if isinstance(j, dict)]
    return None


def _find_latest_data(payload: Any) -> Tuple[Optional[Dict[str, Any]], Dict[str, Any], str]:
    """
    Returns (latest_data, metadata, shape) for the wrapped layouts:
    - {"latest_data": {...}, "metadata": {...}}
    - {"response_body": {"latest_data": {...}, "metadata": {...}}}
    """
    body = _as_dict(payload)
    if body.get("latest_data"):
        return _as_dict(body["latest_data"]), _as_dict(body.get("metadata")), SHAPE_ROOT_WRAPPED

    inner = _as_dict(body.get("response_body"))
    if inner.get("latest_data"):
        return _as_dict(inner["latest_data"]), _as_dict(inner.get("metadata")), SHAPE_LEGACY_WRAPPED

    return None, {}, SHAPE_UNKNOWN


def _from_latest_data(latest: Dict[str, Any], shape: str) -> Tuple[List[Dict[str, Any]], Dict[str, Any], str]:
    judgments = latest.get("judgments")
    raw: List[Dict[str, Any]] = []
    summary: Dict[str, Any] = {}

    if isinstance(judgments, list) and judgments:
        first = judgments[0]
        nested = first.get("returns_analysis") if isinstance(first, dict) else None
        if isinstance(nested, list):
            # very old batch format: one wrapper element holding the real list
            raw = [j for j in nested if isinstance(j, dict)]
            summary = _as_dict(first.get("batch_summary"))
            shape = SHAPE_NESTED_BATCH
        elif _looks_like_judgment(first):
            raw = [j for j in judgments if isinstance(j, dict)]

    if isinstance(latest.get("summary"), dict) and latest["summary"]:
        summary = latest["summary"]

    return raw, summary, shape


def _from_output_list(payload: Any) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    """Oldest layout: {"data": [{"output": {"judgments": [...], "summary": {...}}}, ...]}"""
    raw: List[Dict[str, Any]] = []
    summary: Dict[str, Any] = {}

    records = _as_dict(payload).get("data")
    if not isinstance(records, list):
        return raw, summary

    for record in records:
        output = _as_dict(_as_dict(record).get("output"))
        judgments = output.get("judgments")
        if isinstance(judgments, list):
            raw.extend(j for j in judgments if isinstance(j, dict))
        # last non-null summary wins
        if isinstance(output.get("summary"), dict):
            summary = output["summary"]

    return raw, summary


# ---------------------------
# Main entry used by API
# ---------------------------

def normalize_response(payload: Any) -> NormalizedResponse:
    """
    Flatten any known workflow response into a NormalizedResponse.

    Detection order: direct array, root-wrapped latest_data, legacy
    response_body.latest_data, then the data[].output list. The last one
    is only tried when the others produced no judgments.
    """
    direct = _from_direct_array(payload)
    if direct is not None:
        logger.info("Found %d judgments (direct array format)", len(direct))
        return NormalizedResponse(raw_judgments=direct, shape=SHAPE_DIRECT)

    raw: List[Dict[str, Any]] = []
    summary: Dict[str, Any] = {}
    metadata: Dict[str, Any] = {}
    shape = SHAPE_UNKNOWN

    latest, metadata, shape = _find_latest_data(payload)
    if latest is not None:
        raw, summary, shape = _from_latest_data(latest, shape)
        logger.info(
            "Found %d judgments from wrapped structure (record: %s)",
            len(raw), metadata.get("record_id", "N/A"),
        )

    if not raw:
        old_raw, old_summary = _from_output_list(payload)
        if old_raw:
            logger.info("Found %d judgments (output list format)", len(old_raw))
            return NormalizedResponse(
                raw_judgments=old_raw,
                summary=old_summary,
                metadata=metadata,
                shape=SHAPE_OUTPUT_LIST,
            )

    if not raw:
        logger.warning("Unexpected workflow response structure: %s", _preview(payload))
        return NormalizedResponse(metadata=metadata, shape=SHAPE_UNKNOWN)

    return NormalizedResponse(raw_judgments=raw, summary=summary, metadata=metadata, shape=shape)
