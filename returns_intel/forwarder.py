"""
Outbound delivery of return events to the merchant's automation URL.

Delivery is best effort. `forward` never raises; it logs and reports
what happened in a ForwardResult. Routes schedule it as a background
task so the HTTP response is sent before (and regardless of) delivery.
There is no ordering guarantee between the two.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

PLACEHOLDER_MARKER = "YOUR_WORKFLOW_ID"


@dataclass
class ForwardResult:
    ok: bool
    status: Optional[int] = None
    error: str = ""


def is_configured_url(url: Optional[str]) -> bool:
    """False for empty URLs and the sample placeholder from the setup docs."""
    if not url or not url.strip():
        return False
    return PLACEHOLDER_MARKER not in url


class WebhookForwarder:
    def __init__(self, timeout_seconds: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def forward(self, url: str, payload: Dict[str, Any]) -> ForwardResult:
        event_id = payload.get("return_id") or payload.get("event") or "-"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                resp = await client.post(url, json=payload, headers={"Content-Type": "application/json"})
        except httpx.HTTPError as e:
            logger.error("Forward failed for %s: %s: %s", event_id, type(e).__name__, e)
            return ForwardResult(ok=False, error=str(e) or type(e).__name__)

        if resp.is_error:
            body = resp.text[:500]
            logger.error("Forward failed for %s: status=%s body=%s", event_id, resp.status_code, body)
            return ForwardResult(ok=False, status=resp.status_code, error=body)

        logger.info("Forwarded %s | status: %s", event_id, resp.status_code)
        return ForwardResult(ok=True, status=resp.status_code)
