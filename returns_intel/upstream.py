import logging
from typing import Any, Optional, Tuple

import httpx

from .normalizer import normalize_response
from .schemas import NormalizedResponse

logger = logging.getLogger(__name__)

FETCH_ERROR = "Unable to fetch latest data"


class WorkflowClient:
    """Reads the latest judgment batch from the scoring workflow."""

    def __init__(self, url: str, timeout_seconds: float = 50.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def fetch(self) -> Any:
        """GET the workflow. Raises httpx.HTTPError (timeouts included) or ValueError on a non-JSON body."""
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            resp = await client.get(self.url, headers={"Accept": "application/json"})
        resp.raise_for_status()
        return resp.json()


async def load_judgments(client: WorkflowClient) -> Tuple[NormalizedResponse, Optional[str]]:
    """
    Fetch + normalize in one step.

    Returns (normalized, error). Any transport, status or decoding failure
    degrades to an empty batch and an error message; it is never raised.
    """
    logger.info("Fetching returns intelligence data from workflow")
    try:
        payload = await client.fetch()
    except httpx.HTTPError as e:
        logger.error("Workflow fetch failed: %s: %s", type(e).__name__, e)
        return NormalizedResponse.empty(), FETCH_ERROR
    except ValueError as e:
        logger.error("Workflow returned invalid JSON: %s", e)
        return NormalizedResponse.empty(), FETCH_ERROR

    logger.info("Workflow response received")
    return normalize_response(payload), None
