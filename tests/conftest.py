import httpx
import pytest
from fastapi.testclient import TestClient

from returns_intel.config import Settings, get_settings
from returns_intel.forwarder import WebhookForwarder
from returns_intel.main import app, get_config_store, get_forwarder, get_workflow_client
from returns_intel.store import ConfigStore


class FakeWorkflowClient:
    """Stands in for WorkflowClient; returns a canned payload or raises."""

    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payload


class RecordingTransport(httpx.MockTransport):
    def __init__(self, status_code=200, error=None):
        self.requests = []
        self.status_code = status_code
        self.error = error
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(f"{self.error.__name__} on {request.url}", request=request)
        return httpx.Response(self.status_code, json={"received": True})


SCENARIO_A = [
    {
        "shipment_id": "S1",
        "delivery_state": "Delhi",
        "delivery_pincode": "110001",
        "key_flags": ["exclusive_cod_user", "rapid_returns", "high_cod_dependency"],
        "fraud_score": 8,
        "decision": "reject",
        "refund_amount": 1500,
    }
]

SCENARIO_B = {
    "latest_data": {
        "judgments": [
            {"shipment_id": "S2", "key_flags": [], "decision": "approve", "refund_amount": 300}
        ],
        "summary": {"total_analyzed": 1, "reject_count": 0},
    }
}


@pytest.fixture
def store(tmp_path):
    return ConfigStore(str(tmp_path / "config.db"))


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_client(store, transport):
    """Build a TestClient whose workflow call returns `payload` or raises `error`."""

    def _make(payload=None, error=None, settings=None):
        workflow = FakeWorkflowClient(payload=payload, error=error)
        app.dependency_overrides[get_workflow_client] = lambda: workflow
        app.dependency_overrides[get_config_store] = lambda: store
        app.dependency_overrides[get_forwarder] = lambda: WebhookForwarder(transport=transport)
        app.dependency_overrides[get_settings] = lambda: settings or Settings(default_forward_url="")
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
