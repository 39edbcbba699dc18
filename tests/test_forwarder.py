"""
Tests for best-effort event forwarding.
"""

import asyncio
import json

import httpx
import pytest

from returns_intel.forwarder import WebhookForwarder, is_configured_url

from conftest import RecordingTransport

URL = "https://hooks.example.com/returns"


class TestConfiguredUrl:
    @pytest.mark.parametrize("url,expected", [
        (URL, True),
        ("", False),
        ("   ", False),
        (None, False),
        ("https://asia-south1.workflow.boltic.app/YOUR_WORKFLOW_ID", False),
    ])
    def test_is_configured_url(self, url, expected):
        assert is_configured_url(url) is expected


class TestForward:
    def test_success_posts_json(self):
        transport = RecordingTransport()
        result = asyncio.run(WebhookForwarder(transport=transport).forward(URL, {"return_id": "RTN-1"}))

        assert result.ok is True
        assert result.status == 200
        assert len(transport.requests) == 1
        sent = transport.requests[0]
        assert sent.method == "POST"
        assert str(sent.url) == URL
        assert json.loads(sent.content) == {"return_id": "RTN-1"}

    def test_error_status_is_reported_not_raised(self):
        transport = RecordingTransport(status_code=500)
        result = asyncio.run(WebhookForwarder(transport=transport).forward(URL, {"return_id": "RTN-2"}))

        assert result.ok is False
        assert result.status == 500
        assert "received" in result.error

    def test_timeout_is_reported_not_raised(self):
        transport = RecordingTransport(error=httpx.ConnectTimeout)
        result = asyncio.run(WebhookForwarder(transport=transport).forward(URL, {"event": "return.requested"}))

        assert result.ok is False
        assert result.status is None
        assert "ConnectTimeout" in result.error
