"""
Tests for the push webhook client.

Uses httpx.MockTransport so no network is touched.
"""

import json

import httpx
import pytest

from plandash.core.dashboard.sync.push import PushError, WebhookClient

WEBHOOK_URL = "https://dashboard.example.com/api/webhook/sync"


def client_with(handler) -> WebhookClient:
    return WebhookClient(WEBHOOK_URL, transport=httpx.MockTransport(handler))


class TestWebhookClient:
    """Test pushing scans to a webhook."""

    def test_success(self, sample_data):
        """Test that the scan is posted as camelCase JSON."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"success": True, "stats": {"projects": 2, "tasks": 3, "outputs": 2}}
            )

        response = client_with(handler).push(sample_data)

        assert response["stats"] == {"projects": 2, "tasks": 3, "outputs": 2}
        assert seen["method"] == "POST"
        assert seen["url"] == WEBHOOK_URL
        body = seen["body"]
        assert set(body) == {"projects", "tasks", "outputs", "lastSync"}
        assert body["lastSync"] == "2025-01-15T12:00:00Z"
        assert "lastUpdated" in body["projects"][0]
        assert "acceptanceCriteria" in body["tasks"][0]

    def test_non_json_response(self, sample_data):
        client = client_with(lambda request: httpx.Response(200, text="ok"))
        assert client.push(sample_data) == {"text": "ok"}

    def test_http_error(self, sample_data):
        client = client_with(lambda request: httpx.Response(500, text="store down"))

        with pytest.raises(PushError) as exc_info:
            client.push(sample_data)

        assert exc_info.value.status_code == 500
        assert "HTTP 500: store down" in str(exc_info.value)

    def test_rejected_payload(self, sample_data):
        client = client_with(
            lambda request: httpx.Response(400, json={"error_code": "INVALID_REQUEST"})
        )

        with pytest.raises(PushError) as exc_info:
            client.push(sample_data)

        assert exc_info.value.status_code == 400

    def test_network_error(self, sample_data):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PushError, match="Network error") as exc_info:
            client_with(handler).push(sample_data)

        assert exc_info.value.status_code is None

    def test_timeout(self, sample_data):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(PushError, match="timed out"):
            client_with(handler).push(sample_data)
