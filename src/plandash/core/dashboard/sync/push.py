"""
Client for the push webhook.

Used when the planning directory lives on a different host than the
dashboard: scan locally, then POST the result to ``/api/webhook/sync``.

Example:
    client = WebhookClient("https://dashboard.example.com/api/webhook/sync")
    response = client.push(scanner.scan())
    print(response["stats"])
"""

import logging
from typing import Any

import httpx

from plandash.core.dashboard.exceptions import DashboardError
from plandash.core.dashboard.models import SyncData

logger = logging.getLogger(__name__)

DEFAULT_PUSH_TIMEOUT = 30.0


class PushError(DashboardError):
    """
    Raised when the webhook rejects a push or cannot be reached.

    Attributes:
        status_code: HTTP status, or None for transport errors
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class WebhookClient:
    """
    Posts sync payloads to a dashboard webhook.

    Args:
        url: Webhook endpoint
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_PUSH_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def push(self, data: SyncData) -> dict[str, Any]:
        """
        Send a sync payload.

        Args:
            data: Scanned planning data

        Returns:
            Decoded JSON response (``{"text": ...}`` if the body is not JSON)

        Raises:
            PushError: On a non-2xx response or a network failure
        """
        payload = data.model_dump(mode="json", by_alias=True, exclude_none=True)
        logger.info(
            f"Pushing {len(data.projects)} projects, {len(data.tasks)} tasks, "
            f"{len(data.outputs)} outputs to {self.url}"
        )

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.url, json=payload)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise PushError(f"Request timed out after {self.timeout}s: {e}") from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise PushError(f"HTTP {status_code}: {e.response.text}", status_code) from e
        except httpx.RequestError as e:
            raise PushError(f"Network error: {e}") from e

        try:
            body: dict[str, Any] = response.json()
        except ValueError:
            body = {"text": response.text}

        logger.info(f"Push accepted with HTTP {response.status_code}")
        return body
