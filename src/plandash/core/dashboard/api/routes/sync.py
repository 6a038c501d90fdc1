"""
Sync trigger API routes.

- POST /api/refresh - Manual trigger: scan and publish now
- POST /api/webhook/sync - Push trigger: publish a payload scanned elsewhere
- GET /api/webhook/sync - Backend health and record counts
- GET /api/cron/sync - Periodic trigger: refresh only when stale
"""

import hmac
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from plandash.core.dashboard.api.deps import get_context
from plandash.core.dashboard.context import DashboardContext
from plandash.core.dashboard.exceptions import InvalidPayloadError, UnauthorizedError
from plandash.core.dashboard.models import SyncResult, isoformat, utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_on_failure(result: SyncResult, message: str) -> None:
    if not result.success:
        detail = "; ".join(result.errors) or message
        raise HTTPException(status_code=500, detail=f"{message}: {detail}")


def check_cron_secret(
    context: DashboardContext = Depends(get_context),
    authorization: str | None = Header(None),
) -> None:
    """
    Require ``Authorization: Bearer <secret>`` when a cron secret is set.

    Raises:
        UnauthorizedError: If the header is missing or wrong
    """
    secret = context.cron_secret
    if not secret:
        return
    # Headers arrive latin-1 decoded; compare the raw bytes
    expected = f"Bearer {secret}".encode()
    if authorization is None or not hmac.compare_digest(
        authorization.encode("latin-1"), expected
    ):
        raise UnauthorizedError("Invalid cron secret")


@router.post("/refresh")
def refresh(context: DashboardContext = Depends(get_context)) -> dict[str, Any]:
    """
    Scan the planning directory and publish the result.

    Example response:
        {
          "success": true,
          "message": "Dashboard synced successfully",
          "timestamp": "2025-01-15T09:00:00Z",
          "stats": {"projects": 3, "tasks": 12, "outputs": 4}
        }
    """
    logger.info("Manual refresh requested")
    result = context.orchestrator.manual_sync()
    _raise_on_failure(result, "Failed to refresh dashboard")

    return {
        "success": True,
        "message": "Dashboard synced successfully",
        "timestamp": isoformat(utc_now()),
        "stats": context.backend.counts(),
    }


@router.post("/webhook/sync")
async def webhook_sync(
    request: Request,
    context: DashboardContext = Depends(get_context),
) -> dict[str, Any]:
    """
    Publish projects, tasks and outputs sent by a remote scan.

    Raises:
        InvalidPayloadError: 400 if the body is not JSON or an array is missing
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidPayloadError(f"Invalid sync data. Body is not valid JSON: {e}") from e

    result = await run_in_threadpool(context.orchestrator.push_sync, payload)
    _raise_on_failure(result, "Failed to sync pushed data")

    return {
        "success": True,
        "message": "Dashboard synced successfully",
        "timestamp": isoformat(utc_now()),
        "stats": result.stats,
    }


@router.get("/webhook/sync")
def webhook_status(context: DashboardContext = Depends(get_context)) -> dict[str, Any]:
    """
    Report backend health and record counts.

    Example response:
        {
          "status": "active",
          "message": "Store connection healthy",
          "stats": {"projects": 3, "tasks": 12, "outputs": 4},
          "timestamp": "2025-01-15T09:00:00Z"
        }
    """
    health = context.backend.health()
    body: dict[str, Any] = {
        "status": "active" if health.connected else "disconnected",
        "message": health.message,
        "timestamp": isoformat(utc_now()),
    }
    if health.connected:
        body["stats"] = context.backend.counts()
    return body


@router.get("/cron/sync", dependencies=[Depends(check_cron_secret)])
def cron_sync(context: DashboardContext = Depends(get_context)) -> dict[str, Any]:
    """
    Refresh published data if it has gone stale.

    Example responses:
        {"success": true, "action": "cache_ok", "cacheAge": 42, ...}
        {"success": true, "action": "cache_refreshed", "stats": {...}, ...}
    """
    result = context.orchestrator.periodic_sync()
    _raise_on_failure(result, "Failed to sync")

    body: dict[str, Any] = {"success": True, "timestamp": isoformat(utc_now())}
    if result.action == "fresh":
        body["action"] = "cache_ok"
        body["cacheAge"] = result.cache_age
    else:
        body["action"] = "cache_refreshed"
        body["stats"] = result.stats
    return body
