"""
Sync orchestrator for the planning dashboard.

Runs the three sync triggers against the configured backend:

- manual_sync(): scan the planning directory and publish unconditionally
  (the "refresh" button, ``plandash sync``)
- periodic_sync(): publish only when the published data has gone stale
  (the cron endpoint)
- push_sync(): publish a payload scanned on another host (the webhook)

Failure Handling:
- A scan error aborts the sync before anything is published
- A publish error is reported in SyncResult.errors; batches already
  committed by the store stay committed and the next sync overwrites them
- An invalid push payload raises InvalidPayloadError before any mutation

Usage:
    from plandash.core.dashboard.sync import SyncOrchestrator

    orchestrator = SyncOrchestrator(scanner=DirectoryScanner(root), backend=backend)
    result = orchestrator.manual_sync()
    print(f"Synced {result.projects} projects, {result.tasks} tasks")
"""

import logging
import time
from typing import Any

from plandash.core.dashboard.backends import DashboardBackend
from plandash.core.dashboard.exceptions import DashboardError, ScanError
from plandash.core.dashboard.models import SyncData, SyncResult
from plandash.core.dashboard.sync.scanner import DirectoryScanner

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """
    Coordinates scanning and publishing of planning data.

    Example:
        >>> orchestrator = SyncOrchestrator(scanner, backend)
        >>> result = orchestrator.periodic_sync()
        >>> result.action
        'fresh'
    """

    def __init__(self, scanner: DirectoryScanner, backend: DashboardBackend) -> None:
        """
        Initialize the SyncOrchestrator.

        Args:
            scanner: Scanner for the local planning directory
            backend: Backend that publishes and serves the records
        """
        self.scanner = scanner
        self.backend = backend

    def _publish(self, data: SyncData, action: str, start_time: float) -> SyncResult:
        try:
            counts = self.backend.publish(data)
        except DashboardError as e:
            error_msg = f"Publishing to {self.backend.name} failed: {e}"
            logger.error(error_msg)
            return SyncResult(
                success=False,
                action="failed",
                last_sync=data.last_sync,
                errors=[error_msg],
                duration_seconds=time.time() - start_time,
            )

        result = SyncResult(
            success=True,
            action=action,
            projects=counts.get("projects", 0),
            tasks=counts.get("tasks", 0),
            outputs=counts.get("outputs", 0),
            last_sync=data.last_sync,
            cache_age=0,
            duration_seconds=time.time() - start_time,
        )
        logger.info(
            f"Sync {action}: {result.projects} projects, {result.tasks} tasks, "
            f"{result.outputs} outputs in {result.duration_seconds:.2f}s"
        )
        return result

    def _scan_and_publish(self, action: str) -> SyncResult:
        start_time = time.time()

        try:
            data = self.scanner.scan()
        except ScanError as e:
            error_msg = f"Scan failed: {e}"
            logger.error(error_msg)
            return SyncResult(
                success=False,
                action="failed",
                errors=[error_msg],
                duration_seconds=time.time() - start_time,
            )

        return self._publish(data, action, start_time)

    def manual_sync(self) -> SyncResult:
        """
        Scan and publish regardless of freshness.

        Returns:
            SyncResult with action "synced", or "failed" with errors
        """
        logger.info("Starting manual sync")
        return self._scan_and_publish("synced")

    def periodic_sync(self) -> SyncResult:
        """
        Re-scan and publish only if the published data is stale.

        Returns:
            SyncResult with action "fresh" (nothing done, ``cache_age`` set),
            "refreshed", or "failed"
        """
        if self.backend.is_fresh():
            age = self.backend.age()
            logger.info(f"Published data is fresh (age: {age}s), skipping sync")
            return SyncResult(
                success=True,
                action="fresh",
                last_sync=self.backend.last_sync(),
                cache_age=age,
            )

        logger.info("Published data is stale, refreshing")
        return self._scan_and_publish("refreshed")

    def push_sync(self, payload: Any) -> SyncResult:
        """
        Publish a payload produced by a remote scan.

        Args:
            payload: Decoded JSON body with projects, tasks and outputs

        Returns:
            SyncResult with action "pushed", or "failed" with errors

        Raises:
            InvalidPayloadError: If the payload is incomplete; nothing is
                published in that case
        """
        start_time = time.time()
        data = SyncData.from_payload(payload)
        logger.info(
            f"Received push: {len(data.projects)} projects, {len(data.tasks)} tasks, "
            f"{len(data.outputs)} outputs"
        )
        return self._publish(data, "pushed", start_time)
