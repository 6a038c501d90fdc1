"""
Runtime wiring for one running dashboard instance.

DashboardContext owns the scanner, the single configured backend and the
orchestrator. The API app and the CLI commands receive a context instead of
reaching for module-level globals; whoever creates the context closes it.

Example:
    with DashboardContext.from_config(load_config()) as context:
        result = context.orchestrator.manual_sync()
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from plandash.core.config.models import DeploymentMode, PlandashConfig
from plandash.core.dashboard.backends import CacheBackend, DashboardBackend, StoreBackend
from plandash.core.dashboard.cache import MemoryCache, RedisCache, SnapshotCache
from plandash.core.dashboard.db.store import ProjectStore
from plandash.core.dashboard.sync.orchestrator import SyncOrchestrator
from plandash.core.dashboard.sync.scanner import DirectoryScanner

logger = logging.getLogger(__name__)


def build_scanner(config: PlandashConfig, project_dir: Path | None = None) -> DirectoryScanner:
    """
    Build the directory scanner described by the config.

    A relative scan root is resolved against ``project_dir`` (cwd by default).
    """
    root = Path(config.scan.root)
    if not root.is_absolute() and project_dir is not None:
        root = project_dir / root
    return DirectoryScanner(
        root,
        project_prefix=config.scan.project_prefix,
        overview_filename=config.scan.overview_filename,
        task_prefix=config.scan.task_prefix,
        output_content_limit=config.scan.output_content_limit,
    )


def build_cache(config: PlandashConfig) -> SnapshotCache:
    """Redis when a cache URL is configured, else the in-process cache."""
    if config.cache.url:
        return RedisCache(
            config.cache.url,
            key=config.cache.key,
            ttl_seconds=config.cache.ttl_seconds,
        )
    return MemoryCache(ttl_seconds=config.cache.ttl_seconds)


@dataclass
class DashboardContext:
    """Scanner, backend and orchestrator for one instance."""

    config: PlandashConfig
    scanner: DirectoryScanner
    backend: DashboardBackend
    orchestrator: SyncOrchestrator

    @classmethod
    def from_config(
        cls,
        config: PlandashConfig,
        project_dir: Path | None = None,
    ) -> "DashboardContext":
        """
        Wire up a context for the configured deployment mode.

        Nothing connects here: the store opens its connection on first use.

        Args:
            config: Loaded configuration
            project_dir: Base for a relative scan root

        Returns:
            Ready-to-use DashboardContext
        """
        scanner = build_scanner(config, project_dir)

        backend: DashboardBackend
        if config.mode == DeploymentMode.CACHE:
            backend = CacheBackend(build_cache(config), loader=scanner.scan)
        else:
            backend = StoreBackend(
                ProjectStore(config.store.url),
                ttl_seconds=config.cache.ttl_seconds,
            )

        logger.info(f"Using {backend.name} backend, scanning {scanner.root}")
        return cls(
            config=config,
            scanner=scanner,
            backend=backend,
            orchestrator=SyncOrchestrator(scanner, backend),
        )

    @property
    def cron_secret(self) -> str | None:
        return self.config.cron_secret

    def close(self) -> None:
        """Tear down the backend connection."""
        self.backend.close()

    def __enter__(self) -> "DashboardContext":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
