"""
Configuration data models for plandash.

These models define the structure of .plandash.json and
~/.config/plandash/config.json files, with validation and type safety via
Pydantic.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DeploymentMode(str, Enum):
    """Where published records live."""

    STORE = "store"
    CACHE = "cache"


class ScanConfig(BaseModel):
    """
    Planning directory layout.

    The defaults match the conventional layout: ``planning/project-*/``
    with ``00-OVERVIEW.md``, ``tasks/T-*.md`` and ``outputs/``.
    """

    root: str = Field(default="./planning", description="Planning directory to scan")
    project_prefix: str = Field(default="project-", description="Project directory prefix")
    overview_filename: str = Field(default="00-OVERVIEW.md", description="Project overview file")
    task_prefix: str = Field(default="T", description="Task id prefix")
    output_content_limit: int | None = Field(
        default=None,
        ge=1,
        description="Truncate output bodies to this many characters",
    )


class StoreConfig(BaseModel):
    """Durable store connection."""

    url: str = Field(
        default="sqlite:///.plandash/dashboard.db",
        description="Store connection string (sqlite:///path.db or sqlite://:memory:)",
    )


class CacheConfig(BaseModel):
    """
    Staleness cache settings.

    The TTL also decides when the durable store counts as stale for the
    periodic trigger.
    """

    url: str | None = Field(
        default=None,
        description="External cache URL (redis://...); in-process cache when unset",
    )
    ttl_seconds: int = Field(default=300, ge=1, description="Seconds data stays fresh")
    key: str = Field(default="planning:dashboard:data", description="Cache key for the snapshot")


class ServerConfig(BaseModel):
    """HTTP API server settings."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=1, le=65535)
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API from a browser",
    )


class WebhookConfig(BaseModel):
    """Remote dashboard that ``plandash push`` posts to."""

    url: str | None = Field(default=None, description="Push webhook URL")
    timeout: float = Field(default=30.0, gt=0.0, description="Request timeout in seconds")


class PlandashConfig(BaseModel):
    """
    Top-level plandash configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = PlandashConfig(mode="cache", cache=CacheConfig(ttl_seconds=60))
        >>> config.mode
        <DeploymentMode.CACHE: 'cache'>
    """

    mode: DeploymentMode = Field(
        default=DeploymentMode.STORE,
        description="Publish to the durable store or to the staleness cache",
    )
    cron_secret: str | None = Field(
        default=None,
        description="Shared secret required by the cron endpoint when set",
    )

    scan: ScanConfig = Field(default_factory=ScanConfig, description="Planning directory")
    store: StoreConfig = Field(default_factory=StoreConfig, description="Durable store")
    cache: CacheConfig = Field(default_factory=CacheConfig, description="Staleness cache")
    server: ServerConfig = Field(default_factory=ServerConfig, description="HTTP API server")
    webhook: WebhookConfig = Field(default_factory=WebhookConfig, description="Push target")

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: object) -> object:
        """Accept mode names in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v
