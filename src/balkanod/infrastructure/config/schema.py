"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
ProxyApi = Literal["invidious", "piped"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class CacheConfig(BaseSettings):
    """Response cache configuration (backend-agnostic)."""

    backend: Literal["memory", "diskcache", "redis"] = Field(
        default="memory",
        description="Cache backend: 'memory' (in-process LRU), 'diskcache' or 'redis'",
    )

    # Memory settings
    max_entries: int = Field(
        default=2048,
        description="Max entries kept by the memory backend (LRU eviction)",
    )

    # Diskcache settings
    directory: Path = Field(
        default=Path("./.cache/balkanod"),
        alias="dir",
        description="Diskcache SQLite DB path",
    )
    size_limit_bytes: int = Field(
        default=256 * 1024 * 1024,
        description="Diskcache size limit; least recently used entries are culled",
    )

    # Redis settings
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only when backend=redis)",
    )
    key_prefix: str = Field(
        default="balkanod:",
        description="Prefix for every key written to Redis",
    )

    # Shared settings
    ttl_seconds: int = Field(
        default=3600,
        description="TTL for cached stream resolutions (seconds). 0 = disabled.",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (semaphore limit)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("max_entries", "max_concurrent")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("ttl_seconds")
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("ttl_seconds must be >= 0")
        return v


class ProxyEndpoint(BaseModel):
    """One interchangeable video-hosting proxy instance."""

    url: str = Field(description="Base URL without trailing slash.")
    api: ProxyApi = Field(
        default="invidious",
        description="API flavour spoken by the instance.",
    )

    @field_validator("url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"endpoint url must be http(s): {v!r}")
        return v


def _default_endpoints() -> list[ProxyEndpoint]:
    return [
        ProxyEndpoint(url="https://invidious.io.lol", api="invidious"),
        ProxyEndpoint(url="https://inv.nadeko.net", api="invidious"),
        ProxyEndpoint(url="https://invidious.privacyredirect.com", api="invidious"),
        ProxyEndpoint(url="https://yewtu.be", api="invidious"),
        ProxyEndpoint(url="https://invidious.nerdvpn.de", api="invidious"),
        ProxyEndpoint(url="https://pipedapi.kavin.rocks", api="piped"),
        ProxyEndpoint(url="https://api-piped.mha.fi", api="piped"),
        ProxyEndpoint(url="https://pipedapi.tokhmi.xyz", api="piped"),
    ]


class ProvidersConfig(BaseModel):
    """Stream provider chain configuration."""

    proxy_endpoints: list[ProxyEndpoint] = Field(
        default_factory=_default_endpoints,
        description="Hosting-proxy instances, tried in this order.",
    )
    per_call_timeout_seconds: float = Field(
        default=3.0,
        description="Time budget for one upstream call.",
    )
    provider_timeout_seconds: float = Field(
        default=30.0,
        description="Ceiling for one provider's whole resolve() call.",
    )
    breaker_failure_threshold: int = Field(
        default=3,
        description="Consecutive failures before an endpoint is skipped.",
    )
    breaker_cooldown_seconds: float = Field(
        default=300.0,
        description="How long a tripped endpoint is skipped.",
    )
    archive_enabled: bool = Field(
        default=True,
        description="Query the Internet Archive for items with an archive id.",
    )
    archive_timeout_seconds: float = Field(
        default=5.0,
        description="Time budget for each Internet Archive call.",
    )
    archive_search_enabled: bool = Field(
        default=True,
        description="Search the Internet Archive by title for items without an archive id.",
    )
    archive_search_max_queries: int = Field(
        default=2,
        description="Search terms tried per title, title-bound terms first.",
    )
    embedded_fallback_enabled: bool = Field(
        default=True,
        description="Offer the player's embedded video widget as last resort.",
    )
    binge_group_prefix: str = Field(
        default="balkan",
        description="Prefix of the binge grouping key attached to streams.",
    )

    @field_validator(
        "per_call_timeout_seconds",
        "provider_timeout_seconds",
        "archive_timeout_seconds",
        "breaker_cooldown_seconds",
    )
    @classmethod
    def _validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("breaker_failure_threshold")
    @classmethod
    def _validate_threshold(cls, v: int) -> int:
        if v < 1:
            raise ValueError("breaker_failure_threshold must be >= 1")
        return v

    @field_validator("archive_search_max_queries")
    @classmethod
    def _validate_search_queries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("archive_search_max_queries must be >= 0")
        return v


class MetadataConfig(BaseModel):
    """Metadata enrichment for the detail page."""

    enabled: bool = Field(
        default=True,
        description="Enrich detail pages from Cinemeta/TMDB.",
    )
    cinemeta_url: str = Field(
        default="https://v3-cinemeta.strem.io",
        description="Cinemeta base URL.",
    )
    tmdb_api_key: str | None = Field(
        default=None,
        description="TMDB API key; when set, TMDB replaces Cinemeta.",
    )
    timeout_seconds: float = Field(
        default=5.0,
        description="Time budget for one metadata call.",
    )
    ttl_seconds: int = Field(
        default=86_400,
        description="How long metadata lookups are cached.",
    )


class CatalogDefinition(BaseModel):
    """One browsable catalog in the manifest."""

    id: str
    type: Literal["movie", "series"]
    name: str


def _default_catalogs() -> list[CatalogDefinition]:
    return [
        CatalogDefinition(id="balkan-movies", type="movie", name="Balkan Movies"),
        CatalogDefinition(id="balkan-series", type="series", name="Balkan Series"),
    ]


class StremioConfig(BaseModel):
    """Addon manifest and catalog settings."""

    addon_id: str = Field(default="org.balkan.movies")
    addon_name: str = Field(default="Balkan On Demand")
    addon_version: str = Field(default="0.1.0")
    addon_description: str = Field(
        default="Ex-Yugoslav movies and series from curated sources.",
    )
    logo: str | None = Field(default=None)
    page_size: int = Field(
        default=100,
        description="Catalog rows per page.",
    )
    genres: list[str] = Field(
        default_factory=lambda: [
            "Drama",
            "Comedy",
            "War",
            "Crime",
            "Romance",
            "Thriller",
        ],
        description="Genre options offered in the manifest.",
    )
    catalogs: list[CatalogDefinition] = Field(
        default_factory=_default_catalogs,
        description="Catalogs listed in the manifest.",
    )
    id_prefixes: list[str] = Field(
        default_factory=lambda: ["bilosta:", "yt:", "archive:", "tt"],
        description="Id prefixes this addon answers meta and stream requests for.",
    )

    @field_validator("page_size")
    @classmethod
    def _validate_page_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("page_size must be > 0")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    YAML is sectioned (http/logging/content/cache/providers/metadata/stremio).
    Environment variables come in through EnvOverrides so load.py controls
    precedence (defaults < YAML < ENV < CLI).
    """

    # General
    app_name: str = Field(default="balkanod", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default timeout of the shared HTTP client.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
    )
    http_user_agent: str = Field(
        default="BalkanOnDemand/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description="console/json. If unset, derived from environment.",
    )

    # Content snapshot (YAML section: content.*)
    content_path: Path = Field(
        default=Path("./data/content.json"),
        validation_alias=AliasChoices(
            "content_path",
            AliasPath("content", "path"),
        ),
        description="JSON snapshot with movies and series.",
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    stremio: StremioConfig = Field(default_factory=StremioConfig)

    @field_validator("content_path", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "content": {"path": str(self.content_path)},
            "cache": self.cache.model_dump(mode="json", by_alias=True),
            "providers": self.providers.model_dump(mode="json"),
            "metadata": self.metadata.model_dump(mode="json"),
            "stremio": self.stremio.model_dump(mode="json"),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    load.py reads BALKANOD_* variables through this model, keeps the ones
    that were set and merges them over YAML/defaults.

    Examples:
    - BALKANOD_CONTENT_PATH
    - BALKANOD_PER_CALL_TIMEOUT_SECONDS
    - BALKANOD_TMDB_API_KEY
    - BALKANOD_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="BALKANOD_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    content_path: Optional[Path] = None

    cache_backend: Optional[Literal["memory", "diskcache", "redis"]] = None
    cache_dir: Optional[Path] = None
    cache_ttl_seconds: Optional[int] = None
    cache_redis_url: Optional[str] = None

    per_call_timeout_seconds: Optional[float] = None
    provider_timeout_seconds: Optional[float] = None

    metadata_enabled: Optional[bool] = None
    tmdb_api_key: Optional[str] = None

    @field_validator("content_path", "cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
