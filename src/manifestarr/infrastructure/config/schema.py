"""Validated settings for the resolver, browser, cache, server and logging."""

from __future__ import annotations

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
WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]

DEFAULT_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/116.0.0.0 Safari/537.36"
)


class ResolverConfig(BaseModel):
    """How identifiers are turned into manifest URLs."""

    embed_domain: str = Field(
        default="short.icu",
        description="Domain hosting the embed pages (https://<domain>/<id>).",
    )
    timeout_seconds: float = Field(
        default=20.0,
        description="How long to wait for a manifest request after navigation.",
    )
    manifest_suffix: str = Field(
        default=".m3u8",
        description="URL suffix identifying a streaming manifest request.",
    )
    single_flight: bool = Field(
        default=False,
        description=(
            "Share one in-flight resolution between concurrent requests "
            "for the same identifier."
        ),
    )

    @field_validator("embed_domain")
    @classmethod
    def _validate_domain(cls, v: str) -> str:
        v = v.strip().removeprefix("https://").removeprefix("http://").rstrip("/")
        if not v:
            raise ValueError("embed_domain must not be empty")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be > 0")
        return v


class BrowserConfig(BaseModel):
    """Playwright Chromium launch settings."""

    headless: bool = Field(default=True, description="Run Chromium headless.")
    user_agent: str = Field(
        default=DEFAULT_BROWSER_USER_AGENT,
        description="User-Agent presented to the embed site.",
    )
    launch_args: list[str] = Field(
        default=["--no-sandbox", "--disable-setuid-sandbox"],
        description="Extra Chromium command-line flags (container-friendly).",
    )
    navigation_timeout_ms: int = Field(
        default=30_000,
        description="Playwright goto() timeout in milliseconds.",
    )
    wait_until: WaitUntil = Field(
        default="networkidle",
        description="Load state navigation waits for.",
    )
    stealth: bool = Field(
        default=False,
        description="Apply playwright-stealth evasions to each session.",
    )

    @field_validator("navigation_timeout_ms")
    @classmethod
    def _validate_nav_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("navigation_timeout_ms must be > 0")
        return v


class CacheConfig(BaseModel):
    """Resolution cache settings (in-process only)."""

    ttl_seconds: int = Field(
        default=7200,
        description="How long a resolved URL is served from cache. Default 2h.",
    )

    @field_validator("ttl_seconds")
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache ttl_seconds must be >= 0")
        return v


class AppConfig(BaseModel):
    """Final, validated configuration.

    Built by load_config() from the sectioned layers (resolver, browser,
    cache, server, logging). Server and logging values are flattened onto
    this model through AliasPath.
    """

    app_name: str = Field(default="manifestarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    shutdown_drain_seconds: float = Field(
        default=25.0,
        validation_alias=AliasChoices(
            "shutdown_drain_seconds",
            AliasPath("server", "shutdown_drain_seconds"),
        ),
        description="Max time to wait for in-flight requests on shutdown.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # JSON lines in prod, human-readable elsewhere.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """Same shape a YAML config file uses (round-trips through load_config)."""
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "resolver": self.resolver.model_dump(),
            "browser": self.browser.model_dump(),
            "cache": self.cache.model_dump(),
            "server": {"shutdown_drain_seconds": self.shutdown_drain_seconds},
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """MANIFESTARR_* environment variables, each optional and flat.

    Names follow the flat keys of load_config(), e.g.
    MANIFESTARR_EMBED_DOMAIN, MANIFESTARR_RESOLVE_TIMEOUT_SECONDS,
    MANIFESTARR_BROWSER_HEADLESS, MANIFESTARR_CACHE_TTL_SECONDS.
    """

    model_config = SettingsConfigDict(
        env_prefix="MANIFESTARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    embed_domain: Optional[str] = None
    resolve_timeout_seconds: Optional[float] = None
    single_flight: Optional[bool] = None

    browser_headless: Optional[bool] = None
    browser_user_agent: Optional[str] = None
    browser_stealth: Optional[bool] = None
    navigation_timeout_ms: Optional[int] = None

    cache_ttl_seconds: Optional[int] = None
    shutdown_drain_seconds: Optional[float] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    def to_update_dict(self) -> dict[str, Any]:
        """Variables that are set, as a flat layer for load_config()."""
        return self.model_dump(exclude_none=True)
