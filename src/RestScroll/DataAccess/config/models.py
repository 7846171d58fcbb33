# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.config.models",
#   "purpose": "Pydantic models for HTTP, scroll and logging settings.",
#   "sections": [
#     {
#       "id": "httpclientconfig",
#       "name": "HttpClientConfig",
#       "anchor": "class-httpclientconfig",
#       "kind": "class"
#     },
#     {
#       "id": "scrollconfig",
#       "name": "ScrollConfig",
#       "anchor": "class-scrollconfig",
#       "kind": "class"
#     },
#     {
#       "id": "loggingconfig",
#       "name": "LoggingConfig",
#       "anchor": "class-loggingconfig",
#       "kind": "class"
#     },
#     {
#       "id": "restscrollconfig",
#       "name": "RestScrollConfig",
#       "anchor": "class-restscrollconfig",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pydantic v2 Configuration Models for the data-access layer

Provides strict, typed configuration for:
- HTTP client settings (base URL, timeout, retry budget, default headers)
- Infinite-scroll settings (trigger threshold, debounce, page size)
- Logging settings
- Top-level RestScrollConfig as single source of truth

All models use extra="forbid" for strict validation. Environment variables
and CLI overrides follow: file < env < CLI precedence.
"""

from __future__ import annotations

from typing import ClassVar, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HttpClientConfig(BaseModel):
    """Configuration for the REST client and its retry policy."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    base_url: str = Field(default="http://localhost:3000/api", description="API base URL")
    timeout_ms: int = Field(default=10_000, description="Per-request timeout in ms")
    retry_attempts: int = Field(
        default=3, description="Retries after the first attempt for GET/DELETE"
    )
    retry_delay_ms: int = Field(default=1000, description="Backoff base delay in ms")
    headers: Dict[str, str] = Field(default_factory=dict, description="Extra default headers")
    download_dir: str = Field(default="downloads", description="Where downloaded files are saved")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v.rstrip("/")

    @field_validator("timeout_ms")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("timeout_ms must be > 0")
        return v

    @field_validator("retry_attempts", "retry_delay_ms")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Must be >= 0")
        return v


class ScrollConfig(BaseModel):
    """Configuration for scroll-driven pagination."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    threshold: float = Field(default=200, description="Distance from end (px) that triggers a fetch")
    debounce_ms: float = Field(default=100, description="Minimum gap between evaluated samples")
    page_size: int = Field(default=20, description="Items requested per page")

    @field_validator("threshold", "debounce_ms")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Must be >= 0")
        return v

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("page_size must be > 0")
        return v


class LoggingConfig(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_format: bool = Field(default=False, description="Emit JSON lines instead of plain text")


class RestScrollConfig(BaseModel):
    """
    Single source of truth for client configuration.

    Loaded from file (YAML/JSON), overlaid with environment variables,
    and finally overridden by CLI arguments. Precedence: file < env < CLI.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid", validate_assignment=True)

    http: HttpClientConfig = Field(default_factory=HttpClientConfig)
    scroll: ScrollConfig = Field(default_factory=ScrollConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def config_hash(self) -> str:
        """
        Compute deterministic SHA256 hash of config for reproducibility.

        Returns:
            Hex-encoded SHA256 hash of normalized config JSON.
        """
        import hashlib
        import json

        normalized = json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(normalized.encode()).hexdigest()
