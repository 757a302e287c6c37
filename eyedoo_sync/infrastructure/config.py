"""Configuration objects for the infrastructure layer."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from ..domain.exceptions import AppError, ConfigurationError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Environment = Literal["development", "staging", "production"]


class NATSConnectionConfig(BaseModel):
    """Strongly-typed configuration for the NATS connection behind the store."""

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        strict=True,
        validate_assignment=True,
    )

    servers: list[str] = Field(
        default_factory=lambda: ["nats://localhost:4222"],
        min_length=1,
        description="List of NATS server URLs",
    )
    max_reconnect_attempts: int = Field(
        default=10,
        ge=0,
        description="Maximum reconnection attempts",
    )
    reconnect_time_wait: float = Field(
        default=2.0,
        gt=0,
        description="Time to wait between reconnection attempts in seconds",
    )
    js_domain: str | None = Field(
        default=None,
        description="JetStream domain for multi-tenancy",
    )

    @field_validator("servers")
    @classmethod
    def validate_servers(cls, v: list[str]) -> list[str]:
        """Validate server URLs format."""
        for server in v:
            if not server.startswith(("nats://", "tls://", "ws://", "wss://")):
                raise ValueError(
                    f"Invalid server URL: {server}. "
                    "Must start with nats://, tls://, ws://, or wss://"
                )
        return v

    def to_connection_params(self) -> dict[str, Any]:
        """Convert to keyword arguments for ``nats.connect``."""
        return {
            "servers": self.servers,
            "max_reconnect_attempts": self.max_reconnect_attempts,
            "reconnect_time_wait": self.reconnect_time_wait,
        }


class DocumentStoreConfig(BaseModel):
    """Configuration of the KV bucket holding documents."""

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        strict=True,
        validate_assignment=True,
    )

    bucket: str = Field(
        default="eyedoo_documents",
        min_length=1,
        max_length=64,
        description="KV bucket name",
    )
    history_size: int = Field(
        default=5,
        ge=1,
        le=64,
        description="Revisions kept per document",
    )
    max_value_size: int = Field(
        default=1024 * 1024,
        gt=0,
        description="Maximum encoded document size in bytes",
    )
    use_msgpack: bool = Field(
        default=True,
        description="Encode documents with MessagePack instead of JSON",
    )
    watch_poll_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Seconds a watcher waits for an update before polling again",
    )

    @field_validator("bucket")
    @classmethod
    def validate_bucket_name(cls, v: str) -> str:
        """Bucket names may only contain letters, digits, ``_`` and ``-``."""
        if not re.match(r"^[a-zA-Z0-9_-]+$", v):
            raise ValueError(
                f"Invalid bucket name '{v}'. "
                "Must contain only letters, numbers, underscores and hyphens."
            )
        return v


class RetryConfig(BaseModel):
    """Retry behaviour for transient failures."""

    model_config = ConfigDict(extra="forbid", strict=True, validate_assignment=True)

    max_attempts: int = Field(default=3, ge=1, le=10, description="Total attempts")
    delay_ms: int = Field(default=1000, ge=0, description="Delay before the first retry")
    max_delay_ms: int = Field(default=10000, ge=0, description="Upper bound on the delay")
    exponential: bool = Field(default=True, description="Double the delay after each failure")

    @field_validator("max_delay_ms")
    @classmethod
    def validate_max_delay(cls, v: int, info: ValidationInfo) -> int:
        """Max delay must not be smaller than the initial delay."""
        delay = info.data.get("delay_ms", 0)
        if v < delay:
            raise ValueError(f"max_delay_ms ({v}) must be >= delay_ms ({delay})")
        return v

    def delay_for_attempt(self, attempt: int) -> float:
        """Seconds to wait after failed ``attempt`` (1-based)."""
        delay_ms = self.delay_ms * (2 ** (attempt - 1)) if self.exponential else self.delay_ms
        return min(delay_ms, self.max_delay_ms) / 1000


class SyncConfiguration(BaseModel):
    """Everything needed to wire the sync core to a NATS-backed store."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    nats: NATSConnectionConfig = Field(default_factory=NATSConnectionConfig)
    store: DocumentStoreConfig = Field(default_factory=DocumentStoreConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    log_level: LogLevel = "INFO"
    environment: Environment = "development"


class LogContext(BaseModel):
    """Strongly-typed context for structured logging."""

    model_config = ConfigDict(
        extra="allow",
        str_strip_whitespace=True,
        strict=False,
        validate_assignment=True,
    )

    operation: str | None = Field(default=None, description="Current operation")
    component: str | None = Field(default=None, description="Component generating the log")
    key_path: str | None = Field(default=None, description="Document being accessed")
    user_id: str | None = Field(default=None, description="Owning user")
    project_id: str | None = Field(default=None, description="Owning project")
    error_code: str | None = Field(default=None, description="Structured error code")
    error_type: str | None = Field(default=None, description="Type of error encountered")
    retryable: bool | None = Field(default=None, description="Whether the failure is transient")
    duration_ms: float | None = Field(default=None, ge=0, description="Duration in milliseconds")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging frameworks."""
        return {k: v for k, v in self.model_dump().items() if v is not None}

    def with_error(self, error: BaseException) -> LogContext:
        """Create a new context with error information.

        ``AppError`` contributes its code and retryable flag.
        """
        update: dict[str, Any] = {
            "error_type": type(error).__module__ + "." + type(error).__name__,
        }
        if isinstance(error, AppError):
            update["error_code"] = error.code.value
            update["retryable"] = error.retryable
        else:
            update["error_code"] = error.__class__.__name__
        return LogContext(**{**self.model_dump(), **update})

    def with_operation(self, operation: str, component: str | None = None) -> LogContext:
        return LogContext(
            **{
                **self.model_dump(),
                "operation": operation,
                "component": component or self.component,
            }
        )


class EnvironmentConfigurationAdapter:
    """Loads ``SyncConfiguration`` from ``EYEDOO_*`` environment variables.

    Recognized variables: ``EYEDOO_NATS_URL`` (comma-separated),
    ``EYEDOO_KV_BUCKET``, ``EYEDOO_KV_HISTORY``, ``EYEDOO_USE_MSGPACK``,
    ``EYEDOO_MAX_RETRIES``, ``EYEDOO_RETRY_DELAY_MS``, ``EYEDOO_LOG_LEVEL``,
    ``EYEDOO_ENVIRONMENT``.
    """

    PREFIX = "EYEDOO_"

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = environ if environ is not None else os.environ

    def _get(self, name: str, default: str) -> str:
        return self._environ.get(f"{self.PREFIX}{name}", default)

    def load_configuration(self) -> SyncConfiguration:
        """Load configuration from environment variables.

        Returns:
            SyncConfiguration: Validated configuration

        Raises:
            ConfigurationError: If a variable is malformed or out of range
        """
        try:
            servers = [s.strip() for s in self._get("NATS_URL", "nats://localhost:4222").split(",")]
            use_msgpack = self._get("USE_MSGPACK", "true").lower() in ("1", "true", "yes")

            config = SyncConfiguration(
                nats=NATSConnectionConfig(servers=[s for s in servers if s]),
                store=DocumentStoreConfig(
                    bucket=self._get("KV_BUCKET", "eyedoo_documents"),
                    history_size=int(self._get("KV_HISTORY", "5")),
                    use_msgpack=use_msgpack,
                ),
                retry=RetryConfig(
                    max_attempts=int(self._get("MAX_RETRIES", "3")),
                    delay_ms=int(self._get("RETRY_DELAY_MS", "1000")),
                ),
                log_level=self._get("LOG_LEVEL", "INFO").upper(),
                environment=self._get("ENVIRONMENT", "development").lower(),
            )
        except ValueError as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        if config.environment == "production" and any(
            host in server
            for server in config.nats.servers
            for host in ("localhost", "127.0.0.1")
        ):
            raise ConfigurationError(
                "Production environment should not use a local NATS server",
                details={"servers": config.nats.servers},
            )
        return config
