"""Where an error happened, as a value object.

Repositories and services build one per call and hand ``to_context_string()``
to the error mapper, so every ``AppError.context`` reads ``Component.method``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorContext(BaseModel):
    """Component/method/owner triple attached to errors and log records."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    component: str | None = Field(default=None, description="Class or module name")
    method: str | None = Field(default=None, description="Operation being performed")
    user_id: str | None = Field(default=None, description="Owning user, if any")
    project_id: str | None = Field(default=None, description="Owning project, if any")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_repository(
        cls,
        repository: str,
        method: str,
        user_id: str | None = None,
        project_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ErrorContext:
        return cls(
            component=repository,
            method=method,
            user_id=user_id,
            project_id=project_id,
            metadata=metadata or {},
        )

    @classmethod
    def from_service(
        cls,
        service: str,
        method: str,
        user_id: str | None = None,
        project_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ErrorContext:
        return cls(
            component=service,
            method=method,
            user_id=user_id,
            project_id=project_id,
            metadata=metadata or {},
        )

    @classmethod
    def from_string(cls, value: str) -> ErrorContext:
        """Inverse of :meth:`to_context_string` for the component/method part."""
        component, _, method = value.partition(".")
        return cls(component=component or None, method=method or None)

    def with_metadata(self, **metadata: Any) -> ErrorContext:
        return self.model_copy(update={"metadata": {**self.metadata, **metadata}})

    def to_context_string(self) -> str:
        return ".".join(part for part in (self.component, self.method) if part)

    def to_log_fields(self) -> dict[str, Any]:
        """Non-empty fields, for ``extra=`` on log calls."""
        return {k: v for k, v in self.model_dump().items() if v not in (None, {})}

    def __str__(self) -> str:
        return self.to_context_string()
