"""ServiceResult and ServiceError: the contract between services and the CLI.

INVARIANT: Every CLI-facing service method returns a ServiceResult; a
failed module anywhere in a build makes the result ``ok=False``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from netbundle.domain.errors import NetbundleError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: Exception, **detail: Any) -> ServiceError:
        """Wrap *exc*, using its netbundle error code when it has one."""
        code = exc.code if isinstance(exc, NetbundleError) else "UNEXPECTED_ERROR"
        return cls(code=code, message=str(exc), detail=detail)


class ServiceResult(BaseModel):
    """Return type for service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (``"build"``, ``"resolve"``, ``"fetch"``).
        data: Operation-specific payload (also present on partial failure).
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
