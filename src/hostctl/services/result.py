"""ServiceResult and ServiceError: what the CLI renders.

Services return entities and raise :class:`HostctlError`; the command layer
turns either outcome into a ServiceResult with :meth:`ServiceResult.success`
or :meth:`ServiceResult.failure`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from hostctl.domain.errors import OperationalError

if TYPE_CHECKING:
    from hostctl.domain.errors import HostctlError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    kind: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal envelope for command output.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"create_site"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None

    @classmethod
    def success(
        cls, op: str, data: dict[str, Any] | None = None, *, warnings: list[str] | None = None
    ) -> ServiceResult:
        return cls(ok=True, op=op, data=data or {}, warnings=warnings or [])

    @classmethod
    def failure(cls, op: str, exc: HostctlError) -> ServiceResult:
        detail = dict(exc.detail)
        if isinstance(exc, OperationalError) and exc.rollback:
            detail["rollback"] = [step.as_dict() for step in exc.rollback]
        return cls(
            ok=False,
            op=op,
            error=ServiceError(
                code=exc.code,
                kind=str(exc.kind),
                message=exc.message,
                detail=detail,
            ),
        )
