"""Error taxonomy for provisioning.

Every failure raised by hostctl is a :class:`HostctlError` subclass with a
stable :class:`ErrorKind`. Callers branch on ``kind`` (or the subclass),
never on message text.

- ValidationError: malformed input, raised before the store is touched.
- ConflictError: business key already taken.
- NotFoundError: referenced owner/site/domain missing.
- SecurityError: the command sandbox refused a command or argument.
- OperationalError: a backend call failed after validation passed. Carries
  the rollback report of the provisioning attempt it aborted.
- ResourceExistsError: an OperationalError for a backend object that was
  already present. The failing step registers no undo for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from hostctl.domain.types import ErrorKind


@dataclass(frozen=True)
class RollbackStep:
    """Outcome of one compensation step."""

    name: str
    ok: bool
    error: str | None = None
    duration_ms: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "ok": self.ok,
            "error": self.error,
            "duration_ms": round(self.duration_ms, 2),
        }


class HostctlError(Exception):
    """Base class for all hostctl failures."""

    kind: ErrorKind = ErrorKind.OPERATIONAL
    code: str = "ERROR"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = dict(detail or {})

    def __str__(self) -> str:
        return self.message


class ValidationError(HostctlError):
    kind = ErrorKind.VALIDATION
    code = "VALIDATION_FAILED"


class ConflictError(HostctlError):
    kind = ErrorKind.CONFLICT
    code = "CONFLICT"


class NotFoundError(HostctlError):
    kind = ErrorKind.NOT_FOUND
    code = "NOT_FOUND"


class SecurityError(HostctlError):
    """The sandbox refused to run a command. Never retried."""

    kind = ErrorKind.SECURITY
    code = "SECURITY_VIOLATION"


class OperationalError(HostctlError):
    """A backend tool, connection, or file operation failed."""

    kind = ErrorKind.OPERATIONAL
    code = "OPERATION_FAILED"

    def __init__(
        self,
        message: str,
        *,
        detail: dict[str, Any] | None = None,
        rollback: list[RollbackStep] | None = None,
    ) -> None:
        super().__init__(message, detail=detail)
        self.rollback: list[RollbackStep] = list(rollback or [])

    @property
    def rollback_clean(self) -> bool:
        """True when every compensation step succeeded."""
        return all(step.ok for step in self.rollback)


class ResourceExistsError(OperationalError):
    """The backend already holds the object a create step was asked to make.

    Raised before anything is changed, so the aborted step owns nothing and
    has nothing to undo.
    """
