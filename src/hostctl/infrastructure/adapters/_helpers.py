"""Shared helpers for sandbox-backed adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hostctl.domain.errors import OperationalError

if TYPE_CHECKING:
    from hostctl.infrastructure.sandbox import CommandResult


def require_ok(result: CommandResult, action: str) -> CommandResult:
    """Raise :class:`OperationalError` unless *result* succeeded.

    The message carries the tool's own output so the cause reaches the
    caller unchanged.
    """
    if result.ok:
        return result
    output = result.output.strip()
    if result.timed_out:
        reason = "timed out"
    else:
        reason = output or f"exit code {result.exit_code}"
    raise OperationalError(
        f"{action}: {reason}",
        detail={"exit_code": result.exit_code, "timed_out": result.timed_out},
    )
