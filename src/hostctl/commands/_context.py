"""AppContext: shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. Builds the Panel lazily and owns result emission
(stdout/stderr routing and exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click
from pydantic import BaseModel

from hostctl.domain.errors import HostctlError
from hostctl.output.formatters import OutputSettings, format_result
from hostctl.services.result import ServiceResult

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from hostctl.config.settings import HostSettings
    from hostctl.infrastructure.panel import Panel

# Never rendered, not even with --json.
_HIDDEN_FIELDS = {"password_hash"}


def to_data(value: Any) -> dict[str, Any]:
    """Serialize an entity for a ServiceResult payload."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude=_HIDDEN_FIELDS)
    return dict(value)


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The panel is created on first use so ``--help`` and ``--version`` never
    open the store or read service configuration.
    """

    def __init__(self, settings: HostSettings) -> None:
        self.settings = settings
        self._panel: Panel | None = None

        from hostctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def panel(self) -> Panel:
        """The panel container (created lazily on first access)."""
        if self._panel is None:
            from hostctl.infrastructure.panel import Panel

            self._panel = Panel(self.settings)
        return self._panel

    def close(self) -> None:
        if self._panel is not None:
            self._panel.close()
            self._panel = None

    def run(self, op: str, action: Callable[[], Any]) -> None:
        """Call *action* and emit its entity, or its error, as *op*."""
        try:
            value = action()
        except HostctlError as exc:
            self.emit(ServiceResult.failure(op, exc))
            return
        self.emit(ServiceResult.success(op, to_data(value)))

    def run_listing(
        self,
        op: str,
        action: Callable[[], Sequence[Any]],
        *,
        noun: str,
        columns: list[str] | None = None,
    ) -> None:
        """Call *action* and emit its entities as a table."""
        try:
            items = [to_data(item) for item in action()]
        except HostctlError as exc:
            self.emit(ServiceResult.failure(op, exc))
            return
        data: dict[str, Any] = {"items": items, "count": len(items), "noun": noun}
        if columns:
            data["columns"] = columns
        self.emit(ServiceResult.success(op, data))

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout and returns normally. Warnings go to
          stderr so they don't pollute piped output.
        * Failure: writes to stderr and exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
