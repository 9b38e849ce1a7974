"""Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO); the caller
takes the text via ``get_output(console)``. Listing results carry an
``items`` list and are drawn as tables; everything else is a status line
followed by its fields.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from hostctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from hostctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if not result.ok:
        _render_error(result, console, verbose=verbose)
    elif isinstance(result.data.get("items"), list):
        _render_table(result, console, verbose=verbose)
    else:
        _render_fields(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(str(item["id"]) for item in items if item.get("id") is not None)
    if result.data.get("id") is not None:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="host.ok"), Text(f"  {result.op}", style="host.op"))


def _style_for(key: str, value: Any) -> str:
    if key == "id" or key.endswith("_id"):
        return "host.id"
    if key in ("document_root", "home_directory", "binary", "fpm_socket"):
        return "host.path"
    if key in ("domain", "name", "username"):
        return "host.name"
    if key == "enabled":
        return "host.enabled" if value else "host.disabled"
    return ""


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="host.error"), Text(f"  {result.op}", style="host.op"), ": ", msg
    )
    if err is None:
        return

    # Failed undo steps need an operator, so they are shown even without -v.
    rollback = err.detail.get("rollback", [])
    failed = [step for step in rollback if not step.get("ok")]
    if failed or (verbose and rollback):
        console.print(Text("  rollback:", style="host.key"))
        for step in rollback if verbose else failed:
            status = Text("ok", style="host.ok") if step.get("ok") else Text("FAILED", "host.error")
            line = Text(f"    {step.get('name')}: ")
            line.append_text(status)
            if step.get("error"):
                line.append(f" ({step['error']})")
            console.print(line)

    if verbose:
        for key, value in err.detail.items():
            if key != "rollback":
                console.print(f"  {key}: {value}", style="dim")


def _render_fields(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        line = Text(f"  {key}: ", style="host.key")
        line.append(_cell(value), style=_style_for(key, value))
        console.print(line)


def _render_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items: list[dict[str, Any]] = result.data["items"]
    noun = result.data.get("noun", "items")
    if not items:
        console.print(f"No {noun}.", style="dim")
        return

    columns = list(result.data.get("columns") or items[0].keys())
    if verbose:
        columns += [key for key in items[0] if key not in columns]

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    for column in columns:
        table.add_column(
            column.replace("_", " ").title(),
            style=_style_for(column, True) if column != "enabled" else "",
            no_wrap=column == "id",
        )
    for item in items:
        table.add_row(*(_cell(item.get(column)) for column in columns))

    console.print(table)
    console.print(f"\n{len(items)} {noun}")
