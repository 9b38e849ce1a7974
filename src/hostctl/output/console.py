"""Rich Console factory and theme for hostctl output.

Consoles render to a StringIO buffer so renderers keep a
``format_result() -> str`` contract. Outside a terminal (tests, pipes)
Rich drops color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

HOST_THEME = Theme(
    {
        "host.ok": "bold green",
        "host.error": "bold red",
        "host.warning": "bold yellow",
        "host.op": "bold cyan",
        "host.key": "dim",
        "host.id": "bold blue",
        "host.path": "dim",
        "host.name": "bold",
        "host.enabled": "green",
        "host.disabled": "dim",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=HOST_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
