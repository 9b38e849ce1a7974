"""Jinja2 rendering of generated backend configuration.

Packaged templates live under ``hostctl/templates/<group>/``. An operator
can override any of them by placing a file of the same name in
``<override_dir>/<group>/`` (or directly in ``<override_dir>``).
"""

from __future__ import annotations

from functools import cache
from pathlib import Path
from typing import Any

from jinja2 import (
    BaseLoader,
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
)


def build_template_environment(group: str, *, override_dir: Path | None = None) -> Environment:
    """Build a Jinja2 environment with operator overrides before packaged defaults."""
    loaders: list[BaseLoader] = []
    if override_dir is not None:
        loaders.append(FileSystemLoader([str(override_dir / group), str(override_dir)]))

    loaders.append(PackageLoader("hostctl", f"templates/{group}"))
    return Environment(
        loader=ChoiceLoader(loaders),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
        autoescape=False,
    )


@cache
def _default_environment(group: str) -> Environment:
    return build_template_environment(group)


def render(group: str, name: str, /, *, override_dir: Path | None = None, **context: Any) -> str:
    """Render ``<group>/<name>`` with *context*."""
    if override_dir is None:
        env = _default_environment(group)
    else:
        env = build_template_environment(group, override_dir=override_dir)
    return env.get_template(name).render(**context)
