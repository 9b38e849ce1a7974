"""Config file discovery.

Walk-up finder locates hostctl.toml, similar to how git finds .git/.
Supports the HOSTCTL_CONFIG env var and the --config CLI flag.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "hostctl.toml"
CONFIG_ENV_VAR = "HOSTCTL_CONFIG"
SYSTEM_CONFIG = Path("/etc/hostctl") / CONFIG_FILENAME


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for hostctl.toml.

    Checks HOSTCTL_CONFIG first and falls back to
    ``/etc/hostctl/hostctl.toml``. Returns None if nothing is found.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    if SYSTEM_CONFIG.is_file():
        return SYSTEM_CONFIG
    return None
