"""Subcommand modules for hostctl.

register_commands() imports them lazily to keep ``hostctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups on the root CLI group."""
    from hostctl.commands.cron import cron
    from hostctl.commands.db import db
    from hostctl.commands.dns import dns
    from hostctl.commands.ftp import ftp
    from hostctl.commands.php import php
    from hostctl.commands.site import site
    from hostctl.commands.user import user

    cli.add_command(user)
    cli.add_command(site)
    cli.add_command(db)
    cli.add_command(ftp)
    cli.add_command(cron)
    cli.add_command(dns)
    cli.add_command(php)
