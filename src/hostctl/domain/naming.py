"""Deterministic names and paths derived from a site's domain."""

from __future__ import annotations

from pathlib import PurePosixPath


def pool_name(domain: str) -> str:
    """PHP-FPM pool name: the domain with dots replaced by underscores."""
    return domain.replace(".", "_")


def pool_socket_path(socket_dir: str, php_version: str, domain: str) -> str:
    """Per-site FPM listen socket, e.g. ``/var/run/php/php8.2-fpm-example.com.sock``."""
    return str(PurePosixPath(socket_dir) / f"php{php_version}-fpm-{domain}.sock")


def fpm_service_name(php_version: str) -> str:
    return f"php{php_version}-fpm"


def vhost_filename(domain: str) -> str:
    return f"{domain}.conf"


def pool_filename(domain: str) -> str:
    return f"{domain}.conf"


def zone_filename(domain: str) -> str:
    return f"db.{domain}"


def owner_directory(sites_root: str, username: str) -> str:
    """Base directory holding all of one panel user's sites."""
    return str(PurePosixPath(sites_root) / username)


def document_root(sites_root: str, username: str, domain: str) -> str:
    return str(PurePosixPath(sites_root) / username / domain / "public_html")


def full_record_name(name: str, zone: str) -> str:
    """Expand a zone-relative record name (``@``, ``www``) to a full name."""
    if name == "@":
        return zone
    if name.endswith("."):
        return name.rstrip(".")
    return f"{name}.{zone}"
