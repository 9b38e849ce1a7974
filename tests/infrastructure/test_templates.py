"""Tests for packaged Jinja2 templates and operator overrides."""

from __future__ import annotations

from pathlib import Path

import pytest
from jinja2 import UndefinedError

from hostctl.infrastructure.templates import render


class TestPackagedTemplates:
    def test_vhost(self) -> None:
        text = render(
            "nginx",
            "vhost.conf.j2",
            domain="example.com",
            document_root="/srv/sites/alice/example.com/public_html",
            php_socket="/var/run/php/php8.2-fpm-example.com.sock",
            ssl_enabled=False,
            ssl_certificate="/etc/ssl/certs/example.com.crt",
            ssl_certificate_key="/etc/ssl/private/example.com.key",
        )
        assert "server_name example.com" in text
        assert "root /srv/sites/alice/example.com/public_html;" in text
        assert "unix:/var/run/php/php8.2-fpm-example.com.sock" in text
        assert "ssl_certificate" not in text

    def test_vhost_ssl(self) -> None:
        text = render(
            "nginx",
            "vhost.conf.j2",
            domain="example.com",
            document_root="/srv/x",
            php_socket="/run/x.sock",
            ssl_enabled=True,
            ssl_certificate="/etc/ssl/certs/example.com.crt",
            ssl_certificate_key="/etc/ssl/private/example.com.key",
        )
        assert "listen 443 ssl" in text
        assert "ssl_certificate /etc/ssl/certs/example.com.crt;" in text

    def test_zone(self) -> None:
        text = render("bind", "zone.db.j2", domain="example.com", ttl=3600, serial=2026101901)
        assert text.startswith("$TTL 3600\n")
        assert "2026101901 ; Serial" in text
        assert "ns1.example.com." in text

    def test_strict_undefined(self) -> None:
        with pytest.raises(UndefinedError):
            render("bind", "zone.db.j2", domain="example.com")


class TestOverrides:
    def test_group_directory_wins(self, tmp_path: Path) -> None:
        (tmp_path / "site").mkdir()
        (tmp_path / "site" / "index.php.j2").write_text("<?php echo '{{ site.domain }}';\n")

        class _Site:
            domain = "example.com"

        text = render("site", "index.php.j2", override_dir=tmp_path, site=_Site())
        assert text == "<?php echo 'example.com';\n"

    def test_falls_back_to_packaged(self, tmp_path: Path) -> None:
        text = render("site", "index.php.j2", override_dir=tmp_path, site=None)
        assert "phpinfo" in text
