"""Tests for the PHP-FPM adapter."""

from __future__ import annotations

from pathlib import Path

import pytest

from hostctl.config.settings import HostSettings
from hostctl.domain.entities import Site
from hostctl.domain.errors import OperationalError, ResourceExistsError
from hostctl.infrastructure.adapters.php_fpm import PhpFpmAdapter
from tests.conftest import ScriptedSandbox


@pytest.fixture
def php(sandbox: ScriptedSandbox, settings: HostSettings) -> PhpFpmAdapter:
    return PhpFpmAdapter(
        sandbox, settings.php, user="hostctl", group="hostctl", web_group="www-data"
    )


@pytest.fixture
def site(host_root: Path) -> Site:
    return Site(
        id=1,
        user_id=1,
        domain="example.com",
        document_root=str(host_root / "sites" / "alice" / "example.com" / "public_html"),
    )


class TestRuntimes:
    def test_lists_installed(self, php: PhpFpmAdapter) -> None:
        assert [rt.version for rt in php.list_available()] == ["8.2", "8.3"]

    def test_skips_missing_binary(self, php: PhpFpmAdapter, host_root: Path) -> None:
        (host_root / "bin" / "php8.3").unlink()
        assert [rt.version for rt in php.list_available()] == ["8.2"]

    def test_runtime_for(self, php: PhpFpmAdapter, host_root: Path) -> None:
        runtime = php.runtime_for("8.3")
        assert runtime.binary == host_root / "bin" / "php8.3"
        assert runtime.fpm_socket == host_root / "php" / "run" / "php8.3-fpm.sock"


class TestPools:
    def test_create_pool(
        self, php: PhpFpmAdapter, site: Site, sandbox: ScriptedSandbox, host_root: Path
    ) -> None:
        assert php.create_pool(site, php.runtime_for("8.2")) is True
        pool = Path(php.pool_path(site))
        assert pool.parent == host_root / "php" / "8.2" / "fpm" / "pool.d"
        text = pool.read_text()
        assert "[example_com]" in text
        assert "user = hostctl" in text
        assert "listen.owner = www-data" in text
        assert f"listen = {host_root}/php/run/php8.2-fpm-example.com.sock" in text
        assert "example.com/tmp" in text
        assert sandbox.privileged_calls[-1] == ["systemctl", "reload", "php8.2-fpm"]

    def test_pool_goes_to_runtime_version(self, php: PhpFpmAdapter, site: Site) -> None:
        php.create_pool(site, php.runtime_for("8.3"))
        assert Path(php.pool_path(site.model_copy(update={"php_version": "8.3"}))).is_file()

    def test_reload_failure(
        self, php: PhpFpmAdapter, site: Site, sandbox: ScriptedSandbox
    ) -> None:
        sandbox.fail_on("systemctl", output="php8.2-fpm.service not found")
        with pytest.raises(OperationalError, match="Failed to reload php8.2-fpm"):
            php.create_pool(site, php.runtime_for("8.2"))

    def test_existing_pool_refused(
        self, php: PhpFpmAdapter, site: Site, sandbox: ScriptedSandbox
    ) -> None:
        pool = Path(php.pool_path(site))
        pool.write_text("[example_com]\nuser = legacy\n")
        with pytest.raises(ResourceExistsError, match="PHP-FPM pool already exists"):
            php.create_pool(site, php.runtime_for("8.2"))
        assert pool.read_text() == "[example_com]\nuser = legacy\n"
        assert sandbox.commands("systemctl") == []

    def test_delete_pool(self, php: PhpFpmAdapter, site: Site) -> None:
        php.create_pool(site, php.runtime_for("8.2"))
        assert php.delete_pool(site) is True
        assert not Path(php.pool_path(site)).exists()
