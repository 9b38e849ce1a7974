"""Tests for input validation rules."""

from __future__ import annotations

import pytest

from hostctl.domain.errors import ValidationError
from hostctl.domain.types import DnsRecordType
from hostctl.domain.validation import (
    validate_cron_command,
    validate_cron_schedule,
    validate_database_name,
    validate_database_username,
    validate_domain,
    validate_email,
    validate_ftp_username,
    validate_home_directory,
    validate_ip,
    validate_password,
    validate_php_version,
    validate_privileges,
    validate_record,
    validate_username,
)


class TestDomain:
    @pytest.mark.parametrize("domain", ["example.com", "shop.example.co.uk", "my-site.io"])
    def test_valid(self, domain: str) -> None:
        assert validate_domain(domain) == domain

    @pytest.mark.parametrize(
        "domain",
        ["", "localhost", "Example.com", "-bad.com", "exa mple.com", "a..com", "x.c", "a;b.com"],
    )
    def test_invalid(self, domain: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_domain(domain)
        assert exc_info.value.detail["field"] == "domain"


class TestAccounts:
    def test_username(self) -> None:
        assert validate_username("alice_01") == "alice_01"
        for bad in ("al", "1alice", "Alice", "alice!"):
            with pytest.raises(ValidationError):
                validate_username(bad)

    def test_email(self) -> None:
        assert validate_email("a@example.com") == "a@example.com"
        with pytest.raises(ValidationError):
            validate_email("not-an-email")

    def test_password_length(self) -> None:
        assert validate_password("s3cret!") == "s3cret!"
        with pytest.raises(ValidationError, match="at least 6"):
            validate_password("short")

    def test_password_custom_minimum(self) -> None:
        with pytest.raises(ValidationError, match="at least 8"):
            validate_password("s3cret!", min_length=8)

    def test_password_rejects_newline(self) -> None:
        with pytest.raises(ValidationError, match="control characters"):
            validate_password("abc\ndefgh")


class TestDatabaseNames:
    def test_valid(self) -> None:
        assert validate_database_name("shop_db") == "shop_db"
        assert validate_database_username("shop_user") == "shop_user"

    @pytest.mark.parametrize("name", ["", "shop-db", "shop db", "db;drop", "x" * 65])
    def test_invalid_database_name(self, name: str) -> None:
        with pytest.raises(ValidationError):
            validate_database_name(name)

    def test_username_length_limit(self) -> None:
        with pytest.raises(ValidationError):
            validate_database_username("u" * 33)

    @pytest.mark.parametrize(
        "name", ["mysql", "sys", "information_schema", "PERFORMANCE_SCHEMA", "test"]
    )
    def test_reserved_database_name(self, name: str) -> None:
        with pytest.raises(ValidationError, match="reserved") as exc_info:
            validate_database_name(name)
        assert exc_info.value.detail == {"field": "db_name"}

    @pytest.mark.parametrize("username", ["root", "Root", "mysql", "mariadb"])
    def test_reserved_username(self, username: str) -> None:
        with pytest.raises(ValidationError, match="reserved"):
            validate_database_username(username)


class TestPrivileges:
    def test_normalizes_case_and_spacing(self) -> None:
        assert validate_privileges(["select", " show   view "]) == ["SELECT", "SHOW VIEW"]

    def test_rejects_unknown_keyword(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_privileges(["SELECT", "ALL ON *.* TO x"])
        assert exc_info.value.detail["unknown"] == ["ALL ON *.* TO X"]

    def test_rejects_empty(self) -> None:
        with pytest.raises(ValidationError):
            validate_privileges([])


class TestFtp:
    def test_username(self) -> None:
        assert validate_ftp_username("alice-ftp") == "alice-ftp"
        with pytest.raises(ValidationError):
            validate_ftp_username("a b")

    def test_home_inside_root(self) -> None:
        assert validate_home_directory("/srv/sites/alice/./site", "/srv/sites") == (
            "/srv/sites/alice/site"
        )

    @pytest.mark.parametrize(
        "home", ["/srv/sites", "/srv/sites/../etc", "/srv/sitesX/alice", "relative/alice"]
    )
    def test_home_outside_root(self, home: str) -> None:
        with pytest.raises(ValidationError):
            validate_home_directory(home, "/srv/sites")


class TestCron:
    @pytest.mark.parametrize(
        "schedule",
        ["* * * * *", "*/5 * * * *", "0 3 * * sun", "0,30 8-18 * jan-jun 1-5", "15 2 1 */2 *"],
    )
    def test_valid_schedule(self, schedule: str) -> None:
        assert validate_cron_schedule(schedule) == schedule

    def test_schedule_whitespace_collapsed(self) -> None:
        assert validate_cron_schedule("  0   3 * *  * ") == "0 3 * * *"

    @pytest.mark.parametrize("schedule", ["", "* * * *", "@daily", "* * * * * *", "a b c d e"])
    def test_invalid_schedule(self, schedule: str) -> None:
        with pytest.raises(ValidationError):
            validate_cron_schedule(schedule)

    def test_command_single_line(self) -> None:
        assert validate_cron_command("  /bin/true  ") == "/bin/true"
        with pytest.raises(ValidationError):
            validate_cron_command("/bin/true\n* * * * * /bin/evil")
        with pytest.raises(ValidationError):
            validate_cron_command("   ")


class TestPhpVersion:
    def test_known(self) -> None:
        assert validate_php_version("8.2", ["8.2", "8.3"]) == "8.2"

    @pytest.mark.parametrize("version", ["9.9", "8", "8.2; rm"])
    def test_unknown(self, version: str) -> None:
        with pytest.raises(ValidationError):
            validate_php_version(version, ["8.2", "8.3"])


class TestRecords:
    def test_ip_version(self) -> None:
        assert validate_ip("203.0.113.1", version=4) == "203.0.113.1"
        with pytest.raises(ValidationError):
            validate_ip("2001:db8::1", version=4)
        with pytest.raises(ValidationError):
            validate_ip("999.1.1.1")

    def test_a_record(self) -> None:
        assert validate_record("www", "a", " 203.0.113.1 ", 3600, None) == (
            DnsRecordType.A,
            "203.0.113.1",
        )

    def test_mx_requires_priority(self) -> None:
        with pytest.raises(ValidationError, match="priority"):
            validate_record("@", "MX", "mail.example.com", 3600, None)
        rtype, _ = validate_record("@", "MX", "mail.example.com", 3600, 10)
        assert rtype is DnsRecordType.MX

    def test_priority_only_for_mx(self) -> None:
        with pytest.raises(ValidationError):
            validate_record("@", "A", "203.0.113.1", 3600, 10)

    def test_unsupported_type(self) -> None:
        with pytest.raises(ValidationError, match="Unsupported record type"):
            validate_record("@", "SRV", "x", 3600, None)

    @pytest.mark.parametrize("ttl", [0, 59, 604801])
    def test_ttl_bounds(self, ttl: int) -> None:
        with pytest.raises(ValidationError):
            validate_record("@", "A", "203.0.113.1", ttl, None)

    def test_cname_host(self) -> None:
        with pytest.raises(ValidationError):
            validate_record("www", "CNAME", "not a host", 3600, None)

    def test_rejects_multiline_content(self) -> None:
        with pytest.raises(ValidationError):
            validate_record("@", "TXT", "v=spf1\n@ IN A 1.2.3.4", 3600, None)
