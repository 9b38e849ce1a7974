"""Tests for ProvisioningTransaction and BaseService._provisioning."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from hostctl.domain.entities import User
from hostctl.domain.errors import (
    ConflictError,
    OperationalError,
    ResourceExistsError,
    SecurityError,
)
from hostctl.infrastructure.panel import Panel
from hostctl.services.base import BaseService, ProvisioningTransaction


class _Service(BaseService):
    def run(self, body: Callable[[ProvisioningTransaction], Any]) -> Any:
        with self._provisioning("Failed to do thing") as txn:
            return body(txn)


class TestTransaction:
    def test_rollback_runs_newest_first(self) -> None:
        txn = ProvisioningTransaction()
        order: list[str] = []
        txn.on_rollback("first", lambda: order.append("first"))
        txn.on_rollback("second", lambda: order.append("second"))
        report = txn.rollback()
        assert order == ["second", "first"]
        assert [step.name for step in report] == ["second", "first"]
        assert all(step.ok for step in report)

    def test_failing_undo_does_not_stop_others(self) -> None:
        txn = ProvisioningTransaction()
        ran: list[str] = []

        def boom() -> None:
            raise RuntimeError("disk gone")

        txn.on_rollback("a", lambda: ran.append("a"))
        txn.on_rollback("b", boom)
        txn.on_rollback("c", lambda: False)
        report = txn.rollback()
        assert ran == ["a"]
        by_name = {step.name: step for step in report}
        assert by_name["b"].ok is False
        assert by_name["b"].error == "disk gone"
        assert by_name["c"].error == "returned failure"
        assert by_name["a"].ok is True

    def test_undo_registered_before_action(self) -> None:
        txn = ProvisioningTransaction()
        undone: list[str] = []

        def half_done() -> bool:
            raise OperationalError("nginx -t failed")

        with pytest.raises(OperationalError):
            txn.step("create vhost", half_done, undo=lambda: undone.append("vhost"))
        txn.rollback()
        assert undone == ["vhost"]

    def test_existing_resource_withdraws_its_undo(self) -> None:
        txn = ProvisioningTransaction()
        undone: list[str] = []
        txn.on_rollback("delete record", lambda: undone.append("record"))

        def already_there() -> bool:
            raise ResourceExistsError("Zone file already exists for example.com")

        with pytest.raises(ResourceExistsError):
            txn.step("create zone", already_there, undo=lambda: undone.append("zone"))
        report = txn.rollback()
        assert undone == ["record"]
        assert [step.name for step in report] == ["delete record"]

    def test_false_return_is_failure(self) -> None:
        txn = ProvisioningTransaction()
        with pytest.raises(OperationalError, match="grant privileges failed"):
            txn.step("grant privileges", lambda: False)
        assert txn.completed == []

    def test_rollback_clears(self) -> None:
        txn = ProvisioningTransaction()
        calls: list[int] = []
        txn.on_rollback("x", lambda: calls.append(1))
        txn.rollback()
        txn.rollback()
        assert calls == [1]


class TestProvisioningContext:
    def test_success_leaves_everything(self, panel: Panel) -> None:
        def body(txn: ProvisioningTransaction) -> User:
            return txn.persist(
                panel.users, User(username="alice", email="a@example.com", password_hash="x")
            )

        user = _Service().run(body)
        assert panel.users.find(user.id or 0) == user

    def test_operational_error_wrapped_with_report(self, panel: Panel) -> None:
        def body(txn: ProvisioningTransaction) -> None:
            txn.persist(
                panel.users, User(username="alice", email="a@example.com", password_hash="x")
            )
            txn.step("do backend thing", lambda: _raise(OperationalError("backend said no")))

        with pytest.raises(OperationalError) as exc_info:
            _Service().run(body)
        err = exc_info.value
        assert err.message == "Failed to do thing: backend said no"
        assert [step.name for step in err.rollback][-1].startswith("delete users record")
        assert err.rollback_clean
        assert err.detail["completed"] == ["persist users"]
        assert panel.users.list_by() == []

    def test_unexpected_exception_wrapped(self, panel: Panel) -> None:
        def body(txn: ProvisioningTransaction) -> None:
            txn.step("explode", lambda: _raise(KeyError("php")))

        with pytest.raises(OperationalError, match="Failed to do thing") as exc_info:
            _Service().run(body)
        assert isinstance(exc_info.value.__cause__, KeyError)

    @pytest.mark.parametrize("error_cls", [ConflictError, SecurityError])
    def test_other_errors_reraised_with_rollback(
        self, panel: Panel, error_cls: type[ConflictError]
    ) -> None:
        def body(txn: ProvisioningTransaction) -> None:
            txn.persist(
                panel.users, User(username="alice", email="a@example.com", password_hash="x")
            )
            raise error_cls("racing insert")

        with pytest.raises(error_cls) as exc_info:
            _Service().run(body)
        assert exc_info.value.detail["rollback"][0]["ok"] is True
        assert panel.users.list_by() == []


def _raise(exc: Exception) -> bool:
    raise exc
