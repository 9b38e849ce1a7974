"""BaseService and the provisioning transaction shared by all services.

A provisioning run records one compensation per side effect as it goes.
If anything fails, the compensations run in reverse order, each on its
own: a failing undo is logged and reported but never stops the others.
The provisional store record is persisted first, so it is always undone
last.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from hostctl.domain.errors import (
    HostctlError,
    OperationalError,
    ResourceExistsError,
    RollbackStep,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from pydantic import BaseModel

    from hostctl.infrastructure.panel import Panel
    from hostctl.infrastructure.repositories.base import TableRepository

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="BaseModel")


class ProvisioningTransaction:
    """Tracks completed steps and their compensations for one service call."""

    def __init__(self) -> None:
        self._undo: list[tuple[str, Callable[[], Any]]] = []
        self.completed: list[str] = []

    def persist(self, repository: TableRepository[E], entity: E) -> E:
        """Create the store record for *entity*; deleting it becomes an undo."""
        created = repository.create(entity)
        record_id = created.id  # type: ignore[attr-defined]
        self.on_rollback(
            f"delete {repository.table.name} record {record_id}",
            lambda: repository.delete(record_id),
        )
        self.completed.append(f"persist {repository.table.name}")
        return created

    def on_rollback(self, name: str, undo: Callable[[], Any]) -> None:
        self._undo.append((name, undo))

    def step(
        self,
        name: str,
        action: Callable[[], Any],
        *,
        undo: Callable[[], Any] | None = None,
    ) -> Any:
        """Run one adapter call.

        The undo is registered *before* the call, since a step can fail after
        changing something (a vhost written, then rejected by ``nginx -t``).
        Undo callables are therefore idempotent deletes. A ``False`` return
        counts as a failure. A :class:`ResourceExistsError` withdraws the undo:
        the object predates this call and must survive its rollback.
        """
        if undo is not None:
            self.on_rollback(f"undo {name}", undo)
        try:
            result = action()
        except ResourceExistsError:
            if undo is not None:
                self._undo.pop()
            raise
        if result is False:
            raise OperationalError(f"{name} failed")
        self.completed.append(name)
        return result

    def rollback(self) -> list[RollbackStep]:
        """Run every compensation, newest first, and report each outcome."""
        report: list[RollbackStep] = []
        for name, undo in reversed(self._undo):
            started = time.perf_counter()
            error: str | None = None
            try:
                ok = undo() is not False
                if not ok:
                    error = "returned failure"
            except Exception as exc:
                ok = False
                error = str(exc) or type(exc).__name__
            duration_ms = (time.perf_counter() - started) * 1000
            if ok:
                logger.info("Rollback step succeeded: %s", name)
            else:
                logger.warning("Rollback step failed: %s: %s", name, error)
            report.append(RollbackStep(name=name, ok=ok, error=error, duration_ms=duration_ms))
        self._undo.clear()
        return report


class BaseService:
    """Abstract base for all provisioning services.

    Subclasses take their gateways and adapters as constructor arguments and
    offer a ``from_panel`` classmethod that picks them from a :class:`Panel`.

    Usage::

        class CreateThingService(BaseService):
            def execute(self, ...) -> Thing:
                validate(...)
                with self._provisioning("Failed to create thing") as txn:
                    thing = txn.persist(self._things, Thing(...))
                    txn.step("create thing", lambda: self._adapter.create(thing),
                             undo=lambda: self._adapter.delete(thing))
                return thing
    """

    @classmethod
    def from_panel(cls, panel: Panel) -> BaseService:
        raise NotImplementedError

    @contextmanager
    def _provisioning(self, failure_message: str) -> Iterator[ProvisioningTransaction]:
        """Run the block as one provisioning attempt.

        - ``OperationalError`` and unexpected exceptions: roll back, then raise
          ``OperationalError("<failure_message>: <cause>")`` with the rollback
          report, chained to the cause.
        - Any other ``HostctlError`` (conflict on a racing insert, security):
          roll back and re-raise it unchanged.
        """
        txn = ProvisioningTransaction()
        try:
            yield txn
        except OperationalError as exc:
            report = txn.rollback()
            logger.warning("%s: %s", failure_message, exc.message)
            raise OperationalError(
                f"{failure_message}: {exc.message}",
                detail={**exc.detail, "completed": list(txn.completed)},
                rollback=report,
            ) from exc
        except HostctlError as exc:
            report = txn.rollback()
            if report:
                exc.detail["rollback"] = [step.as_dict() for step in report]
            raise
        except Exception as exc:
            report = txn.rollback()
            logger.exception("%s", failure_message)
            raise OperationalError(
                f"{failure_message}: {exc}",
                detail={"completed": list(txn.completed)},
                rollback=report,
            ) from exc
        except BaseException:
            txn.rollback()
            raise
