"""TableRepository: the store gateway shared by every entity type.

One subclass per entity binds a table, an entity model, and the column
holding the entity's business key. Rows are converted to frozen entities
on the way out; ``create`` returns a copy carrying the generated id.
"""

from __future__ import annotations

from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from hostctl.domain.errors import ConflictError, NotFoundError

E = TypeVar("E", bound=BaseModel)


class TableRepository(Generic[E]):
    """Find/create/delete access to one table."""

    table: ClassVar[Table]
    entity: ClassVar[type[BaseModel]]
    unique_key: ClassVar[str | None] = None

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Gateway contract
    # ------------------------------------------------------------------

    def find(self, entity_id: int) -> E | None:
        return self._first(self.table.c.id == entity_id)

    def find_by_unique_key(self, key: str) -> E | None:
        if self.unique_key is None:
            raise TypeError(f"{type(self).__name__} has no business key")
        return self._first(self.table.c[self.unique_key] == key)

    def create(self, entity: E) -> E:
        """Insert *entity* and return a copy with its generated id.

        Raises:
            ConflictError: A UNIQUE constraint rejected the row.
            NotFoundError: The referenced owner row does not exist.
        """
        values = self._to_row(entity)
        try:
            with self._engine.begin() as conn:
                result = conn.execute(insert(self.table).values(**values))
                new_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            message = str(exc.orig)
            if "UNIQUE" in message.upper():
                raise ConflictError(
                    f"{self.table.name} record already exists",
                    detail={"table": self.table.name},
                ) from exc
            if "FOREIGN KEY" in message.upper():
                raise NotFoundError(
                    f"Referenced owner of {self.table.name} record does not exist",
                    detail={"table": self.table.name},
                ) from exc
            raise
        return entity.model_copy(update={"id": int(new_id)})

    def update(self, entity: E) -> E:
        """Write every field of *entity* back to its row."""
        entity_id = getattr(entity, "id", None)
        if entity_id is None:
            raise ValueError("cannot update an entity without an id")
        stmt = update(self.table).where(self.table.c.id == entity_id)
        with self._engine.begin() as conn:
            result = conn.execute(stmt.values(**self._to_row(entity)))
        if not result.rowcount:
            raise NotFoundError(f"{self.table.name} record {entity_id} does not exist")
        return entity

    def delete(self, entity_id: int) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(delete(self.table).where(self.table.c.id == entity_id))
        return bool(result.rowcount)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_by(self, **filters: Any) -> list[E]:
        """All rows whose columns equal *filters*, ordered by id."""
        stmt = select(self.table).order_by(self.table.c.id)
        for column, value in filters.items():
            stmt = stmt.where(self.table.c[column] == value)
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [self._from_row(row) for row in rows]

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def _first(self, condition: Any) -> E | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(self.table).where(condition)).mappings().first()
        return None if row is None else self._from_row(row)

    def _to_row(self, entity: E) -> dict[str, Any]:
        data = entity.model_dump(mode="json", exclude={"id"})
        return {k: v for k, v in data.items() if k in self.table.c}

    def _from_row(self, row: Any) -> E:
        fields = self.entity.model_fields
        data = {k: v for k, v in row.items() if k in fields}
        return self.entity.model_validate(data)  # type: ignore[return-value]
