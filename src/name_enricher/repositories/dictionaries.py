"""Dictionary repositories - genders and nationalities.

Both tables share the ``(id, name)`` shape and the same contract, so the SQL
lives in :class:`DictionaryRepository` and the subclasses only name the table
and the row type.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from name_enricher.core.database import Session
from name_enricher.core.errors import NotFoundError
from name_enricher.core.models import DictionaryFilter, DictionaryPatch, Gender, Nationality
from name_enricher.core.query import Contains, Equals, EqualsIgnoreCase, Page, SelectQuery, UpdateStatement
from name_enricher.observability.logging import get_logger

EntityT = TypeVar("EntityT", Gender, Nationality)


class DictionaryRepository(Generic[EntityT]):
    """CRUD over an ``(id, name)`` lookup table."""

    table: str
    entity: str
    model: type[EntityT]

    def __init__(self, session: Session, *, logger=None):
        self._session = session
        self._logger = logger or get_logger(__name__)

    def _select(self) -> SelectQuery:
        return SelectQuery(f"SELECT id, name FROM {self.table}")

    def _to_entity(self, row: tuple) -> EntityT:
        return self.model(id=row[0], name=row[1])

    def list(self, filter: DictionaryFilter | None = None) -> list[EntityT]:
        """List rows matching the filter, ordered by id."""
        filter = filter or DictionaryFilter()
        query = (
            self._select()
            .where(Equals.when_positive("id", filter.id))
            .where(Contains.when_present("name", filter.name))
            .order_by("id")
            .paginate(Page.when_complete(filter.page, filter.limit))
        )
        sql, params = query.build(self._session.dialect)
        rows = self._session.fetchall(sql, params)
        return [self._to_entity(row) for row in rows]

    def get(self, entity_id: int) -> EntityT:
        """Fetch a single row or raise :class:`NotFoundError`."""
        matches = self.list(DictionaryFilter(id=entity_id))
        if not matches:
            raise NotFoundError(self.entity, entity_id)
        return matches[0]

    def find_by_name(self, name: str) -> EntityT | None:
        """Exact, case-insensitive lookup by name."""
        query = self._select().where(EqualsIgnoreCase("name", name)).order_by("id")
        sql, params = query.build(self._session.dialect)
        row = self._session.fetchone(sql, params)
        return self._to_entity(row) if row is not None else None

    def create(self, name: str) -> EntityT:
        """Insert a new row and return it with its generated id."""
        placeholder = self._session.dialect.placeholder(0)
        with self._session.transaction():
            row = self._session.fetchone(
                f"INSERT INTO {self.table} (name) VALUES ({placeholder}) RETURNING id, name",
                (name,),
            )
        created = self._to_entity(row)
        self._logger.info(f"{self.entity}_created", id=created.id, name=created.name)
        return created

    def update(self, entity_id: int, patch: DictionaryPatch) -> EntityT:
        """Apply the supplied patch fields; an empty patch returns the current row."""
        current = self.get(entity_id)
        statement = UpdateStatement(
            table=self.table,
            changes=patch.changes(),
            key_column="id",
            key=entity_id,
            returning=("id", "name"),
        )
        if statement.is_empty:
            return current

        sql, params = statement.build(self._session.dialect)
        with self._session.transaction():
            row = self._session.fetchone(sql, params)
        if row is None:
            raise NotFoundError(self.entity, entity_id)
        updated = self._to_entity(row)
        self._logger.info(f"{self.entity}_updated", id=updated.id, name=updated.name)
        return updated

    def delete(self, entity_id: int) -> EntityT:
        """Delete a row and return its prior values."""
        placeholder = self._session.dialect.placeholder(0)
        with self._session.transaction():
            row = self._session.fetchone(
                f"DELETE FROM {self.table} WHERE id = {placeholder} RETURNING id, name",
                (entity_id,),
            )
        if row is None:
            raise NotFoundError(self.entity, entity_id)
        deleted = self._to_entity(row)
        self._logger.info(f"{self.entity}_deleted", id=deleted.id, name=deleted.name)
        return deleted


class GenderRepository(DictionaryRepository[Gender]):
    table = "genders"
    entity = "gender"
    model = Gender


class NationalityRepository(DictionaryRepository[Nationality]):
    table = "nationalities"
    entity = "nationality"
    model = Nationality
