"""Person repository.

Reads always go through the joined query so every returned :class:`Person`
carries its gender and nationality names. Writes re-fetch the joined record
instead of trusting the raw ``RETURNING`` row.
"""

from __future__ import annotations

from typing import Any

from name_enricher.core.database import Session
from name_enricher.core.errors import ClientInputError, NotFoundError
from name_enricher.core.models import (
    DeletedPerson,
    Gender,
    Nationality,
    NewPerson,
    Person,
    PersonFilter,
    PersonPatch,
    PersonReplace,
)
from name_enricher.core.query import AtLeast, AtMost, Contains, Equals, Page, SelectQuery, UpdateStatement
from name_enricher.observability.logging import get_logger

PERSON_COLUMNS = ("name", "surname", "patronymic", "age", "gender_id", "nationality_id")

JOINED_SELECT = """
    SELECT p.id, p.name, p.surname, p.patronymic, p.age,
           p.gender_id, g.name AS gender_name,
           p.nationality_id, n.name AS nationality_name
    FROM persons p
    LEFT JOIN genders g ON g.id = p.gender_id
    LEFT JOIN nationalities n ON n.id = p.nationality_id
""".strip()


def _row_to_person(row: tuple) -> Person:
    (pid, name, surname, patronymic, age, gender_id, gender_name, nationality_id, nationality_name) = row
    return Person(
        id=pid,
        name=name,
        surname=surname,
        patronymic=patronymic,
        age=age,
        gender=Gender(id=gender_id, name=gender_name) if gender_id is not None else None,
        nationality=(
            Nationality(id=nationality_id, name=nationality_name)
            if nationality_id is not None
            else None
        ),
    )


class PersonRepository:
    """CRUD for persons joined with their dictionaries."""

    def __init__(self, session: Session, *, logger=None):
        self._session = session
        self._logger = logger or get_logger(__name__)

    def list(self, filter: PersonFilter | None = None) -> list[Person]:
        """List persons matching the filter, ordered by id."""
        filter = filter or PersonFilter()
        query = (
            SelectQuery(JOINED_SELECT)
            .where(Equals.when_positive("p.id", filter.id))
            .where(Contains.when_present("p.name", filter.name))
            .where(Contains.when_present("p.surname", filter.surname))
            .where(AtLeast.when_positive("p.age", filter.age_from))
            .where(AtMost.when_positive("p.age", filter.age_to))
            .where(Equals.when_positive("p.gender_id", filter.gender_id))
            .where(Equals.when_positive("p.nationality_id", filter.nationality_id))
            .order_by("p.id")
            .paginate(Page.when_complete(filter.page, filter.limit))
        )
        sql, params = query.build(self._session.dialect)
        self._logger.debug("listing_persons", filter=filter)
        return [_row_to_person(row) for row in self._session.fetchall(sql, params)]

    def get(self, person_id: int) -> Person:
        """Fetch one joined person or raise :class:`NotFoundError`."""
        matches = self.list(PersonFilter(id=person_id))
        if not matches:
            raise NotFoundError("person", person_id)
        return matches[0]

    def create(self, person: NewPerson) -> Person:
        """Insert a resolved person and return the joined record."""
        values = (
            person.name,
            person.surname,
            person.patronymic,
            person.age,
            person.gender_id,
            person.nationality_id,
        )
        sql = (
            f"INSERT INTO persons ({', '.join(PERSON_COLUMNS)}) "
            f"VALUES ({self._session.dialect.placeholders(len(PERSON_COLUMNS))}) RETURNING id"
        )
        with self._session.transaction():
            row = self._session.fetchone(sql, values)
            created = self.get(row[0])
        self._logger.info("person_created", id=created.id, name=created.name)
        return created

    def patch(self, person_id: int, patch: PersonPatch) -> Person:
        """Update only the supplied fields; an empty patch is a no-op."""
        current = self.get(person_id)
        changes = patch.changes()
        if not changes:
            return current

        self._check_references(changes)
        statement = UpdateStatement(
            table="persons",
            changes=changes,
            key_column="id",
            key=person_id,
            returning=("id",),
        )
        sql, params = statement.build(self._session.dialect)
        with self._session.transaction():
            row = self._session.fetchone(sql, params)
            if row is None:
                raise NotFoundError("person", person_id)
            updated = self.get(person_id)
        self._logger.info("person_patched", id=person_id, fields=sorted(changes))
        return updated

    def replace(self, person_id: int, person: PersonReplace) -> Person:
        """Overwrite every column of an existing person."""
        self.get(person_id)
        changes = {
            "name": person.name,
            "surname": person.surname,
            "patronymic": person.patronymic,
            "age": person.age,
            "gender_id": person.gender_id,
            "nationality_id": person.nationality_id,
        }
        self._check_references(changes)
        sql, params = UpdateStatement(
            table="persons",
            changes=changes,
            key_column="id",
            key=person_id,
        ).build(self._session.dialect)
        with self._session.transaction():
            self._session.execute(sql, params)
            replaced = self.get(person_id)
        self._logger.info("person_replaced", id=person_id)
        return replaced

    def delete(self, person_id: int) -> DeletedPerson:
        """Delete a person and return its identifying fields."""
        placeholder = self._session.dialect.placeholder(0)
        with self._session.transaction():
            row = self._session.fetchone(
                f"DELETE FROM persons WHERE id = {placeholder} RETURNING id, name, surname",
                (person_id,),
            )
        if row is None:
            raise NotFoundError("person", person_id)
        self._logger.info("person_deleted", id=person_id)
        return DeletedPerson(id=row[0], name=row[1], surname=row[2])

    def _check_references(self, changes: dict[str, Any]) -> None:
        """Reject dictionary ids that point at no row."""
        for column, table in (("gender_id", "genders"), ("nationality_id", "nationalities")):
            ref = changes.get(column)
            if ref is None:
                continue
            placeholder = self._session.dialect.placeholder(0)
            row = self._session.fetchone(f"SELECT 1 FROM {table} WHERE id = {placeholder}", (ref,))
            if row is None:
                raise ClientInputError(
                    f"{column}={ref} does not reference an existing row in {table}",
                    context={"field": column},
                )
