"""
Parameterized query builder.

Filters are translated into a list of typed predicate clauses. Each clause
renders its own SQL fragment and bound parameters through the active
:class:`~name_enricher.core.dialect.Dialect`, and :class:`SelectQuery`
composes them into one prepared statement. User text never reaches the SQL
string.

Architecture:
    ::

        PersonFilter(name="jo", age_from=30, page=2, limit=10)
                │
                ▼
        SelectQuery(BASE)
            .where(Contains.when_present("p.name", "jo"))
            .where(AtLeast.when_positive("p.age", 30))
            .order_by("p.id")
            .paginate(Page.when_complete(2, 10))
                │
                ▼  build(dialect)
        ("SELECT ... WHERE p.name ILIKE %s ESCAPE '\\' AND p.age >= %s
          ORDER BY p.id LIMIT %s OFFSET %s", ("%jo%", 30, 10, 10))

Absent filter values produce no clause: the ``when_*`` constructors return
``None`` and ``where(None)`` is a no-op. Numeric filters are absent when
``None`` or ``<= 0``; text filters are absent when ``None`` or empty.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from name_enricher.core.dialect import Dialect, escape_like


class Clause(Protocol):
    """A predicate that renders to SQL plus its bound parameters."""

    def render(self, dialect: Dialect, index: int) -> tuple[str, tuple[Any, ...]]:
        """Render starting at placeholder ``index`` (0-based)."""
        ...


def _is_positive(value: int | None) -> bool:
    return value is not None and value > 0


@dataclass(frozen=True)
class Equals:
    column: str
    value: Any

    @classmethod
    def when_positive(cls, column: str, value: int | None) -> Equals | None:
        return cls(column, value) if _is_positive(value) else None

    def render(self, dialect: Dialect, index: int) -> tuple[str, tuple[Any, ...]]:
        return f"{self.column} = {dialect.placeholder(index)}", (self.value,)


@dataclass(frozen=True)
class EqualsIgnoreCase:
    column: str
    value: str

    def render(self, dialect: Dialect, index: int) -> tuple[str, tuple[Any, ...]]:
        return dialect.equals_ignore_case(self.column, dialect.placeholder(index)), (self.value,)


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match."""

    column: str
    text: str

    @classmethod
    def when_present(cls, column: str, text: str | None) -> Contains | None:
        return cls(column, text) if text else None

    def render(self, dialect: Dialect, index: int) -> tuple[str, tuple[Any, ...]]:
        pattern = f"%{escape_like(self.text)}%"
        return dialect.contains_ignore_case(self.column, dialect.placeholder(index)), (pattern,)


@dataclass(frozen=True)
class AtLeast:
    column: str
    value: int

    @classmethod
    def when_positive(cls, column: str, value: int | None) -> AtLeast | None:
        return cls(column, value) if _is_positive(value) else None

    def render(self, dialect: Dialect, index: int) -> tuple[str, tuple[Any, ...]]:
        return f"{self.column} >= {dialect.placeholder(index)}", (self.value,)


@dataclass(frozen=True)
class AtMost:
    column: str
    value: int

    @classmethod
    def when_positive(cls, column: str, value: int | None) -> AtMost | None:
        return cls(column, value) if _is_positive(value) else None

    def render(self, dialect: Dialect, index: int) -> tuple[str, tuple[Any, ...]]:
        return f"{self.column} <= {dialect.placeholder(index)}", (self.value,)


@dataclass(frozen=True)
class Page:
    """1-indexed page of ``limit`` rows."""

    page: int
    limit: int

    @classmethod
    def when_complete(cls, page: int | None, limit: int | None) -> Page | None:
        """Pagination applies only when both page and limit are positive."""
        if _is_positive(page) and _is_positive(limit):
            return cls(page, limit)
        return None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class SelectQuery:
    """Composable ``SELECT`` with AND-ed predicates, ordering and paging."""

    base: str
    clauses: list[Clause] = field(default_factory=list)
    order: str | None = None
    page: Page | None = None

    def where(self, clause: Clause | None) -> SelectQuery:
        if clause is not None:
            self.clauses.append(clause)
        return self

    def order_by(self, column: str) -> SelectQuery:
        self.order = column
        return self

    def paginate(self, page: Page | None) -> SelectQuery:
        self.page = page
        return self

    def build(self, dialect: Dialect) -> tuple[str, tuple[Any, ...]]:
        sql = self.base
        params: list[Any] = []
        conditions: list[str] = []
        for clause in self.clauses:
            fragment, values = clause.render(dialect, len(params))
            conditions.append(fragment)
            params.extend(values)

        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        if self.order:
            sql += f" ORDER BY {self.order}"
        if self.page is not None:
            sql += f" LIMIT {dialect.placeholder(len(params))}"
            params.append(self.page.limit)
            sql += f" OFFSET {dialect.placeholder(len(params))}"
            params.append(self.page.offset)
        return sql, tuple(params)


@dataclass
class UpdateStatement:
    """``UPDATE table SET ... WHERE key = ?`` for the supplied columns only."""

    table: str
    changes: dict[str, Any]
    key_column: str
    key: Any
    returning: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def build(self, dialect: Dialect) -> tuple[str, tuple[Any, ...]]:
        if self.is_empty:
            raise ValueError("UpdateStatement has no columns to set")
        assignments = []
        params: list[Any] = []
        for column, value in self.changes.items():
            assignments.append(f"{column} = {dialect.placeholder(len(params))}")
            params.append(value)
        sql = (
            f"UPDATE {self.table} SET {', '.join(assignments)} "
            f"WHERE {self.key_column} = {dialect.placeholder(len(params))}"
        )
        params.append(self.key)
        if self.returning:
            sql += f" RETURNING {', '.join(self.returning)}"
        return sql, tuple(params)


__all__ = [
    "Clause",
    "Equals",
    "EqualsIgnoreCase",
    "Contains",
    "AtLeast",
    "AtMost",
    "Page",
    "SelectQuery",
    "UpdateStatement",
]
