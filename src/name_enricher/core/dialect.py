"""SQL dialect abstraction.

Repositories build SQL from dialect fragments (placeholders, case-insensitive
matching, DDL types) so the same query code runs on PostgreSQL in production
and SQLite in development and tests.

Examples:
    >>> from name_enricher.core.dialect import get_dialect
    >>> d = get_dialect("sqlite")
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> get_dialect("postgresql").contains_ignore_case("name", "%s")
    "name ILIKE %s ESCAPE '\\\\'"
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

LIKE_ESCAPE = "\\"


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment valid for the target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def contains_ignore_case(self, column: str, placeholder: str) -> str:
        """Case-insensitive ``LIKE`` predicate with ``\\`` as escape char."""
        ...

    def equals_ignore_case(self, column: str, placeholder: str) -> str:
        """Case-insensitive equality predicate."""
        ...

    def auto_increment(self) -> str:
        """DDL fragment for an auto-incrementing integer primary key."""
        ...


class SQLiteDialect:
    """SQLite dialect - ``?`` placeholders.

    SQLite folds case for ASCII only, in both ``LIKE`` and the built-in
    ``LOWER()``. Both sides of every case-insensitive predicate go through
    ``LOWER()``, which :class:`~name_enricher.core.database.Database`
    replaces with Python's Unicode-aware ``str.lower`` on each connection.
    """

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def contains_ignore_case(self, column: str, placeholder: str) -> str:
        return f"LOWER({column}) LIKE LOWER({placeholder}) ESCAPE '{LIKE_ESCAPE}'"

    def equals_ignore_case(self, column: str, placeholder: str) -> str:
        return f"LOWER({column}) = LOWER({placeholder})"

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"


class PostgreSQLDialect:
    """PostgreSQL dialect - ``%s`` placeholders (psycopg), ``ILIKE``."""

    @property
    def name(self) -> str:
        return "postgresql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def contains_ignore_case(self, column: str, placeholder: str) -> str:
        return f"{column} ILIKE {placeholder} ESCAPE '{LIKE_ESCAPE}'"

    def equals_ignore_case(self, column: str, placeholder: str) -> str:
        return f"LOWER({column}) = LOWER({placeholder})"

    def auto_increment(self) -> str:
        return "SERIAL PRIMARY KEY"


_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


def escape_like(text: str) -> str:
    """Escape ``LIKE`` metacharacters so user text matches literally."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "get_dialect",
    "escape_like",
]
