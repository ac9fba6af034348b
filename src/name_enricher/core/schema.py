"""Schema management.

DDL is rendered through the session's dialect so the same statements create
the tables on PostgreSQL and SQLite. Every statement is idempotent.
"""

from __future__ import annotations

from name_enricher.core.database import Session

TABLES = ("persons", "nationalities", "genders")


def schema_statements(session: Session) -> list[str]:
    """DDL statements in dependency order."""
    pk = session.dialect.auto_increment()
    return [
        f"""
        CREATE TABLE IF NOT EXISTS genders (
            id {pk},
            name VARCHAR(255) NOT NULL UNIQUE
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS nationalities (
            id {pk},
            name VARCHAR(255) NOT NULL UNIQUE
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS persons (
            id {pk},
            name VARCHAR(255) NOT NULL,
            surname VARCHAR(255) NOT NULL,
            patronymic VARCHAR(255),
            age INTEGER NOT NULL DEFAULT 0,
            gender_id INTEGER REFERENCES genders (id) ON DELETE SET NULL,
            nationality_id INTEGER REFERENCES nationalities (id) ON DELETE SET NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_persons_gender_id ON persons (gender_id)",
        "CREATE INDEX IF NOT EXISTS idx_persons_nationality_id ON persons (nationality_id)",
    ]


def apply_schema(session: Session) -> int:
    """Create all tables and indexes. Returns the number of statements run."""
    statements = schema_statements(session)
    with session.transaction():
        for statement in statements:
            session.execute(statement)
    return len(statements)


def drop_schema(session: Session) -> None:
    """Drop all tables, children first."""
    with session.transaction():
        for table in TABLES:
            session.execute(f"DROP TABLE IF EXISTS {table}")
