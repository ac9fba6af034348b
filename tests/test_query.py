"""Tests for the parameterized query builder."""

import pytest

from name_enricher.core.dialect import PostgreSQLDialect, SQLiteDialect, escape_like, get_dialect
from name_enricher.core.query import (
    AtLeast,
    AtMost,
    Contains,
    Equals,
    Page,
    SelectQuery,
    UpdateStatement,
)

PG = PostgreSQLDialect()
LITE = SQLiteDialect()


class TestClauses:
    def test_absent_numeric_values_produce_no_clause(self):
        assert Equals.when_positive("id", None) is None
        assert Equals.when_positive("id", 0) is None
        assert Equals.when_positive("id", -3) is None
        assert AtLeast.when_positive("age", 0) is None
        assert AtMost.when_positive("age", None) is None

    def test_empty_text_produces_no_clause(self):
        assert Contains.when_present("name", None) is None
        assert Contains.when_present("name", "") is None

    def test_contains_escapes_wildcards(self):
        sql, params = Contains("name", "50%_off").render(PG, 0)
        assert sql == "name ILIKE %s ESCAPE '\\'"
        assert params == ("%50\\%\\_off%",)

    def test_sqlite_contains_lowers_both_sides(self):
        sql, _ = Contains("name", "jo").render(LITE, 0)
        assert sql == "LOWER(name) LIKE LOWER(?) ESCAPE '\\'"

    def test_escape_like_escapes_backslash(self):
        assert escape_like("a\\b") == "a\\\\b"


class TestPage:
    def test_offset_is_page_minus_one_times_limit(self):
        assert Page(2, 10).offset == 10
        assert Page(1, 25).offset == 0

    @pytest.mark.parametrize("page,limit", [(None, 10), (2, None), (0, 10), (2, 0), (-1, -1)])
    def test_incomplete_page_means_no_pagination(self, page, limit):
        assert Page.when_complete(page, limit) is None


class TestSelectQuery:
    def test_no_filters_renders_base_only(self):
        sql, params = SelectQuery("SELECT id, name FROM genders").order_by("id").build(PG)
        assert sql == "SELECT id, name FROM genders ORDER BY id"
        assert params == ()

    def test_clauses_are_anded_in_order(self):
        query = (
            SelectQuery("SELECT * FROM persons p")
            .where(Contains.when_present("p.name", "jo"))
            .where(AtLeast.when_positive("p.age", 30))
            .where(AtMost.when_positive("p.age", 40))
            .where(Equals.when_positive("p.gender_id", None))
        )
        sql, params = query.build(PG)
        assert sql == (
            "SELECT * FROM persons p WHERE p.name ILIKE %s ESCAPE '\\' "
            "AND p.age >= %s AND p.age <= %s"
        )
        assert params == ("%jo%", 30, 40)

    def test_pagination_appends_limit_then_offset(self):
        query = (
            SelectQuery("SELECT id FROM persons")
            .where(Equals.when_positive("id", 7))
            .order_by("id")
            .paginate(Page.when_complete(2, 10))
        )
        sql, params = query.build(LITE)
        assert sql == "SELECT id FROM persons WHERE id = ? ORDER BY id LIMIT ? OFFSET ?"
        assert params == (7, 10, 10)

    def test_zero_id_means_no_id_predicate(self):
        sql, params = SelectQuery("SELECT id FROM genders").where(Equals.when_positive("id", 0)).build(PG)
        assert "WHERE" not in sql
        assert params == ()


class TestUpdateStatement:
    def test_sets_only_supplied_columns(self):
        sql, params = UpdateStatement(
            table="persons",
            changes={"age": 41, "patronymic": None},
            key_column="id",
            key=3,
            returning=("id",),
        ).build(PG)
        assert sql == "UPDATE persons SET age = %s, patronymic = %s WHERE id = %s RETURNING id"
        assert params == (41, None, 3)

    def test_empty_update_cannot_be_built(self):
        statement = UpdateStatement(table="genders", changes={}, key_column="id", key=1)
        assert statement.is_empty
        with pytest.raises(ValueError):
            statement.build(PG)


def test_get_dialect_accepts_postgres_alias():
    assert get_dialect("postgres").name == "postgresql"
    assert get_dialect("sqlite").name == "sqlite"
