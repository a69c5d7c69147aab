"""Tests for AnnotationProcessor template substitution."""

from __future__ import annotations

import pytest

from sqld.annotate.processor import (
    ALL_MARKERS,
    CURSOR_MARKER,
    LIMIT_MARKER,
    ORDER_BY_MARKER,
    WHERE_MARKER,
    AnnotationProcessor,
    ProcessedQuery,
    search_query,
)
from sqld.compile.order_by import OrderByBuilder
from sqld.compile.where import WhereBuilder
from sqld.errors import TemplateError, UnsafeSQLError, UnsupportedDialectError
from sqld.schema.cursor import Cursor
from sqld.schema.dialect import Dialect
from sqld.validate.validator import QueryValidator

SIMPLE = (
    "SELECT * FROM users WHERE active=true /* sqld:where */ "
    "ORDER BY created_at DESC /* sqld:orderby */ /* sqld:limit */"
)

CURSOR = Cursor(value="2024-05-01T12:00:00", id=5)


def _strip_markers(template: str) -> str:
    for marker in ALL_MARKERS:
        template = template.replace(marker, "")
    return template


# ---------------------------------------------------------------------------
# No dynamic input
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("name", ["GetUser", "ListUsers", "SearchUsers", "SearchUsersByStatus"])
def test_no_input_only_removes_marker_text(pg_processor, pg_queries, sqlite_queries, name):
    for queries in (pg_queries, sqlite_queries):
        if name not in queries:
            continue
        template = queries[name]
        result = pg_processor.process(template)
        assert result.sql == _strip_markers(template)
        assert result.params == []


def test_empty_builders_count_as_no_input(pg_processor):
    result = pg_processor.process(
        SIMPLE, where=WhereBuilder(Dialect.POSTGRES), order_by=OrderByBuilder(), limit=0
    )
    assert result.sql == _strip_markers(SIMPLE)


# ---------------------------------------------------------------------------
# Full substitution
# ---------------------------------------------------------------------------


def test_where_orderby_limit_postgres(pg_processor):
    result = pg_processor.process(
        SIMPLE,
        where=WhereBuilder(Dialect.POSTGRES).greater_than("age", 18),
        order_by=OrderByBuilder().asc("name"),
        limit=10,
    )
    assert result.sql == (
        "SELECT * FROM users WHERE active=true AND age > $1 ORDER BY name ASC LIMIT $2"
    )
    assert result.params == [18, 10]
    assert result.dialect is Dialect.POSTGRES


def test_cursor_postgres(pg_processor, pg_queries):
    result = pg_processor.process(
        pg_queries["SearchUsers"],
        where=WhereBuilder(Dialect.POSTGRES).greater_than("age", 18),
        cursor=CURSOR,
        order_by=OrderByBuilder().asc("name"),
        limit=10,
    )
    assert "WHERE deleted_at IS NULL AND (created_at < $1 OR (created_at = $1 AND id < $2)) AND age > $3\n" in result.sql
    assert result.sql.endswith("ORDER BY name ASC LIMIT $4")
    assert result.params == [CURSOR.value, 5, 18, 10]
    assert CURSOR_MARKER not in result.sql


def test_cursor_sqlite_repeats_value(sqlite_processor, sqlite_queries):
    result = sqlite_processor.process(
        sqlite_queries["SearchUsers"],
        where=WhereBuilder(Dialect.SQLITE).equal("status", "active"),
        cursor=CURSOR,
        limit=10,
    )
    assert "(created_at < ? OR (created_at = ? AND id < ?)) AND status = ?" in result.sql
    assert result.sql.endswith("ORDER BY created_at DESC, id DESC LIMIT ?")
    assert result.params == [CURSOR.value, CURSOR.value, 5, "active", 10]
    assert result.sql.count("?") == len(result.params)


def test_ascending_keyset():
    processor = AnnotationProcessor(
        Dialect.POSTGRES, cursor_column="score", id_column="uid", descending=False
    )
    result = processor.process("SELECT * FROM t WHERE 1=1 /* sqld:where */ /* sqld:cursor */", cursor=CURSOR)
    assert result.sql == "SELECT * FROM t WHERE 1=1 AND (score > $1 OR (score = $1 AND uid > $2)) "
    assert result.params == [CURSOR.value, 5]


def test_template_params_shift_numbering(pg_processor, pg_queries):
    result = pg_processor.process(
        pg_queries["SearchUsersByStatus"],
        where=WhereBuilder(Dialect.POSTGRES).equal("role", "admin").in_("country", ["DE", "FR"]),
        limit=5,
        params=["active"],
    )
    assert "WHERE status = $1 AND deleted_at IS NULL AND role = $2 AND country IN ($3, $4)" in result.sql
    assert result.sql.endswith("LIMIT $5")
    assert result.params == ["active", "admin", "DE", "FR", 5]


def test_template_params_with_cursor(pg_processor, pg_queries):
    result = pg_processor.process(
        pg_queries["SearchUsersByStatus"], cursor=CURSOR, params=["active"]
    )
    assert "(created_at < $2 OR (created_at = $2 AND id < $3))" in result.sql
    assert result.params == ["active", CURSOR.value, 5]


def test_process_returns_unpackable_result(sqlite_processor):
    result = sqlite_processor.process(SIMPLE, limit=3)
    assert isinstance(result, ProcessedQuery)
    sql, params = result
    assert sql.endswith("ORDER BY created_at DESC LIMIT ?")
    assert params == [3]


# ---------------------------------------------------------------------------
# ORDER BY
# ---------------------------------------------------------------------------


def test_orderby_without_static_order_by(pg_processor):
    template = "SELECT * FROM t WHERE a = 1 /* sqld:where */ /* sqld:orderby */ /* sqld:limit */"
    result = pg_processor.process(template, order_by=OrderByBuilder().desc("id"))
    assert result.sql == "SELECT * FROM t WHERE a = 1 ORDER BY id DESC "


def test_orderby_replaces_only_the_outer_clause(pg_processor):
    template = (
        "SELECT * FROM (SELECT * FROM t ORDER BY a) s WHERE 1=1 "
        "ORDER BY b ASC /* sqld:orderby */"
    )
    result = pg_processor.process(template, order_by=OrderByBuilder().desc("c"))
    assert result.sql == "SELECT * FROM (SELECT * FROM t ORDER BY a) s WHERE 1=1 ORDER BY c DESC"


def test_orderby_ignores_window_order_by(pg_processor):
    template = (
        "SELECT id, ROW_NUMBER() OVER (ORDER BY created_at) AS rn FROM users "
        "WHERE deleted_at IS NULL /* sqld:where */ /* sqld:orderby */ /* sqld:limit */"
    )
    result = pg_processor.process(
        template,
        where=WhereBuilder(Dialect.POSTGRES).equal("a", 1),
        order_by=OrderByBuilder().asc("name"),
        limit=5,
    )
    assert result.sql == (
        "SELECT id, ROW_NUMBER() OVER (ORDER BY created_at) AS rn FROM users "
        "WHERE deleted_at IS NULL AND a = $1 ORDER BY name ASC LIMIT $2"
    )
    assert result.params == [1, 5]


def test_orderby_ignores_subquery_order_by(sqlite_processor):
    template = (
        "SELECT * FROM users WHERE id IN "
        "(SELECT user_id FROM logins ORDER BY at DESC LIMIT 10) "
        "/* sqld:where */ /* sqld:orderby */"
    )
    result = sqlite_processor.process(
        template,
        where=WhereBuilder(Dialect.SQLITE).equal("status", "active"),
        order_by=OrderByBuilder().desc("id"),
    )
    assert result.sql == (
        "SELECT * FROM users WHERE id IN "
        "(SELECT user_id FROM logins ORDER BY at DESC LIMIT 10) "
        "AND status = ? ORDER BY id DESC"
    )
    assert result.sql.count("?") == len(result.params) == 1


def test_orderby_replaces_outer_clause_containing_a_subquery(pg_processor):
    template = (
        "SELECT * FROM t ORDER BY (SELECT max(x) FROM u ORDER BY y), id /* sqld:orderby */"
    )
    result = pg_processor.process(template, order_by=OrderByBuilder().asc("name"))
    assert result.sql == "SELECT * FROM t ORDER BY name ASC"


def test_orderby_is_case_insensitive(pg_processor):
    result = pg_processor.process(
        "select * from t order by a /* sqld:orderby */", order_by=OrderByBuilder().asc("b")
    )
    assert result.sql == "select * from t ORDER BY b ASC"


# ---------------------------------------------------------------------------
# Missing markers
# ---------------------------------------------------------------------------


def test_conditions_without_where_marker(pg_processor):
    with pytest.raises(TemplateError) as exc_info:
        pg_processor.process(
            "SELECT * FROM users", where=WhereBuilder(Dialect.POSTGRES).equal("a", 1)
        )
    assert exc_info.value.marker == WHERE_MARKER


def test_sort_without_orderby_marker(pg_processor, sqlite_queries):
    with pytest.raises(TemplateError) as exc_info:
        pg_processor.process(sqlite_queries["ListUsers"], order_by=OrderByBuilder().asc("name"))
    assert exc_info.value.marker == ORDER_BY_MARKER


def test_limit_without_limit_marker(pg_processor):
    with pytest.raises(TemplateError) as exc_info:
        pg_processor.process("SELECT * FROM users /* sqld:where */", limit=10)
    assert exc_info.value.marker == LIMIT_MARKER


def test_cursor_without_cursor_marker_is_ignored(sqlite_processor, sqlite_queries):
    template = sqlite_queries["GetUser"]
    result = sqlite_processor.process(template, cursor=CURSOR, params=[1])
    assert result.sql == _strip_markers(template)
    assert result.params == [1]


# ---------------------------------------------------------------------------
# Construction and validation
# ---------------------------------------------------------------------------


def test_unknown_dialect():
    with pytest.raises(UnsupportedDialectError):
        AnnotationProcessor("oracle")


def test_unsafe_keyset_column():
    with pytest.raises(UnsafeSQLError):
        AnnotationProcessor(Dialect.SQLITE, cursor_column="created_at; DROP TABLE users")


def test_validator_rejects_stacked_statements():
    processor = AnnotationProcessor(Dialect.POSTGRES, validator=QueryValidator())
    with pytest.raises(UnsafeSQLError):
        processor.process(
            "SELECT * FROM t WHERE 1=1 /* sqld:where */; DROP TABLE t",
            where=WhereBuilder(Dialect.POSTGRES).equal("a", 1),
        )


def test_disabled_validator_passes_everything():
    processor = AnnotationProcessor(Dialect.POSTGRES, validator=QueryValidator(enabled=False))
    assert processor.process("SELECT 1; SELECT 2").sql == "SELECT 1; SELECT 2"


def test_search_query_helper():
    sql, params = search_query(
        SIMPLE, "mysql", where=WhereBuilder(Dialect.MYSQL).ilike("name", "%jo%"), limit=25
    )
    assert sql == (
        "SELECT * FROM users WHERE active=true AND LOWER(name) LIKE LOWER(?) "
        "ORDER BY created_at DESC LIMIT ?"
    )
    assert params == ["%jo%", 25]
