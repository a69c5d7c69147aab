"""Integration tests: parse → process → execute against an in-memory SQLite DB.

Every test runs twice, once through the plain ``sqlite3`` DB-API adapter and
once through a SQLAlchemy connection, using the annotated templates from
``tests/fixtures/queries_sqlite.sql``.
"""
from __future__ import annotations

import sqlite3
from collections.abc import Iterator

import pytest

from sqld.compile.where import WhereBuilder
from sqld.errors import NoRowsError, TemplateError
from sqld.execute.executor import DBAPIExecutor, SQLAlchemyExecutor
from sqld.execute.queries import Queries
from sqld.parse.request import parse_request
from sqld.schema.dialect import Dialect
from tests.fixtures import load_ddl

INSERT_USER = (
    "INSERT INTO users (id, name, email, age, status, role, country, verified, created_at, deleted_at) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
)

USERS = [
    (1, "Alice", "alice@acme.com", 34, "active", "admin", "DE", 1, "2024-01-01T09:00:00", None),
    (2, "Bob", "bob@acme.com", 17, "active", "user", "FR", 0, "2024-01-02T09:00:00", None),
    (3, "Carol", "carol@beta.io", 45, "banned", "user", "DE", 1, "2024-01-03T09:00:00", None),
    (4, "Dave", "dave@acme.com", 29, "active", "staff", "US", 1, "2024-01-04T09:00:00", None),
    (5, "Eve", "eve@beta.io", 52, "active", "user", None, 0, "2024-01-04T09:00:00", None),
    (6, "Frank", "frank@acme.com", 38, "active", "user", "DE", 1, "2024-01-05T09:00:00",
     "2024-02-01T00:00:00"),
    (7, "Grace", "grace@acme.com", 23, "active", "admin", "FR", 1, "2024-01-06T09:00:00", None),
]

#: Non-deleted users ordered by created_at DESC, id DESC.
NEWEST_FIRST = [7, 5, 4, 3, 2, 1]


def _ids(rows) -> list[int]:
    return [row["id"] for row in rows]


def _cursor_fields(row):
    return row["created_at"], row["id"]


@pytest.fixture(params=["dbapi", "sqlalchemy"])
def queries(request) -> Iterator[Queries]:
    if request.param == "dbapi":
        conn = sqlite3.connect(":memory:")
        conn.executescript(load_ddl("sqlite"))
        conn.executemany(INSERT_USER, USERS)
        yield Queries(DBAPIExecutor(conn), Dialect.SQLITE)
        conn.close()
        return

    sqlalchemy = pytest.importorskip("sqlalchemy")
    engine = sqlalchemy.create_engine("sqlite://")
    with engine.connect() as conn:
        for statement in load_ddl("sqlite").split(";"):
            if statement.strip():
                conn.exec_driver_sql(statement)
        conn.exec_driver_sql(INSERT_USER, USERS)
        yield Queries(SQLAlchemyExecutor(conn), Dialect.SQLITE)
    engine.dispose()


def _search(queries: Queries, query_string: str, users_config, sqlite_queries) -> list[int]:
    parsed = parse_request(query_string, Dialect.SQLITE, users_config)
    rows = queries.query_all(
        sqlite_queries["SearchUsers"],
        where=parsed.where,
        order_by=parsed.order_by,
        cursor=parsed.cursor,
        limit=parsed.limit,
    )
    return _ids(rows)


# ---------------------------------------------------------------------------
# Filtering and sorting
# ---------------------------------------------------------------------------


def test_static_template(queries, sqlite_queries):
    rows = queries.query_all(sqlite_queries["ListUsers"])
    assert sorted(_ids(rows)) == [1, 2, 3, 4, 5, 7]


def test_no_filters_keeps_static_order(queries, sqlite_queries):
    assert _ids(queries.query_all(sqlite_queries["SearchUsers"])) == NEWEST_FIRST


def test_comparison_and_list_filters(queries, users_config, sqlite_queries):
    ids = _search(queries, "status=active&age[gte]=18&country[in]=DE,FR", users_config, sqlite_queries)
    assert ids == [7, 1]


def test_case_insensitive_contains_with_sort(queries, users_config, sqlite_queries):
    ids = _search(queries, "name[contains]=A&sort=name", users_config, sqlite_queries)
    assert ids == [1, 3, 4, 7]


def test_negated_pattern(queries, users_config, sqlite_queries):
    ids = _search(queries, "email[doesNotContain]=acme", users_config, sqlite_queries)
    assert ids == [5, 3]


def test_null_check_and_not_in(queries, users_config, sqlite_queries):
    assert _search(queries, "country[isnull]=1", users_config, sqlite_queries) == [5]
    ids = _search(queries, "role[notin]=user,admin", users_config, sqlite_queries)
    assert ids == [4]


def test_limit_and_multi_field_sort(queries, users_config, sqlite_queries):
    ids = _search(queries, "sort=role,-age&limit=3", users_config, sqlite_queries)
    assert ids == [1, 7, 4]


def test_template_params_come_first(queries, sqlite_queries):
    rows = queries.query_all(
        sqlite_queries["SearchUsersByStatus"],
        where=WhereBuilder(Dialect.SQLITE).greater_than("age", 30),
        params=["active"],
    )
    assert _ids(rows) == [5, 1]


def test_query_one(queries, sqlite_queries):
    row = queries.query_one(sqlite_queries["GetUser"], params=[4])
    assert row["name"] == "Dave"
    with pytest.raises(NoRowsError):
        queries.query_one(sqlite_queries["GetUser"], params=[6])


def test_missing_marker_fails_before_execution(queries, users_config, sqlite_queries):
    parsed = parse_request("sort=-age", Dialect.SQLITE, users_config)
    with pytest.raises(TemplateError):
        queries.query_all(sqlite_queries["ListUsers"], order_by=parsed.order_by)


# ---------------------------------------------------------------------------
# Keyset pagination
# ---------------------------------------------------------------------------


def test_paginate_through_all_pages(queries, sqlite_queries):
    seen: list[int] = []
    pages = 0
    cursor = None
    while True:
        page = queries.query_paginated(
            sqlite_queries["SearchUsers"], limit=2, cursor=cursor, cursor_fields=_cursor_fields
        )
        pages += 1
        seen.extend(_ids(page.items))
        if not page.has_more:
            assert page.next_cursor is None
            break
        cursor = parse_request({"cursor": page.next_cursor}, Dialect.SQLITE).cursor

    assert seen == NEWEST_FIRST
    assert pages == 3


def test_paginate_with_filters(queries, users_config, sqlite_queries):
    parsed = parse_request("status=active", Dialect.SQLITE, users_config)
    first = queries.query_paginated(
        sqlite_queries["SearchUsers"], limit=3, where=parsed.where, cursor_fields=_cursor_fields
    )
    assert _ids(first.items) == [7, 5, 4]
    assert first.has_more

    parsed = parse_request(f"status=active&cursor={first.next_cursor}", Dialect.SQLITE, users_config)
    second = queries.query_paginated(
        sqlite_queries["SearchUsers"],
        limit=3,
        where=parsed.where,
        cursor=parsed.cursor,
        cursor_fields=_cursor_fields,
    )
    assert _ids(second.items) == [2, 1]
    assert not second.has_more


def test_dbapi_executor_native_rows():
    conn = sqlite3.connect(":memory:")
    try:
        rows = DBAPIExecutor(conn, as_mappings=False).fetch_all("SELECT ? + 1, ?", [1, "x"])
    finally:
        conn.close()
    assert rows == [(2, "x")]
