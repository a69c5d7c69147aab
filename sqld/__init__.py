"""sqld – dynamic filtering, sorting and keyset pagination for static SQL.

Keep your queries in SQL.  Splice the dynamic parts in.

Public API
----------
``parse_request``
    Turn request parameters into a ``WhereBuilder``, an ``OrderByBuilder``,
    a decoded ``Cursor`` and a page size, under a ``QueryConfig`` policy.

``AnnotationProcessor`` / ``search_query``
    Substitute the ``/* sqld:where */``, ``/* sqld:cursor */``,
    ``/* sqld:orderby */`` and ``/* sqld:limit */`` markers of a template and
    return the final SQL with a parameter list in placeholder order.

``Queries``
    Run processed templates through an ``Executor`` (DB-API or SQLAlchemy)
    and build keyset-paginated results.

Example::

    config = QueryConfig.builder().allowed_fields(["name", "age"]).build()
    parsed = parse_request("age[gte]=18&sort=-name&limit=10", Dialect.POSTGRES, config)
    processed = search_query(
        LIST_USERS, Dialect.POSTGRES, parsed.where, parsed.cursor, parsed.order_by, parsed.limit
    )
    cursor.execute(processed.sql, processed.params)

Extensibility
-------------
New dialects can be registered via::

    from sqld.compile.registry import CompilerFactory

    @CompilerFactory.register("oracle")
    class OracleCompiler(DialectCompiler):
        ...
"""

from __future__ import annotations

from sqld.annotate.processor import (
    CURSOR_MARKER,
    LIMIT_MARKER,
    ORDER_BY_MARKER,
    WHERE_MARKER,
    AnnotationProcessor,
    ProcessedQuery,
    search_query,
)
from sqld.compile.base import DialectCompiler
from sqld.compile.mysql import MySQLCompiler
from sqld.compile.order_by import OrderByBuilder
from sqld.compile.postgres import PostgresCompiler
from sqld.compile.registry import CompilerFactory, OperatorRegistry
from sqld.compile.sqlite import SQLiteCompiler
from sqld.compile.where import (
    Condition,
    ParameterAdjuster,
    WhereBuilder,
    append_where,
    combine_conditions,
    conditional_where,
    search_pattern,
)
from sqld.errors import (
    ConfigError,
    CursorDecodeError,
    DisallowedFieldError,
    InvalidFilterValueError,
    NoRowsError,
    QueryError,
    SqldError,
    TemplateError,
    TooManyFiltersError,
    TooManyRowsError,
    TooManySortFieldsError,
    UnsafeSQLError,
    UnsupportedDialectError,
    UnsupportedOperatorError,
    ValidationError,
)
from sqld.execute.executor import DBAPIExecutor, Executor, SQLAlchemyExecutor
from sqld.execute.queries import PaginatedResult, Queries
from sqld.parse.filters import (
    apply_filters,
    build_from_query_string,
    build_from_values,
    filters_to_json,
    parse_query_string,
    parse_values,
)
from sqld.parse.request import ParsedRequest, parse_request
from sqld.parse.sort import (
    parse_sort_fields,
    parse_sort_from_query_string,
    parse_sort_from_values,
    validate_and_build,
)
from sqld.schema.config import QueryConfig, QueryConfigBuilder
from sqld.schema.cursor import Cursor, decode_cursor, encode_cursor
from sqld.schema.dialect import Dialect
from sqld.schema.filters import Filter, SortDirection, SortField
from sqld.schema.operators import Operator
from sqld.validate.identifiers import sanitize_identifier, validate_column_name
from sqld.validate.statements import validate_query
from sqld.validate.validator import QueryValidator

# ---------------------------------------------------------------------------
# Register built-in compilers with CompilerFactory
# ---------------------------------------------------------------------------

CompilerFactory.register_class(Dialect.POSTGRES, PostgresCompiler)
CompilerFactory.register_class(Dialect.MYSQL, MySQLCompiler)
CompilerFactory.register_class(Dialect.SQLITE, SQLiteCompiler)

__all__ = [
    # Schema types
    "Dialect",
    "Operator",
    "Filter",
    "SortDirection",
    "SortField",
    "QueryConfig",
    "QueryConfigBuilder",
    "Cursor",
    "encode_cursor",
    "decode_cursor",
    # Builders
    "WhereBuilder",
    "Condition",
    "OrderByBuilder",
    "ParameterAdjuster",
    "append_where",
    "combine_conditions",
    "conditional_where",
    "search_pattern",
    # Compilation
    "CompilerFactory",
    "OperatorRegistry",
    "DialectCompiler",
    "PostgresCompiler",
    "MySQLCompiler",
    "SQLiteCompiler",
    # Parsing
    "parse_values",
    "parse_query_string",
    "apply_filters",
    "build_from_values",
    "build_from_query_string",
    "filters_to_json",
    "parse_sort_fields",
    "parse_sort_from_values",
    "parse_sort_from_query_string",
    "validate_and_build",
    "parse_request",
    "ParsedRequest",
    # Composition
    "AnnotationProcessor",
    "ProcessedQuery",
    "search_query",
    "WHERE_MARKER",
    "CURSOR_MARKER",
    "ORDER_BY_MARKER",
    "LIMIT_MARKER",
    # Validation
    "QueryValidator",
    "validate_column_name",
    "validate_query",
    "sanitize_identifier",
    # Execution
    "Executor",
    "DBAPIExecutor",
    "SQLAlchemyExecutor",
    "Queries",
    "PaginatedResult",
    # Errors
    "SqldError",
    "ConfigError",
    "UnsupportedDialectError",
    "TemplateError",
    "ValidationError",
    "DisallowedFieldError",
    "TooManyFiltersError",
    "TooManySortFieldsError",
    "InvalidFilterValueError",
    "UnsupportedOperatorError",
    "UnsafeSQLError",
    "CursorDecodeError",
    "QueryError",
    "NoRowsError",
    "TooManyRowsError",
]
