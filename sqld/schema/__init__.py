"""sqld data model: dialects, operators, filters, sort fields, config, cursors."""
from sqld.schema.config import QueryConfig, QueryConfigBuilder
from sqld.schema.cursor import Cursor, decode_cursor, encode_cursor
from sqld.schema.dialect import Dialect
from sqld.schema.filters import Filter, SortDirection, SortField
from sqld.schema.operators import Operator, map_operator

__all__ = [
    "Cursor",
    "Dialect",
    "Filter",
    "Operator",
    "QueryConfig",
    "QueryConfigBuilder",
    "SortDirection",
    "SortField",
    "decode_cursor",
    "encode_cursor",
    "map_operator",
]
