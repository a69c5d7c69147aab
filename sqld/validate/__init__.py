"""sqld validation layer: injection heuristics and the rendered-SQL guard."""
from sqld.validate.identifiers import (
    INJECTION_PATTERNS,
    sanitize_identifier,
    validate_column_name,
    validate_order_by,
    validate_table_name,
)
from sqld.validate.statements import count_statements, validate_query
from sqld.validate.validator import QueryValidator

__all__ = [
    "INJECTION_PATTERNS",
    "QueryValidator",
    "count_statements",
    "sanitize_identifier",
    "validate_column_name",
    "validate_order_by",
    "validate_query",
    "validate_table_name",
]
