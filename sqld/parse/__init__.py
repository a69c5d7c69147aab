"""sqld request parsing: filters, sort strings and whole requests."""
from sqld.parse.filters import (
    apply_filters,
    build_from_query_string,
    build_from_values,
    convert_value,
    filters_to_json,
    parse_field_operator,
    parse_query_string,
    parse_values,
)
from sqld.parse.request import ParsedRequest, parse_limit, parse_request
from sqld.parse.sort import (
    SORT_PARAM_ALIASES,
    parse_sort_direction,
    parse_sort_fields,
    parse_sort_from_query_string,
    parse_sort_from_values,
    sort_field_from_string,
    validate_and_build,
)

__all__ = [
    "ParsedRequest",
    "SORT_PARAM_ALIASES",
    "apply_filters",
    "build_from_query_string",
    "build_from_values",
    "convert_value",
    "filters_to_json",
    "parse_field_operator",
    "parse_limit",
    "parse_query_string",
    "parse_request",
    "parse_sort_direction",
    "parse_sort_fields",
    "parse_sort_from_query_string",
    "parse_sort_from_values",
    "parse_values",
    "sort_field_from_string",
    "validate_and_build",
]
