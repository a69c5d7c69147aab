"""Custom exception hierarchy for sqld.

All public errors inherit from SqldError so callers can catch the base
class for any sqld-specific failure.

Request-shaped failures (bad filters, disallowed sort fields, malformed
cursors) derive from :class:`ValidationError` and carry enough structure
(``field``, ``value``, ``code``) for an HTTP layer to answer with a precise
client error.  Everything else signals a programmer or deployment problem.
"""
from __future__ import annotations

from typing import Any


class SqldError(Exception):
    """Base exception for all sqld errors."""


class ConfigError(SqldError):
    """Raised when a QueryConfig is misconfigured.

    Detected at :meth:`QueryConfigBuilder.build` time, before any request is
    parsed.

    Args:
        message: Human-readable description.
        setting: Name of the offending setting.
    """

    def __init__(self, message: str, setting: str | None = None) -> None:
        super().__init__(message)
        self.setting = setting


class UnsupportedDialectError(SqldError):
    """Raised when no compiler is registered for a dialect name."""

    def __init__(self, dialect: str, registered: list[str]) -> None:
        super().__init__(
            f"Unsupported dialect: '{dialect}'. Registered dialects: {registered}."
        )
        self.dialect = dialect
        self.registered = registered


class TemplateError(SqldError):
    """Raised when a template cannot carry the requested dynamic SQL.

    This is a programmer error: the template was written without the marker
    that the caller relies on.

    Args:
        message: Human-readable description.
        marker: The annotation marker that was expected.
    """

    def __init__(self, message: str, marker: str | None = None) -> None:
        super().__init__(message)
        self.marker = marker


class ValidationError(SqldError):
    """Raised when request input violates the query policy.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. ``DISALLOWED_FIELD``).
        field: The offending field name, when there is one.
        value: The offending value, when there is one.
        details: Extra context for the client.
    """

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.field = field
        self.value = value
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response suitable for an HTTP 400 body."""
        return {
            "error": self.code,
            "message": str(self),
            "field": self.field,
            "details": self.details,
        }


class DisallowedFieldError(ValidationError):
    """Raised when a sort field is not in the configured allowlist."""

    def __init__(self, field: str, allowed_fields: list[str]) -> None:
        super().__init__(
            f"Field '{field}' is not allowed for sorting.",
            code="DISALLOWED_FIELD",
            field=field,
            value=field,
            details={"allowed_fields": allowed_fields},
        )


class TooManyFiltersError(ValidationError):
    """Raised when a request carries more filters than ``max_filters``."""

    def __init__(self, max_filters: int) -> None:
        super().__init__(
            f"Too many filters, maximum allowed: {max_filters}.",
            code="TOO_MANY_FILTERS",
            details={"max_filters": max_filters},
        )
        self.max_filters = max_filters


class TooManySortFieldsError(ValidationError):
    """Raised when a request carries more sort fields than ``max_sort_fields``."""

    def __init__(self, count: int, max_sort_fields: int) -> None:
        super().__init__(
            f"Too many sort fields: {count} (max {max_sort_fields}).",
            code="TOO_MANY_SORT_FIELDS",
            details={"count": count, "max_sort_fields": max_sort_fields},
        )
        self.count = count
        self.max_sort_fields = max_sort_fields


class InvalidFilterValueError(ValidationError):
    """Raised when a filter value does not have the shape its operator needs."""

    def __init__(self, field: str, operator: str, message: str, value: Any = None) -> None:
        super().__init__(
            f"Invalid value for field {field}: {message}",
            code="INVALID_FILTER_VALUE",
            field=field,
            value=value,
            details={"operator": operator},
        )
        self.operator = operator


class UnsupportedOperatorError(ValidationError):
    """Raised when a filter carries an operator with no SQL rendering."""

    def __init__(self, field: str, operator: str) -> None:
        super().__init__(
            f"Unsupported operator '{operator}' for field {field}.",
            code="UNSUPPORTED_OPERATOR",
            field=field,
            value=operator,
            details={"operator": operator},
        )


class UnsafeSQLError(ValidationError):
    """Raised when an identifier or statement matches an injection-shaped pattern.

    Passing the heuristics is not a safety guarantee; parameterization is the
    primary control.
    """

    def __init__(self, field: str, message: str, value: Any = None) -> None:
        super().__init__(message, code="SQL_INJECTION", field=field, value=value)


class CursorDecodeError(ValidationError):
    """Raised when a pagination cursor token cannot be decoded."""

    def __init__(self, message: str, token: str | None = None) -> None:
        super().__init__(message, code="INVALID_CURSOR", field="cursor", value=token)
        self.token = token


class QueryError(SqldError):
    """Raised when the execution collaborator fails for a composed query.

    Args:
        message: Human-readable description of the underlying failure.
        query: The SQL that was executed.
        params: The bound parameters.
        context: The operation being performed (e.g. ``query_all``).
    """

    def __init__(
        self,
        message: str,
        query: str,
        params: list[Any] | None = None,
        context: str = "",
    ) -> None:
        super().__init__(f"query error in {context}: {message} (query: {query})")
        self.query = query
        self.params = params or []
        self.context = context


class NoRowsError(SqldError):
    """Raised by ``query_one`` when the query returned no rows."""


class TooManyRowsError(SqldError):
    """Raised by ``query_one`` when the query returned more than one row."""
