"""Guard pass over rendered SQL.

``QueryValidator`` runs after a template has been processed and before the
SQL is handed to the driver.  It is deliberately independent from the
builders: inject it into :class:`~sqld.annotate.processor.AnnotationProcessor`
to enable it, subclass it to tighten the rules, or leave it out entirely.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from sqld.validate.statements import validate_query

logger = structlog.get_logger(__name__)

_SUSPICIOUS_KEYWORDS = (
    "SELECT",
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "CREATE",
    "ALTER",
    "EXEC",
    "EXECUTE",
    "UNION",
)


class QueryValidator:
    """Validates a rendered ``(sql, params)`` pair.

    Args:
        enabled: When ``False`` :meth:`validate` does nothing.
        inspect_params: Log (never reject) string parameters that contain SQL
            keywords.  Parameters are bound, so they cannot change the
            statement; the log line only helps spot probing.
    """

    def __init__(self, enabled: bool = True, inspect_params: bool = True) -> None:
        self.enabled = enabled
        self.inspect_params = inspect_params

    def validate(self, sql: str, params: Sequence[Any] = ()) -> None:
        """Raise if ``sql`` is empty or stacks statements.

        Raises:
            ValidationError: If the query is empty.
            UnsafeSQLError: If more than one statement is detected.
        """
        if not self.enabled:
            return
        validate_query(sql)
        if self.inspect_params:
            for index, param in enumerate(params, start=1):
                self._inspect(index, param)

    def _inspect(self, index: int, param: Any) -> None:
        if not isinstance(param, str):
            return
        upper = param.upper()
        for keyword in _SUSPICIOUS_KEYWORDS:
            if keyword in upper:
                logger.info("query.suspicious_param", position=index, keyword=keyword)
                return
