"""Compiler abstraction: the DialectCompiler ABC.

The Template Method pattern (GoF) is used:
- ``DialectCompiler`` defines the dialect-dependent rendering steps the
  builders and the annotation processor rely on.
- ``PostgresCompiler``, ``MySQLCompiler`` and ``SQLiteCompiler`` override
  them (placeholder style, ILIKE support, quoting).
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod

from sqld.schema.dialect import Dialect

#: Dialect-neutral placeholder accepted by ``Raw`` fragments.
UNIVERSAL_PLACEHOLDER = "?"

_ORDINAL_PLACEHOLDER = re.compile(r"\$(\d+)")


class DialectCompiler(ABC):
    """Abstract base for dialect-specific SQL rendering."""

    @property
    @abstractmethod
    def dialect(self) -> Dialect:
        """Return the :class:`Dialect` this compiler renders for."""

    @property
    def is_ordinal(self) -> bool:
        """``True`` when placeholders carry their own number (``$N``).

        Ordinal placeholders have to be renumbered when fragments are
        combined; positional ``?`` placeholders never do.
        """
        return False

    @abstractmethod
    def placeholder(self, index: int) -> str:
        """Return the placeholder for the ``index``-th parameter (1-based).

        Args:
            index: Position of the parameter in the final statement.

        Returns:
            Dialect-specific placeholder string.
        """

    @abstractmethod
    def ilike(self, column: str, placeholder: str) -> str:
        """Return a case-insensitive pattern match of ``column`` against ``placeholder``."""

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Return a properly-quoted SQL identifier."""

    def renumber(self, sql: str, offset: int) -> str:
        """Shift every ordinal placeholder in ``sql`` by ``offset``.

        Positional dialects return ``sql`` unchanged.
        """
        if not self.is_ordinal or offset == 0:
            return sql
        return _ORDINAL_PLACEHOLDER.sub(lambda m: self.placeholder(int(m.group(1)) + offset), sql)

    def translate(self, sql: str, start: int, count: int) -> str:
        """Translate ``count`` universal ``?`` markers to this dialect.

        The markers are numbered ``start + 1`` … ``start + count`` from left
        to right.  Positional dialects already use ``?`` and return ``sql``
        unchanged.
        """
        if not self.is_ordinal:
            return sql
        result = sql
        for i in range(1, count + 1):
            result = result.replace(UNIVERSAL_PLACEHOLDER, self.placeholder(start + i), 1)
        return result
