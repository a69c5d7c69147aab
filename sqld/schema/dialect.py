"""Supported SQL back ends.

The dialect decides the placeholder syntax and how case-insensitive pattern
matching is rendered.  Rendering itself lives in the dialect compilers under
:mod:`sqld.compile`; this module only names the targets.
"""
from __future__ import annotations

from enum import Enum


class Dialect(str, Enum):
    """Target SQL variant.

    ``POSTGRES`` uses ordinal placeholders (``$1``, ``$2``, ...).  ``MYSQL``
    and ``SQLITE`` use the positional ``?`` marker.
    """

    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"

    def __str__(self) -> str:
        return self.value


#: Dialects whose placeholders carry their own ordinal number.
ORDINAL_DIALECTS: frozenset[Dialect] = frozenset({Dialect.POSTGRES})
