"""Test fixtures: sample DDL and annotated query templates."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

_FIXTURES_DIR = Path(__file__).parent


def load_ddl(target: Literal["sqlite"] = "sqlite") -> str:
    """Return the sample DDL SQL string for the given backend."""
    return (_FIXTURES_DIR / f"ddl_{target}.sql").read_text()


def load_queries(target: Literal["sqlite", "postgres"] = "sqlite") -> dict[str, str]:
    """Load the named query templates for ``target``.

    The file uses ``-- name: <Name> :<kind>`` headers, the way SQL-first code
    generators lay out their query files.  Trailing semicolons are dropped.

    Returns:
        Mapping of query name to template SQL.
    """
    queries: dict[str, str] = {}
    name: str | None = None
    lines: list[str] = []
    for line in (_FIXTURES_DIR / f"queries_{target}.sql").read_text().splitlines():
        if line.startswith("-- name:"):
            if name is not None:
                queries[name] = _finish(lines)
            name = line.split()[2]
            lines = []
        elif name is not None:
            lines.append(line)
    if name is not None:
        queries[name] = _finish(lines)
    return queries


def _finish(lines: list[str]) -> str:
    return "\n".join(lines).strip().rstrip(";")
