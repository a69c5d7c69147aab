"""Opaque keyset-pagination cursors.

A cursor records the last row a client has seen: the value of the primary
ordering column (usually a timestamp) and a unique tie-breaking id.  The
token handed to clients is URL-safe base64 over a compact JSON object::

    {"timestamp": "2024-05-01T12:00:00", "id": 42, "kind": "datetime"}

``kind`` is only written for ``datetime`` / ``date`` ordering values so they
decode back to the same type; tokens without it decode to the plain JSON
value.

The cursor must describe the ORDER BY actually used by the query.  A cursor
taken from a differently-ordered page silently yields the wrong rows; this
is not detected.
"""
from __future__ import annotations

import base64
import binascii
import json
from datetime import date, datetime
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from sqld.errors import CursorDecodeError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


class Cursor(BaseModel):
    """Position of the last-seen row.

    Attributes:
        value: Value of the primary ordering column for that row.
        id: Tie-breaking unique id (typically the primary key), a 32-bit
            signed integer.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    value: Any = Field(alias="timestamp")
    id: int

    @field_validator("id", mode="before")
    @classmethod
    def _narrow_id(cls, value: Any) -> Any:
        # Generic JSON decoders hand back numbers as floats.
        if isinstance(value, bool):
            raise ValueError("cursor id must be an integer")
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(f"cursor id must be integral, got {value}")
            return int(value)
        return value

    @field_validator("id")
    @classmethod
    def _check_id_range(cls, value: int) -> int:
        if not INT32_MIN <= value <= INT32_MAX:
            raise ValueError(f"cursor id out of 32-bit range: {value}")
        return value

    def encode(self) -> str:
        return encode_cursor(self.value, self.id)


def encode_cursor(value: Any, id: int) -> str:
    """Encode an ordering value and id into an opaque URL-safe token.

    Args:
        value: Ordering column value of the last row on the page.  Must be
            JSON-serialisable, or a ``datetime`` / ``date``.
        id: Tie-breaking id of that row.

    Returns:
        A URL-safe base64 token without padding.
    """
    payload: dict[str, Any] = {"timestamp": value, "id": id}
    if isinstance(value, datetime):
        payload["timestamp"] = value.isoformat()
        payload["kind"] = "datetime"
    elif isinstance(value, date):
        payload["timestamp"] = value.isoformat()
        payload["kind"] = "date"
    data = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def decode_cursor(token: str | None) -> Cursor | None:
    """Decode a token produced by :func:`encode_cursor`.

    Args:
        token: The client-supplied token.  Empty or ``None`` means "no cursor".

    Returns:
        The decoded :class:`Cursor`, or ``None`` for an empty token.

    Raises:
        CursorDecodeError: If the token is not valid base64, not a JSON
            object, or lacks a usable ``timestamp`` / ``id``.
    """
    if not token:
        return None

    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CursorDecodeError(f"invalid cursor encoding: {exc}", token=token) from exc

    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CursorDecodeError(f"invalid cursor format: {exc}", token=token) from exc

    if not isinstance(data, dict) or "timestamp" not in data or "id" not in data:
        raise CursorDecodeError(
            "invalid cursor format: expected an object with 'timestamp' and 'id'",
            token=token,
        )

    value = data["timestamp"]
    kind = data.get("kind")
    try:
        if kind == "datetime":
            value = datetime.fromisoformat(value)
        elif kind == "date":
            value = date.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise CursorDecodeError(f"invalid cursor timestamp: {exc}", token=token) from exc

    try:
        return Cursor(value=value, id=data["id"])
    except pydantic.ValidationError as exc:
        raise CursorDecodeError(f"invalid cursor id: {data['id']!r}", token=token) from exc
