"""Query policy configuration shared by filter and sort parsing.

A :class:`QueryConfig` is created once per endpoint (typically at service
start-up) and reused for every request.  It is a frozen pydantic model, so
concurrent reads are safe and accidental mutation raises.

Create a config through the builder::

    from sqld import QueryConfig

    config = (
        QueryConfig.builder()
        .allowed_fields(["name", "email", "age", "created_at"])
        .field_mappings({"created": "created_at"})
        .max_filters(10)
        .default_sort([SortField(field="created_at", direction="DESC")])
        .build()
    )

or load it from JSON/YAML-shaped data with ``QueryConfig.model_validate``.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sqld.errors import ConfigError
from sqld.schema.filters import SortField
from sqld.schema.operators import Operator


class QueryConfig(BaseModel):
    """Policy for turning request input into SQL fragments.

    Attributes:
        allowed_fields: Field names permitted in filters and sorts.  Empty
            means every field is allowed (a permissive default; configure an
            allowlist in production).  A ``{name: bool}`` mapping is accepted
            and only the ``True`` entries are kept.
        field_mappings: External name → internal column name.
        default_operator: Operator used when a key carries none.
        date_layout: ``strptime`` layout for ``before`` / ``after`` values.
        max_filters: Upper bound on the number of filters per request.
        max_sort_fields: Upper bound on the number of sort fields per request.
        default_sort: Ordering applied when the request specifies none.
        default_limit: Page size used when the request gives no valid limit.
        max_limit: Largest page size a request may ask for.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    allowed_fields: frozenset[str] = Field(default_factory=frozenset)
    field_mappings: dict[str, str] = Field(default_factory=dict)
    default_operator: Operator = Operator.EQ
    date_layout: str = "%Y-%m-%d"
    max_filters: int = 50
    max_sort_fields: int = 5
    default_sort: tuple[SortField, ...] = ()
    default_limit: int = 20
    max_limit: int = 100

    @field_validator("allowed_fields", mode="before")
    @classmethod
    def _accept_flag_mapping(cls, value: Any) -> Any:
        """Accept ``{"name": True, "secret": False}`` as well as an iterable."""
        if isinstance(value, Mapping):
            return frozenset(name for name, allowed in value.items() if allowed)
        return value

    @classmethod
    def builder(cls) -> "QueryConfigBuilder":
        """Return a :class:`QueryConfigBuilder` starting from the defaults."""
        return QueryConfigBuilder()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def is_field_allowed(self, field: str) -> bool:
        """Return ``True`` if ``field`` may be filtered or sorted on."""
        if not self.allowed_fields:
            return True
        return field in self.allowed_fields

    def map_field(self, field: str) -> str:
        """Return the database column for an external field name."""
        return self.field_mappings.get(field, field)


class QueryConfigBuilder:
    """Fluent builder for :class:`QueryConfig`.

    Always obtained via :meth:`QueryConfig.builder`.  Each method sets one
    setting and returns the builder; :meth:`build` validates the combination
    and freezes it.
    """

    def __init__(self) -> None:
        self._settings: dict[str, Any] = {}

    def allowed_fields(self, fields: Iterable[str] | Mapping[str, bool]) -> "QueryConfigBuilder":
        """Restrict filtering and sorting to ``fields``."""
        if isinstance(fields, Mapping):
            self._settings["allowed_fields"] = fields
        else:
            self._settings["allowed_fields"] = frozenset(fields)
        return self

    def field_mappings(self, mappings: Mapping[str, str]) -> "QueryConfigBuilder":
        """Map external field names to database columns."""
        self._settings["field_mappings"] = dict(mappings)
        return self

    def default_operator(self, op: Operator | str) -> "QueryConfigBuilder":
        self._settings["default_operator"] = op
        return self

    def date_layout(self, layout: str) -> "QueryConfigBuilder":
        """Set the ``strptime`` layout used for ``before`` / ``after`` values."""
        self._settings["date_layout"] = layout
        return self

    def max_filters(self, limit: int) -> "QueryConfigBuilder":
        self._settings["max_filters"] = limit
        return self

    def max_sort_fields(self, limit: int) -> "QueryConfigBuilder":
        self._settings["max_sort_fields"] = limit
        return self

    def default_sort(self, fields: Iterable[SortField]) -> "QueryConfigBuilder":
        """Ordering used when a request does not specify one."""
        self._settings["default_sort"] = tuple(fields)
        return self

    def limits(self, default_limit: int = 20, max_limit: int = 100) -> "QueryConfigBuilder":
        """Set the default and maximum page size."""
        self._settings["default_limit"] = default_limit
        self._settings["max_limit"] = max_limit
        return self

    def build(self) -> QueryConfig:
        """Validate the settings and return the frozen :class:`QueryConfig`.

        Raises:
            ConfigError: When a setting can never be satisfied.
        """
        config = QueryConfig.model_validate(self._settings)
        _validate(config)
        return config


def _validate(config: QueryConfig) -> None:
    """Raise :class:`ConfigError` for settings no request could satisfy."""
    if config.max_filters < 0:
        raise ConfigError("max_filters must not be negative.", setting="max_filters")
    if config.max_sort_fields < 0:
        raise ConfigError("max_sort_fields must not be negative.", setting="max_sort_fields")
    if config.max_limit < 1:
        raise ConfigError("max_limit must be at least 1.", setting="max_limit")
    if not 1 <= config.default_limit <= config.max_limit:
        raise ConfigError(
            f"default_limit must be between 1 and max_limit ({config.max_limit}).",
            setting="default_limit",
        )
    if len(config.default_sort) > config.max_sort_fields:
        raise ConfigError(
            f"default_sort has {len(config.default_sort)} fields but "
            f"max_sort_fields is {config.max_sort_fields}.",
            setting="default_sort",
        )
