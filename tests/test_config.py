"""Tests for QueryConfig and its builder."""
from __future__ import annotations

import pydantic
import pytest

from sqld.errors import ConfigError
from sqld.schema.config import QueryConfig
from sqld.schema.filters import SortDirection, SortField
from sqld.schema.operators import Operator


def test_defaults():
    config = QueryConfig()
    assert config.allowed_fields == frozenset()
    assert config.field_mappings == {}
    assert config.default_operator is Operator.EQ
    assert config.date_layout == "%Y-%m-%d"
    assert config.max_filters == 50
    assert config.max_sort_fields == 5
    assert config.default_sort == ()
    assert (config.default_limit, config.max_limit) == (20, 100)
    assert config.is_field_allowed("anything")


def test_builder_sets_every_option():
    config = (
        QueryConfig.builder()
        .allowed_fields(["name", "created_at"])
        .field_mappings({"created": "created_at"})
        .default_operator(Operator.ILIKE)
        .date_layout("%d.%m.%Y")
        .max_filters(4)
        .max_sort_fields(2)
        .default_sort([SortField(field="created_at", direction=SortDirection.DESC)])
        .limits(default_limit=10, max_limit=50)
        .build()
    )
    assert config.allowed_fields == frozenset({"name", "created_at"})
    assert config.map_field("created") == "created_at"
    assert config.map_field("name") == "name"
    assert config.default_operator is Operator.ILIKE
    assert config.date_layout == "%d.%m.%Y"
    assert (config.max_filters, config.max_sort_fields) == (4, 2)
    assert config.default_sort[0].direction is SortDirection.DESC
    assert (config.default_limit, config.max_limit) == (10, 50)
    assert config.is_field_allowed("name")
    assert not config.is_field_allowed("password")


def test_flag_mapping_form_of_allowed_fields():
    config = QueryConfig.builder().allowed_fields({"name": True, "secret": False}).build()
    assert config.allowed_fields == frozenset({"name"})


def test_model_validate_from_plain_data():
    config = QueryConfig.model_validate(
        {
            "allowed_fields": {"name": True, "age": True},
            "default_sort": [{"field": "name", "direction": "DESC"}],
            "default_operator": "ILIKE",
        }
    )
    assert config.allowed_fields == frozenset({"name", "age"})
    assert config.default_sort == (SortField(field="name", direction=SortDirection.DESC),)
    assert config.default_operator is Operator.ILIKE


def test_unknown_setting_rejected():
    with pytest.raises(pydantic.ValidationError):
        QueryConfig.model_validate({"max_filterz": 3})


def test_config_is_frozen():
    config = QueryConfig()
    with pytest.raises(pydantic.ValidationError):
        config.max_filters = 3


@pytest.mark.parametrize(
    "configure, setting",
    [
        (lambda b: b.max_filters(-1), "max_filters"),
        (lambda b: b.max_sort_fields(-1), "max_sort_fields"),
        (lambda b: b.limits(default_limit=1, max_limit=0), "max_limit"),
        (lambda b: b.limits(default_limit=0, max_limit=10), "default_limit"),
        (lambda b: b.limits(default_limit=20, max_limit=10), "default_limit"),
        (
            lambda b: b.max_sort_fields(1).default_sort(
                [SortField(field="a"), SortField(field="b")]
            ),
            "default_sort",
        ),
    ],
)
def test_builder_rejects_unsatisfiable_settings(configure, setting):
    with pytest.raises(ConfigError) as exc_info:
        configure(QueryConfig.builder()).build()
    assert exc_info.value.setting == setting


def test_zero_limits_are_allowed():
    config = QueryConfig.builder().max_filters(0).max_sort_fields(0).build()
    assert (config.max_filters, config.max_sort_fields) == (0, 0)
