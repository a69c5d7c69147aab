"""Shared pytest fixtures for sqld unit and integration tests."""
from __future__ import annotations

import pytest

from sqld.annotate.processor import AnnotationProcessor
from sqld.schema.config import QueryConfig
from sqld.schema.dialect import Dialect
from sqld.schema.filters import SortDirection, SortField
from tests.fixtures import load_queries

USER_FIELDS = ["id", "name", "email", "age", "status", "role", "country", "verified", "created_at"]


@pytest.fixture(scope="session")
def users_config() -> QueryConfig:
    """Policy for the ``users`` endpoint used across tests."""
    return (
        QueryConfig.builder()
        .allowed_fields(USER_FIELDS)
        .field_mappings({"created": "created_at"})
        .max_filters(10)
        .max_sort_fields(3)
        .default_sort([SortField(field="created_at", direction=SortDirection.DESC)])
        .build()
    )


@pytest.fixture(scope="session")
def pg_queries() -> dict[str, str]:
    return load_queries("postgres")


@pytest.fixture(scope="session")
def sqlite_queries() -> dict[str, str]:
    return load_queries("sqlite")


@pytest.fixture()
def pg_processor() -> AnnotationProcessor:
    return AnnotationProcessor(Dialect.POSTGRES)


@pytest.fixture()
def sqlite_processor() -> AnnotationProcessor:
    return AnnotationProcessor(Dialect.SQLITE)
