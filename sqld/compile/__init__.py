"""sqld compilation layer: dialect compilers and WHERE / ORDER BY builders."""
from sqld.compile.base import DialectCompiler
from sqld.compile.mysql import MySQLCompiler
from sqld.compile.order_by import OrderByBuilder
from sqld.compile.postgres import PostgresCompiler
from sqld.compile.registry import CompilerFactory, OperatorRegistry
from sqld.compile.sqlite import SQLiteCompiler
from sqld.compile.where import (
    Condition,
    ParameterAdjuster,
    WhereBuilder,
    append_where,
    combine_conditions,
    conditional_where,
    search_pattern,
)

__all__ = [
    "CompilerFactory",
    "Condition",
    "DialectCompiler",
    "MySQLCompiler",
    "OperatorRegistry",
    "OrderByBuilder",
    "ParameterAdjuster",
    "PostgresCompiler",
    "SQLiteCompiler",
    "WhereBuilder",
    "append_where",
    "combine_conditions",
    "conditional_where",
    "search_pattern",
]
