"""sqld execution seam: executor adapters and the query facade."""
from sqld.execute.executor import DBAPIExecutor, Executor, SQLAlchemyExecutor
from sqld.execute.queries import PaginatedResult, Queries

__all__ = [
    "DBAPIExecutor",
    "Executor",
    "PaginatedResult",
    "Queries",
    "SQLAlchemyExecutor",
]
