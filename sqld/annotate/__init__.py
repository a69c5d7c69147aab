"""sqld template composition: annotation markers and the processor."""
from sqld.annotate.processor import (
    ALL_MARKERS,
    CURSOR_MARKER,
    LIMIT_MARKER,
    ORDER_BY_MARKER,
    WHERE_MARKER,
    AnnotationProcessor,
    ProcessedQuery,
    search_query,
)

__all__ = [
    "ALL_MARKERS",
    "AnnotationProcessor",
    "CURSOR_MARKER",
    "LIMIT_MARKER",
    "ORDER_BY_MARKER",
    "ProcessedQuery",
    "WHERE_MARKER",
    "search_query",
]
