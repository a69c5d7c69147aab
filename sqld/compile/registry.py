"""Compiler and operator registries (Open/Closed Principle).

``CompilerFactory``
    Central registry for :class:`~sqld.compile.base.DialectCompiler`
    implementations.  Register a compiler once; builders and the
    annotation processor look it up by dialect name.

``OperatorRegistry``
    Per-operator filter application handlers.  The filter applier queries
    this registry so new operators can be supported without touching
    :func:`~sqld.parse.filters.apply_filters`.

Usage::

    from sqld.compile.registry import OperatorRegistry

    @OperatorRegistry.register(Operator.EQ)
    def _apply_eq(builder, field, value):
        builder.equal(field, value)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

from sqld.compile.base import DialectCompiler
from sqld.errors import UnsupportedDialectError
from sqld.schema.dialect import Dialect

if TYPE_CHECKING:
    from sqld.compile.where import WhereBuilder

# ---------------------------------------------------------------------------
# Compiler factory
# ---------------------------------------------------------------------------


class CompilerFactory:
    """Registry mapping dialect names to :class:`DialectCompiler` classes.

    Example::

        @CompilerFactory.register("oracle")
        class OracleCompiler(DialectCompiler):
            ...

        compiler = CompilerFactory.create("oracle")
    """

    _compilers: ClassVar[dict[str, type[DialectCompiler]]] = {}

    @classmethod
    def register(
        cls, name: Dialect | str
    ) -> Callable[[type[DialectCompiler]], type[DialectCompiler]]:
        """Decorator that registers a compiler class under ``name``."""

        def decorator(compiler_cls: type[DialectCompiler]) -> type[DialectCompiler]:
            cls._compilers[str(name)] = compiler_cls
            return compiler_cls

        return decorator

    @classmethod
    def register_class(cls, name: Dialect | str, compiler_cls: type[DialectCompiler]) -> None:
        """Register a compiler class without using the decorator form."""
        cls._compilers[str(name)] = compiler_cls

    @classmethod
    def create(cls, name: Dialect | str) -> DialectCompiler:
        """Instantiate the compiler registered for ``name``.

        Raises:
            UnsupportedDialectError: If no compiler is registered for ``name``.
        """
        compiler_cls = cls._compilers.get(str(name))
        if compiler_cls is None:
            raise UnsupportedDialectError(str(name), sorted(cls._compilers))
        return compiler_cls()

    @classmethod
    def registered_dialects(cls) -> list[str]:
        """Return the sorted list of registered dialect names."""
        return sorted(cls._compilers)


# ---------------------------------------------------------------------------
# Operator registry
# ---------------------------------------------------------------------------

#: ``(builder, field, value) -> None``; raises on a value of the wrong shape.
OperatorHandler = Callable[["WhereBuilder", str, Any], None]


class OperatorRegistry:
    """Registry mapping filter operators to builder application handlers."""

    _operators: ClassVar[dict[str, OperatorHandler]] = {}

    @classmethod
    def register(cls, *names: str) -> Callable[[OperatorHandler], OperatorHandler]:
        """Decorator that registers a handler under one or more operator names."""

        def decorator(handler: OperatorHandler) -> OperatorHandler:
            for name in names:
                cls._operators[str(name)] = handler
            return handler

        return decorator

    @classmethod
    def get(cls, name: str) -> OperatorHandler | None:
        """Return the handler for ``name``, or ``None`` if not registered."""
        return cls._operators.get(str(name))

    @classmethod
    def registered_operators(cls) -> list[str]:
        return sorted(cls._operators)
