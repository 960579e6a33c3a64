"""Recursive construction of typed models from parsed documents.

``build_model(document, type_)`` is the root entry point:

1. ``None`` passes through unchanged; nothing is allocated.
2. The strategy registered for exactly ``type_`` is used, falling back to the
   property-copy strategy (``with_properties``).
3. The strategy's result is returned as-is.

The property-copy strategy allocates ``type_()`` and copies every key of the
document onto it. Keys whose field has a declared element type are rebuilt:
sequences element-wise through ``build_array``, everything else through
``build_model``. Undeclared keys are assigned verbatim. The input document is
never mutated.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from modelbuilder.metadata import DEFAULT_STORE, TypeMetadataStore
from modelbuilder.strategies import Strategy

log = logging.getLogger(__name__)

T = TypeVar("T")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


class ModelBuilder:
    """Construction engine bound to one :class:`TypeMetadataStore`."""

    def __init__(self, store: TypeMetadataStore | None = None) -> None:
        self.store = store if store is not None else DEFAULT_STORE

    def strategy_for(self, type_: type) -> Strategy:
        """Registered strategy for *type_*, else this builder's property copy."""
        strategy = self.store.lookup_strategy(type_)
        if strategy is None:
            return self.with_properties
        return strategy

    def build_model(self, document: Any, type_: type[T]) -> T | None:
        if document is None:
            return None
        strategy = self.strategy_for(type_)
        log.debug(
            "Building %s with %s",
            type_.__qualname__,
            getattr(strategy, "__name__", strategy),
        )
        return strategy(document, type_)

    def build_array(
        self,
        document: list[Any] | tuple[Any, ...],
        type_: type[T],
    ) -> list[T | None] | tuple[T | None, ...]:
        """Build every element of *document* into *type_*, keeping list/tuple shape."""
        if not _is_sequence(document):
            raise TypeError(
                f"build_array expects a list or tuple, got {type(document).__name__}"
            )
        built = [self.build_model(value, type_) for value in document]
        if isinstance(document, tuple):
            return tuple(built)
        return built

    def with_properties(self, document: Any, type_: type[T]) -> T:
        """Default strategy: zero-argument construction, then per-key copy.

        A document that is not a mapping has no keys to copy, so the result is
        a bare ``type_()``.
        """
        instance = type_()
        if not isinstance(document, Mapping):
            log.debug(
                "No properties to copy into %s from %s",
                type_.__qualname__,
                type(document).__name__,
            )
            return instance
        for field_name, value in document.items():
            # Looked up through the instance so ancestor declarations apply.
            element_type = self.store.lookup_field_type(instance, field_name)
            if element_type is None:
                built = value
            elif _is_sequence(value):
                built = self.build_array(value, element_type)
            else:
                built = self.build_model(value, element_type)
            setattr(instance, field_name, built)
        return instance


_DEFAULT_BUILDER = ModelBuilder()


def default_builder() -> ModelBuilder:
    """The builder over ``DEFAULT_STORE`` used by the module-level functions."""
    return _DEFAULT_BUILDER


def build_model(document: Any, type_: type[T]) -> T | None:
    """Build *document* into an instance of *type_* using ``DEFAULT_STORE``."""
    return _DEFAULT_BUILDER.build_model(document, type_)


def build_array(
    document: list[Any] | tuple[Any, ...],
    type_: type[T],
) -> list[T | None] | tuple[T | None, ...]:
    """Build each element of *document* into *type_* using ``DEFAULT_STORE``."""
    return _DEFAULT_BUILDER.build_array(document, type_)


def with_properties(document: Any, type_: type[T]) -> T:
    """Property-copy strategy over ``DEFAULT_STORE``."""
    return _DEFAULT_BUILDER.with_properties(document, type_)
