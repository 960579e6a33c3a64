"""Type metadata store: construction strategies and field element types.

Two tables, both keyed by class identity:

* **strategies**: ``class -> Strategy``. Exact-class lookup; a subclass does
  not inherit its parent's strategy.
* **field types**: ``(class, field name) -> element type``. Lookups walk the
  runtime class's MRO so declarations on ancestors apply to subclasses.

Field types inferred from annotations are registered as *deferred* resolvers
and resolved on first lookup, once every class the annotation names exists.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from modelbuilder.dates import Date
from modelbuilder.strategies import Strategy, with_constructor

log = logging.getLogger(__name__)

FieldTypeResolver = Callable[[], "type | None"]


def _as_class(instance_or_type: Any) -> type:
    if isinstance(instance_or_type, type):
        return instance_or_type
    return type(instance_or_type)


class TypeMetadataStore:
    """Registry of construction strategies and field element types."""

    def __init__(self, *, defaults: bool = True) -> None:
        self._strategies: dict[type, Strategy] = {}
        self._field_types: dict[tuple[type, str], type | None] = {}
        self._deferred: dict[tuple[type, str], FieldTypeResolver] = {}
        self._lock = threading.Lock()
        if defaults:
            self.register_strategy(Date, with_constructor)

    # -- strategies ----------------------------------------------------------

    def register_strategy(self, type_: type, strategy: Strategy) -> None:
        """Bind *strategy* to *type_*, replacing any earlier binding."""
        if not callable(strategy):
            raise TypeError(
                f"Strategy for {type_.__name__} must be callable, got {type(strategy).__name__}"
            )
        with self._lock:
            self._strategies[type_] = strategy

    def lookup_strategy(self, type_: type) -> Strategy | None:
        return self._strategies.get(type_)

    # -- field types ---------------------------------------------------------

    def register_field_type(
        self,
        type_: type,
        field_name: str,
        element_type: type | None,
    ) -> None:
        """Declare the element type of ``type_.field_name``.

        ``None`` records the field as untyped. Replaces any earlier explicit or
        deferred declaration for the same pair.
        """
        key = (type_, field_name)
        with self._lock:
            self._field_types[key] = element_type
            self._deferred.pop(key, None)

    def defer_field_type(
        self,
        type_: type,
        field_name: str,
        resolve: FieldTypeResolver,
    ) -> None:
        """Declare ``type_.field_name`` with an element type computed on first lookup."""
        key = (type_, field_name)
        with self._lock:
            self._deferred[key] = resolve
            self._field_types.pop(key, None)

    def lookup_field_type(self, instance_or_type: Any, field_name: str) -> type | None:
        """Return the element type for *field_name*, searching the MRO.

        Accepts an instance or a class; instances are looked up through their
        runtime class. The nearest class that declares the field wins.
        """
        for klass in _as_class(instance_or_type).__mro__:
            key = (klass, field_name)
            if key in self._field_types:
                return self._field_types.get(key)
            if key in self._deferred:
                return self._resolve_deferred(key)
        return None

    def field_types(self, instance_or_type: Any) -> dict[str, type]:
        """Every typed field visible from a class, subclasses overriding ancestors."""
        out: dict[str, type] = {}
        for klass in reversed(_as_class(instance_or_type).__mro__):
            names = {name for (owner, name) in list(self._field_types) if owner is klass}
            names.update(name for (owner, name) in list(self._deferred) if owner is klass)
            for name in sorted(names):
                element_type = self.lookup_field_type(klass, name)
                if element_type is None:
                    out.pop(name, None)
                else:
                    out[name] = element_type
        return out

    def _resolve_deferred(self, key: tuple[type, str]) -> type | None:
        with self._lock:
            if key in self._field_types:
                return self._field_types[key]
            element_type = self._deferred[key]()
            self._field_types[key] = element_type
            del self._deferred[key]
        log.debug(
            "Resolved field type %s.%s -> %s",
            key[0].__qualname__,
            key[1],
            getattr(element_type, "__qualname__", None),
        )
        return element_type


DEFAULT_STORE = TypeMetadataStore()
