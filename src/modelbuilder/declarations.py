"""Class-body declarations that populate a :class:`TypeMetadataStore`.

* ``Build``: field marker. ``Build(Duck)`` declares the element type
  explicitly; ``Build()`` infers it from the field's annotation.
* ``builder``: class decorator binding a construction strategy.
* ``register_field_type``: imperative form of ``Build`` for classes that
  cannot carry markers.

Example::

    @builder(with_constructor)
    class Money:
        def __init__(self, raw): ...

    class Invoice:
        issued: Date = Build()
        lines: list[Line] = Build()
        total: Decimal = Build(Money)

Inference runs on the first lookup of the field, not at class creation, so
annotations may name classes defined later in the module (including the class
itself) and ``from __future__ import annotations`` is supported.
"""
from __future__ import annotations

import collections.abc
import inspect
import logging
import sys
import types
import typing
from collections.abc import Callable
from typing import Any, TypeVar

from modelbuilder.metadata import DEFAULT_STORE, TypeMetadataStore
from modelbuilder.strategies import Strategy

log = logging.getLogger(__name__)

T = TypeVar("T")

# Annotations that name no buildable class: values are copied verbatim.
UNTYPED_ANNOTATIONS: frozenset[Any] = frozenset({
    Any, object, type(None), str, int, float, bool, bytes, dict, list, tuple, set, frozenset,
})

_SEQUENCE_ORIGINS: frozenset[Any] = frozenset({
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.Iterable,
    collections.abc.Collection,
})


# ---------------------------------------------------------------------------
# Annotation inference
# ---------------------------------------------------------------------------

def _unwrap_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is typing.Annotated:
        return _unwrap_optional(typing.get_args(annotation)[0])
    if origin is typing.Union or origin is types.UnionType:
        members = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(members) != 1:
            return None
        return _unwrap_optional(members[0])
    return annotation


def _as_element_class(annotation: Any) -> type | None:
    if typing.get_origin(annotation) is not None or not isinstance(annotation, type):
        return None
    if annotation in UNTYPED_ANNOTATIONS:
        return None
    return annotation


def element_type_of(annotation: Any) -> type | None:
    """Map a field annotation to the class its values are built into.

    ``X``, ``X | None`` and ``Optional[X]`` give ``X``; homogeneous sequence
    annotations (``list[X]``, ``tuple[X, ...]``, ``Sequence[X]``) give ``X``.
    Anything else, including unions of several classes, nested sequences and
    builtin scalars, gives ``None``.
    """
    annotation = _unwrap_optional(annotation)
    if typing.get_origin(annotation) in _SEQUENCE_ORIGINS:
        args = [a for a in typing.get_args(annotation) if a is not Ellipsis]
        if len(args) != 1:
            return None
        return _as_element_class(_unwrap_optional(args[0]))
    return _as_element_class(annotation)


def _hints(owner: type, field_name: str) -> dict[str, Any]:
    try:
        return typing.get_type_hints(owner, include_extras=True)
    except NameError:
        annotation = inspect.get_annotations(owner).get(field_name)
        if annotation is None:
            return {}
    # Another field names a missing class: resolve this one alone. Module
    # names shadow class-body names, as in the full lookup above.
    holder = type(owner.__name__, (), {
        "__module__": owner.__module__,
        "__annotations__": {field_name: annotation},
    })
    module = sys.modules.get(owner.__module__)
    return typing.get_type_hints(
        holder,
        globalns=dict(vars(owner)),
        localns=dict(vars(module)) if module is not None else None,
        include_extras=True,
    )


def infer_field_type(owner: type, field_name: str) -> type | None:
    """Resolve the element type of ``owner.field_name`` from its annotation."""
    try:
        annotation = _hints(owner, field_name).get(field_name)
    except NameError as exc:
        log.warning(
            "Cannot resolve annotation of %s.%s (%s); values will be copied verbatim",
            owner.__qualname__,
            field_name,
            exc,
        )
        return None

    element_type = element_type_of(annotation)
    if element_type is None:
        log.debug(
            "Annotation %r of %s.%s names no buildable class",
            annotation,
            owner.__qualname__,
            field_name,
        )
    return element_type


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

_UNSET: Any = object()


class Build:
    """Field marker declaring what a field's document value is built into.

    A non-data descriptor: values assigned on instances shadow it, and
    reading a field that was never assigned raises ``AttributeError``.

    With ``default=`` the marker reads as that value instead, on the class and
    on instances where the field is unset. Dataclass fields need it: a
    dataclass takes whatever class access returns as the field default, so
    without it the marker itself would become the default::

        @dataclass
        class Trip:
            start: Date | None = Build(default=None)
    """

    def __init__(
        self,
        element_type: type | None = None,
        *,
        default: Any = _UNSET,
        store: TypeMetadataStore | None = None,
    ) -> None:
        self.element_type = element_type
        self.default = default
        self.store = store if store is not None else DEFAULT_STORE
        self.name: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        if self.element_type is not None:
            self.store.register_field_type(owner, name, self.element_type)
        else:
            self.store.defer_field_type(owner, name, lambda: infer_field_type(owner, name))

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if self.default is not _UNSET:
            return self.default
        if instance is None:
            return self
        raise AttributeError(
            f"{type(instance).__name__!r} object has no attribute {self.name!r}"
        )

    def __repr__(self) -> str:
        target = self.element_type.__qualname__ if self.element_type is not None else ""
        return f"Build({target})"


def builder(
    strategy: Strategy,
    *,
    store: TypeMetadataStore | None = None,
) -> Callable[[type[T]], type[T]]:
    """Class decorator registering *strategy* as the way to construct the class."""
    target = store if store is not None else DEFAULT_STORE

    def _register(cls: type[T]) -> type[T]:
        target.register_strategy(cls, strategy)
        return cls

    return _register


def register_field_type(
    type_: type,
    field_name: str,
    element_type: type | None,
    *,
    store: TypeMetadataStore | None = None,
) -> None:
    """Declare the element type of ``type_.field_name`` without a marker."""
    target = store if store is not None else DEFAULT_STORE
    target.register_field_type(type_, field_name, element_type)
