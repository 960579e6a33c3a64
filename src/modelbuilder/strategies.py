"""Construction strategies that need no metadata.

A strategy is any callable ``(document, type_) -> instance``. The property-copy
strategy lives on :class:`modelbuilder.builder.ModelBuilder` because it recurses
through a store; the strategies here only touch their arguments.
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")

Strategy = Callable[[Any, type], Any]


def with_constructor(document: Any, type_: type[T]) -> T:
    """Hand the raw document to the class constructor as its only argument."""
    return type_(document)  # type: ignore[call-arg]
