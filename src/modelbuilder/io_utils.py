"""JSON loading helpers that feed parsed documents into a builder.

Parsing uses orjson; the builder itself only ever sees the resulting
dict/list/scalar trees.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, TypeVar

import orjson

from modelbuilder.builder import ModelBuilder, default_builder

T = TypeVar("T")


def loads_json(raw: bytes | str) -> Any:
    """Parse a JSON document from bytes or text."""
    return orjson.loads(raw)


def load_json(path: Path) -> Any:
    """Load a JSON document from a file."""
    return orjson.loads(path.read_bytes())


def load_jsonl(path: Path) -> list[Any]:
    """Load a JSON Lines file (one JSON document per line). Blank lines skipped."""
    records: list[Any] = []
    for line in path.read_bytes().split(b"\n"):
        line = line.strip()
        if line:
            records.append(orjson.loads(line))
    return records


def build_model_from_json(
    raw: bytes | str,
    type_: type[T],
    *,
    model_builder: ModelBuilder | None = None,
) -> T | None:
    """Parse *raw* and build it into *type_*."""
    engine = model_builder or default_builder()
    return engine.build_model(loads_json(raw), type_)


def load_model(
    path: Path,
    type_: type[T],
    *,
    model_builder: ModelBuilder | None = None,
) -> T | None:
    """Load a JSON file and build it into *type_*."""
    engine = model_builder or default_builder()
    return engine.build_model(load_json(path), type_)


def load_models_jsonl(
    path: Path,
    type_: type[T],
    *,
    model_builder: ModelBuilder | None = None,
) -> list[T | None]:
    """Load a JSON Lines file and build every record into *type_*."""
    engine = model_builder or default_builder()
    return [engine.build_model(record, type_) for record in load_jsonl(path)]
