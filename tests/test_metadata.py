"""Tests for modelbuilder.metadata module."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pytest

from modelbuilder.dates import Date
from modelbuilder.metadata import DEFAULT_STORE, TypeMetadataStore
from modelbuilder.strategies import with_constructor


class Animal:
    pass


class Dog(Animal):
    pass


class Puppy(Dog):
    pass


def _other_strategy(document: Any, type_: type) -> Any:
    return type_()


class TestStrategies:
    def test_defaults_register_date(self) -> None:
        assert TypeMetadataStore().lookup_strategy(Date) is with_constructor
        assert DEFAULT_STORE.lookup_strategy(Date) is with_constructor

    def test_defaults_can_be_disabled(self) -> None:
        assert TypeMetadataStore(defaults=False).lookup_strategy(Date) is None

    def test_last_registration_wins(self) -> None:
        store = TypeMetadataStore()
        store.register_strategy(Animal, with_constructor)
        store.register_strategy(Animal, _other_strategy)
        assert store.lookup_strategy(Animal) is _other_strategy

    def test_lookup_is_exact_class(self) -> None:
        store = TypeMetadataStore()
        store.register_strategy(Animal, with_constructor)
        assert store.lookup_strategy(Dog) is None

    def test_unregistered_type_has_no_strategy(self) -> None:
        assert TypeMetadataStore().lookup_strategy(Animal) is None

    def test_rejects_non_callable_strategy(self) -> None:
        store = TypeMetadataStore()
        with pytest.raises(TypeError, match="Strategy for Animal must be callable"):
            store.register_strategy(Animal, "with_constructor")  # type: ignore[arg-type]


class TestFieldTypes:
    def test_register_and_lookup(self) -> None:
        store = TypeMetadataStore()
        store.register_field_type(Animal, "born", Date)
        assert store.lookup_field_type(Animal, "born") is Date
        assert store.lookup_field_type(Animal, "name") is None

    def test_last_declaration_wins(self) -> None:
        store = TypeMetadataStore()
        store.register_field_type(Animal, "born", Animal)
        store.register_field_type(Animal, "born", Date)
        assert store.lookup_field_type(Animal, "born") is Date

    def test_lookup_through_instance(self) -> None:
        store = TypeMetadataStore()
        store.register_field_type(Animal, "born", Date)
        assert store.lookup_field_type(Animal(), "born") is Date

    def test_inherited_through_mro(self) -> None:
        store = TypeMetadataStore()
        store.register_field_type(Animal, "born", Date)
        assert store.lookup_field_type(Puppy, "born") is Date
        assert store.lookup_field_type(Puppy(), "born") is Date

    def test_nearest_declaration_wins(self) -> None:
        store = TypeMetadataStore()
        store.register_field_type(Animal, "friend", Animal)
        store.register_field_type(Dog, "friend", Dog)
        assert store.lookup_field_type(Puppy, "friend") is Dog
        assert store.lookup_field_type(Animal, "friend") is Animal

    def test_subclass_can_mark_field_untyped(self) -> None:
        store = TypeMetadataStore()
        store.register_field_type(Animal, "born", Date)
        store.register_field_type(Dog, "born", None)
        assert store.lookup_field_type(Dog, "born") is None
        assert store.lookup_field_type(Animal, "born") is Date

    def test_declarations_are_per_store(self) -> None:
        a = TypeMetadataStore()
        b = TypeMetadataStore()
        a.register_field_type(Animal, "born", Date)
        assert b.lookup_field_type(Animal, "born") is None


class TestDeferredFieldTypes:
    def test_resolved_once_and_cached(self) -> None:
        store = TypeMetadataStore()
        calls: list[int] = []

        def resolve() -> type:
            calls.append(1)
            return Date

        store.defer_field_type(Animal, "born", resolve)
        assert calls == []
        assert store.lookup_field_type(Dog(), "born") is Date
        assert store.lookup_field_type(Animal, "born") is Date
        assert calls == [1]

    def test_unresolved_result_is_cached_as_untyped(self) -> None:
        store = TypeMetadataStore()
        calls: list[int] = []

        def resolve() -> None:
            calls.append(1)
            return None

        store.defer_field_type(Animal, "born", resolve)
        assert store.lookup_field_type(Animal, "born") is None
        assert store.lookup_field_type(Animal, "born") is None
        assert calls == [1]

    def test_explicit_registration_replaces_deferred(self) -> None:
        store = TypeMetadataStore()
        store.defer_field_type(Animal, "born", lambda: Animal)
        store.register_field_type(Animal, "born", Date)
        assert store.lookup_field_type(Animal, "born") is Date

    def test_deferred_replaces_explicit(self) -> None:
        store = TypeMetadataStore()
        store.register_field_type(Animal, "born", Animal)
        store.defer_field_type(Animal, "born", lambda: Date)
        assert store.lookup_field_type(Animal, "born") is Date

    def test_failed_resolver_stays_deferred(self) -> None:
        store = TypeMetadataStore()
        attempts: list[int] = []

        def resolve() -> type:
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("not yet")
            return Date

        store.defer_field_type(Animal, "born", resolve)
        with pytest.raises(RuntimeError, match="not yet"):
            store.lookup_field_type(Animal, "born")
        assert store.lookup_field_type(Animal, "born") is Date


def test_field_types_merges_ancestors() -> None:
    store = TypeMetadataStore()
    store.register_field_type(Animal, "born", Date)
    store.register_field_type(Animal, "friend", Animal)
    store.register_field_type(Dog, "friend", Dog)
    store.register_field_type(Puppy, "born", None)
    store.defer_field_type(Puppy, "vet_visits", lambda: Date)

    assert store.field_types(Animal) == {"born": Date, "friend": Animal}
    assert store.field_types(Dog()) == {"born": Date, "friend": Dog}
    assert store.field_types(Puppy) == {"friend": Dog, "vet_visits": Date}


def test_deferred_resolution_runs_once_across_threads() -> None:
    store = TypeMetadataStore()
    calls: list[int] = []

    def resolve() -> type:
        calls.append(1)
        return Date

    store.defer_field_type(Animal, "born", resolve)
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: store.lookup_field_type(Puppy, "born"), range(64)))
    assert results == [Date] * 64
    assert calls == [1]
