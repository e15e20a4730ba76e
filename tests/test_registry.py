"""Tests for the registry and its bucket implementations."""

from __future__ import annotations

from collections import OrderedDict

import pytest

from typed_event_bus.bus.registry import (
    BUCKET_FACTORIES,
    Registry,
    RegistrationList,
    UniqueRegistrationList,
)
from typed_event_bus.domain.errors import InvalidArgumentError
from typed_event_bus.domain.events import Event
from typed_event_bus.domain.models import EventRegistration
from typed_event_bus.domain.protocols import RegistrationBucket


class Alpha(Event):
    pass


class Beta(Event):
    pass


def _noop(event: Event) -> None:
    pass


def _other(event: Event) -> None:
    pass


# =====================================================================
# Buckets
# =====================================================================


class TestRegistrationList:
    """Default insertion-ordered bucket."""

    def test_satisfies_protocol(self):
        assert isinstance(RegistrationList(), RegistrationBucket)
        assert isinstance(UniqueRegistrationList(), RegistrationBucket)

    def test_add_accepts_duplicates(self):
        bucket = RegistrationList()
        assert bucket.add(EventRegistration(Alpha, _noop))
        assert bucket.add(EventRegistration(Alpha, _noop))
        assert len(bucket) == 2

    def test_remove_by_identity(self):
        bucket = RegistrationList()
        first = EventRegistration(Alpha, _noop)
        twin = EventRegistration(Alpha, _noop)
        bucket.add(first)
        bucket.add(twin)
        assert bucket.remove(twin) is True
        assert list(bucket) == [first]

    def test_remove_missing_returns_false(self):
        bucket = RegistrationList()
        assert bucket.remove(EventRegistration(Alpha, _noop)) is False

    def test_sort_is_stable_by_priority(self):
        bucket = RegistrationList()
        regs = [EventRegistration(Alpha, _noop, p) for p in (0, 3, 0, 3)]
        for reg in regs:
            bucket.add(reg)
        bucket.sort()
        assert list(bucket) == [regs[1], regs[3], regs[0], regs[2]]


class TestUniqueRegistrationList:
    """Bucket suppressing duplicate delegates."""

    def test_rejects_same_delegate(self):
        bucket = UniqueRegistrationList()
        assert bucket.add(EventRegistration(Alpha, _noop)) is True
        assert bucket.add(EventRegistration(Alpha, _noop, priority=9)) is False
        assert len(bucket) == 1

    def test_accepts_distinct_delegates(self):
        bucket = UniqueRegistrationList()
        assert bucket.add(EventRegistration(Alpha, _noop))
        assert bucket.add(EventRegistration(Alpha, _other))
        assert len(bucket) == 2

    def test_factories_by_name(self):
        assert BUCKET_FACTORIES["list"] is RegistrationList
        assert BUCKET_FACTORIES["unique"] is UniqueRegistrationList


# =====================================================================
# Registry
# =====================================================================


class TestRegistry:
    """Bucket lookup, creation, insertion and removal."""

    def test_get_bucket_absent(self):
        assert Registry().get_bucket(Alpha) is None

    def test_get_or_create_is_lazy_and_stable(self):
        registry = Registry()
        bucket = registry.get_or_create_bucket(Alpha)
        assert registry.get_or_create_bucket(Alpha) is bucket
        assert registry.get_bucket(Alpha) is bucket
        assert registry.get_bucket(Beta) is None

    def test_uses_injected_factory(self):
        created: list[RegistrationList] = []

        def factory() -> RegistrationList:
            bucket = UniqueRegistrationList()
            created.append(bucket)
            return bucket

        registry = Registry(bucket_factory=factory)
        bucket = registry.get_or_create_bucket(Alpha)
        assert created == [bucket]
        assert isinstance(bucket, UniqueRegistrationList)

    def test_uses_injected_mapping(self):
        mapping: OrderedDict = OrderedDict()
        registry = Registry(mapping=mapping)
        bucket = registry.get_or_create_bucket(Alpha)
        assert mapping[Alpha] is bucket

    def test_rejects_missing_factory(self):
        with pytest.raises(InvalidArgumentError):
            Registry(bucket_factory=None)
        with pytest.raises(InvalidArgumentError):
            Registry(bucket_factory="list")

    def test_insert_sorts(self):
        registry = Registry()
        bucket = registry.get_or_create_bucket(Alpha)
        low = EventRegistration(Alpha, _noop, 1)
        high = EventRegistration(Alpha, _noop, 7)
        assert registry.insert(bucket, low)
        assert registry.insert(bucket, high)
        assert list(bucket) == [high, low]

    def test_insert_rejected_leaves_order(self):
        registry = Registry(bucket_factory=UniqueRegistrationList)
        bucket = registry.get_or_create_bucket(Alpha)
        kept = EventRegistration(Alpha, _noop, 1)
        registry.insert(bucket, kept)
        assert registry.insert(bucket, EventRegistration(Alpha, _noop, 9)) is False
        assert list(bucket) == [kept]

    def test_remove_keeps_empty_bucket(self):
        registry = Registry()
        bucket = registry.get_or_create_bucket(Alpha)
        reg = EventRegistration(Alpha, _noop)
        registry.insert(bucket, reg)
        assert registry.remove(bucket, reg) is True
        assert registry.get_bucket(Alpha) is bucket
        assert len(bucket) == 0

    def test_listener_count_and_event_types(self):
        registry = Registry()
        for event_type in (Beta, Alpha, Alpha):
            bucket = registry.get_or_create_bucket(event_type)
            registry.insert(bucket, EventRegistration(event_type, _noop))
        registry.get_or_create_bucket(Event)  # empty bucket is not listed
        assert registry.listener_count(Alpha) == 2
        assert registry.listener_count(Beta) == 1
        assert registry.listener_count(Event) == 0
        assert registry.event_types == [Alpha, Beta]
