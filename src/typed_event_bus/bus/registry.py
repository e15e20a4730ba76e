"""Listener registry mapping exact event types to ordered registration buckets.

The registry does no locking of its own; :class:`EventBus` calls the mutating
methods only while holding its write lock, and :meth:`Registry.get_bucket`
while holding at least the read lock.
"""

from __future__ import annotations

import logging
from typing import Iterator, MutableMapping

from typed_event_bus.domain.errors import InvalidArgumentError
from typed_event_bus.domain.events import Event
from typed_event_bus.domain.models import EventRegistration
from typed_event_bus.domain.protocols import BucketFactory, RegistrationBucket

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Buckets
# ---------------------------------------------------------------------------

class RegistrationList:
    """Insertion-ordered bucket that accepts every registration."""

    def __init__(self) -> None:
        self._items: list[EventRegistration] = []

    def add(self, registration: EventRegistration) -> bool:
        self._items.append(registration)
        return True

    def remove(self, registration: EventRegistration) -> bool:
        # Registrations compare by identity, so this removes exactly that handle.
        try:
            self._items.remove(registration)
        except ValueError:
            return False
        return True

    def sort(self) -> None:
        self._items.sort()

    def __iter__(self) -> Iterator[EventRegistration]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, registration: object) -> bool:
        return registration in self._items

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._items!r})"


class UniqueRegistrationList(RegistrationList):
    """Bucket rejecting a second registration of the same delegate."""

    def add(self, registration: EventRegistration) -> bool:
        for existing in self._items:
            if existing.delegate == registration.delegate:
                return False
        return super().add(registration)


# Names accepted by the ``bus.bucket_factory`` configuration key.
BUCKET_FACTORIES: dict[str, BucketFactory] = {
    "list": RegistrationList,
    "unique": UniqueRegistrationList,
}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class Registry:
    """Mapping from concrete event type to its registration bucket.

    Parameters
    ----------
    mapping:
        Backing mapping; a new ``dict`` when omitted.
    bucket_factory:
        Zero-argument callable creating an empty bucket for a newly seen
        event type.  Defaults to :class:`RegistrationList`.
    """

    def __init__(
        self,
        mapping: MutableMapping[type[Event], RegistrationBucket] | None = None,
        bucket_factory: BucketFactory = RegistrationList,
    ) -> None:
        if bucket_factory is None or not callable(bucket_factory):
            raise InvalidArgumentError("bucket_factory must be a callable.")
        self._buckets: MutableMapping[type[Event], RegistrationBucket] = (
            {} if mapping is None else mapping
        )
        self._bucket_factory = bucket_factory

    # -- buckets -----------------------------------------------------------

    def get_bucket(self, event_type: type[Event]) -> RegistrationBucket | None:
        """Return the bucket for *event_type*, or ``None`` if none was created."""
        return self._buckets.get(event_type)

    def get_or_create_bucket(self, event_type: type[Event]) -> RegistrationBucket:
        """Return the bucket for *event_type*, creating it on first use."""
        bucket = self._buckets.get(event_type)
        if bucket is None:
            bucket = self._bucket_factory()
            self._buckets[event_type] = bucket
            logger.debug("Created registration bucket for %s", event_type.__qualname__)
        return bucket

    @staticmethod
    def insert(bucket: RegistrationBucket, registration: EventRegistration) -> bool:
        """Add *registration* to *bucket* and restore priority order.

        Returns
        -------
        bool
            ``False`` when the bucket rejected the registration.
        """
        if not bucket.add(registration):
            return False
        bucket.sort()
        return True

    @staticmethod
    def remove(bucket: RegistrationBucket, registration: EventRegistration) -> bool:
        """Remove *registration* from *bucket*.  Empty buckets are kept."""
        return bucket.remove(registration)

    # -- introspection -----------------------------------------------------

    def listener_count(self, event_type: type[Event]) -> int:
        """Return the number of registrations for exactly *event_type*."""
        bucket = self._buckets.get(event_type)
        return len(bucket) if bucket is not None else 0

    @property
    def event_types(self) -> list[type[Event]]:
        """Return event types with at least one registration, sorted by name."""
        return sorted(
            (k for k, v in self._buckets.items() if len(v)),
            key=lambda t: (t.__module__, t.__qualname__),
        )
