"""Protocol interfaces for the event bus.

Each protocol defines the contract a pluggable piece must satisfy.  Using
:class:`typing.Protocol` enables structural subtyping -- implementations do
not need to inherit from these classes, and plain functions satisfy the
callable protocols.
"""

from __future__ import annotations

from typing import Iterator, Protocol, runtime_checkable

from typed_event_bus.domain.events import Event
from typed_event_bus.domain.models import EventRegistration


# ---------------------------------------------------------------------------
# Callables
# ---------------------------------------------------------------------------

@runtime_checkable
class EventDelegate(Protocol):
    """Listener callable receiving the posted event."""

    def __call__(self, event: Event) -> None:
        ...


@runtime_checkable
class ExceptionHandler(Protocol):
    """Sink for faults raised by listeners or by discovery.

    A handler should deal with the fault or re-raise it.  Anything it raises
    propagates to the caller of ``post`` / ``register_listener``.
    """

    def __call__(self, fault: BaseException) -> None:
        ...


# ---------------------------------------------------------------------------
# Registry storage
# ---------------------------------------------------------------------------

@runtime_checkable
class RegistrationBucket(Protocol):
    """Ordered collection of registrations for one exact event type."""

    def add(self, registration: EventRegistration) -> bool:
        """Add *registration*; return ``False`` if the collection rejects it."""
        ...

    def remove(self, registration: EventRegistration) -> bool:
        """Remove *registration*; return whether it was present."""
        ...

    def sort(self) -> None:
        """Stable-sort the collection by registration ordering."""
        ...

    def __iter__(self) -> Iterator[EventRegistration]:
        ...

    def __len__(self) -> int:
        ...


class BucketFactory(Protocol):
    """Zero-argument callable creating an empty :class:`RegistrationBucket`."""

    def __call__(self) -> RegistrationBucket:
        ...
