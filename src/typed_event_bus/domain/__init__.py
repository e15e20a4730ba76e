"""Domain layer -- events, registrations, protocols, and errors.

Re-exports all public domain types for convenient access::

    from typed_event_bus.domain import Event, EventRegistration, InvalidStateError
"""

from __future__ import annotations

from typed_event_bus.domain.errors import (
    BindingFailure,
    EventBusError,
    InvalidArgumentError,
    InvalidStateError,
    ListenerFault,
)
from typed_event_bus.domain.events import CancellableEvent, Event
from typed_event_bus.domain.models import (
    DEFAULT_IGNORE_CANCELLATION,
    DEFAULT_PRIORITY,
    AppConfig,
    EventRegistration,
    ListenerMarker,
    MethodDelegate,
)
from typed_event_bus.domain.protocols import (
    BucketFactory,
    EventDelegate,
    ExceptionHandler,
    RegistrationBucket,
)

__all__ = [
    # Errors
    "BindingFailure",
    "EventBusError",
    "InvalidArgumentError",
    "InvalidStateError",
    "ListenerFault",
    # Events
    "CancellableEvent",
    "Event",
    # Models
    "AppConfig",
    "DEFAULT_IGNORE_CANCELLATION",
    "DEFAULT_PRIORITY",
    "EventRegistration",
    "ListenerMarker",
    "MethodDelegate",
    # Protocols
    "BucketFactory",
    "EventDelegate",
    "ExceptionHandler",
    "RegistrationBucket",
]
