"""Typed Event Bus.

An in-process publish/subscribe dispatcher.  Listeners register for exact
event types, either directly or by marking methods with :func:`listener`,
and posted events are delivered synchronously in priority order with
optional cancellation.

Quick usage::

    from typed_event_bus import CancellableEvent, EventBus, listener

    class Shutdown(CancellableEvent):
        pass

    bus = EventBus()
    bus.register(Shutdown, lambda event: event.cancel(), priority=10)
    assert bus.post_is_cancelled(Shutdown())
"""

from __future__ import annotations

from typed_event_bus.bus import (
    EventBus,
    LoggingExceptionHandler,
    Registry,
    RegistrationList,
    UniqueRegistrationList,
    create_bus,
    listener,
)
from typed_event_bus.domain import (
    DEFAULT_IGNORE_CANCELLATION,
    DEFAULT_PRIORITY,
    BindingFailure,
    CancellableEvent,
    Event,
    EventBusError,
    EventDelegate,
    EventRegistration,
    InvalidArgumentError,
    InvalidStateError,
    ListenerFault,
)

__version__ = "0.1.0"

__all__ = [
    "BindingFailure",
    "CancellableEvent",
    "DEFAULT_IGNORE_CANCELLATION",
    "DEFAULT_PRIORITY",
    "Event",
    "EventBus",
    "EventBusError",
    "EventDelegate",
    "EventRegistration",
    "InvalidArgumentError",
    "InvalidStateError",
    "ListenerFault",
    "LoggingExceptionHandler",
    "Registry",
    "RegistrationList",
    "UniqueRegistrationList",
    "create_bus",
    "listener",
]
