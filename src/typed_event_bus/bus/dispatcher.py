"""The event bus: registration, discovery, and synchronous dispatch.

Dispatch behaviour:

1. Look up the bucket for the event's exact runtime type
2. Invoke delegates in priority order (highest first, ties in insertion order)
3. For cancellable events, skip listeners that do not ignore cancellation
   once the event is cancelled; the state is re-checked before every call
4. Catch the first listener fault, stop delivering that event, and route the
   fault to the exception handler
5. Without a handler, escalate the fault as :class:`ListenerFault`

All registry mutation happens under the exclusive side of one
:class:`ReadWriteLock`; dispatch holds the shared side.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from typed_event_bus.bus.discovery import iter_listener_methods
from typed_event_bus.bus.locks import ReadWriteLock
from typed_event_bus.bus.registry import Registry
from typed_event_bus.domain.errors import (
    InvalidArgumentError,
    InvalidStateError,
    ListenerFault,
)
from typed_event_bus.domain.events import Event
from typed_event_bus.domain.models import (
    DEFAULT_IGNORE_CANCELLATION,
    DEFAULT_PRIORITY,
    EventRegistration,
    require_priority,
)
from typed_event_bus.domain.protocols import EventDelegate, ExceptionHandler

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Event)
F = TypeVar("F", bound=Callable[..., Any])


class LoggingExceptionHandler:
    """Exception handler that logs contained faults with their traceback.

    Parameters
    ----------
    log:
        Logger to write to; defaults to this module's logger.
    level:
        Logging level used for each fault.
    """

    def __init__(self, log: logging.Logger | None = None, level: int = logging.ERROR) -> None:
        self._log = log or logger
        self._level = level

    def __call__(self, fault: BaseException) -> None:
        self._log.log(
            self._level,
            "Event bus fault: %s: %s",
            type(fault).__name__,
            fault,
            exc_info=(type(fault), fault, fault.__traceback__),
        )


class EventBus:
    """A synchronous, in-process publish/subscribe bus with typed events.

    Parameters
    ----------
    registry:
        Registry holding the listener buckets.  A new :class:`Registry` with
        the default bucket factory is created when omitted.

    Example
    -------
    >>> class Ping(Event):
    ...     pass
    >>> bus = EventBus()
    >>> seen: list[Event] = []
    >>> _ = bus.register(Ping, seen.append)
    >>> _ = bus.post(Ping())
    >>> len(seen)
    1
    """

    def __init__(self, registry: Registry | None = None) -> None:
        self._registry = registry if registry is not None else Registry()
        self._lock = ReadWriteLock()
        self._exception_handler: ExceptionHandler | None = None

    # -- exception handling ------------------------------------------------

    @property
    def exception_handler(self) -> ExceptionHandler | None:
        return self._exception_handler

    def set_exception_handler(self, handler: ExceptionHandler) -> None:
        """Install the handler receiving dispatch and discovery faults.

        Raises
        ------
        InvalidArgumentError
            If *handler* is not callable.
        InvalidStateError
            If a handler has already been set on this bus.
        """
        if handler is None or not callable(handler):
            raise InvalidArgumentError("handler must be a callable.")
        if self._exception_handler is not None:
            raise InvalidStateError("An exception handler is already set for this bus.")
        self._exception_handler = handler

    def handle_exception(self, fault: BaseException) -> None:
        """Forward *fault* to the exception handler, or escalate it.

        Raises
        ------
        ListenerFault
            If no handler is set, chained to *fault*.
        """
        if fault is None:
            raise InvalidArgumentError("fault cannot be None.")
        if self._exception_handler is None:
            raise ListenerFault(fault) from fault
        self._exception_handler(fault)

    # -- registration ------------------------------------------------------

    def register(
        self,
        event_type: type[E],
        delegate: EventDelegate,
        priority: int = DEFAULT_PRIORITY,
        ignore_cancellation: bool = DEFAULT_IGNORE_CANCELLATION,
    ) -> EventRegistration | None:
        """Register *delegate* for events of exactly *event_type*.

        Parameters
        ----------
        event_type:
            The concrete :class:`Event` subclass to listen for.
        delegate:
            Callable invoked with the event as its only argument.
        priority:
            Higher values run earlier.
        ignore_cancellation:
            Keep receiving the event after it was cancelled.

        Returns
        -------
        EventRegistration | None
            The registration handle, or ``None`` if the bucket rejected it.

        Raises
        ------
        InvalidArgumentError
            If *event_type* is not an :class:`Event` subclass, *delegate* is
            not callable or *priority* is not an ``int``.
        """
        _require_event_type(event_type)
        if not isinstance(delegate, EventDelegate):
            raise InvalidArgumentError("delegate must be a callable.")

        registration = EventRegistration(
            event_type=event_type,
            delegate=delegate,
            priority=require_priority(priority),
            ignore_cancellation=bool(ignore_cancellation),
        )
        with self._lock.write():
            return self._insert(registration)

    def on(
        self,
        event_type: type[E],
        priority: int = DEFAULT_PRIORITY,
        ignore_cancellation: bool = DEFAULT_IGNORE_CANCELLATION,
    ) -> Callable[[F], F]:
        """Decorator form of :meth:`register`; returns the function unchanged."""
        _require_event_type(event_type)

        def decorator(fn: F) -> F:
            self.register(event_type, fn, priority, ignore_cancellation)
            return fn

        return decorator

    def register_listener(
        self,
        instance: Any,
        out: list[EventRegistration] | None = None,
    ) -> list[EventRegistration]:
        """Register the marked instance methods declared on ``type(instance)``.

        Parameters
        ----------
        instance:
            Object whose class declares ``@listener`` methods.
        out:
            List the new registrations are appended to.  A fresh list is
            used when omitted.

        Returns
        -------
        list[EventRegistration]
            *out* (or the fresh list) with the new registrations appended.
        """
        if instance is None:
            raise InvalidArgumentError("instance cannot be None.")
        return self._register_annotated(type(instance), instance, False, out)

    def register_static(
        self,
        cls: type,
        out: list[EventRegistration] | None = None,
    ) -> list[EventRegistration]:
        """Register the marked static and class methods declared on *cls*.

        See :meth:`register_listener` for *out* and the return value.
        """
        if cls is None or not isinstance(cls, type):
            raise InvalidArgumentError("cls must be a class.")
        return self._register_annotated(cls, None, True, out)

    def unregister(self, registration: EventRegistration) -> bool:
        """Remove *registration* from the bus.

        Returns
        -------
        bool
            ``True`` if it was registered, ``False`` otherwise.
        """
        if registration is None:
            raise InvalidArgumentError("registration cannot be None.")
        with self._lock.write():
            bucket = self._registry.get_bucket(registration.event_type)
            removed = bucket is not None and self._registry.remove(bucket, registration)
        if removed:
            logger.debug("Unregistered %r", registration)
        return removed

    # -- dispatch ----------------------------------------------------------

    def post(self, event: E) -> E:
        """Deliver *event* to the listeners of its exact type and return it.

        A listener fault stops delivery of this event and is routed to the
        exception handler.

        Raises
        ------
        InvalidArgumentError
            If *event* is not an :class:`Event`.
        ListenerFault
            If a listener raised and no exception handler is set.
        """
        if not isinstance(event, Event):
            raise InvalidArgumentError(
                f"event must be an Event instance, got {type(event).__name__}."
            )

        event_type = type(event)
        with self._lock.read():
            bucket = self._registry.get_bucket(event_type)
            if bucket is None:
                logger.debug("No listeners for %s", event_type.__qualname__)
                return event
            try:
                if event.is_cancellable():
                    for registration in bucket:
                        if not event.is_cancelled() or registration.ignore_cancellation:
                            registration.delegate(event)
                else:
                    for registration in bucket:
                        registration.delegate(event)
            except Exception as exc:
                self.handle_exception(exc)
        return event

    def post_is_cancelled(self, event: Event) -> bool:
        """Post *event* and return whether it ended up cancelled."""
        return self.post(event).is_cancelled()

    # -- introspection -----------------------------------------------------

    def listener_count(self, event_type: type[Event]) -> int:
        """Return the number of listeners registered for exactly *event_type*."""
        with self._lock.read():
            return self._registry.listener_count(event_type)

    @property
    def event_types(self) -> list[type[Event]]:
        """Return the event types with at least one listener."""
        with self._lock.read():
            return self._registry.event_types

    # -- internals ---------------------------------------------------------

    def _insert(self, registration: EventRegistration) -> EventRegistration | None:
        bucket = self._registry.get_or_create_bucket(registration.event_type)
        if not self._registry.insert(bucket, registration):
            logger.debug("Registration rejected by bucket: %r", registration)
            return None
        logger.debug("Registered %r", registration)
        return registration

    def _register_annotated(
        self,
        owner: type,
        instance: Any,
        static: bool,
        out: list[EventRegistration] | None,
    ) -> list[EventRegistration]:
        registrations = out if out is not None else []
        found = 0
        with self._lock.write():
            for candidate in iter_listener_methods(owner, instance, static):
                if candidate.failure is not None:
                    logger.warning("%s", candidate.failure)
                    self.handle_exception(candidate.failure)
                    continue
                registration = self._insert(
                    EventRegistration(
                        event_type=candidate.event_type,
                        delegate=candidate.delegate,
                        priority=candidate.marker.priority,
                        ignore_cancellation=candidate.marker.ignore_cancellation,
                    )
                )
                if registration is not None:
                    registrations.append(registration)
                    found += 1
        logger.debug(
            "Discovered %d %s listener(s) on %s",
            found, "static" if static else "instance", owner.__qualname__,
        )
        return registrations


def _require_event_type(event_type: Any) -> None:
    if event_type is None:
        raise InvalidArgumentError("event_type cannot be None.")
    if not isinstance(event_type, type) or not issubclass(event_type, Event):
        raise InvalidArgumentError(
            f"event_type must be an Event subclass, got {event_type!r}."
        )
