"""Error types for the event bus.

Argument and state errors are raised synchronously to the caller.  Faults
raised by listeners or by discovery are routed through the bus exception
handler, and escalate as :class:`ListenerFault` when no handler is set.
"""

from __future__ import annotations


class EventBusError(Exception):
    """Base error for event bus operations."""


class InvalidArgumentError(EventBusError, ValueError):
    """A required argument is missing or has the wrong type."""


class InvalidStateError(EventBusError, RuntimeError):
    """The operation is not allowed in the object's current state."""


class BindingFailure(EventBusError):
    """Discovery could not resolve or bind a listener method.

    Attributes
    ----------
    owner:
        The class that was being scanned.
    member_name:
        Name of the member that could not be bound.
    """

    def __init__(self, owner: type, member_name: str, reason: str) -> None:
        self.owner = owner
        self.member_name = member_name
        super().__init__(
            f"Unable to bind listener '{owner.__qualname__}.{member_name}': {reason}"
        )


class ListenerFault(EventBusError, RuntimeError):
    """A dispatch or discovery fault occurred and no exception handler is set.

    The original exception is available as :attr:`fault` and as
    ``__cause__``.
    """

    def __init__(self, fault: BaseException) -> None:
        self.fault = fault
        super().__init__(
            f"Unhandled {type(fault).__name__} in event bus: {fault}"
        )
