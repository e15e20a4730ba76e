"""Declarative listener discovery.

Methods are marked with the :func:`listener` decorator::

    class Scoreboard:
        @listener(priority=10)
        def on_goal(self, event: GoalScored) -> None:
            ...

        @staticmethod
        @listener(ignore_cancellation=True)
        def audit(event: GoalScored) -> None:
            ...

:func:`iter_listener_methods` scans the members declared directly on a class
and yields a :class:`ListenerCandidate` for every marked method whose shape
matches the listener contract:

1. it carries a :class:`ListenerMarker`,
2. its return annotation is absent or ``None``,
3. it takes exactly one positional parameter besides ``self`` / ``cls``,
4. that parameter is annotated with :class:`Event` or a subclass,
5. it is a ``staticmethod`` / ``classmethod`` in static mode, or a plain
   function in instance mode.

Members failing any rule are skipped.  A member that cannot be inspected at
all yields a candidate carrying the :class:`BindingFailure` instead, so the
caller can report it and carry on with the rest of the scan.
"""

from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass
from typing import Any, Callable, Iterator, TypeVar

from typed_event_bus.domain.errors import BindingFailure
from typed_event_bus.domain.events import Event
from typed_event_bus.domain.models import (
    DEFAULT_IGNORE_CANCELLATION,
    DEFAULT_PRIORITY,
    ListenerMarker,
    MethodDelegate,
    require_priority,
)

logger = logging.getLogger(__name__)

F = TypeVar("F")

#: Attribute under which :func:`listener` stores its marker on a function.
MARKER_ATTR = "__event_listener__"

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def listener(
    priority: int = DEFAULT_PRIORITY,
    ignore_cancellation: bool = DEFAULT_IGNORE_CANCELLATION,
) -> Callable[[F], F]:
    """Mark a method as an event listener.

    May be applied above or below ``@staticmethod`` / ``@classmethod``.

    Parameters
    ----------
    priority:
        Higher values run earlier.
    ignore_cancellation:
        Keep receiving the event after an earlier listener cancelled it.
    """
    marker = ListenerMarker(
        priority=require_priority(priority),
        ignore_cancellation=bool(ignore_cancellation),
    )

    def decorator(fn: F) -> F:
        target = fn.__func__ if isinstance(fn, (staticmethod, classmethod)) else fn
        setattr(target, MARKER_ATTR, marker)
        return fn

    return decorator


def get_marker(member: Any) -> ListenerMarker | None:
    """Return the :class:`ListenerMarker` attached to *member*, if any."""
    target = member.__func__ if isinstance(member, (staticmethod, classmethod)) else member
    marker = getattr(target, MARKER_ATTR, None)
    return marker if isinstance(marker, ListenerMarker) else None


@dataclass(frozen=True)
class ListenerCandidate:
    """Outcome of inspecting one marked member.

    Exactly one of ``delegate`` / ``failure`` is set.
    """

    name: str
    event_type: type[Event] | None = None
    delegate: MethodDelegate | None = None
    marker: ListenerMarker | None = None
    failure: BindingFailure | None = None


def iter_listener_methods(
    owner: type,
    instance: Any = None,
    static: bool = False,
) -> Iterator[ListenerCandidate]:
    """Yield listener candidates declared directly on *owner*.

    Parameters
    ----------
    owner:
        The class to scan.  Inherited members are not considered.
    instance:
        Receiver bound to instance methods (ignored in static mode).
    static:
        Scan for static / class methods instead of instance methods.
    """
    for name, member in list(vars(owner).items()):
        try:
            marker = get_marker(member)
        except Exception as exc:
            yield ListenerCandidate(name=name, failure=_binding_failure(owner, name, exc))
            continue
        if marker is None:
            continue

        is_static = isinstance(member, (staticmethod, classmethod))
        if is_static != static:
            continue
        if not is_static and not inspect.isfunction(member):
            continue

        try:
            function = member.__func__ if is_static else member
            event_type = _resolve_event_type(
                function, skip_first=not isinstance(member, staticmethod)
            )
        except Exception as exc:
            failure = _binding_failure(owner, name, exc)
            yield ListenerCandidate(name=name, marker=marker, failure=failure)
            continue

        if event_type is None:
            logger.debug("Skipping %s.%s: not a listener shape", owner.__qualname__, name)
            continue

        if isinstance(member, staticmethod):
            delegate = MethodDelegate.static(function)
        elif isinstance(member, classmethod):
            delegate = MethodDelegate.bound(function, owner)
        else:
            delegate = MethodDelegate.bound(function, instance)

        yield ListenerCandidate(
            name=name, event_type=event_type, delegate=delegate, marker=marker
        )


def _binding_failure(owner: type, name: str, exc: Exception) -> BindingFailure:
    failure = BindingFailure(owner, name, f"{type(exc).__name__}: {exc}")
    failure.__cause__ = exc
    return failure


def _resolve_event_type(function: Callable[..., Any], skip_first: bool) -> type[Event] | None:
    """Return the event type *function* listens for, or ``None`` on a shape mismatch.

    Raises whatever :func:`inspect.signature` or :func:`typing.get_type_hints`
    raise when the function cannot be inspected.
    """
    params = list(inspect.signature(function).parameters.values())
    if skip_first:
        if not params or params[0].kind not in _POSITIONAL:
            return None
        params = params[1:]
    if len(params) != 1 or params[0].kind not in _POSITIONAL:
        return None

    hints = typing.get_type_hints(function)
    if "return" in hints and hints["return"] is not type(None):
        return None

    annotation = hints.get(params[0].name)
    if inspect.isclass(annotation) and issubclass(annotation, Event):
        return annotation
    return None
