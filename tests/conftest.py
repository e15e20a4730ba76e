"""Shared pytest fixtures for the Typed Event Bus test suite."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from typed_event_bus import EventBus


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def bus() -> EventBus:
    """A fresh bus without an exception handler."""
    return EventBus()


@pytest.fixture()
def faults() -> list[BaseException]:
    """List collecting faults routed to a handler."""
    return []


@pytest.fixture()
def handled_bus(bus: EventBus, faults: list[BaseException]) -> EventBus:
    """A bus whose exception handler appends to :func:`faults`."""
    bus.set_exception_handler(faults.append)
    return bus


@pytest.fixture()
def calls() -> list[str]:
    """Ordered log of listener invocations."""
    return []


@pytest.fixture()
def recorder(calls: list[str]) -> Callable[[str], Callable[[Any], None]]:
    """Factory returning a delegate that appends *name* to :func:`calls`."""

    def make(name: str) -> Callable[[Any], None]:
        def delegate(event: Any) -> None:
            calls.append(name)

        delegate.__qualname__ = f"record[{name}]"
        return delegate

    return make
