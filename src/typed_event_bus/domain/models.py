"""Value types for the event bus.

Registrations, listener markers and method delegates are frozen dataclasses.
:class:`AppConfig` wraps the merged YAML / environment configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Literal

import yaml

from typed_event_bus.domain.errors import InvalidArgumentError
from typed_event_bus.domain.events import Event

if TYPE_CHECKING:
    from typed_event_bus.domain.protocols import EventDelegate

#: Priority used when a listener does not declare one.
DEFAULT_PRIORITY = 0

#: By default listeners are skipped once an event has been cancelled.
DEFAULT_IGNORE_CANCELLATION = False


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _empty_dict() -> dict[str, Any]:
    """Return an empty dictionary."""
    return {}


def _qualname(obj: Any) -> str:
    return getattr(obj, "__qualname__", None) or repr(obj)


def require_priority(priority: Any) -> int:
    """Return *priority* if it is an ``int``, else raise :class:`InvalidArgumentError`."""
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise InvalidArgumentError(
            f"priority must be an int, got {type(priority).__name__}."
        )
    return priority


# ---------------------------------------------------------------------------
# Registrations
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class EventRegistration:
    """Binding of one listener delegate to one exact event type.

    Registrations compare and hash by identity: the handle returned by
    :meth:`EventBus.register` identifies exactly one binding, even when
    another registration carries the same fields.

    Ordering follows priority, highest first.  Registrations of equal
    priority are neither less nor greater than each other, so sorting a
    bucket with a stable sort keeps their insertion order.

    Attributes
    ----------
    event_type:
        The concrete :class:`Event` subclass this listener receives.
    delegate:
        Callable invoked with the event as its only argument.
    priority:
        Higher values run earlier.
    ignore_cancellation:
        When ``True`` the delegate still runs after the event was cancelled.
    """

    event_type: type[Event]
    delegate: EventDelegate
    priority: int = DEFAULT_PRIORITY
    ignore_cancellation: bool = DEFAULT_IGNORE_CANCELLATION

    def __lt__(self, other: EventRegistration) -> bool:
        if not isinstance(other, EventRegistration):
            return NotImplemented
        return self.priority > other.priority

    def __gt__(self, other: EventRegistration) -> bool:
        if not isinstance(other, EventRegistration):
            return NotImplemented
        return self.priority < other.priority

    def __repr__(self) -> str:
        return (
            f"EventRegistration({self.event_type.__name__}, "
            f"{_qualname(self.delegate)}, priority={self.priority}, "
            f"ignore_cancellation={self.ignore_cancellation})"
        )


@dataclass(frozen=True)
class ListenerMarker:
    """Options attached to a method by the :func:`listener` decorator."""

    priority: int = DEFAULT_PRIORITY
    ignore_cancellation: bool = DEFAULT_IGNORE_CANCELLATION


@dataclass(frozen=True)
class MethodDelegate:
    """Delegate produced by discovery for a listener method.

    Build one with :meth:`bound` for instance methods or :meth:`static` for
    static methods.  For class methods the class is passed as ``receiver``
    through :meth:`bound`.
    """

    function: Callable[..., Any]
    receiver: Any = None
    kind: Literal["bound", "static"] = "static"

    @classmethod
    def bound(cls, function: Callable[..., Any], receiver: Any) -> MethodDelegate:
        return cls(function=function, receiver=receiver, kind="bound")

    @classmethod
    def static(cls, function: Callable[..., Any]) -> MethodDelegate:
        return cls(function=function, kind="static")

    def __call__(self, event: Event) -> None:
        if self.kind == "bound":
            self.function(self.receiver, event)
        else:
            self.function(event)

    def __repr__(self) -> str:
        return f"<{self.kind} delegate {_qualname(self.function)}>"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AppConfig:
    """Bus settings merged from YAML files and ``TEB_`` environment variables.

    Later sources win: ``config/default.yaml``, then an optional overlay
    file, then the environment.
    """

    data: dict[str, Any] = field(default_factory=_empty_dict)

    @staticmethod
    def load(
        default_path: str | Path = "config/default.yaml",
        overlay_path: str | Path | None = None,
        env_prefix: str = "TEB_",
    ) -> AppConfig:
        """Build an :class:`AppConfig` from files and the environment.

        Missing files are skipped.  A variable such as
        ``TEB_BUS__BUCKET_FACTORY=unique`` sets ``bus.bucket_factory``;
        ``true`` / ``false`` (and ``yes`` / ``no``) become booleans.
        """
        merged: dict[str, Any] = {}
        for path in (default_path, overlay_path):
            if path is not None:
                merged = _deep_merge(merged, _read_yaml(Path(path)))
        for key, value in os.environ.items():
            if key.startswith(env_prefix):
                _set_nested(merged, key[len(env_prefix):].lower().split("__"), _env_value(value))
        return AppConfig(data=merged)

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``bus.bucket_factory``."""
        node: Any = self.data
        for part in dotted_key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def section(self, name: str) -> dict[str, Any]:
        """Return a copy of top-level section *name*, or ``{}``."""
        value = self.data.get(name)
        return dict(value) if isinstance(value, dict) else {}


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _set_nested(d: dict[str, Any], parts: list[str], value: Any) -> None:
    *parents, leaf = parts
    for part in parents:
        d = d.setdefault(part, {})
    d[leaf] = value


def _env_value(value: str) -> Any:
    # Only the boolean switches need coercion; every other bus setting is a string.
    lowered = value.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False
    return value
