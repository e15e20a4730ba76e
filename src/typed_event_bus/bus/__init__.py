"""Bus package: registry, locking, discovery, and the dispatcher.

Exports the :class:`EventBus` and a factory function building one from
configuration.
"""

from __future__ import annotations

from typing import Any

from typed_event_bus.bus.discovery import listener
from typed_event_bus.bus.dispatcher import EventBus, LoggingExceptionHandler
from typed_event_bus.bus.locks import ReadWriteLock
from typed_event_bus.bus.registry import (
    BUCKET_FACTORIES,
    Registry,
    RegistrationList,
    UniqueRegistrationList,
)
from typed_event_bus.domain.errors import InvalidArgumentError
from typed_event_bus.domain.models import AppConfig

__all__ = [
    "BUCKET_FACTORIES",
    "EventBus",
    "LoggingExceptionHandler",
    "ReadWriteLock",
    "Registry",
    "RegistrationList",
    "UniqueRegistrationList",
    "create_bus",
    "listener",
]


def create_bus(config: AppConfig | dict[str, Any] | None = None) -> EventBus:
    """Return an :class:`EventBus` configured from *config*.

    The ``bus`` section of the configuration is inspected:

    - ``bucket_factory`` -- ``"list"`` (default) keeps every registration,
      ``"unique"`` rejects a second registration of the same delegate for
      one event type.
    - ``log_listener_faults`` -- when true, a :class:`LoggingExceptionHandler`
      is installed so listener faults are logged instead of escalated.

    Parameters
    ----------
    config:
        An :class:`AppConfig`, the merged configuration dictionary, or
        ``None`` for defaults.

    Returns
    -------
    EventBus
        The configured bus.

    Raises
    ------
    InvalidArgumentError
        If ``bucket_factory`` names an unknown factory.
    """
    if config is None:
        section: dict[str, Any] = {}
    elif isinstance(config, AppConfig):
        section = config.section("bus")
    else:
        section = dict(config.get("bus") or {})

    factory_name = str(section.get("bucket_factory", "list")).lower()
    factory = BUCKET_FACTORIES.get(factory_name)
    if factory is None:
        raise InvalidArgumentError(
            f"Unknown bucket_factory '{factory_name}'; "
            f"expected one of {sorted(BUCKET_FACTORIES)}."
        )

    bus = EventBus(Registry(bucket_factory=factory))
    if section.get("log_listener_faults", False):
        bus.set_exception_handler(LoggingExceptionHandler())
    return bus
