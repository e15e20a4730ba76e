"""Event base classes.

An event is any instance of a subclass of :class:`Event`.  The bus routes it
by its exact runtime type, so subclasses act as distinct event kinds.  Kinds
declared ``cancellable`` may be cancelled by a listener during dispatch,
which stops delivery to listeners that do not ignore cancellation.

Example
-------
>>> class PlayerJoined(Event, cancellable=True):
...     def __init__(self, name: str) -> None:
...         self.name = name
>>> event = PlayerJoined("alice")
>>> event.cancel()
>>> event.is_cancelled()
True
"""

from __future__ import annotations

from typing import Any, ClassVar

from typed_event_bus.domain.errors import InvalidStateError


class Event:
    """Base class for all events published through an :class:`EventBus`.

    Subclasses may be plain classes or (frozen) dataclasses.  The
    cancellation flag lives outside the subclass fields and never takes part
    in equality or ``repr``.

    Attributes
    ----------
    cancellable:
        Whether this kind of event supports cancellation.  Fixed per class,
        either as a class attribute or with the ``cancellable`` class keyword.
    """

    cancellable: ClassVar[bool] = False

    _cancelled: bool = False

    def __init_subclass__(cls, cancellable: bool | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cancellable is not None:
            cls.cancellable = bool(cancellable)

    # -- cancellation ------------------------------------------------------

    def is_cancellable(self) -> bool:
        """Return whether this event supports cancellation."""
        return type(self).cancellable

    def is_cancelled(self) -> bool:
        """Return whether this event has been cancelled."""
        return self._cancelled

    def set_cancelled(self, cancelled: bool) -> None:
        """Change the cancellation state of the event.

        The requested value is passed through :meth:`on_cancellation` first,
        so a subclass may veto or transform it.

        Raises
        ------
        InvalidStateError
            If the event kind is not cancellable.  The current state is left
            untouched.
        """
        if not self.is_cancellable():
            raise InvalidStateError(
                f"Event cancellation is not supported for the event "
                f"'{type(self).__name__}'."
            )
        # object.__setattr__ keeps frozen dataclass events cancellable.
        object.__setattr__(self, "_cancelled", bool(self.on_cancellation(cancelled)))

    def cancel(self) -> None:
        """Shorthand for ``set_cancelled(True)``."""
        self.set_cancelled(True)

    def on_cancellation(self, cancelled: bool) -> bool:
        """Return the cancellation value to store for a request of *cancelled*.

        The default accepts the request as is.
        """
        return cancelled

    @property
    def cancelled(self) -> bool:
        return self.is_cancelled()

    @cancelled.setter
    def cancelled(self, value: bool) -> None:
        self.set_cancelled(value)


class CancellableEvent(Event, cancellable=True):
    """Convenience base for event kinds that support cancellation."""
