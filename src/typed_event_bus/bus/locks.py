"""Reader/writer lock guarding the listener registry.

Readers (dispatch) share the lock, writers (registration changes) hold it
exclusively.  A waiting writer blocks new readers from other threads.  The
read side is re-entrant per thread so listeners may post nested events, and
the write side is re-entrant for its owner.  Upgrading from read to write on
one thread raises instead of deadlocking.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class ReadWriteLock:
    """A writer-preferring, re-entrant reader/writer lock.

    Example
    -------
    >>> lock = ReadWriteLock()
    >>> with lock.read():
    ...     pass
    >>> with lock.write():
    ...     pass
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer: int | None = None
        self._write_depth = 0
        self._waiting_writers = 0
        self._local = threading.local()

    # -- read side ---------------------------------------------------------

    def _read_depth(self) -> int:
        return getattr(self._local, "depth", 0)

    def acquire_read(self) -> None:
        """Acquire the shared lock, blocking while a writer is active or waiting."""
        me = threading.get_ident()
        depth = self._read_depth()
        with self._cond:
            if depth == 0 and self._writer != me:
                while self._writer is not None or self._waiting_writers:
                    self._cond.wait()
            self._readers += 1
        self._local.depth = depth + 1

    def release_read(self) -> None:
        depth = self._read_depth()
        if depth == 0:
            raise RuntimeError("Cannot release a read lock that is not held.")
        self._local.depth = depth - 1
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    # -- write side --------------------------------------------------------

    def acquire_write(self) -> None:
        """Acquire the exclusive lock.

        Raises
        ------
        RuntimeError
            If the calling thread holds the read lock without holding the
            write lock.
        """
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
                return
            if self._read_depth():
                raise RuntimeError(
                    "Cannot acquire the write lock while holding the read lock."
                )
            self._waiting_writers += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = me
            self._write_depth = 1

    def release_write(self) -> None:
        with self._cond:
            if self._writer != threading.get_ident():
                raise RuntimeError("Cannot release a write lock owned by another thread.")
            self._write_depth -= 1
            if self._write_depth == 0:
                self._writer = None
                self._cond.notify_all()

    # -- context managers --------------------------------------------------

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    # -- introspection -----------------------------------------------------

    @property
    def write_locked(self) -> bool:
        """Return whether some thread currently holds the write lock."""
        with self._cond:
            return self._writer is not None

    @property
    def reader_count(self) -> int:
        """Return the number of read holds currently outstanding."""
        with self._cond:
            return self._readers
