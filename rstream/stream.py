"""
rstream Stream - Reactive Value Cell
====================================

This module provides ``Stream``, a callable cell that holds a current value
and notifies subscribers synchronously whenever the value is written.

Calling convention:
- ``s()`` reads the current value (None while unset)
- ``s(x)`` writes ``x`` and returns it
- ``s(producer)`` attaches an asynchronous producer and returns the current
  value straight away; the resolved value is written later

``read()`` and ``write()`` are the named equivalents.

Subscriptions:
- ``map(f)`` subscribes to changes, calling ``f`` at once with the current
  value if there is one
- ``catch_error(g)`` subscribes to producer rejections, with no replay
- ``off(f)`` / ``off_error(g)`` remove the first matching subscriber

All subscription methods return the stream itself so calls can be chained:

    ```python
    s = Stream(1)
    s.map(print).catch_error(log_failure)  # prints 1
    s(2)                                   # prints 2
    ```

Emission iterates over a snapshot of the subscriber list: a subscriber added
while an emission is running does not see that emission, and one removed
during it still does.
"""

import logging
from typing import Any, Generic, List, Optional, Tuple

from .errors import ProducerRejection
from .producer import Thenable, as_producer, unwrap_value
from .types import UNSET, ChangeCallback, ErrorCallback, T


class Stream(Generic[T]):
    """
    A reactive value cell fed by direct writes and asynchronous producers.

    States are Unset and Set. A stream starts Set only when constructed with a
    plain value (None included); the first write or producer resolution moves
    it to Set, and it never goes back.

    Rejections from producers leave the value untouched and are delivered to
    error subscribers only. With no error subscribers they are dropped.
    """

    def __init__(self, initial: Any = UNSET, *, key: Optional[str] = None) -> None:
        self._key = key if key is not None else "<unnamed>"
        self._value: Any = UNSET
        self._has_value = False
        self._callbacks: List[ChangeCallback] = []
        self._error_callbacks: List[ErrorCallback] = []

        if initial is UNSET:
            return

        producer = as_producer(initial)
        if producer is not None:
            self._attach(producer)
        else:
            self._value = unwrap_value(initial)
            self._has_value = True

    @property
    def key(self) -> str:
        return self._key

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def value(self) -> Optional[T]:
        return self.read()

    @property
    def callbacks(self) -> Tuple[ChangeCallback, ...]:
        """Snapshot of the change subscribers, in call order."""
        return tuple(self._callbacks)

    @property
    def error_callbacks(self) -> Tuple[ErrorCallback, ...]:
        """Snapshot of the error subscribers, in call order."""
        return tuple(self._error_callbacks)

    # ------------------------------------------------------------------
    # read / write
    # ------------------------------------------------------------------

    def __call__(self, *args: Any) -> Optional[T]:
        if not args:
            return self.read()
        if len(args) > 1:
            raise TypeError(f"Stream expected at most 1 argument, got {len(args)}")
        return self.write(args[0])

    def read(self, default: Any = None) -> Optional[T]:
        """Return the current value, or ``default`` if nothing was written yet."""
        if not self._has_value:
            return default
        return self._value

    def write(self, value: Any) -> Optional[T]:
        """
        Write a plain value or attach an asynchronous producer.

        A plain value is stored and emitted to every change subscriber in
        subscription order before this returns; the value is returned.

        A producer is attached and the current value is returned without
        waiting. When the producer resolves, its result goes through ``write``
        again, so a producer resolving to another producer is attached in turn.
        """
        producer = as_producer(value)
        if producer is not None:
            self._attach(producer)
            return self.read()

        value = unwrap_value(value)
        self._value = value
        self._has_value = True
        self._emit(value)
        return value

    # ------------------------------------------------------------------
    # subscriptions
    # ------------------------------------------------------------------

    def map(self, callback: ChangeCallback) -> "Stream[T]":
        """Subscribe to changes; replays the current value once if set."""
        self._callbacks.append(callback)
        if self.has_value:
            callback(self._value)
        return self

    def off(self, callback: ChangeCallback) -> "Stream[T]":
        """Remove the first registration of ``callback``. No-op if absent."""
        _remove_first(self._callbacks, callback)
        return self

    def catch_error(self, callback: ErrorCallback) -> "Stream[T]":
        """Subscribe to producer rejections."""
        self._error_callbacks.append(callback)
        return self

    def off_error(self, callback: ErrorCallback) -> "Stream[T]":
        _remove_first(self._error_callbacks, callback)
        return self

    on_change = map
    off_change = off
    on_error = catch_error
    catch = catch_error
    off_rejection = off_error

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    def _emit(self, value: Any) -> None:
        for callback in tuple(self._callbacks):
            callback(value)

    def _attach(self, producer: Thenable) -> None:
        logging.debug(f"{self!r} attached producer {producer!r}")
        producer.then(self._on_resolved)
        producer.catch(self._on_rejected)

    def _on_resolved(self, value: Any) -> None:
        logging.debug(f"{self!r} producer resolved with {value!r}")
        try:
            self.write(value)
        except Exception as error:
            # No caller to raise into: report to the error subscribers.
            logging.error(
                f"Subscriber of {self._key!r} failed on resolved value: {error}"
            )
            self._on_rejected(error)

    def _on_rejected(self, reason: Any) -> None:
        callbacks = tuple(self._error_callbacks)
        if not callbacks:
            rejection = ProducerRejection(reason, self)
            logging.debug(f"Dropped {rejection}: no error subscribers")
            return
        for callback in callbacks:
            callback(reason)

    def __repr__(self) -> str:
        return f"Stream({self._key!r}, {self._value!r})"


def _same_callback(registered: Any, callback: Any) -> bool:
    if registered is callback:
        return True
    # Bound methods are rebuilt on every attribute access.
    self_ = getattr(registered, "__self__", None)
    func = getattr(registered, "__func__", None)
    return (
        self_ is not None
        and func is not None
        and self_ is getattr(callback, "__self__", None)
        and func is getattr(callback, "__func__", None)
    )


def _remove_first(callbacks: List[Any], callback: Any) -> None:
    for index, registered in enumerate(callbacks):
        if _same_callback(registered, callback):
            del callbacks[index]
            return


def stream(initial: Any = UNSET, *, key: Optional[str] = None) -> Stream[Any]:
    """Create a ``Stream``; ``stream()`` is unset and ``stream(x)`` starts at ``x``."""
    return Stream(initial, key=key)
