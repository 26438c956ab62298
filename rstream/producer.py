"""
rstream Producers - Asynchronous Producer Detection and Adapters
================================================================

A stream can be written with an asynchronous producer instead of a value: a
deferred computation that will later resolve with a value or fail with a
reason. This module decides what counts as a producer and adapts the Python
flavours of "deferred computation" to a single two-branch shape.

Producer shape:
    Any object with a callable ``then`` (registers a success continuation) and
    a callable ``catch`` (registers a failure continuation). This is the
    ``Thenable`` protocol below, checked structurally.

Recognised producers:
- Thenables, including the ``Deferred`` promise defined here
- Awaitables (coroutines, ``asyncio.Future``/``Task``), wrapped in
  ``AwaitableProducer`` and driven by the running event loop

Explicit tagging:
    Duck typing can misfire on plain data that happens to carry ``then`` and
    ``catch`` attributes. ``Value(x)`` forces ``x`` to be stored as-is, and
    ``Producer(x)`` insists that ``x`` be treated as a producer, failing
    loudly if it cannot be.

Every producer must invoke at most one continuation, at most once, and never
synchronously from inside the registration call.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Protocol, runtime_checkable

from .types import UNSET, ErrorCallback, T

# ============================================================================
# PRODUCER PROTOCOL
# ============================================================================


@runtime_checkable
class Thenable(Protocol):
    """Structural type of an asynchronous producer."""

    def then(self, on_success: Callable[[Any], Any]) -> Any: ...

    def catch(self, on_failure: ErrorCallback) -> Any: ...


def is_thenable(thing: Any) -> bool:
    """True if ``thing`` exposes callable ``then`` and ``catch`` operations.

    Classes are never thenables even when their instances are.
    """
    if thing is None or isinstance(thing, type):
        return False
    return callable(getattr(thing, "then", None)) and callable(
        getattr(thing, "catch", None)
    )


# ============================================================================
# EXPLICIT TAGS
# ============================================================================


@dataclass(frozen=True)
class Value(Generic[T]):
    """Marks ``value`` as plain data, never a producer."""

    value: T


@dataclass(frozen=True)
class Producer:
    """Marks ``source`` as an asynchronous producer."""

    source: Any

    def __post_init__(self):
        if not (is_thenable(self.source) or inspect.isawaitable(self.source)):
            raise TypeError(
                f"{type(self.source).__name__!r} object is neither a thenable nor awaitable"
            )


def unwrap_value(thing: Any) -> Any:
    """Strip a ``Value`` tag if present."""
    if isinstance(thing, Value):
        return thing.value
    return thing


def as_producer(thing: Any) -> Optional[Thenable]:
    """
    Return ``thing`` adapted to the producer shape, or None for plain values.

    Tagged values are honoured first. Untagged thenables are used directly and
    untagged awaitables are wrapped in ``AwaitableProducer``.
    """
    if isinstance(thing, Value):
        return None
    if isinstance(thing, Producer):
        thing = thing.source
    if is_thenable(thing):
        return thing
    if inspect.isawaitable(thing):
        return AwaitableProducer(thing)
    return None


def is_producer(thing: Any) -> bool:
    if isinstance(thing, Value):
        return False
    return (
        isinstance(thing, Producer) or is_thenable(thing) or inspect.isawaitable(thing)
    )


# ============================================================================
# AWAITABLE ADAPTER
# ============================================================================


class AwaitableProducer:
    """
    Thenable view over a coroutine, task or future.

    The awaitable is scheduled on first registration. Coroutines need a
    running event loop at that point; futures carry their own loop. Done
    callbacks are always dispatched by the loop, never inline.

    A cancelled future counts as a failure whose reason is the
    ``CancelledError`` it would raise.

    With no loop to schedule on, the coroutine is closed unrun and the
    ``RuntimeError`` from asyncio becomes the failure. It is handed to
    ``catch`` callbacks directly, since there is no loop to defer to.
    """

    def __init__(
        self, awaitable: Any, loop: Optional[asyncio.AbstractEventLoop] = None
    ) -> None:
        self._awaitable = awaitable
        self._loop = loop
        self._future: Optional[asyncio.Future] = None
        self._failure: Optional[RuntimeError] = None

    @property
    def future(self) -> Optional[asyncio.Future]:
        if self._future is None and self._failure is None:
            if asyncio.isfuture(self._awaitable):
                self._future = self._awaitable
            else:
                try:
                    loop = self._loop or asyncio.get_running_loop()
                except RuntimeError as error:
                    self._fail(error)
                    return None
                self._future = asyncio.ensure_future(self._awaitable, loop=loop)
        return self._future

    def then(self, on_success: Callable[[Any], Any]) -> "AwaitableProducer":
        def done(future: asyncio.Future) -> None:
            if not future.cancelled() and future.exception() is None:
                on_success(future.result())

        future = self.future
        if future is not None:
            future.add_done_callback(done)
        return self

    def catch(self, on_failure: ErrorCallback) -> "AwaitableProducer":
        def done(future: asyncio.Future) -> None:
            if future.cancelled():
                on_failure(asyncio.CancelledError())
                return
            error = future.exception()
            if error is not None:
                on_failure(error)

        future = self.future
        if future is None:
            on_failure(self._failure)
        else:
            future.add_done_callback(done)
        return self

    def _fail(self, error: RuntimeError) -> None:
        logging.debug(f"Cannot schedule {self!r}: {error}")
        self._failure = error
        if inspect.iscoroutine(self._awaitable):
            self._awaitable.close()

    def __repr__(self) -> str:
        return f"AwaitableProducer({self._awaitable!r})"


# ============================================================================
# DEFERRED
# ============================================================================


class Deferred(Generic[T]):
    """
    A minimal promise: settled once by ``resolve`` or ``reject``, observed
    through ``then`` and ``catch``.

    Continuations run from the event loop (``call_soon``), so registering on an
    already-settled Deferred still defers the call. The loop is the one passed
    in, or the running loop at dispatch time.

    Example:
        ```python
        async def main():
            d = Deferred()
            d.then(print)
            d.resolve("ok")
            await asyncio.sleep(0)  # prints "ok"
        ```
    """

    _PENDING = "pending"
    _RESOLVED = "resolved"
    _REJECTED = "rejected"

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._state = Deferred._PENDING
        self._outcome: Any = UNSET
        self._on_success: List[Callable[[Any], Any]] = []
        self._on_failure: List[ErrorCallback] = []

    @classmethod
    def resolved(cls, value: T, loop=None) -> "Deferred[T]":
        deferred = cls(loop)
        deferred.resolve(value)
        return deferred

    @classmethod
    def rejected(cls, reason: Any, loop=None) -> "Deferred[Any]":
        deferred = cls(loop)
        deferred.reject(reason)
        return deferred

    @property
    def settled(self) -> bool:
        return self._state != Deferred._PENDING

    def resolve(self, value: T) -> None:
        self._settle(Deferred._RESOLVED, value, self._on_success)

    def reject(self, reason: Any) -> None:
        self._settle(Deferred._REJECTED, reason, self._on_failure)

    def then(self, on_success: Callable[[T], Any]) -> "Deferred[T]":
        if self._state == Deferred._RESOLVED:
            self._dispatch_loop().call_soon(on_success, self._outcome)
        elif self._state == Deferred._PENDING:
            self._on_success.append(on_success)
        return self

    def catch(self, on_failure: ErrorCallback) -> "Deferred[T]":
        if self._state == Deferred._REJECTED:
            self._dispatch_loop().call_soon(on_failure, self._outcome)
        elif self._state == Deferred._PENDING:
            self._on_failure.append(on_failure)
        return self

    def _settle(
        self, state: str, outcome: Any, callbacks: List[Callable[[Any], Any]]
    ) -> None:
        if self.settled:
            logging.debug(f"Ignoring {state} of already {self._state} {self!r}")
            return

        # Looked up before any state changes so a missing loop leaves us pending.
        loop = self._dispatch_loop() if callbacks else None

        self._state = state
        self._outcome = outcome
        for callback in callbacks:
            loop.call_soon(callback, outcome)
        self._on_success.clear()
        self._on_failure.clear()

    def _dispatch_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def __repr__(self) -> str:
        if self.settled:
            return f"Deferred({self._state}, {self._outcome!r})"
        return "Deferred(pending)"
