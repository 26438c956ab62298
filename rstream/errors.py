"""
rstream Errors
==============

The single failure kind a stream models: the rejection of an asynchronous
producer. Rejections never escape a write call; they are handed to the
stream's error subscribers unchanged.
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .stream import Stream


class ProducerRejection(Exception):
    """An asynchronous producer failed instead of resolving.

    Error subscribers receive the bare ``reason``; this wrapper names the
    stream in log records when a rejection is dropped.
    """

    def __init__(self, reason: Any, stream: Optional["Stream"] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.stream = stream

    def __str__(self) -> str:
        where = f" on {self.stream!r}" if self.stream is not None else ""
        return f"producer rejected{where}: {self.reason!r}"
