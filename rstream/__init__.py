"""
rstream - Reactive Streams
==========================

A minimal reactive value cell: a callable that holds a value, notifies
subscribers when it is written, and can be fed by asynchronous producers.
"""

from .errors import ProducerRejection
from .producer import (
    AwaitableProducer,
    Deferred,
    Producer,
    Thenable,
    Value,
    as_producer,
    is_producer,
    is_thenable,
)
from .stream import Stream, stream
from .types import UNSET

__all__ = [
    # Core
    "Stream",
    "stream",
    # Producers
    "Thenable",
    "Deferred",
    "AwaitableProducer",
    "Producer",
    "Value",
    "as_producer",
    "is_producer",
    "is_thenable",
    # Errors
    "ProducerRejection",
    # Sentinel
    "UNSET",
]
