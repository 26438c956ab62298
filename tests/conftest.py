"""
Shared pytest fixtures and configuration for rstream tests.
"""

import asyncio

import pytest


class ManualProducer:
    """Thenable whose outcome the test delivers by hand."""

    def __init__(self):
        self.on_success = []
        self.on_failure = []

    def then(self, callback):
        self.on_success.append(callback)
        return self

    def catch(self, callback):
        self.on_failure.append(callback)
        return self

    def resolve(self, value):
        for callback in self.on_success:
            callback(value)

    def reject(self, reason):
        for callback in self.on_failure:
            callback(reason)


async def _flush(iterations: int = 10) -> None:
    for _ in range(iterations):
        await asyncio.sleep(0)


@pytest.fixture
def manual_producer():
    """Provide a fresh hand-driven producer."""
    return ManualProducer()


@pytest.fixture
def flush():
    """Provide a coroutine function that lets queued loop callbacks run."""
    return _flush


@pytest.fixture
def make_producer():
    """Provide a factory for additional hand-driven producers."""
    return ManualProducer
