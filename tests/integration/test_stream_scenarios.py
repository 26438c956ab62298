"""
End-to-end scenarios for streams driven by direct writes and producers.
"""

import asyncio

import pytest

from rstream import Deferred, Stream, Value


@pytest.mark.integration
class TestDirectWrites:
    """Streams fed only by synchronous writes."""

    def test_subscriber_sees_single_write(self):
        s = Stream()
        received = []
        s.map(received.append)

        s(10)

        assert received == [10]
        assert s() == 10

    def test_subscriber_sees_existing_value_without_write(self):
        s = Stream(123)
        captured = []

        s.map(captured.append)

        assert captured == [123]

    def test_streams_wired_together_by_subscribers(self):
        """One stream's subscriber can feed another stream"""
        celsius = Stream(0)
        fahrenheit = Stream()
        celsius.map(lambda c: fahrenheit(c * 9 / 5 + 32))

        celsius(100)

        assert fahrenheit() == 212
        assert celsius() == 100


@pytest.mark.integration
class TestProducerWrites:
    """Streams fed by Deferreds and coroutines on a running loop."""

    def test_waits_until_producer_resolves(self, flush):
        received = []

        async def main():
            s = Stream()
            s.map(received.append)
            d = Deferred()

            assert s(d) is None
            asyncio.get_running_loop().call_later(0.01, d.resolve, "ok")
            await asyncio.sleep(0.05)
            await flush()

            assert s() == "ok"

        asyncio.run(main())

        assert received == ["ok"]

    def test_waits_until_producer_resolves_when_initialized(self, flush):
        received = []

        async def main():
            d = Deferred()
            s = Stream(d)
            s.map(received.append)
            assert received == []

            d.resolve("promise test 2")
            await flush()

        asyncio.run(main())

        assert received == ["promise test 2"]

    def test_rejection_reaches_error_subscribers_only(self, flush):
        changes = []
        errors = []

        async def main():
            s = Stream("kept")
            s.map(changes.append)
            s.catch_error(errors.append)
            d = Deferred()
            s(d)

            d.reject("boom")
            await flush()

            assert s() == "kept"

        asyncio.run(main())

        assert changes == ["kept"]
        assert errors == ["boom"]

    def test_coroutine_producer(self, flush):
        received = []

        async def fetch():
            await asyncio.sleep(0)
            return {"status": "ok"}

        async def main():
            s = Stream(key="response")
            s.map(received.append)
            s(fetch())
            await flush()
            return s()

        assert asyncio.run(main()) == {"status": "ok"}
        assert received == [{"status": "ok"}]

    def test_failing_coroutine_producer(self, flush):
        errors = []

        async def fetch():
            raise ConnectionError("unreachable")

        async def main():
            s = Stream()
            s.catch_error(errors.append)
            s(fetch())
            await flush()
            assert s.has_value is False

        asyncio.run(main())

        assert [str(e) for e in errors] == ["unreachable"]

    def test_producer_resolving_to_coroutine_is_chained(self, flush):
        received = []

        async def second():
            return "second"

        async def main():
            s = Stream()
            s.map(received.append)
            d = Deferred()
            s(d)
            d.resolve(second())
            await flush()

        asyncio.run(main())

        assert received == ["second"]

    def test_value_tag_keeps_deferred_as_data(self):
        d = Deferred()
        s = Stream(Value(d))

        assert s() is d

    def test_later_resolutions_overwrite_earlier_ones(self, flush):
        """Concurrent producers are applied in the order they settle"""
        received = []

        async def main():
            s = Stream()
            s.map(received.append)
            slow, fast = Deferred(), Deferred()
            s(slow)
            s(fast)

            fast.resolve("fast")
            await flush()
            slow.resolve("slow")
            await flush()

            assert s() == "slow"

        asyncio.run(main())

        assert received == ["fast", "slow"]

    def test_direct_write_while_producer_pending(self, flush):
        """A direct write does not cancel an attached producer"""
        received = []

        async def main():
            s = Stream()
            s.map(received.append)
            d = Deferred()
            s(d)
            s("direct")
            d.resolve("deferred")
            await flush()

        asyncio.run(main())

        assert received == ["direct", "deferred"]


@pytest.mark.integration
def test_chainable_with_producers(flush):
    """Subscriptions chained and removed before a rejection see nothing"""
    counter = 0
    resolved = []
    rejected = []

    def f1(value):
        assert counter == 0
        resolved.append(value)

    def f2(error):
        assert counter == 1
        rejected.append(error)

    async def main():
        nonlocal counter
        d = Deferred()
        s = Stream(d)

        s.map(f1).catch_error(f2).off(f1).off_error(f2)
        counter += 1
        s.map(f1).catch_error(f2)

        if counter == 0:
            d.resolve("resolved")
        else:
            d.reject("rejected")
        await flush()

    asyncio.run(main())

    assert resolved == []
    assert rejected == ["rejected"]
