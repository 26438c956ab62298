import asyncio

from rstream import Deferred, Stream, Value

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Reading and writing a stream")
print("-" * 100)
print()

# A stream is a callable cell: call it with no arguments to read, with one to write.
current_name = Stream("Alice")
print(f"Current name: {current_name()}")

log_on_change = lambda name: print(f"Name changed to: {name}")

# Subscribers are called right away with the current value, then on every write.
current_name.map(log_on_change)
current_name("Smith")

current_name.off(log_on_change)
current_name("Bob")  # This will not call log_on_change

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Feeding a stream from asynchronous producers")
print("-" * 100)
print()


async def fetch_greeting():
    await asyncio.sleep(0.01)
    return "hello from a coroutine"


async def fail_to_fetch():
    await asyncio.sleep(0.01)
    raise ConnectionError("service unavailable")


async def main():
    greeting = Stream(key="greeting")
    greeting.map(lambda g: print(f"Greeting: {g}")).catch_error(
        lambda e: print(f"Producer failed: {e!r}")
    )

    # Writing a coroutine attaches it; the call returns the current value immediately.
    print(f"Returned immediately: {greeting(fetch_greeting())!r}")
    await asyncio.sleep(0.05)

    # A rejected producer leaves the value alone and reaches the error subscribers.
    greeting(fail_to_fetch())
    await asyncio.sleep(0.05)
    print(f"Still holding: {greeting()!r}")

    # Deferreds are settled by hand.
    pending = Deferred()
    greeting(pending)
    pending.resolve("hello from a Deferred")
    await asyncio.sleep(0)

    # Value() stores a producer as plain data instead of attaching it.
    holder = Stream(Value(pending))
    print(f"Stored as data: {holder()!r}")


asyncio.run(main())
