"""Unit tests for FluxStream broadcast delivery and subscriptions."""

import asyncio
import logging

import pytest

from fluxstate import Flux


@pytest.mark.unit
def test_listener_receives_values_emitted_after_subscribing():
    """Values set before listen() are not replayed."""
    flux = Flux(0)
    flux.value = 1
    received = []

    flux.stream.listen(received.append)
    flux.value = 2
    flux.update(lambda v: v + 1)

    assert received == [2, 3]


@pytest.mark.unit
def test_multiple_listeners_each_receive_every_value():
    """Independent listeners all see the same sequence."""
    flux = Flux("a")
    first, second = [], []
    flux.subscribe(first.append)
    flux.subscribe(second.append)

    flux.value = "b"
    flux.value = "c"

    assert first == ["b", "c"]
    assert second == ["b", "c"]


@pytest.mark.unit
def test_cancelled_subscription_stops_delivery():
    """cancel() detaches only that listener."""
    flux = Flux(0)
    kept, dropped = [], []
    flux.subscribe(kept.append)
    subscription = flux.subscribe(dropped.append)

    flux.value = 1
    subscription.cancel()
    subscription.cancel()
    flux.value = 2

    assert kept == [1, 2]
    assert dropped == [1]
    assert not subscription.active
    assert flux.stream.listener_count == 1


@pytest.mark.unit
def test_dispose_closes_stream_and_calls_on_done_once():
    """Listeners get on_done on dispose and no further values."""
    flux = Flux(0)
    received, done = [], []
    flux.subscribe(received.append, on_done=lambda: done.append(True))

    flux.value = 1
    flux.dispose()
    flux.dispose()

    assert received == [1]
    assert done == [True]
    assert flux.stream.is_closed


@pytest.mark.unit
def test_listen_after_dispose_returns_closed_subscription():
    """Subscribing to a disposed Flux yields an already finished subscription."""
    flux = Flux(0)
    flux.dispose()
    done = []

    subscription = flux.stream.listen(lambda v: None, on_done=lambda: done.append(True))

    assert not subscription.active
    assert done == [True]


@pytest.mark.unit
def test_failing_listener_does_not_block_others(caplog):
    """A listener error is logged and delivery continues."""
    flux = Flux(0)
    received = []

    def broken(value):
        raise RuntimeError("listener failed")

    flux.subscribe(broken)
    flux.subscribe(received.append)

    with caplog.at_level(logging.ERROR, logger="fluxstate.stream"):
        flux.value = 1

    assert received == [1]
    assert flux.value == 1
    assert "failed" in caplog.text


@pytest.mark.unit
def test_reentrant_emission_is_delivered_in_order():
    """A listener that writes back queues the new value behind the current one."""
    flux = Flux(0)
    first, second = [], []

    def bump_until_three(value):
        first.append(value)
        if value < 3:
            flux.value = value + 1

    flux.subscribe(bump_until_three)
    flux.subscribe(second.append)

    flux.value = 1

    assert first == [1, 2, 3]
    assert second == [1, 2, 3]
    assert flux.history == (0, 1, 2, 3)


@pytest.mark.unit
def test_listener_added_during_delivery_waits_for_next_value():
    """Subscriptions made inside a listener start with the next emission."""
    flux = Flux(0)
    late = []

    def add_late_listener(value):
        if value == 1:
            flux.subscribe(late.append)

    flux.subscribe(add_late_listener)
    flux.value = 1
    flux.value = 2

    assert late == [2]


@pytest.mark.unit
def test_dispose_inside_listener_finishes_pending_delivery():
    """Disposing mid-delivery still lets every listener see the current value."""
    flux = Flux(0)
    received, done = [], []

    flux.subscribe(lambda v: flux.dispose())
    flux.subscribe(received.append, on_done=lambda: done.append(True))

    flux.value = 1

    assert received == [1]
    assert done == [True]
    assert flux.disposed


@pytest.mark.unit
def test_async_iteration_yields_values_until_close():
    """`async for` over a stream ends when the Flux is disposed."""
    flux = Flux(0)

    async def main():
        collected = []

        async def consume():
            async for value in flux.stream:
                collected.append(value)

        task = asyncio.create_task(consume())
        await asyncio.sleep(0)
        flux.value = 1
        flux.value = 2
        flux.dispose()
        await asyncio.wait_for(task, timeout=1)
        return collected

    assert asyncio.run(main()) == [1, 2]


@pytest.mark.unit
def test_async_iteration_of_closed_stream_ends_immediately():
    flux = Flux(0)
    flux.dispose()

    async def main():
        return [value async for value in flux.stream]

    assert asyncio.run(main()) == []
