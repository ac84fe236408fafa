import asyncio

from interview_coach.interview.testing import FakeScheduler
from interview_coach.utils.scheduling import AsyncioScheduler


def test_fake_scheduler_fires_in_due_order():
    scheduler = FakeScheduler()
    fired = []
    scheduler.call_later(2.0, lambda: fired.append(("b", scheduler.time())))
    scheduler.call_later(1.0, lambda: fired.append(("a", scheduler.time())))

    scheduler.advance(1.5)
    assert fired == [("a", 1.0)]

    scheduler.advance(1.0)
    assert fired == [("a", 1.0), ("b", 2.0)]
    assert scheduler.time() == 2.5


def test_cancelled_timer_never_fires():
    scheduler = FakeScheduler()
    fired = []
    handle = scheduler.call_later(1.0, lambda: fired.append(1))
    handle.cancel()
    handle.cancel()

    scheduler.advance(5)
    assert fired == []
    assert scheduler.pending == 0


def test_call_every_repeats_until_cancelled():
    scheduler = FakeScheduler()
    ticks = []
    handle = scheduler.call_every(1.0, lambda: ticks.append(scheduler.time()))

    scheduler.advance(3.5)
    assert ticks == [1.0, 2.0, 3.0]

    handle.cancel()
    assert handle.cancelled
    scheduler.advance(3)
    assert ticks == [1.0, 2.0, 3.0]
    assert scheduler.pending == 0


def test_call_every_can_cancel_itself_from_callback():
    scheduler = FakeScheduler()
    ticks = []

    def tick():
        ticks.append(scheduler.time())
        if len(ticks) == 2:
            handle.cancel()

    handle = scheduler.call_every(0.5, tick)
    scheduler.advance(5)
    assert ticks == [0.5, 1.0]


def test_timer_scheduled_from_callback_fires_in_same_advance():
    scheduler = FakeScheduler()
    fired = []
    scheduler.call_later(1.0, lambda: scheduler.call_later(0.5, lambda: fired.append(scheduler.time())))

    scheduler.advance(2)
    assert fired == [1.5]


def test_late_timer_fires_without_rewinding_the_clock():
    scheduler = FakeScheduler()
    fired = []

    def block():
        scheduler.now += 3.0

    scheduler.call_later(1.0, block)
    scheduler.call_later(2.0, lambda: fired.append(scheduler.time()))

    scheduler.advance(2.5)
    assert fired == [4.0]
    assert scheduler.time() == 4.0


def test_asyncio_scheduler_runs_callbacks_on_loop():
    loop = asyncio.new_event_loop()
    try:
        scheduler = AsyncioScheduler(loop)
        fired = []

        def failing():
            raise RuntimeError("boom")

        scheduler.call_later(0, failing)
        scheduler.call_later(0.01, lambda: fired.append("ok"))
        scheduler.call_later(0.02, loop.stop)
        loop.run_forever()

        assert fired == ["ok"]
    finally:
        loop.close()
