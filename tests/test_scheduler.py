import threading

import pytest

from quickzip import CooperativeScheduler, NotFoundError, PollableFuture, WorkerPool


class WaitUntil:
    def __init__(self):
        self.ready = False

    @property
    def keep_waiting(self):
        return not self.ready


def test_future_value_is_sent_back():
    def job(pool):
        value = yield pool.submit(lambda: b"packed")
        return value + b"!"

    with WorkerPool() as pool:
        scheduler = CooperativeScheduler(poll_interval=0.001)
        task = scheduler.start(job(pool))
        scheduler.run(max_ticks=10000)
    assert task.done
    assert task.result() == b"packed!"


def test_future_failure_is_raised_at_yield():
    def job():
        future = PollableFuture("load")
        future.set_exception(NotFoundError("missing"))
        try:
            yield future
        except NotFoundError:
            return "handled"

    scheduler = CooperativeScheduler()
    task = scheduler.start(job())
    scheduler.run(max_ticks=10)
    assert task.result() == "handled"


def test_uncaught_failure_ends_task():
    def job():
        yield None
        raise ValueError("bad")

    scheduler = CooperativeScheduler(poll_interval=0)
    task = scheduler.start(job())
    scheduler.run(max_ticks=10)
    assert isinstance(task.exception(), ValueError)
    with pytest.raises(ValueError):
        task.result()


def test_tick_does_not_block_on_pending_future():
    gate = threading.Event()

    def job(pool):
        yield pool.submit(gate.wait, 10)
        return "resumed"

    with WorkerPool() as pool:
        scheduler = CooperativeScheduler(poll_interval=0.001)
        task = scheduler.start(job(pool))
        assert scheduler.tick() == 1
        assert scheduler.tick() == 1
        assert not task.done

        gate.set()
        scheduler.run(max_ticks=10000)
    assert task.result() == "resumed"


def test_none_waits_one_tick_and_custom_instruction():
    order = []
    gate = WaitUntil()

    def job():
        order.append("start")
        yield None
        order.append("after none")
        yield gate
        order.append("after wait")

    scheduler = CooperativeScheduler(poll_interval=0)
    scheduler.start(job())
    assert order == ["start"]
    scheduler.tick()
    assert order == ["start", "after none"]
    assert scheduler.tick() == 1
    assert scheduler.tick() == 1
    assert order == ["start", "after none"]

    gate.ready = True
    assert scheduler.tick() == 0
    assert order == ["start", "after none", "after wait"]


def test_yielding_unknown_object_fails_task():
    def job():
        yield 42

    scheduler = CooperativeScheduler()
    task = scheduler.start(job())
    assert task.done
    assert isinstance(task.exception(), TypeError)
    assert scheduler.tasks == []


def test_run_stops_at_max_ticks():
    def forever():
        while True:
            yield None

    scheduler = CooperativeScheduler(poll_interval=0)
    task = scheduler.start(forever())
    assert scheduler.run(max_ticks=5) == 5
    assert not task.done
