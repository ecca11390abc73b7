import pytest

from quickride.clock import TaskScheduler


def test_call_later_fires_once_at_its_time():
    scheduler = TaskScheduler(start=10.0)
    fired = []
    scheduler.call_later(1.5, lambda: fired.append(scheduler.now))

    assert scheduler.advance(1.4) == 0
    assert fired == []

    assert scheduler.advance(0.1) == 1
    assert fired == [pytest.approx(11.5)]

    scheduler.advance(100)
    assert len(fired) == 1


def test_tasks_run_in_fire_time_order_then_scheduling_order():
    scheduler = TaskScheduler()
    order = []
    scheduler.call_later(2.0, lambda: order.append("late"))
    scheduler.call_later(1.0, lambda: order.append("first"))
    scheduler.call_later(1.0, lambda: order.append("second"))

    scheduler.advance(5)

    assert order == ["first", "second", "late"]


def test_call_every_repeats_without_overlap():
    scheduler = TaskScheduler()
    times = []
    scheduler.call_every(4.0, lambda: times.append(scheduler.now))

    scheduler.advance(12)

    assert times == [4.0, 8.0, 12.0]
    assert scheduler.now == 12.0


def test_cancelled_tasks_never_run():
    scheduler = TaskScheduler()
    fired = []
    once = scheduler.call_later(1.0, lambda: fired.append("once"))
    every = scheduler.call_every(1.0, lambda: fired.append("every"))

    scheduler.cancel(once)
    scheduler.advance(2.5)
    scheduler.cancel(every)
    scheduler.advance(10)

    assert fired == ["every", "every"]
    assert scheduler.pending() == 0


def test_tasks_scheduled_while_running_are_picked_up():
    scheduler = TaskScheduler()
    fired = []

    def chain():
        fired.append(scheduler.now)
        scheduler.call_later(1.0, lambda: fired.append(scheduler.now))

    scheduler.call_later(1.0, chain)
    scheduler.advance(3)

    assert fired == [1.0, 2.0]


def test_clock_never_moves_backwards():
    scheduler = TaskScheduler(start=5.0)
    with pytest.raises(ValueError):
        scheduler.advance(-1)
    with pytest.raises(ValueError):
        scheduler.run_until(4.0)


def test_invalid_delays_are_rejected():
    scheduler = TaskScheduler()
    with pytest.raises(ValueError):
        scheduler.call_later(-0.5, lambda: None)
    with pytest.raises(ValueError):
        scheduler.call_every(0, lambda: None)


def test_callback_errors_propagate():
    scheduler = TaskScheduler()

    def boom():
        raise RuntimeError("boom")

    scheduler.call_later(1.0, boom)
    with pytest.raises(RuntimeError):
        scheduler.advance(2)


def test_recurring_task_survives_a_failing_run():
    scheduler = TaskScheduler()
    runs = []

    def flaky():
        runs.append(scheduler.now)
        if len(runs) == 1:
            raise RuntimeError("first run fails")

    scheduler.call_every(4.0, flaky)
    with pytest.raises(RuntimeError):
        scheduler.advance(4.0)

    scheduler.advance(8.0)
    assert runs == [4.0, 8.0, 12.0]
    assert scheduler.pending() == 1
