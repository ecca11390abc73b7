# quickride/clock.py
"""
Virtual clock and task queue driving every timed action in a session.

The recurring lifecycle tick and the one-shot deferred actions (chat
replies, driver search) are entries in one priority queue keyed by fire
time. Nothing runs on its own: the owner moves the clock forward with
``advance``/``run_until`` and due tasks run one at a time, in fire-time
order, with ties broken by scheduling order. Tests advance the clock
instead of sleeping; the dashboard syncs it to wall-clock time.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledTask:
    """
    A queued callback.

    Attributes:
        fire_at: Clock time the task is due
        seq: Tie-breaker, preserves scheduling order for equal fire times
        callback: Zero-argument callable
        interval: Period for recurring tasks, None for one-shot ones
        name: Label used in logs
    """
    fire_at: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    interval: Optional[float] = field(default=None, compare=False)
    name: str = field(default="", compare=False)
    cancelled: bool = field(default=False, compare=False)

    def __repr__(self) -> str:
        kind = f"every {self.interval}s" if self.interval else "once"
        return f"ScheduledTask({self.name or 'anonymous'}, at={self.fire_at:.2f}, {kind})"


class TaskScheduler:
    """
    Priority queue of callbacks on a virtual clock.

    Attributes:
        now: Current clock time (seconds). Never moves backwards.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now: float = start
        self._queue: List[ScheduledTask] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        """Run ``callback`` once, ``delay`` seconds from now."""
        if delay < 0:
            raise ValueError(f"Delay must be non-negative, got {delay}")
        return self._push(self._now + delay, callback, None, name)

    def call_every(self, interval: float, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        """
        Run ``callback`` every ``interval`` seconds, first run one interval from now.

        The next run is queued only after the current one returns, so two
        runs of the same task never overlap.
        """
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        return self._push(self._now + interval, callback, interval, name)

    def cancel(self, task: ScheduledTask) -> None:
        """Drop a task. Cancelling a task that already ran is a no-op."""
        task.cancelled = True

    def pending(self) -> int:
        """Number of live tasks still queued."""
        return sum(1 for task in self._queue if not task.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward by ``seconds``. Returns how many tasks ran."""
        if seconds < 0:
            raise ValueError(f"Cannot move the clock backwards ({seconds}s)")
        return self.run_until(self._now + seconds)

    def run_until(self, target: float) -> int:
        """
        Run every task due at or before ``target``, then park the clock there.

        Each task sees ``now`` equal to its own fire time. Tasks scheduled by
        a running task are picked up in the same call if they fall due
        before ``target``.

        Args:
            target: Absolute clock time to stop at

        Returns:
            Number of callbacks executed
        """
        if target < self._now:
            raise ValueError(f"Cannot move the clock backwards (now={self._now}, target={target})")

        executed = 0
        while self._queue and self._queue[0].fire_at <= target:
            task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self._now = task.fire_at
            logger.debug(f"Running {task!r}")
            try:
                task.callback()
            finally:
                # a failing recurring task stays scheduled
                if task.interval is not None and not task.cancelled:
                    task.fire_at += task.interval
                    task.seq = next(self._seq)
                    heapq.heappush(self._queue, task)
            executed += 1

        self._now = target
        return executed

    def _push(self, fire_at: float, callback: Callable[[], None],
              interval: Optional[float], name: str) -> ScheduledTask:
        task = ScheduledTask(fire_at, next(self._seq), callback, interval, name)
        heapq.heappush(self._queue, task)
        return task
