# quickride/lifecycle.py
"""
Lifecycle Scheduler: the periodic pass that moves rides forward.

On every tick:
1. Active ACCEPTED rides above the distance floor get closer by
   DISTANCE_STEP_KM (never below the floor)
2. Active ACCEPTED rides at the floor finish with FINISH_PROBABILITY;
   finishing and archiving happen in the same registry step
3. Archived rides still ACCEPTED above the floor get closer by the smaller
   ARCHIVE_DISTANCE_STEP_KM. They never finish from the archive side, so a
   ride reaches FINISHED exactly once, from exactly one code path.

A tick works on a snapshot of the collections taken when it starts, and
every write goes through the registry by id, so a ride cancelled in the
meantime is simply skipped.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional

from . import config
from .clock import ScheduledTask, TaskScheduler
from .models import Collection, EventKind, RideRequest, RideStatus
from .registry import RideRegistry

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    """What a single tick changed."""
    tick_number: int
    timestamp: float
    advanced: List[str] = field(default_factory=list)
    archive_advanced: List[str] = field(default_factory=list)
    finished: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.advanced or self.archive_advanced or self.finished)


def step_distance(distance_km: float, step_km: float) -> float:
    """Move ``step_km`` closer, stopping at the floor."""
    return max(config.MIN_DISTANCE_KM, distance_km - step_km)


class LifecycleScheduler:
    """
    Drives the recurring tick on the session clock.

    Attributes:
        registry: Rides to advance
        scheduler: Session clock the tick is queued on
        rng: Source of the finishing draw
        ticks: Number of ticks run so far
        last_report: Report of the most recent tick
    """

    def __init__(self, registry: RideRegistry, scheduler: TaskScheduler,
                 rng: random.Random, notify: Optional[Callable[..., None]] = None) -> None:
        self.registry = registry
        self.scheduler = scheduler
        self.rng = rng
        self.ticks: int = 0
        self.last_report: Optional[TickReport] = None
        self._notify = notify or (lambda *args, **kwargs: None)
        self._task: Optional[ScheduledTask] = None

    @property
    def running(self) -> bool:
        return self._task is not None

    def start(self, period: Optional[float] = None) -> None:
        """Queue the recurring tick. Starting twice is a no-op."""
        if self._task is not None:
            return
        period = period if period is not None else config.TICK_PERIOD_SECONDS
        self._task = self.scheduler.call_every(period, self.tick, name="lifecycle-tick")
        logger.info(f"Lifecycle ticking every {period}s")

    def stop(self) -> None:
        if self._task is not None:
            self.scheduler.cancel(self._task)
            self._task = None

    def tick(self) -> TickReport:
        """
        Run one full pass over both collections.

        Returns:
            TickReport listing advanced and finished ride ids
        """
        self.ticks += 1
        report = TickReport(tick_number=self.ticks, timestamp=self.scheduler.now)

        for ride in self.registry.snapshot(Collection.ACTIVE):
            self._advance_active(ride, report)

        for ride in self.registry.snapshot(Collection.ARCHIVE):
            self._advance_archived(ride, report)

        if report.finished:
            logger.info(f"Tick {report.tick_number}: finished {len(report.finished)} ride(s)")
        self.last_report = report
        return report

    def _advance_active(self, ride: RideRequest, report: TickReport) -> None:
        if not ride.is_approaching:
            return

        if ride.distance_km > config.MIN_DISTANCE_KM:
            new_distance = step_distance(ride.distance_km, config.DISTANCE_STEP_KM)
            if self.registry.update_by_id(Collection.ACTIVE, ride.id,
                                          lambda r: replace(r, distance_km=new_distance)):
                report.advanced.append(ride.id)
            return

        if self.rng.random() < config.FINISH_PROBABILITY:
            finished = self.registry.archive(
                ride.id, lambda r: replace(r, status=RideStatus.FINISHED, distance_km=None))
            if finished is not None:
                report.finished.append(ride.id)
                logger.info(f"Ride {ride.id} (OS {ride.os_number}) finished")
                self._notify(EventKind.RIDE_FINISHED, ride.id)

    def _advance_archived(self, ride: RideRequest, report: TickReport) -> None:
        if not ride.is_approaching or ride.distance_km <= config.MIN_DISTANCE_KM:
            return
        new_distance = step_distance(ride.distance_km, config.ARCHIVE_DISTANCE_STEP_KM)
        if self.registry.update_by_id(Collection.ARCHIVE, ride.id,
                                      lambda r: replace(r, distance_km=new_distance)):
            report.archive_advanced.append(ride.id)
