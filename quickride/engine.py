# quickride/engine.py
"""
Ride Engine: one session of the QuickRide lifecycle simulation.

The engine owns every piece of session state and wires the components
together:
- RideRegistry holds the active collection and the archive
- TaskScheduler is the session clock all timed actions run on
- RequestIntake creates rides
- LifecycleScheduler advances and finishes rides on every tick
- MessagingService runs the per-ride chats

It also implements cancellation, the chat view binding and the event
subscription the dashboard and CLI observe the session through.
"""

from __future__ import annotations

import logging
import random
import time
from collections import Counter
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from . import config, utils
from .clock import TaskScheduler
from .intake import RequestIntake, RideParameters
from .lifecycle import LifecycleScheduler
from .messaging import MessagingService
from .models import (
    ChatMessage,
    Collection,
    DriverInfo,
    EngineEvent,
    EventKind,
    RideCategory,
    RideRequest,
    RideStatus,
    Sender,
)
from .registry import RideRegistry

logger = logging.getLogger(__name__)

Listener = Callable[[EngineEvent], None]


class RideEngine:
    """
    A running ride session.

    Attributes:
        scheduler: Session clock and task queue
        registry: Active rides and archive
        intake: Ride creation
        lifecycle: Recurring tick
        messaging: Per-ride chat
        active_chat_ride_id: Ride the chat view is bound to, if any
        event_counts: How many events of each kind were emitted
    """

    def __init__(self, rng: Optional[random.Random] = None,
                 start_time: Optional[float] = None,
                 search_delay: Optional[float] = None,
                 seed_history: bool = False,
                 autostart: bool = True) -> None:
        """
        Build a session.

        Args:
            rng: Random source, a fresh ``random.Random()`` by default
            start_time: Initial clock time, current epoch time by default
            search_delay: Driver search delay, config.DRIVER_SEARCH_DELAY_SECONDS if None
            seed_history: Inject config.SEED_HISTORY into the archive
            autostart: Queue the lifecycle tick right away
        """
        self.rng = rng or random.Random()
        self.scheduler = TaskScheduler(start=time.time() if start_time is None else start_time)
        self.registry = RideRegistry()

        self.intake = RequestIntake(self.registry, self.scheduler, self.rng,
                                    notify=self._emit, search_delay=search_delay)
        self.lifecycle = LifecycleScheduler(self.registry, self.scheduler, self.rng,
                                            notify=self._emit)
        self.messaging = MessagingService(self.registry, self.scheduler, notify=self._emit)

        self.active_chat_ride_id: Optional[str] = None
        self.event_counts: Counter = Counter()
        self._listeners: List[Listener] = []

        if seed_history:
            self.seed_history()
        if autostart:
            self.start()

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call ``listener`` with every EngineEvent from now on.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: EventKind, ride_id: str, message: Optional[ChatMessage] = None) -> None:
        self.event_counts[kind] += 1
        event = EngineEvent(kind=kind, ride_id=ride_id, timestamp=self.scheduler.now, message=message)
        for listener in list(self._listeners):
            listener(event)

    # -------------------------------------------------------------------------
    # Boundary operations
    # -------------------------------------------------------------------------

    def request_ride(self, params: Union[RideParameters, Mapping[str, Any]]) -> str:
        """
        Create a ride from the form wizard's parameters.

        Args:
            params: RideParameters, or a mapping with the same field names

        Returns:
            The new ride's id

        Raises:
            InvalidRideParameters: If validation fails
        """
        if not isinstance(params, RideParameters):
            params = RideParameters.from_mapping(params)
        return self.intake.submit(params)

    def send_message(self, ride_id: str, text: str) -> Optional[ChatMessage]:
        """Requester sends ``text``. Returns None if the ride is gone."""
        return self.messaging.send(ride_id, text, Sender.REQUESTER)

    def cancel(self, ride_id: str) -> bool:
        """
        Cancel a ride: remove it from whichever collection holds it.

        No trace is kept in the archive. An open chat bound to the ride is
        closed, and pending replies or driver searches for it become no-ops.
        Cancelling an unknown id does nothing.

        Returns:
            True if a ride was removed
        """
        removed = self.registry.remove_by_id(ride_id)
        if removed is None:
            logger.debug(f"Cancel for unknown ride {ride_id} ignored")
            return False

        if removed.status == RideStatus.FINISHED:
            logger.info(f"Ride {ride_id} (OS {removed.os_number}) deleted from history")
        else:
            logger.info(f"Ride {ride_id} (OS {removed.os_number}) cancelled")
        self._emit(EventKind.RIDE_CANCELLED, ride_id)

        if self.active_chat_ride_id == ride_id:
            self.close_chat()
        return True

    def open_chat(self, ride_id: str) -> bool:
        """Bind the chat view to ``ride_id``. False if the ride does not exist."""
        if ride_id not in self.registry:
            return False
        self.active_chat_ride_id = ride_id
        return True

    def close_chat(self) -> None:
        if self.active_chat_ride_id is None:
            return
        ride_id = self.active_chat_ride_id
        self.active_chat_ride_id = None
        self._emit(EventKind.CHAT_CLOSED, ride_id)

    @property
    def active_chat_ride(self) -> Optional[RideRequest]:
        if self.active_chat_ride_id is None:
            return None
        return self.registry.find_by_id(self.active_chat_ride_id)

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def active_rides(self) -> Tuple[RideRequest, ...]:
        return self.registry.active

    @property
    def history(self) -> Tuple[RideRequest, ...]:
        return self.registry.archive_rides

    def find(self, ride_id: str) -> Optional[RideRequest]:
        return self.registry.find_by_id(ride_id)

    def snapshot_rows(self, collection: Collection) -> List[Dict[str, Any]]:
        """Display rows for one collection, newest first."""
        return [
            {
                "id": ride.id,
                "OS": ride.os_number,
                "Passageiro": ride.passenger_name,
                "CPF": utils.mask_hidden_cpf(ride.passenger_cpf),
                "WhatsApp": ride.passenger_whatsapp,
                "Destino": ride.destination,
                "Categoria": ride.category.label,
                "Status": ride.status.label,
                "Motorista": ride.driver_name or "-",
                "Distância": utils.format_distance(ride.distance_km),
                "Progresso": utils.approach_progress_pct(ride.distance_km),
                "Valor": utils.format_brl(ride.fare),
                "Mensagens": len(ride.messages),
                "Registro": utils.format_clock(ride.created_at),
            }
            for ride in self.registry.snapshot(collection)
        ]

    # -------------------------------------------------------------------------
    # Time
    # -------------------------------------------------------------------------

    def start(self) -> None:
        self.lifecycle.start()

    def stop(self) -> None:
        self.lifecycle.stop()

    @property
    def now(self) -> float:
        return self.scheduler.now

    def advance(self, seconds: float) -> int:
        """Move the session clock forward, running everything that falls due."""
        return self.scheduler.advance(seconds)

    def sync(self, now: Optional[float] = None) -> int:
        """
        Catch the session clock up with wall-clock time.

        A ``now`` behind the session clock is ignored.
        """
        now = time.time() if now is None else now
        if now <= self.scheduler.now:
            return 0
        return self.scheduler.run_until(now)

    def run(self, duration: float, verbose: bool = True) -> Dict[str, Any]:
        """
        Advance the session by ``duration`` seconds of simulated time.

        Args:
            duration: Simulated seconds to run
            verbose: Print a progress line for every tick that changed something

        Returns:
            Dictionary of session KPIs (see get_results)
        """
        end = self.scheduler.now + duration
        last_tick = self.lifecycle.ticks

        while self.scheduler.now < end:
            step = min(config.TICK_PERIOD_SECONDS, end - self.scheduler.now)
            self.scheduler.advance(step)

            report = self.lifecycle.last_report
            if verbose and report is not None and self.lifecycle.ticks != last_tick and report.changed:
                print(f"[{time.strftime('%H:%M:%S', time.localtime(report.timestamp))}] "
                      f"Tick {report.tick_number}: "
                      f"Active: {len(self.registry.active)}, "
                      f"Archived: {len(self.registry.archive_rides)}, "
                      f"Finished this tick: {len(report.finished)}")
            last_tick = self.lifecycle.ticks

        return self.get_results()

    # -------------------------------------------------------------------------
    # Seeding and results
    # -------------------------------------------------------------------------

    def seed_history(self, entries: Optional[List[Dict[str, Any]]] = None) -> int:
        """
        Inject past records straight into the archive.

        Args:
            entries: Seed records, config.SEED_HISTORY by default. Ages are
                seconds before the current clock time.

        Returns:
            Number of rides seeded

        Raises:
            ValueError: If an entry is malformed or reuses an existing id
        """
        entries = config.SEED_HISTORY if entries is None else entries
        now = self.scheduler.now
        rides: List[RideRequest] = []
        for entry in entries:
            try:
                messages = tuple(
                    ChatMessage(id=m["id"], sender=Sender[m["sender"]], text=m["text"],
                                timestamp=now - m.get("age_seconds", 0))
                    for m in entry.get("messages", [])
                )
                rides.append(RideRequest(
                    id=entry["id"],
                    os_number=entry["os_number"],
                    passenger_name=entry["passenger_name"],
                    passenger_cpf=entry["passenger_cpf"],
                    passenger_whatsapp=entry["passenger_whatsapp"],
                    destination=entry["destination"],
                    category=RideCategory[entry["category"]],
                    status=RideStatus[entry["status"]],
                    created_at=now - entry.get("age_seconds", 0),
                    driver_info=DriverInfo(**entry["driver"]) if entry.get("driver") else None,
                    distance_km=entry.get("distance_km"),
                    fare=entry.get("fare"),
                    messages=messages,
                ))
            except (KeyError, TypeError) as e:
                raise ValueError(f"Invalid seed entry {entry.get('id', '?')}: {e}") from e

        # insert_archive prepends, so walk backwards to keep the seed order
        for ride in reversed(rides):
            self.registry.insert_archive(ride)
        logger.info(f"Seeded {len(rides)} historical ride(s)")
        return len(rides)

    def get_results(self) -> Dict[str, Any]:
        """
        Session KPIs.

        Returns:
            Machine-readable counts plus display-formatted entries for the
            CLI table and dashboard cards
        """
        active = self.registry.active
        archive = self.registry.archive_rides
        approaching = [r.distance_km for r in active if r.is_approaching]
        avg_distance = sum(approaching) / len(approaching) if approaching else 0.0
        finished_in_archive = sum(1 for r in archive if r.status == RideStatus.FINISHED)

        return {
            "active_rides": len(active),
            "archived_rides": len(archive),
            "finished_rides": self.event_counts[EventKind.RIDE_FINISHED],
            "finished_in_archive": finished_in_archive,
            "created_rides": self.event_counts[EventKind.RIDE_CREATED],
            "cancelled_rides": self.event_counts[EventKind.RIDE_CANCELLED],
            "messages_exchanged": self.event_counts[EventKind.MESSAGE_ADDED],
            "ticks": self.lifecycle.ticks,
            "avg_remaining_distance_km": round(avg_distance, 2),

            "Active Rides": len(active),
            "Archived Rides": len(archive),
            "Finished Rides": self.event_counts[EventKind.RIDE_FINISHED],
            "Cancelled Rides": self.event_counts[EventKind.RIDE_CANCELLED],
            "Messages": self.event_counts[EventKind.MESSAGE_ADDED],
            "Ticks": self.lifecycle.ticks,
            "Avg Remaining Distance": f"{avg_distance:.2f} km",
        }

    def __repr__(self) -> str:
        return f"RideEngine(now={self.scheduler.now:.1f}, {self.registry!r})"
