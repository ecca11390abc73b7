# quickride/models.py
"""
Core domain models for the QuickRide ride lifecycle engine.

This module defines the data structures shared by every component:
- RideRequest: one trip from creation to completion or cancellation
- DriverInfo: the synthesized driver profile attached to a ride
- ChatMessage: one entry of a ride's chat log
- EngineEvent: notification handed to dashboard/CLI listeners

Rides are immutable snapshots. Components never edit a ride in place;
they hand the registry a new ride built with ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple


class RideStatus(Enum):
    """Lifecycle states for a ride request."""
    WAITING = "WAITING"      # Looking for a driver
    ACCEPTED = "ACCEPTED"    # Driver assigned and approaching
    FINISHED = "FINISHED"    # Trip completed, lives in the archive

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    RideStatus.WAITING: "Aguardando motorista",
    RideStatus.ACCEPTED: "Aceita",
    RideStatus.FINISHED: "Finalizada",
}


class RideCategory(Enum):
    """Vehicle category chosen at intake. Immutable afterwards."""
    MOTO = "MOTO"
    CARRO = "CARRO"
    SUV = "SUV"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    RideCategory.MOTO: "Moto",
    RideCategory.CARRO: "Carro",
    RideCategory.SUV: "SUV",
}


class Sender(Enum):
    REQUESTER = "REQUESTER"
    DRIVER = "DRIVER"


class Collection(Enum):
    """Selects one of the two registry collections."""
    ACTIVE = "ACTIVE"
    ARCHIVE = "ARCHIVE"


class EventKind(Enum):
    RIDE_CREATED = "RIDE_CREATED"
    RIDE_ACCEPTED = "RIDE_ACCEPTED"
    RIDE_FINISHED = "RIDE_FINISHED"
    MESSAGE_ADDED = "MESSAGE_ADDED"
    RIDE_CANCELLED = "RIDE_CANCELLED"
    CHAT_CLOSED = "CHAT_CLOSED"


@dataclass(frozen=True)
class DriverInfo:
    """
    Synthesized driver profile.

    Attributes:
        name: Driver display name
        photo_ref: Avatar URL
        rating: Average rating (0.0 - 5.0)
        vehicle_description: Model and colour, e.g. "VW Polo Azul"
        plate: License plate
    """
    name: str
    photo_ref: str
    rating: float
    vehicle_description: str
    plate: str


@dataclass(frozen=True)
class ChatMessage:
    id: str
    sender: Sender
    text: str
    timestamp: float

    def __repr__(self) -> str:
        return f"ChatMessage({self.sender.value}: {self.text!r})"


@dataclass(frozen=True)
class RideRequest:
    """
    Represents one ride request.

    Attributes:
        id: Unique identifier, stable for the ride's lifetime, never reused
        os_number: 8-digit reference number shown to humans (not an identity)
        passenger_name: Passenger full name
        passenger_cpf: Formatted CPF, validated at intake
        passenger_whatsapp: Formatted phone, e.g. "(93) 98118-3360"
        destination: Free text or resolved address
        category: Vehicle category
        status: Current lifecycle state
        created_at: Creation instant on the session clock

    Dynamic State:
        driver_info: Present once a driver has been synthesized
        distance_km: Remaining simulated distance, only while ACCEPTED
        fare: Estimated fare in BRL
        messages: Append-only chat log, in insertion order
    """
    id: str
    os_number: str
    passenger_name: str
    passenger_cpf: str
    passenger_whatsapp: str
    destination: str
    category: RideCategory
    status: RideStatus
    created_at: float

    driver_info: Optional[DriverInfo] = None
    distance_km: Optional[float] = None
    fare: Optional[float] = None
    messages: Tuple[ChatMessage, ...] = field(default_factory=tuple)

    @property
    def driver_name(self) -> Optional[str]:
        return self.driver_info.name if self.driver_info else None

    @property
    def is_approaching(self) -> bool:
        """True while the ride is ACCEPTED with a known distance."""
        return self.status == RideStatus.ACCEPTED and self.distance_km is not None

    def with_message(self, message: ChatMessage) -> RideRequest:
        """Return a copy with ``message`` appended to the chat log."""
        return replace(self, messages=self.messages + (message,))

    def __repr__(self) -> str:
        return f"RideRequest({self.id}, OS {self.os_number}, {self.status.value})"


@dataclass(frozen=True)
class EngineEvent:
    """Something observable happened to a ride."""
    kind: EventKind
    ride_id: str
    timestamp: float
    message: Optional[ChatMessage] = None
