# quickride/intake.py
"""
Request Intake: turns validated trip parameters into a new ride.

Intake synthesizes everything the form does not collect (id, OS number,
driver, initial distance, fare) and inserts the ride at the head of the
active collection. With no driver search delay configured the ride is
ACCEPTED straight away; otherwise it waits in WAITING until a deferred
task assigns the driver.
"""

from __future__ import annotations

import logging
import random
from dataclasses import MISSING, dataclass, fields, replace
from typing import Any, Callable, Dict, Mapping, Optional, Union

from . import config, pricing, utils
from .clock import TaskScheduler
from .models import Collection, DriverInfo, EventKind, RideCategory, RideRequest, RideStatus
from .registry import RideRegistry

logger = logging.getLogger(__name__)

Notifier = Callable[..., None]


class InvalidRideParameters(ValueError):
    """
    Raised when trip parameters fail validation.

    Attributes:
        errors: Offending field name -> human readable reason
    """

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        details = "; ".join(f"{name}: {reason}" for name, reason in self.errors.items())
        super().__init__(f"Invalid ride parameters ({details})")


@dataclass(frozen=True)
class RideParameters:
    """
    What the form wizard collects.

    Attributes:
        destination: Free text or resolved address
        passenger_name: Passenger full name
        passenger_cpf: CPF, formatted or digits only
        passenger_whatsapp: Fully formatted mobile number
        category: RideCategory or its name ("MOTO", "CARRO", "SUV")
        driver_info: Pre-selected driver, otherwise one is drawn from the roster
    """
    destination: str
    passenger_name: str
    passenger_cpf: str
    passenger_whatsapp: str
    category: Union[RideCategory, str]
    driver_info: Optional[DriverInfo] = None

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> RideParameters:
        """
        Build parameters from a plain mapping (e.g. a submitted form).

        Raises:
            InvalidRideParameters: If a required key is missing or an unknown key is present
        """
        known = {f.name: f for f in fields(cls)}
        errors: Dict[str, str] = {}
        for name, f in known.items():
            if name not in params and f.default is MISSING:
                errors[name] = "missing"
        for name in params:
            if name not in known:
                errors[name] = "unknown field"
        if errors:
            raise InvalidRideParameters(errors)
        return cls(**params)

    def validated(self) -> RideParameters:
        """
        Check every field and return a normalized copy.

        Normalization only trims whitespace, parses the category name and
        formats an already valid CPF. Nothing invalid is ever coerced.

        Raises:
            InvalidRideParameters: Listing every failing field
        """
        errors: Dict[str, str] = {}

        for name in ("destination", "passenger_name", "passenger_cpf", "passenger_whatsapp"):
            value = getattr(self, name)
            if not isinstance(value, str):
                errors[name] = f"expected text, got {type(value).__name__}"

        destination = _text(self.destination)
        if not destination and "destination" not in errors:
            errors["destination"] = "must not be empty"

        passenger_name = _text(self.passenger_name)
        if not passenger_name and "passenger_name" not in errors:
            errors["passenger_name"] = "must not be empty"

        if "passenger_cpf" not in errors and not utils.validate_cpf(self.passenger_cpf):
            errors["passenger_cpf"] = "CPF checksum does not match"

        passenger_whatsapp = _text(self.passenger_whatsapp)
        if "passenger_whatsapp" not in errors and not utils.is_complete_phone(passenger_whatsapp):
            errors["passenger_whatsapp"] = "expected a complete number like (00) 00000-0000"

        category = _parse_category(self.category)
        if category is None:
            errors["category"] = f"unknown category {self.category!r}"

        if errors:
            raise InvalidRideParameters(errors)

        return RideParameters(
            destination=destination,
            passenger_name=passenger_name,
            passenger_cpf=utils.mask_cpf(self.passenger_cpf),
            passenger_whatsapp=passenger_whatsapp,
            category=category,
            driver_info=self.driver_info,
        )


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _parse_category(value: Union[RideCategory, str]) -> Optional[RideCategory]:
    if isinstance(value, RideCategory):
        return value
    if isinstance(value, str):
        try:
            return RideCategory[value.strip().upper()]
        except KeyError:
            return None
    return None


def pick_driver(rng: random.Random) -> DriverInfo:
    """Draw a driver profile from the configured roster."""
    return DriverInfo(**rng.choice(config.MOCK_DRIVERS))


class RequestIntake:
    """
    Creates rides and inserts them into the registry.

    Attributes:
        registry: Where new rides go
        scheduler: Session clock, used for timestamps and the driver search
        rng: Random source for OS numbers, distances, drivers and fares
    """

    def __init__(self, registry: RideRegistry, scheduler: TaskScheduler,
                 rng: random.Random, notify: Optional[Notifier] = None,
                 search_delay: Optional[float] = None) -> None:
        self.registry = registry
        self.scheduler = scheduler
        self.rng = rng
        self.search_delay = search_delay
        self._notify = notify or (lambda *args, **kwargs: None)

    def submit(self, params: RideParameters) -> str:
        """
        Validate ``params`` and create the ride.

        Returns:
            The new ride's id

        Raises:
            InvalidRideParameters: If any field fails validation
        """
        clean = params.validated()
        search_delay = self._search_delay()

        ride = RideRequest(
            id=utils.new_id(),
            os_number=str(self.rng.randint(config.OS_NUMBER_MIN, config.OS_NUMBER_MAX)),
            passenger_name=clean.passenger_name,
            passenger_cpf=clean.passenger_cpf,
            passenger_whatsapp=clean.passenger_whatsapp,
            destination=clean.destination,
            category=clean.category,
            status=RideStatus.WAITING,
            created_at=self.scheduler.now,
            fare=pricing.estimate_fare(clean.category, self.rng),
        )

        if search_delay <= 0:
            ride = self._accept(ride, clean.driver_info)
            self.registry.insert_active(ride)
            logger.info(f"Ride {ride.id} (OS {ride.os_number}) accepted by {ride.driver_name}")
            self._notify(EventKind.RIDE_CREATED, ride.id)
            return ride.id

        self.registry.insert_active(ride)
        logger.info(f"Ride {ride.id} (OS {ride.os_number}) waiting for a driver")
        self._notify(EventKind.RIDE_CREATED, ride.id)
        self.scheduler.call_later(
            search_delay,
            lambda: self._complete_search(ride.id, clean.driver_info),
            name=f"driver-search:{ride.id}",
        )
        return ride.id

    def _accept(self, ride: RideRequest, driver: Optional[DriverInfo]) -> RideRequest:
        distance = self.rng.uniform(config.INITIAL_DISTANCE_MIN_KM, config.INITIAL_DISTANCE_MAX_KM)
        return replace(
            ride,
            status=RideStatus.ACCEPTED,
            driver_info=driver or pick_driver(self.rng),
            distance_km=distance,
        )

    def _complete_search(self, ride_id: str, driver: Optional[DriverInfo]) -> None:
        """Deferred half of a delayed intake. No-op if the ride was cancelled."""
        ride = self.registry.find_by_id(ride_id)
        if ride is None or ride.status != RideStatus.WAITING:
            logger.debug(f"Driver search finished for vanished ride {ride_id}")
            return
        accepted = self._accept(ride, driver)
        updated = self.registry.update_by_id(Collection.ACTIVE, ride_id, lambda _: accepted)
        if updated is None:
            return
        logger.info(f"Ride {ride_id} accepted by {updated.driver_name}")
        self._notify(EventKind.RIDE_ACCEPTED, ride_id)

    def _search_delay(self) -> float:
        if self.search_delay is not None:
            return self.search_delay
        return config.DRIVER_SEARCH_DELAY_SECONDS
