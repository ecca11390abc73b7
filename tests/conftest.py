import random
from dataclasses import replace

import pytest

from quickride.engine import RideEngine
from quickride.intake import RideParameters
from quickride.models import Collection, DriverInfo, RideCategory, RideRequest, RideStatus

VALID_CPF = "529.982.247-25"
VALID_PHONE = "(93) 98118-3360"

FINISH = 0.0     # any draw below FINISH_PROBABILITY finishes the ride
STAY = 0.99


class ScriptedRandom(random.Random):
    """random.Random whose next random() draws can be forced."""

    def __init__(self, seed=1234):
        super().__init__(seed)
        self.forced = []

    def force(self, *values):
        self.forced.extend(values)

    def random(self):
        if self.forced:
            return self.forced.pop(0)
        return super().random()

    # keeps randint/choice on getrandbits so they never eat forced draws
    def getrandbits(self, k):
        return super().getrandbits(k)


@pytest.fixture
def rng():
    return ScriptedRandom()


@pytest.fixture
def engine(rng):
    return RideEngine(rng=rng, start_time=0.0)


@pytest.fixture
def valid_params():
    return RideParameters(
        destination="Aeroporto de Santarém",
        passenger_name="Ana Paula Costa",
        passenger_cpf=VALID_CPF,
        passenger_whatsapp=VALID_PHONE,
        category=RideCategory.CARRO,
    )


@pytest.fixture
def make_ride():
    def _make_ride(ride_id, status=RideStatus.ACCEPTED, distance_km=3.0, **overrides):
        ride = RideRequest(
            id=ride_id,
            os_number="12345678",
            passenger_name="Carlos Oliveira",
            passenger_cpf=VALID_CPF,
            passenger_whatsapp=VALID_PHONE,
            destination="Terminal Rodoviário",
            category=RideCategory.CARRO,
            status=status,
            created_at=0.0,
            driver_info=DriverInfo("Marcos Souza", "photo", 4.9, "Fiat Cronos Branco", "QWJ-9012"),
            distance_km=distance_km,
        )
        return replace(ride, **overrides) if overrides else ride
    return _make_ride


def set_distance(engine, ride_id, distance_km, collection=Collection.ACTIVE):
    """Force a ride's remaining distance."""
    engine.registry.update_by_id(collection, ride_id, lambda r: replace(r, distance_km=distance_km))


def ids(rides):
    return [ride.id for ride in rides]
