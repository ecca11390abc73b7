# quickride/config.py
"""
Configuration parameters for the QuickRide ride lifecycle engine.

This module centralizes all tunable parameters, making it easy to:
- Adjust how fast simulated drivers approach
- Change how often rides finish on their own
- Tune the chat auto-reply and the fare estimate

Components read these values at call time, so the dashboard can retune
a running session by assigning to them.
"""

from typing import Dict, Final, List, Any

# =============================================================================
# LIFECYCLE TICK
# =============================================================================

TICK_PERIOD_SECONDS: float = 4.0
"""Interval between two lifecycle ticks."""

DISTANCE_STEP_KM: float = 0.1
"""Distance removed from an active, approaching ride on every tick."""

ARCHIVE_DISTANCE_STEP_KM: float = 0.05
"""Smaller step applied to rides that sit in the archive while still ACCEPTED."""

MIN_DISTANCE_KM: Final[float] = 0.1
"""
Floor for the simulated distance. A ride at the floor no longer moves and
becomes eligible for the finishing draw.
"""

FINISH_PROBABILITY: float = 0.05
"""Per-tick chance that a ride parked at the floor finishes (0.0 - 1.0)."""

# =============================================================================
# CHAT
# =============================================================================

REPLY_DELAY_SECONDS: float = 1.5
"""Delay before the automated driver reply lands in the chat."""

AUTO_REPLY_TEXT: str = "Entendido, estou a caminho!"
"""Canned driver reply. Not content-aware."""

# =============================================================================
# REQUEST INTAKE
# =============================================================================

INITIAL_DISTANCE_MIN_KM: float = 2.5
"""Lower bound of the initial simulated distance."""

INITIAL_DISTANCE_MAX_KM: float = 5.5
"""Upper bound of the initial simulated distance."""

OS_NUMBER_MIN: Final[int] = 10_000_000
OS_NUMBER_MAX: Final[int] = 99_999_999
"""The OS number is always 8 digits. Display only, never used for lookup."""

DRIVER_SEARCH_DELAY_SECONDS: float = 0.0
"""
Time spent "looking for a driver" before a ride becomes ACCEPTED.
0 means matching is instantaneous and rides never sit in WAITING.
"""

MOCK_DRIVERS: List[Dict[str, Any]] = [
    {"name": "Ricardo Silva", "photo_ref": "https://i.pravatar.cc/150?u=ricardo",
     "rating": 4.9, "vehicle_description": "Toyota Corolla Prata", "plate": "BRA-2E19"},
    {"name": "Maria Santos", "photo_ref": "https://i.pravatar.cc/150?u=maria",
     "rating": 4.8, "vehicle_description": "Hyundai HB20 Branco", "plate": "KGP-4412"},
    {"name": "André Lima", "photo_ref": "https://i.pravatar.cc/150?u=andre",
     "rating": 5.0, "vehicle_description": "Honda Civic Preto", "plate": "RTX-9J21"},
    {"name": "Carla Dias", "photo_ref": "https://i.pravatar.cc/150?u=carla",
     "rating": 4.7, "vehicle_description": "VW Polo Azul", "plate": "NFX-3388"},
]
"""Roster the intake draws a driver from when the caller supplies none."""

# =============================================================================
# FARE ESTIMATE
# =============================================================================

FARE_BASE_MIN: float = 15.0
"""Cheapest possible base fare (BRL)."""

FARE_BASE_SPREAD: float = 20.0
"""Random spread added on top of the base fare."""

CATEGORY_FARE_MULTIPLIERS: Dict[str, float] = {
    "MOTO": 0.7,
    "CARRO": 1.0,
    "SUV": 1.5,
}
"""Multiplier per ride category, keyed by category name."""

# =============================================================================
# SEEDED HISTORY
# =============================================================================

SEED_HISTORY: List[Dict[str, Any]] = [
    {
        "id": "sim-active-1",
        "os_number": "29384756",
        "passenger_name": "Carlos Oliveira",
        "passenger_cpf": "123.***.***-45",
        "passenger_whatsapp": "(93) 98118-3360",
        "destination": "Terminal Rodoviário, Plataforma A",
        "category": "CARRO",
        "status": "ACCEPTED",
        "driver": {"name": "Marcos Souza", "photo_ref": "https://i.pravatar.cc/150?u=marcos",
                   "rating": 4.9, "vehicle_description": "Fiat Cronos Branco", "plate": "QWJ-9012"},
        "distance_km": 1.2,
        "age_seconds": 300,
        "messages": [
            {"id": "m1", "sender": "DRIVER", "text": "Estou chegando no ponto de encontro!",
             "age_seconds": 120},
        ],
    },
]
"""
Rides injected straight into the archive when a session starts with
seeding enabled. Ages are relative to the session's start time.
"""
