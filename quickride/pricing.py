# quickride/pricing.py
"""
Fare estimate shown to the passenger before confirming a ride.

There is no routing backend, so the estimate is a random base fare scaled
by the vehicle category: motorcycles are cheaper, SUVs pricier.
"""

from __future__ import annotations

import random
from typing import Dict

from . import config
from .models import RideCategory


def get_category_multiplier(category: RideCategory) -> float:
    """
    Fare multiplier for a category.

    Args:
        category: Ride category

    Returns:
        Multiplier (0.7 for MOTO, 1.0 for CARRO, 1.5 for SUV by default)
    """
    multipliers: Dict[str, float] = config.CATEGORY_FARE_MULTIPLIERS
    return multipliers.get(category.name, 1.0)


def estimate_fare(category: RideCategory, rng: random.Random) -> float:
    """
    Draw a fare estimate in BRL, rounded to cents.

    fare = (FARE_BASE_MIN + U[0, 1) * FARE_BASE_SPREAD) * category multiplier
    """
    base = config.FARE_BASE_MIN + rng.random() * config.FARE_BASE_SPREAD
    return round(base * get_category_multiplier(category), 2)
