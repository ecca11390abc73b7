# quickride/registry.py
"""
Ride Registry: the owned store of every ride in a session.

Rides live in exactly one of two ordered collections, most recent first:
- active: rides still in progress (WAITING / ACCEPTED)
- archive: rides that finished, or were seeded as past records

Every public method is one indivisible step. In particular ``archive``
moves a ride between collections without any intermediate state where it
is in both or in neither.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .models import Collection, RideRequest

logger = logging.getLogger(__name__)

RideMutator = Callable[[RideRequest], RideRequest]


class RideRegistry:
    """
    Holds the active collection and the historical archive.

    Attributes:
        active: Snapshot of in-progress rides, newest first
        archive_rides: Snapshot of archived rides, newest first
    """

    def __init__(self) -> None:
        self._collections: Dict[Collection, List[RideRequest]] = {
            Collection.ACTIVE: [],
            Collection.ARCHIVE: [],
        }

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def active(self) -> Tuple[RideRequest, ...]:
        return tuple(self._collections[Collection.ACTIVE])

    @property
    def archive_rides(self) -> Tuple[RideRequest, ...]:
        return tuple(self._collections[Collection.ARCHIVE])

    def snapshot(self, collection: Collection) -> Tuple[RideRequest, ...]:
        return tuple(self._collections[collection])

    def locate(self, ride_id: str) -> Optional[Collection]:
        """Which collection currently holds ``ride_id``, if any."""
        for collection, rides in self._collections.items():
            if any(ride.id == ride_id for ride in rides):
                return collection
        return None

    def find_by_id(self, ride_id: str) -> Optional[RideRequest]:
        """Look ``ride_id`` up across both collections."""
        for rides in self._collections.values():
            for ride in rides:
                if ride.id == ride_id:
                    return ride
        return None

    def __contains__(self, ride_id: object) -> bool:
        return isinstance(ride_id, str) and self.locate(ride_id) is not None

    def __len__(self) -> int:
        return sum(len(rides) for rides in self._collections.values())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def insert_active(self, ride: RideRequest) -> None:
        """Add a new ride at the head of the active collection."""
        self._insert(Collection.ACTIVE, ride)

    def insert_archive(self, ride: RideRequest) -> None:
        """Add a past record at the head of the archive (seeding only)."""
        self._insert(Collection.ARCHIVE, ride)

    def archive(self, ride_id: str,
                finalize: Optional[RideMutator] = None) -> Optional[RideRequest]:
        """
        Move ``ride_id`` from the active collection to the head of the archive.

        ``finalize`` is applied to the live entry in the same step, so any
        change made since the caller last read the ride is kept.

        Returns:
            The archived ride, or None if the ride is no longer active (e.g. cancelled)

        Raises:
            ValueError: If ``finalize`` changes the ride id
        """
        active = self._collections[Collection.ACTIVE]
        index = self._index_of(active, ride_id)
        if index is None:
            logger.debug(f"archive: ride {ride_id} is not active, nothing to move")
            return None
        ride = active[index]
        if finalize is not None:
            ride = finalize(ride)
            if ride.id != ride_id:
                raise ValueError(f"Finalizer changed ride id {ride_id} -> {ride.id}")
        del active[index]
        self._collections[Collection.ARCHIVE].insert(0, ride)
        return ride

    def update_by_id(self, collection: Collection, ride_id: str,
                     mutator: RideMutator) -> Optional[RideRequest]:
        """
        Replace the ride matching ``ride_id`` in ``collection`` with ``mutator(ride)``.

        The ride keeps its position in the collection.

        Args:
            collection: Which collection to look in
            ride_id: Target ride
            mutator: Pure function returning the updated ride

        Returns:
            The updated ride, or None if the ride is not in that collection

        Raises:
            ValueError: If the mutator changes the ride id
        """
        rides = self._collections[collection]
        index = self._index_of(rides, ride_id)
        if index is None:
            logger.debug(f"update_by_id: ride {ride_id} not in {collection.value}")
            return None
        updated = mutator(rides[index])
        if updated.id != ride_id:
            raise ValueError(f"Mutator changed ride id {ride_id} -> {updated.id}")
        rides[index] = updated
        return updated

    def remove_by_id(self, ride_id: str) -> Optional[RideRequest]:
        """Remove ``ride_id`` from whichever collection holds it. Returns the removed ride."""
        for rides in self._collections.values():
            index = self._index_of(rides, ride_id)
            if index is not None:
                return rides.pop(index)
        return None

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _insert(self, collection: Collection, ride: RideRequest) -> None:
        if self.locate(ride.id) is not None:
            raise ValueError(f"Duplicate ride id: {ride.id}")
        self._collections[collection].insert(0, ride)

    @staticmethod
    def _index_of(rides: List[RideRequest], ride_id: str) -> Optional[int]:
        for index, ride in enumerate(rides):
            if ride.id == ride_id:
                return index
        return None

    def __repr__(self) -> str:
        return (f"RideRegistry(active={len(self._collections[Collection.ACTIVE])}, "
                f"archive={len(self._collections[Collection.ARCHIVE])})")
