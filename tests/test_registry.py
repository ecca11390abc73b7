from dataclasses import replace

import pytest

from quickride.models import Collection, RideStatus
from quickride.registry import RideRegistry

from conftest import ids


@pytest.fixture
def registry(make_ride):
    registry = RideRegistry()
    for ride_id in ("r1", "r2", "r3"):
        registry.insert_active(make_ride(ride_id))
    return registry


def test_insert_active_puts_newest_first(registry):
    assert ids(registry.active) == ["r3", "r2", "r1"]
    assert registry.archive_rides == ()
    assert len(registry) == 3


def test_duplicate_ids_are_rejected_across_collections(registry, make_ride):
    with pytest.raises(ValueError):
        registry.insert_active(make_ride("r1"))

    registry.archive("r2", lambda r: replace(r, status=RideStatus.FINISHED))
    with pytest.raises(ValueError):
        registry.insert_archive(make_ride("r2"))


def test_archive_moves_ride_to_head_of_archive(registry, make_ride):
    registry.insert_archive(make_ride("old"))

    archived = registry.archive("r2", lambda r: replace(r, status=RideStatus.FINISHED, distance_km=None))

    assert archived.status == RideStatus.FINISHED
    assert ids(registry.active) == ["r3", "r1"]
    assert ids(registry.archive_rides) == ["r2", "old"]
    assert registry.find_by_id("r2") == archived
    assert registry.locate("r2") == Collection.ARCHIVE
    assert len(registry) == 4


def test_archive_finalizes_the_live_entry(registry):
    stale = registry.find_by_id("r2")
    registry.update_by_id(Collection.ACTIVE, "r2", lambda r: replace(r, distance_km=0.1))

    registry.archive("r2", lambda r: replace(r, status=RideStatus.FINISHED))

    archived = registry.find_by_id("r2")
    assert archived.distance_km == 0.1
    assert archived != replace(stale, status=RideStatus.FINISHED)


def test_archive_refuses_id_changes(registry):
    with pytest.raises(ValueError):
        registry.archive("r1", lambda r: replace(r, id="other"))
    assert registry.locate("r1") == Collection.ACTIVE


def test_archive_of_missing_ride_is_a_noop(registry):
    assert registry.archive("ghost") is None
    assert len(registry) == 3
    assert registry.archive_rides == ()


def test_update_by_id_keeps_position(registry):
    updated = registry.update_by_id(Collection.ACTIVE, "r2", lambda r: replace(r, distance_km=1.0))

    assert updated.distance_km == 1.0
    assert ids(registry.active) == ["r3", "r2", "r1"]
    assert registry.find_by_id("r2").distance_km == 1.0


def test_update_by_id_is_scoped_to_the_collection(registry):
    assert registry.update_by_id(Collection.ARCHIVE, "r2", lambda r: replace(r, distance_km=1.0)) is None
    assert registry.find_by_id("r2").distance_km == 3.0


def test_update_by_id_missing_ride_does_not_call_mutator(registry):
    calls = []
    assert registry.update_by_id(Collection.ACTIVE, "ghost", calls.append) is None
    assert calls == []


def test_update_by_id_refuses_id_changes(registry):
    with pytest.raises(ValueError):
        registry.update_by_id(Collection.ACTIVE, "r1", lambda r: replace(r, id="other"))


def test_remove_by_id_from_either_collection(registry):
    registry.archive("r1", lambda r: replace(r, status=RideStatus.FINISHED))

    assert registry.remove_by_id("r1").id == "r1"
    assert registry.remove_by_id("r3").id == "r3"
    assert registry.remove_by_id("r3") is None

    assert ids(registry.active) == ["r2"]
    assert registry.archive_rides == ()
    assert "r1" not in registry
    assert "r2" in registry


def test_snapshots_are_detached(registry, make_ride):
    snapshot = registry.active
    registry.insert_active(make_ride("r4"))
    assert ids(snapshot) == ["r3", "r2", "r1"]
