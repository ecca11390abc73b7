import random
import sys

import pytest

from quickride import config
from quickride.engine import RideEngine
from quickride.models import Collection, EventKind, RideStatus, Sender

from conftest import FINISH, ids, set_distance


def test_cancel_removes_active_ride_without_archiving(engine, valid_params):
    ride_id = engine.request_ride(valid_params)

    assert engine.cancel(ride_id) is True
    assert engine.find(ride_id) is None
    assert engine.active_rides == ()
    assert engine.history == ()


def test_cancel_is_idempotent(engine, valid_params):
    ride_id = engine.request_ride(valid_params)
    assert engine.cancel(ride_id) is True
    assert engine.cancel(ride_id) is False
    assert engine.cancel("never-existed") is False
    assert engine.get_results()["cancelled_rides"] == 1


def test_cancel_deletes_finished_rides_from_history(engine, rng, valid_params):
    ride_id = engine.request_ride(valid_params)
    set_distance(engine, ride_id, config.MIN_DISTANCE_KM)
    rng.force(FINISH)
    engine.lifecycle.tick()
    assert engine.find(ride_id).status == RideStatus.FINISHED

    assert engine.cancel(ride_id) is True
    assert engine.history == ()


def test_cancel_closes_the_chat_bound_to_the_ride(engine, valid_params):
    ride_id = engine.request_ride(valid_params)
    events = []
    engine.subscribe(events.append)

    assert engine.open_chat(ride_id)
    assert engine.active_chat_ride.id == ride_id

    engine.cancel(ride_id)

    assert engine.active_chat_ride_id is None
    assert engine.active_chat_ride is None
    assert [e.kind for e in events] == [EventKind.RIDE_CANCELLED, EventKind.CHAT_CLOSED]


def test_cancel_leaves_other_chats_open(engine, valid_params):
    chatting = engine.request_ride(valid_params)
    other = engine.request_ride(valid_params)
    engine.open_chat(chatting)

    engine.cancel(other)

    assert engine.active_chat_ride_id == chatting


def test_open_chat_requires_an_existing_ride(engine):
    assert engine.open_chat("ghost") is False
    assert engine.active_chat_ride is None


def test_conservation_across_operations(engine, rng, valid_params):
    a = engine.request_ride(valid_params)
    b = engine.request_ride(valid_params)
    c = engine.request_ride(valid_params)
    assert len(engine.registry) == 3

    set_distance(engine, b, config.MIN_DISTANCE_KM)
    rng.force(FINISH)
    engine.lifecycle.tick()
    assert len(engine.registry) == 3
    assert ids(engine.history) == [b]

    engine.send_message(a, "oi")
    engine.advance(10)
    assert len(engine.registry) == 3

    engine.cancel(c)
    assert len(engine.registry) == 2
    assert not set(ids(engine.active_rides)) & set(ids(engine.history))


def test_subscribe_and_unsubscribe(engine, valid_params):
    events = []
    unsubscribe = engine.subscribe(events.append)

    ride_id = engine.request_ride(valid_params)
    unsubscribe()
    engine.cancel(ride_id)

    assert [(e.kind, e.ride_id) for e in events] == [(EventKind.RIDE_CREATED, ride_id)]
    unsubscribe()


def test_seed_history_fills_the_archive(rng):
    engine = RideEngine(rng=rng, start_time=1000.0, seed_history=True)

    assert engine.active_rides == ()
    (seeded,) = engine.history
    assert seeded.id == "sim-active-1"
    assert seeded.status == RideStatus.ACCEPTED
    assert seeded.distance_km == pytest.approx(1.2)
    assert seeded.created_at == pytest.approx(700.0)
    assert [m.sender for m in seeded.messages] == [Sender.DRIVER]

    engine.advance(config.TICK_PERIOD_SECONDS)
    assert engine.find("sim-active-1").distance_km == pytest.approx(1.15)

    engine.send_message("sim-active-1", "Já estou aqui")
    engine.advance(config.REPLY_DELAY_SECONDS)
    assert len(engine.find("sim-active-1").messages) == 3


def test_seed_history_rejects_malformed_entries(engine):
    with pytest.raises(ValueError) as excinfo:
        engine.seed_history([{"id": "broken"}])
    assert isinstance(excinfo.value.__cause__, KeyError)
    assert engine.history == ()


def test_sync_follows_wall_clock_but_never_rewinds(engine):
    engine.sync(8.0)
    assert engine.now == 8.0
    assert engine.lifecycle.ticks == 2

    assert engine.sync(3.0) == 0
    assert engine.now == 8.0


def test_snapshot_rows_are_display_ready(engine, valid_params):
    ride_id = engine.request_ride(valid_params)
    (row,) = engine.snapshot_rows(Collection.ACTIVE)

    assert row["id"] == ride_id
    assert row["CPF"] == "529.***.***-25"
    assert row["Status"] == "Aceita"
    assert row["Categoria"] == "Carro"
    assert row["Distância"].endswith(" km")
    assert row["Valor"].startswith("R$ ")
    assert engine.snapshot_rows(Collection.ARCHIVE) == []


def test_run_reports_session_kpis(valid_params):
    engine = RideEngine(rng=random.Random(3), start_time=0.0)
    engine.request_ride(valid_params)
    engine.send_message(engine.active_rides[0].id, "oi")

    results = engine.run(40, verbose=False)

    assert results["ticks"] == 10
    assert results["messages_exchanged"] == 2
    assert results["created_rides"] == 1
    assert results["active_rides"] + results["archived_rides"] == 1
    assert engine.now == 40.0


def test_run_verbose_prints_progress(engine, valid_params, capsys):
    engine.request_ride(valid_params)
    engine.run(8, verbose=True)
    out = capsys.readouterr().out
    assert "Tick 1" in out and "Tick 2" in out


def test_cli_runs_a_headless_session(monkeypatch, capsys):
    import main

    monkeypatch.setattr(sys, "argv", ["main.py", "--seed", "1", "--rides", "2",
                                      "--duration", "60", "--cancel", "1"])
    assert main.main() == 0

    out = capsys.readouterr().out
    assert "SESSION RESULTS" in out
    assert "Cancelled Rides" in out


def test_cli_rejects_bad_arguments(monkeypatch):
    import main

    monkeypatch.setattr(sys, "argv", ["main.py", "--finish-probability", "2"])
    assert main.main() == 1
