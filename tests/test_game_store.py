"""Tests for the in-memory game store."""

import random

import pytest

from api.game_store import GameStore
from game.errors import StoreError
from game.rules import GameStatus, Role
from game.state import Game, NightAction, Player


def _make_store() -> GameStore:
    store = GameStore()
    game = Game(game_id="g1", code="1234", host_uid="a", total_rounds=5, state=GameStatus.NIGHT)
    game.players["a"] = Player(uid="a", name="A", role=Role.MAFIA)
    game.players["b"] = Player(uid="b", name="B", role=Role.VILLAGER)
    store.create(game)
    return store


def test_read_returns_copy():
    store = _make_store()
    game = store.read("g1")
    game.players["a"].alive = False
    assert store.read("g1").players["a"].alive
    assert store.read("missing") is None


def test_create_duplicate_raises():
    store = _make_store()
    with pytest.raises(StoreError):
        store.create(store.read("g1"))


def test_update_dotted_paths():
    store = _make_store()
    action = NightAction(role=Role.MAFIA, target="b", timestamp=5)
    assert store.update("g1", {"actions.a": action, "players.b.points": 3})
    game = store.read("g1")
    assert game.actions["a"] == action
    assert game.players["b"].points == 3
    assert store.update("g1", {"actions.a": None})
    assert store.read("g1").actions == {}


def test_update_with_stale_expectation_writes_nothing():
    store = _make_store()
    assert not store.update("g1", {"state": GameStatus.DAY}, expected={"state": GameStatus.LOBBY})
    assert store.read("g1").state == GameStatus.NIGHT
    assert store.update("g1", {"state": GameStatus.DAY}, expected={"state": GameStatus.NIGHT, "phase_start_time": 0})
    assert store.read("g1").state == GameStatus.DAY


def test_update_is_all_or_nothing():
    store = _make_store()
    with pytest.raises(StoreError):
        store.update("g1", {"state": GameStatus.DAY, "bogus": 1})
    assert store.read("g1").state == GameStatus.NIGHT
    with pytest.raises(StoreError):
        store.update("g1", {"players.nobody.alive": False})


def test_update_missing_game_raises():
    with pytest.raises(StoreError):
        GameStore().update("nope", {"state": GameStatus.DAY})


def test_subscribe_and_unsubscribe():
    store = _make_store()
    seen = []
    unsubscribe = store.subscribe("g1", seen.append)
    store.update("g1", {"round": 2})
    assert len(seen) == 1
    assert seen[0].round == 2
    unsubscribe()
    store.update("g1", {"round": 3})
    assert len(seen) == 1


def test_delete_notifies_none():
    store = _make_store()
    seen = []
    store.subscribe("g1", seen.append)
    store.delete("g1")
    assert seen == [None]
    assert store.read("g1") is None
    assert store.list_games() == []


def test_failing_listener_does_not_break_write():
    store = _make_store()
    seen = []

    def broken(_game):
        raise RuntimeError("boom")

    store.subscribe("g1", broken)
    store.subscribe("g1", seen.append)
    assert store.update("g1", {"round": 2})
    assert store.read("g1").round == 2
    assert len(seen) == 1


def test_find_by_code_and_generate_code():
    store = _make_store()
    assert store.find_by_code("1234").game_id == "g1"
    assert store.find_by_code("9999") is None
    codes = {store.generate_code(random.Random(i)) for i in range(50)}
    assert "1234" not in codes
    assert all(len(c) == 4 and c.isdigit() for c in codes)
