"""Tests for store-bound phase resolution and its double-resolution guard."""

import pytest

from api.game_store import GameStore
from game.errors import StoreError
from game.resolver import phase_guard, resolve, resolve_if_expired
from game.rules import EventType, GameStatus, Role, Winner
from game.state import Game, NightAction, Player


def _make_game() -> Game:
    game = Game(
        game_id="g1",
        code="1234",
        host_uid="p1",
        total_rounds=5,
        state=GameStatus.NIGHT,
        phase_start_time=1000,
        phase_duration=45000,
    )
    for uid, role in (("p1", Role.MAFIA), ("p2", Role.VILLAGER), ("p3", Role.VILLAGER)):
        game.players[uid] = Player(uid=uid, name=uid.upper(), role=role)
    game.actions["p1"] = NightAction(role=Role.MAFIA, target="p2", timestamp=1500)
    return game


class StaleReadStore(GameStore):
    """Hands every reader the snapshot taken at the first read, like two hosts racing."""

    def __init__(self):
        super().__init__()
        self._snapshot = None

    def read(self, game_id):
        if self._snapshot is None:
            self._snapshot = super().read(game_id)
        return self._snapshot


class BrokenStore(GameStore):
    def update(self, game_id, fields, expected=None):
        raise StoreError("connection lost")


def test_resolve_commits_transition():
    store = GameStore()
    store.create(_make_game())
    assert resolve(store, "g1", now=46000)
    game = store.read("g1")
    assert game.state == GameStatus.RESULTS
    assert game.winner == Winner.MAFIA
    assert not game.players["p2"].alive
    assert game.events[0].type == EventType.DEATH
    assert game.phase_start_time == 46000


def test_double_resolution_applies_once():
    store = StaleReadStore()
    store.create(_make_game())
    assert resolve(store, "g1", now=46000)
    assert not resolve(store, "g1", now=46001)
    game = GameStore.read(store, "g1")
    assert len(game.events) == 1
    assert game.players["p1"].points == 15


def test_resolve_if_expired_waits_for_deadline():
    store = GameStore()
    store.create(_make_game())
    assert not resolve_if_expired(store, "g1", now=45999)
    assert store.read("g1").state == GameStatus.NIGHT
    assert resolve_if_expired(store, "g1", now=46000)
    assert store.read("g1").state != GameStatus.NIGHT


def test_resolve_no_op_for_lobby_and_missing_game():
    store = GameStore()
    game = _make_game()
    game.state = GameStatus.LOBBY
    store.create(game)
    assert not resolve(store, "g1", now=99999)
    assert store.read("g1").events == []
    assert not resolve(store, "missing", now=1)


def test_store_failure_propagates():
    store = BrokenStore()
    store.create(_make_game())
    with pytest.raises(StoreError):
        resolve(store, "g1", now=46000)
    assert store.read("g1").state == GameStatus.NIGHT


class LeaveAfterReadStore(GameStore):
    """Lets one player leave right after the first read, as the leave route would write it."""

    def __init__(self, leaver):
        super().__init__()
        self.leaver = leaver
        self.left = False

    def read(self, game_id):
        game = super().read(game_id)
        if game is not None and not self.left:
            self.left = True
            uid = self.leaver
            assert self.update(
                game_id,
                {f"players.{uid}": None, f"actions.{uid}": None, f"votes.{uid}": None},
                expected=phase_guard(game),
            )
        return game


def _make_crowded_game(mafia_target: str) -> Game:
    game = _make_game()
    for uid in ("p4", "p5"):
        game.players[uid] = Player(uid=uid, name=uid.upper(), role=Role.VILLAGER)
    game.actions["p1"] = NightAction(role=Role.MAFIA, target=mafia_target, timestamp=1500)
    return game


def test_leave_during_resolution_is_kept():
    store = LeaveAfterReadStore("p5")
    store.create(_make_crowded_game("p2"))
    assert resolve(store, "g1", now=46000)
    game = store.read("g1")
    assert "p5" not in game.players
    assert not game.players["p2"].alive
    assert game.state == GameStatus.DAY


def test_victim_leaving_during_resolution_makes_a_quiet_night():
    store = LeaveAfterReadStore("p5")
    store.create(_make_crowded_game("p5"))
    assert resolve(store, "g1", now=46000)
    game = store.read("g1")
    assert "p5" not in game.players
    assert all(p.alive for p in game.players.values())
    assert [e.type for e in game.events] == [EventType.INFO]
    assert game.state == GameStatus.DAY


class StaleSnapshot:
    """Store wrapper whose reads return a fixed snapshot; writes go through."""

    def __init__(self, store, snapshot):
        self.store = store
        self.snapshot = snapshot

    def read(self, game_id):
        return self.snapshot

    def update(self, game_id, fields, expected=None):
        return self.store.update(game_id, fields, expected=expected)


def test_rename_during_phase_survives_resolution():
    store = GameStore()
    store.create(_make_crowded_game("p2"))
    stale = store.read("g1")
    store.update("g1", {"players.p4.name": "Renamed"}, expected=phase_guard(stale))
    assert resolve(StaleSnapshot(store, stale), "g1", now=46000)
    assert store.read("g1").players["p4"].name == "Renamed"
