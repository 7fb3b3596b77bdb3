"""Tests for night and day tallies."""

from game.rules import GameStatus, Role
from game.state import Game, NightAction, Player
from game.tally import plurality, tally_day, tally_night


def _make_game(roles: dict[str, Role], state: GameStatus = GameStatus.NIGHT) -> Game:
    game = Game(game_id="g1", code="1234", host_uid="a", total_rounds=5, state=state)
    for uid, role in roles.items():
        game.players[uid] = Player(uid=uid, name=uid, role=role)
    return game


def _action(role: Role, target: str) -> NightAction:
    return NightAction(role=role, target=target, timestamp=0)


ROLES = {
    "a": Role.MAFIA,
    "b": Role.MAFIA,
    "c": Role.DOCTOR,
    "d": Role.DETECTIVE,
    "e": Role.VILLAGER,
    "f": Role.VILLAGER,
}


def test_plurality_first_to_reach_max_keeps_lead():
    assert plurality(["x", "y"]) == ("x", 1, True)
    assert plurality(["x", "y", "y", "x"]) == ("y", 2, True)
    assert plurality(["x", "y", "y"]) == ("y", 2, False)
    assert plurality([]) == (None, 0, False)


def test_night_tally_picks_roles():
    game = _make_game(ROLES)
    game.actions = {
        "a": _action(Role.MAFIA, "e"),
        "b": _action(Role.MAFIA, "e"),
        "c": _action(Role.DOCTOR, "c"),
        "d": _action(Role.DETECTIVE, "a"),
    }
    tally = tally_night(game)
    assert tally.mafia_target == "e"
    assert tally.doctor_target == "c"
    assert tally.detective_target == "a"
    assert tally.detective_uid == "d"


def test_night_tally_mafia_tie_is_deterministic():
    game = _make_game(ROLES)
    game.actions = {
        "b": _action(Role.MAFIA, "f"),
        "a": _action(Role.MAFIA, "e"),
    }
    reordered = _make_game(ROLES)
    reordered.actions = {
        "a": _action(Role.MAFIA, "e"),
        "b": _action(Role.MAFIA, "f"),
    }
    # Submitter "a" sorts first, so its target wins the tie either way
    assert tally_night(game).mafia_target == "e"
    assert tally_night(reordered) == tally_night(game)
    assert tally_night(game) == tally_night(game)


def test_night_tally_empty():
    tally = tally_night(_make_game(ROLES))
    assert tally.mafia_target is None
    assert tally.doctor_target is None
    assert tally.detective_target is None


def test_night_tally_ignores_dead_and_departed():
    game = _make_game(ROLES)
    game.players["c"].alive = False
    game.actions = {
        "a": _action(Role.MAFIA, "gone"),
        "c": _action(Role.DOCTOR, "e"),
        "z": _action(Role.DETECTIVE, "a"),
    }
    tally = tally_night(game)
    assert tally.mafia_target is None
    assert tally.doctor_target is None
    assert tally.detective_target is None


def test_day_tally_majority():
    game = _make_game(ROLES, state=GameStatus.DAY)
    game.votes = {"a": "e", "b": "e", "c": "a", "d": "e"}
    tally = tally_day(game)
    assert tally.eliminated == "e"
    assert tally.count == 3
    assert not tally.tied
    assert tally.counts == {"e": 3, "a": 1}


def test_day_tally_tie_means_no_elimination():
    game = _make_game(ROLES, state=GameStatus.DAY)
    game.votes = {"a": "e", "b": "e", "c": "a", "d": "a"}
    tally = tally_day(game)
    assert tally.eliminated is None
    assert tally.tied
    assert tally.count == 2


def test_day_tally_skips_invalid_votes():
    game = _make_game(ROLES, state=GameStatus.DAY)
    game.players["f"].alive = False
    game.votes = {"a": "gone", "f": "a", "c": "a"}
    tally = tally_day(game)
    assert tally.eliminated == "a"
    assert tally.counts == {"a": 1}


def test_day_tally_empty():
    tally = tally_day(_make_game(ROLES, state=GameStatus.DAY))
    assert tally.eliminated is None
    assert tally.count == 0
    assert not tally.tied
