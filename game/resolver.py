"""Store-bound phase resolution with a compare-and-swap guard.

The store only needs ``read(game_id)`` and
``update(game_id, fields, expected=None) -> bool``.

Players are written per field (``players.<uid>.alive``, ``players.<uid>.points``)
so a join, leave or rename landing in the same phase is never overwritten.
"""

import logging
from typing import Any

from game.config import DEFAULT_CONFIG, GameConfig
from game.engine import resolve_phase
from game.state import Game

logger = logging.getLogger(__name__)

# Game-level fields a resolution rewrites as a whole
RESOLUTION_FIELDS = (
    "actions",
    "votes",
    "events",
    "state",
    "phase_start_time",
    "phase_duration",
    "winner",
)
# Player fields a resolution may change
PLAYER_FIELDS = ("alive", "points")

_MAX_ATTEMPTS = 5


def phase_guard(game: Game) -> dict[str, Any]:
    """Expected values that pin a write to the phase it was computed from."""
    return {"state": game.state, "phase_start_time": game.phase_start_time}


def _player_changes(before: Game, after: Game) -> tuple[dict[str, Any], dict[str, Any]]:
    """Dotted writes for changed player fields, and the prior values they expect."""
    fields: dict[str, Any] = {}
    expected: dict[str, Any] = {}
    for uid, player in after.players.items():
        old = before.players[uid]
        for name in PLAYER_FIELDS:
            value = getattr(player, name)
            if value != getattr(old, name):
                path = f"players.{uid}.{name}"
                fields[path] = value
                expected[path] = getattr(old, name)
    return fields, expected


def _commit(store: Any, game: Game, now: int, config: GameConfig) -> bool:
    game_id = game.game_id
    guard = phase_guard(game)
    for _ in range(_MAX_ATTEMPTS):
        resolved = resolve_phase(game, now, config)
        if resolved is None:
            logger.debug("Game %s in state %s; nothing to resolve", game.game_id, game.state.value)
            return False
        fields = {name: getattr(resolved, name) for name in RESOLUTION_FIELDS}
        player_fields, player_expected = _player_changes(game, resolved)
        fields.update(player_fields)
        if store.update(game_id, fields, expected={**guard, **player_expected}):
            logger.info(
                "Game %s resolved %s -> %s (round %d)",
                game_id,
                game.state.value,
                resolved.state.value,
                resolved.round,
            )
            return True
        # Either the phase moved on, or a player changed under us; only the latter retries
        game = store.read(game_id)
        if game is None or phase_guard(game) != guard:
            logger.debug("Game %s: %s already resolved elsewhere, discarding", game_id, guard["state"].value)
            return False
    logger.warning("Game %s: gave up resolving %s after %d attempts", game_id, guard["state"].value, _MAX_ATTEMPTS)
    return False


def resolve(store: Any, game_id: str, now: int, config: GameConfig = DEFAULT_CONFIG) -> bool:
    """
    Resolve the current phase of game_id. Returns True if this call committed
    the transition, False if there was nothing to resolve or another resolution
    got there first. Store failures propagate.
    """
    game = store.read(game_id)
    if game is None:
        return False
    return _commit(store, game, now, config)


def resolve_if_expired(store: Any, game_id: str, now: int, config: GameConfig = DEFAULT_CONFIG) -> bool:
    """Like resolve, but only once the phase deadline has passed."""
    game = store.read(game_id)
    if game is None or not game.is_expired(now):
        return False
    return _commit(store, game, now, config)
