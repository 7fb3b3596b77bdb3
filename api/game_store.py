"""In-memory game store with conditional writes and change notifications.

Writes take a map of field paths to values. A path is a Game attribute,
optionally followed by dotted keys into it (``actions.<uid>``,
``players.<uid>.alive``). Setting a mapping key to None removes it. All fields
of one update are applied together or not at all.
"""

import copy
import logging
import random
import threading
from typing import Any, Callable, Optional

from game.errors import StoreError
from game.rules import CODE_MAX, CODE_MIN
from game.state import Game

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[Game]], None]

_MISSING = object()
_MAX_CODE_ATTEMPTS = 100


def _get_path(game: Game, path: str) -> Any:
    obj: Any = game
    for part in path.split("."):
        if isinstance(obj, dict):
            obj = obj.get(part, _MISSING)
        else:
            obj = getattr(obj, part, _MISSING)
        if obj is _MISSING:
            return None
    return obj


def _set_path(game: Game, path: str, value: Any) -> None:
    head, *rest = path.split(".")
    if not hasattr(game, head):
        raise StoreError(f"Unknown field {head!r}")
    if not rest:
        setattr(game, head, copy.deepcopy(value))
        return
    obj: Any = getattr(game, head)
    for part in rest[:-1]:
        obj = obj.get(part) if isinstance(obj, dict) else getattr(obj, part, None)
        if obj is None:
            raise StoreError(f"Path {path!r} does not exist")
    last = rest[-1]
    if isinstance(obj, dict):
        if value is None:
            obj.pop(last, None)
        else:
            obj[last] = copy.deepcopy(value)
    elif hasattr(obj, last):
        setattr(obj, last, copy.deepcopy(value))
    else:
        raise StoreError(f"Path {path!r} does not exist")


class GameStore:
    """Holds one Game per id. Readers always get copies, never the stored object."""

    def __init__(self) -> None:
        self._games: dict[str, Game] = {}
        self._listeners: dict[str, list[Listener]] = {}
        self._lock = threading.RLock()

    def create(self, game: Game) -> None:
        with self._lock:
            if game.game_id in self._games:
                raise StoreError(f"Game {game.game_id} already exists")
            self._games[game.game_id] = copy.deepcopy(game)
            snapshot = copy.deepcopy(game)
        self._notify(game.game_id, snapshot)

    def read(self, game_id: str) -> Optional[Game]:
        with self._lock:
            game = self._games.get(game_id)
            return copy.deepcopy(game) if game is not None else None

    def update(
        self,
        game_id: str,
        fields: dict[str, Any],
        expected: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Apply fields to the stored game. When expected is given, the write only
        happens if every expected path still holds its value; otherwise nothing
        is written and False is returned.
        """
        with self._lock:
            current = self._games.get(game_id)
            if current is None:
                raise StoreError(f"Game {game_id} not found")
            for path, value in (expected or {}).items():
                if _get_path(current, path) != value:
                    return False
            updated = copy.deepcopy(current)
            for path, value in fields.items():
                _set_path(updated, path, value)
            self._games[game_id] = updated
            snapshot = copy.deepcopy(updated)
        self._notify(game_id, snapshot)
        return True

    def delete(self, game_id: str) -> None:
        with self._lock:
            existed = self._games.pop(game_id, None) is not None
        if existed:
            self._notify(game_id, None)

    def subscribe(self, game_id: str, listener: Listener) -> Callable[[], None]:
        """Register listener for full snapshots of game_id. Returns an unsubscribe callable."""
        with self._lock:
            self._listeners.setdefault(game_id, []).append(listener)

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(game_id, [])
                if listener in listeners:
                    listeners.remove(listener)
                if not listeners:
                    self._listeners.pop(game_id, None)

        return unsubscribe

    def find_by_code(self, code: str) -> Optional[Game]:
        with self._lock:
            for game in self._games.values():
                if game.code == code:
                    return copy.deepcopy(game)
        return None

    def list_games(self) -> list[str]:
        with self._lock:
            return list(self._games.keys())

    def generate_code(self, rng: Optional[random.Random] = None) -> str:
        """Return a 4-digit code not used by any stored game."""
        rng = rng or random.Random()
        with self._lock:
            used = {g.code for g in self._games.values()}
        if len(used) > CODE_MAX - CODE_MIN:
            raise StoreError("No free game codes")
        for _ in range(_MAX_CODE_ATTEMPTS):
            code = str(rng.randint(CODE_MIN, CODE_MAX))
            if code not in used:
                return code
        free = [str(c) for c in range(CODE_MIN, CODE_MAX + 1) if str(c) not in used]
        return rng.choice(free)

    def _notify(self, game_id: str, snapshot: Optional[Game]) -> None:
        with self._lock:
            listeners = list(self._listeners.get(game_id, []))
        for listener in listeners:
            try:
                listener(copy.deepcopy(snapshot))
            except Exception:
                logger.warning("Listener for game %s failed", game_id, exc_info=True)
