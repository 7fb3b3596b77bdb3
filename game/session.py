"""Host session: drives phase timers and bot turns for one game.

The session watches the store. Each time it observes a new phase it cancels
whatever it scheduled for the previous one, then schedules a resolution timer
at the phase deadline and a bot turn a little after the phase starts.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from game.config import DEFAULT_CONFIG, GameConfig
from game.engine import pending_bot_turns, submit_action, submit_vote
from game.errors import GameRuleError
from game.resolver import phase_guard, resolve_if_expired
from game.rules import GameStatus
from game.state import Game

logger = logging.getLogger(__name__)

PhaseKey = tuple[GameStatus, int]


def now_ms() -> int:
    """Wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


class HostSession:
    """Resolution authority for one game, bound to the event loop it was started on."""

    def __init__(
        self,
        store: Any,
        game_id: str,
        policy: Any = None,
        config: GameConfig = DEFAULT_CONFIG,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.game_id = game_id
        self.policy = policy
        self.config = config
        self.clock = clock
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._phase_key: Optional[PhaseKey] = None
        self._timer: Optional[asyncio.Task] = None
        self._bot_task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._loop is not None and not self._stopped

    @property
    def phase_key(self) -> Optional[PhaseKey]:
        return self._phase_key

    def start(self) -> None:
        """Subscribe to the game and schedule work for its current phase. Needs a running loop."""
        self._loop = asyncio.get_running_loop()
        self._unsubscribe = self.store.subscribe(self.game_id, self._on_change)
        self._observe(self.store.read(self.game_id))

    def stop(self) -> None:
        self._stopped = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._cancel()

    def _on_change(self, game: Optional[Game]) -> None:
        # Store writes may come from worker threads; hop onto our loop
        if self._stopped or self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._observe, game)

    def _cancel(self) -> None:
        for task in (self._timer, self._bot_task):
            if task is not None and not task.done():
                task.cancel()
        self._timer = None
        self._bot_task = None

    def _observe(self, game: Optional[Game]) -> None:
        if self._stopped:
            return
        if game is None:
            logger.info("Game %s deleted; stopping host session", self.game_id)
            self.stop()
            return
        key = (game.state, game.phase_start_time)
        if key == self._phase_key:
            return
        self._phase_key = key
        self._cancel()
        if game.state not in (GameStatus.NIGHT, GameStatus.DAY):
            return
        self._timer = self._loop.create_task(self._run_timer(game.deadline))
        if self.policy is not None and pending_bot_turns(game):
            self._bot_task = self._loop.create_task(self._run_bots(key))

    async def _run_timer(self, deadline: int) -> None:
        remaining = deadline - self.clock()
        while remaining > 0:
            await asyncio.sleep(remaining / 1000)
            remaining = deadline - self.clock()
        try:
            resolve_if_expired(self.store, self.game_id, self.clock(), self.config)
        except Exception:
            logger.exception("Game %s: phase resolution failed", self.game_id)

    async def _run_bots(self, key: PhaseKey) -> None:
        await asyncio.sleep(self.config.bot_delay_ms / 1000)
        try:
            game = self.store.read(self.game_id)
            if game is None or (game.state, game.phase_start_time) != key:
                return
            for bot in pending_bot_turns(game):
                target = await asyncio.to_thread(self.policy.choose_target, game, bot, game.state)
                if target is None:
                    continue
                if not self._submit_bot_turn(game, bot.uid, target):
                    return
        except Exception:
            logger.exception("Game %s: bot turns failed", self.game_id)

    def _submit_bot_turn(self, game: Game, uid: str, target: str) -> bool:
        """Write one bot choice, pinned to the phase it was made in. False once that phase is gone."""
        try:
            if game.state == GameStatus.NIGHT:
                path = f"actions.{uid}"
                value: Any = submit_action(game, uid, target, self.clock()).actions[uid]
            else:
                path = f"votes.{uid}"
                value = submit_vote(game, uid, target).votes[uid]
        except GameRuleError as e:
            logger.warning("Game %s: bot %s chose invalid target %s: %s", self.game_id, uid, target, e)
            return True
        return self.store.update(self.game_id, {path: value}, expected=phase_guard(game))
