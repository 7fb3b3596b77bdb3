"""Bot policies: pick one target for a bot that owes an action or vote.

A policy exposes ``choose_target(game, player, phase) -> uid | None``.
It may be called for a bot that has already submitted; it simply returns a
choice and the caller decides whether to use it.
"""

import logging
import random
from typing import Any, Optional

from game.rules import NIGHT_ROLES, GameStatus, Role
from game.state import Game, Player

from agents.bot_agent import get_target_agent
from agents.llm_config import default_llm_config, get_model_from_config
from agents.prompts import build_game_context, target_instructions

logger = logging.getLogger(__name__)

LLMConfig = dict[str, Any]


def candidate_targets(game: Game, player: Player, phase: GameStatus) -> list[str]:
    """Uids this player may sensibly target in the phase, in uid order."""
    if not player.alive:
        return []
    others = [p for p in game.alive_players() if p.uid != player.uid]
    if phase == GameStatus.NIGHT:
        if player.role not in NIGHT_ROLES:
            return []
        if player.role == Role.DOCTOR:
            return [p.uid for p in game.alive_players()]
        if player.role == Role.MAFIA:
            outsiders = [p.uid for p in others if p.role != Role.MAFIA]
            return outsiders or [p.uid for p in others]
        return [p.uid for p in others]
    if phase == GameStatus.DAY:
        if player.role == Role.MAFIA:
            outsiders = [p.uid for p in others if p.role != Role.MAFIA]
            return outsiders or [p.uid for p in others]
        return [p.uid for p in others]
    return []


class RandomBotPolicy:
    """Uniformly random choice among the candidate targets."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def choose_target(self, game: Game, player: Player, phase: GameStatus) -> Optional[str]:
        targets = candidate_targets(game, player, phase)
        if not targets:
            return None
        return self.rng.choice(targets)


class LLMBotPolicy:
    """Asks an LLM for the target; falls back to a random choice if that fails."""

    def __init__(
        self,
        llm_config: LLMConfig | None = None,
        fallback: RandomBotPolicy | None = None,
    ) -> None:
        self.llm_config = llm_config or default_llm_config()
        self.fallback = fallback or RandomBotPolicy()

    def _get_model(self) -> Any:
        return get_model_from_config(
            self.llm_config.get("provider", "openai"),
            self.llm_config.get("model"),
            self.llm_config.get("api_key"),
        )

    def choose_target(self, game: Game, player: Player, phase: GameStatus) -> Optional[str]:
        targets = candidate_targets(game, player, phase)
        if not targets:
            return None
        prompt = f"{build_game_context(game, player)}\n\n{target_instructions(player, phase, targets)}"
        try:
            result = get_target_agent().run_sync(prompt, model=self._get_model())
            if result.output and result.output.private_reason:
                logger.debug("Bot %s reasoning: %s", player.uid, result.output.private_reason)
            if result.output and result.output.target_id in targets:
                return result.output.target_id
            logger.warning(
                "Bot %s answered %r, not one of %s; picking random target",
                player.uid,
                result.output.target_id if result.output else None,
                targets,
            )
        except Exception as e:
            logger.warning("Bot %s target choice failed: %s; picking random target", player.uid, e)
        return self.fallback.choose_target(game, player, phase)
