"""Phase-resolution core for Night Falls."""

from game.config import DEFAULT_CONFIG, GameConfig
from game.engine import (
    add_player,
    assign_roles,
    check_win,
    create_game,
    evaluate_winner,
    has_next_round,
    next_round,
    pending_bot_turns,
    remove_player,
    resolve_day,
    resolve_night,
    resolve_phase,
    start_game,
    submit_action,
    submit_vote,
)
from game.errors import GameRuleError, StoreError
from game.resolver import resolve, resolve_if_expired
from game.rules import EventType, GameStatus, Role, Winner
from game.session import HostSession, now_ms
from game.state import Game, LogEvent, NightAction, Player
from game.tally import DayTally, NightTally, plurality, tally_day, tally_night

__all__ = [
    "DEFAULT_CONFIG",
    "GameConfig",
    "add_player",
    "assign_roles",
    "check_win",
    "create_game",
    "evaluate_winner",
    "has_next_round",
    "next_round",
    "pending_bot_turns",
    "remove_player",
    "resolve_day",
    "resolve_night",
    "resolve_phase",
    "start_game",
    "submit_action",
    "submit_vote",
    "GameRuleError",
    "StoreError",
    "resolve",
    "resolve_if_expired",
    "EventType",
    "GameStatus",
    "Role",
    "Winner",
    "HostSession",
    "now_ms",
    "Game",
    "LogEvent",
    "NightAction",
    "Player",
    "DayTally",
    "NightTally",
    "plurality",
    "tally_day",
    "tally_night",
]
