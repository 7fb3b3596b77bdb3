"""Game configuration, read from the environment."""

import os
from dataclasses import dataclass

ENV_TOTAL_ROUNDS = "MAFIA_TOTAL_ROUNDS"
ENV_NIGHT_DURATION_MS = "MAFIA_NIGHT_DURATION_MS"
ENV_DAY_DURATION_MS = "MAFIA_DAY_DURATION_MS"
ENV_BOT_DELAY_MS = "MAFIA_BOT_DELAY_MS"
ENV_MAX_PLAYERS = "MAFIA_MAX_PLAYERS"
ENV_PRIVATE_DETECTIVE = "MAFIA_PRIVATE_DETECTIVE"
ENV_AUTO_RESOLVE = "MAFIA_AUTO_RESOLVE"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class GameConfig:
    """Settings fixed for the lifetime of a game."""

    total_rounds: int = 5
    night_duration_ms: int = 45000
    day_duration_ms: int = 60000
    bot_delay_ms: int = 2000
    max_players: int = 20
    # Detective results go to the detective only instead of the public log
    private_detective_results: bool = False
    # Run a host session (timers and bots) for every started game
    auto_resolve: bool = True

    @classmethod
    def from_env(cls) -> "GameConfig":
        """Build config from MAFIA_* env vars; unset vars keep their defaults."""
        defaults = cls()
        return cls(
            total_rounds=_env_int(ENV_TOTAL_ROUNDS, defaults.total_rounds),
            night_duration_ms=_env_int(ENV_NIGHT_DURATION_MS, defaults.night_duration_ms),
            day_duration_ms=_env_int(ENV_DAY_DURATION_MS, defaults.day_duration_ms),
            bot_delay_ms=_env_int(ENV_BOT_DELAY_MS, defaults.bot_delay_ms),
            max_players=_env_int(ENV_MAX_PLAYERS, defaults.max_players),
            private_detective_results=_env_bool(ENV_PRIVATE_DETECTIVE, defaults.private_detective_results),
            auto_resolve=_env_bool(ENV_AUTO_RESOLVE, defaults.auto_resolve),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


DEFAULT_CONFIG = GameConfig()
