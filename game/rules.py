"""Game rules and constants for Night Falls."""

from enum import Enum


class Role(str, Enum):
    """Player roles in the game."""

    VILLAGER = "villager"
    DOCTOR = "doctor"
    DETECTIVE = "detective"
    MAFIA = "mafia"


class GameStatus(str, Enum):
    """Lifecycle state of a game record."""

    LOBBY = "lobby"
    NIGHT = "night"
    DAY = "day"
    RESULTS = "results"


class Winner(str, Enum):
    """Winning side once a game reaches results."""

    MAFIA = "mafia"
    VILLAGERS = "villagers"


class EventType(str, Enum):
    """Type of log event."""

    DEATH = "death"
    SAVE = "save"
    INFO = "info"


# Roles that submit a night action
NIGHT_ROLES = (Role.MAFIA, Role.DOCTOR, Role.DETECTIVE)

# One mafia per this many players (at least one)
PLAYERS_PER_MAFIA = 5
DETECTIVE_MIN_PLAYERS = 5
DOCTOR_MIN_PLAYERS = 6

# Points awarded when a side wins
POINTS_VILLAGER_ALIVE = 10
POINTS_VILLAGER_DEAD = 5
POINTS_MAFIA_ALIVE = 15

CODE_MIN = 1000
CODE_MAX = 9999
