"""Game state types for Night Falls."""

from dataclasses import dataclass, field
from typing import Optional

from game.rules import EventType, GameStatus, Role, Winner


@dataclass
class Player:
    """A participant in the game, human or bot."""

    uid: str
    name: str
    avatar: str = ""
    is_bot: bool = False
    role: Optional[Role] = None
    alive: bool = True
    points: int = 0


@dataclass
class NightAction:
    """One role action submitted during the night."""

    role: Role
    target: str
    timestamp: int


@dataclass
class LogEvent:
    """A single entry in the game log. Never edited once appended."""

    type: EventType
    message: str
    timestamp: int
    visible_to: Optional[str] = None  # uid of the only viewer, None if public


@dataclass
class Game:
    """Full record of one session."""

    game_id: str
    code: str
    host_uid: str
    total_rounds: int
    state: GameStatus = GameStatus.LOBBY
    round: int = 1
    players: dict[str, Player] = field(default_factory=dict)
    actions: dict[str, NightAction] = field(default_factory=dict)
    votes: dict[str, str] = field(default_factory=dict)
    events: list[LogEvent] = field(default_factory=list)
    phase_start_time: int = 0
    phase_duration: int = 0
    winner: Optional[Winner] = None
    created_at: int = 0

    @property
    def deadline(self) -> int:
        """Instant (ms) at which the current phase expires."""
        return self.phase_start_time + self.phase_duration

    def is_expired(self, now: int) -> bool:
        return now >= self.deadline

    def get_player(self, uid: str) -> Optional[Player]:
        """Return player by uid or None."""
        return self.players.get(uid)

    def is_alive(self, uid: str) -> bool:
        player = self.players.get(uid)
        return player is not None and player.alive

    def sorted_players(self) -> list[Player]:
        """Players ordered by uid, the order used for assignment and tallies."""
        return [self.players[uid] for uid in sorted(self.players)]

    def alive_players(self) -> list[Player]:
        return [p for p in self.sorted_players() if p.alive]

    def alive_by_role(self, role: Role) -> list[Player]:
        """Return alive players with the given role."""
        return [p for p in self.alive_players() if p.role == role]

    def visible_events(self, viewer_uid: Optional[str]) -> list[LogEvent]:
        """Events a given participant may see: public ones plus their own private ones."""
        return [e for e in self.events if e.visible_to is None or e.visible_to == viewer_uid]
