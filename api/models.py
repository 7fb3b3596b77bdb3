"""Pydantic request/response models for the API."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from game.engine import has_next_round
from game.rules import GameStatus
from game.state import Game

# Validation constants (no magic numbers in validation)
MAX_PLAYER_NAME_LENGTH = 50
MAX_AVATAR_LENGTH = 16
CODE_PATTERN = r"^\d{4}$"


class _NamedRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_PLAYER_NAME_LENGTH)
    uid: str | None = Field(default=None, description="Participant id; generated when omitted")
    avatar: str = Field(default="", max_length=MAX_AVATAR_LENGTH)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class GameCreateRequest(_NamedRequest):
    """Body for POST /games: the creator becomes host."""


class JoinRequest(_NamedRequest):
    """Body for POST /games/join."""

    code: str = Field(..., pattern=CODE_PATTERN)


class ParticipantRequest(BaseModel):
    """Body for routes that only need to know who is calling."""

    uid: str


class AddBotRequest(ParticipantRequest):
    """Body for POST /games/{id}/bots. uid is the host's."""

    name: str | None = Field(default=None, max_length=MAX_PLAYER_NAME_LENGTH)


class ActionRequest(ParticipantRequest):
    """Body for POST /games/{id}/action: a night action or a day vote, depending on the phase."""

    target: str


class JoinResponse(BaseModel):
    game_id: str
    code: str
    uid: str


class PlayerPublic(BaseModel):
    """Player as shown to one viewer: role only revealed to themself, when dead, or at results."""

    uid: str
    name: str
    avatar: str
    is_bot: bool
    alive: bool
    points: int
    role: str | None = Field(default=None)


class EventPublic(BaseModel):
    type: str
    message: str
    timestamp: int


class GameStateResponse(BaseModel):
    """Game state as seen by one participant."""

    game_id: str
    code: str
    host_uid: str
    state: str
    round: int
    total_rounds: int
    players: list[PlayerPublic]
    events: list[EventPublic]
    phase_start_time: int
    phase_duration: int
    winner: str | None = Field(default=None, description="mafia or villagers once state is results")
    submitted: list[str] = Field(
        default_factory=list,
        description="At night only the viewer's own uid once they have acted; by day every uid that has voted",
    )
    has_next_round: bool = False


def game_to_public(game: Game, viewer_uid: Optional[str] = None) -> GameStateResponse:
    """Build the viewer's response; hide roles of other alive players and others' private events."""
    reveal_all = game.state == GameStatus.RESULTS
    players_public = []
    for p in game.sorted_players():
        show_role = reveal_all or not p.alive or p.uid == viewer_uid
        players_public.append(
            PlayerPublic(
                uid=p.uid,
                name=p.name,
                avatar=p.avatar,
                is_bot=p.is_bot,
                alive=p.alive,
                points=p.points,
                role=p.role.value if (show_role and p.role) else None,
            )
        )
    events_public = [
        EventPublic(type=e.type.value, message=e.message, timestamp=e.timestamp)
        for e in game.visible_events(viewer_uid)
    ]
    if game.state == GameStatus.NIGHT:
        # Night submitters are visible only to themselves
        submitted = [viewer_uid] if viewer_uid in game.actions else []
    elif game.state == GameStatus.DAY:
        submitted = sorted(game.votes)
    else:
        submitted = []
    return GameStateResponse(
        game_id=game.game_id,
        code=game.code,
        host_uid=game.host_uid,
        state=game.state.value,
        round=game.round,
        total_rounds=game.total_rounds,
        players=players_public,
        events=events_public,
        phase_start_time=game.phase_start_time,
        phase_duration=game.phase_duration,
        winner=game.winner.value if game.winner else None,
        submitted=submitted,
        has_next_round=has_next_round(game),
    )
