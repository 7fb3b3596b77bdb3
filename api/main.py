"""FastAPI app: lobby, submissions and host-driven phase resolution."""

import logging
import os
import random
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from agents.policy import LLMBotPolicy, RandomBotPolicy
from api.game_store import GameStore
from api.models import (
    ActionRequest,
    AddBotRequest,
    GameCreateRequest,
    GameStateResponse,
    JoinRequest,
    JoinResponse,
    ParticipantRequest,
    game_to_public,
)
from game.config import GameConfig
from game.engine import (
    add_player,
    create_game,
    next_round,
    remove_player,
    start_game,
    submit_action,
    submit_vote,
)
from game.errors import GameRuleError, StoreError
from game.resolver import phase_guard, resolve
from game.rules import GameStatus
from game.session import HostSession, now_ms
from game.state import Game

logger = logging.getLogger(__name__)

ENV_BOT_POLICY = "MAFIA_BOT_POLICY"

AVATARS = ["👨", "👩", "👦", "👧", "🧔", "👴", "👵", "🧑"]
BOT_AVATAR = "🤖"
BOT_NAMES = ["Alice", "Bob", "Charlie", "Diana", "Eve", "Frank", "Grace", "Hank"]

# Fields written when a round is dealt (start or next round); the roster is pinned by the guard
DEAL_FIELDS = ("players", "actions", "votes", "events", "state", "round", "phase_start_time", "phase_duration", "winner")

config = GameConfig.from_env()
store = GameStore()
sessions: dict[str, HostSession] = {}


def _make_policy() -> Any:
    if os.environ.get(ENV_BOT_POLICY, "random").lower() == "llm":
        return LLMBotPolicy()
    return RandomBotPolicy()


def _stop_sessions() -> None:
    for session in list(sessions.values()):
        session.stop()
    sessions.clear()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    _stop_sessions()


app = FastAPI(title="Night Falls API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _load(game_id: str) -> Game:
    try:
        game = store.read(game_id)
    except StoreError as e:
        raise HTTPException(503, str(e))
    if game is None:
        raise HTTPException(404, "Game not found")
    return game


def _require_host(game: Game, uid: str) -> None:
    if game.host_uid != uid:
        raise HTTPException(403, "Only the host can do this")


def _write(game_id: str, fields: dict[str, Any], expected: dict[str, Any]) -> None:
    """Conditional write; 409 when the game moved on since it was read."""
    try:
        committed = store.update(game_id, fields, expected=expected)
    except StoreError as e:
        raise HTTPException(503, str(e))
    if not committed:
        raise HTTPException(409, "Game state changed; reload and retry")


def _respond(game_id: str, viewer_uid: str | None) -> GameStateResponse:
    return game_to_public(_load(game_id), viewer_uid)


def _random_bot_name(game: Game) -> str:
    used = {p.name for p in game.players.values()}
    available = [n for n in BOT_NAMES if n not in used]
    return random.choice(available) if available else "Bot"


def _ensure_session(game_id: str) -> None:
    """Start the host session for a game if auto-resolve is on and none is running."""
    if not config.auto_resolve:
        return
    session = sessions.get(game_id)
    if session is not None and session.running:
        return
    session = HostSession(store, game_id, policy=_make_policy(), config=config)
    sessions[game_id] = session
    session.start()


@app.post("/games", response_model=JoinResponse, tags=["Lobby"], summary="Create game")
def create_game_route(body: GameCreateRequest):
    """Create a lobby; the caller becomes its host."""
    uid = body.uid or uuid.uuid4().hex
    try:
        code = store.generate_code()
        game = create_game(
            uuid.uuid4().hex,
            code,
            uid,
            body.name,
            now_ms(),
            config,
            avatar=body.avatar or random.choice(AVATARS),
        )
        store.create(game)
    except StoreError as e:
        raise HTTPException(503, str(e))
    logger.info("Game %s created with code %s", game.game_id, code)
    return JoinResponse(game_id=game.game_id, code=code, uid=uid)


@app.post("/games/join", response_model=JoinResponse, tags=["Lobby"], summary="Join by code")
def join_game(body: JoinRequest):
    found = store.find_by_code(body.code)
    if found is None:
        raise HTTPException(404, "Game not found")
    uid = body.uid or uuid.uuid4().hex
    try:
        game = add_player(found, uid, body.name, body.avatar or random.choice(AVATARS), config=config)
    except GameRuleError as e:
        raise HTTPException(400, str(e))
    _write(found.game_id, {f"players.{uid}": game.players[uid]}, expected={"state": found.state})
    return JoinResponse(game_id=found.game_id, code=found.code, uid=uid)


@app.get("/games", response_model=list[str], tags=["Games"], summary="List game IDs")
def list_games_route():
    return store.list_games()


@app.get("/games/{game_id}", response_model=GameStateResponse, tags=["Games"], summary="Get game state")
def get_game(game_id: str, viewer: str | None = None):
    """Game state as seen by the viewer uid (roles of other alive players hidden)."""
    return _respond(game_id, viewer)


@app.delete("/games/{game_id}", tags=["Games"], summary="Delete game")
def delete_game(game_id: str, uid: str):
    game = _load(game_id)
    _require_host(game, uid)
    store.delete(game_id)
    session = sessions.pop(game_id, None)
    if session is not None:
        session.stop()
    return {"deleted": game_id}


@app.post("/games/{game_id}/bots", response_model=GameStateResponse, tags=["Lobby"], summary="Add bot")
def add_bot(game_id: str, body: AddBotRequest):
    game = _load(game_id)
    _require_host(game, body.uid)
    bot_uid = f"bot_{uuid.uuid4().hex[:8]}"
    try:
        updated = add_player(game, bot_uid, body.name or _random_bot_name(game), BOT_AVATAR, is_bot=True, config=config)
    except GameRuleError as e:
        raise HTTPException(400, str(e))
    _write(game_id, {f"players.{bot_uid}": updated.players[bot_uid]}, expected={"state": game.state})
    return _respond(game_id, body.uid)


@app.post("/games/{game_id}/leave", response_model=dict, tags=["Lobby"], summary="Leave game")
def leave_game(game_id: str, body: ParticipantRequest):
    """Remove the caller. The host keeps resolution authority even after leaving."""
    game = _load(game_id)
    try:
        remove_player(game, body.uid)
    except GameRuleError as e:
        raise HTTPException(400, str(e))
    # None removes the key; the player's action and vote go with them
    _write(
        game_id,
        {f"players.{body.uid}": None, f"actions.{body.uid}": None, f"votes.{body.uid}": None},
        expected=phase_guard(game),
    )
    return {"left": body.uid}


@app.post("/games/{game_id}/start", response_model=GameStateResponse, tags=["Games"], summary="Start game")
async def start_game_route(game_id: str, body: ParticipantRequest):
    """Assign roles and open the first night. Starts the host session."""
    game = _load(game_id)
    _require_host(game, body.uid)
    try:
        started = start_game(game, now_ms(), config)
    except GameRuleError as e:
        raise HTTPException(400, str(e))
    _write(
        game_id,
        {name: getattr(started, name) for name in DEAL_FIELDS},
        expected={"state": GameStatus.LOBBY, "players": game.players},
    )
    _ensure_session(game_id)
    return _respond(game_id, body.uid)


@app.post("/games/{game_id}/action", response_model=GameStateResponse, tags=["Games"], summary="Submit action or vote")
def submit(game_id: str, body: ActionRequest):
    """Night: role action. Day: vote. Resubmitting replaces the earlier choice."""
    game = _load(game_id)
    try:
        if game.state == GameStatus.NIGHT:
            updated = submit_action(game, body.uid, body.target, now_ms())
            fields: dict[str, Any] = {f"actions.{body.uid}": updated.actions[body.uid]}
        elif game.state == GameStatus.DAY:
            updated = submit_vote(game, body.uid, body.target)
            fields = {f"votes.{body.uid}": updated.votes[body.uid]}
        else:
            raise GameRuleError(f"No actions accepted in state {game.state.value}")
    except GameRuleError as e:
        raise HTTPException(400, str(e))
    _write(game_id, fields, expected=phase_guard(game))
    return _respond(game_id, body.uid)


@app.post("/games/{game_id}/resolve", response_model=GameStateResponse, tags=["Games"], summary="Resolve phase now")
def resolve_route(game_id: str, body: ParticipantRequest):
    """Host ends the current phase early. A duplicate or late call is a silent no-op."""
    game = _load(game_id)
    _require_host(game, body.uid)
    try:
        resolve(store, game_id, now_ms(), config)
    except StoreError as e:
        raise HTTPException(503, str(e))
    return _respond(game_id, body.uid)


@app.post("/games/{game_id}/next-round", response_model=GameStateResponse, tags=["Games"], summary="Next round")
async def next_round_route(game_id: str, body: ParticipantRequest):
    game = _load(game_id)
    _require_host(game, body.uid)
    try:
        dealt = next_round(game, now_ms(), config)
    except GameRuleError as e:
        raise HTTPException(400, str(e))
    _write(
        game_id,
        {name: getattr(dealt, name) for name in DEAL_FIELDS},
        expected={"state": GameStatus.RESULTS, "round": game.round, "players": game.players},
    )
    _ensure_session(game_id)
    return _respond(game_id, body.uid)


@app.get("/health", tags=["System"], summary="Health check")
def health():
    return {"status": "ok"}


