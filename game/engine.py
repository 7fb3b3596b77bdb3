"""Game engine: pure state transitions, no I/O.

Every public transition returns a new Game and leaves its input untouched.
"""

import copy
import logging
import random
from typing import Optional

from game.config import DEFAULT_CONFIG, GameConfig
from game.errors import GameRuleError
from game.rules import (
    DETECTIVE_MIN_PLAYERS,
    DOCTOR_MIN_PLAYERS,
    NIGHT_ROLES,
    PLAYERS_PER_MAFIA,
    POINTS_MAFIA_ALIVE,
    POINTS_VILLAGER_ALIVE,
    POINTS_VILLAGER_DEAD,
    EventType,
    GameStatus,
    Role,
    Winner,
)
from game.state import Game, LogEvent, NightAction, Player
from game.tally import tally_day, tally_night

logger = logging.getLogger(__name__)


def _emit(state: Game, event: LogEvent) -> None:
    """Append event to state (mutates state)."""
    state.events.append(event)


def _kill(state: Game, uid: str) -> Player:
    """Mark a player dead (mutates state). Alive only ever goes true -> false."""
    player = state.players[uid]
    player.alive = False
    return player


def assign_roles(player_count: int, rng: Optional[random.Random] = None) -> list[Role]:
    """
    Build the role pool for player_count players and shuffle it uniformly.
    One mafia per five players (at least one), a detective from five players,
    a doctor from six, villagers for the rest.
    """
    if player_count < 1:
        raise GameRuleError("At least 1 player is required")
    rng = rng or random.Random()
    mafia_count = max(1, player_count // PLAYERS_PER_MAFIA)
    roles = [Role.MAFIA] * mafia_count
    if player_count >= DETECTIVE_MIN_PLAYERS:
        roles.append(Role.DETECTIVE)
    if player_count >= DOCTOR_MIN_PLAYERS:
        roles.append(Role.DOCTOR)
    while len(roles) < player_count:
        roles.append(Role.VILLAGER)
    rng.shuffle(roles)
    return roles


def create_game(
    game_id: str,
    code: str,
    host_uid: str,
    host_name: str,
    now: int,
    config: GameConfig = DEFAULT_CONFIG,
    avatar: str = "",
) -> Game:
    """Create a lobby with the host as its first player."""
    game = Game(
        game_id=game_id,
        code=code,
        host_uid=host_uid,
        total_rounds=config.total_rounds,
        created_at=now,
    )
    game.players[host_uid] = Player(uid=host_uid, name=host_name, avatar=avatar)
    return game


def add_player(
    game: Game,
    uid: str,
    name: str,
    avatar: str = "",
    is_bot: bool = False,
    config: GameConfig = DEFAULT_CONFIG,
) -> Game:
    """Add a participant, or refresh name and avatar of one already present."""
    game = copy.deepcopy(game)
    existing = game.get_player(uid)
    if existing is not None:
        # Rejoin keeps role, alive flag and points; only display fields change
        existing.name = name
        existing.avatar = avatar
        return game
    if game.state in (GameStatus.NIGHT, GameStatus.DAY):
        raise GameRuleError("Cannot join while a round is in progress")
    if len(game.players) >= config.max_players:
        raise GameRuleError(f"Game is full ({config.max_players} players)")
    game.players[uid] = Player(uid=uid, name=name, avatar=avatar, is_bot=is_bot)
    return game


def remove_player(game: Game, uid: str) -> Game:
    """Drop a participant together with anything they submitted this phase."""
    if uid not in game.players:
        raise GameRuleError(f"Unknown player {uid}")
    game = copy.deepcopy(game)
    del game.players[uid]
    game.actions.pop(uid, None)
    game.votes.pop(uid, None)
    return game


def _deal(game: Game, now: int, config: GameConfig, rng: Optional[random.Random]) -> None:
    """Assign roles and open the first night (mutates game)."""
    players = game.sorted_players()
    roles = assign_roles(len(players), rng)
    for player, role in zip(players, roles):
        player.role = role
        player.alive = True
    game.state = GameStatus.NIGHT
    game.phase_start_time = now
    game.phase_duration = config.night_duration_ms
    game.actions = {}
    game.votes = {}
    game.events = []
    game.winner = None


def start_game(
    game: Game,
    now: int,
    config: GameConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
) -> Game:
    """Assign roles and move the lobby into the first night."""
    if game.state != GameStatus.LOBBY:
        raise GameRuleError(f"Game already started (state={game.state.value})")
    if not game.players:
        raise GameRuleError("Need at least 1 player")
    game = copy.deepcopy(game)
    _deal(game, now, config, rng)
    logger.info("Game %s started with %d players", game.game_id, len(game.players))
    return game


def has_next_round(game: Game) -> bool:
    return game.state == GameStatus.RESULTS and game.round < game.total_rounds


def next_round(
    game: Game,
    now: int,
    config: GameConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
) -> Game:
    """Start the next round from results: fresh roles, everyone alive, points kept."""
    if game.state != GameStatus.RESULTS:
        raise GameRuleError("Next round is only available from results")
    if game.round >= game.total_rounds:
        raise GameRuleError(f"All {game.total_rounds} rounds have been played")
    if not game.players:
        raise GameRuleError("Need at least 1 player")
    game = copy.deepcopy(game)
    game.round += 1
    _deal(game, now, config, rng)
    logger.info("Game %s round %d started", game.game_id, game.round)
    return game


def submit_action(game: Game, uid: str, target: str, now: int) -> Game:
    """Record a night action. Resubmitting overwrites the previous one."""
    if game.state != GameStatus.NIGHT:
        raise GameRuleError("Night actions are only accepted at night")
    player = game.get_player(uid)
    if player is None or not player.alive:
        raise GameRuleError("Only alive players can act")
    if player.role not in NIGHT_ROLES:
        raise GameRuleError(f"Role {player.role.value if player.role else None} has no night action")
    if not game.is_alive(target):
        raise GameRuleError("Target must be an alive player")
    if target == uid and player.role != Role.DOCTOR:
        raise GameRuleError("Only the doctor may target themself")
    game = copy.deepcopy(game)
    game.actions[uid] = NightAction(role=player.role, target=target, timestamp=now)
    return game


def submit_vote(game: Game, uid: str, target: str) -> Game:
    """Record a day vote. Resubmitting overwrites the previous one."""
    if game.state != GameStatus.DAY:
        raise GameRuleError("Votes are only accepted during the day")
    if not game.is_alive(uid):
        raise GameRuleError("Only alive players can vote")
    if not game.is_alive(target):
        raise GameRuleError("Target must be an alive player")
    game = copy.deepcopy(game)
    game.votes[uid] = target
    return game


def owes_turn(game: Game, player: Player) -> bool:
    """True if the player still has an action (night) or vote (day) to submit."""
    if not player.alive:
        return False
    if game.state == GameStatus.NIGHT:
        return player.role in NIGHT_ROLES and player.uid not in game.actions
    if game.state == GameStatus.DAY:
        return player.uid not in game.votes
    return False


def pending_bot_turns(game: Game) -> list[Player]:
    """Bots that owe an action or vote in the current phase."""
    return [p for p in game.alive_players() if p.is_bot and owes_turn(game, p)]


def evaluate_winner(players: list[Player]) -> Optional[Winner]:
    """
    Villagers win when no mafia is alive, even if no villager is either.
    Mafia win on parity or majority over everyone else alive.
    """
    alive = [p for p in players if p.alive]
    alive_mafia = sum(1 for p in alive if p.role == Role.MAFIA)
    alive_villagers = len(alive) - alive_mafia
    if alive_mafia == 0:
        return Winner.VILLAGERS
    if alive_mafia >= alive_villagers:
        return Winner.MAFIA
    return None


def _apply_win(state: Game, winner: Winner) -> None:
    """Award points and move to results (mutates state)."""
    for player in state.players.values():
        if winner == Winner.VILLAGERS and player.role != Role.MAFIA:
            player.points += POINTS_VILLAGER_ALIVE if player.alive else POINTS_VILLAGER_DEAD
        elif winner == Winner.MAFIA and player.role == Role.MAFIA and player.alive:
            player.points += POINTS_MAFIA_ALIVE
    state.state = GameStatus.RESULTS
    state.winner = winner
    logger.info("Game %s round %d won by %s", state.game_id, state.round, winner.value)


def _settle(state: Game) -> None:
    """Move state to results if a side has won (mutates state)."""
    if state.state in (GameStatus.NIGHT, GameStatus.DAY):
        winner = evaluate_winner(list(state.players.values()))
        if winner is not None:
            _apply_win(state, winner)


def check_win(game: Game) -> Game:
    """Return game moved to results if a side has won, otherwise an unchanged copy."""
    game = copy.deepcopy(game)
    _settle(game)
    return game


def resolve_night(game: Game, now: int, config: GameConfig = DEFAULT_CONFIG) -> Game:
    """
    Resolve the night: mafia kill unless the doctor saved the target, then the
    detective's check. Moves to day and evaluates the win condition.
    """
    if game.state != GameStatus.NIGHT:
        raise GameRuleError(f"Cannot resolve night in state {game.state.value}")
    tally = tally_night(game)
    state = copy.deepcopy(game)

    if tally.mafia_target is not None and tally.mafia_target == tally.doctor_target:
        _emit(state, LogEvent(EventType.SAVE, "Someone was saved by the Doctor!", now))
    elif tally.mafia_target is not None:
        victim = _kill(state, tally.mafia_target)
        _emit(state, LogEvent(EventType.DEATH, f"{victim.name} was eliminated by the Mafia!", now))
    else:
        _emit(state, LogEvent(EventType.INFO, "The night was quiet...", now))

    if tally.detective_target is not None:
        target = state.players[tally.detective_target]
        verdict = "MAFIA!" if target.role == Role.MAFIA else "Innocent"
        _emit(
            state,
            LogEvent(
                EventType.INFO,
                f"Detective checked {target.name}: {verdict}",
                now,
                visible_to=tally.detective_uid if config.private_detective_results else None,
            ),
        )

    state.actions = {}
    state.state = GameStatus.DAY
    state.phase_start_time = now
    state.phase_duration = config.day_duration_ms
    _settle(state)
    return state


def resolve_day(game: Game, now: int, config: GameConfig = DEFAULT_CONFIG) -> Game:
    """Resolve the day vote, move to night and evaluate the win condition."""
    if game.state != GameStatus.DAY:
        raise GameRuleError(f"Cannot resolve day in state {game.state.value}")
    tally = tally_day(game)
    state = copy.deepcopy(game)

    if tally.eliminated is not None and tally.count >= 1:
        victim = _kill(state, tally.eliminated)
        role = victim.role.value if victim.role else "unknown"
        _emit(state, LogEvent(EventType.DEATH, f"{victim.name} ({role}) was voted out!", now))
    elif tally.tied:
        _emit(state, LogEvent(EventType.INFO, "No one was eliminated. (Vote tie)", now))
    else:
        _emit(state, LogEvent(EventType.INFO, "No one was eliminated. (No votes)", now))

    state.votes = {}
    state.state = GameStatus.NIGHT
    state.phase_start_time = now
    state.phase_duration = config.night_duration_ms
    _settle(state)
    return state


def resolve_phase(game: Game, now: int, config: GameConfig = DEFAULT_CONFIG) -> Optional[Game]:
    """Resolve the current phase, or return None when there is nothing to resolve."""
    if game.state == GameStatus.NIGHT:
        return resolve_night(game, now, config)
    if game.state == GameStatus.DAY:
        return resolve_day(game, now, config)
    return None
