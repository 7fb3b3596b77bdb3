"""Prompt and context building for bot players."""

from game.rules import GameStatus, Role
from game.state import Game, Player

RECENT_EVENTS_WINDOW = 10

RULES_SUMMARY = """
You are playing Mafia (Werewolf). There are two sides: Villagers (villager, doctor, detective) and Mafia.
- At night: Mafia choose one player to eliminate. The Doctor picks one player to save (may pick themself). The Detective checks whether one player is mafia.
- By day: Everyone votes to eliminate one player. The most votes wins; a tie means no elimination.
- Villagers win when all Mafia are dead. Mafia win when they equal or outnumber everyone else alive.
"""

NIGHT_INSTRUCTIONS_TEMPLATE = (
    "You are {player_name}, the {role_name}. It is night. {goal} "
    "Choose exactly one target from these player ids: {targets}. Reply with the target_id only."
)
VOTE_INSTRUCTIONS_TEMPLATE = (
    "You are {player_name}, a {role_name}. It is day and you must vote someone out. "
    "Choose exactly one target from these player ids: {targets}. Reply with the target_id only."
)

_NIGHT_GOALS = {
    Role.MAFIA: "Pick a non-mafia player to eliminate.",
    Role.DOCTOR: "Pick the player you think the mafia will attack.",
    Role.DETECTIVE: "Pick the player you most suspect of being mafia.",
}


def build_game_context(game: Game, player: Player) -> str:
    """Build user-message context: round, phase, own role, alive players and recent public events."""
    lines = [
        f"Round {game.round} of {game.total_rounds}. Phase: {game.state.value}.",
        f"Your role: {player.role.value if player.role else 'unknown'}.",
        f"Alive players: {', '.join(p.name + ' (' + p.uid + ')' for p in game.alive_players())}.",
    ]
    if player.role == Role.MAFIA:
        allies = [p.name for p in game.alive_by_role(Role.MAFIA) if p.uid != player.uid]
        if allies:
            lines.append(f"Your mafia allies: {', '.join(allies)}.")
    recent = game.visible_events(player.uid)[-RECENT_EVENTS_WINDOW:]
    if recent:
        lines.append("Recent events:")
        for e in recent:
            lines.append(f"  - {e.message}")
    return "\n".join(lines)


def target_instructions(player: Player, phase: GameStatus, target_ids: list[str]) -> str:
    """Instructions for picking one target in the given phase."""
    role_name = player.role.value if player.role else Role.VILLAGER.value
    targets = ", ".join(target_ids)
    if phase == GameStatus.NIGHT:
        return NIGHT_INSTRUCTIONS_TEMPLATE.format(
            player_name=player.name,
            role_name=role_name,
            goal=_NIGHT_GOALS.get(player.role, ""),
            targets=targets,
        )
    return VOTE_INSTRUCTIONS_TEMPLATE.format(player_name=player.name, role_name=role_name, targets=targets)
