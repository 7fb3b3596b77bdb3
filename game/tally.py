"""Pure reductions of night actions and day votes.

Submissions are scanned in ascending submitter uid, so the same record always
tallies the same way. A submission only counts when both the submitter and the
target are present and alive; anything else is an abstention.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from game.rules import Role
from game.state import Game


@dataclass(frozen=True)
class NightTally:
    """Outcome of the night's actions, before any state change."""

    mafia_target: Optional[str] = None
    doctor_target: Optional[str] = None
    detective_target: Optional[str] = None
    detective_uid: Optional[str] = None


@dataclass(frozen=True)
class DayTally:
    """Outcome of the day vote."""

    eliminated: Optional[str] = None
    count: int = 0
    tied: bool = False
    counts: dict[str, int] = field(default_factory=dict)


def plurality(targets: Iterable[str]) -> tuple[Optional[str], int, bool]:
    """
    Count targets in the given order and return (leader, votes, tied).
    The first target to reach the running maximum keeps the lead; a later
    target that only equals it does not overtake, but marks the result tied.
    """
    counts: dict[str, int] = {}
    leader: Optional[str] = None
    best = 0
    for target in targets:
        counts[target] = counts.get(target, 0) + 1
        if counts[target] > best:
            best = counts[target]
            leader = target
    tied = sum(1 for c in counts.values() if c == best) > 1 if best else False
    return leader, best, tied


def _valid(game: Game, submitter: str, target: str) -> bool:
    return game.is_alive(submitter) and game.is_alive(target)


def tally_night(game: Game) -> NightTally:
    mafia_targets: list[str] = []
    doctor_target: Optional[str] = None
    detective_target: Optional[str] = None
    detective_uid: Optional[str] = None

    for uid in sorted(game.actions):
        action = game.actions[uid]
        if not _valid(game, uid, action.target):
            continue
        if action.role == Role.MAFIA:
            mafia_targets.append(action.target)
        elif action.role == Role.DOCTOR and doctor_target is None:
            doctor_target = action.target
        elif action.role == Role.DETECTIVE and detective_target is None:
            detective_target = action.target
            detective_uid = uid

    mafia_target, _, _ = plurality(mafia_targets)
    return NightTally(
        mafia_target=mafia_target,
        doctor_target=doctor_target,
        detective_target=detective_target,
        detective_uid=detective_uid,
    )


def tally_day(game: Game) -> DayTally:
    """Plurality over valid votes; a tie for the top count eliminates no one."""
    targets = [
        game.votes[uid]
        for uid in sorted(game.votes)
        if _valid(game, uid, game.votes[uid])
    ]
    leader, count, tied = plurality(targets)
    counts: dict[str, int] = {}
    for target in targets:
        counts[target] = counts.get(target, 0) + 1
    if leader is None or count == 0 or tied:
        return DayTally(eliminated=None, count=count, tied=tied, counts=counts)
    return DayTally(eliminated=leader, count=count, tied=False, counts=counts)
