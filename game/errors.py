"""Exceptions raised by the game core."""


class GameRuleError(ValueError):
    """A request that the rules do not allow in the current game state."""


class StoreError(RuntimeError):
    """The game store could not complete a read, write or subscription."""
