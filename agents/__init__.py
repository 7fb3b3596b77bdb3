"""Agents: bot target policies for Night Falls."""

from agents.models import BotTargetResponse
from agents.policy import LLMBotPolicy, RandomBotPolicy, candidate_targets

__all__ = [
    "BotTargetResponse",
    "LLMBotPolicy",
    "RandomBotPolicy",
    "candidate_targets",
]
