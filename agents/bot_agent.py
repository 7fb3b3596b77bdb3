"""Pydantic AI agent used by LLM-driven bot players."""

from pydantic_ai import Agent

from agents.models import BotTargetResponse
from agents.prompts import RULES_SUMMARY


# Model is passed at run() so we use defer_model_check.
# The policy passes full game context in the user message.
_target_agent = Agent(
    model=None,
    defer_model_check=True,
    output_type=BotTargetResponse,
    system_prompt=[
        RULES_SUMMARY,
        "You are a player in the game. When asked, choose exactly one target by player id. "
        "Never reveal your role.",
    ],
)


def get_target_agent() -> Agent[None, BotTargetResponse]:
    return _target_agent
