"""Pydantic models for structured LLM outputs of bot players."""

from pydantic import BaseModel, Field


class BotTargetResponse(BaseModel):
    """Structured response for a bot's night action or day vote."""

    target_id: str = Field(description="uid of the player you target (must be one of the listed choices)")
    private_reason: str | None = Field(
        default=None,
        description="Optional short private reasoning; never shown to other players",
    )
