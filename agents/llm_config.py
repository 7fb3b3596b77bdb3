"""Model construction for LLM-driven bots.

Every provider is reached through its OpenAI-compatible endpoint, so one
pydantic-ai model class covers them all.
"""

import os
from typing import Any, NamedTuple

ENV_BOT_PROVIDER = "MAFIA_BOT_PROVIDER"
ENV_BOT_MODEL = "MAFIA_BOT_MODEL"
ENV_BOT_API_KEY = "MAFIA_BOT_API_KEY"
ENV_OLLAMA_BASE_URL = "OLLAMA_BASE_URL"


class ProviderEndpoint(NamedTuple):
    base_url: str | None
    key_env: str | None
    default_model: str


PROVIDERS: dict[str, ProviderEndpoint] = {
    "openai": ProviderEndpoint(None, "OPENAI_API_KEY", "gpt-4o-mini"),
    "anthropic": ProviderEndpoint("https://api.anthropic.com/v1/", "ANTHROPIC_API_KEY", "claude-3-5-haiku-latest"),
    "gemini": ProviderEndpoint(
        "https://generativelanguage.googleapis.com/v1beta/openai/",
        "GOOGLE_GENERATIVE_AI_API_KEY",
        "gemini-2.0-flash",
    ),
    # Local server, no key
    "ollama": ProviderEndpoint("http://localhost:11434/v1", None, "llama3.2"),
}
PROVIDERS["google"] = PROVIDERS["gemini"]

ALLOWED_PROVIDERS = tuple(PROVIDERS)


def get_model_from_config(provider: str, model_name: str | None = None, api_key: str | None = None) -> Any:
    """Return a pydantic-ai chat model for the provider; the key falls back to the provider's env var."""
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown provider {provider!r}; expected one of {', '.join(ALLOWED_PROVIDERS)}")
    from pydantic_ai.models.openai import OpenAIChatModel
    from pydantic_ai.providers.openai import OpenAIProvider

    endpoint = PROVIDERS[provider]
    key = api_key or (os.environ.get(endpoint.key_env) if endpoint.key_env else None)
    base_url = endpoint.base_url
    if provider == "ollama":
        base_url = os.environ.get(ENV_OLLAMA_BASE_URL, base_url)
        key = key or "ollama"

    kwargs: dict[str, Any] = {}
    if base_url:
        kwargs["base_url"] = base_url
    if key:
        kwargs["api_key"] = key
    return OpenAIChatModel(model_name or endpoint.default_model, provider=OpenAIProvider(**kwargs))


def default_llm_config() -> dict[str, Any]:
    """Bot LLM settings from MAFIA_BOT_PROVIDER / MAFIA_BOT_MODEL / MAFIA_BOT_API_KEY."""
    return {
        "provider": os.environ.get(ENV_BOT_PROVIDER, "openai").lower(),
        "model": os.environ.get(ENV_BOT_MODEL) or None,
        "api_key": os.environ.get(ENV_BOT_API_KEY) or None,
    }
