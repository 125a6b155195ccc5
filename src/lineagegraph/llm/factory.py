"""Factory for creating LLM providers from configuration."""

from __future__ import annotations

from lineagegraph.config import LLMConfig
from lineagegraph.exceptions import ConfigError
from lineagegraph.llm.base import LLMProvider

# Ollama serves an OpenAI-compatible API under /v1
LOCAL_BASE_URL = "http://localhost:11434/v1"


def create_provider(config: LLMConfig) -> LLMProvider:
    """Create an LLM provider from configuration.

    Args:
        config: LLM configuration with provider, model, etc.

    Returns:
        An initialized LLM provider.

    Raises:
        ConfigError: If the provider is unknown.
    """
    provider = config.provider.lower()

    if provider == "openai" or provider == "local":
        from lineagegraph.llm.openai_provider import OpenAIProvider

        return OpenAIProvider(
            model=config.model,
            api_key=config.api_key,
            base_url=config.base_url or (LOCAL_BASE_URL if provider == "local" else None),
        )
    elif provider == "anthropic":
        from lineagegraph.llm.anthropic_provider import AnthropicProvider

        return AnthropicProvider(
            model=config.model,
            api_key=config.api_key,
            base_url=config.base_url,
        )
    else:
        raise ConfigError(
            f"Unknown LLM provider: '{provider}'. "
            f"Supported providers: local, openai, anthropic"
        )
