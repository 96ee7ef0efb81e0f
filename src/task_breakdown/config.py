"""Provider and model configuration for the breakdown agent.

Every provider is reached through an OpenAI-compatible endpoint, so a
single chat client covers all of them; only the base URL, the API key
environment variable and the model list differ.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

MAX_TOKENS = 8000
"""Token limit used when a model does not declare its own."""

DEFAULT_TEMPERATURE = 0.3
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class ModelInfo:
    """A model offered by a provider."""

    name: str
    max_tokens: int | None = None


@dataclass(frozen=True)
class ProviderConfig:
    """Connection settings for one provider."""

    name: str
    api_key_env: str
    """Environment variable holding the provider's API key"""

    base_url: str | None = None
    """OpenAI-compatible endpoint; None means the OpenAI default"""

    base_url_env: str | None = None
    """Environment variable that overrides base_url"""

    models: tuple[ModelInfo, ...] = field(default_factory=tuple)

    requires_api_key: bool = True


PROVIDERS: dict[str, ProviderConfig] = {
    "OpenAI": ProviderConfig(
        name="OpenAI",
        api_key_env="OPENAI_API_KEY",
        models=(
            ModelInfo("gpt-4o", 16384),
            ModelInfo("gpt-4o-mini", 16384),
            ModelInfo("gpt-4.1", 32768),
            ModelInfo("gpt-4.1-mini", 32768),
        ),
    ),
    "Groq": ProviderConfig(
        name="Groq",
        api_key_env="GROQ_API_KEY",
        base_url="https://api.groq.com/openai/v1",
        models=(
            ModelInfo("llama-3.3-70b-versatile", 32768),
            ModelInfo("llama-3.1-8b-instant", 8192),
        ),
    ),
    "Together": ProviderConfig(
        name="Together",
        api_key_env="TOGETHER_API_KEY",
        base_url="https://api.together.xyz/v1",
        models=(
            ModelInfo("meta-llama/Llama-3.3-70B-Instruct-Turbo", 8192),
            ModelInfo("Qwen/Qwen2.5-72B-Instruct-Turbo"),
        ),
    ),
    "Ollama": ProviderConfig(
        name="Ollama",
        api_key_env="OLLAMA_API_KEY",
        base_url="http://localhost:11434/v1",
        base_url_env="OLLAMA_BASE_URL",
        models=(
            ModelInfo("llama3.2"),
            ModelInfo("qwen2.5-coder"),
        ),
        requires_api_key=False,
    ),
}


def get_provider(name: str) -> ProviderConfig | None:
    """Look up a provider by its exact name."""
    return PROVIDERS.get(name)


def find_model(provider: ProviderConfig, model_name: str) -> ModelInfo | None:
    """Return the provider's model with the given name, if offered."""
    for model in provider.models:
        if model.name == model_name:
            return model
    return None


def resolve_api_key(
    provider: ProviderConfig,
    api_keys: dict[str, str] | None = None,
) -> str | None:
    """Key supplied with the request wins over the environment."""
    if api_keys and api_keys.get(provider.name):
        return api_keys[provider.name]
    return os.environ.get(provider.api_key_env) or None


def resolve_base_url(provider: ProviderConfig) -> str | None:
    """Endpoint for the provider, read from its override variable at call time."""
    if provider.base_url_env:
        return os.environ.get(provider.base_url_env) or provider.base_url
    return provider.base_url


def _float_from_env(var: str, default: float) -> float:
    raw = os.environ.get(var)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using %s", var, raw, default)
        return default


def get_temperature() -> float:
    """Sampling temperature from TASK_BREAKDOWN_TEMPERATURE (default 0.3)."""
    return _float_from_env("TASK_BREAKDOWN_TEMPERATURE", DEFAULT_TEMPERATURE)


def get_timeout() -> float:
    """Model request timeout in seconds from TASK_BREAKDOWN_TIMEOUT (default 60)."""
    timeout = _float_from_env("TASK_BREAKDOWN_TIMEOUT", DEFAULT_TIMEOUT)
    if timeout <= 0:
        return DEFAULT_TIMEOUT
    return timeout
