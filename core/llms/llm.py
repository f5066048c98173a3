"""Language model construction for the column mapping fallback.

Each agent names its provider in config (``<agent_name>_llm``); the provider
builder turns the matching settings block into ``dspy.LM`` keyword arguments.
"""

import os
from typing import Any, Callable, Dict

import dspy
from core.config import get_config

OPENROUTER_KEY_PREFIX = "sk-or-"


def openrouter_model_name(model: str) -> str:
    """Translate an OpenAI model name into LiteLLM's OpenRouter route."""
    if model.startswith("openrouter/"):
        return model
    return f"openrouter/openai/{model}"


def openai_lm_kwargs(config) -> Dict[str, Any]:
    """
    dspy.LM arguments for OpenAI or an OpenRouter key.

    Args:
        config: AppConfig

    Returns:
        Keyword arguments for dspy.LM
    """
    settings = config.openai
    model = settings.model
    if settings.api_key and settings.api_key.startswith(OPENROUTER_KEY_PREFIX):
        # LiteLLM reads OpenRouter credentials from the environment
        os.environ["OPENROUTER_API_KEY"] = settings.api_key
        model = openrouter_model_name(model)

    kwargs: Dict[str, Any] = {
        "model": model,
        "api_key": settings.api_key,
        "temperature": settings.temperature,
        "timeout": settings.timeout,
    }
    if settings.max_tokens:
        kwargs["max_tokens"] = settings.max_tokens
    if settings.base_url:
        kwargs["api_base"] = settings.base_url
    return kwargs


def anthropic_lm_kwargs(config) -> Dict[str, Any]:
    """dspy.LM arguments for Anthropic (LiteLLM ``anthropic/`` route)."""
    settings = config.anthropic
    kwargs: Dict[str, Any] = {
        "model": f"anthropic/{settings.model}",
        "api_key": settings.api_key,
        "temperature": settings.temperature,
        "timeout": settings.timeout,
    }
    if settings.max_tokens:
        kwargs["max_tokens"] = settings.max_tokens
    return kwargs


PROVIDERS: Dict[str, Callable[[Any], Dict[str, Any]]] = {
    "openai": openai_lm_kwargs,
    "anthropic": anthropic_lm_kwargs,
}


def get_llm_for_agent(agent_name: str, **overrides: Any) -> dspy.LM:
    """
    Get DSPy LM instance for a specific agent based on config.

    Args:
        agent_name: Name of the agent ('column_mapping')
        **overrides: Extra dspy.LM keyword arguments (e.g. cache, timeout), applied last

    Returns:
        Configured dspy.LM instance

    Raises:
        ValueError: If the configured provider is unknown
    """
    config = get_config()
    provider = getattr(config, f"{agent_name}_llm", "openai").lower()

    build_kwargs = PROVIDERS.get(provider)
    if build_kwargs is None:
        raise ValueError(
            f"Unknown LLM provider: {provider}. Available: {', '.join(sorted(PROVIDERS))}"
        )

    lm_kwargs = build_kwargs(config)
    lm_kwargs.update(overrides)
    return dspy.LM(**lm_kwargs)
