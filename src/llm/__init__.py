"""LLM provider registry with lazy loading.

Usage:
    from src.llm import get_provider

    provider = get_provider(llm_config, settings.llm)
    raw = await provider.complete(prompt)
"""

from __future__ import annotations

import importlib

from src.core.config import LLMSettings
from src.core.schemas import LlmConfig
from src.llm.base import LLMProvider, extract_json_array, extract_json_object

__all__ = [
    "LLMProvider",
    "available_providers",
    "extract_json_array",
    "extract_json_object",
    "get_provider",
]

# Lazy registry: maps provider name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "anthropic": ("src.llm.anthropic", "AnthropicProvider"),
    "gemini": ("src.llm.gemini", "GeminiProvider"),
    "local": ("src.llm.local", "LocalProvider"),
    "openai": ("src.llm.openai", "OpenAIProvider"),
}


def get_provider(
    config: LlmConfig,
    settings: LLMSettings,
    *,
    timeout: float | None = None,
) -> LLMProvider:
    """Instantiate the provider selected by a request.

    Credentials and endpoints are resolved here but not checked; a missing
    key or URL surfaces when the provider is first called.

    Args:
        config: Per-request selection (provider, key, url, model).
        settings: Server-side defaults.
        timeout: Per-call timeout in seconds passed to the SDK.

    Raises:
        ValueError: If the provider name is unknown.
    """
    name = config.provider.value
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls.from_settings(config, settings, timeout=timeout)  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
