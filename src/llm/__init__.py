"""LLM provider registry with lazy loading.

Usage:
    from src.llm import get_provider, parse_json_object

    provider = get_provider("groq")
    raw = await provider.complete(prompt, json_mode=True)
    data = parse_json_object(raw)
"""

from __future__ import annotations

import importlib

from src.llm.base import LLMProvider, parse_json_object

__all__ = ["LLMProvider", "available_providers", "get_provider", "parse_json_object"]

# Lazy registry: maps provider name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "anthropic": ("src.llm.anthropic", "AnthropicProvider"),
    "gemini": ("src.llm.gemini", "GeminiProvider"),
    "groq": ("src.llm.groq", "GroqProvider"),
    "ollama": ("src.llm.ollama", "OllamaProvider"),
    "openai": ("src.llm.openai", "OpenAIProvider"),
}


def get_provider(name: str) -> LLMProvider:
    """Instantiate and return an LLM provider by name.

    Args:
        name: Provider identifier (anthropic, gemini, groq, ollama, openai).

    Returns:
        An LLMProvider instance.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls()  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
