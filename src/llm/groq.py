"""Groq LLM provider (OpenAI-compatible API)."""

from src.llm.openai import OpenAIProvider


class GroqProvider(OpenAIProvider):
    """LLM provider using Groq's OpenAI-compatible endpoint."""

    base_url = "https://api.groq.com/openai/v1"

    @property
    def provider_id(self) -> str:
        return "groq"

    @property
    def default_model(self) -> str:
        return "llama-3.1-8b-instant"

    @property
    def env_var(self) -> str:
        return "GROQ_API_KEY"
