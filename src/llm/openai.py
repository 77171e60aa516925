"""OpenAI LLM provider (also the base for OpenAI-compatible backends)."""

import logging
import os
from typing import Any

from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """LLM provider using the OpenAI chat completions API."""

    base_url: str | None = None

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str | None:
        return "OPENAI_API_KEY"

    def _api_key(self) -> str:
        env_var = self.env_var
        api_key = os.environ.get(env_var) if env_var else None
        if not api_key:
            msg = f"{env_var} environment variable is required"
            raise ValueError(msg)
        return api_key

    async def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int = 1024,
        json_mode: bool = False,
    ) -> str:
        api_key = self._api_key()

        try:
            import openai
        except ImportError:
            msg = (
                f"openai is required for the {self.provider_id} provider. "
                "Install with: pip install openai"
            )
            raise ImportError(msg) from None

        use_model = model or self.default_model

        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict[str, Any] = {"max_tokens": max_tokens}
        if temperature is not None:
            kwargs["temperature"] = temperature
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.info("Sending prompt to %s (%s)...", self.provider_id, use_model)
        async with openai.AsyncOpenAI(api_key=api_key, base_url=self.base_url) as client:
            response = await client.chat.completions.create(
                model=use_model,
                messages=messages,  # type: ignore[arg-type]
                **kwargs,
            )

        return response.choices[0].message.content or ""
