"""Anthropic Claude LLM provider."""

import logging
import os
from typing import Any

from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """LLM provider using the Anthropic Claude API.

    The Messages API has no JSON response mode; json_mode is ignored and the
    prompt alone asks for JSON.
    """

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-20250514"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

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
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            msg = "ANTHROPIC_API_KEY environment variable is required"
            raise ValueError(msg)

        try:
            import anthropic
        except ImportError:
            msg = (
                "anthropic is required for the anthropic provider. "
                "Install with: pip install 'job-outreach-assistant[anthropic]'"
            )
            raise ImportError(msg) from None

        use_model = model or self.default_model

        kwargs: dict[str, Any] = {}
        if system:
            kwargs["system"] = system
        if temperature is not None:
            kwargs["temperature"] = temperature

        logger.info("Sending prompt to Anthropic API (%s)...", use_model)
        async with anthropic.AsyncAnthropic(api_key=api_key) as client:
            message = await client.messages.create(
                model=use_model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )

        return message.content[0].text  # type: ignore[union-attr]
