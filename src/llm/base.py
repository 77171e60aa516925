"""Abstract base class for LLM providers and shared response parsing."""

import json
import re
from abc import ABC, abstractmethod
from typing import Any

from src.core.errors import LLMResponseError

_FENCED_BLOCK = re.compile(r"```(?:json|JSON)?\s*\n?([\s\S]*?)```")


def parse_json_object(raw_text: str) -> Any:
    """Recover the JSON payload from a model response.

    The raw text is tried first. If it is not valid JSON, the first fenced
    block (```json ... ``` or bare ``` ... ```) that parses is used.

    Returns:
        The decoded JSON value (usually a dict).

    Raises:
        LLMResponseError: If no valid JSON can be recovered.
    """
    text = (raw_text or "").strip()
    if not text:
        msg = "LLM returned an empty response"
        raise LLMResponseError(msg, "Empty completion")

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        first_error = e

    for match in _FENCED_BLOCK.finditer(text):
        block = match.group(1).strip()
        try:
            return json.loads(block)
        except json.JSONDecodeError:
            continue

    msg = "Failed to parse LLM response as JSON"
    raise LLMResponseError(msg, str(first_error)) from first_error


class LLMProvider(ABC):
    """Base class that every LLM provider must implement."""

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'groq')."""

    @abstractmethod
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
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: User message content.
            model: Override the provider's default model. None uses default.
            system: Optional system prompt.
            temperature: Sampling temperature. None leaves the backend default.
            max_tokens: Completion token limit.
            json_mode: Request a constrained JSON response where the backend
                supports it; ignored otherwise.

        Returns:
            Raw text response from the LLM.
        """

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str | None:
        """Environment variable name for the API key, or None if not needed."""
