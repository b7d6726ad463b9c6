"""Abstract base class for text-understanding providers and shared parsing."""

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096


def strip_code_fences(raw_text: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", raw_text.strip())
    return re.sub(r"\n?```\s*$", "", cleaned).strip()


def parse_json_response(raw_text: str) -> Any:
    """Parse a model response as JSON.

    Handles markdown-wrapped JSON and trailing prose after the closing brace
    (the text is truncated at the last ``}`` or ``]`` and parsed again).

    Raises:
        ValueError: If no JSON value can be recovered.
    """
    cleaned = strip_code_fences(raw_text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as first_error:
        start = min(
            (i for i in (cleaned.find("{"), cleaned.find("[")) if i >= 0),
            default=-1,
        )
        end = max(cleaned.rfind("}"), cleaned.rfind("]"))
        if start < 0 or end <= start:
            msg = f"Failed to parse LLM response as JSON: {first_error}"
            raise ValueError(msg) from first_error
        try:
            return json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as e:
            msg = f"Failed to parse LLM response as JSON: {e}"
            raise ValueError(msg) from e


class LLMProvider(ABC):
    """Base class that every text-understanding provider must implement.

    The pipeline only ever calls ``complete``. Subclasses supply the SDK
    client and the request shape; the client is built on first use and
    reused for the life of the provider.
    """

    def __init__(self, max_tokens: int = DEFAULT_MAX_TOKENS) -> None:
        self.max_tokens = max_tokens
        self._client: Any = None

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'anthropic')."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str | None:
        """Environment variable name for the API key, or None if not needed."""

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        """Send a prompt and return the raw response text.

        Args:
            prompt: User content (job text, resume text, or a scoring request).
            model: Override the provider's default model. None uses default.
            system: System instructions. None sends no system prompt.

        Returns:
            Raw text response from the model (expected to be JSON).

        Raises:
            ValueError: If the provider's API key is not set.
            ImportError: If the provider's SDK is not installed.
        """
        if self._client is None:
            self._client = self._create_client()
        use_model = model or self.default_model
        logger.info("Sending %d chars to %s (%s)...", len(prompt), self.provider_id, use_model)
        return self._send(self._client, prompt, use_model, system)

    def api_key(self) -> str | None:
        """Read the API key from ``env_var``. Raises ValueError when unset."""
        if self.env_var is None:
            return None
        key = os.environ.get(self.env_var)
        if not key:
            msg = f"{self.env_var} environment variable is required"
            raise ValueError(msg)
        return key

    @abstractmethod
    def _create_client(self) -> Any:
        """Import the SDK lazily and build a client."""

    @abstractmethod
    def _send(self, client: Any, prompt: str, model: str, system: str | None) -> str:
        """Issue one request with an already-resolved model."""
