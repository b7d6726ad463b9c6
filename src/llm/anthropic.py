"""Anthropic Claude provider."""

from typing import Any

from src.llm.base import LLMProvider


class AnthropicProvider(LLMProvider):
    """LLM provider using the Anthropic Messages API."""

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-20250514"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

    def _create_client(self) -> Any:
        api_key = self.api_key()
        try:
            import anthropic
        except ImportError:
            msg = (
                "anthropic is required for this provider. "
                "Install with: pip install 'job-intake-engine[anthropic]'"
            )
            raise ImportError(msg) from None
        return anthropic.Anthropic(api_key=api_key)

    def _send(self, client: Any, prompt: str, model: str, system: str | None) -> str:
        kwargs: dict = {
            "model": model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system is not None:
            kwargs["system"] = system
        message = client.messages.create(**kwargs)
        # Content is a list of blocks; only text blocks carry output.
        return "".join(getattr(block, "text", "") for block in message.content)
