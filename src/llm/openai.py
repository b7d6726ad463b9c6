"""OpenAI chat completions provider, also the base for OpenAI-compatible servers."""

from typing import Any

from src.llm.base import LLMProvider


def chat_messages(prompt: str, system: str | None) -> list[dict[str, str]]:
    messages = [{"role": "system", "content": system}] if system is not None else []
    messages.append({"role": "user", "content": prompt})
    return messages


def import_openai(purpose: str) -> Any:
    try:
        import openai
    except ImportError:
        msg = (
            f"openai is required for {purpose}. "
            "Install with: pip install 'job-intake-engine[openai]'"
        )
        raise ImportError(msg) from None
    return openai


class OpenAIProvider(LLMProvider):
    """LLM provider using the OpenAI chat completions API."""

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str | None:
        return "OPENAI_API_KEY"

    def _create_client(self) -> Any:
        api_key = self.api_key()
        return import_openai("this provider").OpenAI(api_key=api_key)

    def _send(self, client: Any, prompt: str, model: str, system: str | None) -> str:
        response = client.chat.completions.create(
            model=model,
            max_tokens=self.max_tokens,
            messages=chat_messages(prompt, system),
        )
        return response.choices[0].message.content or ""
