"""Ollama local provider over its OpenAI-compatible endpoint."""

import os
from typing import Any

from src.llm.openai import OpenAIProvider, chat_messages, import_openai

_OLLAMA_BASE_URL = "http://localhost:11434/v1"


class OllamaProvider(OpenAIProvider):
    """Local models via Ollama. No API key; set OLLAMA_BASE_URL for a remote host."""

    @property
    def provider_id(self) -> str:
        return "ollama"

    @property
    def default_model(self) -> str:
        return "llama3"

    @property
    def env_var(self) -> None:
        return None

    def _create_client(self) -> Any:
        openai = import_openai("Ollama (OpenAI-compatible API)")
        base_url = os.environ.get("OLLAMA_BASE_URL", _OLLAMA_BASE_URL)
        # The client insists on a key; Ollama ignores it.
        return openai.OpenAI(base_url=base_url, api_key="ollama")

    def _send(self, client: Any, prompt: str, model: str, system: str | None) -> str:
        response = client.chat.completions.create(
            model=model,
            messages=chat_messages(prompt, system),
        )
        return response.choices[0].message.content or ""
