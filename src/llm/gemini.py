"""Google Gemini provider (google-genai SDK)."""

from typing import Any

from src.llm.base import LLMProvider


class GeminiProvider(LLMProvider):
    """LLM provider using the Google Gemini API.

    Requests ask for a JSON response MIME type, so the model returns bare
    JSON without markdown fences.
    """

    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return "gemini-2.5-flash"

    @property
    def env_var(self) -> str:
        return "GOOGLE_API_KEY"

    def _create_client(self) -> Any:
        api_key = self.api_key()
        try:
            from google import genai
        except ImportError:
            msg = (
                "google-genai is required for this provider. "
                "Install with: pip install 'job-intake-engine[gemini]'"
            )
            raise ImportError(msg) from None
        return genai.Client(api_key=api_key)

    def _send(self, client: Any, prompt: str, model: str, system: str | None) -> str:
        from google.genai import types as genai_types

        response = client.models.generate_content(
            model=model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(
                system_instruction=system,
                max_output_tokens=self.max_tokens,
                response_mime_type="application/json",
            ),
        )
        return response.text or ""
