"""Tests for LLM provider adapter pattern, registry and response parsing."""

from unittest.mock import MagicMock, patch

import pytest

from src.llm import available_providers, get_provider, parse_json_response, strip_code_fences
from src.llm.base import LLMProvider


# ---------------------------------------------------------------------------
# Registry tests
# ---------------------------------------------------------------------------
class TestProviderRegistry:
    @pytest.mark.parametrize("name", ["anthropic", "openai", "gemini", "ollama"])
    def test_get_provider(self, name: str) -> None:
        provider = get_provider(name)
        assert isinstance(provider, LLMProvider)
        assert provider.provider_id == name

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown LLM provider 'nope'"):
            get_provider("nope")

    def test_available_providers_sorted(self) -> None:
        providers = available_providers()
        assert providers == ["anthropic", "gemini", "ollama", "openai"]


# ---------------------------------------------------------------------------
# Anthropic provider tests
# ---------------------------------------------------------------------------
class TestAnthropicProvider:
    def test_provider_id(self) -> None:
        provider = get_provider("anthropic")
        assert provider.default_model == "claude-sonnet-4-20250514"
        assert provider.env_var == "ANTHROPIC_API_KEY"

    def test_missing_api_key(self) -> None:
        provider = get_provider("anthropic")
        with (
            patch.dict("os.environ", {}, clear=True),
            pytest.raises(ValueError, match="ANTHROPIC_API_KEY"),
        ):
            provider.complete("job text")

    def test_missing_sdk(self) -> None:
        provider = get_provider("anthropic")
        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "test-key"}),
            patch.dict("sys.modules", {"anthropic": None}),
            pytest.raises(ImportError, match="anthropic is required"),
        ):
            provider.complete("job text")


# ---------------------------------------------------------------------------
# OpenAI provider tests
# ---------------------------------------------------------------------------
class TestOpenAIProvider:
    def test_provider_id(self) -> None:
        provider = get_provider("openai")
        assert provider.default_model == "gpt-4o-mini"
        assert provider.env_var == "OPENAI_API_KEY"

    def test_missing_api_key(self) -> None:
        provider = get_provider("openai")
        with (
            patch.dict("os.environ", {}, clear=True),
            pytest.raises(ValueError, match="OPENAI_API_KEY"),
        ):
            provider.complete("job text")

    def test_missing_sdk(self) -> None:
        provider = get_provider("openai")
        with (
            patch.dict("os.environ", {"OPENAI_API_KEY": "test-key"}),
            patch.dict("sys.modules", {"openai": None}),
            pytest.raises(ImportError, match="openai is required"),
        ):
            provider.complete("job text")


# ---------------------------------------------------------------------------
# Gemini provider tests
# ---------------------------------------------------------------------------
class TestGeminiProvider:
    def test_provider_id(self) -> None:
        provider = get_provider("gemini")
        assert provider.default_model == "gemini-2.5-flash"
        assert provider.env_var == "GOOGLE_API_KEY"

    def test_missing_api_key(self) -> None:
        provider = get_provider("gemini")
        with (
            patch.dict("os.environ", {}, clear=True),
            pytest.raises(ValueError, match="GOOGLE_API_KEY"),
        ):
            provider.complete("job text")

    def test_missing_sdk(self) -> None:
        provider = get_provider("gemini")
        with (
            patch.dict("os.environ", {"GOOGLE_API_KEY": "test-key"}),
            patch.dict("sys.modules", {"google": None, "google.genai": None}),
            pytest.raises(ImportError, match="google-genai is required"),
        ):
            provider.complete("job text")


# ---------------------------------------------------------------------------
# Ollama provider tests
# ---------------------------------------------------------------------------
class TestOllamaProvider:
    def test_provider_id(self) -> None:
        provider = get_provider("ollama")
        assert provider.default_model == "llama3"
        assert provider.env_var is None

    def test_missing_sdk(self) -> None:
        provider = get_provider("ollama")
        with (
            patch.dict("sys.modules", {"openai": None}),
            pytest.raises(ImportError, match="openai is required"),
        ):
            provider.complete("job text")

    def test_base_url_override(self) -> None:
        provider = get_provider("ollama")
        mock_openai = MagicMock()
        mock_openai.OpenAI.return_value.chat.completions.create.return_value.choices[
            0
        ].message.content = "{}"

        with (
            patch.dict("os.environ", {"OLLAMA_BASE_URL": "http://gpu-box:11434/v1"}),
            patch.dict("sys.modules", {"openai": mock_openai}),
        ):
            provider.complete("text")

        assert mock_openai.OpenAI.call_args.kwargs["base_url"] == "http://gpu-box:11434/v1"


# ---------------------------------------------------------------------------
# system kwarg tests
# ---------------------------------------------------------------------------
class TestCompleteSystemKwarg:
    """Each provider forwards system= and omits it when None."""

    @staticmethod
    def _mock_anthropic() -> tuple[MagicMock, MagicMock]:
        mock_client = MagicMock()
        mock_client.messages.create.return_value.content = [MagicMock(text="ok")]
        mock_anthropic = MagicMock()
        mock_anthropic.Anthropic.return_value = mock_client
        return mock_anthropic, mock_client

    def test_anthropic_uses_custom_system(self) -> None:
        provider = get_provider("anthropic")
        mock_anthropic, mock_client = self._mock_anthropic()

        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "key"}),
            patch.dict("sys.modules", {"anthropic": mock_anthropic}),
        ):
            result = provider.complete("text", system="custom system prompt")

        assert result == "ok"
        call_kwargs = mock_client.messages.create.call_args.kwargs
        assert call_kwargs["system"] == "custom system prompt"

    def test_anthropic_omits_system_when_none(self) -> None:
        provider = get_provider("anthropic")
        mock_anthropic, mock_client = self._mock_anthropic()

        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "key"}),
            patch.dict("sys.modules", {"anthropic": mock_anthropic}),
        ):
            provider.complete("text", model="claude-test")

        call_kwargs = mock_client.messages.create.call_args.kwargs
        assert "system" not in call_kwargs
        assert call_kwargs["model"] == "claude-test"

    def test_gemini_uses_custom_system(self) -> None:
        provider = get_provider("gemini")
        mock_types = MagicMock()
        mock_genai = MagicMock()
        mock_genai.types = mock_types
        mock_genai.Client.return_value.models.generate_content.return_value.text = "ok"
        mock_google = MagicMock()
        mock_google.genai = mock_genai

        with (
            patch.dict("os.environ", {"GOOGLE_API_KEY": "key"}),
            patch.dict(
                "sys.modules",
                {"google": mock_google, "google.genai": mock_genai, "google.genai.types": mock_types},
            ),
        ):
            result = provider.complete("text", system="custom system prompt")

        assert result == "ok"
        config_kwargs = mock_types.GenerateContentConfig.call_args.kwargs
        assert config_kwargs["system_instruction"] == "custom system prompt"

    def test_openai_uses_custom_system(self) -> None:
        provider = get_provider("openai")
        mock_openai = MagicMock()
        mock_resp = MagicMock()
        mock_resp.choices[0].message.content = "ok"
        mock_openai.OpenAI.return_value.chat.completions.create.return_value = mock_resp

        with (
            patch.dict("os.environ", {"OPENAI_API_KEY": "key"}),
            patch.dict("sys.modules", {"openai": mock_openai}),
        ):
            provider.complete("text", system="custom system prompt")

        messages = mock_openai.OpenAI.return_value.chat.completions.create.call_args.kwargs[
            "messages"
        ]
        system_msg = next(m for m in messages if m["role"] == "system")
        assert system_msg["content"] == "custom system prompt"

    def test_ollama_without_system_sends_user_only(self) -> None:
        provider = get_provider("ollama")
        mock_openai = MagicMock()
        mock_resp = MagicMock()
        mock_resp.choices[0].message.content = "ok"
        mock_openai.OpenAI.return_value.chat.completions.create.return_value = mock_resp

        with patch.dict("sys.modules", {"openai": mock_openai}):
            provider.complete("text")

        messages = mock_openai.OpenAI.return_value.chat.completions.create.call_args.kwargs[
            "messages"
        ]
        assert [m["role"] for m in messages] == ["user"]


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------
class TestParseJsonResponse:
    def test_plain_json(self) -> None:
        assert parse_json_response('{"a": 1}') == {"a": 1}

    def test_fenced_json(self) -> None:
        assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}

    def test_trailing_prose_is_dropped(self) -> None:
        raw = 'Here you go:\n{"a": [1, 2]}\nLet me know if you need more.'
        assert parse_json_response(raw) == {"a": [1, 2]}

    def test_array(self) -> None:
        assert parse_json_response('[{"id": "1"}]') == [{"id": "1"}]

    def test_garbage_raises(self) -> None:
        with pytest.raises(ValueError, match="Failed to parse LLM response"):
            parse_json_response("not json {{{")

    def test_strip_code_fences_without_fence(self) -> None:
        assert strip_code_fences("  {}  ") == "{}"


# ---------------------------------------------------------------------------
# Client lifecycle
# ---------------------------------------------------------------------------
class TestClientReuse:
    def test_client_built_once(self) -> None:
        provider = get_provider("openai")
        mock_openai = MagicMock()
        mock_openai.OpenAI.return_value.chat.completions.create.return_value.choices[
            0
        ].message.content = "[]"

        with (
            patch.dict("os.environ", {"OPENAI_API_KEY": "key"}),
            patch.dict("sys.modules", {"openai": mock_openai}),
        ):
            provider.complete("first")
            provider.complete("second", model="gpt-test")

        mock_openai.OpenAI.assert_called_once_with(api_key="key")
        create = mock_openai.OpenAI.return_value.chat.completions.create
        assert create.call_count == 2
        assert create.call_args.kwargs["model"] == "gpt-test"

    def test_api_key_not_needed_for_ollama(self) -> None:
        assert get_provider("ollama").api_key() is None
