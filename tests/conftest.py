"""Shared test doubles."""

from collections.abc import Callable
from typing import Any

import pytest

from src.llm.base import LLMProvider


class FakeProvider(LLMProvider):
    """Provider that replays canned responses and records every request.

    A response that is an exception instance is raised instead of returned.
    The last response repeats once the list is exhausted.
    """

    def __init__(self, responses: list[str | Exception]) -> None:
        super().__init__()
        self.responses = responses
        self.calls: list[tuple[str, str, str | None]] = []

    @property
    def provider_id(self) -> str:
        return "fake"

    @property
    def default_model(self) -> str:
        return "fake-1"

    @property
    def env_var(self) -> str | None:
        return None

    def _create_client(self) -> Any:
        return object()

    def _send(self, client: Any, prompt: str, model: str, system: str | None) -> str:
        self.calls.append((prompt, model, system))
        response = self.responses[min(len(self.calls), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    def _make(*responses: str | Exception) -> FakeProvider:
        return FakeProvider(list(responses))

    return _make
