from __future__ import annotations

import random
from contextlib import ExitStack
from typing import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from lovebridge.config.settings import Settings
from lovebridge.main import create_app
from lovebridge.services.state import AppState, build_state


def unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("network disabled in tests", request=request)


def chat_completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def make_settings(**overrides) -> Settings:
    base = dict(
        openai_api_key=None,
        openrouter_api_key=None,
        hf_api_token=None,
        api_secret=None,
        admin_secret="admin-test",
    )
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[call-arg]


def make_state(
    settings: Settings,
    handler: Callable[[httpx.Request], httpx.Response] = unreachable,
    *,
    seed: int = 7,
) -> AppState:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return build_state(settings, http=http, rng=random.Random(seed))


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def client_factory():
    """Build a TestClient (lifespan entered) around a mocked upstream."""

    stack = ExitStack()

    def _make(handler=unreachable, *, seed: int = 7, **overrides) -> TestClient:
        settings = make_settings(**overrides)
        state = make_state(settings, handler, seed=seed)
        client = TestClient(create_app(settings, state=state))
        stack.enter_context(client)
        return client

    yield _make
    stack.close()
