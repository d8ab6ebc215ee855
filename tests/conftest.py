from __future__ import annotations

from typing import Any, Iterator, List

import pytest
from fastapi.testclient import TestClient

from polyarch.config import ChatConfig
from polyarch.dispatch import CommandDispatcher
from polyarch.main import app, get_dispatcher
from polyarch.sessions import InMemorySessionStore


class FakeGateway:
    """Replays canned model output; exceptions in the queue are raised."""

    def __init__(self, configured: bool = True) -> None:
        self.replies: List[Any] = []
        self.calls: List[Any] = []
        self.configured = configured

    def queue(self, *replies: Any) -> "FakeGateway":
        self.replies.extend(replies)
        return self

    def invoke(self, prompt, options):
        self.calls.append((prompt, options))
        reply = self.replies.pop(0) if self.replies else "{}"
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def dispatcher(gateway: FakeGateway, store: InMemorySessionStore) -> CommandDispatcher:
    return CommandDispatcher(gateway, store, chat=ChatConfig(require_confirm=True))


@pytest.fixture
def client(dispatcher: CommandDispatcher) -> Iterator[TestClient]:
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
