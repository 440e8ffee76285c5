"""
Shared fixtures: in-memory doubles for every dispatcher collaborator.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Optional

import pytest

from postbot.config import get_settings
from postbot.errors import StoreUnavailableError
from postbot.services import OAuthCorrelator
from postbot.services.x_api import SCOPES, AuthorizationLink, TokenGrant
from postbot.storage import MemoryAccountStore
from postbot.telegram_bot.dispatcher import Dispatcher, IncomingMessage

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
REDIRECT_URI = "https://bot.example.com/auth/x/callback"
CHAT_IDENTITY = 1001
OTHER_IDENTITY = 2002


@dataclass
class SentMessage:
    chat_id: int
    text: str
    thread_id: Optional[int]
    disable_preview: bool


class FakeSender:

    def __init__(self, fail: bool = False):
        self.messages: list[SentMessage] = []
        self.actions: list[tuple[int, str]] = []
        self.fail = fail

    async def send_message(self, chat_id, text, thread_id=None, disable_preview=False):
        if self.fail:
            raise RuntimeError("telegram down")
        self.messages.append(SentMessage(chat_id, text, thread_id, disable_preview))

    async def send_chat_action(self, chat_id, action="typing", thread_id=None):
        self.actions.append((chat_id, action))

    @property
    def last_text(self) -> str:
        return self.messages[-1].text


class FakeXClient:

    def __init__(self):
        self.links_issued = 0
        self.exchanges: list[tuple[str, str, str]] = []
        self.posts: list[tuple[str, str]] = []
        self.username: Optional[str] = "NewHandle"
        self.exchange_error: Optional[Exception] = None
        self.post_error: Optional[Exception] = None

    def build_authorization_url(self, redirect_uri, scopes=SCOPES):
        self.links_issued += 1
        n = self.links_issued
        return AuthorizationLink(
            url=f"https://twitter.com/i/oauth2/authorize?state=state-{n}",
            verifier=f"verifier-{n}",
            state=f"state-{n}",
        )

    async def exchange_code(self, code, verifier, redirect_uri):
        self.exchanges.append((code, verifier, redirect_uri))
        if self.exchange_error:
            raise self.exchange_error
        return TokenGrant(access_token="access-abc", refresh_token="refresh-abc", expires_in=7200)

    async def get_username(self, access_token):
        return self.username

    async def create_post(self, access_token, text):
        if self.post_error:
            raise self.post_error
        self.posts.append((access_token, text))
        return "1234567890"

    async def close(self):
        pass


class FakeTransformer:

    def __init__(self, result: str = "Post 1: hello world"):
        self.result = result
        self.inputs: list[str] = []
        self.error: Optional[Exception] = None

    async def transform(self, text):
        self.inputs.append(text)
        if self.error:
            raise self.error
        return self.result

    async def close(self):
        pass


class UnavailableStore:
    """Store whose every operation fails as if the database were down."""

    async def find_by_identity(self, chat_identity):
        raise StoreUnavailableError("down")

    async def create(self, chat_identity, chat_handle=None):
        raise StoreUnavailableError("down")

    async def update_fields(self, account_id, fields, unset=()):
        raise StoreUnavailableError("down")

    async def find_by_pending_state(self, state, chat_identity=None):
        raise StoreUnavailableError("down")

    async def close(self):
        pass


def make_message(text: str, chat_identity: int = CHAT_IDENTITY, thread_id: Optional[int] = None):
    return IncomingMessage(
        chat_id=chat_identity,
        chat_identity=chat_identity,
        text=text,
        chat_handle=f"user{chat_identity}",
        thread_id=thread_id,
    )


@pytest.fixture
def store():
    return MemoryAccountStore()


@pytest.fixture
def x_client():
    return FakeXClient()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def transformer():
    return FakeTransformer()


@pytest.fixture
def correlator(store, x_client):
    return OAuthCorrelator(x_client, store, REDIRECT_URI, clock=lambda: NOW)


@pytest.fixture
def bot(store, correlator, x_client, transformer, sender):
    dispatcher = Dispatcher(
        store=store,
        correlator=correlator,
        x_client=x_client,
        transformer=transformer,
        sender=sender,
        clock=lambda: NOW,
    )
    return SimpleNamespace(
        dispatcher=dispatcher,
        store=store,
        x_client=x_client,
        sender=sender,
        transformer=transformer,
    )


@pytest.fixture
def settings_env(monkeypatch):
    """Minimal valid environment for Settings; cache cleared around the test."""
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("X_CLIENT_ID", "client-id")
    monkeypatch.setenv("X_CLIENT_SECRET", "client-secret")
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")
    for name in ("X_CALLBACK_URL", "ENVIRONMENT", "TELEGRAM_WEBHOOK_SECRET"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


