"""Shared pytest fixtures and in-memory collaborators."""

from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

import pytest

from timersync.core.modules.realtime.service import RealtimeService
from timersync.core.modules.timer.models import Timer
from timersync.core.modules.user.models import User
from timersync.errors import AuthenticationError, NotFoundError
from timersync.utils import elapsed_ms, now


class FakeChannel:
    """Records pushed payloads instead of writing to a socket."""

    def __init__(self, name: str = "channel", fail_send: bool = False) -> None:
        self.name = name
        self.fail_send = fail_send
        self.sent: list[dict[str, Any]] = []
        self.closed = False

    @property
    def is_open(self) -> bool:
        return not self.closed

    async def send_json(self, payload: dict[str, Any]) -> None:
        if self.fail_send:
            raise ConnectionResetError("peer went away")
        self.sent.append(payload)

    async def close(self) -> None:
        self.closed = True

    def messages(self, message_type: str) -> list[dict[str, Any]]:
        return [m for m in self.sent if m.get("type") == message_type]

    def __repr__(self) -> str:
        return f"FakeChannel({self.name})"


class FakeSessionService:
    """Token -> user mapping with the same error contract as SessionService."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.broken = False

    def add(self, token: str, user: User) -> None:
        self.users[token] = user

    async def get_authenticated_user(self, auth_token: str | None) -> User:
        if self.broken:
            raise RuntimeError("session store unavailable")
        if not auth_token or auth_token not in self.users:
            raise AuthenticationError("Invalid or expired session")
        return self.users[auth_token]


class InMemoryTimerStore:
    """Timer store keeping documents in a dict."""

    def __init__(self) -> None:
        self.timers: dict[UUID, Timer] = {}
        self.failing_users: set[UUID] = set()
        self.reads = 0

    def _read(self, user_id: UUID, active: bool) -> list[Timer]:
        self.reads += 1
        if user_id in self.failing_users:
            raise ConnectionError("timer store unavailable")
        return [t for t in self.timers.values() if t.user_id == user_id and t.is_active is active]

    async def find_active_timers(self, user_id: UUID) -> list[Timer]:
        return self._read(user_id, True)

    async def find_completed_timers(self, user_id: UUID) -> list[Timer]:
        return self._read(user_id, False)

    async def create_timer(self, user_id: UUID, description: str, start: datetime | None = None) -> Timer:
        timer = Timer(user_id=user_id, description=description, start=start or now())
        self.timers[timer.id] = timer
        return timer

    async def stop_timer(self, timer_id: UUID, user_id: UUID) -> Timer:
        timer = self.timers.get(timer_id)
        if timer is None or timer.user_id != user_id or not timer.is_active:
            raise NotFoundError("Timer not found or already stopped")
        end = now()
        stopped = timer.model_copy(update={"end": end, "duration": elapsed_ms(timer.start, end), "is_active": False})
        self.timers[timer_id] = stopped
        return stopped


def make_user(username: str = "alice") -> User:
    return User(id=uuid4(), username=username, password_hash="$2b$12$hashed_password_here")


def ago(milliseconds: int) -> datetime:
    return now() - timedelta(milliseconds=milliseconds)


@pytest.fixture
def sessions():
    return FakeSessionService()


@pytest.fixture
def timers():
    return InMemoryTimerStore()


@pytest.fixture
def core(sessions, timers):
    """Minimal stand-in for Core: config plus the services realtime depends on."""
    return SimpleNamespace(
        config=SimpleNamespace(tick_interval=1.0, session_ttl_days=7, cors_origins=[]),
        services=SimpleNamespace(session=sessions, timer=timers),
    )


@pytest.fixture
def realtime(core):
    service = RealtimeService(database=SimpleNamespace())
    service.set_core(core)
    return service


@pytest.fixture
def alice(sessions):
    user = make_user("alice")
    sessions.add("tok1", user)
    return user


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs

    def sort(self, key: str, direction: int = 1) -> "FakeCursor":
        self._docs.sort(key=lambda doc: doc[key], reverse=direction < 0)
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self._docs:
            yield doc


class FakeCollection:
    """Equality-filter subset of an async pymongo collection."""

    def __init__(self) -> None:
        self.docs: list[dict[str, Any]] = []

    def _matches(self, doc: dict[str, Any], query: dict[str, Any]) -> bool:
        return all(doc.get(key) == value for key, value in query.items())

    async def create_index(self, *args: Any, **kwargs: Any) -> str:
        return "index"

    async def insert_one(self, doc: dict[str, Any]) -> SimpleNamespace:
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        return next((dict(doc) for doc in self.docs if self._matches(doc, query)), None)

    def find(self, query: dict[str, Any] | None = None) -> FakeCursor:
        return FakeCursor([dict(doc) for doc in self.docs if self._matches(doc, query or {})])

    async def update_one(self, query: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        for doc in self.docs:
            if self._matches(doc, query):
                doc.update(update["$set"])
                return SimpleNamespace(modified_count=1)
        return SimpleNamespace(modified_count=0)

    async def delete_one(self, query: dict[str, Any]) -> SimpleNamespace:
        for doc in self.docs:
            if self._matches(doc, query):
                self.docs.remove(doc)
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())
