"""Session management models."""

from datetime import datetime, timedelta
from typing import NewType
from uuid import UUID

from pydantic import Field

from timersync.core.db import MongoModel
from timersync.utils import now

AuthToken = NewType("AuthToken", str)


class Session(MongoModel):
    """User authentication session.

    Indexed on auth_token - unique, user_id, created_at (TTL, physical cleanup only).
    """

    user_id: UUID
    auth_token: str
    created_at: datetime = Field(default_factory=now)

    def expires_at(self, ttl: timedelta) -> datetime:
        return self.created_at + ttl

    def is_expired(self, ttl: timedelta, at: datetime | None = None) -> bool:
        return (at or now()) >= self.expires_at(ttl)
