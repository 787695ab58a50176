import secrets
from datetime import timedelta
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from timersync.core.core import Service
from timersync.core.modules.session.models import AuthToken, Session
from timersync.core.modules.user.models import User
from timersync.errors import AuthenticationError

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Service for managing user sessions.

    ``get_authenticated_user`` is the single validity rule shared by the HTTP
    auth dependency and the push channel handshake.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("sessions")
        self._sessions: dict[AuthToken, Session] = {}

    @property
    def ttl(self) -> timedelta:
        return timedelta(days=self.core.config.session_ttl_days)

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("auth_token", 1)], unique=True)
        await self._collection.create_index([("user_id", 1)])
        # TTL index only removes documents eventually; validation checks expiry itself
        await self._collection.create_index([("created_at", 1)], expireAfterSeconds=int(self.ttl.total_seconds()))

    async def create_session(self, user_id: UUID) -> AuthToken:
        self.prune_expired()
        auth_token = AuthToken(secrets.token_urlsafe(32))
        new_session = Session(user_id=user_id, auth_token=auth_token)
        await self._collection.insert_one(new_session.to_mongo())
        self._sessions[auth_token] = new_session
        return auth_token

    def prune_expired(self) -> int:
        """Drop expired sessions from the cache; returns how many were removed."""
        expired = [token for token, session in self._sessions.items() if session.is_expired(self.ttl)]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.debug("expired_sessions_pruned", count=len(expired))
        return len(expired)

    async def resolve_session(self, auth_token: AuthToken) -> Session | None:
        """Find a session by token, without validity checks."""
        if auth_token in self._sessions:
            return self._sessions[auth_token]

        doc = await self._collection.find_one({"auth_token": auth_token})
        if doc is None:
            return None
        session = Session.model_validate(doc)
        self._sessions[auth_token] = session
        return session

    async def get_authenticated_user(self, auth_token: AuthToken | str | None) -> User:
        if not isinstance(auth_token, str) or not auth_token:
            raise AuthenticationError("No session token provided")

        session = await self.resolve_session(AuthToken(auth_token))
        if session is None:
            raise AuthenticationError("Invalid or expired session")

        if session.is_expired(self.ttl):
            self._sessions.pop(session.auth_token, None)
            logger.debug("session_expired", user_id=session.user_id)
            raise AuthenticationError("Invalid or expired session")

        if not self.core.services.user.has_user(session.user_id):
            raise AuthenticationError("Invalid or expired session")

        return self.core.services.user.get_user(session.user_id)

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        try:
            await self.get_authenticated_user(auth_token)
        except AuthenticationError:
            return False
        return True

    async def invalidate_session(self, auth_token: AuthToken) -> None:
        """Invalidate a session by removing it from the database."""
        self._sessions.pop(auth_token, None)
        await self._collection.delete_one({"auth_token": auth_token})
