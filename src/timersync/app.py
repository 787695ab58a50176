from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from timersync.config import Config
from timersync.core.core import Core
from timersync.core.modules.realtime.channel import Channel
from timersync.core.modules.realtime.models import Connection
from timersync.core.modules.session.models import AuthToken
from timersync.core.modules.timer.models import TimerView
from timersync.core.modules.user.models import UserView
from timersync.errors import AuthenticationError


class App:
    """Facade for all application operations, validates sessions before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    @property
    def session_max_age(self) -> int:
        """Session lifetime in seconds, for cookie max-age."""
        return self._core.config.session_ttl_days * 24 * 60 * 60

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        """Check if authentication token is valid."""
        return await self._core.services.session.is_auth_token_valid(auth_token)

    # === Auth ===
    async def signup(self, username: str, password: str) -> AuthToken:
        """Create user and open a session for it."""
        user = await self._core.services.user.create_user(username, password)
        return await self._core.services.session.create_session(user.id)

    async def login(self, username: str, password: str) -> AuthToken:
        """Authenticate user and create session."""
        if not self._core.services.user.verify_password(username, password):
            raise AuthenticationError("Invalid username or password")
        user = self._core.services.user.get_user_by_username(username)
        return await self._core.services.session.create_session(user.id)

    async def logout(self, auth_token: AuthToken) -> None:
        """Invalidate user session."""
        await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.session.invalidate_session(auth_token)

    async def get_current_user(self, auth_token: AuthToken) -> UserView:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return UserView.from_domain(current_user)

    # === Timers ===
    async def get_active_timers(self, auth_token: AuthToken) -> list[TimerView]:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        timers = await self._core.services.timer.find_active_timers(current_user.id)
        return [TimerView.from_domain(timer) for timer in timers]

    async def get_completed_timers(self, auth_token: AuthToken) -> list[TimerView]:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        timers = await self._core.services.timer.find_completed_timers(current_user.id)
        return [TimerView.from_domain(timer) for timer in timers]

    async def get_timer(self, auth_token: AuthToken, timer_id: UUID) -> TimerView:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        timer = await self._core.services.timer.get_timer(timer_id, current_user.id)
        return TimerView.from_domain(timer)

    async def create_timer(self, auth_token: AuthToken, description: str) -> TimerView:
        """Start a new timer and push the new state to the user's channel."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        timer = await self._core.services.timer.create_timer(current_user.id, description)
        self._core.services.realtime.notify(current_user.id)
        return TimerView.from_domain(timer)

    async def stop_timer(self, auth_token: AuthToken, timer_id: UUID) -> TimerView:
        """Stop an active timer and push the new state to the user's channel."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        timer = await self._core.services.timer.stop_timer(timer_id, current_user.id)
        self._core.services.realtime.notify(current_user.id)
        return TimerView.from_domain(timer)

    # === Push channel ===
    async def open_channel(self, auth_token: str | None, channel: Channel) -> Connection | None:
        """Authenticate and register a push channel; None if rejected."""
        return await self._core.services.realtime.open_channel(auth_token, channel)

    def close_channel(self, connection: Connection) -> None:
        self._core.services.realtime.close_channel(connection)
