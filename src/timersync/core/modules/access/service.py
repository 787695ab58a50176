from timersync.core.core import Service
from timersync.core.modules.session.models import AuthToken
from timersync.core.modules.user.models import User


class AccessService(Service):
    async def ensure_authenticated(self, auth_token: AuthToken) -> User:
        """Ensure the user is authenticated."""
        return await self.core.services.session.get_authenticated_user(auth_token)
