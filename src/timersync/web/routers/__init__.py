from timersync.web.routers.auth import router as auth_router
from timersync.web.routers.profile import router as profile_router
from timersync.web.routers.push import router as push_router
from timersync.web.routers.timers import router as timers_router

__all__ = [
    "auth_router",
    "profile_router",
    "push_router",
    "timers_router",
]
