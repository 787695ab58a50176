from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from timersync.app import App
from timersync.config import Config
from timersync.errors import UserError
from timersync.web.error_handlers import general_exception_handler, user_error_handler
from timersync.web.openapi import set_custom_openapi
from timersync.web.routers import auth_router, profile_router, push_router, timers_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="Timersync API", lifespan=lifespan)

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(profile_router, prefix="/api/v1")
    app.include_router(timers_router, prefix="/api/v1")
    # Push channel handshake at the root: /?sessionId=<token> (also /ws)
    app.include_router(push_router)

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
