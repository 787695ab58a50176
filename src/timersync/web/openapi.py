from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from timersync.web.deps import AUTH_COOKIE_NAME

PUBLIC_ENDPOINTS = {
    ("GET", "/health"),
    ("POST", "/api/v1/auth/signup"),
    ("POST", "/api/v1/auth/login"),
}


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Timersync API",
            version="0.1.0",
            summary="Per-user activity timers with live WebSocket sync",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "description": "Bearer session token (preferred)",
            },
            "AuthTokenCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": AUTH_COOKIE_NAME,
                "description": "Session token stored in cookie",
            },
        }

        # Apply security globally, then drop it from public endpoints
        openapi_schema["security"] = [
            {"BearerAuth": []},
            {"AuthTokenCookie": []},
        ]

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in PUBLIC_ENDPOINTS:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Invalid username or password", "type": "authentication_error"},
                {"message": "Timer not found or already stopped", "type": "not_found"},
                {"message": "Timer description is required", "type": "validation_error"},
            ]
        }
    }
