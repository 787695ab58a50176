from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from timersync.web.deps import AUTH_COOKIE_NAME, AppDep, AuthTokenDep
from timersync.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class CredentialsRequest(BaseModel):
    """Username and password."""

    username: str = Field(..., description="Username for authentication")
    password: str = Field(..., description="Password for authentication")


class TokenResponse(BaseModel):
    """Authentication response."""

    token: str = Field(..., description="Session token for subsequent requests and the push channel")
    session_id: str = Field(..., serialization_alias="sessionId", description="Same token, for clients reading sessionId")

    @classmethod
    def for_token(cls, token: str) -> "TokenResponse":
        return cls(token=token, session_id=token)


def _set_token_cookie(response: Response, token: str, max_age: int) -> None:
    # Set cookie for browser-based clients
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=False,  # Set to True in production with HTTPS
        max_age=max_age,
    )


@router.post(
    "/auth/signup",
    summary="Register user",
    description="Create an account and receive a session token.",
    operation_id="signup",
    status_code=201,
    responses={
        201: {"description": "User created and authenticated"},
        400: {"model": ErrorResponse, "description": "Username taken or invalid password"},
    },
)
async def signup(signup_data: CredentialsRequest, app: AppDep, response: Response) -> TokenResponse:
    token = await app.signup(signup_data.username, signup_data.password)
    _set_token_cookie(response, token, app.session_max_age)
    return TokenResponse.for_token(token)


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with username and password to receive a session token.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(login_data: CredentialsRequest, app: AppDep, response: Response) -> TokenResponse:
    """Authenticate user and create session."""
    token = await app.login(login_data.username, login_data.password)
    _set_token_cookie(response, token, app.session_max_age)
    return TokenResponse.for_token(token)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Invalidate the current session token.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(app: AppDep, auth_token: AuthTokenDep, response: Response) -> None:
    await app.logout(auth_token)
    response.delete_cookie(AUTH_COOKIE_NAME)
