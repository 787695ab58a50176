"""Timer endpoints. Mutations also push a full snapshot to the user's channel."""

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from timersync.core.modules.timer.models import TimerView
from timersync.errors import NotFoundError
from timersync.web.deps import AppDep, AuthTokenDep
from timersync.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["timers"])


def parse_timer_id(timer_id: str) -> UUID:
    """Malformed IDs cannot match a timer, so they are reported as not found."""
    try:
        return UUID(timer_id)
    except ValueError:
        raise NotFoundError("Timer not found") from None


class CreateTimerRequest(BaseModel):
    """Request to start a new timer."""

    description: str = Field(..., description="What is being timed")


@router.get(
    "/timers",
    summary="List active timers",
    description="Get all running timers of the current user.",
    operation_id="listActiveTimers",
    responses={
        200: {"description": "Active timers"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_active_timers(app: AppDep, auth_token: AuthTokenDep) -> list[TimerView]:
    return await app.get_active_timers(auth_token)


@router.get(
    "/timers/completed",
    summary="List completed timers",
    description="Get all stopped timers of the current user.",
    operation_id="listCompletedTimers",
    responses={
        200: {"description": "Completed timers"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_completed_timers(app: AppDep, auth_token: AuthTokenDep) -> list[TimerView]:
    return await app.get_completed_timers(auth_token)


@router.get(
    "/timers/{timer_id}",
    summary="Get timer",
    description="Get a single timer owned by the current user.",
    operation_id="getTimer",
    responses={
        200: {"description": "Timer"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Timer not found"},
    },
)
async def get_timer(timer_id: str, app: AppDep, auth_token: AuthTokenDep) -> TimerView:
    return await app.get_timer(auth_token, parse_timer_id(timer_id))


@router.post(
    "/timers",
    summary="Start timer",
    description="Start a new timer for the current user.",
    operation_id="createTimer",
    status_code=201,
    responses={
        201: {"description": "Timer started"},
        400: {"model": ErrorResponse, "description": "Description is missing"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_timer(request: CreateTimerRequest, app: AppDep, auth_token: AuthTokenDep) -> TimerView:
    return await app.create_timer(auth_token, request.description)


@router.patch(
    "/timers/{timer_id}",
    summary="Stop timer",
    description="Stop a running timer owned by the current user.",
    operation_id="stopTimer",
    responses={
        200: {"description": "Timer stopped"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Timer not found or already stopped"},
    },
)
async def stop_timer(timer_id: str, app: AppDep, auth_token: AuthTokenDep) -> TimerView:
    return await app.stop_timer(auth_token, parse_timer_id(timer_id))
