from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from timersync.core.db import MongoModel
from timersync.utils import elapsed_ms, now


class Timer(MongoModel):
    """Time-boxed activity owned by a user.

    Indexed on user_id and (user_id, is_active).
    `end` and `duration` are set together, once, when the timer is stopped.
    """

    user_id: UUID
    description: str
    start: datetime = Field(default_factory=now)
    end: datetime | None = None
    duration: int | None = None  # Milliseconds, end - start
    is_active: bool = True


class TimerView(BaseModel):
    """Timer as sent over HTTP and the push channel."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID = Field(..., description="Timer ID")
    user_id: UUID = Field(..., description="Owner ID")
    description: str = Field(..., description="What is being timed")
    start: datetime = Field(..., description="Start time (UTC)")
    end: datetime | None = Field(None, description="Stop time (UTC), null while active")
    duration: int | None = Field(None, description="Total duration in milliseconds, null while active")
    is_active: bool = Field(..., description="Whether the timer is still running")

    @classmethod
    def from_domain(cls, timer: Timer) -> "TimerView":
        return cls(
            id=timer.id,
            user_id=timer.user_id,
            description=timer.description,
            start=timer.start,
            end=timer.end,
            duration=timer.duration,
            is_active=timer.is_active,
        )


class ActiveTimerView(TimerView):
    """Active timer with its elapsed time computed at send time."""

    current_duration: int = Field(..., description="Milliseconds elapsed since start")

    @classmethod
    def from_timer(cls, timer: Timer, at: datetime) -> "ActiveTimerView":
        view = TimerView.from_domain(timer)
        return cls(**view.model_dump(), current_duration=elapsed_ms(timer.start, at))
