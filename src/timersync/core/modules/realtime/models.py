from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from timersync.core.modules.realtime.channel import Channel
from timersync.core.modules.timer.models import ActiveTimerView, TimerView
from timersync.utils import now


class ConnectionState(StrEnum):
    """Registered connections only; rejected handshakes never become a Connection."""

    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(eq=False)
class Connection:
    """Live push channel of one user. Owned by the ConnectionRegistry."""

    user_id: UUID
    channel: Channel
    connected_at: datetime = field(default_factory=now)
    state: ConnectionState = ConnectionState.ACTIVE


class AllTimers(BaseModel):
    """Full snapshot: complete active and completed timer state."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    active_timers: list[TimerView]
    completed_timers: list[TimerView]


class AllTimersMessage(BaseModel):
    type: Literal["all_timers"] = "all_timers"
    data: AllTimers


class ActiveTimersMessage(BaseModel):
    """Incremental snapshot: active timers with live durations."""

    type: Literal["active_timers"] = "active_timers"
    data: list[ActiveTimerView]


def to_payload(message: BaseModel) -> dict[str, Any]:
    return message.model_dump(mode="json", by_alias=True)


def error_payload(message: str) -> dict[str, Any]:
    return {"error": message}
