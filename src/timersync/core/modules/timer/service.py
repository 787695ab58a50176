from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from timersync.core.core import Service
from timersync.core.modules.timer.models import Timer
from timersync.errors import NotFoundError, ValidationError
from timersync.utils import elapsed_ms, now

logger = structlog.get_logger(__name__)


class TimerService(Service):
    """Timer record store."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("timers")

    async def on_start(self) -> None:
        """Create indexes for per-user listings."""
        await self._collection.create_index([("user_id", 1)])
        await self._collection.create_index([("user_id", 1), ("is_active", 1)])

    async def find_active_timers(self, user_id: UUID) -> list[Timer]:
        cursor = self._collection.find({"user_id": user_id, "is_active": True}).sort("start", 1)
        return await Timer.list_cursor(cursor)

    async def find_completed_timers(self, user_id: UUID) -> list[Timer]:
        cursor = self._collection.find({"user_id": user_id, "is_active": False}).sort("start", 1)
        return await Timer.list_cursor(cursor)

    async def get_timer(self, timer_id: UUID, user_id: UUID) -> Timer:
        """Get a timer owned by the user, active or not."""
        doc = await self._collection.find_one({"_id": timer_id, "user_id": user_id})
        if doc is None:
            raise NotFoundError("Timer not found")
        return Timer.model_validate(doc)

    async def create_timer(self, user_id: UUID, description: str) -> Timer:
        if not description or not description.strip():
            raise ValidationError("Timer description is required")

        timer = Timer(user_id=user_id, description=description)
        await self._collection.insert_one(timer.to_mongo())
        logger.debug("timer_created", timer_id=timer.id, user_id=user_id)
        return timer

    async def stop_timer(self, timer_id: UUID, user_id: UUID) -> Timer:
        """Stop an active timer, setting end and duration."""
        query = {"_id": timer_id, "user_id": user_id, "is_active": True}
        doc = await self._collection.find_one(query)
        if doc is None:
            raise NotFoundError("Timer not found or already stopped")

        timer = Timer.model_validate(doc)
        end = now()
        update = {"end": end, "duration": elapsed_ms(timer.start, end), "is_active": False}

        # Conditional on is_active so a concurrent stop cannot overwrite end/duration
        result = await self._collection.update_one(query, {"$set": update})
        if result.modified_count == 0:
            raise NotFoundError("Timer not found or already stopped")

        logger.debug("timer_stopped", timer_id=timer_id, user_id=user_id, duration=update["duration"])
        return timer.model_copy(update=update)
