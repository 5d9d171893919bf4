from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.core.errors import NotFound
from newsletter.models.subscriber import Subscriber, SubscriberStatus
from newsletter.repositories.base import BaseRepository, translate_store_errors
from newsletter.schemas.subscriber import NewSubscriber


class SubscriberRepository(BaseRepository[Subscriber]):
    """Repository for Subscriber model operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Subscriber)

    async def get_by_email(self, email: str) -> Optional[Subscriber]:
        """Get subscriber by email address."""
        with translate_store_errors("load subscriber by email"):
            result = await self.db.execute(
                select(Subscriber).filter(Subscriber.email == email)
            )
            return result.scalar_one_or_none()

    async def insert_subscriber(self, new_subscriber: NewSubscriber) -> Subscriber:
        """Insert a pending subscriber. Raises ConstraintViolation on a duplicate email."""
        return await self.create({
            "id": uuid4(),
            "email": new_subscriber.email,
            "name": new_subscriber.name,
            "subscribed_at": datetime.now(timezone.utc),
            "status": SubscriberStatus.PENDING_CONFIRMATION.value,
        })

    async def confirm_subscriber(self, subscriber_id: UUID) -> None:
        """Mark subscriber as confirmed. Re-confirming is a no-op assignment."""
        with translate_store_errors("confirm subscriber"):
            result = await self.db.execute(
                update(Subscriber)
                .filter(Subscriber.id == subscriber_id)
                .values(status=SubscriberStatus.CONFIRMED.value)
            )
        if result.rowcount == 0:
            raise NotFound(f"No subscriber with id {subscriber_id}")
