from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.models.subscription_token import SubscriptionToken
from newsletter.repositories.base import BaseRepository, translate_store_errors


class SubscriptionTokenRepository(BaseRepository[SubscriptionToken]):
    """Repository for SubscriptionToken model operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, SubscriptionToken)

    async def insert_token(self, subscriber_id: UUID, token: str) -> None:
        """Store a token for an existing subscriber."""
        await self.create({
            "subscription_token": token,
            "subscriber_id": subscriber_id,
        })

    async def find_subscriber_id_by_token(self, token: str) -> Optional[UUID]:
        """Resolve a token to its subscriber id, None if the token was never issued."""
        with translate_store_errors("look up subscription token"):
            result = await self.db.execute(
                select(SubscriptionToken.subscriber_id).filter(
                    SubscriptionToken.subscription_token == token
                )
            )
            return result.scalar_one_or_none()

    async def tokens_for_subscriber(self, subscriber_id: UUID) -> List[str]:
        with translate_store_errors("list subscription tokens"):
            result = await self.db.execute(
                select(SubscriptionToken.subscription_token).filter(
                    SubscriptionToken.subscriber_id == subscriber_id
                )
            )
            return list(result.scalars().all())
