import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from newsletter.models.subscriber import Subscriber, SubscriberStatus
from newsletter.models.subscription_token import SubscriptionToken


class TestSubscriberModel:
    """Test Subscriber model functionality."""

    @pytest.mark.asyncio
    async def test_subscriber_defaults(self, async_session):
        subscriber = Subscriber(
            email="test@gmail.com",
            name="Test",
            subscribed_at=datetime.now(timezone.utc),
        )
        async_session.add(subscriber)
        await async_session.commit()
        await async_session.refresh(subscriber)

        assert isinstance(subscriber.id, uuid.UUID)
        assert subscriber.status == SubscriberStatus.PENDING_CONFIRMATION.value
        assert subscriber.is_confirmed is False

    @pytest.mark.asyncio
    async def test_subscriber_unique_email(self, async_session):
        now = datetime.now(timezone.utc)
        async_session.add(Subscriber(email="test@gmail.com", name="One", subscribed_at=now))
        await async_session.commit()

        async_session.add(Subscriber(email="test@gmail.com", name="Two", subscribed_at=now))
        with pytest.raises(IntegrityError):
            await async_session.commit()

    @pytest.mark.asyncio
    async def test_token_references_subscriber(self, async_session):
        subscriber = Subscriber(
            email="test@gmail.com", name="Test", subscribed_at=datetime.now(timezone.utc)
        )
        async_session.add(subscriber)
        await async_session.flush()
        async_session.add(SubscriptionToken(subscription_token="abc", subscriber_id=subscriber.id))
        await async_session.commit()

        result = await async_session.execute(
            select(SubscriptionToken).filter(SubscriptionToken.subscription_token == "abc")
        )
        token = result.scalar_one()
        assert token.subscriber_id == subscriber.id
