from abc import ABC, abstractmethod
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.core.errors import StoreUnavailable
from newsletter.repositories.base import translate_store_errors
from newsletter.repositories.subscriber_repository import SubscriberRepository
from newsletter.repositories.subscription_token_repository import SubscriptionTokenRepository

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern for managing database transactions."""

    subscribers: SubscriberRepository
    subscription_tokens: SubscriptionTokenRepository

    async def __aenter__(self):
        await self.begin()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            await self.rollback()
        else:
            await self.commit()

    @abstractmethod
    async def begin(self):
        raise NotImplementedError

    @abstractmethod
    async def commit(self):
        raise NotImplementedError

    @abstractmethod
    async def rollback(self):
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """SQLAlchemy implementation of Unit of Work pattern."""

    def __init__(self, session: AsyncSession):
        self.session = session
        # Initialize repositories with the session
        self.subscribers = SubscriberRepository(self.session)
        self.subscription_tokens = SubscriptionTokenRepository(self.session)

    async def begin(self):
        """Check out a connection and open the transaction."""
        try:
            await self.session.connection()
            logger.debug("Transaction started")
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailable("Could not start a database transaction") from e

    async def commit(self):
        """Commit the current transaction."""
        try:
            with translate_store_errors("commit transaction"):
                await self.session.commit()
            logger.debug("Transaction committed successfully")
        except Exception as e:
            logger.debug(f"Commit failed, rolling back: {e}")
            await self.rollback()
            raise

    async def rollback(self):
        """Rollback the current transaction."""
        try:
            with translate_store_errors("roll back transaction"):
                await self.session.rollback()
            logger.debug("Transaction rolled back")
        except Exception as e:
            logger.debug(f"Rollback failed: {e}")
            raise
