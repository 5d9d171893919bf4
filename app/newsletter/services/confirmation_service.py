import logging
from typing import Optional, Union

from newsletter.core.errors import DatabaseError, NotFound, UnknownTokenError
from newsletter.repositories.unit_of_work import AbstractUnitOfWork

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


class ConfirmationService:
    """Confirms a pending subscriber from the token in their confirmation link."""

    def __init__(self, uow: AbstractUnitOfWork, logger: Optional[LoggerLike] = None):
        self.uow = uow
        self.logger = logger or logging.getLogger(__name__)

    async def confirm(self, token: str) -> None:
        """Mark the token's subscriber as confirmed. Raises UnknownTokenError for unknown tokens."""
        try:
            async with self.uow:
                subscriber_id = await self.uow.subscription_tokens.find_subscriber_id_by_token(token)
                if subscriber_id is None:
                    raise UnknownTokenError()
                await self.uow.subscribers.confirm_subscriber(subscriber_id)
        except UnknownTokenError:
            self.logger.info("Confirmation attempted with an unknown token")
            raise
        except NotFound as e:
            self.logger.warning(f"Token points at a missing subscriber: {e.error_chain()}")
            raise UnknownTokenError() from e
        except DatabaseError as e:
            self.logger.error(f"Failed to confirm subscriber: {e.error_chain()}", exc_info=True)
            raise

        self.logger.info(f"Subscriber {subscriber_id} confirmed")
