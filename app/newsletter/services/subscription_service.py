import html
import logging
from typing import Optional, Union

from newsletter.core.errors import (
    DatabaseError,
    MailError,
    SendEmailError,
    SubscriptionValidationError,
)
from newsletter.core.tokens import generate_subscription_token
from newsletter.repositories.unit_of_work import AbstractUnitOfWork
from newsletter.schemas.subscriber import NewSubscriber
from newsletter.services.email import MailerGateway

CONFIRMATION_SUBJECT = "Welcome!"

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


def build_confirmation_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/subscriptions/confirm?subscription_token={token}"


class SubscriptionService:
    """Runs the subscribe workflow: validate, persist subscriber and token, commit, email."""

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        mailer: MailerGateway,
        base_url: str,
        logger: Optional[LoggerLike] = None,
    ):
        self.uow = uow
        self.mailer = mailer
        self.base_url = base_url
        self.logger = logger or logging.getLogger(__name__)

    async def subscribe(self, name: str, email: str) -> None:
        """
        Register a new pending subscriber and send them a confirmation link.

        Raises SubscriptionValidationError for bad input, DatabaseError (or
        ConstraintViolation for an already registered email) when nothing was
        stored, and SendEmailError when the subscriber was stored but the
        email could not be delivered.
        """
        try:
            new_subscriber = NewSubscriber.parse(name, email)
        except SubscriptionValidationError as e:
            self.logger.warning(f"Rejected subscription request: {e.error_chain()}")
            raise

        token = await self.store_subscriber(new_subscriber)
        await self.send_confirmation_email(new_subscriber, token)
        self.logger.info(f"New subscriber registered: {new_subscriber.email}")

    async def store_subscriber(self, new_subscriber: NewSubscriber) -> str:
        """Insert the subscriber and a fresh token in one transaction; return the token."""
        try:
            await self.uow.begin()
            subscriber = await self.uow.subscribers.insert_subscriber(new_subscriber)
            token = generate_subscription_token()
            await self.uow.subscription_tokens.insert_token(subscriber.id, token)
        except DatabaseError as e:
            await self._abort(e)
            self.logger.error(
                f"Failed to store subscriber {new_subscriber.email}: {e.error_chain()}",
                exc_info=True,
            )
            raise
        except Exception as e:
            await self._abort(e)
            error = DatabaseError("Failed to store subscriber")
            error.__cause__ = e
            self.logger.error(
                f"Failed to store subscriber {new_subscriber.email}: {error.error_chain()}",
                exc_info=True,
            )
            raise error from e

        try:
            await self.uow.commit()
        except DatabaseError as e:
            self.logger.error(
                f"Failed to commit new subscriber {new_subscriber.email}: {e.error_chain()}",
                exc_info=True,
            )
            raise

        return token

    async def send_confirmation_email(self, new_subscriber: NewSubscriber, token: str) -> None:
        """Email the confirmation link. Runs after commit; a failure leaves the subscriber pending."""
        confirmation_link = build_confirmation_link(self.base_url, token)
        html_body = (
            f"<h1>Welcome to our newsletter, {html.escape(new_subscriber.name)}!</h1>"
            f"<p>Please click the link below to confirm your subscription:</p>"
            f'<p><a href="{confirmation_link}">Confirm subscription</a></p>'
        )
        text_body = (
            f"Welcome to our newsletter, {new_subscriber.name}!\n"
            f"Visit {confirmation_link} to confirm your subscription."
        )

        try:
            await self.mailer.send_confirmation(
                new_subscriber.email, CONFIRMATION_SUBJECT, html_body, text_body
            )
        except MailError as e:
            error = SendEmailError(f"Failed to send confirmation email to {new_subscriber.email}")
            error.__cause__ = e
            self.logger.error(
                f"Subscriber stored but left pending: {error.error_chain()}", exc_info=e
            )
            raise error from e

    async def _abort(self, error: BaseException) -> None:
        try:
            await self.uow.rollback()
        except DatabaseError as rollback_error:
            self.logger.error(
                f"Rollback after {type(error).__name__} failed: {rollback_error.error_chain()}"
            )
