import logging
from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.core.config import settings
from newsletter.core.database import get_db
from newsletter.core.telemetry import RequestLoggerAdapter
from newsletter.repositories.unit_of_work import SqlAlchemyUnitOfWork
from newsletter.services.confirmation_service import ConfirmationService
from newsletter.services.email import MailerGateway, build_mailer
from newsletter.services.subscription_service import SubscriptionService


@lru_cache
def get_mailer() -> MailerGateway:
    """Dependency to provide the process-wide mailer."""
    return build_mailer(settings)


def get_request_logger(request: Request) -> RequestLoggerAdapter:
    """Dependency to provide a logger tagged with the current request id."""
    request_id = getattr(request.state, "request_id", None)
    return RequestLoggerAdapter(logging.getLogger("newsletter.workflows"), request_id)


async def get_subscription_service(
    db: AsyncSession = Depends(get_db),
    mailer: MailerGateway = Depends(get_mailer),
    request_logger: RequestLoggerAdapter = Depends(get_request_logger),
) -> SubscriptionService:
    """Dependency to provide SubscriptionService."""
    uow = SqlAlchemyUnitOfWork(db)
    return SubscriptionService(uow, mailer, settings.confirmation_base_url, request_logger)


async def get_confirmation_service(
    db: AsyncSession = Depends(get_db),
    request_logger: RequestLoggerAdapter = Depends(get_request_logger),
) -> ConfirmationService:
    """Dependency to provide ConfirmationService."""
    uow = SqlAlchemyUnitOfWork(db)
    return ConfirmationService(uow, request_logger)
