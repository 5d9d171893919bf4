import logging
from typing import Optional

import logfire
import sentry_sdk
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from newsletter.core.config import Settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure process logging. Call once at startup."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
        ],
    )

    # Completely disable SQLAlchemy logging
    logging.getLogger("sqlalchemy").setLevel(logging.CRITICAL)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.CRITICAL)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.CRITICAL)


def configure_observability(app: FastAPI, engine: AsyncEngine, settings: Settings) -> None:
    """Hook up Sentry and Logfire when their credentials are configured."""
    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            send_default_pii=False,
        )

    # configure logfire only if token exists and not using fake token
    if settings.LOGFIRE_TOKEN and settings.LOGFIRE_TOKEN != "fake-token-for-testing":
        try:
            logfire.configure(token=settings.LOGFIRE_TOKEN, service_name=settings.PROJECT_NAME)
            logfire.instrument_fastapi(app, excluded_urls="/health_check")
            logfire.instrument_sqlalchemy(engine)
        except Exception as e:
            logger.warning(f"Failed to configure Logfire: {e}")


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Logger handle scoped to one request; prefixes every message with its id."""

    def __init__(self, logger: logging.Logger, request_id: Optional[str] = None):
        super().__init__(logger, {"request_id": request_id or "-"})

    @property
    def request_id(self) -> str:
        return self.extra["request_id"]

    def process(self, msg, kwargs):
        return f"[request_id={self.request_id}] {msg}", kwargs
