import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response

from newsletter.api.subscriptions import router as subscriptions_router
from newsletter.core.config import settings
from newsletter.core.database import engine
from newsletter.core.errors import NewsletterError
from newsletter.core.telemetry import configure_logging, configure_observability
from newsletter.models import Base

configure_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting up {settings.PROJECT_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(
        f"Database URL: {settings.DATABASE_URL.split('@')[-1] if '@' in settings.DATABASE_URL else 'local'}"
    )
    logger.info(f"Confirmation links point at: {settings.confirmation_base_url}")

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created/verified")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise

    yield

    logger.info(f"Shutting down {settings.PROJECT_NAME}...")
    await engine.dispose()


app = FastAPI(title=f"{settings.PROJECT_NAME} API", lifespan=lifespan)

configure_observability(app, engine, settings)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.exception_handler(NewsletterError)
async def newsletter_error_handler(request: Request, exc: NewsletterError):
    # Failures are logged where they happen; callers only get the status code
    return Response(status_code=exc.status_code)


app.include_router(subscriptions_router)


@app.get("/health_check", include_in_schema=False)
async def health_check():
    return Response(status_code=200)


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT)
