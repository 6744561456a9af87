from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import sys
import logging
import redis.asyncio as redis
from config import Settings
from services.container import ServiceContainer
from utils.errors import AppError
from routers import auth, calendar, meetings, recording, transcripts, summaries, chat, notes, invitations

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def validate_environment(settings: Settings):
    """Validate that all required environment variables are set."""
    missing = settings.missing_required()
    if missing:
        logger.error(f"Missing required environment variables: {missing}")
        sys.exit(1)
    logger.info("Environment validation passed")


def log_integration_status(settings: Settings):
    """Log which optional integrations are configured."""
    if settings.google_client_id and settings.google_client_secret:
        logger.info("Google sign-in ENABLED")
    else:
        logger.warning("Google sign-in DISABLED (GOOGLE_CLIENT_ID and/or GOOGLE_CLIENT_SECRET missing)")

    if settings.session_jwt_secret and len(settings.session_jwt_secret) >= 32:
        logger.info("Session tokens ENABLED")
    else:
        logger.warning("Session tokens DISABLED (SESSION_JWT_SECRET missing or shorter than 32 chars)")

    logger.info(
        f"Capture: chunk_seconds={settings.chunk_seconds}, "
        f"min_chunk_bytes={settings.min_chunk_bytes}, samplerate={settings.capture_samplerate}"
    )


def create_app(settings: Settings, **overrides) -> FastAPI:
    """
    Build the application.

    Keyword overrides (redis_client, http_client, openai_client, ai_service,
    media_provider_factory) are passed to ServiceContainer.build in place of
    clients created from settings.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = ServiceContainer.build(settings, **overrides)
        app.state.services = services
        logger.info("Services initialized")
        try:
            yield
        finally:
            await services.close()

    app = FastAPI(title="Meeting Assistant", lifespan=lifespan)
    app.state.settings = settings

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.warning(
            f"Request failed: path={request.url.path}, code={exc.code}, "
            f"status={exc.status_code}, message={exc.message}"
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/health")
    async def health():
        services = app.state.services
        try:
            await services.redis_client.ping()
            store_status = "ok"
        except redis.RedisError as e:
            logger.error(f"Health check: document store unreachable, error={e}")
            store_status = "unavailable"
        return {
            "status": "ok" if store_status == "ok" else "degraded",
            "document_store": store_status,
            "ai": "enabled" if services.ai_service.available else "disabled",
        }

    # Include routers
    app.include_router(auth.router)
    app.include_router(calendar.router)
    app.include_router(meetings.router)
    app.include_router(recording.router)
    app.include_router(transcripts.router)
    app.include_router(summaries.router)
    app.include_router(chat.router)
    app.include_router(notes.router)
    app.include_router(invitations.router)

    return app


settings = Settings.from_env()

# Call validation at startup
validate_environment(settings)
log_integration_status(settings)

app = create_app(settings)
