"""FastAPI application factory for the Flippy++ API server"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from flippy.auth.service import AuthService
from flippy.auth.sessions import SessionRegistry
from flippy.services.admin_service import AdminService
from flippy.services.card_service import CardService
from flippy.services.flashcard_generator import FlashcardGenerator
from flippy.stores import ApiKeyStore, CardStore, Database, UsageLogger, UserStore
from flippy.utils.config import Settings, load_settings
from flippy.utils.exceptions import FlippyError
from flippy.utils.logger import configure_logging, get_logger

from .admin_routes import router as admin_router
from .auth_routes import router as auth_router
from .card_routes import router as card_router
from .usage_middleware import UsageMeteringMiddleware

logger = get_logger(__name__)

SERVER_ERROR_MSG = "Server error."
UPSTREAM_ERROR_MSG = "Upstream service error."
INVALID_BODY_MSG = "Invalid request body."


async def flippy_error_handler(request: Request, exc: FlippyError) -> JSONResponse:
    """Render domain errors as {"error": ...}; internal details stay in the log."""
    message = exc.message
    if exc.status_code == 500:
        logger.error("Request failed", path=request.url.path, error=exc.message, cause=repr(exc.__cause__))
        message = SERVER_ERROR_MSG
    elif exc.status_code == 502:
        logger.error("Upstream failure", path=request.url.path, error=exc.message, cause=repr(exc.__cause__))
        message = UPSTREAM_ERROR_MSG
    return JSONResponse({"error": message}, status_code=exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request body", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse({"error": INVALID_BODY_MSG}, status_code=400)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        {"error": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None)
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", path=request.url.path, error=repr(exc))
    return JSONResponse({"error": SERVER_ERROR_MSG}, status_code=500)


def create_app(settings: Settings, generator: Optional[FlashcardGenerator] = None) -> FastAPI:
    """
    Build the API server: stores, session registry, services, routes.

    The schema is created (and the optional seed admin inserted) eagerly so
    a broken database fails at startup, not on the first request.
    """
    db = Database(settings.database.path, timeout_seconds=settings.database.timeout_seconds)
    db.init_schema()

    sessions = SessionRegistry(
        ttl=timedelta(days=settings.auth.session_ttl_days),
        cookie_name=settings.auth.cookie_name,
    )
    users = UserStore(db)
    usage = UsageLogger(db)
    auth = AuthService(
        users,
        sessions,
        default_api_calls=settings.quota.default_api_calls,
        bcrypt_rounds=settings.auth.bcrypt_rounds,
    )
    auth.ensure_seed_admin(settings.auth.seed_admin_email, settings.auth.seed_admin_password)

    if generator is None:
        generator = FlashcardGenerator(
            api_key=settings.ai.api_key,
            base_url=settings.ai.base_url,
            model=settings.ai.model,
            timeout=settings.ai.timeout_seconds,
            max_retries=settings.ai.max_retries,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sessions.init()
        logger.info("Server started", name=settings.app.name, environment=settings.app.environment)
        yield
        sessions.shutdown()

    app = FastAPI(
        title=f"{settings.app.name} API",
        description="Flashcard generation, study and admin API",
        version=settings.app.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db
    app.state.sessions = sessions
    app.state.users = users
    app.state.usage = usage
    app.state.auth = auth
    app.state.cards = CardService(CardStore(db), users)
    app.state.admin = AdminService(auth, users, ApiKeyStore(db), usage)
    app.state.generator = generator

    app.add_exception_handler(FlippyError, flippy_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.add_middleware(UsageMeteringMiddleware, usage_logger=usage, sessions=sessions)
    # CORS last so it wraps metering and answers preflights first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.server.client_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(auth_router)
    app.include_router(card_router)
    app.include_router(admin_router)

    @app.get("/health", tags=["ops"])
    def health() -> dict:
        return {"status": "ok"}

    return app


def build_app() -> FastAPI:
    """uvicorn factory: load settings from config/settings.yaml (+ .env)."""
    settings = load_settings()
    configure_logging(
        level=settings.logging.level,
        fmt=settings.logging.format,
        file_path=settings.logging.file_path,
        max_bytes=settings.logging.max_bytes,
        backup_count=settings.logging.backup_count,
    )
    return create_app(settings)
