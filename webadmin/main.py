"""FastAPI application factory. No business logic; only wiring, startup and error shaping."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from webadmin.api import router as api_router
from webadmin.core.config import Settings, get_settings
from webadmin.core.database import build_engine, build_session_factory, init_db
from webadmin.core.logging_config import setup_logging
from webadmin.core.tokens import SigningConfig, TokenService, utcnow
from webadmin.services.user_store import UserStore, ensure_default_admin

logger = logging.getLogger(__name__)

_VALIDATION_MESSAGES = {
    "query": "Invalid query parameters",
    "path": "Invalid path parameters",
}


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    location = "body"
    errors = exc.errors()
    if errors and errors[0].get("loc"):
        location = errors[0]["loc"][0]
    return _error(400, _VALIDATION_MESSAGES.get(location, "Invalid request body"))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception: %s",
        type(exc).__name__,
        extra={"path": request.url.path, "method": request.method},
        exc_info=exc,
    )
    return _error(500, "Internal server error")


def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    """
    Build the application. The signing config is read from settings exactly
    once here; the resulting TokenService is shared read-only by all requests.
    """
    settings = settings or get_settings()
    setup_logging("DEBUG" if settings.VERBOSE else settings.LOG_LEVEL)

    engine = engine or build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    session_factory = build_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(engine)
        with session_factory() as db:
            ensure_default_admin(
                UserStore(
                    db,
                    bcrypt_rounds=settings.BCRYPT_ROUNDS,
                    default_avatar=settings.DEFAULT_AVATAR,
                ),
                settings,
            )
        logger.info(
            "webadmin starting up",
            extra={"environment": settings.APP_ENV, "api_prefix": settings.API_PREFIX},
        )
        yield
        logger.info("webadmin shutting down")

    app = FastAPI(
        title="webadmin API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.clock = clock
    app.state.token_service = TokenService(SigningConfig.from_settings(settings), clock=clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


def __getattr__(name: str) -> FastAPI:
    """Build the default `app` on first access (`uvicorn webadmin.main:app`), not at import."""
    if name != "app":
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    default_app = create_app()
    globals()["app"] = default_app
    return default_app
