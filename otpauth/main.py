import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from sqlalchemy.engine import Engine

# Load environment variables as early as possible
load_dotenv()

from .auth import AuthConfig, OtpAuth
from .core.config import Settings, settings as default_settings
from .database import build_engine, create_db_and_tables, get_engine
from .exceptions import AuthError, auth_error_handler, http_exception_handler
from .infrastructure.persistence.sqlalchemy.base_repository import BaseRepository
from .infrastructure.persistence.sqlalchemy.repositories.user_directory_sql import SqlUserDirectory
from .infrastructure.sms.logging_transport import LoggingSmsTransport
from .infrastructure.sms.twilio_transport import TwilioSmsTransport
from .middleware import ErrorHandlingMiddleware, LoggingMiddleware
from .utils import utcnow

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )


def default_auth_config(settings: Settings, engine: Engine) -> AuthConfig:
    """Twilio + SQL user directory when configured; log-only SMS otherwise."""
    if settings.twilio_configured:
        transport = TwilioSmsTransport(settings=settings)
    else:
        logger.warning("Twilio is not configured, OTP codes will only be written to the log")
        transport = LoggingSmsTransport()
    return AuthConfig(
        sms_transport=transport,
        user_directory=SqlUserDirectory(BaseRepository(engine)),
    )


def create_app(
    config: Optional[AuthConfig] = None,
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings)
    if engine is None:
        engine = get_engine() if settings is default_settings else build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    config = config or default_auth_config(settings, engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.APP_NAME}...")
        create_db_and_tables(engine)
        logger.info("Database initialized successfully")
        yield
        logger.info(f"Shutting down {settings.APP_NAME}...")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url=("/docs" if settings.DOCS_ENABLED else None),
        redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
        openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
    )

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(AuthError, auth_error_handler)

    app.add_middleware(ErrorHandlingMiddleware, debug=settings.DEBUG)
    app.add_middleware(LoggingMiddleware)

    auth = OtpAuth(config, settings=settings, engine=engine)
    auth.initialize(app)
    app.state.auth = auth

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": utcnow().isoformat(),
        }

    return app


_app: Optional[FastAPI] = None


def get_app() -> FastAPI:
    """The default application, built on first use"""
    global _app
    if _app is None:
        _app = create_app()
    return _app


def __getattr__(name: str):
    # Importing this module builds nothing; `otpauth.main:app` resolves here
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


# ------------------------
# Run with the configured host/port
# ------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "otpauth.main:get_app",
        factory=True,
        host=default_settings.HOST,
        port=default_settings.PORT,
        log_level=default_settings.LOG_LEVEL.lower()
    )
