# otpauth/auth.py
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, FastAPI
from sqlalchemy.engine import Engine

from .application.ports.audit_logger import AuditLogger
from .application.ports.otp_store import OtpCodeStore
from .application.ports.sms_transport import SmsTransport
from .application.ports.user_directory import UserDirectory
from .application.services.auth_gate import AuthGate
from .application.services.credential_verifier import CredentialVerifier
from .application.services.otp_issuer import OtpIssuer
from .application.services.token_service import TokenService
from .core.config import Settings, settings as default_settings
from .database import get_engine
from .exceptions import ConfigurationError
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.persistence.sqlalchemy.base_repository import BaseRepository
from .infrastructure.persistence.sqlalchemy.repositories.otp_store_sql import SqlOtpCodeStore
from .routers.auth_router import AuthHandlers
from .utils import utcnow

logger = logging.getLogger(__name__)

PATH_REGISTER = "/register"
PATH_LOGIN = "/login"
PATH_OTP = "/otp"
PATH_USER = "/user"


@dataclass
class AuthConfig:
    """Wiring for OtpAuth.

    ``sms_transport`` and ``user_directory`` are required. Every other
    entry is an optional override; ``None`` means "use the default".
    """

    sms_transport: Optional[SmsTransport] = None
    user_directory: Optional[UserDirectory] = None
    otp_store: Optional[OtpCodeStore] = None
    audit_logger: Optional[AuditLogger] = None
    otp_handler: Optional[Callable] = None
    login_handler: Optional[Callable] = None
    register_handler: Optional[Callable] = None
    get_user_handler: Optional[Callable] = None
    auth_gate: Optional[Callable] = None
    clock: Callable[[], datetime] = utcnow


class OtpAuth:
    def __init__(self, config: AuthConfig, settings: Optional[Settings] = None, engine: Optional[Engine] = None):
        self.config = config
        self.settings = settings or default_settings
        self.engine = engine
        self.prefix = self.settings.AUTH_PREFIX.rstrip("/")
        self._check_required()
        self.tokens = TokenService(secret=self.settings.SECRET_KEY, algorithm=self.settings.ALGORITHM)
        if not self.settings.secret_configured:
            logger.warning("JWT_SECRET_KEY is not configured; login will fail until it is set")
        self.router: Optional[APIRouter] = None

    def _check_required(self) -> None:
        missing = [name for name in ("sms_transport", "user_directory") if getattr(self.config, name) is None]
        if missing:
            raise ConfigurationError(f"OtpAuth requires: {', '.join(missing)}")

    def set_sms_transport(self, transport: SmsTransport) -> None:
        if transport is None:
            raise ConfigurationError("sms_transport cannot be None")
        self.config.sms_transport = transport

    def set_user_directory(self, directory: UserDirectory) -> None:
        if directory is None:
            raise ConfigurationError("user_directory cannot be None")
        self.config.user_directory = directory

    @property
    def register_path(self) -> str:
        return self.prefix + PATH_REGISTER

    @property
    def login_path(self) -> str:
        return self.prefix + PATH_LOGIN

    @property
    def otp_path(self) -> str:
        return self.prefix + PATH_OTP

    @property
    def user_path(self) -> str:
        return self.prefix + PATH_USER

    def _default_store(self) -> OtpCodeStore:
        if self.engine is None:
            self.engine = get_engine()
        return SqlOtpCodeStore(BaseRepository(self.engine))

    def build_handlers(self) -> AuthHandlers:
        cfg = self.config
        store = cfg.otp_store or self._default_store()
        cfg.otp_store = store
        return AuthHandlers(
            issuer=OtpIssuer(store=store, transport=cfg.sms_transport, ttl=self.settings.otp_ttl, clock=cfg.clock),
            verifier=CredentialVerifier(store=store, clock=cfg.clock),
            tokens=self.tokens,
            users=cfg.user_directory,
            audit=cfg.audit_logger or StdAuditLogger(),
        )

    def initialize(self, app: FastAPI) -> APIRouter:
        """Fill in defaults for every unset override and mount the auth routes on ``app``."""
        self._check_required()
        cfg = self.config
        handlers = self.build_handlers()

        if cfg.otp_handler is None:
            cfg.otp_handler = handlers.request_otp
        if cfg.login_handler is None:
            cfg.login_handler = handlers.login
        if cfg.register_handler is None:
            cfg.register_handler = handlers.register
        if cfg.get_user_handler is None:
            cfg.get_user_handler = handlers.get_user
        if cfg.auth_gate is None:
            cfg.auth_gate = AuthGate(token_service=self.tokens, register_path=self.register_path, clock=cfg.clock)

        self.router = self.set_routes()
        app.include_router(self.router)
        logger.info(f"OTP auth routes mounted under {self.prefix}")
        return self.router

    def set_routes(self) -> APIRouter:
        cfg = self.config
        gate = [Depends(cfg.auth_gate)]
        router = APIRouter(prefix=self.prefix, tags=["Authentication"])
        router.add_api_route(PATH_OTP, cfg.otp_handler, methods=["POST"])
        router.add_api_route(PATH_LOGIN, cfg.login_handler, methods=["POST"])
        router.add_api_route(PATH_REGISTER, cfg.register_handler, methods=["POST"], dependencies=gate)
        router.add_api_route(PATH_USER, cfg.get_user_handler, methods=["GET"], dependencies=gate)
        return router
