import logging
from fastapi import Depends, HTTPException

from ..application.ports.audit_logger import AuditLogger
from ..application.ports.user_directory import UserDirectory
from ..application.services.auth_gate import AuthorizationContext, get_authorization_context
from ..application.services.credential_verifier import CredentialVerifier
from ..application.services.otp_issuer import OtpIssuer
from ..application.services.token_service import SessionClaims, TokenService
from ..exceptions import (
    DeliveryError,
    ExpiredCode,
    InvalidCode,
    NotFound,
    RegistrationError,
    SigningError,
    StorageError,
)
from ..schemas import LoginRequest, LoginResponse, MessageResponse, OtpRequest, RegisterRequest, UserResponse

logger = logging.getLogger(__name__)


class AuthHandlers:
    """Default endpoints mounted by OtpAuth; any of them can be swapped through AuthConfig."""

    def __init__(
        self,
        issuer: OtpIssuer,
        verifier: CredentialVerifier,
        tokens: TokenService,
        users: UserDirectory,
        audit: AuditLogger,
    ):
        self.issuer = issuer
        self.verifier = verifier
        self.tokens = tokens
        self.users = users
        self.audit = audit

    def request_otp(self, payload: OtpRequest) -> MessageResponse:
        """Create and send a code for the phone"""
        try:
            record = self.issuer.issue_otp(payload.phone)
        except (StorageError, DeliveryError) as e:
            logger.error(f"OTP request failed: {type(e).__name__}")
            self.audit.log("otp_requested", payload.phone, success=False, details={"error": type(e).__name__})
            raise HTTPException(status_code=500, detail="Failed to send OTP")

        self.audit.log("otp_requested", payload.phone, details={"expires_at": record.expires_at.isoformat()})
        return MessageResponse(success=True, message="Code Sent")

    def login(self, payload: LoginRequest) -> LoginResponse:
        """Exchange a valid code for a session token"""
        try:
            record = self.verifier.verify(payload.phone, payload.code)
        except (InvalidCode, ExpiredCode):
            # One message for every credential failure
            self.audit.log("login", payload.phone, success=False)
            raise HTTPException(status_code=422, detail=InvalidCode.public_message)
        except StorageError:
            raise HTTPException(status_code=500, detail="Internal server error")

        try:
            registered = self.users.is_registered(payload.phone)
            claims = SessionClaims(
                phone=payload.phone,
                registered=registered,
                otp=payload.code,
                exp=record.expires_at,
            )
            token = self.tokens.mint(claims)
        except (StorageError, SigningError) as e:
            logger.error(f"Login failed after verification: {type(e).__name__}")
            raise HTTPException(status_code=500, detail="Internal server error")

        self.audit.log("login", payload.phone, registered=registered)
        return LoginResponse(token=token, phone=claims.phone, registered=registered, expiration=claims.exp)

    def register(
        self,
        payload: RegisterRequest,
        context: AuthorizationContext = Depends(get_authorization_context),
    ) -> MessageResponse:
        """Create the user record for the authenticated phone"""
        data = payload.model_dump(exclude_none=True)
        # The phone always comes from the verified token, never the body
        data["phone"] = context.phone
        try:
            self.users.register(data)
        except RegistrationError as e:
            logger.info(f"Registration rejected: {e}")
            self.audit.log("register", context.phone, success=False)
            raise HTTPException(status_code=422, detail=RegistrationError.public_message)
        except StorageError:
            raise HTTPException(status_code=500, detail="Internal server error")

        self.audit.log("register", context.phone, registered=True)
        return MessageResponse(success=True, message="registered user")

    def get_user(self, context: AuthorizationContext = Depends(get_authorization_context)) -> UserResponse:
        """Return the directory record of the authenticated phone"""
        try:
            user = self.users.find_by_phone(context.phone)
        except NotFound:
            raise HTTPException(status_code=404, detail="User not found")
        except StorageError:
            raise HTTPException(status_code=500, detail="Internal server error")
        return UserResponse.model_validate(user)
