import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Dict, Optional

import jwt
from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr, ValidationError, field_validator

from ...core.config import UNCONFIGURED_SECRET
from ...exceptions import ConfigurationError, InvalidToken, SigningError, Unauthenticated
from ...utils import as_utc

logger = logging.getLogger(__name__)


class SessionClaims(BaseModel):
    """Typed payload of a session token, validated once when the token is parsed."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    phone: StrictStr
    registered: StrictBool
    otp: StrictStr
    exp: datetime

    @field_validator("exp")
    @classmethod
    def _normalize_exp(cls, value: datetime) -> datetime:
        # JWT NumericDate has whole second resolution
        return as_utc(value).replace(microsecond=0)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "phone": self.phone,
            "registered": self.registered,
            "otp": self.otp,
            "exp": int(self.exp.timestamp()),
        }


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the credentials of a ``Bearer`` Authorization header or raise Unauthenticated."""
    if not authorization:
        raise Unauthenticated("missing authorization header")
    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() != TokenService.BEARER_SCHEME.lower() or not credentials.strip():
        raise Unauthenticated("authorization header is not a bearer credential")
    return credentials.strip()


@dataclass
class TokenService:
    secret: str
    algorithm: str = "HS256"

    BEARER_SCHEME: ClassVar[str] = "Bearer"
    REQUIRED_CLAIMS: ClassVar[tuple] = ("phone", "registered", "otp", "exp")

    def __post_init__(self) -> None:
        if not self.algorithm.startswith("HS"):
            raise ConfigurationError(f"Session tokens must use a symmetric HMAC algorithm, got {self.algorithm}")

    def _secret_usable(self) -> bool:
        return bool(self.secret) and self.secret != UNCONFIGURED_SECRET

    def mint(self, claims: SessionClaims) -> str:
        """Sign ``claims`` into a compact JWT."""
        if not self._secret_usable():
            raise SigningError("JWT secret key not properly configured")
        try:
            return jwt.encode(claims.to_payload(), self.secret, algorithm=self.algorithm)
        except Exception as e:
            logger.error(f"Token signing failed: {e}")
            raise SigningError(str(e)) from e

    def parse(self, authorization: Optional[str]) -> SessionClaims:
        """Parse a raw ``Authorization`` header value into verified claims."""
        return self.decode(extract_bearer_token(authorization))

    def decode(self, token: str) -> SessionClaims:
        if not self._secret_usable():
            logger.error("Token verification attempted without a configured secret")
            raise InvalidToken("JWT secret key not properly configured")

        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as e:
            raise InvalidToken(f"malformed token: {e}") from e

        # Reject algorithm substitution (none, RS256 with the secret as public key, ...)
        if header.get("alg") != self.algorithm:
            logger.warning(f"Rejected token signed with unexpected algorithm {header.get('alg')!r}")
            raise InvalidToken("unexpected signing algorithm")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": list(self.REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidToken("token expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidToken(str(e)) from e

        try:
            return SessionClaims.model_validate(payload)
        except ValidationError as e:
            raise InvalidToken("token claims have the wrong shape") from e
