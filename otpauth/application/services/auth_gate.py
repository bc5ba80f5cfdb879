import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from fastapi import HTTPException, Request

from .token_service import SessionClaims, TokenService
from ...exceptions import Forbidden, InvalidToken, Unauthenticated
from ...utils import as_utc, utcnow

logger = logging.getLogger(__name__)


class GateState(str, enum.Enum):
    NO_CREDENTIAL = "no_credential"
    CREDENTIAL_PRESENT = "credential_present"
    PARSED = "parsed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class AuthorizationContext:
    """Per-request view of the caller, built from verified session claims."""

    phone: str
    registered: bool
    otp: str
    exp: datetime

    @classmethod
    def from_claims(cls, claims: SessionClaims) -> "AuthorizationContext":
        return cls(phone=claims.phone, registered=claims.registered, otp=claims.otp, exp=claims.exp)


@dataclass(frozen=True)
class GateDecision:
    state: GateState
    status_code: int
    context: Optional[AuthorizationContext] = None
    reason: str = ""

    @property
    def accepted(self) -> bool:
        return self.state is GateState.ACCEPTED


def _reject(status_code: int, reason: str) -> GateDecision:
    return GateDecision(state=GateState.REJECTED, status_code=status_code, reason=reason)


@dataclass(eq=False)
class AuthGate:
    """Bearer token gate for protected auth routes.

    Walks NO_CREDENTIAL -> CREDENTIAL_PRESENT -> PARSED -> ACCEPTED/REJECTED
    for every request; nothing is carried between requests. Requests to
    ``register_path`` carrying ``registered=true`` are refused with 403.
    """

    token_service: TokenService
    register_path: str
    clock: Callable[[], datetime] = utcnow

    UNAUTHORIZED_DETAIL = "Unauthorized"
    FORBIDDEN_DETAIL = Forbidden.public_message

    def evaluate(self, authorization: Optional[str], path: str) -> GateDecision:
        state = GateState.NO_CREDENTIAL
        if not authorization or "bearer" not in authorization.lower():
            return _reject(401, f"{state.value}: no bearer credential")

        state = GateState.CREDENTIAL_PRESENT
        try:
            claims = self.token_service.parse(authorization)
        except (Unauthenticated, InvalidToken) as e:
            return _reject(401, f"{state.value}: {e}")

        state = GateState.PARSED
        if claims.registered and self._is_register_path(path):
            return _reject(403, f"{state.value}: phone already registered")

        if as_utc(self.clock()) >= claims.exp:
            return _reject(401, f"{state.value}: session expired")

        return GateDecision(
            state=GateState.ACCEPTED,
            status_code=200,
            context=AuthorizationContext.from_claims(claims),
        )

    def _is_register_path(self, path: str) -> bool:
        return path.rstrip("/") == self.register_path.rstrip("/")

    @staticmethod
    def _route_path(request: Request) -> str:
        # Path as declared on the matched route, independent of any mount prefix
        route = request.scope.get("route")
        if getattr(route, "path", None):
            return route.path
        path = request.url.path
        root_path = request.scope.get("root_path", "")
        if root_path and path.startswith(root_path):
            path = path[len(root_path):]
        return path

    async def __call__(self, request: Request) -> AuthorizationContext:
        decision = self.evaluate(request.headers.get("Authorization"), self._route_path(request))
        if not decision.accepted:
            logger.info(f"AuthGate rejected {request.method} {request.url.path} ({decision.status_code}): {decision.reason}")
            if decision.status_code == 403:
                raise HTTPException(status_code=403, detail=self.FORBIDDEN_DETAIL)
            raise HTTPException(
                status_code=decision.status_code,
                detail=self.UNAUTHORIZED_DETAIL,
                headers={"WWW-Authenticate": TokenService.BEARER_SCHEME},
            )
        request.state.auth = decision.context
        return decision.context


def get_authorization_context(request: Request) -> AuthorizationContext:
    """Read the context a preceding AuthGate stored on the request."""
    context = getattr(request.state, "auth", None)
    if context is None:
        raise HTTPException(status_code=401, detail=AuthGate.UNAUTHORIZED_DETAIL)
    return context
