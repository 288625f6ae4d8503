"""API authentication: API key and JWT Bearer support, gated by the email allowlist.

Bearer tokens are identity-provider ID tokens. Once verified, the email
claim is looked up in the allowlist: only active entries get through and
the entry's role becomes the caller's role. API keys identify trusted
services and act with the admin role.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

import jwt as pyjwt
from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from constellation.models import AuthAuditEvent, Role
from constellation.services.repositories import new_id

if TYPE_CHECKING:
    from constellation.core.config import AuthConfig
    from constellation.services.store import DataStore

log = logging.getLogger(__name__)

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
_bearer_scheme = HTTPBearer(auto_error=False)

SignInOutcome = Literal["allowed", "denied_not_allowlisted", "denied_inactive"]


@dataclass(frozen=True)
class Principal:
    """The authenticated caller."""

    email: str
    role: Role
    via: Literal["api_key", "bearer"] = "bearer"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@lru_cache(maxsize=8)
def _jwk_client(jwks_url: str) -> pyjwt.PyJWKClient:
    return pyjwt.PyJWKClient(jwks_url)


def decode_token(token: str, config: AuthConfig) -> dict:
    """Verify a bearer token and return its claims. Raises 401 on any failure."""
    audience = config.audience or None
    issuer = config.issuer or None
    try:
        if config.jwks_url:
            signing_key = _jwk_client(config.jwks_url).get_signing_key_from_jwt(token)
            return pyjwt.decode(
                token,
                key=signing_key.key,
                algorithms=[config.algorithm],
                audience=audience,
                issuer=issuer,
            )
        if config.jwt_secret:
            return pyjwt.decode(
                token,
                key=config.jwt_secret,
                algorithms=["HS256", "HS384", "HS512"],
                audience=audience,
                issuer=issuer,
            )
        # Gateway-terminated auth: upstream proxy verified the signature,
        # we only decode claims (audience, issuer, expiry still checked).
        log.warning(
            "JWT signature verification disabled (no JWKS URL or secret). "
            "Ensure requests are proxied through an authenticating gateway."
        )
        return pyjwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": True},
            algorithms=[config.algorithm],
            audience=audience,
            issuer=issuer,
        )
    except pyjwt.PyJWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}") from e


def token_email(token: str, config: AuthConfig) -> str:
    claims = decode_token(token, config)
    email = claims.get(config.email_claim)
    if not isinstance(email, str) or not email.strip():
        raise HTTPException(status_code=401, detail="Invalid token: missing email claim")
    return email.strip().lower()


def check_allowlist(store: DataStore, email: str) -> tuple[SignInOutcome, Role | None]:
    """Decide whether ``email`` may sign in and with which role."""
    entry = store.allowlist.find_by_email(email)
    if entry is None:
        return "denied_not_allowlisted", None
    if not entry.is_active:
        return "denied_inactive", None
    return "allowed", entry.role


def record_sign_in(store: DataStore, email: str, outcome: SignInOutcome) -> None:
    store.auth_audit.save(AuthAuditEvent(id=new_id(), email=email, outcome=outcome))
    log.info("Sign-in attempt", extra={"email": email, "outcome": outcome})


async def require_auth(
    request: Request,
    api_key: str | None = Security(_api_key_header),
    bearer: HTTPAuthorizationCredentials | None = Security(_bearer_scheme),
) -> Principal:
    """Authenticate the caller or raise 503/401/403."""
    config: AuthConfig = request.app.state.settings.auth

    if not config.enabled:
        raise HTTPException(status_code=503, detail="Authentication is not configured")

    # Try API key first
    if api_key and api_key in config.api_keys:
        return Principal(email="service", role=Role.ADMIN, via="api_key")

    # Try JWT Bearer
    if bearer:
        email = token_email(bearer.credentials, config)
        outcome, role = check_allowlist(request.app.state.store, email)
        if role is None:
            log.info("Bearer token rejected by allowlist", extra={"email": email, "outcome": outcome})
            raise HTTPException(status_code=403, detail="Access denied")
        return Principal(email=email, role=role)

    raise HTTPException(
        status_code=401,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_admin(principal: Principal = Depends(require_auth)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")
    return principal
