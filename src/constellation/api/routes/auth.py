"""Sign-in endpoint: verifies the identity token and applies the allowlist."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from constellation.api.auth import check_allowlist, record_sign_in, token_email
from constellation.api.guards import rate_limit
from constellation.models import CamelModel, Role

router = APIRouter(tags=["auth"])

_bearer_scheme = HTTPBearer(auto_error=False)


class SignInResponse(CamelModel):
    email: str
    role: Role


@router.post(
    "/auth/signin",
    response_model=SignInResponse,
    dependencies=[Depends(rate_limit("auth-signin", "admin"))],
)
async def sign_in(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None = Security(_bearer_scheme),
) -> SignInResponse:
    """Exchange a verified ID token for the caller's allowlist role.

    Every attempt, allowed or not, is written to the sign-in audit log.
    """
    config = request.app.state.settings.auth
    if not config.enabled:
        raise HTTPException(status_code=503, detail="Authentication is not configured")
    if bearer is None:
        raise HTTPException(status_code=401, detail="Unauthorized", headers={"WWW-Authenticate": "Bearer"})

    store = request.app.state.store
    email = token_email(bearer.credentials, config)
    outcome, role = check_allowlist(store, email)
    record_sign_in(store, email, outcome)
    if role is None:
        raise HTTPException(status_code=403, detail="Access denied")
    return SignInResponse(email=email, role=role)
