import re

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request

from signin_api.config import settings
from signin_api.dependencies import get_credential_issuer
from signin_api.errors import SessionStoreUnavailable
from signin_api.middleware.rate_limit import limiter
from signin_api.schemas.session import SessionRevokeResponse, SessionStatusResponse
from signin_api.services.alert_service import send_error_alert
from signin_api.services.credential_issuer import CredentialIssuer

router = APIRouter()
logger = structlog.get_logger()

TOKEN_PATTERN = re.compile(r"^[a-f0-9]{64}$")


def extract_bearer_token(authorization: str = Header(...)) -> str:
    """Extract token from Authorization header."""
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")
    return authorization[7:]


async def _report_store_failure(request: Request, error: SessionStoreUnavailable) -> None:
    logger.error("session_store_unavailable", path=request.url.path, error=str(error))
    await send_error_alert(
        "SessionStoreUnavailable",
        str(error),
        path=request.url.path,
        correlation_id=getattr(request.state, "correlation_id", None),
    )


@router.get("/session", response_model=SessionStatusResponse, response_model_exclude_none=True)
@limiter.limit(settings.rate_limit_sessions)
async def get_session(
    request: Request,
    token: str = Depends(extract_bearer_token),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
):
    """
    Check a session token.

    Returns the authenticated account address if the token is live. A
    database outage is reported as an invalid token.
    """
    if not TOKEN_PATTERN.match(token):
        return SessionStatusResponse(valid=False)

    try:
        session = issuer.authenticate(token)
    except SessionStoreUnavailable as e:
        await _report_store_failure(request, e)
        return SessionStatusResponse(valid=False)

    if session is None:
        return SessionStatusResponse(valid=False)

    return SessionStatusResponse(valid=True, subject=session.subject, expires_at=session.expires_at)


@router.delete("/session", response_model=SessionRevokeResponse)
@limiter.limit(settings.rate_limit_sessions)
async def revoke_session(
    request: Request,
    token: str = Depends(extract_bearer_token),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
):
    """Sign out: revoke the presented session token."""
    if not TOKEN_PATTERN.match(token):
        return SessionRevokeResponse(revoked=False)

    try:
        revoked = issuer.revoke(token)
    except SessionStoreUnavailable as e:
        await _report_store_failure(request, e)
        return SessionRevokeResponse(revoked=False)

    return SessionRevokeResponse(revoked=revoked)
