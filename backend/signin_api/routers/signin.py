from datetime import timedelta

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from signin_api.config import Settings, settings
from signin_api.dependencies import (
    get_challenge_builder,
    get_challenge_store,
    get_challenge_validator,
    get_credential_issuer,
    get_settings,
)
from signin_api.errors import (
    ChallengeStoreUnavailable,
    ClaimRejected,
    InvalidInput,
    IssuanceFailed,
    NonceConflict,
    RejectionReason,
)
from signin_api.middleware.rate_limit import limiter
from signin_api.schemas.signin import (
    ChallengeRequest,
    ChallengeResponse,
    ClaimRequest,
    ClaimResponse,
)
from signin_api.services.alert_service import send_error_alert
from signin_api.services.challenge_builder import (
    ChallengeBuilder,
    canonical_message,
    commitment_hash,
)
from signin_api.services.challenge_store import ChallengeStore
from signin_api.services.challenge_validator import ChallengeValidator
from signin_api.services.credential_issuer import CredentialIssuer
from signin_api.timeutil import parse_timestamp

router = APIRouter()
logger = structlog.get_logger()

# Infrastructure failures get the same answer as a bad signature so that
# unauthenticated callers learn nothing about backend state.
GENERIC_DENIAL = RejectionReason.SIGNATURE_INVALID.value


@router.post("/sign-in/challenges", response_model=ChallengeResponse)
@limiter.limit(settings.rate_limit_challenges)
async def create_sign_in_challenge(
    request: Request,
    challenge_data: ChallengeRequest,
    app_settings: Settings = Depends(get_settings),
    builder: ChallengeBuilder = Depends(get_challenge_builder),
    store: ChallengeStore = Depends(get_challenge_store),
):
    """
    Issue a sign-in statement for an account address.

    The statement must be signed verbatim by the account's key and sent back
    to /sign-in/claims before it expires. A request without an address is a
    no-op and returns a null statement.
    """
    address = (challenge_data.address or "").strip()
    if not address:
        return ChallengeResponse(sign_in_input=None)

    try:
        statement = builder.build_challenge(address)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))

    message = canonical_message(statement)
    retain_until = parse_timestamp(statement.issued_at) + timedelta(
        seconds=app_settings.challenge_retention_seconds
    )

    try:
        store.commit(statement.nonce, commitment_hash(message), statement.address, retain_until)
    except NonceConflict:
        logger.warning("challenge_nonce_conflict", nonce=statement.nonce)
        raise HTTPException(status_code=409, detail="Nonce collision, request a new challenge")

    logger.info(
        "challenge_issued",
        nonce=statement.nonce,
        address=statement.address,
        expiration_time=statement.expiration_time,
    )

    return ChallengeResponse(sign_in_input=statement, message=message)


@router.post("/sign-in/claims", response_model=ClaimResponse, response_model_exclude_none=True)
@limiter.limit(settings.rate_limit_claims)
async def claim_session_token(
    request: Request,
    claim: ClaimRequest,
    app_settings: Settings = Depends(get_settings),
    validator: ChallengeValidator = Depends(get_challenge_validator),
    store: ChallengeStore = Depends(get_challenge_store),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
):
    """
    Exchange a signed statement for a session token.

    Every validation failure is reported as result=false with a reason;
    nothing here is retried and a rejected statement cannot be resubmitted.
    """
    nonce = claim.sign_in_input.nonce

    try:
        subject = validator.validate(claim)
    except ClaimRejected as e:
        logger.info(
            "claim_rejected",
            nonce=nonce,
            address=claim.sign_in_input.address,
            reason=e.reason.name,
        )
        return ClaimResponse(result=False, error=e.reason.value)

    if app_settings.consume_challenge_on_success:
        try:
            consumed = store.consume(nonce)
        except ChallengeStoreUnavailable as e:
            logger.error("challenge_store_unavailable", nonce=nonce, error=str(e))
            await send_error_alert(
                "ChallengeStoreUnavailable",
                str(e),
                path=request.url.path,
                correlation_id=getattr(request.state, "correlation_id", None),
            )
            return ClaimResponse(result=False, error=GENERIC_DENIAL)

        if not consumed:
            # Another request redeemed this statement first
            logger.info("claim_rejected", nonce=nonce, address=subject, reason="ALREADY_CONSUMED")
            return ClaimResponse(result=False, error=RejectionReason.INTEGRITY_MISMATCH.value)

    try:
        credential = issuer.issue(subject)
    except IssuanceFailed as e:
        logger.error("credential_issuance_failed", nonce=nonce, address=subject, error=str(e))
        await send_error_alert(
            "IssuanceFailed",
            str(e),
            path=request.url.path,
            correlation_id=getattr(request.state, "correlation_id", None),
            context={"address": subject},
        )
        return ClaimResponse(result=False, error=GENERIC_DENIAL)

    logger.info("claim_accepted", nonce=nonce, address=subject)

    return ClaimResponse(result=True, token=credential.token, expires_at=credential.expires_at)
