from signin_api.schemas.session import SessionRevokeResponse, SessionStatusResponse
from signin_api.schemas.signin import (
    ChallengeRequest,
    ChallengeResponse,
    ClaimRequest,
    ClaimResponse,
    SignInInput,
    SignInOutput,
)

__all__ = [
    "ChallengeRequest",
    "ChallengeResponse",
    "ClaimRequest",
    "ClaimResponse",
    "SessionRevokeResponse",
    "SessionStatusResponse",
    "SignInInput",
    "SignInOutput",
]
