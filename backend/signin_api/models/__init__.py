from signin_api.models.challenge import ChallengeCommitment
from signin_api.models.session_token import SessionToken

__all__ = ["ChallengeCommitment", "SessionToken"]
