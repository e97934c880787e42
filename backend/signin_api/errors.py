"""Error taxonomy for the sign-in protocol."""

from enum import Enum


class SignInError(Exception):
    """Base class for every failure raised by the sign-in services."""


class InvalidInput(SignInError):
    """The request is malformed (e.g. an address that cannot be decoded)."""


class NonceConflict(SignInError):
    """A commitment already exists for this nonce."""

    def __init__(self, nonce: str):
        super().__init__(f"Commitment already exists for nonce {nonce}")
        self.nonce = nonce


class ChallengeNotFound(SignInError):
    """No live commitment exists for this nonce."""


class ChallengeStoreUnavailable(SignInError):
    """The challenge store could not be reached."""


class IssuanceFailed(SignInError):
    """The credential backend failed to mint a token."""


class RejectionReason(str, Enum):
    """Why a claimed response was rejected. Values are shown to callers."""

    INTEGRITY_MISMATCH = "Input data mismatched"
    ISSUED_IN_FUTURE = "Challenge issued in the future"
    CHALLENGE_TOO_OLD = "Challenge too old"
    CHALLENGE_EXPIRED = "Challenge expired"
    DOMAIN_MISMATCH = "Invalid domain"
    ADDRESS_MISMATCH = "Address mismatch"
    SIGNATURE_INVALID = "Signature verification failed"


class ClaimRejected(SignInError):
    """A validation gate failed; terminal for the submitted claim."""

    def __init__(self, reason: RejectionReason):
        super().__init__(reason.value)
        self.reason = reason


class SessionStoreUnavailable(SignInError):
    """The session token table could not be queried or updated."""
