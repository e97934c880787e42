"""
Validation of a signed sign-in statement.

Gates run in a fixed order and the first failure is reported:

1. Commitment   sha256(signedMessage) matches the commitment stored for the nonce
2. Temporal     issuedAt not in the future, not older than the max age, not expired
3. Domain       echoed domain equals the configured relying party
4. Address      public key derives the echoed address
5. Signature    signature over signedMessage verifies under the public key
6. Message      signedMessage equals the canonical form of the echoed statement

Gate 1 anchors every later check to the exact statement that was issued.
Gates 5 and 6 report the same reason: signed bytes that do not match the
claimed statement are as untrustworthy as a bad signature.

The validator never writes; consuming the commitment is the caller's job.
"""

from datetime import datetime, timedelta

import structlog

from signin_api.config import Settings
from signin_api.errors import (
    ChallengeNotFound,
    ChallengeStoreUnavailable,
    ClaimRejected,
    RejectionReason,
)
from signin_api.schemas.signin import ClaimRequest
from signin_api.services.challenge_builder import canonical_message, commitment_hash
from signin_api.services.challenge_store import ChallengeStore
from signin_api.services.signature_verifier import SignatureVerifier
from signin_api.timeutil import parse_timestamp, to_aware_utc, utcnow

logger = structlog.get_logger()


class ChallengeValidator:
    def __init__(self, settings: Settings, store: ChallengeStore, verifier: SignatureVerifier):
        self.settings = settings
        self.store = store
        self.verifier = verifier

    def validate(self, claim: ClaimRequest, now: datetime | None = None) -> str:
        """
        Run all gates against a claimed response.

        Returns the authenticated account address. Raises ClaimRejected with
        the reason of the first failing gate.
        """
        now = to_aware_utc(now) if now else utcnow()
        statement = claim.sign_in_input
        output = claim.sign_in_output

        self._check_commitment(statement.nonce, output.signed_message, now)
        self._check_temporal(statement.issued_at, statement.expiration_time, now)

        if statement.domain != self.settings.signin_domain:
            raise ClaimRejected(RejectionReason.DOMAIN_MISMATCH)

        # Hex shape is enforced by the request schema
        public_key = bytes.fromhex(output.public_key_hex)
        signature = bytes.fromhex(output.signature_hex)

        address = self.verifier.derive_address(public_key)
        if statement.address != address:
            raise ClaimRejected(RejectionReason.ADDRESS_MISMATCH)

        if not self.verifier.verify(public_key, output.signed_message.encode("utf-8"), signature):
            raise ClaimRejected(RejectionReason.SIGNATURE_INVALID)

        if output.signed_message != canonical_message(statement):
            raise ClaimRejected(RejectionReason.SIGNATURE_INVALID)

        return address

    def _check_commitment(self, nonce: str, signed_message: str, now: datetime) -> None:
        try:
            stored = self.store.get(nonce, now=now)
        except ChallengeNotFound:
            raise ClaimRejected(RejectionReason.INTEGRITY_MISMATCH)
        except ChallengeStoreUnavailable as e:
            logger.error("challenge_store_unavailable", nonce=nonce, error=str(e))
            raise ClaimRejected(RejectionReason.INTEGRITY_MISMATCH)

        if commitment_hash(signed_message) != stored:
            raise ClaimRejected(RejectionReason.INTEGRITY_MISMATCH)

    def _check_temporal(
        self, issued_at_raw: str | None, expiration_raw: str | None, now: datetime
    ) -> None:
        if issued_at_raw is not None:
            issued_at = parse_timestamp(issued_at_raw)
            max_age = timedelta(seconds=self.settings.challenge_max_age_seconds)

            if issued_at > now:
                raise ClaimRejected(RejectionReason.ISSUED_IN_FUTURE)

            if now - issued_at > max_age:
                raise ClaimRejected(RejectionReason.CHALLENGE_TOO_OLD)

        if expiration_raw is not None:
            if now > parse_timestamp(expiration_raw):
                raise ClaimRejected(RejectionReason.CHALLENGE_EXPIRED)
