import hashlib
import json
import secrets
from datetime import datetime, timedelta

from signin_api.config import Settings
from signin_api.errors import InvalidInput
from signin_api.schemas.signin import SignInInput
from signin_api.services.signature_verifier import SignatureVerifier
from signin_api.timeutil import format_timestamp, utcnow


def canonical_message(statement: SignInInput) -> str:
    """
    Serialize a statement to the exact string the wallet signs.

    Compact JSON, wire key names, declared field order, absent optional
    fields omitted. The same string is hashed into the stored commitment.
    """
    # IMPORTANT: issuance and validation must produce identical bytes.
    return json.dumps(
        statement.model_dump(by_alias=True, exclude_none=True),
        separators=(",", ":"),
        ensure_ascii=False,
    )


def commitment_hash(message: str) -> str:
    """SHA-256 hex of a canonical message."""
    return hashlib.sha256(message.encode("utf-8")).hexdigest()


class ChallengeBuilder:
    """Builds sign-in statements from relying-party configuration."""

    def __init__(self, settings: Settings, verifier: SignatureVerifier):
        self.settings = settings
        self.verifier = verifier

    def generate_nonce(self) -> str:
        return secrets.token_hex(self.settings.nonce_bytes)

    def build_challenge(self, address: str, now: datetime | None = None) -> SignInInput:
        """
        Build a fresh statement for address.

        Raises InvalidInput if the address is empty or not valid on the
        configured network. Nothing is persisted here.
        """
        address = (address or "").strip()
        if not address:
            raise InvalidInput("Address is required")
        if not self.verifier.is_valid_address(address):
            raise InvalidInput("Invalid account address")

        issued_at = now or utcnow()
        expiration_time = issued_at + timedelta(seconds=self.settings.challenge_ttl_seconds)

        return SignInInput(
            domain=self.settings.signin_domain,
            address=address,
            statement=self.settings.signin_statement,
            uri=self.settings.signin_uri,
            version=self.settings.signin_version,
            chain_id=self.settings.signin_chain_id,
            nonce=self.generate_nonce(),
            issued_at=format_timestamp(issued_at),
            expiration_time=format_timestamp(expiration_time),
            resources=[],
        )
