import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from signin_api.config import Settings
from signin_api.errors import IssuanceFailed, SessionStoreUnavailable
from signin_api.models.session_token import SessionToken
from signin_api.services.crypto_utils import hash_token, verify_token
from signin_api.timeutil import to_naive_utc, utcnow

logger = structlog.get_logger()

TOKEN_PREFIX_LENGTH = 16


def get_token_prefix(token: str) -> str:
    """Extract the prefix from a token for indexed lookup."""
    return token[:TOKEN_PREFIX_LENGTH]


@dataclass(frozen=True)
class IssuedCredential:
    token: str  # raw bearer token, only available at issue time
    subject: str
    expires_at: datetime


class CredentialIssuer:
    """
    Mints opaque bearer tokens for authenticated account addresses.

    The subject (account address) is the only claim bound to a token.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def issue(self, subject: str) -> IssuedCredential:
        """
        Create a session token for subject.

        Raises IssuanceFailed if the token could not be persisted.
        """
        # 64 hex chars = 256 bits
        raw_token = secrets.token_hex(32)
        expires_at = to_naive_utc(utcnow()) + timedelta(seconds=self.settings.session_ttl_seconds)

        token = SessionToken(
            token_prefix=get_token_prefix(raw_token),
            token_hash=hash_token(raw_token),
            subject=subject,
            expires_at=expires_at,
        )

        try:
            self.db.add(token)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise IssuanceFailed(str(e)) from e

        return IssuedCredential(token=raw_token, subject=subject, expires_at=expires_at)

    def find(self, raw_token: str) -> SessionToken | None:
        """
        Find an unrevoked session token by its raw value.

        Uses indexed prefix lookup, then Argon2 verification. Raises
        SessionStoreUnavailable if the database cannot be queried.
        """
        prefix = get_token_prefix(raw_token)
        try:
            candidates = (
                self.db.query(SessionToken)
                .filter(
                    SessionToken.token_prefix == prefix,
                    SessionToken.revoked_at == None,  # noqa: E711 - SQLAlchemy requires ==
                )
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise SessionStoreUnavailable(str(e)) from e

        for token in candidates:
            if verify_token(raw_token, token.token_hash):
                return token

        return None

    def authenticate(self, raw_token: str, now: datetime | None = None) -> SessionToken | None:
        """Return the session for raw_token if it exists, is unrevoked and unexpired."""
        token = self.find(raw_token)
        if token is None:
            return None

        if to_naive_utc(now or utcnow()) >= token.expires_at:
            return None

        return token

    def revoke(self, raw_token: str) -> bool:
        """Revoke a session token. Returns False if no active token matched."""
        token = self.find(raw_token)
        if token is None:
            return False

        token.revoked_at = to_naive_utc(utcnow())
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise SessionStoreUnavailable(str(e)) from e
        logger.info("session_revoked", session_id=token.id, subject=token.subject)
        return True

    def cleanup_expired(self, now: datetime | None = None) -> int:
        """Delete expired session tokens. Returns count of deleted rows."""
        result = (
            self.db.query(SessionToken)
            .filter(SessionToken.expires_at < to_naive_utc(now or utcnow()))
            .delete()
        )
        self.db.commit()
        return result
