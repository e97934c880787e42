from datetime import datetime

from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from signin_api.errors import ChallengeNotFound, ChallengeStoreUnavailable, NonceConflict
from signin_api.models.challenge import ChallengeCommitment
from signin_api.timeutil import to_naive_utc, utcnow


class ChallengeStore:
    """
    Nonce -> commitment mapping backed by the signin_challenges table.

    Commitments are create-once: the nonce is the primary key, so concurrent
    inserts for the same nonce are serialized by the database and exactly one
    succeeds.
    """

    def __init__(self, db: Session):
        self.db = db

    def commit(self, nonce: str, commitment: str, address: str, retain_until: datetime) -> None:
        """Persist a commitment. Raises NonceConflict if the nonce already exists."""
        # Plain INSERT (no ORM merge): the primary key constraint is the only arbiter
        stmt = insert(ChallengeCommitment).values(
            nonce=nonce,
            commitment=commitment,
            address=address,
            created_at=to_naive_utc(utcnow()),
            retain_until=to_naive_utc(retain_until),
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise NonceConflict(nonce)

    def get(self, nonce: str, now: datetime | None = None) -> str:
        """
        Return the commitment for nonce.

        Raises ChallengeNotFound if absent, past retention or consumed, and
        ChallengeStoreUnavailable if the database cannot be queried.
        """
        now_naive = to_naive_utc(now or utcnow())
        try:
            record = self.db.get(ChallengeCommitment, nonce)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise ChallengeStoreUnavailable(str(e)) from e

        if record is None:
            raise ChallengeNotFound(nonce)
        if record.consumed_at is not None:
            raise ChallengeNotFound(nonce)
        if now_naive > record.retain_until:
            raise ChallengeNotFound(nonce)

        return record.commitment

    def consume(self, nonce: str, now: datetime | None = None) -> bool:
        """
        Mark a commitment as used so the same signed statement cannot be replayed.

        Returns False if it was already consumed or does not exist. The
        conditional UPDATE lets exactly one of several concurrent consumers win.
        """
        try:
            result = (
                self.db.query(ChallengeCommitment)
                .filter(
                    ChallengeCommitment.nonce == nonce,
                    ChallengeCommitment.consumed_at == None,  # noqa: E711 - SQLAlchemy requires ==
                )
                .update({"consumed_at": to_naive_utc(now or utcnow())})
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise ChallengeStoreUnavailable(str(e)) from e
        return result == 1

    def cleanup_expired(self, now: datetime | None = None) -> int:
        """Delete commitments past their retention deadline. Returns count of deleted rows."""
        result = (
            self.db.query(ChallengeCommitment)
            .filter(ChallengeCommitment.retain_until < to_naive_utc(now or utcnow()))
            .delete()
        )
        self.db.commit()
        return result
