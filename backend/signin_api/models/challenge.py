from datetime import UTC, datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from signin_api.database import Base


class ChallengeCommitment(Base):
    """
    Server-side record of an issued sign-in statement.

    Only the SHA-256 of the canonical statement is kept, keyed by its nonce.
    The nonce is the primary key so a second insert for the same nonce fails
    inside the database instead of overwriting the first commitment.
    """

    __tablename__ = "signin_challenges"

    nonce: Mapped[str] = mapped_column(String(64), primary_key=True)
    commitment: Mapped[str] = mapped_column(String(64), nullable=False)
    address: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(UTC).replace(tzinfo=None), nullable=False
    )
    retain_until: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    consumed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, default=None)
