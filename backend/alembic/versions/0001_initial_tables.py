"""Create signin_challenges and session_tokens tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Nonce is the primary key: a second insert for the same nonce must fail
    op.create_table(
        "signin_challenges",
        sa.Column("nonce", sa.String(64), primary_key=True),
        sa.Column("commitment", sa.String(64), nullable=False),
        sa.Column("address", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("retain_until", sa.DateTime, nullable=False),
        sa.Column("consumed_at", sa.DateTime, nullable=True),
    )

    op.create_index("ix_signin_challenges_address", "signin_challenges", ["address"])
    op.create_index("ix_signin_challenges_retain_until", "signin_challenges", ["retain_until"])

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("token_prefix", sa.String(16), nullable=False),
        sa.Column("token_hash", sa.String(128), unique=True, nullable=False),
        sa.Column("subject", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("expires_at", sa.DateTime, nullable=False),
        sa.Column("revoked_at", sa.DateTime, nullable=True),
    )

    op.create_index("ix_session_tokens_token_prefix", "session_tokens", ["token_prefix"])
    op.create_index("ix_session_tokens_subject", "session_tokens", ["subject"])
    op.create_index("ix_session_tokens_expires_at", "session_tokens", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_session_tokens_expires_at", table_name="session_tokens")
    op.drop_index("ix_session_tokens_subject", table_name="session_tokens")
    op.drop_index("ix_session_tokens_token_prefix", table_name="session_tokens")
    op.drop_table("session_tokens")

    op.drop_index("ix_signin_challenges_retain_until", table_name="signin_challenges")
    op.drop_index("ix_signin_challenges_address", table_name="signin_challenges")
    op.drop_table("signin_challenges")
