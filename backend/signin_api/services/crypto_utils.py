from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

# Argon2id for session tokens at rest
# time_cost=3, memory_cost=65536 (64MB), parallelism=4
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)


def hash_token(token: str) -> str:
    """Hash a bearer token using Argon2id."""
    return ph.hash(token)


def verify_token(token: str, token_hash: str) -> bool:
    """Verify a bearer token against its Argon2id hash."""
    try:
        return ph.verify(token_hash, token)
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError):
        # Corrupt stored hash: treat as no match
        return False
