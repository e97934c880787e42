"""UTC time helpers shared by the statement builder, schemas and validator."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_naive_utc(value: datetime) -> datetime:
    """Convert to the naive UTC form stored in the database."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.replace(tzinfo=None)


def format_timestamp(value: datetime) -> str:
    """Format as ISO-8601 with millisecond precision and a Z suffix (2025-01-01T00:00:00.000Z)."""
    value = to_naive_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Timestamps without an offset are taken as UTC.
    Raises ValueError if the string is not a timestamp or falls outside the
    representable range once converted to UTC.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except OverflowError as e:
        raise ValueError(f"Timestamp out of range: {value}") from e


def to_aware_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (which are UTC throughout this service)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
