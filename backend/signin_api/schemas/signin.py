from datetime import UTC, datetime
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    SerializerFunctionWrapHandler,
    field_validator,
    model_serializer,
)
from pydantic.alias_generators import to_camel

from signin_api.timeutil import parse_timestamp, to_naive_utc


def _serialize_utc(value: datetime) -> str:
    """Database datetimes are naive UTC; emit them with an explicit Z."""
    return to_naive_utc(value).replace(tzinfo=UTC).isoformat().replace("+00:00", "Z")


UTCDateTime = Annotated[datetime, PlainSerializer(_serialize_utc, return_type=str)]


class CamelModel(BaseModel):
    """Wire models use camelCase keys; Python code uses snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignInInput(CamelModel):
    """
    The sign-in statement a wallet is asked to sign.

    Field order is part of the canonical serialization: do not reorder.
    """

    domain: str = Field(..., max_length=253)
    address: str = Field(..., max_length=64)
    statement: str = Field(..., max_length=1024)
    uri: str = Field(..., max_length=2048)
    version: str = Field(..., max_length=16)
    chain_id: str = Field(..., max_length=64)
    nonce: str = Field(..., min_length=8, max_length=64, pattern=r"^[a-f0-9]+$")
    issued_at: str | None = None
    expiration_time: str | None = None
    not_before: str | None = None
    request_id: str | None = Field(None, max_length=128)
    resources: list[str] = Field(default_factory=list, max_length=32)

    @field_validator("issued_at", "expiration_time", "not_before")
    @classmethod
    def validate_timestamp(cls, v: str | None) -> str | None:
        if v is None:
            return None
        try:
            parse_timestamp(v)
        except ValueError:
            raise ValueError("Invalid ISO-8601 timestamp")
        # Keep the original string: it is part of the signed bytes
        return v

    @model_serializer(mode="wrap")
    def _omit_absent_fields(self, handler: SerializerFunctionWrapHandler) -> dict:
        # Absent optional fields are left out of the wire form entirely
        return {k: v for k, v in handler(self).items() if v is not None}


class SignInOutput(CamelModel):
    """What the wallet returns after signing."""

    public_key_hex: str = Field(..., pattern=r"^[0-9a-fA-F]{64}$")
    signature_hex: str = Field(..., pattern=r"^[0-9a-fA-F]{128}$")
    signed_message: str = Field(..., min_length=1, max_length=8192)


class ChallengeRequest(CamelModel):
    address: str | None = Field(None, max_length=128)


class ChallengeResponse(CamelModel):
    sign_in_input: SignInInput | None = None
    message: str | None = Field(None, description="Exact string to sign")


class ClaimRequest(CamelModel):
    sign_in_input: SignInInput
    sign_in_output: SignInOutput


class ClaimResponse(CamelModel):
    result: bool
    token: str | None = None
    expires_at: UTCDateTime | None = None
    error: str | None = None
