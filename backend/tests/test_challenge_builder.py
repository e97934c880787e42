"""Tests for statement construction and canonical serialization."""

import hashlib
import json
from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from signin_api.config import Settings
from signin_api.errors import InvalidInput
from signin_api.schemas.signin import SignInInput
from signin_api.services.challenge_builder import (
    ChallengeBuilder,
    canonical_message,
    commitment_hash,
)
from signin_api.services.signature_verifier import SymbolSignatureVerifier
from signin_api.timeutil import parse_timestamp


@pytest.fixture
def builder():
    return ChallengeBuilder(Settings(), SymbolSignatureVerifier("testnet"))


class TestBuildChallenge:
    """Tests for ChallengeBuilder.build_challenge."""

    def test_fields_come_from_configuration(self, builder, wallet):
        """Test that relying-party fields are echoed from settings."""
        statement = builder.build_challenge(wallet.address)
        config = builder.settings

        assert statement.domain == config.signin_domain
        assert statement.address == wallet.address
        assert statement.statement == config.signin_statement
        assert statement.uri == config.signin_uri
        assert statement.version == config.signin_version
        assert statement.chain_id == config.signin_chain_id
        assert statement.resources == []
        assert statement.not_before is None
        assert statement.request_id is None

    def test_nonce_is_lowercase_hex(self, builder, wallet):
        """Test that the default nonce is 8 lowercase hex characters."""
        nonce = builder.build_challenge(wallet.address).nonce

        assert len(nonce) == 8
        assert all(c in "0123456789abcdef" for c in nonce)

    def test_validity_window(self, builder, wallet):
        """Test that expirationTime is issuedAt plus the configured TTL."""
        now = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)
        statement = builder.build_challenge(wallet.address, now=now)

        assert statement.issued_at == "2025-01-01T12:00:00.000Z"
        assert statement.expiration_time == "2025-01-01T12:05:00.000Z"
        issued_at = parse_timestamp(statement.issued_at)
        expires = parse_timestamp(statement.expiration_time)
        assert expires - issued_at == timedelta(seconds=builder.settings.challenge_ttl_seconds)

    def test_address_whitespace_is_stripped(self, builder, wallet):
        """Test that surrounding whitespace does not reach the statement."""
        statement = builder.build_challenge(f"  {wallet.address}\n")
        assert statement.address == wallet.address

    def test_empty_address_rejected(self, builder):
        """Test that an empty address raises InvalidInput."""
        with pytest.raises(InvalidInput):
            builder.build_challenge("   ")

    def test_invalid_address_rejected(self, builder):
        """Test that an undecodable address raises InvalidInput."""
        with pytest.raises(InvalidInput):
            builder.build_challenge("TNOTAREALADDRESS")

    def test_mainnet_address_rejected_on_testnet(self, builder, make_wallet):
        """Test that an address for another network raises InvalidInput."""
        with pytest.raises(InvalidInput):
            builder.build_challenge(make_wallet("mainnet").address)

    def test_nonces_are_distinct(self, builder, wallet):
        """Test that 10,000 consecutive statements carry distinct nonces."""
        nonces = {builder.build_challenge(wallet.address).nonce for _ in range(10_000)}
        assert len(nonces) == 10_000

    def test_nonce_length_follows_setting(self, wallet):
        """Test that nonce_bytes controls the nonce length."""
        builder = ChallengeBuilder(Settings(nonce_bytes=16), SymbolSignatureVerifier("testnet"))
        assert len(builder.build_challenge(wallet.address).nonce) == 32

    def test_nonce_bytes_minimum(self):
        """Test that fewer than 4 nonce bytes is a configuration error."""
        with pytest.raises(ValidationError):
            Settings(nonce_bytes=2)


class TestCanonicalMessage:
    """Tests for canonical_message and commitment_hash."""

    def test_compact_json_in_declared_order(self, builder, wallet):
        """Test that keys are camelCase, in field order, with no whitespace."""
        statement = builder.build_challenge(wallet.address)
        message = canonical_message(statement)

        assert " " not in message.replace(builder.settings.signin_statement, "")
        assert list(json.loads(message).keys()) == [
            "domain",
            "address",
            "statement",
            "uri",
            "version",
            "chainId",
            "nonce",
            "issuedAt",
            "expirationTime",
            "resources",
        ]

    def test_absent_optional_fields_omitted(self, wallet):
        """Test that None fields are left out entirely (not serialized as null)."""
        statement = SignInInput(
            domain="service.example.com",
            address=wallet.address,
            statement="hello",
            uri="https://service.example.com",
            version="1",
            chain_id="symbol:testnet",
            nonce="0123abcd",
        )
        message = canonical_message(statement)

        assert "null" not in message
        assert "issuedAt" not in message
        assert message.endswith('"nonce":"0123abcd","resources":[]}')

    def test_wire_form_matches_canonical_form(self, builder, wallet):
        """Test that the JSON sent to clients re-serializes to the same message."""
        statement = builder.build_challenge(wallet.address)
        wire = statement.model_dump(mode="json", by_alias=True)

        assert canonical_message(SignInInput.model_validate(wire)) == canonical_message(statement)

    def test_non_ascii_kept_verbatim(self, wallet):
        """Test that non-ASCII statement text is not escaped."""
        statement = SignInInput(
            domain="service.example.com",
            address=wallet.address,
            statement="サインイン",
            uri="https://service.example.com",
            version="1",
            chain_id="symbol:testnet",
            nonce="0123abcd",
        )
        assert "サインイン" in canonical_message(statement)

    def test_commitment_is_sha256_hex(self):
        """Test that the commitment is the SHA-256 hex of the UTF-8 message."""
        message = '{"domain":"service.example.com"}'
        assert commitment_hash(message) == hashlib.sha256(message.encode("utf-8")).hexdigest()
        assert len(commitment_hash(message)) == 64

    def test_different_statements_different_commitments(self, builder, wallet):
        """Test that two statements (distinct nonces) never share a commitment."""
        first = canonical_message(builder.build_challenge(wallet.address))
        second = canonical_message(builder.build_challenge(wallet.address))
        assert commitment_hash(first) != commitment_hash(second)


class TestParseTimestamp:
    """Tests for timestamp parsing used by the request schema and validator."""

    def test_z_suffix(self):
        assert parse_timestamp("2025-01-01T12:00:00.000Z") == datetime(2025, 1, 1, 12, tzinfo=UTC)

    def test_naive_taken_as_utc(self):
        assert parse_timestamp("2025-01-01T12:00:00") == datetime(2025, 1, 1, 12, tzinfo=UTC)

    @pytest.mark.parametrize(
        "value", ["0001-01-01T00:00:00+01:00", "9999-12-31T23:59:59-01:00", "yesterday"]
    )
    def test_unusable_values_raise_value_error(self, value):
        """Test that out-of-range offsets raise ValueError like any malformed string."""
        with pytest.raises(ValueError):
            parse_timestamp(value)
