"""
Account signature verification and address derivation.

Symbol accounts sign with Ed25519. An account address is derived from the
32-byte public key:

  raw = network_byte || ripemd160(sha3_256(public_key))
  address_bytes = raw || sha3_256(raw)[:3]
  address = base32(address_bytes + 0x00)[:-1]     (39 characters)

Network bytes: mainnet 0x68 ("N..."), testnet 0x98 ("T...").
"""

import base64
import binascii
import hashlib
from abc import ABC, abstractmethod

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

NETWORK_IDS = {
    "mainnet": 0x68,
    "testnet": 0x98,
}

PUBLIC_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64
ADDRESS_DECODED_LENGTH = 24
ADDRESS_ENCODED_LENGTH = 39
CHECKSUM_LENGTH = 3


class SignatureVerifier(ABC):
    """Derives account addresses and checks signatures for one network."""

    @abstractmethod
    def derive_address(self, public_key: bytes) -> str:
        """Map a public key to its canonical address string."""

    @abstractmethod
    def verify(self, public_key: bytes, message: bytes, signature: bytes) -> bool:
        """Return True if signature is valid for message under public_key. Never raises."""

    @abstractmethod
    def is_valid_address(self, address: str) -> bool:
        """Return True if address is well-formed for this network."""


def _ripemd160(data: bytes) -> bytes:
    r = hashlib.new("ripemd160")
    r.update(data)
    return r.digest()


def _sha3_256(data: bytes) -> bytes:
    return hashlib.sha3_256(data).digest()


def encode_address(address_bytes: bytes) -> str:
    # Pad to 25 bytes so base32 needs no '=' padding, then drop the filler char
    return base64.b32encode(address_bytes + bytes(1)).decode("ascii")[:-1]


def decode_address(address: str) -> bytes | None:
    """Decode a 39-character address. Returns the 24 raw bytes or None if invalid."""
    if len(address) != ADDRESS_ENCODED_LENGTH:
        return None
    try:
        decoded = base64.b32decode(address + "A")[:ADDRESS_DECODED_LENGTH]
    except (binascii.Error, ValueError):
        return None
    # The last character carries 3 unused bits; only the zero-padded spelling is canonical
    if encode_address(decoded) != address:
        return None
    return decoded


class SymbolSignatureVerifier(SignatureVerifier):
    def __init__(self, network: str = "testnet"):
        if network not in NETWORK_IDS:
            raise ValueError(f"Unknown network: {network}")
        self.network = network
        self.network_id = NETWORK_IDS[network]

    def derive_address(self, public_key: bytes) -> str:
        if len(public_key) != PUBLIC_KEY_LENGTH:
            raise ValueError("Public key must be 32 bytes")

        key_hash = _ripemd160(_sha3_256(public_key))
        version_prefixed = bytes([self.network_id]) + key_hash
        checksum = _sha3_256(version_prefixed)[:CHECKSUM_LENGTH]
        return encode_address(version_prefixed + checksum)

    def verify(self, public_key: bytes, message: bytes, signature: bytes) -> bool:
        if len(public_key) != PUBLIC_KEY_LENGTH or len(signature) != SIGNATURE_LENGTH:
            return False
        try:
            Ed25519PublicKey.from_public_bytes(public_key).verify(signature, message)
        except (InvalidSignature, ValueError):
            return False
        return True

    def is_valid_address(self, address: str) -> bool:
        decoded = decode_address(address)
        if decoded is None:
            return False

        if decoded[0] != self.network_id:
            return False

        body, checksum = decoded[:-CHECKSUM_LENGTH], decoded[-CHECKSUM_LENGTH:]
        return _sha3_256(body)[:CHECKSUM_LENGTH] == checksum
