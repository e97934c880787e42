import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import signin_api.main as main_module
from signin_api.database import Base, get_db
from signin_api.main import app
from signin_api.middleware.rate_limit import limiter
from signin_api.services.signature_verifier import SymbolSignatureVerifier


class Wallet:
    """A test account: Ed25519 key pair plus its derived address."""

    def __init__(self, network: str = "testnet"):
        self.private_key = Ed25519PrivateKey.generate()
        self.public_key = self.private_key.public_key().public_bytes(
            Encoding.Raw, PublicFormat.Raw
        )
        self.address = SymbolSignatureVerifier(network).derive_address(self.public_key)

    @property
    def public_key_hex(self) -> str:
        return self.public_key.hex()

    def sign(self, message: str) -> str:
        return self.private_key.sign(message.encode("utf-8")).hex()

    def sign_in_output(self, message: str) -> dict:
        """Wire form of what the wallet sends back after signing message."""
        return {
            "publicKeyHex": self.public_key_hex,
            "signatureHex": self.sign(message),
            "signedMessage": message,
        }


@pytest.fixture
def wallet():
    """A fresh testnet account."""
    return Wallet()


@pytest.fixture
def make_wallet():
    """Factory for additional accounts (optionally on another network)."""
    return Wallet


@pytest.fixture
def db_session():
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    """Create a test client with the test database and disabled rate limiting."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Disable rate limiting for tests
    limiter.enabled = False

    # Override the engine used by check_database_tables() so it checks the test database
    original_engine = main_module.engine
    main_module.engine = db_session.get_bind()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    limiter.enabled = True
    main_module.engine = original_engine
