"""
FastAPI dependency providers.

Process-wide components (settings, verifier) are built once and cached;
database-bound components are built per request around the request session.
Tests swap any of them through app.dependency_overrides.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from signin_api.config import Settings, settings
from signin_api.database import get_db
from signin_api.services.challenge_builder import ChallengeBuilder
from signin_api.services.challenge_store import ChallengeStore
from signin_api.services.challenge_validator import ChallengeValidator
from signin_api.services.credential_issuer import CredentialIssuer
from signin_api.services.signature_verifier import SignatureVerifier, SymbolSignatureVerifier


def get_settings() -> Settings:
    return settings


@lru_cache
def get_verifier() -> SignatureVerifier:
    """Verifier for the configured network (constructed on first use)."""
    return SymbolSignatureVerifier(settings.network)


def get_challenge_store(db: Session = Depends(get_db)) -> ChallengeStore:
    return ChallengeStore(db)


def get_challenge_builder(
    app_settings: Settings = Depends(get_settings),
    verifier: SignatureVerifier = Depends(get_verifier),
) -> ChallengeBuilder:
    return ChallengeBuilder(app_settings, verifier)


def get_challenge_validator(
    app_settings: Settings = Depends(get_settings),
    store: ChallengeStore = Depends(get_challenge_store),
    verifier: SignatureVerifier = Depends(get_verifier),
) -> ChallengeValidator:
    return ChallengeValidator(app_settings, store, verifier)


def get_credential_issuer(
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
) -> CredentialIssuer:
    return CredentialIssuer(db, app_settings)
