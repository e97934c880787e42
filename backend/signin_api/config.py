from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Database
    database_url: str = "sqlite:///./signin.db"

    # Relying party (echoed verbatim into every sign-in statement)
    signin_domain: str = "service.example.com"
    signin_uri: str = "https://service.example.com"
    signin_statement: str = (
        "Sign or Approve only means you have proved this account is owned by you. "
        "This request will not trigger any blockchain transaction or cost any fee."
    )
    signin_version: str = "1"
    signin_chain_id: str = "symbol:testnet"
    network: str = "testnet"  # "mainnet" | "testnet"

    # Challenges
    challenge_ttl_seconds: int = 300  # 5 minutes
    challenge_max_age_seconds: int = 420  # window + 2 minutes clock skew
    challenge_retention_seconds: int = 3600
    nonce_bytes: int = 4  # 8 hex characters
    consume_challenge_on_success: bool = True

    # Sessions
    session_ttl_seconds: int = 86_400  # 24 hours

    # Rate Limiting
    rate_limit_challenges: str = "10/minute"
    rate_limit_claims: str = "10/minute"
    rate_limit_sessions: str = "60/minute"
    rate_limit_storage_uri: str = "memory://"

    # Maintenance
    cleanup_interval_minutes: int = 15

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # "json" | "console"

    # Alerts
    discord_alerts_webhook_url: str | None = None

    # CORS
    cors_origins: list[str] | str = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("network")
    @classmethod
    def validate_network(cls, v: str) -> str:
        v = v.lower()
        if v not in ("mainnet", "testnet"):
            raise ValueError("network must be 'mainnet' or 'testnet'")
        return v

    @field_validator("nonce_bytes")
    @classmethod
    def validate_nonce_bytes(cls, v: int) -> int:
        if v < 4:
            raise ValueError("nonce_bytes must be at least 4")
        return v


settings = Settings()
