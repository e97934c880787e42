from signin_api.schemas.signin import CamelModel, UTCDateTime


class SessionStatusResponse(CamelModel):
    """Result of presenting a bearer token (does not extend or consume it)."""

    valid: bool
    subject: str | None = None
    expires_at: UTCDateTime | None = None


class SessionRevokeResponse(CamelModel):
    revoked: bool
