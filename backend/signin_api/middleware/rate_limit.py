from slowapi import Limiter
from starlette.requests import Request

from signin_api.config import settings


def get_real_client_ip(request: Request) -> str:
    """Client IP for rate limiting; trusts the first X-Forwarded-For hop from our proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# memory:// is per-process; point at redis:// when running several workers
limiter = Limiter(key_func=get_real_client_ip, storage_uri=settings.rate_limit_storage_uri)
