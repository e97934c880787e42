"""
Sign-in API - challenge/response authentication for Symbol accounts.

Provides REST endpoints for:
- Issuing sign-in statements (POST /api/v1/sign-in/challenges)
- Exchanging signed statements for session tokens (POST /api/v1/sign-in/claims)
- Checking and revoking session tokens (GET/DELETE /api/v1/session)
"""

__version__ = "0.1.0"
