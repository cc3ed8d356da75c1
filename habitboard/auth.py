"""Optional shared-key guard for the habitboard API.

The board is a single-user tracker: with ``API_KEY`` unset every request is
let through. With a key configured, each router depends on ``verify_api_key``.
"""

import hmac

from fastapi import HTTPException, Header

from habitboard.config import settings

BEARER_PREFIX = "Bearer "


def presented_key(x_api_key: str | None, authorization: str | None) -> str | None:
    """The key a client sent. ``X-API-Key`` wins over a Bearer token."""
    if x_api_key is not None:
        return x_api_key
    if authorization and authorization.startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):].strip()
    return None


async def verify_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    authorization: str | None = Header(default=None),
) -> str:
    if settings.api_key is None:
        return ""

    key = presented_key(x_api_key, authorization)
    if key is None or not hmac.compare_digest(key.encode(), settings.api_key.encode()):
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing habitboard API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return key
