"""Bearer-token authentication for the scan API.

Tokens are configured as ``API_TOKENS=token1:user-a,token2:user-b``
(see :meth:`Settings.get_api_token_map`).  A request is authenticated
when its ``Authorization: Bearer <token>`` header matches one of them;
the matching user id becomes the owner of any session it creates.

Comparison uses :func:`hmac.compare_digest` so a wrong token takes the
same time to reject regardless of how many leading characters match.
"""

from __future__ import annotations

import hmac

from fastapi import Request

from src.utils.errors import AuthenticationError

_BEARER_PREFIX = "bearer "


def resolve_user(token: str, token_map: dict[str, str]) -> str | None:
    """Return the user id for *token*, or ``None`` when it is unknown."""
    user_id: str | None = None
    for known_token, known_user in token_map.items():
        if hmac.compare_digest(token.encode("utf-8"), known_token.encode("utf-8")):
            user_id = known_user
    return user_id


async def require_user(request: Request) -> str:
    """FastAPI dependency returning the authenticated user id.

    Raises
    ------
    AuthenticationError
        When the header is missing, not a bearer token, or unknown.
    """
    header = request.headers.get("Authorization", "")
    if not header:
        raise AuthenticationError(message="No authorization header")
    if not header.lower().startswith(_BEARER_PREFIX):
        raise AuthenticationError(message="Authorization header is not a bearer token")

    token = header[len(_BEARER_PREFIX):].strip()
    token_map: dict[str, str] = request.app.state.api_tokens
    user_id = resolve_user(token, token_map) if token else None
    if user_id is None:
        raise AuthenticationError(message="Invalid authentication")
    return user_id
