"""Minimal auth dependency.

Stub implementation that takes the username from a bearer token or falls back
to the dev user. Real token validation is out of scope for this service.
"""

import re
from typing import Annotated

from fastapi import Depends, Header

from resume_backend.app.config import Settings, get_settings
from resume_backend.app.db.context import RequestContext
from resume_backend.app.errors import UnauthorizedError

_USERNAME = re.compile(r"^[A-Za-z0-9_.-]{1,30}$")


async def get_current_context(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Extract request context from authorization header.

    Stub implementation that either:
    - Parses a "Bearer <username>" header
    - Returns the dev user if there is no header and anonymous dev access is on

    Args:
        settings: Application settings
        authorization: Authorization header (e.g., "Bearer <username>")

    Returns:
        RequestContext with the username

    Raises:
        UnauthorizedError: If the header is missing or malformed
    """
    if not authorization:
        if settings.allow_anonymous_dev:
            return RequestContext(username=settings.dev_username)
        raise UnauthorizedError("Authentication token required.")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        raise UnauthorizedError("Invalid authorization header format.")

    token = token.strip()
    if not _USERNAME.match(token):
        raise UnauthorizedError("Invalid bearer token.")

    return RequestContext(username=token)
