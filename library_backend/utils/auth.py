"""
Authentication and authorization utilities for Library API

End users present a Cognito access token in ``X-Access-Token``; the admin
panel presents an admin session token in ``X-Admin-Token``.
"""

from __future__ import annotations

import logging

import library_backend.config as config
from library_backend.utils import identity
from library_backend.utils.admin_sessions import AdminSessionStore
from library_backend.utils.response import unauthorized_response

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Access-Token"
ADMIN_TOKEN_HEADER = "X-Admin-Token"


def get_header(event: dict, name: str) -> str | None:
    """
    Case-insensitive header lookup on an API Gateway event.

    Args:
        event: API Gateway event
        name: Header name

    Returns:
        str: Header value, or None if absent
    """
    headers = event.get("headers") or {}
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def admin_sessions() -> AdminSessionStore:
    """Admin session store built from the current configuration."""
    return AdminSessionStore(config.ADMIN_PASSWORD_HASH, config.ADMIN_TOKEN_TTL_SECONDS)


def get_user_id(event: dict) -> str | None:
    """
    Resolve the end user from the ``X-Access-Token`` header.

    Returns:
        str: The user's Cognito sub, or None if not authenticated
    """
    return identity.get_user_id(get_header(event, ACCESS_TOKEN_HEADER))


def require_user(event: dict) -> tuple[str | None, dict | None]:
    """
    Authenticate an end user.

    Returns:
        tuple: (user_id, error_response) - If successful, error_response is None
    """
    user_id = get_user_id(event)
    if not user_id:
        logger.warning("Request without a valid access token")
        return None, unauthorized_response()
    return user_id, None


def require_admin(event: dict) -> dict | None:
    """
    Verify the admin token of a request.

    Returns:
        dict: Uniform 401 response if the token is not accepted, None if it is
    """
    if not admin_sessions().verify(get_header(event, ADMIN_TOKEN_HEADER)):
        logger.warning("Admin request rejected")
        return unauthorized_response()
    return None
