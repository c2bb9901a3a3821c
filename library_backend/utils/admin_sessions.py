"""
Admin session tokens

A successful password check mints an opaque token stored under
``admin_token:<token>`` as ``{valid, createdAt, expiresAt}`` (epoch ms).
Verification is a store read per call; expired records are deleted the first
time they are presented after expiry.

States:
    no token --login--> valid --(expiry | revoke)--> absent
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import Callable

from library_backend.models import AdminToken, EntityKind, RecordValidationError, now_ms
from library_backend.utils import kv_store

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "admin_"
TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    """SHA-256 hex digest of a password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def generate_token() -> str:
    """Random admin token: ``admin_`` followed by 64 hex characters."""
    return TOKEN_PREFIX + secrets.token_hex(TOKEN_BYTES)


class AdminSessionStore:
    """
    Issue, verify and revoke admin tokens.

    Args:
        password_hash: Reference SHA-256 hex digest of the admin password
        ttl_seconds: Token lifetime
        clock: Callable returning the current time in epoch milliseconds
    """

    def __init__(
        self,
        password_hash: str,
        ttl_seconds: int,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.password_hash = password_hash.lower()
        self.ttl_ms = ttl_seconds * 1000
        self.clock = clock or now_ms

    def check_password(self, password: str) -> bool:
        return hmac.compare_digest(hash_password(password), self.password_hash)

    def login(self, password: str) -> str | None:
        """
        Return a fresh token if ``password`` matches, otherwise None.

        There is no lockout or backoff on repeated failures.
        """
        if not self.check_password(password):
            return None

        created_at = self.clock()
        record = AdminToken(
            token=generate_token(),
            valid=True,
            created_at=created_at,
            expires_at=created_at + self.ttl_ms,
        )
        kv_store.save(record)
        logger.info(f"Issued admin token expiring at {record.expires_at}")
        return record.token

    def verify(self, token: str | None) -> bool:
        """
        Check an admin token.

        Missing, unknown, invalid and expired tokens are all rejected the same
        way. An expired record is deleted as a side effect.
        """
        if not token:
            return False

        key = EntityKind.ADMIN_TOKEN.key(token)
        data = kv_store.get(key)
        if not data:
            return False

        try:
            record = AdminToken.from_dict(data, token=token)
        except RecordValidationError as e:
            logger.warning(f"Malformed admin token record: {str(e)}")
            return False

        if not record.valid:
            return False

        if record.is_expired(self.clock()):
            kv_store.delete(key)
            logger.info("Deleted expired admin token")
            return False

        return True

    def revoke(self, token: str | None) -> None:
        """Delete a token record. Revoking an unknown token is a no-op."""
        if token:
            kv_store.delete(EntityKind.ADMIN_TOKEN.key(token))
