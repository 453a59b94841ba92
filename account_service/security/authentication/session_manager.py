"""
Session Manager - Bearer token sessions

Module: security.authentication.session_manager
Date: 2026-10-03
Version: 0.1.0

CHANGELOG:
[2026-10-03 v0.1.0] Initial implementation
  - Opaque random bearer tokens
  - Session storage keyed by SHA256 token digest
  - Validation with lazy expiry
  - Idempotent revocation
  - Cleanup of expired sessions

ARCHITECTURE:
SessionManager provides:
  - issue(): mint a token, persist its digest, return the token once
  - validate(): digest -> live session -> owning user
  - revoke(): delete the session for a token, always succeeds
  - cleanup_expired(): garbage collect expired sessions

SECURITY NOTES:
- Tokens carry 256 bits from secrets.token_urlsafe, nothing derived
  from user ids or wall-clock time
- Only the SHA256 digest is stored; a fast digest is enough because the
  token is already high entropy, and it makes lookup a keyed read
- "Never existed", "expired", "revoked" and "owner missing" are all
  reported as the same TokenInvalid
"""

import hashlib
import logging
import secrets
import uuid
from dataclasses import dataclass
from typing import Optional

from ...core.clock import Clock, epoch_now
from ...core.constants import SESSION_TTL_SECONDS, TOKEN_BYTES
from ...core.errors import TokenInvalid
from ...persistence.base_store import CredentialStore
from ...persistence.records import SessionRecord


@dataclass
class IssuedSession:
    """Raw token plus its session metadata. The token is not retrievable later."""
    token: str
    session_id: str
    user_id: str
    expires_at_epoch: int


@dataclass
class SessionIdentity:
    """User resolved from a live session"""
    user_id: str
    username: str
    balance_cents: int
    session_id: str
    expires_at_epoch: int


class SessionManager:
    """Issues, validates and revokes bearer tokens"""

    def __init__(
        self,
        store: CredentialStore,
        clock: Clock = epoch_now,
        ttl_seconds: int = SESSION_TTL_SECONDS,
    ):
        """
        Args:
            store: Persistence backend
            clock: Returns current epoch seconds
            ttl_seconds: Session lifetime
        """
        self.logger = logging.getLogger("security.session_manager")
        self.store = store
        self.clock = clock
        self.ttl_seconds = ttl_seconds

    def issue(self, user_id: str) -> IssuedSession:
        """
        Create a session for user_id

        Args:
            user_id: Authenticated user

        Returns:
            IssuedSession holding the raw token
        """
        token = secrets.token_urlsafe(TOKEN_BYTES)
        now = self.clock()
        record = SessionRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            token_hash=self.digest(token),
            expires_at_epoch=now + self.ttl_seconds,
            created_at_epoch=now,
        )
        self.store.create_session(record)

        self.logger.info(
            f"Session issued for {user_id[:8]}... (digest={record.token_hash[:8]}..., "
            f"expires={record.expires_at_epoch})"
        )
        return IssuedSession(
            token=token,
            session_id=record.id,
            user_id=user_id,
            expires_at_epoch=record.expires_at_epoch,
        )

    def validate(self, token: Optional[str]) -> SessionIdentity:
        """
        Resolve a token to its user

        Args:
            token: Raw bearer token

        Returns:
            SessionIdentity with current username and balance

        Raises:
            TokenInvalid: Unknown, expired or revoked token, or missing owner
        """
        if not token:
            raise TokenInvalid("empty token")

        session = self.store.find_live_session(self.digest(token), self.clock())
        if session is None:
            raise TokenInvalid("no live session")

        user = self.store.get_user_by_id(session.user_id)
        if user is None:
            self.logger.error(f"Session {session.id} references missing user {session.user_id}")
            raise TokenInvalid("session owner missing")

        return SessionIdentity(
            user_id=user.id,
            username=user.username,
            balance_cents=user.balance_cents,
            session_id=session.id,
            expires_at_epoch=session.expires_at_epoch,
        )

    def revoke(self, token: Optional[str]) -> bool:
        """
        Remove the session for token. Idempotent.

        Returns:
            True, whether or not a session existed
        """
        if token:
            digest = self.digest(token)
            if self.store.delete_session(digest):
                self.logger.info(f"Session revoked (digest={digest[:8]}...)")
        return True

    def cleanup_expired(self) -> int:
        """
        Remove expired sessions from the store

        Returns:
            Number of sessions removed
        """
        removed = self.store.purge_expired_sessions(self.clock())
        if removed:
            self.logger.info(f"Cleanup removed {removed} expired sessions")
        return removed

    @staticmethod
    def digest(token: str) -> str:
        """SHA256 hex digest used as the session lookup key"""
        return hashlib.sha256(token.encode()).hexdigest()
