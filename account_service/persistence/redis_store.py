"""
Redis Store - Remote CredentialStore

Module: persistence.redis_store
Date: 2026-10-03
Version: 0.1.0

CHANGELOG:
[2026-10-03 v0.1.0] Initial implementation
  - JSON documents under prefixed keys
  - Username claim key for atomic uniqueness
  - WATCH/MULTI compare-and-swap on user documents
  - Sessions keyed by token digest with an expiry index

ARCHITECTURE:
Key layout (prefix defaults to "accounts"):
  {prefix}:user:{user_id}            JSON UserRecord
  {prefix}:username:{username}       user_id
  {prefix}:session:{token_digest}    JSON SessionRecord (EXPIREAT set)
  {prefix}:sessions:expiry           sorted set digest -> expires_at
  {prefix}:payments:{user_id}        list of JSON PaymentRecord
Multi-key writes run inside MULTI/EXEC guarded by WATCH, so a concurrent
writer makes the transaction abort with nothing applied.
"""

import json
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

import redis
from redis.exceptions import RedisError, WatchError

from ..core.errors import (
    AccountNotFound,
    DuplicateUsername,
    StaleRecordError,
    StoreUnavailable,
)
from .base_store import CredentialStore
from .records import UserRecord, SessionRecord, PaymentRecord


class RedisCredentialStore(CredentialStore):
    """CredentialStore backed by a Redis server"""

    name = "redis"

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        prefix: str = "accounts",
        client: Optional[redis.Redis] = None,
    ):
        """
        Connect to Redis

        Args:
            url: Redis URL (ignored when client is given)
            prefix: Key namespace
            client: Pre-built client; must use decode_responses=True
        """
        self.logger = logging.getLogger(f"persistence.{self.__class__.__name__}")
        self.prefix = prefix
        self.client = client or redis.Redis.from_url(url, decode_responses=True)
        self._owns_client = client is None
        self.logger.info(f"Redis store initialized (prefix={prefix})")

    def ping(self) -> bool:
        with self._guard():
            return bool(self.client.ping())

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def _user_key(self, user_id: str) -> str:
        return f"{self.prefix}:user:{user_id}"

    def _username_key(self, username: str) -> str:
        return f"{self.prefix}:username:{username}"

    def _session_key(self, token_digest: str) -> str:
        return f"{self.prefix}:session:{token_digest}"

    def _expiry_key(self) -> str:
        return f"{self.prefix}:sessions:expiry"

    def _payments_key(self, user_id: str) -> str:
        return f"{self.prefix}:payments:{user_id}"

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._guard():
            user_id = self.client.get(self._username_key(username))
        if not user_id:
            return None
        return self.get_user_by_id(user_id)

    def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        with self._guard():
            raw = self.client.get(self._user_key(user_id))
        return UserRecord.from_dict(json.loads(raw)) if raw else None

    def create_user(self, user: UserRecord) -> UserRecord:
        stored = user.evolve(version=1)
        name_key = self._username_key(user.username)
        with self._guard(), self.client.pipeline() as pipe:
            try:
                pipe.watch(name_key)
                if pipe.exists(name_key):
                    raise DuplicateUsername(f"username '{user.username}' taken")
                pipe.multi()
                pipe.set(name_key, stored.id)
                pipe.set(self._user_key(stored.id), json.dumps(stored.to_dict()))
                pipe.execute()
            except WatchError:
                # Another registration claimed the name between WATCH and EXEC
                raise DuplicateUsername(f"username '{user.username}' taken")
        return stored

    def update_user(self, user: UserRecord, expected_version: int) -> UserRecord:
        return self._swap_user(user, expected_version)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, session: SessionRecord) -> None:
        key = self._session_key(session.token_hash)
        with self._guard(), self.client.pipeline(transaction=True) as pipe:
            pipe.set(key, json.dumps(session.to_dict()))
            pipe.expireat(key, session.expires_at_epoch)
            pipe.zadd(self._expiry_key(), {session.token_hash: session.expires_at_epoch})
            pipe.execute()

    def find_live_session(self, token_digest: str, now: int) -> Optional[SessionRecord]:
        with self._guard():
            raw = self.client.get(self._session_key(token_digest))
        if not raw:
            return None
        session = SessionRecord.from_dict(json.loads(raw))
        return session if session.is_live(now) else None

    def delete_session(self, token_digest: str) -> bool:
        with self._guard(), self.client.pipeline(transaction=True) as pipe:
            pipe.delete(self._session_key(token_digest))
            pipe.zrem(self._expiry_key(), token_digest)
            deleted, _ = pipe.execute()
        return bool(deleted)

    def purge_expired_sessions(self, now: int) -> int:
        with self._guard():
            expired = self.client.zrangebyscore(self._expiry_key(), "-inf", now)
            if not expired:
                return 0
            with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(*[self._session_key(digest) for digest in expired])
                pipe.zrem(self._expiry_key(), *expired)
                pipe.execute()
        return len(expired)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def create_payment(self, payment: PaymentRecord) -> None:
        with self._guard():
            self.client.rpush(self._payments_key(payment.user_id), json.dumps(payment.to_dict()))

    def debit_and_record(
        self,
        user: UserRecord,
        expected_version: int,
        payment: PaymentRecord,
    ) -> UserRecord:
        return self._swap_user(user, expected_version, payment)

    def list_payments(self, user_id: str) -> List[PaymentRecord]:
        with self._guard():
            raw_entries = self.client.lrange(self._payments_key(user_id), 0, -1)
        return [PaymentRecord.from_dict(json.loads(raw)) for raw in raw_entries]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
            self.logger.info("Redis connection closed")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _swap_user(
        self,
        user: UserRecord,
        expected_version: int,
        payment: Optional[PaymentRecord] = None,
    ) -> UserRecord:
        """WATCH the user document, verify its version, write in MULTI/EXEC"""
        key = self._user_key(user.id)
        with self._guard(), self.client.pipeline() as pipe:
            try:
                pipe.watch(key)
                raw = pipe.get(key)
                if raw is None:
                    raise AccountNotFound(f"user {user.id} not found")
                current = UserRecord.from_dict(json.loads(raw))
                if current.version != expected_version:
                    raise StaleRecordError(
                        f"user {user.id} at version {current.version}, expected {expected_version}"
                    )
                stored = user.evolve(username=current.username, version=expected_version + 1)
                pipe.multi()
                pipe.set(key, json.dumps(stored.to_dict()))
                if payment is not None:
                    pipe.rpush(self._payments_key(payment.user_id), json.dumps(payment.to_dict()))
                pipe.execute()
            except WatchError:
                raise StaleRecordError(f"user {user.id} changed during write")
        return stored

    @contextmanager
    def _guard(self) -> Iterator[None]:
        """Map connection-level failures to StoreUnavailable"""
        try:
            yield
        except RedisError as e:
            self.logger.error(f"Redis operation failed: {e}")
            raise StoreUnavailable(str(e)) from e
