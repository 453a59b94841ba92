"""
Memory Store - In-process CredentialStore

Module: persistence.memory_store
Date: 2026-10-02
Version: 0.1.0

CHANGELOG:
[2026-10-02 v0.1.0] Initial implementation
  - Dict-backed users, sessions and payments
  - Username index for exact lookups
  - Sessions keyed by token digest

ARCHITECTURE:
State lives in dictionaries owned by the instance (no module globals).
A short internal lock makes each compare-and-swap step indivisible; it is
held only for dictionary operations, never across hashing or I/O.
"""

import logging
import threading
from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, Optional

from ..core.errors import AccountNotFound, DuplicateUsername, StaleRecordError
from .base_store import CredentialStore
from .records import UserRecord, SessionRecord, PaymentRecord


class MemoryCredentialStore(CredentialStore):
    """CredentialStore kept entirely in process memory"""

    name = "memory"

    def __init__(self):
        self.logger = logging.getLogger(f"persistence.{self.__class__.__name__}")
        self._mutex = threading.Lock()
        self._users: Dict[str, UserRecord] = {}
        self._user_ids_by_name: Dict[str, str] = {}
        self._sessions: Dict[str, SessionRecord] = {}
        self._payments: Dict[str, List[PaymentRecord]] = defaultdict(list)
        self.logger.info("Memory store initialized")

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._mutex:
            user_id = self._user_ids_by_name.get(username)
            user = self._users.get(user_id) if user_id else None
            return replace(user) if user else None

    def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        with self._mutex:
            user = self._users.get(user_id)
            return replace(user) if user else None

    def create_user(self, user: UserRecord) -> UserRecord:
        with self._mutex:
            if user.username in self._user_ids_by_name:
                raise DuplicateUsername(f"username '{user.username}' taken")
            stored = replace(user, version=1)
            self._users[stored.id] = stored
            self._user_ids_by_name[stored.username] = stored.id
            return replace(stored)

    def update_user(self, user: UserRecord, expected_version: int) -> UserRecord:
        with self._mutex:
            stored = self._swap_user(user, expected_version)
            return replace(stored)

    def create_session(self, session: SessionRecord) -> None:
        with self._mutex:
            self._sessions[session.token_hash] = replace(session)

    def find_live_session(self, token_digest: str, now: int) -> Optional[SessionRecord]:
        session = self._sessions.get(token_digest)
        if session is None or not session.is_live(now):
            return None
        return replace(session)

    def delete_session(self, token_digest: str) -> bool:
        with self._mutex:
            return self._sessions.pop(token_digest, None) is not None

    def purge_expired_sessions(self, now: int) -> int:
        with self._mutex:
            expired = [k for k, s in self._sessions.items() if not s.is_live(now)]
            for key in expired:
                del self._sessions[key]
            return len(expired)

    def create_payment(self, payment: PaymentRecord) -> None:
        with self._mutex:
            self._payments[payment.user_id].append(payment)

    def debit_and_record(
        self,
        user: UserRecord,
        expected_version: int,
        payment: PaymentRecord,
    ) -> UserRecord:
        with self._mutex:
            stored = self._swap_user(user, expected_version)
            self._payments[payment.user_id].append(payment)
            return replace(stored)

    def list_payments(self, user_id: str) -> List[PaymentRecord]:
        with self._mutex:
            return list(self._payments.get(user_id, []))

    def _swap_user(self, user: UserRecord, expected_version: int) -> UserRecord:
        """Compare-and-swap; caller holds the mutex"""
        current = self._users.get(user.id)
        if current is None:
            raise AccountNotFound(f"user {user.id} not found")
        if current.version != expected_version:
            raise StaleRecordError(
                f"user {user.id} at version {current.version}, expected {expected_version}"
            )
        stored = replace(user, username=current.username, version=expected_version + 1)
        self._users[user.id] = stored
        return stored
