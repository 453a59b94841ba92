"""
File Store - JSON file backed CredentialStore

Module: persistence.file_store
Date: 2026-10-02
Version: 0.1.0

CHANGELOG:
[2026-10-02 v0.1.0] Initial implementation
  - accounts.json document with users, sessions and payments
  - Username index and digest-keyed sessions for O(1) lookups
  - Balance and payment committed in the same atomic file write

ARCHITECTURE:
Document layout (accounts.json):
  {
    "users":     {user_id: UserRecord},
    "usernames": {username: user_id},
    "sessions":  {token_digest: SessionRecord},
    "payments":  {user_id: [PaymentRecord, ...]}
  }
Each mutating call is one JSONStore transaction, i.e. one atomic rename.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from ..core.errors import (
    AccountNotFound,
    DuplicateUsername,
    StaleRecordError,
    StoreUnavailable,
)
from .base_store import CredentialStore
from .json_store import JSONStore, JSONStoreError
from .records import UserRecord, SessionRecord, PaymentRecord

DEFAULT_FILE_NAME = "accounts.json"


class JSONCredentialStore(CredentialStore):
    """CredentialStore persisted to a single JSON file"""

    name = "json"

    def __init__(self, data_dir: str = "./data", file_name: str = DEFAULT_FILE_NAME):
        """
        Open (or create) the accounts document

        Args:
            data_dir: Directory for data files
            file_name: Document file name inside data_dir

        Raises:
            StoreUnavailable: If the file cannot be opened or parsed
        """
        self.logger = logging.getLogger(f"persistence.{self.__class__.__name__}")
        self.data_dir = Path(data_dir)
        self.accounts_file = self.data_dir / file_name

        default_data = {
            "users": {},
            "usernames": {},
            "sessions": {},
            "payments": {},
        }
        try:
            self.store = JSONStore(str(self.accounts_file), default_data)
        except JSONStoreError as e:
            raise StoreUnavailable(str(e)) from e
        self.logger.info(f"JSON store initialized (file={self.accounts_file})")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        def reader(data):
            user_id = data["usernames"].get(username)
            user = data["users"].get(user_id) if user_id else None
            return UserRecord.from_dict(user) if user else None

        return self.store.read(reader)

    def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        def reader(data):
            user = data["users"].get(user_id)
            return UserRecord.from_dict(user) if user else None

        return self.store.read(reader)

    def create_user(self, user: UserRecord) -> UserRecord:
        stored = user.evolve(version=1)
        with self._transaction() as data:
            if user.username in data["usernames"]:
                raise DuplicateUsername(f"username '{user.username}' taken")
            data["users"][stored.id] = stored.to_dict()
            data["usernames"][stored.username] = stored.id
        return stored

    def update_user(self, user: UserRecord, expected_version: int) -> UserRecord:
        with self._transaction() as data:
            stored = self._swap_user(data, user, expected_version)
        return stored

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, session: SessionRecord) -> None:
        with self._transaction() as data:
            data["sessions"][session.token_hash] = session.to_dict()

    def find_live_session(self, token_digest: str, now: int) -> Optional[SessionRecord]:
        def reader(data):
            raw = data["sessions"].get(token_digest)
            return SessionRecord.from_dict(raw) if raw else None

        session = self.store.read(reader)
        if session is None or not session.is_live(now):
            return None
        return session

    def delete_session(self, token_digest: str) -> bool:
        if self.store.read(lambda data: token_digest not in data["sessions"]):
            return False
        with self._transaction() as data:
            return data["sessions"].pop(token_digest, None) is not None

    def purge_expired_sessions(self, now: int) -> int:
        def expired_keys(data):
            return [
                key for key, raw in data["sessions"].items()
                if int(raw["expires_at_epoch"]) <= now
            ]

        if not self.store.read(expired_keys):
            return 0
        with self._transaction() as data:
            expired = expired_keys(data)
            for key in expired:
                del data["sessions"][key]
        return len(expired)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def create_payment(self, payment: PaymentRecord) -> None:
        with self._transaction() as data:
            data["payments"].setdefault(payment.user_id, []).append(payment.to_dict())

    def debit_and_record(
        self,
        user: UserRecord,
        expected_version: int,
        payment: PaymentRecord,
    ) -> UserRecord:
        with self._transaction() as data:
            stored = self._swap_user(data, user, expected_version)
            data["payments"].setdefault(payment.user_id, []).append(payment.to_dict())
        return stored

    def list_payments(self, user_id: str) -> List[PaymentRecord]:
        return self.store.read(
            lambda data: [PaymentRecord.from_dict(p) for p in data["payments"].get(user_id, [])]
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self) -> Iterator[Dict[str, Any]]:
        """JSONStore transaction with I/O failures mapped to StoreUnavailable"""
        try:
            with self.store.transaction() as data:
                yield data
        except JSONStoreError as e:
            self.logger.error(f"Write to {self.accounts_file} failed: {e}")
            raise StoreUnavailable(str(e)) from e

    @staticmethod
    def _swap_user(data: Dict[str, Any], user: UserRecord, expected_version: int) -> UserRecord:
        raw = data["users"].get(user.id)
        if raw is None:
            raise AccountNotFound(f"user {user.id} not found")
        current_version = int(raw.get("version", 0))
        if current_version != expected_version:
            raise StaleRecordError(
                f"user {user.id} at version {current_version}, expected {expected_version}"
            )
        stored = user.evolve(username=raw["username"], version=expected_version + 1)
        data["users"][user.id] = stored.to_dict()
        return stored
