"""
Credential Store - Abstract persistence interface

Module: persistence.base_store
Date: 2026-10-02
Version: 0.1.0

CHANGELOG:
[2026-10-02 v0.1.0] Initial implementation
  - Abstract CredentialStore class
  - User, session and payment operations
  - Compare-and-swap user updates
  - Combined debit + payment write

ARCHITECTURE:
CredentialStore is the abstract base class every storage backend
(memory, JSON file, Redis) implements. The authenticator, the session
manager and the ledger only ever talk to this interface.

Contract shared by all adapters:
- Reads return copies; callers cannot mutate stored state directly
- create_user enforces username uniqueness atomically
- update_user and debit_and_record succeed only if the stored version
  equals expected_version, then store the record with version + 1
- debit_and_record writes the balance and the payment as one unit:
  both are visible afterwards, or neither is
- Backend failures are raised as StoreUnavailable
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .records import UserRecord, SessionRecord, PaymentRecord


class CredentialStore(ABC):
    """
    Abstract base class for account persistence

    Subclasses must implement the user, session and payment operations
    below. Instances are context managers; leaving the block calls close().
    """

    name: str = "abstract"

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        """Exact, case-sensitive lookup"""
        pass

    @abstractmethod
    def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    def create_user(self, user: UserRecord) -> UserRecord:
        """
        Insert a new user

        Args:
            user: Record to insert (version is reset to 1)

        Returns:
            Stored copy

        Raises:
            DuplicateUsername: If the username is taken
        """
        pass

    @abstractmethod
    def update_user(self, user: UserRecord, expected_version: int) -> UserRecord:
        """
        Replace a user if it has not changed since it was read

        Args:
            user: New state
            expected_version: Version the caller read

        Returns:
            Stored copy with the bumped version

        Raises:
            StaleRecordError: If the stored version differs
            AccountNotFound: If the user does not exist
        """
        pass

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @abstractmethod
    def create_session(self, session: SessionRecord) -> None:
        pass

    @abstractmethod
    def find_live_session(self, token_digest: str, now: int) -> Optional[SessionRecord]:
        """Keyed lookup by token digest; expired sessions are reported as absent"""
        pass

    @abstractmethod
    def delete_session(self, token_digest: str) -> bool:
        """
        Remove a session

        Returns:
            True if a session was removed, False if none matched
        """
        pass

    @abstractmethod
    def purge_expired_sessions(self, now: int) -> int:
        """
        Remove every session with expires_at_epoch <= now

        Returns:
            Number of sessions removed
        """
        pass

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    @abstractmethod
    def create_payment(self, payment: PaymentRecord) -> None:
        pass

    @abstractmethod
    def debit_and_record(
        self,
        user: UserRecord,
        expected_version: int,
        payment: PaymentRecord,
    ) -> UserRecord:
        """
        Apply a balance change and its payment record as one write

        Args:
            user: User carrying the post-debit balance
            expected_version: Version the caller read
            payment: Ledger entry matching the balance change

        Returns:
            Stored user copy with the bumped version

        Raises:
            StaleRecordError: If the stored version differs (nothing written)
        """
        pass

    @abstractmethod
    def list_payments(self, user_id: str) -> List[PaymentRecord]:
        """Payments for a user, oldest first"""
        pass

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release backend resources"""
        pass

    def __enter__(self) -> "CredentialStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
