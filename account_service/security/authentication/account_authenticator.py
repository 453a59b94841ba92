"""
Account Authenticator - Registration, login and lockout

Module: security.authentication.account_authenticator
Date: 2026-10-03
Version: 0.1.0

CHANGELOG:
[2026-10-03 v0.1.0] Initial implementation
  - Account registration with bcrypt password hashing
  - Credential validation
  - Brute-force lockout (5 failures -> 30 minutes)
  - Per-account serialization and compare-and-swap writes

ARCHITECTURE:
AccountAuthenticator provides:
  - register(): creates a User with the starting balance
  - authenticate(): runs the lockout state machine and checks the password

Lockout state machine:
  Unlocked --(failure brings failed_attempts to >= 5)--> Locked(now + 1800)
  Locked   --(clock passes locked_until_epoch)---------> Unlocked (lazily)
While locked, attempts are rejected before the password is inspected and
the counters are left untouched. A successful login resets both counters.

SECURITY NOTES:
- Unknown usernames and wrong passwords produce the same error
- Unknown usernames still cost one bcrypt verification
- Passwords and hashes are never logged or returned
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from ...core.clock import Clock, epoch_now
from ...core.constants import (
    LOCKOUT_DURATION_SECONDS,
    LOCKOUT_THRESHOLD,
    MAX_PASSWORD_BYTES,
    MAX_WRITE_ATTEMPTS,
    MIN_PASSWORD_LENGTH,
    STARTING_BALANCE_CENTS,
)
from ...core.errors import (
    AccountLocked,
    DuplicateUsername,
    InternalError,
    InvalidCredentials,
    MissingFields,
    PasswordTooLong,
    StaleRecordError,
    WeakPassword,
)
from ...persistence.base_store import CredentialStore
from ...persistence.records import UserRecord
from ..keyed_locks import KeyedLocks
from .password_hasher import PasswordHasher


@dataclass
class AuthenticatedUser:
    """Identity returned by a successful authentication"""
    user_id: str
    username: str
    balance_cents: int


class AccountAuthenticator:
    """
    Validates credentials, enforces lockout, creates accounts.

    Only this class mutates failed_attempts and locked_until_epoch.
    """

    def __init__(
        self,
        store: CredentialStore,
        hasher: Optional[PasswordHasher] = None,
        locks: Optional[KeyedLocks] = None,
        clock: Clock = epoch_now,
        lockout_threshold: int = LOCKOUT_THRESHOLD,
        lockout_seconds: int = LOCKOUT_DURATION_SECONDS,
    ):
        """
        Args:
            store: Persistence backend
            hasher: Password hasher (default bcrypt cost)
            locks: Per-account lock registry shared with the ledger
            clock: Returns current epoch seconds
            lockout_threshold: Consecutive failures that trigger a lock
            lockout_seconds: Lock duration
        """
        self.logger = logging.getLogger("security.account_authenticator")
        self.store = store
        self.hasher = hasher or PasswordHasher()
        self.locks = locks or KeyedLocks()
        self.clock = clock
        self.lockout_threshold = lockout_threshold
        self.lockout_seconds = lockout_seconds

    def register(self, username: str, password: str) -> UserRecord:
        """
        Create a new account

        Args:
            username: Unique, case-sensitive username
            password: Plaintext password (hashed before storage)

        Returns:
            Stored UserRecord

        Raises:
            MissingFields: If username or password is empty
            WeakPassword: If password is shorter than 6 characters
            PasswordTooLong: If password exceeds 72 bytes
            DuplicateUsername: If username already exists
        """
        if not username or not password:
            raise MissingFields()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPassword()
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise PasswordTooLong()

        # Cheap early exit; create_user is the authoritative uniqueness check
        if self.store.get_user_by_username(username) is not None:
            raise DuplicateUsername(f"username '{username}' taken")

        record = UserRecord(
            id=str(uuid.uuid4()),
            username=username,
            password_hash=self.hasher.hash(password),
            balance_cents=STARTING_BALANCE_CENTS,
            failed_attempts=0,
            locked_until_epoch=0,
            created_at_epoch=self.clock(),
        )
        try:
            stored = self.store.create_user(record)
        except DuplicateUsername:
            self.logger.info(f"Registration lost race for username '{username}'")
            raise

        self.logger.info(f"Account created: {username} ({stored.id})")
        return stored

    def authenticate(self, username: str, password: str) -> AuthenticatedUser:
        """
        Authenticate with username and password

        Args:
            username: Username
            password: Plaintext password

        Returns:
            AuthenticatedUser with the current balance

        Raises:
            MissingFields: If username or password is empty
            InvalidCredentials: Unknown username or wrong password
            AccountLocked: Account is inside its lockout window
            InternalError: Concurrent writers kept winning the account
        """
        if not username or not password:
            raise MissingFields()

        user = self.store.get_user_by_username(username)
        if user is None:
            self.hasher.dummy_verify()
            self.logger.info("Authentication failed: unknown username")
            raise InvalidCredentials()

        with self.locks.hold(user.id):
            return self._authenticate_locked(user.id, password)

    def _authenticate_locked(self, user_id: str, password: str) -> AuthenticatedUser:
        """Read-check-write loop; caller holds the account lock"""
        password_matches: Optional[bool] = None

        for _ in range(MAX_WRITE_ATTEMPTS):
            user = self.store.get_user_by_id(user_id)
            if user is None:
                raise InvalidCredentials()

            now = self.clock()
            if user.is_locked(now):
                self.logger.warning(
                    f"Login rejected, account locked: {user.username} "
                    f"({user.locked_until_epoch - now}s remaining)"
                )
                raise AccountLocked(user.locked_until_epoch)

            # The hash is immutable, so one verification serves every retry
            if password_matches is None:
                password_matches = self.hasher.verify(password, user.password_hash)

            try:
                if password_matches:
                    return self._record_success(user)
                self._record_failure(user, now)
            except StaleRecordError:
                self.logger.debug(f"Account {user_id} changed concurrently, retrying")
                continue
            raise InvalidCredentials()

        raise InternalError(f"account {user_id} kept changing during authentication")

    def _record_success(self, user: UserRecord) -> AuthenticatedUser:
        if user.failed_attempts or user.locked_until_epoch:
            user = self.store.update_user(
                user.evolve(failed_attempts=0, locked_until_epoch=0),
                expected_version=user.version,
            )
        self.logger.info(f"Account authenticated: {user.username}")
        return AuthenticatedUser(
            user_id=user.id,
            username=user.username,
            balance_cents=user.balance_cents,
        )

    def _record_failure(self, user: UserRecord, now: int) -> None:
        attempts = user.failed_attempts + 1
        locked_until = now + self.lockout_seconds if attempts >= self.lockout_threshold else 0
        self.store.update_user(
            user.evolve(failed_attempts=attempts, locked_until_epoch=locked_until),
            expected_version=user.version,
        )
        if locked_until:
            self.logger.warning(
                f"Account locked after {attempts} failed attempts: {user.username} "
                f"(until {locked_until})"
            )
        else:
            self.logger.warning(
                f"Authentication failed for {user.username} ({attempts}/{self.lockout_threshold})"
            )
