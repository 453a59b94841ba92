"""
Password Hasher - bcrypt password digests

Module: security.authentication.password_hasher
Date: 2026-10-03
Version: 0.1.0

CHANGELOG:
[2026-10-03 v0.1.0] Initial implementation
  - bcrypt hashing with configurable cost
  - Constant-shape verification (never raises on bad input)
  - Dummy verification for unknown usernames

SECURITY NOTES:
- bcrypt salts every hash; equal passwords never share a digest
- Inputs longer than 72 bytes are rejected at registration and
  never verify, since bcrypt would silently ignore the excess
- dummy_verify() spends the same work as a real check so a missing
  account is not distinguishable by latency
"""

import logging

import bcrypt

from ...core.constants import DEFAULT_BCRYPT_ROUNDS, MAX_PASSWORD_BYTES


class PasswordHasher:
    """bcrypt hashing and verification"""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        """
        Args:
            rounds: bcrypt cost factor (4-31, 10-12 recommended)
        """
        self.logger = logging.getLogger("security.password_hasher")
        self.rounds = rounds
        self._dummy_hash = self.hash("dummy-password-for-timing")

    def hash(self, password: str) -> str:
        """
        Hash password using bcrypt

        Args:
            password: Plaintext password

        Returns:
            bcrypt hash (bytes decoded to string)

        Raises:
            ValueError: If the password exceeds 72 bytes
        """
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password longer than {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(encoded, salt).decode()

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Verify password against hash

        Args:
            password: Plaintext password
            password_hash: bcrypt hash

        Returns:
            True if password matches, False otherwise
        """
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            self.dummy_verify()
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode())
        except ValueError:
            self.logger.error("Stored password hash is malformed")
            return False

    def dummy_verify(self) -> None:
        bcrypt.checkpw(b"not-the-password", self._dummy_hash.encode())
