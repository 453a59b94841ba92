"""
Account Service

Credential login with brute-force lockout, bearer-token sessions and a
fixed-amount payment ledger, over swappable storage backends.

CHANGELOG:
[2026-10-05 v0.1.0] Initial release
  - Account registration and authentication with lockout
  - Session issue, validation, revocation and cleanup
  - Atomic fixed-amount charges with payment records
  - Memory, JSON file and Redis backends
  - aiohttp JSON API

ARCHITECTURE:
- Layer 1 : Transport (HTTP via aiohttp)
- Layer 2 : Gateway (AuthGate: bearer token -> identity)
- Layer 3 : Business Logic (AccountAuthenticator, SessionManager, PaymentLedger)
- Layer 4 : Persistence (CredentialStore and its adapters)

SECURITY NOTES:
- Passwords hashed with bcrypt, tokens stored as SHA256 digests
- Lock check happens before password verification
- Balance check and debit are atomic per account
"""

__version__ = "0.1.0"

from .core.account_service import AccountService, LoginResult
from .core.config import ServiceConfig
from .core.errors import AccountServiceError
from .persistence import (
    CredentialStore,
    MemoryCredentialStore,
    JSONCredentialStore,
    RedisCredentialStore,
)

__all__ = [
    "AccountService",
    "LoginResult",
    "ServiceConfig",
    "AccountServiceError",
    "CredentialStore",
    "MemoryCredentialStore",
    "JSONCredentialStore",
    "RedisCredentialStore",
]
