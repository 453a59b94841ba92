"""
Account Service - Composition root

Module: core.account_service
Date: 2026-10-04
Version: 0.1.0

CHANGELOG:
[2026-10-04 v0.1.0] Initial implementation
  - Backend selection from ServiceConfig
  - Wiring of authenticator, sessions, ledger and auth gate
  - Register / login / logout / charge / current user operations
  - Status reporting and store teardown

ARCHITECTURE:
AccountService is the entry point transports use:
1. Builds (or receives) the CredentialStore
2. Shares one KeyedLocks registry between authenticator and ledger
3. Exposes one method per external operation
4. Owns the store lifecycle (close() / context manager)

Typical usage:
    with AccountService(ServiceConfig(backend="json")) as service:
        service.register("alice", "secret1")
        login = service.login("alice", "secret1")
        service.charge(f"Bearer {login.token}")
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from .clock import Clock, epoch_now
from .config import BACKEND_JSON, BACKEND_REDIS, ServiceConfig
from .constants import SERVICE_NAME, SERVICE_VERSION
from ..gateway.auth_gate import AuthGate
from ..ledger.payment_ledger import ChargeReceipt, PaymentLedger
from ..persistence.base_store import CredentialStore
from ..persistence.file_store import JSONCredentialStore
from ..persistence.memory_store import MemoryCredentialStore
from ..persistence.records import PaymentRecord, UserRecord
from ..persistence.redis_store import RedisCredentialStore
from ..security.authentication import (
    AccountAuthenticator,
    AuthenticatedUser,
    PasswordHasher,
    SessionIdentity,
    SessionManager,
)
from ..security.keyed_locks import KeyedLocks


@dataclass
class LoginResult:
    """Token and user returned by a successful login"""
    token: str
    user: AuthenticatedUser
    expires_at_epoch: int


@dataclass
class ServiceStatus:
    """Status information about the service"""
    name: str
    version: str
    backend: str
    is_open: bool
    timestamp: datetime


def build_store(config: ServiceConfig) -> CredentialStore:
    """Instantiate the backend named by config.backend"""
    if config.backend == BACKEND_JSON:
        return JSONCredentialStore(config.data_dir)
    if config.backend == BACKEND_REDIS:
        return RedisCredentialStore(url=config.redis_url, prefix=config.redis_prefix)
    return MemoryCredentialStore()


class AccountService:
    """
    Account Service

    Composes the core components over one persistence backend.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        store: Optional[CredentialStore] = None,
        clock: Clock = epoch_now,
    ):
        """
        Args:
            config: Service configuration (defaults to memory backend)
            store: Pre-built backend; overrides config.backend
            clock: Returns current epoch seconds
        """
        self.logger = logging.getLogger("core.account_service")
        self.config = config or ServiceConfig()
        self.store = store or build_store(self.config)
        self.clock = clock
        self._is_open = True

        locks = KeyedLocks()
        self.authenticator = AccountAuthenticator(
            self.store,
            hasher=PasswordHasher(self.config.bcrypt_rounds),
            locks=locks,
            clock=clock,
        )
        self.sessions = SessionManager(self.store, clock=clock)
        self.ledger = PaymentLedger(self.store, locks=locks, clock=clock)
        self.gate = AuthGate(self.sessions)

        self.logger.info(
            f"Service initialized: {SERVICE_NAME} v{SERVICE_VERSION} (backend={self.store.name})"
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def register(self, username: str, password: str) -> UserRecord:
        return self.authenticator.register(username, password)

    def login(self, username: str, password: str) -> LoginResult:
        """
        Authenticate and open a session

        The lockout counters are reset when the password verifies, before
        the session is written. If the session write then fails the caller
        gets StoreUnavailable with no token, and the counters stay reset.

        Raises:
            MissingFields, InvalidCredentials, AccountLocked, StoreUnavailable
        """
        user = self.authenticator.authenticate(username, password)
        issued = self.sessions.issue(user.user_id)
        return LoginResult(token=issued.token, user=user, expires_at_epoch=issued.expires_at_epoch)

    def logout(self, authorization: Optional[str]) -> bool:
        """
        Revoke the bearer token. Unknown or expired tokens still succeed.

        Raises:
            MissingToken: No bearer token supplied
        """
        token = self.gate.extract_token(authorization)
        return self.sessions.revoke(token)

    def current_user(self, authorization: Optional[str]) -> SessionIdentity:
        return self.gate.authorize(authorization)

    def charge(self, authorization: Optional[str]) -> ChargeReceipt:
        """
        Charge the fixed amount to the token's owner

        Raises:
            MissingToken, TokenInvalid, InsufficientFunds
        """
        return self.gate.dispatch(authorization, self._charge_identity)

    def payments(self, authorization: Optional[str]) -> List[PaymentRecord]:
        return self.gate.dispatch(authorization, self._history_identity)

    def cleanup_expired_sessions(self) -> int:
        return self.sessions.cleanup_expired()

    def _charge_identity(self, identity: SessionIdentity) -> ChargeReceipt:
        return self.ledger.charge(identity.user_id)

    def _history_identity(self, identity: SessionIdentity) -> List[PaymentRecord]:
        return self.ledger.history(identity.user_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def get_status(self) -> ServiceStatus:
        return ServiceStatus(
            name=SERVICE_NAME,
            version=SERVICE_VERSION,
            backend=self.store.name,
            is_open=self._is_open,
            timestamp=datetime.now(timezone.utc),
        )

    def close(self) -> None:
        if not self._is_open:
            return
        self._is_open = False
        self.store.close()
        self.logger.info("Service closed")

    def __enter__(self) -> "AccountService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
