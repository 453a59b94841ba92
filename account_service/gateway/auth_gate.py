"""
Auth Gate - Bearer token seam for transports

Module: gateway.auth_gate
Date: 2026-10-04
Version: 0.1.0

CHANGELOG:
[2026-10-04 v0.1.0] Initial implementation
  - Authorization header parsing
  - Token validation through SessionManager
  - Dispatch of authenticated calls

ARCHITECTURE:
Transports hand AuthGate the raw Authorization header. AuthGate turns
it into a SessionIdentity (or an AuthError) and calls the handler with
that identity. It knows nothing about HTTP beyond the header format.
"""

import logging
from typing import Any, Callable, Optional, TypeVar

from ..core.errors import MissingToken
from ..security.authentication.session_manager import SessionIdentity, SessionManager

T = TypeVar("T")

BEARER_SCHEME = "bearer"


class AuthGate:
    """Resolves bearer tokens and dispatches authenticated calls"""

    def __init__(self, sessions: SessionManager):
        self.logger = logging.getLogger("gateway.auth_gate")
        self.sessions = sessions

    @staticmethod
    def extract_token(authorization: Optional[str]) -> str:
        """
        Parse "Bearer <token>"

        Raises:
            MissingToken: Header absent, wrong scheme or empty token
        """
        if not authorization:
            raise MissingToken()
        parts = authorization.strip().split(None, 1)
        if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME or not parts[1].strip():
            raise MissingToken()
        return parts[1].strip()

    def authorize(self, authorization: Optional[str]) -> SessionIdentity:
        """
        Resolve the Authorization header to a session identity

        Raises:
            MissingToken: No bearer token supplied
            TokenInvalid: Token does not map to a live session
        """
        token = self.extract_token(authorization)
        return self.sessions.validate(token)

    def dispatch(
        self,
        authorization: Optional[str],
        handler: Callable[..., T],
        *args: Any,
    ) -> T:
        """Authorize, then call handler(identity, *args)"""
        identity = self.authorize(authorization)
        self.logger.debug(f"Dispatching {getattr(handler, '__name__', 'handler')} for {identity.username}")
        return handler(identity, *args)
