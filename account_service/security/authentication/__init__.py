"""
Authentication module - Accounts, passwords and sessions

Provides:
- AccountAuthenticator: Registration, login and lockout
- SessionManager: Bearer token issue/validate/revoke
- PasswordHasher: bcrypt password hashing
"""

from .password_hasher import PasswordHasher
from .account_authenticator import AccountAuthenticator, AuthenticatedUser
from .session_manager import SessionManager, IssuedSession, SessionIdentity

__all__ = [
    "PasswordHasher",
    "AccountAuthenticator",
    "AuthenticatedUser",
    "SessionManager",
    "IssuedSession",
    "SessionIdentity",
]
