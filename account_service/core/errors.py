"""
Error taxonomy for the Account Service

Module: core.errors
Date: 2026-10-02
Version: 0.1.0

CHANGELOG:
[2026-10-02 v0.1.0] Initial implementation
  - AccountServiceError base with code and HTTP status
  - Validation, conflict, auth, business and internal families

ARCHITECTURE:
Every expected outcome is an AccountServiceError subclass carrying:
  - code: stable machine-readable identifier
  - message: caller-safe text
  - http_status: status used by the HTTP transport
Only InternalError subclasses are faults. Their message is always the
generic one; the detail passed in stays in logs.
"""

from typing import Optional

from .constants import (
    ERROR_MESSAGES,
    ERROR_MISSING_FIELDS,
    ERROR_INVALID_BODY,
    ERROR_WEAK_PASSWORD,
    ERROR_PASSWORD_TOO_LONG,
    ERROR_DUPLICATE_USERNAME,
    ERROR_INVALID_CREDENTIALS,
    ERROR_ACCOUNT_LOCKED,
    ERROR_TOKEN_INVALID,
    ERROR_MISSING_TOKEN,
    ERROR_INSUFFICIENT_FUNDS,
    ERROR_INTERNAL,
)


class AccountServiceError(Exception):
    """Base error for every outcome the service reports to callers"""

    code: str = ERROR_INTERNAL
    http_status: int = 500

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(detail or self.message)

    @property
    def message(self) -> str:
        """Caller-safe message"""
        return ERROR_MESSAGES.get(self.code, ERROR_MESSAGES[ERROR_INTERNAL])

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


# ============================================================================
# Validation (400)
# ============================================================================

class ValidationError(AccountServiceError):
    """Missing or malformed input"""
    http_status = 400


class MissingFields(ValidationError):
    code = ERROR_MISSING_FIELDS


class InvalidRequestBody(ValidationError):
    code = ERROR_INVALID_BODY


class WeakPassword(ValidationError):
    code = ERROR_WEAK_PASSWORD


class PasswordTooLong(ValidationError):
    code = ERROR_PASSWORD_TOO_LONG


# ============================================================================
# Conflict (409)
# ============================================================================

class ConflictError(AccountServiceError):
    """Uniqueness conflict"""
    http_status = 409


class DuplicateUsername(ConflictError):
    code = ERROR_DUPLICATE_USERNAME


# ============================================================================
# Authentication (401 / 423)
# ============================================================================

class AuthError(AccountServiceError):
    """Expected authentication outcome"""
    http_status = 401


class InvalidCredentials(AuthError):
    code = ERROR_INVALID_CREDENTIALS


class AccountLocked(AuthError):
    code = ERROR_ACCOUNT_LOCKED
    http_status = 423

    def __init__(self, locked_until_epoch: int = 0, detail: Optional[str] = None):
        self.locked_until_epoch = locked_until_epoch
        super().__init__(detail)


class TokenInvalid(AuthError):
    """Token never existed, expired, was revoked, or its owner is gone"""
    code = ERROR_TOKEN_INVALID


class MissingToken(AuthError):
    code = ERROR_MISSING_TOKEN


# ============================================================================
# Business (400)
# ============================================================================

class BusinessError(AccountServiceError):
    """Expected business outcome, no state changed"""
    http_status = 400


class InsufficientFunds(BusinessError):
    code = ERROR_INSUFFICIENT_FUNDS

    def __init__(self, balance_cents: int = 0, detail: Optional[str] = None):
        self.balance_cents = balance_cents
        super().__init__(detail)


# ============================================================================
# Internal (500)
# ============================================================================

class InternalError(AccountServiceError):
    """Fault. Raised before any write of a transition has committed."""
    code = ERROR_INTERNAL
    http_status = 500


class StoreUnavailable(InternalError):
    """Persistence backend could not be read or written"""
    pass


class StaleRecordError(InternalError):
    """Compare-and-swap lost: the record changed since it was read"""
    pass


class AccountNotFound(InternalError):
    """Referenced user id does not exist"""
    pass
