"""
Constants for the Account Service

Module: core.constants
Date: 2026-10-02
Version: 0.1.0

CHANGELOG:
[2026-10-02 v0.1.0] Initial constants definition
  - Account and ledger amounts (integer cents)
  - Lockout policy
  - Session lifetime
  - HTTP defaults and error codes

SECURITY NOTES:
- Amounts are integer cents everywhere; conversion to currency units
  happens only at the transport boundary
- Lockout and session lifetimes are fixed policy, not per-request input
"""

from typing import Final

# ============================================================================
# Service identity
# ============================================================================

SERVICE_NAME: Final[str] = "AccountService"
SERVICE_VERSION: Final[str] = "0.1.0"

# ============================================================================
# Accounts
# ============================================================================

STARTING_BALANCE_CENTS: Final[int] = 800  # 8.00
MIN_PASSWORD_LENGTH: Final[int] = 6
MAX_PASSWORD_BYTES: Final[int] = 72  # bcrypt input limit
DEFAULT_BCRYPT_ROUNDS: Final[int] = 12

# ============================================================================
# Lockout policy
# ============================================================================

LOCKOUT_THRESHOLD: Final[int] = 5
LOCKOUT_DURATION_SECONDS: Final[int] = 30 * 60

# ============================================================================
# Sessions
# ============================================================================

SESSION_TTL_SECONDS: Final[int] = 24 * 60 * 60
TOKEN_BYTES: Final[int] = 32

# ============================================================================
# Ledger
# ============================================================================

CHARGE_AMOUNT_CENTS: Final[int] = 110  # 1.10
CENTS_PER_UNIT: Final[int] = 100

# Compare-and-swap retries before giving up with an internal error
MAX_WRITE_ATTEMPTS: Final[int] = 3

# ============================================================================
# Transport
# ============================================================================

DEFAULT_HTTP_HOST: Final[str] = "127.0.0.1"
DEFAULT_HTTP_PORT: Final[int] = 3000
DEFAULT_LOGIN_RATE_LIMIT: Final[int] = 5
DEFAULT_LOGIN_RATE_WINDOW_SECONDS: Final[float] = 15 * 60
MAX_REQUEST_SIZE: Final[int] = 64 * 1024

# ============================================================================
# Error codes
# ============================================================================

ERROR_MISSING_FIELDS: Final[str] = "missing_fields"
ERROR_INVALID_BODY: Final[str] = "invalid_body"
ERROR_WEAK_PASSWORD: Final[str] = "weak_password"
ERROR_PASSWORD_TOO_LONG: Final[str] = "password_too_long"
ERROR_DUPLICATE_USERNAME: Final[str] = "duplicate_username"
ERROR_INVALID_CREDENTIALS: Final[str] = "invalid_credentials"
ERROR_ACCOUNT_LOCKED: Final[str] = "account_locked"
ERROR_TOKEN_INVALID: Final[str] = "token_invalid"
ERROR_MISSING_TOKEN: Final[str] = "missing_token"
ERROR_INSUFFICIENT_FUNDS: Final[str] = "insufficient_funds"
ERROR_INTERNAL: Final[str] = "internal_error"

ERROR_MESSAGES = {
    ERROR_MISSING_FIELDS: "Username and password required",
    ERROR_INVALID_BODY: "Request body must be a JSON object",
    ERROR_WEAK_PASSWORD: f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
    ERROR_PASSWORD_TOO_LONG: f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
    ERROR_DUPLICATE_USERNAME: "Username already exists",
    ERROR_INVALID_CREDENTIALS: "Invalid credentials",
    ERROR_ACCOUNT_LOCKED: "Account temporarily locked due to failed login attempts",
    ERROR_TOKEN_INVALID: "Invalid or expired token",
    ERROR_MISSING_TOKEN: "Access token required",
    ERROR_INSUFFICIENT_FUNDS: "Insufficient funds",
    ERROR_INTERNAL: "Internal server error",
}


def cents_to_units(cents: int) -> float:
    """Convert integer cents to currency units for display"""
    return round(cents / CENTS_PER_UNIT, 2)
