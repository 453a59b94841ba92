"""
Stored records - User, Session, Payment

Module: persistence.records
Date: 2026-10-02
Version: 0.1.0

CHANGELOG:
[2026-10-02 v0.1.0] Initial implementation
  - UserRecord with CAS version
  - SessionRecord keyed by token digest
  - PaymentRecord (immutable ledger entry)
  - to_dict / from_dict for JSON and Redis adapters

ARCHITECTURE:
Records are value objects. Adapters hand out copies, so mutating a
record never changes stored state; writes go through the store API.
All times are integer epoch seconds, all amounts integer cents.
"""

from dataclasses import dataclass, asdict, replace
from typing import Any, Dict


@dataclass
class UserRecord:
    """Identity, credential and balance"""
    id: str
    username: str
    password_hash: str
    balance_cents: int
    failed_attempts: int = 0
    locked_until_epoch: int = 0
    created_at_epoch: int = 0
    version: int = 0

    def is_locked(self, now: int) -> bool:
        return self.locked_until_epoch > now

    def evolve(self, **changes: Any) -> "UserRecord":
        """Copy with changes applied (version untouched; the store bumps it)"""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        return cls(
            id=data["id"],
            username=data["username"],
            password_hash=data["password_hash"],
            balance_cents=int(data["balance_cents"]),
            failed_attempts=int(data.get("failed_attempts", 0)),
            locked_until_epoch=int(data.get("locked_until_epoch", 0)),
            created_at_epoch=int(data.get("created_at_epoch", 0)),
            version=int(data.get("version", 0)),
        )


@dataclass
class SessionRecord:
    """Proof of a successful login. The raw token is never stored."""
    id: str
    user_id: str
    token_hash: str
    expires_at_epoch: int
    created_at_epoch: int

    def is_live(self, now: int) -> bool:
        return self.expires_at_epoch > now

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionRecord":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            token_hash=data["token_hash"],
            expires_at_epoch=int(data["expires_at_epoch"]),
            created_at_epoch=int(data["created_at_epoch"]),
        )


@dataclass(frozen=True)
class PaymentRecord:
    """Immutable ledger entry for one successful debit"""
    id: str
    user_id: str
    amount_cents: int
    balance_before_cents: int
    balance_after_cents: int
    created_at_epoch: int

    def __post_init__(self):
        if self.balance_after_cents != self.balance_before_cents - self.amount_cents:
            raise ValueError(
                f"Payment {self.id} does not balance: "
                f"{self.balance_before_cents} - {self.amount_cents} != {self.balance_after_cents}"
            )
        if self.balance_after_cents < 0:
            raise ValueError(f"Payment {self.id} would leave a negative balance")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentRecord":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            amount_cents=int(data["amount_cents"]),
            balance_before_cents=int(data["balance_before_cents"]),
            balance_after_cents=int(data["balance_after_cents"]),
            created_at_epoch=int(data["created_at_epoch"]),
        )
