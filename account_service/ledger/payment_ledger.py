"""
Payment Ledger - Fixed-amount balance debits

Module: ledger.payment_ledger
Date: 2026-10-04
Version: 0.1.0

CHANGELOG:
[2026-10-04 v0.1.0] Initial implementation
  - Fixed 1.10 charge in integer cents
  - Per-account check-and-debit under the account lock
  - Balance and payment record committed in one store write
  - Payment history

ARCHITECTURE:
charge() holds the account lock, reads the balance, and either fails
with InsufficientFunds (nothing written) or hands the store the new
balance and the payment record together via debit_and_record(). The
store's version check catches writers outside this process; a lost
compare-and-swap re-reads and re-checks the balance.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from ..core.clock import Clock, epoch_now
from ..core.constants import CHARGE_AMOUNT_CENTS, MAX_WRITE_ATTEMPTS
from ..core.errors import (
    AccountNotFound,
    InsufficientFunds,
    InternalError,
    StaleRecordError,
)
from ..persistence.base_store import CredentialStore
from ..persistence.records import PaymentRecord
from ..security.keyed_locks import KeyedLocks


@dataclass
class ChargeReceipt:
    """Outcome of a successful charge"""
    payment_id: str
    user_id: str
    amount_cents: int
    balance_before_cents: int
    balance_after_cents: int
    created_at_epoch: int


class PaymentLedger:
    """Performs the fixed debit and keeps the payment records"""

    def __init__(
        self,
        store: CredentialStore,
        locks: Optional[KeyedLocks] = None,
        clock: Clock = epoch_now,
        amount_cents: int = CHARGE_AMOUNT_CENTS,
    ):
        self.logger = logging.getLogger("ledger.payment_ledger")
        self.store = store
        self.locks = locks or KeyedLocks()
        self.clock = clock
        self.amount_cents = amount_cents

    def charge(self, user_id: str) -> ChargeReceipt:
        """
        Debit the fixed amount from user_id

        Args:
            user_id: Account to charge

        Returns:
            ChargeReceipt with pre/post balances

        Raises:
            InsufficientFunds: Balance below the charge; nothing written
            AccountNotFound: Unknown user_id; nothing written
            InternalError: Concurrent writers kept winning the account
        """
        with self.locks.hold(user_id):
            for _ in range(MAX_WRITE_ATTEMPTS):
                user = self.store.get_user_by_id(user_id)
                if user is None:
                    raise AccountNotFound(f"user {user_id} not found")

                before = user.balance_cents
                if before < self.amount_cents:
                    self.logger.info(
                        f"Charge declined for {user.username}: balance {before} < {self.amount_cents}"
                    )
                    raise InsufficientFunds(before)

                payment = PaymentRecord(
                    id=str(uuid.uuid4()),
                    user_id=user_id,
                    amount_cents=self.amount_cents,
                    balance_before_cents=before,
                    balance_after_cents=before - self.amount_cents,
                    created_at_epoch=self.clock(),
                )
                try:
                    self.store.debit_and_record(
                        user.evolve(balance_cents=payment.balance_after_cents),
                        expected_version=user.version,
                        payment=payment,
                    )
                except StaleRecordError:
                    self.logger.debug(f"Account {user_id} changed concurrently, retrying charge")
                    continue

                self.logger.info(
                    f"Payment {payment.id[:8]}... committed for {user.username}: "
                    f"{before} -> {payment.balance_after_cents}"
                )
                return ChargeReceipt(
                    payment_id=payment.id,
                    user_id=user_id,
                    amount_cents=payment.amount_cents,
                    balance_before_cents=payment.balance_before_cents,
                    balance_after_cents=payment.balance_after_cents,
                    created_at_epoch=payment.created_at_epoch,
                )

        raise InternalError(f"account {user_id} kept changing during charge")

    def history(self, user_id: str) -> List[PaymentRecord]:
        """Payments for user_id, oldest first"""
        return self.store.list_payments(user_id)
