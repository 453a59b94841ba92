#!/usr/bin/env python3
"""
Tests for AccountAuthenticator

Covers:
- Registration validation and starting balance
- Credential checks
- Lockout after repeated failures and its expiry
- Concurrent registration of the same username
"""

import unittest

from account_service.core.constants import (
    LOCKOUT_DURATION_SECONDS,
    STARTING_BALANCE_CENTS,
)
from account_service.core.errors import (
    AccountLocked,
    DuplicateUsername,
    InvalidCredentials,
    MissingFields,
    PasswordTooLong,
    WeakPassword,
)
from account_service.persistence import MemoryCredentialStore
from account_service.security.authentication import AccountAuthenticator
from tests.helpers import (
    HAS_FAKEREDIS,
    JSONStoreMixin,
    ManualClock,
    MemoryStoreMixin,
    RedisStoreMixin,
    fast_hasher,
    run_concurrently,
)


class TestRegistration(unittest.TestCase):

    def setUp(self):
        self.store = MemoryCredentialStore()
        self.clock = ManualClock()
        self.auth = AccountAuthenticator(self.store, hasher=fast_hasher(), clock=self.clock)

    def test_register_creates_account_with_starting_balance(self):
        user = self.auth.register("alice", "secret1")

        self.assertEqual(user.username, "alice")
        self.assertEqual(user.balance_cents, STARTING_BALANCE_CENTS)
        self.assertEqual(user.failed_attempts, 0)
        self.assertEqual(user.locked_until_epoch, 0)
        self.assertEqual(user.created_at_epoch, self.clock())

    def test_password_is_not_stored_in_plaintext(self):
        user = self.auth.register("alice", "secret1")
        self.assertNotEqual(user.password_hash, "secret1")
        self.assertTrue(user.password_hash.startswith("$2"))

    def test_missing_fields(self):
        with self.assertRaises(MissingFields):
            self.auth.register("", "secret1")
        with self.assertRaises(MissingFields):
            self.auth.register("alice", "")

    def test_weak_password(self):
        with self.assertRaises(WeakPassword):
            self.auth.register("alice", "12345")
        self.assertIsNone(self.store.get_user_by_username("alice"))

    def test_six_character_password_is_accepted(self):
        self.auth.register("alice", "123456")

    def test_password_too_long(self):
        with self.assertRaises(PasswordTooLong):
            self.auth.register("alice", "x" * 73)

    def test_duplicate_username(self):
        self.auth.register("alice", "secret1")
        with self.assertRaises(DuplicateUsername):
            self.auth.register("alice", "another1")

    def test_usernames_are_case_sensitive(self):
        self.auth.register("alice", "secret1")
        self.auth.register("Alice", "secret1")

class TestAuthentication(unittest.TestCase):

    def setUp(self):
        self.store = MemoryCredentialStore()
        self.clock = ManualClock()
        self.auth = AccountAuthenticator(self.store, hasher=fast_hasher(), clock=self.clock)
        self.user = self.auth.register("alice", "secret1")

    def fail_login(self, times=1):
        for _ in range(times):
            with self.assertRaises(InvalidCredentials):
                self.auth.authenticate("alice", "wrong-password")

    def stored(self):
        return self.store.get_user_by_username("alice")

    def test_successful_authentication(self):
        identity = self.auth.authenticate("alice", "secret1")
        self.assertEqual(identity.user_id, self.user.id)
        self.assertEqual(identity.username, "alice")
        self.assertEqual(identity.balance_cents, STARTING_BALANCE_CENTS)

    def test_unknown_user(self):
        with self.assertRaises(InvalidCredentials):
            self.auth.authenticate("bob", "secret1")

    def test_missing_fields(self):
        with self.assertRaises(MissingFields):
            self.auth.authenticate("alice", "")

    def test_failures_are_counted(self):
        self.fail_login(3)
        self.assertEqual(self.stored().failed_attempts, 3)
        self.assertEqual(self.stored().locked_until_epoch, 0)

    def test_success_resets_counter(self):
        self.fail_login(3)
        self.auth.authenticate("alice", "secret1")
        self.assertEqual(self.stored().failed_attempts, 0)

    def test_fifth_failure_locks_for_thirty_minutes(self):
        self.fail_login(5)
        self.assertEqual(self.stored().failed_attempts, 5)
        self.assertEqual(
            self.stored().locked_until_epoch, self.clock() + LOCKOUT_DURATION_SECONDS
        )

    def test_locked_account_rejects_correct_password(self):
        self.fail_login(5)
        with self.assertRaises(AccountLocked) as ctx:
            self.auth.authenticate("alice", "secret1")
        self.assertEqual(ctx.exception.http_status, 423)

    def test_lock_check_leaves_counters_unchanged(self):
        self.fail_login(5)
        before = self.stored()

        self.clock.advance(60)
        for password in ("wrong-password", "secret1"):
            with self.assertRaises(AccountLocked):
                self.auth.authenticate("alice", password)

        after = self.stored()
        self.assertEqual(after.failed_attempts, before.failed_attempts)
        self.assertEqual(after.locked_until_epoch, before.locked_until_epoch)

    def test_still_locked_one_second_before_expiry(self):
        self.fail_login(5)
        self.clock.advance(LOCKOUT_DURATION_SECONDS - 1)
        with self.assertRaises(AccountLocked):
            self.auth.authenticate("alice", "secret1")

    def test_login_after_lock_expires_resets_state(self):
        self.fail_login(5)
        self.clock.advance(LOCKOUT_DURATION_SECONDS)

        identity = self.auth.authenticate("alice", "secret1")
        self.assertEqual(identity.user_id, self.user.id)
        self.assertEqual(self.stored().failed_attempts, 0)
        self.assertEqual(self.stored().locked_until_epoch, 0)

    def test_failure_after_lock_expires_relocks(self):
        self.fail_login(5)
        self.clock.advance(LOCKOUT_DURATION_SECONDS)

        self.fail_login(1)
        self.assertEqual(
            self.stored().locked_until_epoch, self.clock() + LOCKOUT_DURATION_SECONDS
        )
        with self.assertRaises(AccountLocked):
            self.auth.authenticate("alice", "secret1")

    def test_lockout_is_per_account(self):
        self.auth.register("bob", "secret2")
        self.fail_login(5)
        identity = self.auth.authenticate("bob", "secret2")
        self.assertEqual(identity.username, "bob")


class ConcurrentRegistrationContract:
    """Racing registrations of one username through independent authenticators"""

    def test_concurrent_registrations_one_winner(self):
        clock = ManualClock()
        hasher = fast_hasher()
        results = []

        def attempt():
            auth = AccountAuthenticator(self.store, hasher=hasher, clock=clock)
            try:
                auth.register("alice", "secret1")
                results.append("ok")
            except DuplicateUsername:
                results.append("dup")

        run_concurrently([attempt] * 8)

        self.assertEqual(results.count("ok"), 1)
        self.assertEqual(results.count("dup"), 7)
        winner = self.store.get_user_by_username("alice")
        self.assertEqual(self.store.get_user_by_id(winner.id), winner)


class TestConcurrentRegistrationMemory(
    ConcurrentRegistrationContract, MemoryStoreMixin, unittest.TestCase
):
    pass


class TestConcurrentRegistrationJSON(
    ConcurrentRegistrationContract, JSONStoreMixin, unittest.TestCase
):
    pass


@unittest.skipUnless(HAS_FAKEREDIS, "fakeredis not installed")
class TestConcurrentRegistrationRedis(
    ConcurrentRegistrationContract, RedisStoreMixin, unittest.TestCase
):
    pass


if __name__ == "__main__":
    unittest.main()
