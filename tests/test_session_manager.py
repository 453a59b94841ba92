#!/usr/bin/env python3
"""Tests for SessionManager"""

import unittest

from account_service.core.constants import SESSION_TTL_SECONDS
from account_service.core.errors import TokenInvalid
from account_service.persistence import MemoryCredentialStore
from account_service.security.authentication import AccountAuthenticator, SessionManager
from tests.helpers import ManualClock, fast_hasher


class TestSessionManager(unittest.TestCase):

    def setUp(self):
        self.store = MemoryCredentialStore()
        self.clock = ManualClock()
        self.sessions = SessionManager(self.store, clock=self.clock)
        auth = AccountAuthenticator(self.store, hasher=fast_hasher(), clock=self.clock)
        self.user = auth.register("alice", "secret1")

    def test_issue_returns_token_and_expiry(self):
        issued = self.sessions.issue(self.user.id)

        self.assertEqual(issued.user_id, self.user.id)
        self.assertEqual(issued.expires_at_epoch, self.clock() + SESSION_TTL_SECONDS)
        # 32 random bytes, urlsafe base64 without padding
        self.assertEqual(len(issued.token), 43)

    def test_tokens_are_unique(self):
        tokens = {self.sessions.issue(self.user.id).token for _ in range(20)}
        self.assertEqual(len(tokens), 20)

    def test_token_is_stored_only_as_digest(self):
        issued = self.sessions.issue(self.user.id)

        self.assertIsNone(self.store.find_live_session(issued.token, self.clock()))
        session = self.store.find_live_session(
            SessionManager.digest(issued.token), self.clock()
        )
        self.assertIsNotNone(session)
        self.assertNotEqual(session.token_hash, issued.token)

    def test_validate_returns_identity(self):
        issued = self.sessions.issue(self.user.id)
        identity = self.sessions.validate(issued.token)

        self.assertEqual(identity.user_id, self.user.id)
        self.assertEqual(identity.username, "alice")
        self.assertEqual(identity.balance_cents, 800)
        self.assertEqual(identity.session_id, issued.session_id)

    def test_valid_until_last_second(self):
        issued = self.sessions.issue(self.user.id)
        self.clock.advance(SESSION_TTL_SECONDS - 1)
        self.sessions.validate(issued.token)

    def test_expired_at_ttl(self):
        issued = self.sessions.issue(self.user.id)
        self.clock.advance(SESSION_TTL_SECONDS)
        with self.assertRaises(TokenInvalid):
            self.sessions.validate(issued.token)

    def test_unknown_and_empty_tokens(self):
        for token in ("not-a-real-token", "", None):
            with self.assertRaises(TokenInvalid):
                self.sessions.validate(token)

    def test_revoke(self):
        issued = self.sessions.issue(self.user.id)
        self.assertTrue(self.sessions.revoke(issued.token))
        with self.assertRaises(TokenInvalid):
            self.sessions.validate(issued.token)

    def test_revoke_is_idempotent(self):
        issued = self.sessions.issue(self.user.id)
        self.assertTrue(self.sessions.revoke(issued.token))
        self.assertTrue(self.sessions.revoke(issued.token))
        self.assertTrue(self.sessions.revoke("never-issued"))

    def test_revoke_leaves_other_sessions(self):
        first = self.sessions.issue(self.user.id)
        second = self.sessions.issue(self.user.id)
        self.sessions.revoke(first.token)
        self.assertEqual(self.sessions.validate(second.token).user_id, self.user.id)

    def test_missing_owner_is_invalid(self):
        issued = self.sessions.issue("no-such-user")
        with self.assertRaises(TokenInvalid):
            self.sessions.validate(issued.token)

    def test_cleanup_expired(self):
        old = self.sessions.issue(self.user.id)
        self.clock.advance(SESSION_TTL_SECONDS // 2)
        fresh = self.sessions.issue(self.user.id)
        self.clock.advance(SESSION_TTL_SECONDS // 2)

        self.assertEqual(self.sessions.cleanup_expired(), 1)
        self.assertEqual(self.sessions.cleanup_expired(), 0)
        with self.assertRaises(TokenInvalid):
            self.sessions.validate(old.token)
        self.sessions.validate(fresh.token)


if __name__ == "__main__":
    unittest.main()
