#!/usr/bin/env python3
"""Tests for PasswordHasher"""

import unittest

from tests.helpers import fast_hasher


class TestPasswordHasher(unittest.TestCase):

    def setUp(self):
        self.hasher = fast_hasher()

    def test_hash_and_verify(self):
        password_hash = self.hasher.hash("secret1")
        self.assertTrue(self.hasher.verify("secret1", password_hash))
        self.assertFalse(self.hasher.verify("secret2", password_hash))

    def test_hashes_are_salted(self):
        self.assertNotEqual(self.hasher.hash("secret1"), self.hasher.hash("secret1"))

    def test_hash_rejects_long_password(self):
        with self.assertRaises(ValueError):
            self.hasher.hash("x" * 73)

    def test_multibyte_length_counted_in_bytes(self):
        # 25 characters, 75 bytes
        with self.assertRaises(ValueError):
            self.hasher.hash("€" * 25)

    def test_verify_long_password_is_false(self):
        password_hash = self.hasher.hash("x" * 72)
        self.assertFalse(self.hasher.verify("x" * 73, password_hash))

    def test_verify_malformed_hash_is_false(self):
        self.assertFalse(self.hasher.verify("secret1", "not-a-bcrypt-hash"))


if __name__ == "__main__":
    unittest.main()
