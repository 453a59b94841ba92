#!/usr/bin/env python3
"""Tests for ServiceConfig"""

import unittest

from account_service.core.config import ServiceConfig
from account_service.core.constants import DEFAULT_BCRYPT_ROUNDS, cents_to_units


class TestServiceConfig(unittest.TestCase):

    def test_defaults(self):
        config = ServiceConfig.from_env({})
        self.assertEqual(config.backend, "memory")
        self.assertEqual(config.bcrypt_rounds, DEFAULT_BCRYPT_ROUNDS)
        self.assertEqual(config.http_port, 3000)
        self.assertEqual(config.log_level, "INFO")
        self.assertEqual(config.login_rate_limit, 5)
        self.assertEqual(config.login_rate_window, 900)
        self.assertFalse(config.trust_forwarded)

    def test_from_env(self):
        config = ServiceConfig.from_env({
            "ACCOUNT_BACKEND": "JSON",
            "ACCOUNT_DATA_DIR": "/tmp/accounts",
            "ACCOUNT_BCRYPT_ROUNDS": "10",
            "ACCOUNT_HTTP_PORT": "8080",
            "ACCOUNT_LOGIN_RATE_LIMIT": "0",
            "ACCOUNT_LOG_LEVEL": "debug",
        })
        self.assertEqual(config.backend, "json")
        self.assertEqual(config.data_dir, "/tmp/accounts")
        self.assertEqual(config.bcrypt_rounds, 10)
        self.assertEqual(config.http_port, 8080)
        self.assertEqual(config.login_rate_limit, 0)
        self.assertEqual(config.log_level, "DEBUG")

    def test_trust_forwarded_flag(self):
        self.assertTrue(ServiceConfig.from_env({"ACCOUNT_TRUST_FORWARDED": "true"}).trust_forwarded)
        self.assertTrue(ServiceConfig.from_env({"ACCOUNT_TRUST_FORWARDED": "1"}).trust_forwarded)
        self.assertFalse(ServiceConfig.from_env({"ACCOUNT_TRUST_FORWARDED": "no"}).trust_forwarded)

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            ServiceConfig(backend="sqlite")

    def test_bcrypt_rounds_bounds(self):
        with self.assertRaises(ValueError):
            ServiceConfig(bcrypt_rounds=3)
        with self.assertRaises(ValueError):
            ServiceConfig.from_env({"ACCOUNT_BCRYPT_ROUNDS": "32"})

    def test_non_numeric_port(self):
        with self.assertRaises(ValueError):
            ServiceConfig.from_env({"ACCOUNT_HTTP_PORT": "http"})


class TestCentsToUnits(unittest.TestCase):

    def test_conversion(self):
        self.assertEqual(cents_to_units(800), 8.0)
        self.assertEqual(cents_to_units(690), 6.9)
        self.assertEqual(cents_to_units(110), 1.1)
        self.assertEqual(cents_to_units(0), 0.0)


if __name__ == "__main__":
    unittest.main()
