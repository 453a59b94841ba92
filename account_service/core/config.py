"""
Service configuration

Module: core.config
Date: 2026-10-02
Version: 0.1.0

CHANGELOG:
[2026-10-02 v0.1.0] Initial implementation
  - ServiceConfig dataclass with conservative defaults
  - Environment variable loading (ACCOUNT_* prefix)

ARCHITECTURE:
ServiceConfig is the only place environment variables are read.
Everything downstream receives explicit values.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .constants import (
    DEFAULT_BCRYPT_ROUNDS,
    DEFAULT_HTTP_HOST,
    DEFAULT_HTTP_PORT,
    DEFAULT_LOGIN_RATE_LIMIT,
    DEFAULT_LOGIN_RATE_WINDOW_SECONDS,
)

BACKEND_MEMORY = "memory"
BACKEND_JSON = "json"
BACKEND_REDIS = "redis"
BACKENDS = (BACKEND_MEMORY, BACKEND_JSON, BACKEND_REDIS)


@dataclass
class ServiceConfig:
    """Account Service configuration"""
    backend: str = BACKEND_MEMORY
    data_dir: str = "./data"
    redis_url: str = "redis://localhost:6379/0"
    redis_prefix: str = "accounts"
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    http_host: str = DEFAULT_HTTP_HOST
    http_port: int = DEFAULT_HTTP_PORT
    login_rate_limit: int = DEFAULT_LOGIN_RATE_LIMIT
    login_rate_window: float = DEFAULT_LOGIN_RATE_WINDOW_SECONDS
    trust_forwarded: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ValueError(
                f"Unknown backend '{self.backend}' (expected one of {', '.join(BACKENDS)})"
            )
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31")

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ServiceConfig":
        """
        Build configuration from environment variables

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            ServiceConfig

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        config = cls(
            backend=env.get("ACCOUNT_BACKEND", BACKEND_MEMORY).lower(),
            data_dir=env.get("ACCOUNT_DATA_DIR", "./data"),
            redis_url=env.get("ACCOUNT_REDIS_URL", "redis://localhost:6379/0"),
            redis_prefix=env.get("ACCOUNT_REDIS_PREFIX", "accounts"),
            bcrypt_rounds=int(env.get("ACCOUNT_BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS)),
            http_host=env.get("ACCOUNT_HTTP_HOST", DEFAULT_HTTP_HOST),
            http_port=int(env.get("ACCOUNT_HTTP_PORT", DEFAULT_HTTP_PORT)),
            login_rate_limit=int(env.get("ACCOUNT_LOGIN_RATE_LIMIT", DEFAULT_LOGIN_RATE_LIMIT)),
            login_rate_window=float(
                env.get("ACCOUNT_LOGIN_RATE_WINDOW", DEFAULT_LOGIN_RATE_WINDOW_SECONDS)
            ),
            trust_forwarded=(
                env.get("ACCOUNT_TRUST_FORWARDED", "false").lower() in ("1", "true", "yes")
            ),
            log_level=env.get("ACCOUNT_LOG_LEVEL", "INFO").upper(),
        )
        logging.getLogger("core.config").debug(
            f"Config loaded (backend={config.backend}, port={config.http_port})"
        )
        return config
