"""
Account Service Entry Point

Allows running the service directly via `python -m account_service`.
Reads configuration from ACCOUNT_* environment variables, configures
logging to stderr and serves the HTTP API until interrupted.
"""

import asyncio
import logging
import sys

from .core.account_service import AccountService
from .core.config import ServiceConfig
from .transport.http_transport import HTTPConfig, HTTPTransport


def setup_logging(level: str = "INFO"):
    """Configure logging to stderr"""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


async def main():
    """Main entry point"""
    config = ServiceConfig.from_env()
    setup_logging(config.log_level)
    logger = logging.getLogger("main")

    try:
        with AccountService(config) as service:
            transport = HTTPTransport(
                service,
                HTTPConfig(
                    host=config.http_host,
                    port=config.http_port,
                    login_rate_limit=config.login_rate_limit,
                    login_rate_window=config.login_rate_window,
                    trust_forwarded=config.trust_forwarded,
                ),
            )
            logger.info(f"Starting Account Service on {config.http_host}:{config.http_port}...")
            await transport.run()

    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


def run():
    """Console script entry point"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    run()
