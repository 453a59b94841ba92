"""
HTTP Transport - JSON API over aiohttp

Module: transport.http_transport
Date: 2026-10-05
Version: 0.1.1

CHANGELOG:
[2026-10-16 v0.1.1] Login rate limit keyed on the peer address
  - X-Forwarded-For honoured only with trust_forwarded
[2026-10-05 v0.1.0] Initial implementation
  - aiohttp application with auth, payment and identity routes
  - Error middleware mapping AccountServiceError to JSON responses
  - Login rate limiting per client address
  - Periodic cleanup of expired sessions

ARCHITECTURE:
Routes:
  POST /auth/register   {username, password}   -> 201
  POST /auth/login      {username, password}   -> 200 {token, user}
  POST /auth/logout     Authorization: Bearer  -> 200
  POST /payments        Authorization: Bearer  -> 200 receipt
  GET  /payments        Authorization: Bearer  -> 200 history
  GET  /me              Authorization: Bearer  -> 200 {id, username, balance}
  GET  /health                                  -> 200 status
The core is synchronous (bcrypt, file and Redis I/O), so every call into
AccountService runs on the loop's default executor.

SECURITY NOTES:
- Internal errors return a generic body; detail only goes to logs
- Amounts leave the service in currency units, computed from cents
- No TLS here; terminate TLS in front of the service
- X-Forwarded-For is client-controlled; enable trust_forwarded only
  behind a proxy that overwrites it
"""

import asyncio
import functools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from aiohttp import web

from ..core.account_service import AccountService
from ..core.constants import (
    DEFAULT_HTTP_HOST,
    DEFAULT_HTTP_PORT,
    DEFAULT_LOGIN_RATE_LIMIT,
    DEFAULT_LOGIN_RATE_WINDOW_SECONDS,
    ERROR_INTERNAL,
    ERROR_MESSAGES,
    MAX_REQUEST_SIZE,
    cents_to_units,
)
from ..core.errors import (
    AccountLocked,
    AccountServiceError,
    InternalError,
    InvalidRequestBody,
    MissingFields,
)
from ..persistence.records import PaymentRecord
from .rate_limit import InMemoryRateLimiter

RATE_LIMITED_MESSAGE = "Too many login attempts, try again later"


@dataclass
class HTTPConfig:
    """HTTP Transport Configuration"""
    host: str = DEFAULT_HTTP_HOST
    port: int = DEFAULT_HTTP_PORT
    login_rate_limit: int = DEFAULT_LOGIN_RATE_LIMIT  # 0 disables
    login_rate_window: float = DEFAULT_LOGIN_RATE_WINDOW_SECONDS
    trust_forwarded: bool = False  # key on X-Forwarded-For, only behind a proxy that sets it
    session_cleanup_interval: float = 3600.0  # 0 disables
    max_request_size: int = MAX_REQUEST_SIZE


def _iso(epoch: int) -> str:
    return datetime.fromtimestamp(epoch, tz=timezone.utc).isoformat()


def _payment_to_json(payment: PaymentRecord) -> Dict[str, Any]:
    return {
        "paymentId": payment.id,
        "amount": cents_to_units(payment.amount_cents),
        "balanceBefore": cents_to_units(payment.balance_before_cents),
        "balanceAfter": cents_to_units(payment.balance_after_cents),
        "timestamp": _iso(payment.created_at_epoch),
    }


class HTTPTransport:
    """
    HTTP/JSON transport for AccountService

    Typical usage:
        transport = HTTPTransport(service, HTTPConfig(port=3000))
        await transport.run()
    """

    def __init__(self, service: AccountService, config: Optional[HTTPConfig] = None):
        self.service = service
        self.config = config or HTTPConfig()
        self.logger = logging.getLogger("transport.http")
        self.login_limiter: Optional[InMemoryRateLimiter] = None
        if self.config.login_rate_limit > 0:
            self.login_limiter = InMemoryRateLimiter(
                self.config.login_rate_limit,
                self.config.login_rate_window,
            )
        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None
        self._cleanup_task: Optional[asyncio.Task] = None
        self.is_running = False

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def build_app(self) -> web.Application:
        """Create the aiohttp application with routes and middleware"""
        app = web.Application(
            middlewares=[self._error_middleware],
            client_max_size=self.config.max_request_size,
        )
        app.router.add_post("/auth/register", self._handle_register)
        app.router.add_post("/auth/login", self._handle_login)
        app.router.add_post("/auth/logout", self._handle_logout)
        app.router.add_post("/payments", self._handle_charge)
        app.router.add_get("/payments", self._handle_history)
        app.router.add_get("/me", self._handle_me)
        app.router.add_get("/health", self._handle_health)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        self.app = app
        return app

    async def start(self) -> None:
        """Start listening"""
        app = self.app or self.build_app()
        self.runner = web.AppRunner(app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, self.config.host, self.config.port)
        await site.start()
        self.is_running = True
        self.logger.info(f"HTTP server started on {self.config.host}:{self.config.port}")

    async def stop(self) -> None:
        """Stop listening and run cleanup hooks"""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
        self.is_running = False
        self.logger.info("HTTP transport stopped")

    async def run(self) -> None:
        """Start and serve until cancelled"""
        await self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()

    # ------------------------------------------------------------------
    # Middleware and hooks
    # ------------------------------------------------------------------

    @web.middleware
    async def _error_middleware(self, request: web.Request, handler):
        try:
            return await handler(request)
        except InternalError as e:
            self.logger.error(f"{request.method} {request.path} failed: {e}", exc_info=True)
            return web.json_response(e.to_dict(), status=e.http_status)
        except AccountServiceError as e:
            self.logger.info(f"{request.method} {request.path} -> {e.http_status} {e.code}")
            headers = {}
            if isinstance(e, AccountLocked) and e.locked_until_epoch:
                retry_after = max(0, e.locked_until_epoch - self.service.clock())
                headers["Retry-After"] = str(retry_after)
            return web.json_response(e.to_dict(), status=e.http_status, headers=headers)
        except web.HTTPException:
            raise
        except Exception:
            self.logger.exception(f"Unhandled error on {request.method} {request.path}")
            return web.json_response(
                {"error": ERROR_MESSAGES[ERROR_INTERNAL], "code": ERROR_INTERNAL},
                status=500,
            )

    async def _on_startup(self, app: web.Application) -> None:
        if self.config.session_cleanup_interval > 0:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def _on_cleanup(self, app: web.Application) -> None:
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.session_cleanup_interval)
            try:
                await self._call(self.service.cleanup_expired_sessions)
            except AccountServiceError as e:
                self.logger.error(f"Session cleanup failed: {e}")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _handle_register(self, request: web.Request) -> web.Response:
        username, password = await self._read_credentials(request)
        user = await self._call(self.service.register, username, password)
        return web.json_response(
            {
                "id": user.id,
                "username": user.username,
                "balance": cents_to_units(user.balance_cents),
            },
            status=201,
        )

    async def _handle_login(self, request: web.Request) -> web.Response:
        client = self._client_key(request)
        if self.login_limiter and not self.login_limiter.allow(client):
            self.logger.warning(f"Login rate limit hit for {client}")
            return web.json_response({"error": RATE_LIMITED_MESSAGE}, status=429)

        username, password = await self._read_credentials(request)
        result = await self._call(self.service.login, username, password)
        return web.json_response(
            {
                "message": "Login successful",
                "token": result.token,
                "expiresAt": _iso(result.expires_at_epoch),
                "user": {
                    "id": result.user.user_id,
                    "username": result.user.username,
                    "balance": cents_to_units(result.user.balance_cents),
                },
            }
        )

    async def _handle_logout(self, request: web.Request) -> web.Response:
        await self._call(self.service.logout, request.headers.get("Authorization"))
        return web.json_response({"message": "Logout successful"})

    async def _handle_charge(self, request: web.Request) -> web.Response:
        receipt = await self._call(self.service.charge, request.headers.get("Authorization"))
        return web.json_response(
            {
                "message": "Payment processed successfully",
                "paymentId": receipt.payment_id,
                "amount": cents_to_units(receipt.amount_cents),
                "balanceBefore": cents_to_units(receipt.balance_before_cents),
                "balanceAfter": cents_to_units(receipt.balance_after_cents),
                "timestamp": _iso(receipt.created_at_epoch),
            }
        )

    async def _handle_history(self, request: web.Request) -> web.Response:
        payments = await self._call(self.service.payments, request.headers.get("Authorization"))
        return web.json_response({"payments": [_payment_to_json(p) for p in payments]})

    async def _handle_me(self, request: web.Request) -> web.Response:
        identity = await self._call(self.service.current_user, request.headers.get("Authorization"))
        return web.json_response(
            {
                "id": identity.user_id,
                "username": identity.username,
                "balance": cents_to_units(identity.balance_cents),
            }
        )

    async def _handle_health(self, request: web.Request) -> web.Response:
        status = self.service.get_status()
        return web.json_response(
            {
                "status": "healthy" if status.is_open else "closed",
                "service": status.name,
                "version": status.version,
                "backend": status.backend,
                "timestamp": status.timestamp.isoformat(),
            }
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _call(self, fn, *args):
        """Run a synchronous service call on the default executor"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))

    @staticmethod
    async def _read_credentials(request: web.Request) -> Tuple[str, str]:
        try:
            body = await request.json()
        except ValueError:
            raise InvalidRequestBody("body is not valid JSON")
        if not isinstance(body, dict):
            raise InvalidRequestBody("body is not a JSON object")

        username = body.get("username")
        password = body.get("password")
        if not isinstance(username, str) or not isinstance(password, str):
            raise MissingFields()
        if not username or not password:
            raise MissingFields()
        return username, password

    def _client_key(self, request: web.Request) -> str:
        """Rate limit key: peer address, or the first forwarded hop when trusted"""
        if self.config.trust_forwarded:
            forwarded = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
            if forwarded:
                return forwarded
        return request.remote or "unknown"
