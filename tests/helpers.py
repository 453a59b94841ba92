"""Shared test helpers"""

import shutil
import tempfile
import threading
import time
import uuid
from typing import Optional

from account_service.security.authentication import PasswordHasher

try:
    import fakeredis
    HAS_FAKEREDIS = True
except ImportError:
    HAS_FAKEREDIS = False

TEST_BCRYPT_ROUNDS = 4


class ManualClock:
    """Epoch-seconds clock that only moves when told to"""

    def __init__(self, start: Optional[int] = None):
        self.now = int(time.time()) if start is None else start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


def fast_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_BCRYPT_ROUNDS)


def fake_redis_store():
    """RedisCredentialStore on an isolated in-process fake server"""
    from account_service.persistence.redis_store import RedisCredentialStore

    client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    return RedisCredentialStore(client=client, prefix=f"test-{uuid.uuid4().hex[:8]}")


class StoreFactoryMixin:
    """Provides self.store for one backend; subclasses pick it with make_store()"""

    def make_store(self):
        raise NotImplementedError

    def setUp(self):
        self.store = self.make_store()

    def tearDown(self):
        self.store.close()


class MemoryStoreMixin(StoreFactoryMixin):

    def make_store(self):
        from account_service.persistence import MemoryCredentialStore
        return MemoryCredentialStore()


class JSONStoreMixin(StoreFactoryMixin):

    def make_store(self):
        from account_service.persistence import JSONCredentialStore
        self.test_dir = tempfile.mkdtemp()
        return JSONCredentialStore(self.test_dir)

    def tearDown(self):
        super().tearDown()
        shutil.rmtree(self.test_dir, ignore_errors=True)


class RedisStoreMixin(StoreFactoryMixin):

    def make_store(self):
        return fake_redis_store()


def run_concurrently(targets):
    """Start one thread per callable behind a shared barrier and wait for all"""
    barrier = threading.Barrier(len(targets))

    def gated(target):
        barrier.wait()
        target()

    threads = [threading.Thread(target=gated, args=(target,)) for target in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
