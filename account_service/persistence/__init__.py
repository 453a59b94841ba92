"""
Persistence module - Storage backends behind one interface

Provides:
- CredentialStore: Abstract persistence interface
- MemoryCredentialStore: In-process backend
- JSONCredentialStore: JSON file backend (built on JSONStore)
- RedisCredentialStore: Redis backend
- UserRecord, SessionRecord, PaymentRecord: Stored records
"""

from .base_store import CredentialStore
from .records import UserRecord, SessionRecord, PaymentRecord
from .memory_store import MemoryCredentialStore
from .json_store import JSONStore, JSONStoreError
from .file_store import JSONCredentialStore
from .redis_store import RedisCredentialStore

__all__ = [
    "CredentialStore",
    "UserRecord",
    "SessionRecord",
    "PaymentRecord",
    "MemoryCredentialStore",
    "JSONStore",
    "JSONStoreError",
    "JSONCredentialStore",
    "RedisCredentialStore",
]
