"""
JSON Store - Atomic JSON document file

Module: persistence.json_store
Date: 2026-10-02
Version: 0.1.0

CHANGELOG:
[2026-10-02 v0.1.0] Initial implementation
  - Write-through cached JSON document
  - Atomic writes (temp file + fsync + rename)
  - transaction() context manager with rollback on failure
  - Restrictive file permissions (0600)

ARCHITECTURE:
JSONStore owns one JSON document on disk and a cached copy in memory.
  - read(): run a function against the cached document under the lock
  - transaction(): mutate the cached document, then persist it atomically
If persisting fails the cache is reloaded from disk, which still holds
the previous document because the rename never happened. A failed
transaction therefore leaves no visible change.
"""

import json
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar

T = TypeVar("T")


class JSONStoreError(Exception):
    """Base JSON store error"""
    pass


class JSONStoreIOError(JSONStoreError):
    """File I/O error"""
    pass


class JSONStoreFormatError(JSONStoreError):
    """JSON format error"""
    pass


class JSONStore:
    """
    One JSON document persisted atomically.

    Thread-safe within a process. Concurrent writers in separate
    processes are not supported.
    """

    def __init__(self, file_path: str, default_data: Optional[Dict[str, Any]] = None):
        """
        Open or create a JSON document

        Args:
            file_path: Path to JSON file
            default_data: Document written when the file doesn't exist

        Raises:
            JSONStoreIOError: If the file cannot be created or read
            JSONStoreFormatError: If the existing file is not valid JSON
        """
        self.logger = logging.getLogger(f"persistence.{self.__class__.__name__}")
        self.file_path = Path(file_path)
        self._lock = threading.RLock()

        self.file_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.file_path.exists():
            self._write_atomic(default_data or {})
            self.logger.info(f"Created new store: {self.file_path}")

        self._data = self._read_file()
        for key, value in (default_data or {}).items():
            self._data.setdefault(key, value)

    def read(self, reader: Callable[[Dict[str, Any]], T]) -> T:
        """
        Run reader against the cached document

        The reader must not mutate the document or keep references to it.
        """
        with self._lock:
            return reader(self._data)

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, Any]]:
        """
        Mutate the document and persist it as one atomic write

        Usage:
            with store.transaction() as data:
                data["users"][user_id] = record

        An exception inside the block, or a failed write, restores the
        last persisted document.
        """
        with self._lock:
            try:
                yield self._data
                self._write_atomic(self._data)
            except BaseException:
                self._data = self._read_file()
                raise

    def reload(self) -> None:
        """Drop the cache and re-read the file"""
        with self._lock:
            self._data = self._read_file()

    def _read_file(self) -> Dict[str, Any]:
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise JSONStoreFormatError(f"Invalid JSON in {self.file_path}: {e}")
        except OSError as e:
            raise JSONStoreIOError(f"Failed to read {self.file_path}: {e}")

    def _write_atomic(self, data: Dict[str, Any]) -> None:
        """
        Atomic write: write to temp file, fsync, then rename

        Raises:
            JSONStoreIOError: If write fails
        """
        temp_path = self.file_path.with_suffix(self.file_path.suffix + ".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(temp_path, 0o600)
            temp_path.replace(self.file_path)
        except (OSError, TypeError, ValueError) as e:
            raise JSONStoreIOError(f"Failed to write {self.file_path}: {e}")
