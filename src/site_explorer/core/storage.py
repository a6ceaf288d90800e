"""Key-value persistence for cached state.

Values are JSON-serializable objects. Every operation swallows and logs its
failures: a broken store degrades caching, it never breaks the caller.

Backends:
    - MemoryKeyValueStore: process-local, values round-trip through JSON
    - FileKeyValueStore: one JSON document on disk, atomic writes
      (temp+fsync+rename) under a file lock
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

from filelock import FileLock, Timeout

logger = logging.getLogger(__name__)

# Default on-disk location for the file-backed store
DEFAULT_STORAGE_PATH = Path.home() / ".site-explorer" / "storage.json"

# Lock acquisition timeout (seconds)
LOCK_ACQUISITION_TIMEOUT = 5


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal persistence contract used by the license validator."""

    def get_item(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if absent or unreadable."""
        ...

    def set_item(self, key: str, value: Any) -> bool:
        """Store ``value`` under ``key``; return False on failure."""
        ...

    def remove_item(self, key: str) -> bool:
        """Remove ``key``; return False on failure."""
        ...


class MemoryKeyValueStore:
    """In-process store.

    Values are kept as JSON text so callers never share mutable state with
    the store, matching the semantics of a browser's local storage.
    """

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.warning("Discarding unreadable value for key %s: %s", key, exc)
            return None

    def set_item(self, key: str, value: Any) -> bool:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as exc:
            logger.warning("Failed to store key %s: %s", key, exc)
            return False
        return True

    def remove_item(self, key: str) -> bool:
        self._data.pop(key, None)
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._data


class FileKeyValueStore:
    """Store backed by a single JSON document.

    Writes rewrite the whole document atomically while holding a sibling
    ``.lock`` file.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path).expanduser() if path else DEFAULT_STORAGE_PATH
        self._lock_path = self.path.with_name(self.path.name + ".lock")

    def _ensure_directory(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Storage document {self.path} is not a JSON object")
        return data

    def _write_document(self, data: Dict[str, Any]) -> None:
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def get_item(self, key: str) -> Optional[Any]:
        try:
            self._ensure_directory()
            with FileLock(self._lock_path, timeout=LOCK_ACQUISITION_TIMEOUT):
                return self._read_document().get(key)
        except (OSError, ValueError, Timeout) as exc:
            logger.warning("Failed to read key %s from %s: %s", key, self.path, exc)
            return None

    def set_item(self, key: str, value: Any) -> bool:
        try:
            self._ensure_directory()
            with FileLock(self._lock_path, timeout=LOCK_ACQUISITION_TIMEOUT):
                try:
                    data = self._read_document()
                except ValueError as exc:
                    logger.warning("Replacing unreadable storage document %s: %s", self.path, exc)
                    data = {}
                data[key] = value
                self._write_document(data)
            logger.debug("Stored key %s in %s", key, self.path)
            return True
        except (OSError, TypeError, ValueError, Timeout) as exc:
            logger.warning("Failed to store key %s in %s: %s", key, self.path, exc)
            return False

    def remove_item(self, key: str) -> bool:
        try:
            if not self.path.exists():
                return True
            with FileLock(self._lock_path, timeout=LOCK_ACQUISITION_TIMEOUT):
                data = self._read_document()
                if key in data:
                    del data[key]
                    self._write_document(data)
            return True
        except (OSError, ValueError, Timeout) as exc:
            logger.warning("Failed to remove key %s from %s: %s", key, self.path, exc)
            return False
