"""Persistence - key/value settings store

Contract used by the scheduler (enabled flag) and the history services:
- load(key, default) / save(key, value)
- delete(key) / has_key(key)

JsonFilePersistence keeps every key in one JSON document:
- atomic write (temp + rename)
- sha256 checksum
- version check
- a corrupt file is skipped with a warning and treated as empty
"""

import copy
import hashlib
import json
import os
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .config import PERSIST_FILE, PERSIST_VERSION
from .telemetry import get_logger, metrics

logger = get_logger(__name__)


class Persistence(ABC):
    """Key/value store for small JSON-compatible values"""

    @abstractmethod
    def load(self, key: str, default: Any = None) -> Any:
        """Value stored under ``key``, ``default`` when missing or unreadable"""

    @abstractmethod
    def save(self, key: str, value: Any) -> bool:
        """Store ``value`` under ``key``

        Returns:
            Whether the value was written
        """

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``; returns whether it existed"""

    @abstractmethod
    def has_key(self, key: str) -> bool:
        """Whether ``key`` is stored"""


class MemoryPersistence(Persistence):
    """Dictionary-backed store (tests, demo)"""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def load(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def save(self, key: str, value: Any) -> bool:
        self._data[key] = copy.deepcopy(value)
        return True

    def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def has_key(self, key: str) -> bool:
        return key in self._data


def _calculate_checksum(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _encode(values: dict[str, Any]) -> bytes:
    return json.dumps(values, ensure_ascii=False, indent=2, sort_keys=True).encode("utf-8")


class JsonFilePersistence(Persistence):
    """Single-file JSON store

    The whole document is rewritten on every save; values are expected to
    be small (flags, short lists).
    """

    def __init__(self, path: Path | None = None, version: int = PERSIST_VERSION):
        self._path = Path(path) if path else PERSIST_FILE
        self._version = version
        self._values: dict[str, Any] = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def load(self, key: str, default: Any = None) -> Any:
        if key not in self._values:
            return default
        return copy.deepcopy(self._values[key])

    def save(self, key: str, value: Any) -> bool:
        previous = self._values.get(key)
        had_key = key in self._values
        self._values[key] = copy.deepcopy(value)
        if self._write():
            return True
        # keep memory consistent with disk
        if had_key:
            self._values[key] = previous
        else:
            self._values.pop(key, None)
        return False

    def delete(self, key: str) -> bool:
        if key not in self._values:
            return False
        del self._values[key]
        self._write()
        return True

    def has_key(self, key: str) -> bool:
        return key in self._values

    def _write(self) -> bool:
        """Atomically write the document

        Returns:
            Whether the write succeeded
        """
        try:
            payload = _encode(self._values)
            data = {
                "version": self._version,
                "saved_at": time.time(),
                "checksum": _calculate_checksum(payload),
                "values": self._values,
            }
            json_bytes = json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8")

            self._path.parent.mkdir(parents=True, exist_ok=True)

            fd, temp_path = tempfile.mkstemp(
                prefix="rotalock_settings_",
                suffix=".tmp",
                dir=self._path.parent,
            )
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(json_bytes)
                os.replace(temp_path, self._path)
            except Exception:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise

            logger.debug(f"[Persist] Saved {len(self._values)} keys to {self._path}")
            return True

        except Exception as e:
            logger.error(f"[Persist] Save failed: {e}")
            metrics.inc("persist.error", {"op": "save"})
            return False

    def _read(self) -> dict[str, Any]:
        """Read and validate the document

        Returns:
            Stored values, empty on missing/corrupt file
        """
        if not self._path.exists():
            logger.debug(f"[Persist] File not found: {self._path}")
            return {}

        try:
            with open(self._path, "rb") as f:
                data = json.loads(f.read().decode("utf-8"))

            file_version = data.get("version", 1)
            if file_version != self._version:
                logger.warning(
                    f"[Persist] Version mismatch: file={file_version}, expected={self._version}"
                )
                metrics.inc("persist.error", {"op": "load", "reason": "version"})
                return {}

            values = data.get("values", {})
            stored_checksum = data.get("checksum")
            if stored_checksum and _calculate_checksum(_encode(values)) != stored_checksum:
                logger.warning("[Persist] Checksum mismatch")
                metrics.inc("persist.error", {"op": "load", "reason": "checksum"})
                return {}

            logger.info(f"[Persist] Loaded {len(values)} keys from {self._path}")
            return values

        except json.JSONDecodeError as e:
            logger.warning(f"[Persist] Invalid JSON: {e}")
            metrics.inc("persist.error", {"op": "load", "reason": "json"})
            return {}

        except Exception as e:
            logger.error(f"[Persist] Load failed: {e}")
            metrics.inc("persist.error", {"op": "load", "reason": "unknown"})
            return {}
