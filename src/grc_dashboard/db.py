"""
Key-value storage backends for the GRC dashboard.

The entity store only needs get/set/delete of string values under string
keys; anything providing those three methods can back it.
"""

import json
import logging
import os
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)

RISKS_KEY = "cicllos_risks"
DOCUMENTS_KEY = "cicllos_docs"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryStore:
    """Dict-backed store; contents live as long as the object."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data)


class JsonFileStore:
    """All keys kept in a single JSON object on disk."""

    def __init__(self, path: str):
        self.path = path

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    def _read_for_write(self) -> Dict[str, str]:
        """Current contents, or empty after moving an unreadable file to <path>.corrupt."""
        try:
            return self._read_all()
        except ValueError as exc:
            corrupt_path = f"{self.path}.corrupt"
            os.replace(self.path, corrupt_path)
            logger.warning("Unreadable storage file %s moved to %s: %s", self.path, corrupt_path, exc)
            return {}

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_for_write()
        data[key] = value
        self._write_all(data)
        logger.debug("Wrote key %s to %s", key, self.path)

    def delete(self, key: str) -> None:
        data = self._read_for_write()
        if key in data:
            del data[key]
            self._write_all(data)
