"""
Client-side key-value storage for credentials.

Two independent tiers mirror the browser's localStorage/sessionStorage:

- durable:   JSON file under DATA_DIR, survives process restarts
- ephemeral: process memory, gone when the run ends

Only the session manager writes credential keys, and at most one tier
holds them for a given session.
"""

import json
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Optional

from vlogsphere.config import CONFIG
from vlogsphere.logger import get_logger

logger = get_logger(__name__)

ACCESS_KEY = "token"
RENEWAL_KEY = "refreshToken"
REDIRECT_KEY = "redirectAfterLogin"

CREDENTIAL_KEYS = (ACCESS_KEY, RENEWAL_KEY)


class StorageDurability(str, Enum):
    PERSISTENT = "persistent"
    EPHEMERAL = "ephemeral"


class KeyValueStore(ABC):
    """Minimal string key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    def is_empty(self, keys=CREDENTIAL_KEYS) -> bool:
        return all(self.get(k) is None for k in keys)


class MemoryStore(KeyValueStore):
    """Ephemeral tier."""

    def __init__(self):
        self._values: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class FileStore(KeyValueStore):
    """Durable tier backed by a small JSON file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or CONFIG.credentials_path)

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable credential file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")


class CredentialStorage:
    """
    The pair of storage tiers, addressed by durability.

    Args:
        durable: Store that survives restarts (defaults to a FileStore).
        ephemeral: Store scoped to this run (defaults to a MemoryStore).
    """

    def __init__(
        self,
        durable: Optional[KeyValueStore] = None,
        ephemeral: Optional[KeyValueStore] = None,
    ):
        self.durable = durable if durable is not None else FileStore()
        self.ephemeral = ephemeral if ephemeral is not None else MemoryStore()

    def tier(self, durability: StorageDurability) -> KeyValueStore:
        if durability == StorageDurability.PERSISTENT:
            return self.durable
        return self.ephemeral

    def find_credentials(
        self,
    ) -> tuple[Optional[StorageDurability], Optional[str], Optional[str]]:
        """
        Locate stored credentials, durable tier first.

        Returns:
            (durability, access, renewal); all None when nothing is stored.
        """
        for durability in (StorageDurability.PERSISTENT, StorageDurability.EPHEMERAL):
            store = self.tier(durability)
            if access := store.get(ACCESS_KEY):
                return durability, access, store.get(RENEWAL_KEY)
        return None, None, None

    def write_credentials(
        self, durability: StorageDurability, access: str, renewal: str
    ) -> None:
        store = self.tier(durability)
        store.set(ACCESS_KEY, access)
        store.set(RENEWAL_KEY, renewal)

    def clear_credentials(self) -> None:
        for store in (self.durable, self.ephemeral):
            for key in CREDENTIAL_KEYS:
                store.remove(key)
