"""
Persistence backends for the conversation record.

The record is a single serialized string read and written as one unit
under a fixed key.
"""

import logging
import threading
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ContextStorage(Protocol):
    """Whole-record key-value persistence."""

    def load(self, key: str) -> Optional[str]: ...

    def save(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage, used by tests and single-process deployments."""

    def __init__(self):
        self._records: dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> Optional[str]:
        with self._lock:
            return self._records.get(key)

    def save(self, key: str, value: str) -> None:
        with self._lock:
            self._records[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._records


class SettingsStorage:
    """Storage backed by the database settings table."""

    def load(self, key: str) -> Optional[str]:
        from db.settings import get_setting

        return get_setting(key)

    def save(self, key: str, value: str) -> None:
        from db.settings import set_setting

        set_setting(key, value)

    def delete(self, key: str) -> None:
        from db.settings import delete_setting

        delete_setting(key)
