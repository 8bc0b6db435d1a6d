# purchase_intake/client/session_store.py
import threading
from typing import Dict, Optional

CONFIRMATION_KEY = "confirmationData"


class SessionStore:
    """
    String key/value store scoped to one client session.

    Survives navigation between views of the same session; a new session
    starts with a new, empty store.
    """

    def __init__(self):
        self._items: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)
