"""In-memory secret store."""
import logging
import threading
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class VolatileStore:
    """
    Keep secrets in process memory only.

    Nothing is persisted and nothing leaves the process, which makes this
    store suitable for tests and short-lived tools.
    """

    def __init__(self):
        self._keys: Optional[Dict[str, bytes]] = None
        self._lock = threading.Lock()

    def _ensure_keys(self) -> Dict[str, bytes]:
        if self._keys is None:
            self._keys = {}
        return self._keys

    def read(self, name: str) -> Optional[bytes]:
        with self._lock:
            return self._ensure_keys().get(name)

    def write(self, name: str, payload: bytes) -> None:
        with self._lock:
            self._ensure_keys()[name] = payload
        logger.debug(f"Stored secret '{name}' in memory")

    def delete(self, name: str) -> None:
        with self._lock:
            if self._keys is None:
                return
            self._keys.pop(name, None)
        logger.debug(f"Removed secret '{name}' from memory")
