import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from utils.errors import RegistryMissError, RegistryPoisonedError

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    # connection id -> file path; an exception under the lock poisons it until clear_poison

    def __init__(self):
        self._lock = threading.Lock()
        self._files: Dict[str, str] = {}
        self._poisoned = False

    @contextmanager
    def _locked(self) -> Iterator[Dict[str, str]]:
        with self._lock:
            if self._poisoned:
                raise RegistryPoisonedError()
            try:
                yield self._files
            except BaseException:
                self._poisoned = True
                logger.exception("Connection registry poisoned")
                raise

    def register(self, connection_id: str, file_path: str):
        with self._locked() as files:
            files[connection_id] = file_path

    def resolve(self, connection_id: str) -> str:
        with self._locked() as files:
            file_path: Optional[str] = files.get(connection_id)
        if file_path is None:
            raise RegistryMissError()
        return file_path

    def unregister(self, connection_id: str) -> bool:
        with self._locked() as files:
            return files.pop(connection_id, None) is not None

    def clear_poison(self):
        with self._lock:
            self._poisoned = False
