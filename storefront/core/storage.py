"""Client-side key-value storage used to persist the buyer's cart"""

import os
import logging
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class KeyValueStorage:
    """String key-value storage, the server-side stand-in for localStorage"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class InMemoryStorage(KeyValueStorage):
    """Storage kept in process memory"""

    def __init__(self):
        self.values: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """
    Storage backed by one JSON file per key.

    Writes go to a temporary file in the same directory and are moved into
    place, so a reader never observes a half-written snapshot.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, self._path(key))
        except OSError:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        logger.debug(f"Stored {key} in {self.directory}")

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
