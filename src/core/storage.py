"""Durable key/value storage for client session data."""
import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the backing store can't be read or written."""

    pass


class KeyValueStorage(Protocol):
    """String key/value store with last-write-wins semantics."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage. Contents are lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:  # noqa: D102
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:  # noqa: D102
        self._data[key] = value

    def delete(self, key: str) -> None:  # noqa: D102
        self._data.pop(key, None)


class FileStorage:
    """
    Storage persisted as a single JSON object on disk.

    Every write rewrites the whole file through a temporary sibling and an
    atomic rename, so a crash mid-write leaves the previous contents intact.
    A missing file reads as empty; a corrupt file is logged and treated as
    empty rather than blocking startup.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        """Location of the backing file."""
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"Failed to read storage file: {self._path}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Storage file is not valid JSON, ignoring: %s", self._path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file does not hold an object, ignoring: %s", self._path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as e:
            raise StorageError(f"Failed to write storage file: {self._path}") from e

    def get(self, key: str) -> str | None:  # noqa: D102
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:  # noqa: D102
        data = self._load()
        data[key] = value
        self._save(data)
        logger.debug("Stored key=%s path=%s", key, self._path)

    def delete(self, key: str) -> None:  # noqa: D102
        data = self._load()
        if key not in data:
            return
        del data[key]
        self._save(data)
        logger.debug("Deleted key=%s path=%s", key, self._path)
