"""Key-value JSON persistence for the portfolio document."""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Union

from .errors import PersistenceError


class Store(ABC):
    """Abstract key-value store of JSON documents."""

    @abstractmethod
    def load(self, key: str) -> Optional[dict[str, Any]]:
        """Return the document stored under ``key``, or None if absent.

        Raises:
            PersistenceError: If the document exists but cannot be read.
        """
        pass

    @abstractmethod
    def save(self, key: str, document: dict[str, Any]) -> None:
        """Persist ``document`` under ``key``.

        Raises:
            PersistenceError: If the write fails.
        """
        pass


class MemoryStore(Store):
    """In-process store; documents are round-tripped through JSON."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def load(self, key: str) -> Optional[dict[str, Any]]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def save(self, key: str, document: dict[str, Any]) -> None:
        try:
            self._data[key] = json.dumps(document)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot serialize document {key}: {e}") from e


class JsonFileStore(Store):
    """One ``<key>.json`` file per key inside ``directory``."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str) -> Optional[dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open(encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e

    def save(self, key: str, document: dict[str, Any]) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(document, fh, indent=2)
                os.replace(tmp, path)
            except BaseException:
                os.unlink(tmp)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot write {path}: {e}") from e
