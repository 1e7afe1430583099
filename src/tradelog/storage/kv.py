"""Key-value persistence collaborators.

``IKeyValueStore`` (see :mod:`tradelog.core.interfaces`) is the protocol.
Two implementations ship:

* ``MemoryKeyValueStore`` -- for unit tests and throwaway sessions.
* ``JsonFileKeyValueStore`` -- one JSON object on disk, rewritten
  atomically on every ``set``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from tradelog.core.file_io import atomic_write_text

logger = logging.getLogger(__name__)


class MemoryKeyValueStore:
    """In-memory implementation -- no persistence."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    # -- helpers for tests --------------------------------------------------

    @property
    def data(self) -> dict[str, str]:
        return self._data


class JsonFileKeyValueStore:
    """JSON file-backed implementation.

    Loads the whole file on init; an unreadable or non-object file is
    treated as empty (and replaced on the next write).
    """

    def __init__(self, path: str | Path = "data/tradelog.json") -> None:
        self._path = Path(path)
        self._data: dict[str, str] = {}
        self._load()

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        atomic_write_text(self._path, json.dumps(self._data, ensure_ascii=False, indent=2))

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Unreadable state file %s, starting empty", self._path)
            return
        if not isinstance(raw, dict):
            logger.warning("State file %s is not a JSON object, starting empty", self._path)
            return
        self._data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
