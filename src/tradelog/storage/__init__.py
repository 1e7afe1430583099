"""Local persistence for the ledger and taxonomy blobs."""

from .kv import JsonFileKeyValueStore, MemoryKeyValueStore
from .state import StatePersistence

__all__ = ["JsonFileKeyValueStore", "MemoryKeyValueStore", "StatePersistence"]
