"""Tag taxonomy — the three growable vocabularies (regions, structures,
triggers) that classify a trade's setup.

Each vocabulary is an ordered list of unique strings.  Membership is
exact, case-sensitive equality after trimming.  Values are kept sorted.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from tradelog.core.enums import TagKind

logger = logging.getLogger(__name__)

DEFAULT_TAXONOMY: dict[TagKind, tuple[str, ...]] = {
    TagKind.REGIONS: ("Região Barata", "Região Cara", "Consolidação"),
    TagKind.STRUCTURES: ("A-B-C de Alta", "A-B-C de Baixa"),
    TagKind.TRIGGERS: ("Cadeado de Alta", "Cadeado de Baixa", "2-2-1", "Pivot Disfarçado"),
}


def merge_vocabulary(local: Iterable[str], remote: Iterable[str]) -> list[str]:
    """Union of both vocabularies, deduplicated and sorted.

    Commutative: ``merge_vocabulary(a, b) == merge_vocabulary(b, a)``.
    """
    return sorted(set(local) | set(remote))


class TagTaxonomy:
    """In-memory store of the three tag vocabularies.

    Parameters
    ----------
    values : dict[TagKind, Iterable[str]] | None
        Initial vocabularies.  Missing kinds start empty; ``None`` loads
        :data:`DEFAULT_TAXONOMY`.
    """

    def __init__(self, values: dict[TagKind, Iterable[str]] | None = None) -> None:
        source = DEFAULT_TAXONOMY if values is None else values
        self._values: dict[TagKind, list[str]] = {}
        for kind in TagKind:
            unique: list[str] = []
            for raw in source.get(kind, ()):
                value = raw.strip()
                if value and value not in unique:
                    unique.append(value)
            self._values[kind] = unique

    # ------------------------------------------------------------------ #
    # Queries                                                              #
    # ------------------------------------------------------------------ #

    def values(self, kind: TagKind) -> list[str]:
        return list(self._values[kind])

    def contains(self, kind: TagKind, value: str) -> bool:
        return value.strip() in self._values[kind]

    # ------------------------------------------------------------------ #
    # Mutations                                                            #
    # ------------------------------------------------------------------ #

    def add(self, kind: TagKind, value: str) -> bool:
        """Register *value*.  Returns False for blanks and duplicates."""
        value = value.strip()
        vocab = self._values[kind]
        if not value or value in vocab:
            return False
        vocab.append(value)
        vocab.sort()
        logger.debug("Tag added: %s=%r", kind.value, value)
        return True

    def remove(self, kind: TagKind, value: str) -> bool:
        """Drop *value*.  Returns False if it was not registered."""
        value = value.strip()
        vocab = self._values[kind]
        if value not in vocab:
            return False
        vocab.remove(value)
        logger.debug("Tag removed: %s=%r", kind.value, value)
        return True

    def replace(self, kind: TagKind, values: Iterable[str]) -> None:
        """Overwrite one vocabulary (used when adopting a merge result)."""
        self._values[kind] = TagTaxonomy({kind: values})._values[kind]

    def merge(self, kind: TagKind, remote: Iterable[str]) -> bool:
        """Merge *remote* into the local vocabulary.

        The local list is replaced by the sorted union only when the
        union differs from it (by length or by position).  Returns
        whether anything changed.
        """
        merged = merge_vocabulary(self._values[kind], remote)
        if merged == self._values[kind]:
            return False
        self.replace(kind, merged)
        return True

    # ------------------------------------------------------------------ #
    # Blob serialization                                                   #
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, list[str]]:
        return {kind.value: list(vocab) for kind, vocab in self._values.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TagTaxonomy:
        """Build from the persisted blob.  Raises ``TypeError`` when the
        blob is not a mapping of string lists."""
        if not isinstance(data, dict):
            raise TypeError("taxonomy blob must be an object")
        values: dict[TagKind, list[str]] = {}
        for kind in TagKind:
            raw = data.get(kind.value, [])
            if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
                raise TypeError(f"taxonomy blob field {kind.value!r} must be a list of strings")
            values[kind] = raw
        return cls(values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TagTaxonomy):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        sizes = ", ".join(f"{k.value}={len(v)}" for k, v in self._values.items())
        return f"TagTaxonomy({sizes})"
