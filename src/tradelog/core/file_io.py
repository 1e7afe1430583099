"""Safe file I/O utilities.

Whole-file replacement through a temporary sibling, ``fsync`` and
``os.replace`` so a crash mid-write never leaves a truncated state file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, text: str) -> None:
    """Replace *path* with *text* atomically.

    * The data is written to ``<name>.tmp`` in the same directory and
      flushed with ``os.fsync`` before the rename.
    * ``os.replace`` is atomic on POSIX and Windows for same-volume paths.
    * Parent directories are created when missing.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)
