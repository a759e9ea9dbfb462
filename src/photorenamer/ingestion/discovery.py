"""Directory discovery for rename batches."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, List

from .models import SourceFile

LOGGER = logging.getLogger(__name__)


class DirectoryScanner:
    """Collect candidate files under a root in a stable, path-sorted order.

    Hidden entries (any path segment starting with a dot) are pruned unless
    ``include_hidden`` is set; symlinked files and directories are only
    followed with ``follow_symlinks``. Files above ``max_size_bytes`` are
    left out of the batch.
    """

    def __init__(
        self,
        *,
        recursive: bool,
        include_hidden: bool,
        follow_symlinks: bool,
        max_size_bytes: int | None,
    ) -> None:
        self.recursive = recursive
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks
        self.max_size_bytes = max_size_bytes

    def scan(self, root: Path) -> Iterator[SourceFile]:
        """Yield a :class:`SourceFile` per accepted file under ``root``."""
        root = root.expanduser().resolve()
        if root.is_file():
            candidates: List[Path] = [root]
        elif root.is_dir():
            candidates = sorted(self._walk(root), key=lambda p: p.relative_to(root).as_posix())
        else:
            return

        for path in candidates:
            if path.is_symlink() and not self.follow_symlinks:
                continue
            try:
                source = SourceFile.from_path(path)
            except OSError as exc:
                LOGGER.warning("Skipping unreadable file %s: %s", path, exc)
                continue
            if self.max_size_bytes is not None and source.size > self.max_size_bytes:
                LOGGER.info("Skipping %s: %d bytes exceeds the size limit", path, source.size)
                continue
            yield source

    def _walk(self, root: Path) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(root, followlinks=self.follow_symlinks):
            if not self.include_hidden:
                dirnames[:] = [name for name in dirnames if not name.startswith(".")]
                filenames = [name for name in filenames if not name.startswith(".")]
            for name in filenames:
                path = Path(dirpath) / name
                if path.is_file():
                    yield path
            if not self.recursive:
                break
