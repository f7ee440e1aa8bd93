# codesync/repository/local.py
"""
Local directory as a repository.

The "commit" of a local snapshot is its Merkle root hash. Webhooks do not
apply to local directories.
"""

from __future__ import annotations

import asyncio
import hashlib
import os
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from codesync.core.exceptions import RepositoryError
from codesync.core.hashing import compute_content_hash
from codesync.logging.logger import get_logger
from codesync.logging.tags import REPOSITORY
from codesync.merkle.tree import FileRecord, build_tree
from codesync.repository.filters import EXCLUDED_DIRS, FileFilter

logger = get_logger(__name__)


class LocalRepository:
    source_name = "local"

    def __init__(self, root: Union[str, Path], file_filter: Optional[FileFilter] = None) -> None:
        self.root = Path(root).resolve()
        self.file_filter = file_filter or FileFilter()
        self._snapshot: Optional[Tuple[str, List[FileRecord]]] = None

    @property
    def codebase_id(self) -> str:
        """local_<dirname>_<8 hex of the absolute path>, stable per directory."""
        digest = hashlib.sha256(str(self.root).encode("utf-8")).hexdigest()[:8]
        name = re.sub(r"[^A-Za-z0-9_.-]+", "-", self.root.name) or "root"
        return f"local_{name}_{digest}"

    def _scan(self) -> List[FileRecord]:
        if not self.root.is_dir():
            raise RepositoryError(f"Not a directory: {self.root}")

        records: List[FileRecord] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
            for filename in sorted(filenames):
                full = Path(dirpath) / filename
                if not full.is_file():
                    continue
                rel = full.relative_to(self.root).as_posix()
                size = full.stat().st_size
                if not self.file_filter.accepts(rel, size):
                    continue
                records.append(FileRecord(path=rel, content_hash=compute_content_hash(full), size=size))

        logger.debug(f"{REPOSITORY} Scanned {self.root}: {len(records)} files")
        return records

    async def list_tree(self, ref: Optional[str] = None) -> List[FileRecord]:
        """The snapshot resolve_ref() hashed when ref is its commit, else a fresh scan."""
        if ref is not None and self._snapshot is not None and self._snapshot[0] == ref:
            return list(self._snapshot[1])
        return await asyncio.to_thread(self._scan)

    async def resolve_ref(self, ref: Optional[str] = None) -> str:
        records = await asyncio.to_thread(self._scan)
        commit = build_tree(records).root_hash
        self._snapshot = (commit, records)
        return commit

    async def get_blob(self, path: str, ref: Optional[str] = None) -> bytes:
        target = (self.root / path).resolve()
        if self.root not in target.parents:
            raise RepositoryError(f"Path escapes repository root: {path}")
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as e:
            raise RepositoryError(f"Cannot read {path}: {e}") from e

    async def register_webhook(self, url: str, secret: str) -> int:
        raise NotImplementedError("Local repositories do not support webhooks")

    async def aclose(self) -> None:
        return None


__all__ = ["LocalRepository"]
