# codesync/merkle/tree.py
"""
Merkle tree over a repository snapshot.

Files are leaves whose hash is the content hash. A directory's hash is the
SHA-256 of its children's (name, hash) pairs, sorted by name, so the root
hash depends only on the set of (path, content) pairs and never on the
order files were listed in.

The serialized form is the flat (path, hash) list plus the root hash, which
is enough to rebuild the hierarchy and keep diffing across restarts.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from codesync.core.hashing import compute_bytes_hash
from codesync.logging.logger import get_logger
from codesync.logging.tags import MERKLE

logger = get_logger(__name__)

SERIALIZATION_VERSION = 1

FILE = "file"
DIR = "dir"


# =============================================================================
# Types
# =============================================================================


@dataclass(frozen=True)
class FileRecord:
    """One file of a snapshot: repository-relative path, content hash, size."""

    path: str
    content_hash: str
    size: int = 0


@dataclass
class TreeNode:
    """
    A file or directory in the tree.

    Children are kept in a dict whose insertion order is sorted by name.
    """

    name: str
    path: str
    kind: str
    hash: str = ""
    size: int = 0
    children: Dict[str, "TreeNode"] = field(default_factory=dict)

    @property
    def is_dir(self) -> bool:
        return self.kind == DIR

    def iter_files(self) -> Iterator["TreeNode"]:
        """Yield file nodes under this node in path order."""
        if not self.is_dir:
            yield self
            return
        for child in self.children.values():
            yield from child.iter_files()


def normalize_path(path: str) -> str:
    """Use forward slashes and drop leading "./" or "/"."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.lstrip("/")
    parts = [p for p in normalized.split("/") if p not in ("", ".")]
    if not parts or ".." in parts:
        raise ValueError(f"Invalid file path: {path!r}")
    return "/".join(parts)


def directory_hash(children: Iterable[Tuple[str, str]]) -> str:
    """Hash of (name, hash) pairs, sorted by name. Order of input is irrelevant."""
    hasher = hashlib.sha256()
    for name, child_hash in sorted(children):
        hasher.update(name.encode("utf-8"))
        hasher.update(b"\0")
        hasher.update(child_hash.encode("utf-8"))
        hasher.update(b"\n")
    return f"sha256:{hasher.hexdigest()}"


# =============================================================================
# Tree
# =============================================================================


@dataclass(frozen=True)
class MerkleTree:
    """Immutable snapshot of a repository at one ref."""

    root: TreeNode
    files: Tuple[Tuple[str, str], ...]
    sizes: Mapping[str, int] = field(default_factory=dict)
    commit: Optional[str] = None
    branch: Optional[str] = None
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def root_hash(self) -> str:
        return self.root.hash

    @property
    def file_hashes(self) -> Dict[str, str]:
        return dict(self.files)

    def paths(self) -> List[str]:
        return [path for path, _ in self.files]

    def get(self, path: str) -> Optional[str]:
        """Content hash of a path, or None when absent."""
        return self.file_hashes.get(path)

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path in self.file_hashes

    def records(self) -> List[FileRecord]:
        return [FileRecord(path, h, self.sizes.get(path, 0)) for path, h in self.files]

    @classmethod
    def empty(cls, commit: Optional[str] = None, branch: Optional[str] = None) -> "MerkleTree":
        return build_tree([], commit=commit, branch=branch)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": SERIALIZATION_VERSION,
            "root_hash": self.root_hash,
            "files": [[path, content_hash] for path, content_hash in self.files],
            "sizes": dict(self.sizes),
            "commit": self.commit,
            "branch": self.branch,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MerkleTree":
        """
        Rebuild a tree from its flat form.

        Raises:
            ValueError: If the stored root hash does not match the rebuilt one
        """
        sizes = data.get("sizes") or {}
        records = [
            FileRecord(path=path, content_hash=content_hash, size=int(sizes.get(path, 0)))
            for path, content_hash in data.get("files", [])
        ]
        tree = build_tree(
            records,
            commit=data.get("commit"),
            branch=data.get("branch"),
            created_at=data.get("created_at"),
        )

        stored_root = data.get("root_hash")
        if stored_root is not None and stored_root != tree.root_hash:
            raise ValueError(
                f"Serialized tree is corrupt: stored root {stored_root} "
                f"does not match recomputed root {tree.root_hash}"
            )
        return tree


# =============================================================================
# Building
# =============================================================================


def _finalize(node: TreeNode) -> None:
    """Sort children and compute aggregate hashes bottom-up."""
    if not node.is_dir:
        return
    node.children = dict(sorted(node.children.items()))
    for child in node.children.values():
        _finalize(child)
    node.hash = directory_hash((name, child.hash) for name, child in node.children.items())
    node.size = sum(child.size for child in node.children.values())


def build_tree(
    files: Iterable[FileRecord],
    commit: Optional[str] = None,
    branch: Optional[str] = None,
    created_at: Optional[str] = None,
) -> MerkleTree:
    """
    Build a Merkle tree from file records.

    Args:
        files: Snapshot files in any order
        commit: Commit the snapshot was taken at
        branch: Branch the snapshot was taken from
        created_at: ISO timestamp; defaults to now

    Raises:
        ValueError: On duplicate paths, or a path that is both file and directory
    """
    root = TreeNode(name="", path="", kind=DIR)
    flat: Dict[str, str] = {}
    sizes: Dict[str, int] = {}

    for record in files:
        path = normalize_path(record.path)
        if path in flat:
            raise ValueError(f"Duplicate path in snapshot: {path}")

        parts = path.split("/")
        node = root
        for depth, part in enumerate(parts[:-1]):
            child = node.children.get(part)
            if child is None:
                child = TreeNode(name=part, path="/".join(parts[: depth + 1]), kind=DIR)
                node.children[part] = child
            elif not child.is_dir:
                raise ValueError(f"Path conflict: {child.path} is both a file and a directory")
            node = child

        leaf_name = parts[-1]
        if leaf_name in node.children:
            raise ValueError(f"Path conflict: {path} is both a file and a directory")
        node.children[leaf_name] = TreeNode(
            name=leaf_name,
            path=path,
            kind=FILE,
            hash=record.content_hash,
            size=record.size,
        )
        flat[path] = record.content_hash
        sizes[path] = record.size

    _finalize(root)

    tree = MerkleTree(
        root=root,
        files=tuple(sorted(flat.items())),
        sizes=sizes,
        commit=commit,
        branch=branch,
        created_at=created_at or datetime.now(timezone.utc).isoformat(),
    )
    logger.debug(f"{MERKLE} Built tree: {len(tree)} files, root={tree.root_hash[:19]}")
    return tree


def build_tree_from_contents(
    contents: Mapping[str, bytes],
    commit: Optional[str] = None,
    branch: Optional[str] = None,
) -> MerkleTree:
    """Hash raw file bytes and build the tree."""
    records = [
        FileRecord(path=path, content_hash=compute_bytes_hash(data), size=len(data))
        for path, data in contents.items()
    ]
    return build_tree(records, commit=commit, branch=branch)


__all__ = [
    "DIR",
    "FILE",
    "FileRecord",
    "MerkleTree",
    "TreeNode",
    "build_tree",
    "build_tree_from_contents",
    "directory_hash",
    "normalize_path",
]
