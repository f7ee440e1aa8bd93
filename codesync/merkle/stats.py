# codesync/merkle/stats.py
"""Tree statistics, integrity verification and patches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from codesync.merkle.diff import ChangeSet, diff_trees
from codesync.merkle.tree import MerkleTree, TreeNode, build_tree


@dataclass(frozen=True)
class TreeStats:
    total_files: int
    total_size: int
    total_size_human: str
    depth: int
    directories: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_files": self.total_files,
            "total_size": self.total_size,
            "total_size_human": self.total_size_human,
            "depth": self.depth,
            "directories": self.directories,
        }


def format_size(num_bytes: int) -> str:
    """Human readable size, e.g. 1536 -> '1.5 KB'."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def _depth(node: TreeNode) -> int:
    if not node.is_dir or not node.children:
        return 0
    return 1 + max(_depth(child) for child in node.children.values())


def _count_dirs(node: TreeNode) -> int:
    if not node.is_dir:
        return 0
    return sum(1 + _count_dirs(c) for c in node.children.values() if c.is_dir)


def compute_stats(tree: MerkleTree) -> TreeStats:
    total_size = sum(tree.sizes.values())
    return TreeStats(
        total_files=len(tree),
        total_size=total_size,
        total_size_human=format_size(total_size),
        depth=_depth(tree.root),
        directories=_count_dirs(tree.root),
    )


def verify_integrity(tree: MerkleTree) -> bool:
    """Recompute the root from the flat list and compare with the stored root."""
    rebuilt = build_tree(tree.records())
    return rebuilt.root_hash == tree.root_hash


@dataclass
class TreePatch:
    """Serializable description of how one snapshot became another."""

    old_root_hash: Optional[str]
    new_root_hash: str
    changes: ChangeSet
    new_hashes: Dict[str, str]
    old_hashes: Dict[str, str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "old_root_hash": self.old_root_hash,
            "new_root_hash": self.new_root_hash,
            "changes": self.changes.to_dict(),
            "new_hashes": dict(self.new_hashes),
            "old_hashes": dict(self.old_hashes),
        }


def create_patch(old: Optional[MerkleTree], new: MerkleTree) -> TreePatch:
    changes = diff_trees(old, new)
    old_files = old.file_hashes if old is not None else {}
    new_files = new.file_hashes
    return TreePatch(
        old_root_hash=old.root_hash if old is not None else None,
        new_root_hash=new.root_hash,
        changes=changes,
        new_hashes={p: new_files[p] for p in changes.added + changes.modified},
        old_hashes={p: old_files[p] for p in changes.modified + changes.deleted},
    )


__all__ = ["TreePatch", "TreeStats", "compute_stats", "create_patch", "format_size", "verify_integrity"]
