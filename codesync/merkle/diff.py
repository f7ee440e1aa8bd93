# codesync/merkle/diff.py
"""
Change detection between two Merkle trees.

The semantics are those of a flat (path, hash) comparison:
- path only in the new tree        -> added
- path only in the old tree        -> deleted
- path in both, hashes differ      -> modified
- path in both, hashes equal       -> unchanged

diff_trees() walks both hierarchies in step and skips any directory whose
aggregate hash is equal on both sides. That shortcut only saves work; the
result is always identical to diff_flat().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from codesync.logging.logger import get_logger
from codesync.logging.tags import DIFF
from codesync.merkle.tree import MerkleTree, TreeNode

logger = get_logger(__name__)


@dataclass
class ChangeSet:
    """Paths that differ between two snapshots."""

    added: List[str] = field(default_factory=list)
    modified: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        return len(self.added) + len(self.modified) + len(self.deleted)

    @property
    def is_empty(self) -> bool:
        return self.total_changes == 0

    @property
    def changed_paths(self) -> List[str]:
        """Paths that need (re)chunking: added and modified."""
        return sorted(self.added + self.modified)

    @property
    def stale_paths(self) -> List[str]:
        """Paths whose previous vectors must go: modified and deleted."""
        return sorted(self.modified + self.deleted)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": list(self.added),
            "modified": list(self.modified),
            "deleted": list(self.deleted),
            "unchanged": len(self.unchanged),
            "total_changes": self.total_changes,
        }

    def _sort(self) -> "ChangeSet":
        self.added.sort()
        self.modified.sort()
        self.deleted.sort()
        self.unchanged.sort()
        return self


# =============================================================================
# Baseline
# =============================================================================


def diff_flat(old: MerkleTree, new: MerkleTree) -> ChangeSet:
    """Compare the flat (path, hash) lists directly."""
    old_hashes = old.file_hashes
    new_hashes = new.file_hashes
    changes = ChangeSet()

    for path, new_hash in new_hashes.items():
        old_hash = old_hashes.get(path)
        if old_hash is None:
            changes.added.append(path)
        elif old_hash != new_hash:
            changes.modified.append(path)
        else:
            changes.unchanged.append(path)

    changes.deleted.extend(path for path in old_hashes if path not in new_hashes)
    return changes._sort()


# =============================================================================
# Hierarchical walk
# =============================================================================


def _walk(old: Optional[TreeNode], new: Optional[TreeNode], changes: ChangeSet) -> None:
    if old is None and new is None:
        return

    if old is None:
        changes.added.extend(node.path for node in new.iter_files())
        return

    if new is None:
        changes.deleted.extend(node.path for node in old.iter_files())
        return

    if old.is_dir != new.is_dir:
        # A file replaced by a directory (or the reverse) at the same path.
        changes.deleted.extend(node.path for node in old.iter_files())
        changes.added.extend(node.path for node in new.iter_files())
        return

    if not new.is_dir:
        if old.hash == new.hash:
            changes.unchanged.append(new.path)
        else:
            changes.modified.append(new.path)
        return

    if old.hash == new.hash:
        changes.unchanged.extend(node.path for node in new.iter_files())
        return

    for name in sorted(set(old.children) | set(new.children)):
        _walk(old.children.get(name), new.children.get(name), changes)


def diff_trees(old: Optional[MerkleTree], new: MerkleTree) -> ChangeSet:
    """
    Compute the ChangeSet from `old` to `new`.

    Args:
        old: Last synced tree, or None for a first sync
        new: Current tree

    Returns:
        ChangeSet with sorted path lists. Empty when root hashes match.
    """
    if old is None:
        old = MerkleTree.empty()

    changes = ChangeSet()

    if old.root_hash == new.root_hash:
        changes.unchanged.extend(new.paths())
        logger.debug(f"{DIFF} Root hashes equal, no changes")
        return changes._sort()

    _walk(old.root, new.root, changes)
    changes._sort()

    logger.info(
        f"{DIFF} {len(changes.added)} added, {len(changes.modified)} modified, "
        f"{len(changes.deleted)} deleted, {len(changes.unchanged)} unchanged"
    )
    return changes


__all__ = ["ChangeSet", "diff_flat", "diff_trees"]
