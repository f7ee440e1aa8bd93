# codesync/merkle/__init__.py
"""Merkle tree snapshots of a repository and diffing between them."""

from codesync.merkle.diff import ChangeSet, diff_flat, diff_trees
from codesync.merkle.stats import TreePatch, TreeStats, compute_stats, create_patch, verify_integrity
from codesync.merkle.tree import (
    FileRecord,
    MerkleTree,
    TreeNode,
    build_tree,
    build_tree_from_contents,
    normalize_path,
)

__all__ = [
    "ChangeSet",
    "FileRecord",
    "MerkleTree",
    "TreeNode",
    "TreePatch",
    "TreeStats",
    "build_tree",
    "build_tree_from_contents",
    "compute_stats",
    "create_patch",
    "diff_flat",
    "diff_trees",
    "normalize_path",
    "verify_integrity",
]
