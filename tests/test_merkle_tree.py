# tests/test_merkle_tree.py
"""
Tests for Merkle tree construction and serialization.

Key tests:
- test_root_is_order_independent: Listing order never changes the root
- test_roundtrip_detects_corruption: A tampered serialized tree is rejected
"""

from __future__ import annotations

import random

import pytest

from codesync.core.hashing import compute_bytes_hash
from codesync.merkle.tree import (
    FileRecord,
    MerkleTree,
    build_tree,
    build_tree_from_contents,
    directory_hash,
    normalize_path,
)

pytestmark = pytest.mark.tier1


def _records(files):
    return [FileRecord(p, compute_bytes_hash(c.encode()), len(c)) for p, c in files.items()]


FILES = {
    "README.md": "# api\n",
    "src/app.ts": "export const app = 1;\n",
    "src/lib/util.ts": "export function util() {}\n",
    "src/lib/math.ts": "export const pi = 3.14;\n",
    "tests/app.test.ts": "test('x', () => {});\n",
}


class TestBuildTree:
    """Tests for build_tree."""

    def test_root_is_order_independent(self):
        records = _records(FILES)
        shuffled = list(records)
        random.Random(7).shuffle(shuffled)

        assert build_tree(records).root_hash == build_tree(shuffled).root_hash

    def test_content_change_changes_root(self):
        changed = dict(FILES, **{"src/lib/util.ts": "export function util() { return 1; }\n"})
        assert build_tree(_records(FILES)).root_hash != build_tree(_records(changed)).root_hash

    def test_rename_changes_root(self):
        renamed = dict(FILES)
        renamed["src/lib/helpers.ts"] = renamed.pop("src/lib/util.ts")
        assert build_tree(_records(FILES)).root_hash != build_tree(_records(renamed)).root_hash

    def test_hierarchy(self):
        tree = build_tree(_records(FILES))
        src = tree.root.children["src"]
        lib = src.children["lib"]

        assert src.is_dir and lib.is_dir
        assert list(lib.children) == ["math.ts", "util.ts"]
        assert lib.hash == directory_hash((name, node.hash) for name, node in lib.children.items())

    def test_flat_view(self):
        tree = build_tree(_records(FILES))

        assert len(tree) == 5
        assert tree.paths() == sorted(FILES)
        assert "src/app.ts" in tree
        assert "src" not in tree
        assert tree.get("src/app.ts") == compute_bytes_hash(FILES["src/app.ts"].encode())
        assert tree.get("missing.ts") is None

    def test_sizes_aggregate(self):
        tree = build_tree(_records(FILES))
        assert tree.root.size == sum(len(c) for c in FILES.values())

    def test_empty_tree(self):
        assert len(MerkleTree.empty()) == 0
        assert MerkleTree.empty().root_hash == build_tree([]).root_hash

    def test_duplicate_path_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            build_tree([FileRecord("a.py", "sha256:1"), FileRecord("./a.py", "sha256:2")])

    def test_file_directory_conflict_rejected(self):
        with pytest.raises(ValueError, match="conflict"):
            build_tree([FileRecord("a", "sha256:1"), FileRecord("a/b.py", "sha256:2")])

    def test_from_contents(self):
        tree = build_tree_from_contents({"a.py": b"x = 1\n"}, commit="abc", branch="main")
        assert tree.get("a.py") == compute_bytes_hash(b"x = 1\n")
        assert tree.commit == "abc"
        assert tree.branch == "main"


class TestNormalizePath:
    """Tests for path normalization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("./src/a.py", "src/a.py"),
            ("/src/a.py", "src/a.py"),
            ("src\\lib\\a.py", "src/lib/a.py"),
            ("src//a.py", "src/a.py"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert normalize_path(raw) == expected

    @pytest.mark.parametrize("raw", ["", "./", "../etc/passwd", "src/../../x"])
    def test_rejects(self, raw):
        with pytest.raises(ValueError):
            normalize_path(raw)


class TestSerialization:
    """Tests for to_dict / from_dict."""

    def test_roundtrip(self):
        tree = build_tree(_records(FILES), commit="c1", branch="main", created_at="2026-01-01T00:00:00+00:00")
        restored = MerkleTree.from_dict(tree.to_dict())

        assert restored.root_hash == tree.root_hash
        assert restored.files == tree.files
        assert dict(restored.sizes) == dict(tree.sizes)
        assert restored.commit == "c1"
        assert restored.created_at == tree.created_at

    def test_roundtrip_detects_corruption(self):
        data = build_tree(_records(FILES)).to_dict()
        data["files"][0][1] = "sha256:tampered"

        with pytest.raises(ValueError, match="corrupt"):
            MerkleTree.from_dict(data)
