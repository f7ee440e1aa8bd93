# tests/test_repository.py
"""
Tests for repository clients and file filtering.

Key tests:
- test_list_tree_filters_and_hashes: Only indexable blobs, hashed by git sha
- test_http_error_becomes_repository_error: Host failures surface as RepositoryError
- test_scan_skips_excluded_dirs: Local scans skip node_modules and friends
- test_path_escape_rejected: Blobs outside the root cannot be read
"""

from __future__ import annotations

import asyncio
import base64
import json

import httpx
import pytest

from codesync.core.exceptions import RepositoryError
from codesync.core.hashing import compute_bytes_hash
from codesync.merkle.tree import build_tree
from codesync.repository.base import RepositoryClient, RepositoryRef
from codesync.repository.filters import FileFilter
from codesync.repository.github import GitHubRepository
from codesync.repository.local import LocalRepository

pytestmark = pytest.mark.tier1


class TestFileFilter:
    @pytest.mark.parametrize(
        "path",
        [
            "node_modules/react/index.js",
            "web/node_modules/x.js",
            ".git/config",
            "app.log",
            "yarn.lock",
            "package-lock.json",
            "dist/bundle.js",
            "pkg/__pycache__/mod.cpython-311.pyc",
            ".env",
            ".env.local",
        ],
    )
    def test_excluded(self, path):
        assert FileFilter().is_excluded(path)
        assert not FileFilter().accepts(path)

    @pytest.mark.parametrize("path", ["src/app.ts", "README.md", "build.gradle", "environment.py"])
    def test_accepted(self, path):
        assert FileFilter().accepts(path, 100)

    def test_binary(self):
        assert FileFilter.is_binary("assets/logo.PNG")
        assert not FileFilter().accepts("assets/logo.png")

    def test_size_limit(self):
        file_filter = FileFilter(max_file_bytes=10)
        assert file_filter.accepts("a.py", 10)
        assert not file_filter.accepts("a.py", 11)

    def test_extra_patterns(self):
        file_filter = FileFilter(extra_patterns=[r"^vendor/"])
        assert not file_filter.accepts("vendor/lib.go")
        assert file_filter.accepts("src/vendor.go")


class TestRepositoryRef:
    def test_parse(self):
        ref = RepositoryRef.parse("acme/api", branch="main")
        assert (ref.owner, ref.name, ref.branch) == ("acme", "api", "main")
        assert ref.full_name == "acme/api"
        assert ref.codebase_id == "github_acme_api"

    def test_unsafe_characters_replaced(self):
        assert RepositoryRef(owner="a b", name="c@d").codebase_id == "github_a-b_c-d"

    @pytest.mark.parametrize("value", ["bad", "/api", "acme/", "a/b/c", ""])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError):
            RepositoryRef.parse(value)


# =============================================================================
# GitHub
# =============================================================================


TREE = {
    "sha": "c0ffee",
    "truncated": False,
    "tree": [
        {"path": "src", "type": "tree", "sha": "t1"},
        {"path": "src/app.ts", "type": "blob", "sha": "b1", "size": 120},
        {"path": "node_modules/x/index.js", "type": "blob", "sha": "b2", "size": 10},
        {"path": "logo.png", "type": "blob", "sha": "b3", "size": 500},
        {"path": "huge.json", "type": "blob", "sha": "b4", "size": 5 * 1024 * 1024},
        {"path": "README.md", "type": "blob", "sha": "b5", "size": 42},
    ],
}


def github_handler(seen, tree=TREE):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, dict(request.url.params)))
        path = request.url.path
        if path == "/repos/acme/api":
            return httpx.Response(200, json={"default_branch": "main"})
        if path == "/repos/acme/api/commits/main":
            return httpx.Response(200, json={"sha": "c0ffee1234567"})
        if path == "/repos/acme/api/commits/missing":
            return httpx.Response(404, json={"message": "No commit found"})
        if path.startswith("/repos/acme/api/git/trees/"):
            return httpx.Response(200, json=tree)
        if path == "/repos/acme/api/git/blobs/b1":
            content = base64.b64encode(b"export const x = 1;\n").decode()
            return httpx.Response(200, json={"encoding": "base64", "content": content})
        if path == "/repos/acme/api/contents/other.ts":
            return httpx.Response(200, json={"encoding": "base64", "content": base64.b64encode(b"y").decode()})
        if path == "/repos/acme/api/hooks" and request.method == "POST":
            return httpx.Response(201, json={"id": 99, "config": json.loads(request.content)["config"]})
        return httpx.Response(404, json={"message": "Not Found"})

    return handler


@pytest.fixture
def github():
    seen = []
    client = httpx.AsyncClient(base_url="https://api.github.test", transport=httpx.MockTransport(github_handler(seen)))
    repository = GitHubRepository(RepositoryRef.parse("acme/api"), client=client)
    repository.seen = seen
    return repository


class TestGitHubRepository:
    """Tests for the REST client with a mock transport."""

    def test_is_repository_client(self, github):
        assert isinstance(github, RepositoryClient)

    def test_resolve_default_branch(self, github):
        assert asyncio.run(github.resolve_ref()) == "c0ffee1234567"
        assert [p for _, p, _ in github.seen] == ["/repos/acme/api", "/repos/acme/api/commits/main"]

    def test_list_tree_filters_and_hashes(self, github):
        records = asyncio.run(github.list_tree("main"))

        assert [(r.path, r.content_hash, r.size) for r in records] == [
            ("src/app.ts", "git:b1", 120),
            ("README.md", "git:b5", 42),
        ]
        method, path, params = github.seen[-1]
        assert path == "/repos/acme/api/git/trees/c0ffee1234567"
        assert params == {"recursive": "1"}

    def test_truncated_tree_rejected(self):
        seen = []
        truncated = dict(TREE, truncated=True)
        client = httpx.AsyncClient(
            base_url="https://api.github.test", transport=httpx.MockTransport(github_handler(seen, truncated))
        )
        repository = GitHubRepository(RepositoryRef.parse("acme/api"), client=client)

        with pytest.raises(RepositoryError, match="truncated"):
            asyncio.run(repository.list_tree("main"))

    def test_get_blob_by_listed_sha(self, github):
        async def run():
            await github.list_tree("main")
            return await github.get_blob("src/app.ts")

        assert asyncio.run(run()) == b"export const x = 1;\n"
        assert github.seen[-1][1] == "/repos/acme/api/git/blobs/b1"

    def test_get_blob_unlisted_uses_contents(self, github):
        assert asyncio.run(github.get_blob("other.ts", ref="main")) == b"y"
        assert github.seen[-1][2] == {"ref": "main"}

    def test_register_webhook(self, github):
        hook_id = asyncio.run(github.register_webhook("https://sync.test/webhooks/github", "s3cret"))
        assert hook_id == 99

    def test_http_error_becomes_repository_error(self, github):
        with pytest.raises(RepositoryError):
            asyncio.run(github.resolve_ref("missing"))

    def test_validate_token(self, github):
        # /user is not routed by the handler, so it 404s
        assert asyncio.run(github.validate_token()) is False

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(base_url="https://api.github.test", transport=httpx.MockTransport(handler))
        repository = GitHubRepository(RepositoryRef.parse("acme/api", branch="main"), client=client)

        with pytest.raises(RepositoryError):
            asyncio.run(repository.resolve_ref())


# =============================================================================
# Local
# =============================================================================


@pytest.fixture
def workdir(tmp_path):
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "node_modules" / "dep").mkdir(parents=True)
    (root / "src" / "main.py").write_text("print('hi')\n")
    (root / "README.md").write_text("# Project\n")
    (root / "node_modules" / "dep" / "index.js").write_text("module.exports = 1;\n")
    (root / "image.png").write_bytes(b"\x89PNG")
    (tmp_path / "secret.txt").write_text("outside")
    return root


class TestLocalRepository:
    """Tests for directory scanning."""

    def test_scan_skips_excluded_dirs(self, workdir):
        records = asyncio.run(LocalRepository(workdir).list_tree())

        assert [r.path for r in records] == ["README.md", "src/main.py"]
        assert records[1].content_hash == compute_bytes_hash(b"print('hi')\n")
        assert records[1].size == len("print('hi')\n")

    def test_resolve_ref_is_root_hash(self, workdir):
        repository = LocalRepository(workdir)

        async def run():
            return await repository.resolve_ref(), build_tree(await repository.list_tree()).root_hash

        commit, root_hash = asyncio.run(run())
        assert commit == root_hash

    def test_listing_for_commit_reuses_scan(self, workdir, monkeypatch):
        repository = LocalRepository(workdir)
        scans = []
        scan = repository._scan
        monkeypatch.setattr(repository, "_scan", lambda: scans.append(1) or scan())

        async def run():
            commit = await repository.resolve_ref()
            (workdir / "late.py").write_text("print('added between calls')\n")
            return commit, await repository.list_tree(commit)

        commit, records = asyncio.run(run())

        assert len(scans) == 1
        assert build_tree(records).root_hash == commit
        assert "late.py" not in [r.path for r in records]
        assert "late.py" in [r.path for r in asyncio.run(repository.list_tree())]

    def test_get_blob(self, workdir):
        assert asyncio.run(LocalRepository(workdir).get_blob("src/main.py")) == b"print('hi')\n"

    def test_path_escape_rejected(self, workdir):
        with pytest.raises(RepositoryError, match="escapes"):
            asyncio.run(LocalRepository(workdir).get_blob("../secret.txt"))

    def test_missing_blob(self, workdir):
        with pytest.raises(RepositoryError):
            asyncio.run(LocalRepository(workdir).get_blob("gone.py"))

    def test_not_a_directory(self, tmp_path):
        with pytest.raises(RepositoryError):
            asyncio.run(LocalRepository(tmp_path / "nope").list_tree())

    def test_codebase_id(self, workdir):
        codebase_id = LocalRepository(workdir).codebase_id

        assert codebase_id.startswith("local_project_")
        assert len(codebase_id.rsplit("_", 1)[1]) == 8
        assert codebase_id == LocalRepository(str(workdir)).codebase_id

    def test_no_webhooks(self, workdir):
        with pytest.raises(NotImplementedError):
            asyncio.run(LocalRepository(workdir).register_webhook("https://x", "s"))
