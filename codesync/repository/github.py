# codesync/repository/github.py
"""
GitHub repository client over the REST API.

- list_tree uses the recursive git trees API: one request for the whole
  snapshot. Content hashes are git blob shas ("git:<sha>"), which are
  content-addressed, so unchanged files are detected without downloading them.
- get_blob downloads one blob (base64) by the sha seen in the last listing.
"""

from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional

import httpx

from codesync.config.schema import RepositorySettings
from codesync.core.exceptions import RepositoryError
from codesync.core.http import APIError, create_async_api_client, handle_api_error, raise_for_status
from codesync.logging.logger import get_logger
from codesync.logging.tags import REPOSITORY
from codesync.merkle.tree import FileRecord
from codesync.repository.base import RepositoryRef
from codesync.repository.filters import FileFilter

logger = get_logger(__name__)

GITHUB_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}


class GitHubRepository:
    source_name = "github"

    def __init__(
        self,
        repo: RepositoryRef,
        token: Optional[str] = None,
        api_url: str = "https://api.github.com",
        file_filter: Optional[FileFilter] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.repo = repo
        self.file_filter = file_filter or FileFilter()
        self._client = client or create_async_api_client(
            base_url=api_url,
            api_key=token,
            timeout_type="repository",
            headers=GITHUB_HEADERS,
        )
        self._blob_shas: Dict[str, str] = {}
        self._default_branch: Optional[str] = None

    @classmethod
    def from_settings(
        cls,
        repo: RepositoryRef,
        settings: RepositorySettings,
        **kwargs: Any,
    ) -> "GitHubRepository":
        return cls(
            repo=repo,
            token=settings.token(),
            api_url=settings.api_url,
            file_filter=FileFilter(settings.max_file_bytes, list(settings.exclude_patterns)),
            **kwargs,
        )

    @property
    def _base(self) -> str:
        return f"/repos/{self.repo.owner}/{self.repo.name}"

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, endpoint, **kwargs)
            raise_for_status(response, provider="github", endpoint=endpoint)
        except httpx.HTTPError as exc:
            raise RepositoryError(str(handle_api_error(exc, provider="github", endpoint=endpoint))) from exc
        except APIError as exc:
            raise RepositoryError(str(exc)) from exc
        return response

    # -------------------------------------------------------------------------
    # Refs
    # -------------------------------------------------------------------------

    async def default_branch(self) -> str:
        if self._default_branch is None:
            response = await self._request("GET", self._base)
            self._default_branch = response.json()["default_branch"]
        return self._default_branch

    async def resolve_ref(self, ref: Optional[str] = None) -> str:
        """Commit sha for a branch, tag or sha; defaults to the configured branch."""
        ref = ref or self.repo.branch or await self.default_branch()
        response = await self._request("GET", f"{self._base}/commits/{ref}")
        return response.json()["sha"]

    # -------------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------------

    async def list_tree(self, ref: Optional[str] = None) -> List[FileRecord]:
        commit = await self.resolve_ref(ref)
        response = await self._request("GET", f"{self._base}/git/trees/{commit}", params={"recursive": "1"})
        data = response.json()

        if data.get("truncated"):
            raise RepositoryError(
                f"Tree listing for {self.repo.full_name}@{commit} was truncated by GitHub; "
                "a partial listing would read as deleted files"
            )

        records: List[FileRecord] = []
        shas: Dict[str, str] = {}
        skipped = 0
        for item in data.get("tree", []):
            if item.get("type") != "blob":
                continue
            path, size = item["path"], int(item.get("size") or 0)
            if not self.file_filter.accepts(path, size):
                skipped += 1
                continue
            shas[path] = item["sha"]
            records.append(FileRecord(path=path, content_hash=f"git:{item['sha']}", size=size))

        self._blob_shas = shas
        logger.info(
            f"{REPOSITORY} Listed {self.repo.full_name}@{commit[:7]}: "
            f"{len(records)} files ({skipped} skipped)"
        )
        return records

    async def get_blob(self, path: str, ref: Optional[str] = None) -> bytes:
        sha = self._blob_shas.get(path)
        if sha is not None:
            response = await self._request("GET", f"{self._base}/git/blobs/{sha}")
        else:
            params = {"ref": ref} if ref else None
            response = await self._request("GET", f"{self._base}/contents/{path}", params=params)

        data = response.json()
        if data.get("encoding") != "base64" or "content" not in data:
            raise RepositoryError(f"Unexpected blob encoding for {path}: {data.get('encoding')}")
        return base64.b64decode(data["content"])

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    async def register_webhook(self, url: str, secret: str) -> int:
        payload = {
            "name": "web",
            "active": True,
            "events": ["push"],
            "config": {"url": url, "content_type": "json", "secret": secret, "insecure_ssl": "0"},
        }
        response = await self._request("POST", f"{self._base}/hooks", json=payload)
        hook_id = int(response.json()["id"])
        logger.info(f"{REPOSITORY} Registered webhook {hook_id} for {self.repo.full_name}")
        return hook_id

    async def remove_webhook(self, hook_id: int) -> None:
        await self._request("DELETE", f"{self._base}/hooks/{hook_id}")
        logger.info(f"{REPOSITORY} Removed webhook {hook_id} from {self.repo.full_name}")

    async def validate_token(self) -> bool:
        try:
            await self._request("GET", "/user")
        except RepositoryError as e:
            logger.warning(f"{REPOSITORY} Token validation failed: {e}")
            return False
        return True

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["GitHubRepository"]
