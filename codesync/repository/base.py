# codesync/repository/base.py
"""Repository collaborator protocol and repository identity."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Protocol, runtime_checkable

from codesync.merkle.tree import FileRecord

_SAFE = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass(frozen=True)
class RepositoryRef:
    """owner/name plus the branch that is synced."""

    owner: str
    name: str
    branch: Optional[str] = None
    provider: str = "github"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def codebase_id(self) -> str:
        """Stable id scoping every vector of this repository, e.g. github_acme_api."""
        return f"{self.provider}_{_SAFE.sub('-', self.owner)}_{_SAFE.sub('-', self.name)}"

    @classmethod
    def parse(cls, full_name: str, branch: Optional[str] = None) -> "RepositoryRef":
        """
        Raises:
            ValueError: If full_name is not "owner/name"
        """
        owner, sep, name = full_name.strip().strip("/").partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"Expected 'owner/name', got {full_name!r}")
        return cls(owner=owner, name=name, branch=branch)


@runtime_checkable
class RepositoryClient(Protocol):
    """
    What the sync pipeline needs from a repository host.

    list_tree returns already-filtered files; content hashes only need to be
    stable for identical content.
    """

    source_name: str

    async def resolve_ref(self, ref: Optional[str] = None) -> str: ...

    async def list_tree(self, ref: Optional[str] = None) -> List[FileRecord]: ...

    async def get_blob(self, path: str, ref: Optional[str] = None) -> bytes: ...

    async def register_webhook(self, url: str, secret: str) -> int: ...

    async def aclose(self) -> None: ...


__all__ = ["RepositoryClient", "RepositoryRef"]
