# codesync/repository/__init__.py
"""Repository collaborators: GitHub over HTTP and plain local directories."""

from codesync.repository.base import RepositoryClient, RepositoryRef
from codesync.repository.filters import FileFilter
from codesync.repository.github import GitHubRepository
from codesync.repository.local import LocalRepository

__all__ = ["FileFilter", "GitHubRepository", "LocalRepository", "RepositoryClient", "RepositoryRef"]
