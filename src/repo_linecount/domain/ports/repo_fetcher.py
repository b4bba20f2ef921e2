"""Port: repository fetcher — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from repo_linecount.domain.entities import TreeListing
from repo_linecount.domain.value_objects import GitHubRepository


class RepoFetcher(Protocol):
    """Abstract contract for listing and reading a remote repository.

    Every method raises :class:`~repo_linecount.domain.exceptions.RemoteError`
    (or a subclass) on failure.
    """

    async def fetch_tree(
        self, repo: GitHubRepository, revision: str, recursive: bool = True
    ) -> TreeListing:
        """Return the tree listing of *revision*."""
        ...

    async def fetch_raw(self, repo: GitHubRepository, revision: str, path: str) -> str:
        """Return the text content of *path* at *revision*."""
        ...

    async def fetch_default_branch(self, repo: GitHubRepository) -> str:
        """Return the name of the repository's default branch."""
        ...
