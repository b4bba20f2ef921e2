"""Pydantic models for the JSON bodies returned by the GitHub REST API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from repo_linecount.domain.entities import EntryKind, TreeEntry, TreeListing


class SubtreeModel(BaseModel):
    """One element of ``tree`` in ``GET /repos/{owner}/{repo}/git/trees/{sha}``."""

    model_config = ConfigDict(extra="ignore")

    path: str
    type: EntryKind
    sha: str | None = None
    mode: str | None = None
    size: int = 0
    url: str | None = None

    def to_entry(self) -> TreeEntry:
        return TreeEntry(path=self.path, kind=self.type, sha=self.sha, size=self.size)


class TreesModel(BaseModel):
    """Body of the git trees endpoint."""

    model_config = ConfigDict(extra="ignore")

    sha: str
    tree: list[SubtreeModel]
    truncated: bool = False
    url: str | None = None

    def to_listing(self) -> TreeListing:
        return TreeListing(
            sha=self.sha,
            entries=tuple(node.to_entry() for node in self.tree),
            truncated=self.truncated,
        )


class RepositoryModel(BaseModel):
    """The subset of ``GET /repos/{owner}/{repo}`` needed to pick a revision."""

    model_config = ConfigDict(extra="ignore")

    full_name: str | None = None
    default_branch: str = "main"
