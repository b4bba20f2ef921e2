"""Shared fixtures: an in-memory RepoFetcher with scripted latency and failures."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Iterable

import pytest

from repo_linecount.domain.entities import EntryKind, TreeEntry, TreeListing
from repo_linecount.domain.exceptions import RemoteError
from repo_linecount.domain.value_objects import GitHubRepository


def blob(path: str) -> TreeEntry:
    return TreeEntry(path=path, kind=EntryKind.BLOB)


def tree(path: str) -> TreeEntry:
    return TreeEntry(path=path, kind=EntryKind.TREE)


def submodule(path: str) -> TreeEntry:
    return TreeEntry(path=path, kind=EntryKind.COMMIT)


class FakeFetcher:
    """Records every call; ``delays`` and ``failures`` are keyed by path."""

    def __init__(
        self,
        entries: Iterable[TreeEntry],
        contents: dict[str, str] | None = None,
        delays: dict[str, float] | None = None,
        failures: Iterable[str] = (),
        tree_error: RemoteError | None = None,
    ) -> None:
        self.listing = TreeListing(sha="0123abcd", entries=tuple(entries))
        self.contents = contents or {}
        self.delays = delays or {}
        self.failures = set(failures)
        self.tree_error = tree_error
        self.tree_calls = 0
        self.fetched: list[str] = []
        self.cancelled: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_tree(
        self, repo: GitHubRepository, revision: str, recursive: bool = True
    ) -> TreeListing:
        self.tree_calls += 1
        if self.tree_error is not None:
            raise self.tree_error
        return self.listing

    async def fetch_raw(self, repo: GitHubRepository, revision: str, path: str) -> str:
        self.fetched.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(path, 0))
            if path in self.failures:
                raise RemoteError(f"simulated failure for {path}")
            return self.contents.get(path, f"content of {path}\n")
        except asyncio.CancelledError:
            self.cancelled.append(path)
            raise
        finally:
            self.in_flight -= 1

    async def fetch_default_branch(self, repo: GitHubRepository) -> str:
        return "main"


@pytest.fixture
def repo():
    return GitHubRepository.new("octo", "demo")


@pytest.fixture
def make_fetcher():
    """Factory for :class:`FakeFetcher` instances."""
    return FakeFetcher


@pytest.fixture
def entries():
    """Helpers to build tree entries: ``entries.blob("a.py")``."""
    return SimpleNamespace(blob=blob, tree=tree, submodule=submodule)
