"""Bounded walker — streams every blob of a revision with capped fan-out.

The tree listing is fetched once; its blob paths are then fetched with at most
``concurrency`` requests in flight.  Every fetch task closes over its own
path and returns a :class:`FetchOutcome` for that path, so a result can never
be paired with another path however the requests interleave.

Closing the stream early (``aclose()``, or leaving an ``aclosing`` block)
cancels the fetches still in flight.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import aclosing
from typing import AsyncIterator, Iterator

from repo_linecount.domain.entities import Blob, FetchOutcome
from repo_linecount.domain.exceptions import FetchError, RemoteError, WalkError
from repo_linecount.domain.ports.repo_fetcher import RepoFetcher
from repo_linecount.domain.value_objects import GitHubRepository

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 32


class BoundedWalker:
    """Walks one repository's tree and fetches its blobs concurrently.

    Parameters
    ----------
    fetcher:
        Adapter that lists trees and reads raw file content.
    repo:
        Repository to walk.
    concurrency:
        Maximum number of blob fetches in flight at any instant.
    ordered:
        Yield outcomes in listing order instead of completion order.  Fetches
        still overlap, but a slow file holds back the ones listed after it.
    """

    def __init__(
        self,
        fetcher: RepoFetcher,
        repo: GitHubRepository,
        concurrency: int = DEFAULT_CONCURRENCY,
        *,
        ordered: bool = False,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self._fetcher = fetcher
        self._repo = repo
        self._concurrency = concurrency
        self._ordered = ordered

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def walk(self, revision: str) -> AsyncIterator[FetchOutcome]:
        """Yield one outcome per blob in the tree of *revision*.

        Raises :class:`WalkError` before yielding anything if the tree cannot
        be listed.  Per-file failures are yielded as failed outcomes.
        """
        try:
            listing = await self._fetcher.fetch_tree(self._repo, revision, recursive=True)
        except RemoteError as exc:
            raise WalkError(revision, exc) from exc

        paths = listing.blob_paths()
        logger.info(
            "Walking %s@%s: %d blobs of %d entries, concurrency %d",
            self._repo.full_name,
            revision,
            len(paths),
            len(listing.entries),
            self._concurrency,
        )

        stream = (
            self._in_listing_order(revision, paths)
            if self._ordered
            else self._in_completion_order(revision, paths)
        )
        succeeded = failed = 0
        async with aclosing(stream) as outcomes:
            async for outcome in outcomes:
                if outcome.ok:
                    succeeded += 1
                else:
                    failed += 1
                yield outcome

        logger.info(
            "Walked %s@%s: %d fetched, %d failed",
            self._repo.full_name,
            revision,
            succeeded,
            failed,
        )

    # ── Scheduling ──────────────────────────────────────────────────────

    async def _in_completion_order(
        self, revision: str, paths: list[str]
    ) -> AsyncIterator[FetchOutcome]:
        queue = iter(paths)
        pending: set[asyncio.Task[FetchOutcome]] = set()
        try:
            pending.update(self._admit(revision, queue, self._concurrency))
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                pending.update(self._admit(revision, queue, len(done)))
                # Settle the whole batch so no failed task goes unretrieved.
                errors = [exc for exc in (task.exception() for task in done) if exc is not None]
                if errors:
                    raise errors[0]
                for task in done:
                    yield task.result()
        finally:
            await _cancel(pending)

    async def _in_listing_order(
        self, revision: str, paths: list[str]
    ) -> AsyncIterator[FetchOutcome]:
        queue = iter(paths)
        pending: deque[asyncio.Task[FetchOutcome]] = deque()
        try:
            pending.extend(self._admit(revision, queue, self._concurrency))
            while pending:
                outcome = await pending[0]
                pending.popleft()
                pending.extend(self._admit(revision, queue, 1))
                yield outcome
        finally:
            await _cancel(pending)

    def _admit(
        self, revision: str, queue: Iterator[str], slots: int
    ) -> list[asyncio.Task[FetchOutcome]]:
        tasks = []
        for _ in range(slots):
            path = next(queue, None)
            if path is None:
                break
            tasks.append(asyncio.create_task(self._fetch_one(revision, path)))
        return tasks

    async def _fetch_one(self, revision: str, path: str) -> FetchOutcome:
        try:
            content = await self._fetcher.fetch_raw(self._repo, revision, path)
        except RemoteError as exc:
            logger.debug("Failed to fetch %s: %s", path, exc)
            return FetchOutcome.failure(path, FetchError(path, exc))
        return FetchOutcome.success(Blob(path=path, content=content))


async def _cancel(tasks: set[asyncio.Task[FetchOutcome]] | deque[asyncio.Task[FetchOutcome]]) -> None:
    """Cancel *tasks* and wait until every one of them has finished."""
    for task in tasks:
        if task.done() and not task.cancelled():
            task.exception()  # mark as retrieved
    outstanding = [t for t in tasks if not t.done()]
    for task in outstanding:
        task.cancel()
    if outstanding:
        logger.debug("Cancelling %d in-flight fetches", len(outstanding))
        await asyncio.gather(*outstanding, return_exceptions=True)
