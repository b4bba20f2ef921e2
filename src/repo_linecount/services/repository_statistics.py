"""Repository-statistics use case — the main orchestration pipeline.

This is the single entry point for the business logic.  It depends only on
the two ports (:class:`RepoFetcher` and :class:`LineCounter`) and the pure
service modules.  The interface layer injects concrete adapters at runtime.
"""

from __future__ import annotations

import logging

from repo_linecount.domain.entities import FailurePolicy, Statistics
from repo_linecount.domain.ports.line_counter import CounterConfig, LineCounter
from repo_linecount.domain.ports.repo_fetcher import RepoFetcher
from repo_linecount.domain.value_objects import GitHubRepository
from repo_linecount.services.aggregator import aggregate
from repo_linecount.services.walker import DEFAULT_CONCURRENCY, BoundedWalker

logger = logging.getLogger(__name__)


class RepositoryStatisticsUseCase:
    """Orchestrates the full URL → statistics pipeline.

    Parameters
    ----------
    repo_fetcher:
        Adapter that can list trees and fetch raw files from GitHub.
    line_counter:
        Per-file counting service.
    counter_config:
        Options forwarded to *line_counter* for every file.
    concurrency:
        Maximum number of blob fetches in flight.
    failure_policy:
        Default handling of files that cannot be fetched or counted.
    ordered:
        Process files in listing order rather than completion order.
    """

    def __init__(
        self,
        repo_fetcher: RepoFetcher,
        line_counter: LineCounter,
        counter_config: CounterConfig | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        failure_policy: FailurePolicy = FailurePolicy.SKIP,
        ordered: bool = False,
    ) -> None:
        self._fetcher = repo_fetcher
        self._counter = line_counter
        self._config = counter_config or CounterConfig()
        self._concurrency = concurrency
        self._policy = failure_policy
        self._ordered = ordered

    async def execute(
        self,
        github_url: str,
        revision: str | None = None,
        failure_policy: FailurePolicy | None = None,
    ) -> Statistics:
        """Run the full pipeline and return the aggregated statistics."""
        repo = GitHubRepository.from_url(github_url)
        return await self.execute_for(repo, revision, failure_policy)

    async def execute_for(
        self,
        repo: GitHubRepository,
        revision: str | None = None,
        failure_policy: FailurePolicy | None = None,
    ) -> Statistics:
        if revision is None:
            revision = await self._fetcher.fetch_default_branch(repo)
            logger.info("No revision given for %s, using default branch %s", repo.full_name, revision)

        policy = failure_policy or self._policy
        walker = BoundedWalker(self._fetcher, repo, self._concurrency, ordered=self._ordered)
        stats = await aggregate(
            walker.walk(revision),
            self._counter,
            self._config,
            policy=policy,
            revision=revision,
        )

        total = stats.total
        logger.info(
            "%s@%s: %d files, %d lines (%d code, %d comments, %d blanks) in %d languages",
            repo.full_name,
            revision,
            stats.files_counted,
            total.lines,
            total.code,
            total.comments,
            total.blanks,
            len(stats.languages),
        )
        return stats
