"""Statistics aggregation — folds walker outcomes into one report."""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import AsyncGenerator

from repo_linecount.domain.entities import FailurePolicy, FetchOutcome, Statistics
from repo_linecount.domain.exceptions import (
    AggregationAbortedError,
    CountError,
    FetchError,
)
from repo_linecount.domain.ports.line_counter import CounterConfig, LineCounter

logger = logging.getLogger(__name__)


async def aggregate(
    outcomes: AsyncGenerator[FetchOutcome, None],
    counter: LineCounter,
    config: CounterConfig,
    policy: FailurePolicy = FailurePolicy.SKIP,
    revision: str | None = None,
) -> Statistics:
    """Count every fetched file and sum the results per language.

    Outcomes are processed in whatever order they arrive.  A failed fetch or
    a :class:`CountError` is either recorded in ``Statistics.skipped``
    (``SKIP``) or raised as :class:`AggregationAbortedError` (``ABORT``).  The
    stream is always closed on exit, which cancels any fetches still running.
    """
    stats = Statistics(revision=revision)

    async with aclosing(outcomes) as stream:
        async for outcome in stream:
            try:
                blob = outcome.unwrap()
                counts = counter.count(blob.path, blob.content, config)
            except (FetchError, CountError) as error:
                if policy is FailurePolicy.ABORT:
                    logger.warning("Aborting aggregation at %s: %s", outcome.path, error)
                    raise AggregationAbortedError(outcome.path, error) from error

                logger.debug("Skipping %s: %s", outcome.path, error)
                reason = error.cause if isinstance(error, FetchError) else error
                stats.record_skip(outcome.path, str(reason))
                continue

            stats.add_file(counts)

    if stats.files_skipped:
        logger.warning("Skipped %d file(s) that could not be fetched or counted", stats.files_skipped)
    return stats
