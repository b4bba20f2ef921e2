"""FastAPI dependency injection wiring."""

from __future__ import annotations

from functools import lru_cache

import httpx

from repo_linecount.domain.ports.line_counter import CounterConfig
from repo_linecount.infrastructure.config import Settings, get_settings
from repo_linecount.infrastructure.github_rest_adapter import GitHubRestAdapter
from repo_linecount.infrastructure.pattern_line_counter import PatternLineCounter
from repo_linecount.services.repository_statistics import RepositoryStatisticsUseCase

_http_client: httpx.AsyncClient | None = None


async def startup() -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    global _http_client  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        limits=httpx.Limits(max_connections=settings.concurrency + 4),
        follow_redirects=True,
    )


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None


@lru_cache(maxsize=1)
def _settings() -> Settings:
    return get_settings()


def get_use_case() -> RepositoryStatisticsUseCase:
    """Build the use-case with injected adapters."""
    settings = _settings()

    assert _http_client is not None, "startup() was not called"

    token = settings.github_token.get_secret_value() if settings.github_token else None
    github_adapter = GitHubRestAdapter(client=_http_client, token=token)

    return RepositoryStatisticsUseCase(
        repo_fetcher=github_adapter,
        line_counter=PatternLineCounter(),
        counter_config=CounterConfig(
            treat_doc_strings_as_comments=settings.treat_doc_strings_as_comments,
        ),
        concurrency=settings.concurrency,
        failure_policy=settings.failure_policy,
        ordered=settings.ordered_output,
    )
