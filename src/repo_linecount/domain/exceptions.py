"""Domain exception hierarchy.

Each exception maps to a specific HTTP status code at the interface layer.
Inner layers raise these; the outermost error-handler translates them.
Per-file failures (:class:`FetchError`) are carried as values in the walker's
output stream rather than raised across it.
"""

from __future__ import annotations


class RepoLinecountError(Exception):
    """Base exception for the entire application."""


# ── Input validation ────────────────────────────────────────────────────────


class UrlParseError(RepoLinecountError):
    """The supplied URL does not identify a GitHub repository."""


class InvalidHostError(UrlParseError):
    """The URL origin is not the GitHub web origin."""


class MissingOwnerError(UrlParseError):
    """The URL path has no owner segment."""


class MissingRepositoryError(UrlParseError):
    """The URL path has an owner but no repository segment."""


class InvalidEndpointPathError(RepoLinecountError):
    """A path cannot be templated onto an API or raw-content origin."""


# ── GitHub / transport errors ───────────────────────────────────────────────


class RemoteError(RepoLinecountError):
    """Network failure, non-2xx status, or malformed response body."""


class RepositoryNotFoundError(RemoteError):
    """The repository or revision does not exist or is not accessible (404)."""


class RepositoryAccessDeniedError(RemoteError):
    """Access to the repository was denied (403)."""


class GitHubRateLimitError(RemoteError):
    """GitHub API rate limit exceeded (429 / 403 with rate-limit header)."""


class MalformedResponseError(RemoteError):
    """The response body does not have the expected shape."""


# ── Walk / aggregation errors ───────────────────────────────────────────────


class FetchError(RepoLinecountError):
    """A :class:`RemoteError` scoped to a single path of a walk."""

    def __init__(self, path: str, cause: RemoteError) -> None:
        super().__init__(f"{path}: {cause}")
        self.path = path
        self.cause = cause


class WalkError(RepoLinecountError):
    """The tree listing failed, so the walk produced nothing."""

    def __init__(self, revision: str, cause: RemoteError) -> None:
        super().__init__(f"Could not list tree at {revision!r}: {cause}")
        self.revision = revision
        self.cause = cause


class CountError(RepoLinecountError):
    """The line counter could not process a file."""


class AggregationAbortedError(RepoLinecountError):
    """Aggregation stopped on the first failed file (``abort`` policy)."""

    def __init__(self, path: str, cause: RepoLinecountError) -> None:
        super().__init__(f"Aborted at {path}: {cause}")
        self.path = path
        self.cause = cause
