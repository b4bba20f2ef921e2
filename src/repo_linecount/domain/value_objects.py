"""Value objects — self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from repo_linecount.domain.exceptions import (
    InvalidEndpointPathError,
    InvalidHostError,
    MissingOwnerError,
    MissingRepositoryError,
    UrlParseError,
)

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")


def _origin(url: httpx.URL) -> tuple[str, str, int | None]:
    default_port = {"http": 80, "https": 443}.get(url.scheme)
    return url.scheme, url.host, url.port or default_port


@dataclass(frozen=True, slots=True)
class GitHubRepository:
    """Immutable reference to a repository hosted on GitHub.

    Derives the three origins a walk talks to: the web origin users paste
    URLs from, the REST API origin serving tree listings, and the raw-content
    origin serving file bodies.  Being a frozen value, it is copied freely
    into concurrent fetch tasks.
    """

    owner: str
    repo: str

    ORIGIN = "https://github.com"
    API_ORIGIN = "https://api.github.com"
    RAW_ORIGIN = "https://raw.githubusercontent.com"

    @classmethod
    def new(cls, owner: str, repo: str) -> GitHubRepository:
        return cls(owner=owner, repo=repo)

    @classmethod
    def from_url(cls, url: str | httpx.URL) -> GitHubRepository:
        """Parse ``https://github.com/<owner>/<repo>[/...]``.

        Only the first two non-empty path segments are significant, so a
        trailing slash or a deeper path such as ``/tree/main/src`` parses to
        the same repository.
        """
        if isinstance(url, str):
            try:
                url = httpx.URL(url.strip())
            except httpx.InvalidURL as exc:
                raise UrlParseError(f"Invalid URL: {exc}") from exc

        if _origin(url) != _origin(httpx.URL(cls.ORIGIN)):
            raise InvalidHostError(
                f"Invalid host in '{url}'. "
                f"Expected format: {cls.ORIGIN}/<owner>/<repo>"
            )

        segments = [s for s in url.path.split("/") if s]
        if not segments:
            raise MissingOwnerError(f"No repository owner in '{url}'.")
        if len(segments) < 2:
            raise MissingRepositoryError(f"No repository name in '{url}'.")

        owner, repo = segments[0], segments[1]
        if repo.endswith(".git") and len(repo) > len(".git"):
            repo = repo[: -len(".git")]
        return cls(owner=owner, repo=repo)

    def to_url(self) -> httpx.URL:
        # from_url strips one ".git", so a name already ending in it gets another.
        repo = f"{self.repo}.git" if self.repo.endswith(".git") else self.repo
        return httpx.URL(self.ORIGIN).copy_with(path=f"/{self.owner}/{repo}")

    @property
    def host(self) -> str:
        return "github"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    # ── Endpoint templating ─────────────────────────────────────────────

    def api_endpoint(self, path: str) -> httpx.URL:
        return self._endpoint(self.API_ORIGIN, path)

    def raw_endpoint(self, path: str) -> httpx.URL:
        return self._endpoint(self.RAW_ORIGIN, path)

    def trees_path(self, revision: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/git/trees/{revision}"

    def metadata_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def raw_path(self, revision: str, path: str) -> str:
        """Template a file path onto the raw-content layout, percent-encoding it.

        Each segment is quoted on its own, so characters such as ``#``, ``?``
        or a literal ``%20`` in a file name reach GitHub unchanged.
        """
        if _CONTROL_CHARS_RE.search(path):
            raise InvalidEndpointPathError(f"File path contains control characters: {path!r}")
        segments = "/".join(quote(segment, safe="") for segment in path.lstrip("/").split("/"))
        return f"/{self.owner}/{self.repo}/{quote(revision, safe='/')}/{segments}"

    @staticmethod
    def _endpoint(origin: str, path: str) -> httpx.URL:
        if not path.startswith("/"):
            raise InvalidEndpointPathError(f"Endpoint path must be absolute: {path!r}")
        if _CONTROL_CHARS_RE.search(path):
            raise InvalidEndpointPathError(
                f"Endpoint path contains control characters: {path!r}"
            )
        try:
            return httpx.URL(origin).copy_with(path=path)
        except httpx.InvalidURL as exc:
            raise InvalidEndpointPathError(f"Invalid endpoint path {path!r}: {exc}") from exc
