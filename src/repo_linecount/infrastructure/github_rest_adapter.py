"""GitHub REST API adapter — implements the RepoFetcher port."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from repo_linecount.domain.entities import TreeListing
from repo_linecount.domain.exceptions import (
    GitHubRateLimitError,
    InvalidEndpointPathError,
    MalformedResponseError,
    RemoteError,
    RepositoryAccessDeniedError,
    RepositoryNotFoundError,
)
from repo_linecount.domain.value_objects import GitHubRepository
from repo_linecount.infrastructure.github_models import RepositoryModel, TreesModel

logger = logging.getLogger(__name__)

_USER_AGENT = "repo-linecount/1.0"

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class GitHubRestAdapter:
    """Concrete RepoFetcher backed by the GitHub v3 REST API and raw.githubusercontent.com."""

    def __init__(self, client: httpx.AsyncClient, token: str | None = None) -> None:
        self._client = client
        self._api_headers: dict[str, str] = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": _USER_AGENT,
        }
        if token:
            self._api_headers["Authorization"] = f"Bearer {token}"

    async def fetch_default_branch(self, repo: GitHubRepository) -> str:
        """GET /repos/{owner}/{repo} → default_branch."""
        resp = await self._api_get(repo, repo.metadata_path())
        return _parse(RepositoryModel, resp).default_branch

    async def fetch_tree(
        self, repo: GitHubRepository, revision: str, recursive: bool = True
    ) -> TreeListing:
        """GET /repos/{owner}/{repo}/git/trees/{revision}?recursive=true → TreeListing."""
        resp = await self._api_get(
            repo,
            repo.trees_path(revision),
            params={"recursive": str(recursive).lower()},
        )
        listing = _parse(TreesModel, resp).to_listing()
        if listing.truncated:
            logger.warning(
                "Tree listing for %s@%s was truncated by GitHub; %d entries returned",
                repo.full_name,
                revision,
                len(listing.entries),
            )
        return listing

    async def fetch_raw(self, repo: GitHubRepository, revision: str, path: str) -> str:
        """Fetch raw file content via raw.githubusercontent.com (no rate limit)."""
        try:
            raw_url = repo.raw_endpoint(repo.raw_path(revision, path))
        except InvalidEndpointPathError as exc:
            raise RemoteError(f"Cannot request {path!r}: {exc}") from exc

        try:
            resp = await self._client.get(raw_url, headers={"User-Agent": _USER_AGENT})
        except httpx.HTTPError as exc:
            raise RemoteError(f"Network error fetching {raw_url}: {exc}") from exc

        if resp.is_success:
            return resp.text

        if resp.status_code == 404:
            raise RepositoryNotFoundError(f"File not found: {path}")

        raise RemoteError(
            f"raw.githubusercontent.com returned HTTP {resp.status_code} for {path}"
        )

    async def _api_get(
        self,
        repo: GitHubRepository,
        endpoint: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Perform a GitHub API GET request with error translation."""
        try:
            url = repo.api_endpoint(endpoint)
        except InvalidEndpointPathError as exc:
            raise RemoteError(str(exc)) from exc

        try:
            resp = await self._client.get(url, headers=self._api_headers, params=params)
        except httpx.HTTPError as exc:
            raise RemoteError(f"Network error fetching {url}: {exc}") from exc

        if resp.is_success:
            return resp

        if resp.status_code == 404:
            raise RepositoryNotFoundError(
                f"{repo.full_name}: not found. Make sure the repository is public "
                "and the revision exists."
            )

        if resp.status_code == 403:
            remaining = resp.headers.get("x-ratelimit-remaining", "")
            if remaining == "0":
                reset_raw = resp.headers.get("x-ratelimit-reset", "")
                try:
                    reset_str = datetime.fromtimestamp(int(reset_raw), tz=timezone.utc).strftime(
                        "%Y-%m-%d %H:%M:%S UTC"
                    )
                except (ValueError, OSError):
                    reset_str = reset_raw or "unknown"
                raise GitHubRateLimitError(
                    f"GitHub API rate limit exceeded. Resets at {reset_str}. "
                    "Set the GITHUB_TOKEN environment variable to increase the limit."
                )
            raise RepositoryAccessDeniedError(
                "Access denied. The repository may be private."
            )

        if resp.status_code == 429:
            raise GitHubRateLimitError("GitHub API rate limit exceeded (HTTP 429).")

        raise RemoteError(f"GitHub API returned HTTP {resp.status_code} for {url}")


def _parse(model: type[_ModelT], resp: httpx.Response) -> _ModelT:
    try:
        return model.model_validate_json(resp.content)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"Unexpected response body from {resp.request.url}: {exc.error_count()} error(s)"
        ) from exc
