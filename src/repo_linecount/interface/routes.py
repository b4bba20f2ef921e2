"""API routes — thin controllers that delegate to the use case."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from repo_linecount.domain.entities import FailurePolicy
from repo_linecount.domain.value_objects import GitHubRepository
from repo_linecount.interface.dependencies import get_use_case
from repo_linecount.interface.schemas import StatisticsRequest, StatisticsResponse
from repo_linecount.services.repository_statistics import RepositoryStatisticsUseCase

router = APIRouter()

_ERROR_RESPONSES: dict[int | str, dict[str, str]] = {
    422: {"description": "Invalid GitHub URL"},
    403: {"description": "Repository is private"},
    404: {"description": "Repository or revision not found"},
    429: {"description": "GitHub API rate limit exceeded"},
    502: {"description": "GitHub request failed"},
}


@router.post("/statistics", response_model=StatisticsResponse, responses=_ERROR_RESPONSES)
async def statistics(
    body: StatisticsRequest,
    use_case: RepositoryStatisticsUseCase = Depends(get_use_case),
) -> StatisticsResponse:
    """Count lines of code per language in a public GitHub repository."""
    repo = GitHubRepository.from_url(body.github_url)
    result = await use_case.execute_for(repo, body.revision, body.failure_policy)
    return StatisticsResponse.from_statistics(repo, result)


@router.get(
    "/repos/{owner}/{repo}/statistics",
    response_model=StatisticsResponse,
    responses=_ERROR_RESPONSES,
)
async def statistics_by_name(
    owner: str,
    repo: str,
    revision: str | None = Query(default=None),
    failure_policy: FailurePolicy | None = Query(default=None),
    use_case: RepositoryStatisticsUseCase = Depends(get_use_case),
) -> StatisticsResponse:
    """Same as ``POST /statistics`` for a repository given by owner and name."""
    reference = GitHubRepository.new(owner, repo)
    result = await use_case.execute_for(reference, revision or None, failure_policy)
    return StatisticsResponse.from_statistics(reference, result)
