"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from repo_linecount.domain.entities import FailurePolicy, LanguageStats, Statistics
from repo_linecount.domain.value_objects import GitHubRepository


class StatisticsRequest(BaseModel):
    """Request body for ``POST /statistics``."""

    github_url: str
    revision: str | None = None
    failure_policy: FailurePolicy | None = None

    @field_validator("github_url")
    @classmethod
    def _must_not_be_empty(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "github_url must not be empty."
            raise ValueError(msg)
        return stripped

    @field_validator("revision")
    @classmethod
    def _blank_revision_is_default(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class LanguageStatsSchema(BaseModel):
    files: int
    lines: int
    code: int
    comments: int
    blanks: int

    @classmethod
    def from_stats(cls, stats: LanguageStats) -> LanguageStatsSchema:
        return cls(
            files=stats.files,
            lines=stats.lines,
            code=stats.code,
            comments=stats.comments,
            blanks=stats.blanks,
        )


class StatisticsResponse(BaseModel):
    """Successful response from ``POST /statistics``."""

    repository: str
    revision: str | None
    languages: dict[str, LanguageStatsSchema]
    total: LanguageStatsSchema
    files_counted: int
    files_skipped: int
    skipped: dict[str, str]

    @classmethod
    def from_statistics(
        cls, repo: GitHubRepository, stats: Statistics
    ) -> StatisticsResponse:
        # Largest languages first.
        ordered = sorted(stats.languages.items(), key=lambda item: (-item[1].code, item[0]))
        return cls(
            repository=str(repo.to_url()),
            revision=stats.revision,
            languages={name: LanguageStatsSchema.from_stats(s) for name, s in ordered},
            total=LanguageStatsSchema.from_stats(stats.total),
            files_counted=stats.files_counted,
            files_skipped=stats.files_skipped,
            skipped=dict(stats.skipped),
        )


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str
