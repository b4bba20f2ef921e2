"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, cast

from repo_linecount.domain.exceptions import FetchError


class EntryKind(str, Enum):
    """Object type of a node in a git tree listing."""

    TREE = "tree"
    BLOB = "blob"
    COMMIT = "commit"  # submodule reference


class FailurePolicy(str, Enum):
    """What aggregation does with a file that could not be fetched or counted."""

    ABORT = "abort"  # stop and raise the first error
    SKIP = "skip"  # record the file as skipped and continue


@dataclass(frozen=True, slots=True)
class TreeEntry:
    """A single node from the GitHub tree API."""

    path: str
    kind: EntryKind
    sha: str | None = None
    size: int = 0


@dataclass(frozen=True, slots=True)
class TreeListing:
    """The recursive tree of one revision, in the order GitHub returned it."""

    sha: str
    entries: tuple[TreeEntry, ...]
    truncated: bool = False

    def blob_paths(self) -> list[str]:
        return [e.path for e in self.entries if e.kind is EntryKind.BLOB]


@dataclass(frozen=True, slots=True)
class Blob:
    """A fetched file with its decoded content."""

    path: str
    content: str

    @property
    def size_bytes(self) -> int:
        return len(self.content.encode("utf-8"))


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Result of fetching one path: either a :class:`Blob` or a :class:`FetchError`."""

    path: str
    blob: Blob | None = None
    error: FetchError | None = None

    def __post_init__(self) -> None:
        if (self.blob is None) == (self.error is None):
            raise ValueError("FetchOutcome needs exactly one of blob or error")
        if self.blob is not None and self.blob.path != self.path:
            raise ValueError(f"Blob {self.blob.path!r} paired with {self.path!r}")

    @classmethod
    def success(cls, blob: Blob) -> FetchOutcome:
        return cls(path=blob.path, blob=blob)

    @classmethod
    def failure(cls, path: str, error: FetchError) -> FetchOutcome:
        return cls(path=path, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Blob:
        """Return the blob, or raise this outcome's :class:`FetchError`."""
        if self.error is not None:
            raise self.error
        return cast(Blob, self.blob)


@dataclass(frozen=True, slots=True)
class LanguageStats:
    """Line counts for one language; ``+`` sums every field."""

    files: int = 0
    code: int = 0
    comments: int = 0
    blanks: int = 0

    @property
    def lines(self) -> int:
        return self.code + self.comments + self.blanks

    def __add__(self, other: LanguageStats) -> LanguageStats:
        if not isinstance(other, LanguageStats):
            return NotImplemented
        return LanguageStats(
            files=self.files + other.files,
            code=self.code + other.code,
            comments=self.comments + other.comments,
            blanks=self.blanks + other.blanks,
        )


@dataclass(slots=True)
class Statistics:
    """Repository-wide report, built incrementally one file at a time.

    ``languages`` is keyed by language name.  Dict equality ignores insertion
    order, so two reports over the same files compare equal no matter which
    file finished first.
    """

    languages: dict[str, LanguageStats] = field(default_factory=dict)
    files_counted: int = 0
    files_skipped: int = 0
    skipped: dict[str, str] = field(default_factory=dict)
    revision: str | None = None

    def add_file(self, counts: Mapping[str, LanguageStats]) -> None:
        self.files_counted += 1
        for language, stats in counts.items():
            self.languages[language] = self.languages.get(language, LanguageStats()) + stats

    def record_skip(self, path: str, reason: str) -> None:
        self.files_skipped += 1
        self.skipped[path] = reason

    def merge(self, other: Statistics) -> Statistics:
        merged = Statistics(
            languages=dict(self.languages),
            files_counted=self.files_counted + other.files_counted,
            files_skipped=self.files_skipped + other.files_skipped,
            skipped={**self.skipped, **other.skipped},
            revision=self.revision or other.revision,
        )
        for language, stats in other.languages.items():
            merged.languages[language] = merged.languages.get(language, LanguageStats()) + stats
        return merged

    @property
    def total(self) -> LanguageStats:
        result = LanguageStats()
        for stats in self.languages.values():
            result = result + stats
        return result
