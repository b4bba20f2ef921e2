"""Port: line counter — classifies one file and counts its lines per language."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol

from repo_linecount.domain.entities import LanguageStats


@dataclass(frozen=True, slots=True)
class CounterConfig:
    """Options forwarded untouched to the :class:`LineCounter`.

    ``languages`` restricts counting to the named languages (``None`` means
    all of them); ``excluded`` holds glob patterns of paths to ignore.
    """

    languages: frozenset[str] | None = None
    excluded: tuple[str, ...] = ()
    treat_doc_strings_as_comments: bool = False


class LineCounter(Protocol):
    """Abstract contract for the per-file counting service."""

    def count(
        self, path: str, content: str, config: CounterConfig
    ) -> Mapping[str, LanguageStats]:
        """Return per-language counts for one file (empty if unrecognised).

        Raises :class:`~repo_linecount.domain.exceptions.CountError` when the
        file cannot be counted.
        """
        ...
