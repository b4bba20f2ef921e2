"""Table-driven line counter — the default implementation of the LineCounter port.

Languages are detected from the file name or extension.  Each line is then
classified as blank, comment or code using the language's comment syntax; a
line holding any code counts as code.
"""

from __future__ import annotations

import fnmatch
import posixpath
from dataclasses import dataclass

from repo_linecount.domain.entities import LanguageStats
from repo_linecount.domain.exceptions import CountError
from repo_linecount.domain.ports.line_counter import CounterConfig


@dataclass(frozen=True, slots=True)
class LanguageSyntax:
    """Comment delimiters of one language."""

    name: str
    line_comments: tuple[str, ...] = ()
    block_comments: tuple[tuple[str, str], ...] = ()
    doc_strings: tuple[str, ...] = ()


# ── Syntax table ────────────────────────────────────────────────────────────

_C_BLOCK = (("/*", "*/"),)
_HTML_BLOCK = (("<!--", "-->"),)


def _c_like(name: str) -> LanguageSyntax:
    return LanguageSyntax(name, line_comments=("//",), block_comments=_C_BLOCK)


def _hash(name: str) -> LanguageSyntax:
    return LanguageSyntax(name, line_comments=("#",))


PYTHON = LanguageSyntax("Python", line_comments=("#",), doc_strings=('"""', "'''"))

_BY_EXTENSION: dict[str, LanguageSyntax] = {
    ".py": PYTHON,
    ".pyi": PYTHON,
    ".rs": _c_like("Rust"),
    ".js": _c_like("JavaScript"),
    ".mjs": _c_like("JavaScript"),
    ".cjs": _c_like("JavaScript"),
    ".jsx": _c_like("JSX"),
    ".ts": _c_like("TypeScript"),
    ".tsx": _c_like("TSX"),
    ".go": _c_like("Go"),
    ".java": _c_like("Java"),
    ".kt": _c_like("Kotlin"),
    ".kts": _c_like("Kotlin"),
    ".scala": _c_like("Scala"),
    ".cs": _c_like("C#"),
    ".c": _c_like("C"),
    ".h": _c_like("C Header"),
    ".cpp": _c_like("C++"),
    ".cc": _c_like("C++"),
    ".cxx": _c_like("C++"),
    ".hpp": _c_like("C++ Header"),
    ".swift": _c_like("Swift"),
    ".dart": _c_like("Dart"),
    ".php": LanguageSyntax("PHP", line_comments=("//", "#"), block_comments=_C_BLOCK),
    ".css": LanguageSyntax("CSS", block_comments=_C_BLOCK),
    ".scss": _c_like("Sass"),
    ".less": _c_like("LESS"),
    ".proto": _c_like("Protocol Buffers"),
    ".json": LanguageSyntax("JSON"),
    ".rb": LanguageSyntax("Ruby", line_comments=("#",), block_comments=(("=begin", "=end"),)),
    ".sh": _hash("Shell"),
    ".bash": _hash("BASH"),
    ".zsh": _hash("Zsh"),
    ".pl": _hash("Perl"),
    ".r": _hash("R"),
    ".yaml": _hash("YAML"),
    ".yml": _hash("YAML"),
    ".toml": _hash("TOML"),
    ".ini": LanguageSyntax("INI", line_comments=(";", "#")),
    ".cfg": LanguageSyntax("INI", line_comments=(";", "#")),
    ".sql": LanguageSyntax("SQL", line_comments=("--",), block_comments=_C_BLOCK),
    ".lua": LanguageSyntax("Lua", line_comments=("--",), block_comments=(("--[[", "]]"),)),
    ".hs": LanguageSyntax("Haskell", line_comments=("--",), block_comments=(("{-", "-}"),)),
    ".html": LanguageSyntax("HTML", block_comments=_HTML_BLOCK),
    ".htm": LanguageSyntax("HTML", block_comments=_HTML_BLOCK),
    ".xml": LanguageSyntax("XML", block_comments=_HTML_BLOCK),
    ".svg": LanguageSyntax("SVG", block_comments=_HTML_BLOCK),
    ".vue": LanguageSyntax("Vue", line_comments=("//",), block_comments=_HTML_BLOCK + _C_BLOCK),
    ".md": LanguageSyntax("Markdown"),
    ".rst": LanguageSyntax("ReStructuredText"),
    ".txt": LanguageSyntax("Plain Text"),
}

_BY_FILENAME: dict[str, LanguageSyntax] = {
    "makefile": _hash("Makefile"),
    "gnumakefile": _hash("Makefile"),
    "dockerfile": _hash("Dockerfile"),
    "cmakelists.txt": _hash("CMake"),
    "justfile": _hash("Just"),
    "gemfile": LanguageSyntax("Ruby", line_comments=("#",)),
    "rakefile": LanguageSyntax("Ruby", line_comments=("#",)),
}


def detect_language(path: str) -> LanguageSyntax | None:
    """Return the syntax for *path* based on its file name, or ``None``."""
    name = posixpath.basename(path).lower()
    if name in _BY_FILENAME:
        return _BY_FILENAME[name]
    _, ext = posixpath.splitext(name)
    return _BY_EXTENSION.get(ext)


# ── Counter ─────────────────────────────────────────────────────────────────


class PatternLineCounter:
    """Concrete ``LineCounter`` using the built-in syntax table."""

    def count(
        self, path: str, content: str, config: CounterConfig
    ) -> dict[str, LanguageStats]:
        if any(fnmatch.fnmatch(path, pattern) for pattern in config.excluded):
            return {}

        syntax = detect_language(path)
        if syntax is None:
            return {}
        if config.languages is not None and syntax.name not in config.languages:
            return {}

        if "\x00" in content:
            raise CountError(f"{path} looks like a binary file")

        return {
            syntax.name: count_lines(
                content, syntax, doc_strings_as_comments=config.treat_doc_strings_as_comments
            )
        }


def count_lines(
    content: str, syntax: LanguageSyntax, *, doc_strings_as_comments: bool = False
) -> LanguageStats:
    """Classify every line of *content* and return the totals (``files=1``)."""
    code = comments = blanks = 0
    state: _State | None = None

    for line in content.splitlines():
        if not line.strip():
            blanks += 1
            continue

        has_code, has_comment, state = _scan_line(
            line, syntax, state, doc_strings_as_comments
        )
        if has_code or not has_comment:
            code += 1
        else:
            comments += 1

    return LanguageStats(files=1, code=code, comments=comments, blanks=blanks)


@dataclass(frozen=True, slots=True)
class _State:
    """An open multi-line construct carried across lines."""

    closer: str
    is_comment: bool  # False for a string literal that counts as code


def _scan_line(
    line: str,
    syntax: LanguageSyntax,
    state: _State | None,
    doc_strings_as_comments: bool,
) -> tuple[bool, bool, _State | None]:
    has_code = False
    has_comment = False
    i = 0
    n = len(line)

    while i < n:
        if state is not None:
            if state.is_comment:
                has_comment = True
            else:
                has_code = True
            end = line.find(state.closer, i)
            if end == -1:
                return has_code, has_comment, state
            i = end + len(state.closer)
            state = None
            continue

        if line[i].isspace():
            i += 1
            continue

        # Block openers first: Lua's "--[[" starts with its line marker "--".
        opened = _opening(line, i, syntax, has_code, doc_strings_as_comments)
        if opened is not None:
            state, width = opened
            if state.is_comment:
                has_comment = True
            else:
                has_code = True
            i += width
            continue

        if any(line.startswith(marker, i) for marker in syntax.line_comments):
            return has_code, True, None

        has_code = True
        i += 1

    return has_code, has_comment, state


def _opening(
    line: str,
    i: int,
    syntax: LanguageSyntax,
    has_code: bool,
    doc_strings_as_comments: bool,
) -> tuple[_State, int] | None:
    for opener, closer in syntax.block_comments:
        if line.startswith(opener, i):
            return _State(closer, is_comment=True), len(opener)
    for quote in syntax.doc_strings:
        if line.startswith(quote, i):
            # Only a string opening a statement is a doc string.
            is_doc = doc_strings_as_comments and not has_code
            return _State(quote, is_comment=is_doc), len(quote)
    return None
