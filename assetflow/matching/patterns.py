"""Glob pattern compilation.

Patterns use the shell-style syntax found in front-end build configs:

- ``*``  matches any characters except ``/``
- ``**`` matches across directories (``src/**/*.html`` also matches
  ``src/index.html``)
- ``?``  matches one character except ``/``
- ``[abc]`` / ``[!abc]`` character classes
- ``{jpg,png}`` alternatives, expanded before compilation

Paths are compared in POSIX form, relative to the project base path.

Example:
    pattern = GlobPattern("src/assets/images/**/*.{jpg,png}")
    pattern.matches("src/assets/images/icons/logo.png")  # True
    pattern.static_roots                                  # ['src/assets/images/']
"""

import re
import string
from dataclasses import dataclass, field
from pathlib import Path, PurePath, PurePosixPath
from typing import List, Optional, Union

WILDCARD_CHARS = '*?[{'
_SAMPLE_CHARS = 'x' + string.ascii_letters + string.digits + '_-.'


def expand_braces(pattern: str) -> List[str]:
    """Expand ``{a,b}`` alternatives into separate patterns.

    Nested groups are expanded recursively. An unbalanced ``{`` is kept
    as a literal character.

    Examples:
        "*.{jpg,png}" -> ["*.jpg", "*.png"]
        "a{b,c{d,e}}" -> ["ab", "acd", "ace"]
    """
    start = pattern.find('{')
    while start != -1:
        depth = 0
        commas = []
        for i in range(start, len(pattern)):
            char = pattern[i]
            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    end = i
                    break
            elif char == ',' and depth == 1:
                commas.append(i)
        else:
            # Unbalanced, try the next opening brace
            start = pattern.find('{', start + 1)
            continue

        if not commas:
            start = pattern.find('{', end + 1)
            continue

        head = pattern[:start]
        tail = pattern[end + 1:]
        bounds = [start] + commas + [end]
        results: List[str] = []
        for left, right in zip(bounds, bounds[1:]):
            option = pattern[left + 1:right]
            results.extend(expand_braces(head + option + tail))
        return results

    return [pattern]


def translate(pattern: str) -> str:
    """Translate a brace-free glob pattern into an anchored regex string."""
    parts = []
    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == '*':
            if i + 1 < n and pattern[i + 1] == '*':
                i += 2
                if i < n and pattern[i] == '/':
                    # "**/" also matches zero directories
                    i += 1
                    parts.append('(?:.*/)?')
                else:
                    parts.append('.*')
                continue
            parts.append('[^/]*')
        elif char == '?':
            parts.append('[^/]')
        elif char == '[':
            close = pattern.find(']', i + 2)
            if close == -1:
                parts.append(re.escape(char))
            else:
                body = pattern[i + 1:close]
                if body.startswith('!'):
                    body = '^' + body[1:]
                body = body.replace('\\', '\\\\')
                parts.append(f'[{body}]')
                i = close
        else:
            parts.append(re.escape(char))
        i += 1
    return '^' + ''.join(parts) + '$'


def example_path(pattern: str) -> Optional[str]:
    """Return one concrete path matched by a brace-free ``pattern``.

    Wildcards are filled with ``x`` and ``**/`` with nothing. Returns None
    for a character class no sample character satisfies.

    Examples:
        "src/**/*.css" -> "src/x.css"
        "img/?[0-9].png" -> "img/x0.png"
    """
    parts = []
    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == '*':
            if pattern.startswith('**/', i):
                i += 3
                continue
            while i < n and pattern[i] == '*':
                i += 1
            parts.append('x')
            continue
        if char == '?':
            parts.append('x')
        elif char == '[' and pattern.find(']', i + 2) != -1:
            close = pattern.find(']', i + 2)
            regex = re.compile(translate(pattern[i:close + 1]))
            picked = next((c for c in _SAMPLE_CHARS if regex.match(c)), None)
            if picked is None:
                return None
            parts.append(picked)
            i = close
        else:
            parts.append(char)
        i += 1
    return ''.join(parts)


def static_prefix(pattern: str) -> str:
    """Return the directory portion before the first wildcard.

    Examples:
        "src/assets/sass/*.sass" -> "src/assets/sass/"
        "src/**/*.html" -> "src/"
        "*.txt" -> ""
        "src/index.html" -> "src/"
    """
    cut = len(pattern)
    for char in WILDCARD_CHARS:
        pos = pattern.find(char)
        if pos != -1:
            cut = min(cut, pos)

    last_slash = pattern.rfind('/', 0, cut)
    if last_slash == -1:
        return ""
    return pattern[:last_slash + 1]


def normalize_path(path: Union[str, PurePath]) -> str:
    """Return ``path`` in the POSIX form used for matching."""
    text = PurePath(path).as_posix()
    if text.startswith('./'):
        text = text[2:]
    return text


@dataclass
class GlobPattern:
    """A compiled glob pattern.

    Attributes:
        pattern: The pattern as written, in POSIX form
    """
    pattern: str

    _alternatives: List[str] = field(init=False, repr=False, default_factory=list)
    _regexes: List[re.Pattern] = field(init=False, repr=False, default_factory=list)

    def __post_init__(self):
        self.pattern = normalize_path(self.pattern)
        self._alternatives = expand_braces(self.pattern)
        self._regexes = [re.compile(translate(alt)) for alt in self._alternatives]

    @property
    def alternatives(self) -> List[str]:
        """Brace-expanded forms of the pattern."""
        return list(self._alternatives)

    @property
    def static_roots(self) -> List[str]:
        """Distinct static prefixes of all alternatives."""
        roots: List[str] = []
        for alt in self._alternatives:
            root = static_prefix(alt)
            if root not in roots:
                roots.append(root)
        return roots

    @property
    def examples(self) -> List[str]:
        """One sample path per alternative, where one can be built."""
        samples: List[str] = []
        for alt in self._alternatives:
            sample = example_path(alt)
            if sample is not None and sample not in samples:
                samples.append(sample)
        return samples

    def overlaps(self, other: 'GlobPattern') -> Optional[str]:
        """Return a sample path matched by both patterns, or None.

        Only the samples of each pattern are tried, so overlaps that
        no sample hits go unreported.
        """
        for sample in self.examples:
            if other.matches(sample):
                return sample
        for sample in other.examples:
            if self.matches(sample):
                return sample
        return None

    def matches(self, path: Union[str, PurePath]) -> bool:
        """Return True if the relative ``path`` matches this pattern."""
        key = normalize_path(path)
        return any(regex.match(key) for regex in self._regexes)

    @property
    def is_absolute(self) -> bool:
        return PurePosixPath(self.pattern).is_absolute()

    def glob(self, base_path: Union[str, Path, None] = None) -> List[Path]:
        """List existing files matching this pattern.

        Relative patterns are resolved against ``base_path`` (default: the
        current directory). Returns sorted paths without duplicates.
        """
        base = Path(base_path) if base_path is not None else Path.cwd()
        found = set()
        for root in self.static_roots:
            root_dir = base / root
            if not root_dir.is_dir():
                continue
            for candidate in root_dir.rglob('*'):
                if not candidate.is_file():
                    continue
                if self.is_absolute:
                    key = candidate.as_posix()
                else:
                    key = candidate.relative_to(base).as_posix()
                if self.matches(key):
                    found.add(candidate)
        return sorted(found)
