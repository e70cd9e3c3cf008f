"""Glob index resolving paths to the owners of matching patterns.

The GlobIndex files every pattern under its static prefix in a
PrefixTrie, then confirms candidates with the compiled regex. Results
are cached by path and the cache is invalidated on registration.
"""

from typing import Dict, Generic, List, Tuple, TypeVar

from .patterns import GlobPattern, normalize_path
from .trie import PrefixTrie

T = TypeVar('T')


class GlobIndex(Generic[T]):
    """Map relative paths to the owners of the globs matching them.

    Owners are returned in registration order, so the first-registered
    owner comes first when patterns overlap.

    Example:
        index = GlobIndex()
        index.register("src/assets/js/*.js", "scripts")
        index.register("src/**/*.html", "html")

        index.find_all("src/assets/js/app.js")    # ["scripts"]
        index.find_all("src/partials/nav.html")  # ["html"]
        index.find_all("README.md")               # []
    """

    def __init__(self):
        self._trie: PrefixTrie[Tuple[int, GlobPattern, T]] = PrefixTrie()
        self._patterns: List[Tuple[GlobPattern, T]] = []
        self._cache: Dict[str, List[T]] = {}

    def register(self, pattern: str, owner: T) -> GlobPattern:
        """Register ``pattern`` as owned by ``owner``.

        Returns:
            The compiled GlobPattern.
        """
        compiled = GlobPattern(pattern)
        order = len(self._patterns)
        self._patterns.append((compiled, owner))
        for root in compiled.static_roots:
            self._trie.insert(root, (order, compiled, owner))
        self._cache.clear()
        return compiled

    def find_all(self, path: str) -> List[T]:
        """Return every distinct owner with a pattern matching ``path``."""
        key = normalize_path(path)
        if key in self._cache:
            return list(self._cache[key])

        candidates = sorted(
            self._trie.find_all_prefixes(key), key=lambda item: item[0]
        )
        owners: List[T] = []
        for _order, compiled, owner in candidates:
            if owner in owners:
                continue
            if compiled.matches(key):
                owners.append(owner)

        self._cache[key] = owners
        return list(owners)

    def patterns_of(self, owner: T) -> List[GlobPattern]:
        """Return the compiled patterns registered for ``owner``."""
        return [compiled for compiled, o in self._patterns if o == owner]

    def __len__(self) -> int:
        return len(self._patterns)
