"""Glob matching for source paths.

- GlobPattern: compiled glob with ``**``, ``?``, ``[...]`` and ``{a,b}``
- PrefixTrie: static-prefix index used to narrow candidate patterns
- GlobIndex: path -> owner lookup built on the two above

Example:
    from assetflow.matching import GlobIndex

    index = GlobIndex()
    index.register("src/assets/sass/*.sass", "styles")
    index.find_all("src/assets/sass/main.sass")  # ["styles"]
"""

from .patterns import GlobPattern, expand_braces, normalize_path, static_prefix, translate
from .trie import PrefixTrie, TrieNode
from .index import GlobIndex

__all__ = [
    'GlobPattern',
    'expand_braces',
    'normalize_path',
    'static_prefix',
    'translate',
    'PrefixTrie',
    'TrieNode',
    'GlobIndex',
]
