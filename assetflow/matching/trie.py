"""Prefix trie keyed by path components.

Glob patterns are filed under their static directory prefix so that a
path lookup only has to test the patterns whose prefix the path falls
under, instead of every registered pattern.
"""

from dataclasses import dataclass, field
from typing import List, TypeVar, Generic, Dict

T = TypeVar('T')


@dataclass
class TrieNode(Generic[T]):
    """Node in a prefix trie.

    Attributes:
        children: Child nodes keyed by path component.
        values: Values registered at exactly this prefix.
    """
    children: Dict[str, 'TrieNode[T]'] = field(default_factory=dict)
    values: List[T] = field(default_factory=list)


class PrefixTrie(Generic[T]):
    """Trie mapping directory prefixes to lists of values.

    Several values may share a prefix; they are kept in insertion order.

    Example:
        trie = PrefixTrie()
        trie.insert("src/", "html")
        trie.insert("src/assets/js/", "scripts")

        trie.find_all_prefixes("src/assets/js/app.js")  # ["html", "scripts"]
        trie.find_all_prefixes("docs/readme.md")        # []
    """

    def __init__(self, separator: str = '/'):
        self._root: TrieNode[T] = TrieNode()
        self._separator = separator
        self._size = 0

    def insert(self, prefix: str, value: T) -> None:
        """Add ``value`` under ``prefix``."""
        node = self._root
        for part in self._split(prefix):
            if part not in node.children:
                node.children[part] = TrieNode()
            node = node.children[part]
        node.values.append(value)
        self._size += 1

    def find_all_prefixes(self, key: str) -> List[T]:
        """Return values of every registered prefix that ``key`` falls under.

        Ordered from the shortest prefix to the longest.
        """
        node = self._root
        results: List[T] = list(node.values)

        for part in self._split(key):
            if part not in node.children:
                break
            node = node.children[part]
            results.extend(node.values)

        return results

    def __len__(self) -> int:
        return self._size

    def _split(self, path: str) -> List[str]:
        """Split path into components, filtering empty strings."""
        return [p for p in path.split(self._separator) if p]
