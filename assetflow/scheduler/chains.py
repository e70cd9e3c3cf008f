"""Declarative trigger chains.

A chain is the ordered list of categories rebuilt when a file of the
triggering category changes. HTML pages may reference every other asset,
so an HTML change rebuilds everything before assembling the pages.
"""

from typing import Dict, List, Tuple

from ..rules import Category

FULL_CHAIN: Tuple[Category, ...] = (
    Category.STYLE,
    Category.SCRIPT,
    Category.FONT,
    Category.IMAGE,
    Category.SVG,
    Category.HTML,
)

CHAINS: Dict[Category, Tuple[Category, ...]] = {
    Category.HTML: FULL_CHAIN,
}


def chain_for(
    category: Category,
    chains: Dict[Category, Tuple[Category, ...]] = None,
) -> Tuple[Category, ...]:
    """Return the categories to rebuild for a change in ``category``."""
    if chains is None:
        chains = CHAINS
    return chains.get(category, (category,))


def merge_chains(chains: List[Tuple[str, ...]]) -> List[Tuple[str, ...]]:
    """Coalesce task-id chains for one burst.

    Task ids already scheduled by an earlier chain are dropped from later
    ones, and a chain made redundant by a longer chain is absorbed by it
    wherever it appears in the burst.

    Example:
        merge_chains([("scripts",), ("styles", "scripts", "html"), ("scripts",)])
        -> [("styles", "scripts", "html")]
    """
    covered = set()
    for chain in chains:
        if len(chain) > 1:
            covered.update(chain)

    merged: List[Tuple[str, ...]] = []
    scheduled = set()
    for chain in chains:
        if len(chain) == 1 and chain[0] in covered:
            continue
        remaining = tuple(tid for tid in chain if tid not in scheduled)
        if not remaining:
            continue
        scheduled.update(remaining)
        merged.append(remaining)
    return merged
