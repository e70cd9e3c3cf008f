"""Tests for trigger chains and burst coalescing."""

from assetflow.rules import Category
from assetflow.scheduler.chains import (
    CHAINS,
    FULL_CHAIN,
    chain_for,
    merge_chains,
)


class TestChainFor:
    """Tests for chain lookup."""

    def test_html_escalates_to_full_chain(self):
        assert chain_for(Category.HTML) == FULL_CHAIN
        assert FULL_CHAIN[-1] is Category.HTML
        assert FULL_CHAIN[0] is Category.STYLE

    def test_other_categories_rebuild_themselves(self):
        for category in (Category.STYLE, Category.SCRIPT, Category.FONT,
                         Category.IMAGE, Category.SVG):
            assert chain_for(category) == (category,)

    def test_custom_chains(self):
        chains = {Category.SCRIPT: (Category.SCRIPT, Category.HTML)}
        assert chain_for(Category.SCRIPT, chains) == (Category.SCRIPT, Category.HTML)
        assert chain_for(Category.HTML, chains) == (Category.HTML,)

    def test_only_html_escalates(self):
        assert set(CHAINS) == {Category.HTML}


class TestMergeChains:
    """Tests for merge_chains."""

    def test_empty(self):
        assert merge_chains([]) == []

    def test_distinct_singles_kept_in_order(self):
        assert merge_chains([("styles",), ("scripts",)]) == [("styles",), ("scripts",)]

    def test_repeated_single_runs_once(self):
        assert merge_chains([("styles",), ("styles",), ("styles",)]) == [("styles",)]

    def test_single_absorbed_by_later_escalation(self):
        full = ("styles", "scripts", "html")
        assert merge_chains([("scripts",), full]) == [full]

    def test_single_absorbed_by_earlier_escalation(self):
        full = ("styles", "scripts", "html")
        assert merge_chains([full, ("scripts",), ("styles",)]) == [full]

    def test_uncovered_single_survives(self):
        full = ("styles", "html")
        assert merge_chains([full, ("svg",)]) == [full, ("svg",)]

    def test_overlapping_escalations_deduplicated(self):
        assert merge_chains([("a", "b", "c"), ("b", "d")]) == [("a", "b", "c"), ("d",)]
