"""
Unit tests for search ranking and filtering.
"""

import threading
import unittest

import pytest

from nixfind.core.exceptions import SearchCancelled
from nixfind.core.interfaces import Package, SearchOptions
from nixfind.search.fuzzy import FuzzyScorer
from nixfind.search.ranking import SearchRanker, store_path_exists
from tests.fixtures.sample_registry import make_package


class TestSearchRanker(unittest.TestCase):
    """Test cases for SearchRanker class."""

    def setUp(self):
        """Set up test fixtures."""
        self.ranker = SearchRanker(FuzzyScorer())
        self.packages = [
            make_package("firefox"),
            make_package("chromium"),
            make_package("python3Packages.fox", name="fox"),
        ]

    def test_ranking_order(self):
        """Matching packages come before non-matching ones."""
        results = self.ranker.rank(self.packages, "fox")
        names = [p.name for p in results]

        self.assertEqual(set(names[:2]), {"fox", "firefox"})
        self.assertEqual(names[2], "chromium")

    def test_ranking_is_consistent(self):
        """Identical input ranks identically."""
        first = [p.attribute for p in self.ranker.rank(list(self.packages), "fox")]
        second = [p.attribute for p in self.ranker.rank(list(reversed(self.packages)), "fox")]

        self.assertEqual(first, second)

    def test_scores_populated_and_descending(self):
        """Results carry their score, best first."""
        results = self.ranker.rank(self.packages, "fox")
        scores = [p.score for p in results]

        self.assertEqual(scores, sorted(scores, reverse=True))
        self.assertEqual(results[-1].score, 0)
        self.assertGreater(results[0].score, 0)

    def test_matches_only(self):
        """Non-matching packages can be dropped."""
        results = self.ranker.rank(self.packages, "fox", SearchOptions(matches_only=True))
        self.assertNotIn("chromium", [p.name for p in results])

    def test_limit(self):
        """Results are truncated to the limit."""
        for limit in range(0, 5):
            results = self.ranker.rank(list(self.packages), "fox", SearchOptions(limit=limit))
            self.assertEqual(len(results), min(limit, len(self.packages)))

    def test_tie_break_by_name_then_attribute(self):
        """Equal scores are ordered by name, then attribute."""
        packages = [
            make_package("b.hello", name="hello"),
            make_package("a.hello", name="hello"),
            make_package("aaa"),
        ]
        results = self.ranker.rank(packages, "")

        self.assertEqual([p.attribute for p in results], ["aaa", "a.hello", "b.hello"])

    def test_missing_store_path_dropped(self):
        """Packages without a store path are not installable."""
        packages = self.packages + [Package(attribute="stdenv", name="stdenv", version="1", store_path=None)]
        results = self.ranker.rank(packages, "std")

        self.assertNotIn("stdenv", [p.attribute for p in results])

    def test_missing_store_path_kept_when_allowed(self):
        """The store path requirement can be turned off on its own."""
        packages = [Package(attribute="stdenv", name="stdenv", version="1", store_path=None)]
        results = self.ranker.rank(packages, "std", SearchOptions(require_store_path=False))

        self.assertEqual([p.attribute for p in results], ["stdenv"])


def test_filter_built_uses_store_root():
    seen = []

    def exists(path):
        seen.append(path)
        return path.endswith("firefox-1.0")

    ranker = SearchRanker(FuzzyScorer(), exists=exists)
    packages = [
        make_package("firefox", store_path="firefox-1.0"),
        make_package("fox", store_path="fox-1.0"),
    ]

    results = ranker.rank(packages, "fox", SearchOptions(filter_built=True, store_root="/nix/store"))

    assert [p.attribute for p in results] == ["firefox"]
    assert sorted(seen) == ["/nix/store/firefox-1.0", "/nix/store/fox-1.0"]


def test_filter_built_absolute_store_paths(temp_dir):
    built = temp_dir / "abc-firefox-1.0"
    built.mkdir()
    packages = [
        make_package("firefox", store_path=str(built)),
        make_package("fox", store_path=str(temp_dir / "def-fox-1.0")),
    ]

    ranker = SearchRanker(FuzzyScorer())
    options = SearchOptions(filter_built=True, store_root=str(temp_dir))

    first = {p.attribute for p in ranker.rank(list(packages), "fox", options)}
    second = {p.attribute for p in ranker.rank(list(packages), "fox", options)}

    assert first == {"firefox"}
    assert first == second


def test_filter_built_off_skips_existence_check():
    def exists(path):
        raise AssertionError("existence should not be checked")

    ranker = SearchRanker(FuzzyScorer(), exists=exists)
    results = ranker.rank([make_package("fox")], "fox")

    assert len(results) == 1


def test_filter_built_drops_null_store_path_even_when_allowed():
    ranker = SearchRanker(FuzzyScorer(), exists=lambda path: True)
    packages = [Package(attribute="stdenv", name="stdenv", version="1", store_path=None)]
    options = SearchOptions(filter_built=True, require_store_path=False)

    assert ranker.rank(packages, "std", options) == []


def test_store_path_exists_relative_and_absolute():
    calls = []
    store_path_exists("abc-hello", "/nix/store", exists=calls.append)
    store_path_exists("/nix/store/abc-hello", "/nix/store", exists=calls.append)

    assert calls == ["/nix/store/abc-hello", "/nix/store/abc-hello"]


def test_cancel_stops_ranking():
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(SearchCancelled):
        SearchRanker(FuzzyScorer()).rank([make_package("fox")], "fox", cancel=cancel)


def test_rank_propagates_read_errors():
    def rows():
        yield make_package("fox")
        raise RuntimeError("corrupt row")

    with pytest.raises(RuntimeError):
        SearchRanker(FuzzyScorer()).rank(rows(), "fox")
