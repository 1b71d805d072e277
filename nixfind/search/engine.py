"""
Package search engine.

This module runs a query against an index: every package is read from the
index and handed to the ranker.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Union

from nixfind.core.interfaces import Package, SearchOptions
from nixfind.index.reader import IndexReader
from nixfind.search.fuzzy import FuzzyScorer
from nixfind.search.ranking import SearchRanker


logger = logging.getLogger(__name__)


class PackageSearchEngine:
    """
    Searches an index for packages whose names fuzzily match a query.
    """

    def __init__(
        self,
        index_path: Union[str, Path],
        scorer: Optional[FuzzyScorer] = None,
        exists: Optional[Callable[[str], bool]] = None,
    ):
        """
        Initialize the search engine.

        Args:
            index_path: Path of the index database.
            scorer: Fuzzy scorer to rank with. If None, a default scorer is
                created.
            exists: Path existence predicate used by the built filter.
        """
        self.reader = IndexReader(index_path)
        self.ranker = SearchRanker(scorer or FuzzyScorer(), exists=exists)

    def search(
        self,
        query: str,
        options: Optional[SearchOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[Package]:
        """
        Search the index.

        Raises:
            SearchReadFailure: If the index cannot be read or a row is corrupt.
            SearchCancelled: If cancel is set during the search.
        """
        logger.debug(f"Searching {self.reader.path} for '{query}'")
        return self.ranker.rank(self.reader.iter_packages(), query, options, cancel=cancel)
