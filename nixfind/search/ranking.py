"""
Search result ranking and filtering.

This module scores every indexed package against a query, applies the
store path filters and returns the best matches.
"""

import logging
import os
import threading
import time
from typing import Callable, Iterable, List, Optional

from nixfind.core.exceptions import SearchCancelled
from nixfind.core.interfaces import Package, SearchOptions
from nixfind.search.fuzzy import FuzzyScorer


logger = logging.getLogger(__name__)


def store_path_exists(store_path: str, store_root: str, exists: Callable[[str], bool] = os.path.exists) -> bool:
    """
    Check whether a package's store path has been realized on disk.

    Relative store paths are resolved under store_root; absolute ones are
    checked as they are.
    """
    return exists(os.path.join(store_root, store_path))


class SearchRanker:
    """
    Ranks indexed packages against a query.

    Packages are ordered by fuzzy score, highest first. Equal scores are
    ordered by name and then attribute, so identical inputs always produce
    identical rankings.
    """

    def __init__(self, scorer: FuzzyScorer, exists: Optional[Callable[[str], bool]] = None):
        """
        Initialize the search ranker.

        Args:
            scorer: Fuzzy scorer used to score package names.
            exists: Predicate telling whether a path exists on disk. Defaults
                to os.path.exists.
        """
        self.scorer = scorer
        self.exists = exists or os.path.exists

    def keep(self, package: Package, options: SearchOptions) -> bool:
        """
        Apply the store path filters to a package.

        Packages without a store path are not installable. When
        ``filter_built`` is set, packages whose store path has not been built
        yet are dropped as well.
        """
        if package.store_path is None:
            return not options.require_store_path and not options.filter_built

        if not options.filter_built:
            return True

        return store_path_exists(package.store_path, options.store_root, self.exists)

    def rank(
        self,
        packages: Iterable[Package],
        query: str,
        options: Optional[SearchOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[Package]:
        """
        Score, filter, sort and truncate packages.

        Args:
            packages: Packages to rank, typically every row of the index.
            query: The search query.
            options: Search options. If None, uses the defaults.
            cancel: Optional event; when set, ranking stops with
                SearchCancelled.

        Returns:
            At most ``options.limit`` packages, best match first, with their
            ``score`` set.

        Raises:
            SearchCancelled: If cancel is set before ranking completes.
            SearchReadFailure: If reading packages fails.
        """
        options = options or SearchOptions()
        start = time.perf_counter()

        ranked = []
        for package in packages:
            if cancel is not None and cancel.is_set():
                raise SearchCancelled(f"search for '{query}' was cancelled")

            score = self.scorer.score(package.name, query)
            if score is None:
                if options.matches_only:
                    continue
                score = 0

            if not self.keep(package, options):
                continue

            package.score = score
            ranked.append(package)

        ranked.sort(key=lambda p: (-p.score, p.name, p.attribute))
        results = ranked[:max(options.limit, 0)]

        logger.debug(f"got results in {(time.perf_counter() - start) * 1000:.0f} ms")
        return results
