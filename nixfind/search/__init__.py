"""
Package search.

This module provides fuzzy scoring of package names and ranking of indexed
packages against a query.
"""

from .engine import PackageSearchEngine
from .fuzzy import FuzzyScorer, ScoringWeights
from .ranking import SearchRanker

__all__ = [
    'PackageSearchEngine',
    'FuzzyScorer',
    'ScoringWeights',
    'SearchRanker'
]
