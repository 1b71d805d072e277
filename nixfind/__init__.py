"""
nixfind - fuzzy search over a local index of nixpkgs.

This package builds an SQLite index from a nixpkgs registry and answers
approximate package name queries against it.
"""

__version__ = "0.1.0"

from .core.exceptions import NixfindError, MalformedRegistry, MissingVersion, StorageFailure, SearchReadFailure
from .index.builder import IndexBuilder
from .search.engine import PackageSearchEngine

__all__ = [
    "IndexBuilder",
    "PackageSearchEngine",
    "NixfindError",
    "MalformedRegistry",
    "MissingVersion",
    "StorageFailure",
    "SearchReadFailure"
]
