"""
Index storage for nixfind.

This module writes normalized packages to an SQLite index and reads them
back for searching.
"""

from .builder import IndexBuilder
from .reader import IndexReader
from .writer import IndexWriter

__all__ = [
    'IndexBuilder',
    'IndexReader',
    'IndexWriter'
]
