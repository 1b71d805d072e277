"""
Core interfaces for nixfind.

This module contains the data models shared by the index build and the
search phase.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


DEFAULT_STORE_ROOT = "/nix/store"


@dataclass
class RegistryMeta:
    """
    The subset of a registry entry's ``meta`` attribute that gets indexed.
    """
    description: Optional[str] = None
    long_description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RegistryEntry:
    """
    One raw entry of the registry, as decoded from the generator's JSON.

    Fields the index does not use are kept untouched in ``extra``.
    """
    attribute: str
    pname: Optional[str] = None
    version: Optional[str] = None
    outputs: Dict[str, str] = field(default_factory=dict)
    meta: RegistryMeta = field(default_factory=RegistryMeta)
    extra: Dict[str, Any] = field(default_factory=dict)


# Attribute name -> entry
Registry = Dict[str, RegistryEntry]


@dataclass
class Package:
    """
    Canonical, index-ready package record.

    ``score`` is only set on search results and is never written to the index.
    """
    attribute: str
    name: str
    version: str
    store_path: Optional[str]
    description: Optional[str] = None
    long_description: Optional[str] = None
    score: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attribute": self.attribute,
            "name": self.name,
            "version": self.version,
            "store_path": self.store_path,
            "description": self.description,
            "long_description": self.long_description,
            "score": self.score,
        }


@dataclass
class SearchOptions:
    """
    Options controlling how search results are filtered and truncated.
    """
    limit: int = 30
    filter_built: bool = False
    require_store_path: bool = True
    matches_only: bool = False
    store_root: str = DEFAULT_STORE_ROOT


@dataclass
class IndexInfo:
    """
    Build metadata stored alongside an index.
    """
    schema_version: int
    built_at: Optional[str] = None
    source: Optional[str] = None
    package_count: int = 0


@dataclass
class BuildResult:
    """
    Result of a full index build.
    """
    output: str
    package_count: int
    registry_size: int
    parse_seconds: float = 0.0
    write_seconds: float = 0.0
    generate_seconds: Optional[float] = None
