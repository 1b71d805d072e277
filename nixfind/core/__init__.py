"""Core components for nixfind."""

from .configuration import ConfigurationManager, NixfindConfig
from .interfaces import (
    BuildResult,
    IndexInfo,
    Package,
    Registry,
    RegistryEntry,
    RegistryMeta,
    SearchOptions
)
from .exceptions import (
    NixfindError,
    MalformedRegistry,
    MissingVersion,
    StorageFailure,
    SearchReadFailure,
    SearchCancelled,
    SubprocessFailure,
    ConfigurationError
)

__all__ = [
    "ConfigurationManager",
    "NixfindConfig",
    "BuildResult",
    "IndexInfo",
    "Package",
    "Registry",
    "RegistryEntry",
    "RegistryMeta",
    "SearchOptions",
    "NixfindError",
    "MalformedRegistry",
    "MissingVersion",
    "StorageFailure",
    "SearchReadFailure",
    "SearchCancelled",
    "SubprocessFailure",
    "ConfigurationError"
]
