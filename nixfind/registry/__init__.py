"""
Registry loading and normalization.

This module decodes registry documents produced by nix-env and turns their
entries into index records.
"""

from .generator import RegistryGenerator
from .loader import load_registry, parse_registry, registry_from_data
from .normalizer import normalize_entry, normalize_registry

__all__ = [
    'RegistryGenerator',
    'load_registry',
    'parse_registry',
    'registry_from_data',
    'normalize_entry',
    'normalize_registry'
]
