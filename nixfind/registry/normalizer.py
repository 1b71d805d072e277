"""
Normalization of registry entries into index records.

Entries without an ``out`` output are not installable (stdenv, bootstrap
tools) and are left out of the index. Every other entry becomes exactly one
Package.
"""

import logging
from typing import Iterator, Optional

from nixfind.core.exceptions import MissingVersion
from nixfind.core.interfaces import Package, Registry, RegistryEntry


logger = logging.getLogger(__name__)


def normalize_entry(attribute: str, entry: RegistryEntry) -> Optional[Package]:
    """
    Convert one registry entry into a Package.

    Args:
        attribute: The entry's registry key.
        entry: The raw entry.

    Returns:
        The normalized Package, or None if the entry has no ``out`` output.

    Raises:
        MissingVersion: If the entry is installable but has no version.
    """
    store_path = entry.outputs.get("out")
    if store_path is None:
        logger.debug(f"Skipping {attribute}: no 'out' output")
        return None

    if entry.version is None:
        raise MissingVersion(attribute)

    return Package(
        attribute=attribute,
        name=entry.pname if entry.pname is not None else attribute,
        version=entry.version,
        store_path=str(store_path),
        description=entry.meta.description,
        long_description=entry.meta.long_description,
    )


def normalize_registry(registry: Registry, skip_missing_version: bool = False) -> Iterator[Package]:
    """
    Normalize a whole registry.

    Packages are yielded in attribute order so that two builds from the same
    registry produce identical indexes.

    Args:
        registry: The registry to normalize.
        skip_missing_version: Skip entries without a version with a warning
            instead of raising MissingVersion.

    Yields:
        One Package per installable entry.

    Raises:
        MissingVersion: If an installable entry has no version and
            skip_missing_version is not set.
    """
    skipped = 0
    for attribute in sorted(registry):
        try:
            package = normalize_entry(attribute, registry[attribute])
        except MissingVersion:
            if not skip_missing_version:
                raise
            logger.warning(f"Skipping {attribute}: no version")
            package = None

        if package is None:
            skipped += 1
            continue

        yield package

    logger.debug(f"Skipped {skipped} of {len(registry)} registry entries")
