"""
Registry decoding for nixfind.

This module turns the JSON document produced by the registry generator into
a Registry of RegistryEntry objects.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, BinaryIO, Dict, Union

from jsonschema.exceptions import best_match

from nixfind.core.exceptions import MalformedRegistry
from nixfind.core.interfaces import Registry, RegistryEntry, RegistryMeta
from nixfind.registry.schema import format_error, registry_validator


logger = logging.getLogger(__name__)


_ENTRY_FIELDS = {"pname", "version", "outputs", "meta"}
_META_FIELDS = {"description", "longDescription"}


def parse_registry(document: Union[bytes, str]) -> Registry:
    """
    Decode a registry document.

    Args:
        document: UTF-8 encoded JSON bytes, or already decoded text.

    Returns:
        Mapping from attribute name to RegistryEntry.

    Raises:
        MalformedRegistry: If the document is not valid JSON or does not have
            the shape of a registry.
    """
    start = time.perf_counter()

    try:
        if isinstance(document, bytes):
            document = document.decode("utf-8")
        data = json.loads(document)
    except UnicodeDecodeError as e:
        raise MalformedRegistry(f"registry is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise MalformedRegistry(f"registry is not valid JSON: {e}") from e
    except RecursionError as e:
        raise MalformedRegistry("registry is nested too deeply to decode") from e

    registry = registry_from_data(data)

    logger.info(f"parsed registry in {time.perf_counter() - start:.4f} seconds")
    return registry


def load_registry(source: Union[str, Path, BinaryIO]) -> Registry:
    """
    Load a registry from a file path or a binary stream.

    Raises:
        MalformedRegistry: If the content cannot be decoded.
        OSError: If the file cannot be opened.
    """
    if isinstance(source, (str, Path)):
        logger.debug(f"Reading registry from {source}")
        with open(source, 'rb') as f:
            return parse_registry(f.read())

    return parse_registry(source.read())


def registry_from_data(data: Any) -> Registry:
    """
    Build a Registry from already decoded JSON data.

    Raises:
        MalformedRegistry: If the data does not match the registry schema.
    """
    try:
        error = best_match(registry_validator.iter_errors(data))
    except RecursionError as e:
        raise MalformedRegistry("registry is nested too deeply to validate") from e

    if error is not None:
        raise MalformedRegistry(f"registry has an unexpected shape: {format_error(error)}")

    return {attribute: _entry_from_data(attribute, raw) for attribute, raw in data.items()}


def _entry_from_data(attribute: str, raw: Dict[str, Any]) -> RegistryEntry:
    raw_meta = raw.get("meta") or {}
    meta = RegistryMeta(
        description=raw_meta.get("description"),
        long_description=raw_meta.get("longDescription"),
        extra={k: v for k, v in raw_meta.items() if k not in _META_FIELDS},
    )

    return RegistryEntry(
        attribute=attribute,
        pname=raw.get("pname"),
        version=raw.get("version"),
        outputs=dict(raw.get("outputs") or {}),
        meta=meta,
        extra={k: v for k, v in raw.items() if k not in _ENTRY_FIELDS},
    )
