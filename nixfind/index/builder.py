"""
Full index builds.

IndexBuilder wires the registry loader, the normalizer and the index writer
together for the two ways a registry can be obtained: a pre-generated file,
or a fresh nix-env evaluation.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Union

from nixfind.core.interfaces import BuildResult, Registry
from nixfind.index.writer import IndexWriter
from nixfind.registry.generator import RegistryGenerator
from nixfind.registry.loader import load_registry, parse_registry
from nixfind.registry.normalizer import normalize_registry


logger = logging.getLogger(__name__)


class IndexBuilder:
    """
    Builds an index from a registry.
    """

    def __init__(self, output: Union[str, Path], skip_missing_version: bool = False):
        """
        Initialize the index builder.

        Args:
            output: Destination of the index database.
            skip_missing_version: Skip installable entries that have no
                version instead of failing the build.
        """
        self.writer = IndexWriter(output)
        self.skip_missing_version = skip_missing_version

    def build_from_file(self, registry_path: Union[str, Path]) -> BuildResult:
        """
        Build the index from a registry file.

        Raises:
            MalformedRegistry: If the registry cannot be decoded.
            MissingVersion: If an installable entry has no version.
            StorageFailure: If the index cannot be written.
            OSError: If the registry file cannot be read.
        """
        start = time.perf_counter()
        registry = load_registry(registry_path)
        parse_seconds = time.perf_counter() - start

        return self._write(registry, source=f"registry:{registry_path}", parse_seconds=parse_seconds)

    def build_from_generator(
        self,
        generator: RegistryGenerator,
        save_registry: Optional[Union[str, Path]] = None,
    ) -> BuildResult:
        """
        Build the index by running the registry generator.

        Raises:
            SubprocessFailure: If the generator fails.
            MalformedRegistry: If its output cannot be decoded.
            MissingVersion: If an installable entry has no version.
            StorageFailure: If the index cannot be written.
        """
        start = time.perf_counter()
        document = generator.generate(save_registry=save_registry)
        generate_seconds = time.perf_counter() - start

        start = time.perf_counter()
        registry = parse_registry(document)
        parse_seconds = time.perf_counter() - start

        source = f"nixpkgs:{generator.nixpkgs or '<nixpkgs>'}"
        result = self._write(registry, source=source, parse_seconds=parse_seconds)
        result.generate_seconds = generate_seconds
        return result

    def _write(self, registry: Registry, source: str, parse_seconds: float) -> BuildResult:
        start = time.perf_counter()
        packages = normalize_registry(registry, skip_missing_version=self.skip_missing_version)
        count = self.writer.write(packages, source=source)

        return BuildResult(
            output=str(self.writer.path),
            package_count=count,
            registry_size=len(registry),
            parse_seconds=parse_seconds,
            write_seconds=time.perf_counter() - start,
        )
