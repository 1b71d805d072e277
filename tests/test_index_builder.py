"""
Tests for full index builds.
"""

from unittest.mock import Mock

import pytest

from nixfind.core.exceptions import MalformedRegistry, MissingVersion, SubprocessFailure
from nixfind.index.builder import IndexBuilder
from nixfind.index.reader import IndexReader
from nixfind.registry.generator import RegistryGenerator
from tests.fixtures.sample_registry import SAMPLE_INDEXED_ATTRIBUTES, SAMPLE_REGISTRY, sample_registry_json


def test_build_from_file(registry_file, temp_dir):
    output = temp_dir / "index.sqlite"
    result = IndexBuilder(output).build_from_file(registry_file)

    assert result.package_count == len(SAMPLE_INDEXED_ATTRIBUTES)
    assert result.registry_size == len(SAMPLE_REGISTRY)
    assert result.output == str(output)
    assert result.generate_seconds is None
    assert sorted(p.attribute for p in IndexReader(output).iter_packages()) == SAMPLE_INDEXED_ATTRIBUTES
    assert IndexReader(output).read_info().source == f"registry:{registry_file}"


def test_build_from_generator(temp_dir):
    generator = Mock(spec=RegistryGenerator)
    generator.nixpkgs = "/src/nixpkgs"
    generator.generate.return_value = sample_registry_json().encode("utf-8")
    output = temp_dir / "index.sqlite"

    result = IndexBuilder(output).build_from_generator(generator, save_registry="saved.json")

    generator.generate.assert_called_once_with(save_registry="saved.json")
    assert result.package_count == len(SAMPLE_INDEXED_ATTRIBUTES)
    assert result.generate_seconds is not None
    assert IndexReader(output).read_info().source == "nixpkgs:/src/nixpkgs"


def test_generator_failure_keeps_previous_index(registry_file, temp_dir):
    output = temp_dir / "index.sqlite"
    IndexBuilder(output).build_from_file(registry_file)
    before = output.read_bytes()

    generator = Mock(spec=RegistryGenerator)
    generator.generate.side_effect = SubprocessFailure("nix-env exited with status 1")

    with pytest.raises(SubprocessFailure):
        IndexBuilder(output).build_from_generator(generator)

    assert output.read_bytes() == before


def test_malformed_registry_file(temp_dir):
    registry = temp_dir / "registry.json"
    registry.write_text("[1, 2, 3]")
    output = temp_dir / "index.sqlite"

    with pytest.raises(MalformedRegistry):
        IndexBuilder(output).build_from_file(registry)

    assert not output.exists()


def test_missing_version_aborts_build(temp_dir):
    registry = temp_dir / "registry.json"
    registry.write_text('{"a": {"outputs": {"out": "/nix/store/x-a"}}}')
    output = temp_dir / "index.sqlite"

    with pytest.raises(MissingVersion):
        IndexBuilder(output).build_from_file(registry)

    assert not output.exists()


def test_skip_missing_version(temp_dir):
    registry = temp_dir / "registry.json"
    registry.write_text(
        '{"a": {"outputs": {"out": "/nix/store/x-a"}},'
        ' "b": {"version": "1", "outputs": {"out": "/nix/store/x-b"}}}'
    )
    output = temp_dir / "index.sqlite"

    result = IndexBuilder(output, skip_missing_version=True).build_from_file(registry)

    assert result.package_count == 1
    assert [p.attribute for p in IndexReader(output).iter_packages()] == ["b"]
