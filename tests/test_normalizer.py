"""
Unit tests for registry normalization.
"""

import unittest

import pytest

from nixfind.core.exceptions import MissingVersion
from nixfind.core.interfaces import RegistryEntry, RegistryMeta
from nixfind.registry.loader import registry_from_data
from nixfind.registry.normalizer import normalize_entry, normalize_registry
from tests.fixtures.sample_registry import SAMPLE_INDEXED_ATTRIBUTES, SAMPLE_REGISTRY


class TestNormalizeEntry(unittest.TestCase):
    """Test cases for normalize_entry."""

    def test_full_entry(self):
        """All fields are carried over."""
        entry = RegistryEntry(
            attribute="firefox",
            pname="firefox",
            version="128.0",
            outputs={"out": "/nix/store/abc-firefox-128.0"},
            meta=RegistryMeta(description="Web browser", long_description="Long text"),
        )
        package = normalize_entry("firefox", entry)

        self.assertEqual(package.attribute, "firefox")
        self.assertEqual(package.name, "firefox")
        self.assertEqual(package.version, "128.0")
        self.assertEqual(package.store_path, "/nix/store/abc-firefox-128.0")
        self.assertEqual(package.description, "Web browser")
        self.assertEqual(package.long_description, "Long text")
        self.assertIsNone(package.score)

    def test_name_falls_back_to_attribute(self):
        """Entries without pname are named after their attribute."""
        entry = RegistryEntry(attribute="hello", version="2.12", outputs={"out": "/nix/store/x-hello"})
        package = normalize_entry("hello", entry)

        self.assertEqual(package.name, "hello")

    def test_no_out_output_is_excluded(self):
        """Entries without an out output are skipped, not an error."""
        entry = RegistryEntry(attribute="stdenv", version="1", outputs={"dev": "/nix/store/x-dev"})
        self.assertIsNone(normalize_entry("stdenv", entry))

    def test_no_out_output_without_version_is_excluded(self):
        """Exclusion wins over the missing version."""
        entry = RegistryEntry(attribute="bootstrapTools")
        self.assertIsNone(normalize_entry("bootstrapTools", entry))

    def test_missing_version_raises(self):
        """Installable entries must have a version."""
        entry = RegistryEntry(attribute="broken", outputs={"out": "/nix/store/x-broken"})

        with self.assertRaises(MissingVersion) as ctx:
            normalize_entry("broken", entry)
        self.assertEqual(ctx.exception.attribute, "broken")

    def test_descriptions_none_preserved(self):
        """Missing descriptions stay None."""
        entry = RegistryEntry(attribute="a", version="1", outputs={"out": "/nix/store/x-a"})
        package = normalize_entry("a", entry)

        self.assertIsNone(package.description)
        self.assertIsNone(package.long_description)


def test_normalize_registry_completeness(sample_registry):
    packages = list(normalize_registry(sample_registry))
    attributes = [p.attribute for p in packages]

    assert sorted(attributes) == SAMPLE_INDEXED_ATTRIBUTES
    assert len(attributes) == len(set(attributes))
    for attribute, raw in SAMPLE_REGISTRY.items():
        assert (attribute in attributes) == ("out" in raw.get("outputs", {}))


def test_normalize_registry_is_deterministic(sample_registry):
    first = list(normalize_registry(sample_registry))
    second = list(normalize_registry(dict(reversed(list(sample_registry.items())))))

    assert first == second


def test_normalize_registry_name_fallback(sample_registry):
    packages = {p.attribute: p for p in normalize_registry(sample_registry)}

    assert packages["hello-unversioned-name"].name == "hello-unversioned-name"
    assert packages["python3Packages.fox"].name == "fox"


def test_normalize_registry_missing_version_aborts():
    registry = registry_from_data({
        "a": {"version": "1", "outputs": {"out": "/nix/store/x-a"}},
        "b": {"outputs": {"out": "/nix/store/x-b"}},
    })

    with pytest.raises(MissingVersion):
        list(normalize_registry(registry))


def test_normalize_registry_skip_missing_version(caplog):
    registry = registry_from_data({
        "a": {"version": "1", "outputs": {"out": "/nix/store/x-a"}},
        "b": {"outputs": {"out": "/nix/store/x-b"}},
    })

    packages = list(normalize_registry(registry, skip_missing_version=True))

    assert [p.attribute for p in packages] == ["a"]
    assert "Skipping b: no version" in caplog.text
