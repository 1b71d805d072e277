"""
Pytest configuration and fixtures for nixfind tests.
"""

import tempfile
from pathlib import Path
from typing import List

import pytest

from nixfind.core.interfaces import Package
from nixfind.index.writer import IndexWriter
from nixfind.registry.loader import registry_from_data
from nixfind.search.fuzzy import FuzzyScorer
from tests.fixtures.sample_registry import SAMPLE_REGISTRY, make_package, sample_registry_json


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_registry():
    """Decoded sample registry."""
    return registry_from_data(SAMPLE_REGISTRY)


@pytest.fixture
def registry_file(temp_dir):
    """Sample registry written to disk."""
    path = temp_dir / "registry.json"
    path.write_text(sample_registry_json(), encoding="utf-8")
    return path


@pytest.fixture
def scorer():
    """Default fuzzy scorer."""
    return FuzzyScorer()


@pytest.fixture
def browser_packages() -> List[Package]:
    """Packages named firefox, chromium and fox."""
    return [
        make_package("firefox"),
        make_package("chromium"),
        make_package("python3Packages.fox", name="fox"),
    ]


@pytest.fixture
def index_file(temp_dir, browser_packages):
    """Index containing browser_packages."""
    path = temp_dir / "index.sqlite"
    IndexWriter(path).write(browser_packages, source="test")
    return path
