"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import shutil
import typing as typ

import pytest

from booster_catalogue.mirror import RepositoryMirror
from tests.helpers.catalogue_builder import CatalogueBuilder, build_standard_catalogue

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Skip git-backed tests on hosts without a git executable."""
    del config
    if shutil.which("git") is not None:
        return
    skip_git = pytest.mark.skip(reason="git executable not found on PATH")
    for item in items:
        if item.get_closest_marker("git") is not None:
            item.add_marker(skip_git)


@pytest.fixture
def catalogue_builder(tmp_path: Path) -> CatalogueBuilder:
    """Return an empty builder rooted in the test's temporary directory."""
    return CatalogueBuilder(tmp_path / "remotes")


@pytest.fixture
def standard_catalogue(catalogue_builder: CatalogueBuilder) -> CatalogueBuilder:
    """Return a published catalogue with three boosters over two missions."""
    return build_standard_catalogue(catalogue_builder)


@pytest.fixture
def mirror() -> cabc.Iterator[RepositoryMirror]:
    """Provide a mirror whose temporary clones are removed after the test."""
    repository_mirror = RepositoryMirror(clone_submodules=False)
    yield repository_mirror
    repository_mirror.cleanup()
