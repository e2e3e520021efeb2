"""Unit tests for copying booster content into a project directory."""

from __future__ import annotations

import typing as typ

import pytest

from booster_catalogue.copier import copy_booster, is_excluded
from booster_catalogue.errors import CopyError
from booster_catalogue.models import Booster, Mission, Runtime
from tests.helpers.git_repos import write_files

if typ.TYPE_CHECKING:
    from pathlib import Path


def _booster(content_path: Path) -> Booster:
    return Booster(
        id="crud-vertx",
        name="CRUD - Vert.x",
        mission=Mission(id="crud", name="CRUD"),
        runtime=Runtime(id="vert.x", name="Eclipse Vert.x"),
        github_repo="acme/crud-vertx",
        git_ref="master",
        content_path=content_path,
        descriptor_path=".openshiftio/booster.yaml",
    )


@pytest.fixture
def content(tmp_path: Path) -> Path:
    """Lay out booster content including house-keeping entries."""
    root = tmp_path / "content"
    write_files(
        root,
        {
            "README.md": "# CRUD\n",
            "pom.xml": "<project/>\n",
            "src/main/java/App.java": "class App {}\n",
            ".openshiftio/booster.yaml": "name: CRUD\n",
            ".git/HEAD": "ref: refs/heads/master\n",
            ".gitmodules": "",
            ".travis.yml": "language: java\n",
            ".travis/deploy.sh": "#!/bin/sh\n",
            ".DS_Store": "junk",
            ".obsidian/workspace": "{}",
            "src/.DS_Store": "junk",
            "src/main/.git": "gitdir: ../../.git/modules/main\n",
            ".gitignore": "target/\n",
        },
    )
    return root


def _relative_files(root: Path) -> set[str]:
    return {
        path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file()
    }


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        pytest.param(".git", True, id="git"),
        pytest.param(".DS_Store", True, id="ds-store-mixed-case"),
        pytest.param(".TRAVIS.YML", True, id="upper-case"),
        pytest.param(".gitignore", False, id="gitignore"),
        pytest.param("README.md", False, id="readme"),
    ],
)
def test_is_excluded(name: str, expected: bool) -> None:  # noqa: FBT001
    """Denylisted names match regardless of case; others are kept."""
    assert is_excluded(name) is expected, f"Unexpected exclusion for {name!r}"


def test_copy_skips_denylisted_entries_at_every_depth(
    content: Path, tmp_path: Path
) -> None:
    """Project files are copied while house-keeping entries are left out."""
    destination = tmp_path / "project"

    result = copy_booster(_booster(content), destination)

    assert result == destination, "Expected the destination to be returned"
    assert _relative_files(destination) == {
        "README.md",
        "pom.xml",
        "src/main/java/App.java",
        ".openshiftio/booster.yaml",
        ".gitignore",
    }, "Unexpected copied files"
    assert (destination / "README.md").read_text(encoding="utf-8") == "# CRUD\n", (
        "Expected file contents to be preserved"
    )


def test_copy_overwrites_existing_files(content: Path, tmp_path: Path) -> None:
    """Existing destination files are replaced and unrelated ones kept."""
    destination = tmp_path / "project"
    write_files(destination, {"README.md": "old\n", "notes.txt": "mine\n"})

    copy_booster(_booster(content), str(destination))

    assert (destination / "README.md").read_text(encoding="utf-8") == "# CRUD\n", (
        "Expected README.md to be overwritten"
    )
    assert (destination / "notes.txt").read_text(encoding="utf-8") == "mine\n", (
        "Unrelated files must survive the copy"
    )


def test_missing_content_raises_copy_error(tmp_path: Path) -> None:
    """A booster whose content was never fetched cannot be copied."""
    with pytest.raises(CopyError, match="booster content is not available"):
        copy_booster(_booster(tmp_path / "missing"), tmp_path / "project")


def test_unwritable_destination_raises_copy_error(
    content: Path, tmp_path: Path
) -> None:
    """A destination that is a regular file surfaces as CopyError."""
    blocker = tmp_path / "project"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(CopyError, match="Failed to copy"):
        copy_booster(_booster(content), blocker)
