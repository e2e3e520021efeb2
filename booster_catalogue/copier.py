"""Copy a resolved booster's content tree into a project directory."""

from __future__ import annotations

import shutil
import typing as typ
from pathlib import Path

from .errors import CopyError
from .logging import get_logger, log_info

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import Booster

logger = get_logger(__name__)

# Compared case-insensitively against every entry name.
EXCLUDED_ENTRIES = frozenset(
    {
        ".git",
        ".travis",
        ".travis.yml",
        ".ds_store",
        ".obsidian",
        ".gitmodules",
    }
)


def is_excluded(name: str) -> bool:
    """Return True when ``name`` is a house-keeping entry that is never copied."""
    return name.lower() in EXCLUDED_ENTRIES


def _ignore_excluded(_directory: str, names: cabc.Iterable[str]) -> set[str]:
    return {name for name in names if is_excluded(name)}


def copy_booster(booster: Booster, destination: Path | str) -> Path:
    """Copy ``booster.content_path`` into ``destination``.

    Relative structure is preserved and existing files in ``destination`` are
    overwritten. Version-control metadata, CI configuration, OS artefacts and
    module-system files are skipped at every depth. A failed copy is not
    rolled back.

    Returns
    -------
    Path
        The destination directory.

    Raises
    ------
    CopyError
        If the content tree cannot be read or the destination written.

    """
    source = booster.content_path
    target = Path(destination)
    if not source.is_dir():
        raise CopyError.failed(source, target, "booster content is not available")

    log_info(logger, "Copying booster %s into %s", booster.id, target)
    try:
        shutil.copytree(source, target, ignore=_ignore_excluded, dirs_exist_ok=True)
    except (shutil.Error, OSError) as exc:
        raise CopyError.failed(source, target, exc) from exc
    return target


__all__ = ["EXCLUDED_ENTRIES", "copy_booster", "is_excluded"]
