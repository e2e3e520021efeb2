"""Walk a mirrored catalogue tree and resolve its booster descriptors.

The catalogue repository lays descriptors out as
``<mission>/<runtime>/<booster>.yaml``. Each descriptor points at the
booster's own content repository, which is mirrored under
``<catalogue>/.boosters/<booster>`` and read for the secondary metadata and
description files. Failures are isolated per booster: a descriptor that
cannot be parsed or resolved is logged and left out of the result.
"""

from __future__ import annotations

import dataclasses as dc
import os
import threading
import types
import typing as typ
from pathlib import Path

from .errors import ParseError, ResolutionError, SyncError
from .logging import get_logger, log_debug, log_info, log_warning
from .mirror import is_mirrored
from .models import Booster, BoosterDescriptor, Mission, Runtime, Version
from .parser import load_booster, load_freeform, load_index

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .mirror import RepositoryMirror

logger = get_logger(__name__)

CONTENT_DIRECTORY = ".boosters"
INDEX_FILE = "metadata.json"
DESCRIPTOR_SUFFIXES = (".yaml", ".yml")
SKIPPED_DIRECTORIES = frozenset({CONTENT_DIRECTORY, ".git"})
DEFAULT_REPOSITORY_BASE_URL = "https://github.com/"

_URI_MARKERS = ("://", "git@")


class _Named(typ.Protocol):
    id: str


class ResolutionTable[T: _Named]:
    """Create-or-get table that keeps one entity instance per id.

    The table is guarded by a lock so resolution stays single-instance even if
    descriptors are ever resolved from several threads.
    """

    def __init__(self, factory: cabc.Callable[[str], T]) -> None:
        """Initialise with the factory used for ids not seen before."""
        self._factory = factory
        self._entries: dict[str, T] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        """Return the number of resolved entities."""
        return len(self._entries)

    def seed(self, entity: T) -> None:
        """Register ``entity`` under its id, replacing any previous entry."""
        with self._lock:
            self._entries[entity.id] = entity

    def resolve(
        self,
        entity_id: str,
        factory: cabc.Callable[[str], T] | None = None,
    ) -> T:
        """Return the entity for ``entity_id``, creating it when absent.

        ``factory`` overrides the table's default factory for this call only;
        it is ignored when the id is already known.
        """
        with self._lock:
            entity = self._entries.get(entity_id)
            if entity is None:
                entity = (factory or self._factory)(entity_id)
                self._entries[entity_id] = entity
            return entity


@dc.dataclass(slots=True)
class _IndexRun:
    """Mutable state of a single indexing run."""

    root: Path
    missions: ResolutionTable[Mission]
    runtimes: ResolutionTable[Runtime]
    versions: ResolutionTable[Version]
    synced: set[str] = dc.field(default_factory=set)
    boosters: list[Booster] = dc.field(default_factory=list)
    skipped: int = 0

    @property
    def content_root(self) -> Path:
        return self.root / CONTENT_DIRECTORY


class CatalogueIndexer:
    """Resolve a mirrored catalogue directory into a sorted tuple of boosters.

    Parameters
    ----------
    mirror
        Mirror used to fetch each booster's content repository.
    repository_base_url
        Prefix joined with a descriptor's ``githubRepo`` to build clone URIs.

    """

    def __init__(
        self,
        mirror: RepositoryMirror,
        *,
        repository_base_url: str = DEFAULT_REPOSITORY_BASE_URL,
    ) -> None:
        """Configure the mirror and clone URI prefix."""
        self._mirror = mirror
        self._repository_base_url = repository_base_url

    def index(self, catalogue_path: Path) -> tuple[Booster, ...]:
        """Index every booster descriptor below ``catalogue_path``.

        Returns
        -------
        tuple[Booster, ...]
            Fully resolved boosters sorted by display name.

        Raises
        ------
        OSError
            If the catalogue tree itself cannot be walked.

        """
        run = _IndexRun(
            root=catalogue_path,
            missions=ResolutionTable(_unnamed_mission),
            runtimes=ResolutionTable(_unnamed_runtime),
            versions=ResolutionTable(_unnamed_version),
        )
        self._seed_from_index(run)

        for descriptor_path in iter_descriptor_files(catalogue_path):
            booster = self._index_descriptor(run, descriptor_path)
            if booster is None:
                run.skipped += 1
            else:
                run.boosters.append(booster)

        run.boosters.sort(key=lambda booster: booster.name)
        log_info(
            logger,
            "Indexed %d boosters from %s (%d skipped)",
            len(run.boosters),
            catalogue_path,
            run.skipped,
        )
        return tuple(run.boosters)

    def repository_uri(self, github_repo: str) -> str:
        """Return the clone URI for a descriptor's ``githubRepo`` value."""
        if any(marker in github_repo for marker in _URI_MARKERS):
            return github_repo
        if Path(github_repo).is_absolute():
            return github_repo
        return f"{self._repository_base_url.rstrip('/')}/{github_repo.lstrip('/')}"

    def _seed_from_index(self, run: _IndexRun) -> None:
        index_path = run.root / INDEX_FILE
        if not index_path.is_file():
            return

        log_info(logger, "Reading metadata at %s", index_path)
        try:
            catalogue_index = load_index(index_path)
        except ParseError as exc:
            log_warning(
                logger,
                "Ignoring unreadable catalogue metadata %s: %s",
                index_path,
                exc.reason,
            )
            return

        for record in catalogue_index.missions:
            run.missions.seed(Mission(id=record.id, name=record.name))
        for record in catalogue_index.runtimes:
            run.runtimes.seed(Runtime(id=record.id, name=record.name))

    def _index_descriptor(self, run: _IndexRun, path: Path) -> Booster | None:
        booster_id = path.stem
        log_debug(logger, "Indexing %s", path)
        try:
            descriptor = load_booster(path)
            return self._resolve(run, booster_id, path, descriptor)
        except (ParseError, ResolutionError, SyncError) as exc:
            log_warning(logger, "Skipping booster %s (%s): %s", booster_id, path, exc)
            return None

    def _resolve(
        self,
        run: _IndexRun,
        booster_id: str,
        path: Path,
        descriptor: BoosterDescriptor,
    ) -> Booster:
        relative = path.relative_to(run.root)
        if len(relative.parts) < 3:
            raise ResolutionError.outside_layout(booster_id, relative)
        if not descriptor.github_repo:
            raise ResolutionError(booster_id, "githubRepo is not set")
        if not descriptor.git_ref:
            raise ResolutionError(booster_id, "gitRef is not set")
        if not descriptor.booster_descriptor_path:
            raise ResolutionError(booster_id, "boosterDescriptorPath is not set")

        mission = run.missions.resolve(path.parent.parent.name)
        runtime = run.runtimes.resolve(path.parent.name)
        version = self._resolve_version(run, descriptor)

        content_path = run.content_root / booster_id
        self._fetch_content(run, booster_id, descriptor, content_path)

        metadata_path = content_path / descriptor.booster_descriptor_path
        if not metadata_path.is_file():
            raise ResolutionError.missing_metadata(booster_id, metadata_path)
        try:
            metadata = load_freeform(metadata_path)
        except ParseError as exc:
            raise ResolutionError(booster_id, str(exc)) from exc

        return Booster(
            id=booster_id,
            name=descriptor.name or booster_id,
            mission=mission,
            runtime=runtime,
            version=version,
            github_repo=descriptor.github_repo,
            git_ref=descriptor.git_ref,
            content_path=content_path,
            descriptor_path=descriptor.booster_descriptor_path,
            description_path=descriptor.booster_description_path,
            metadata=_freeze(metadata),
            description=_read_description(
                booster_id, content_path, descriptor.booster_description_path
            ),
            build_profile=descriptor.build_profile,
            labels=tuple(descriptor.labels),
        )

    @staticmethod
    def _resolve_version(
        run: _IndexRun, descriptor: BoosterDescriptor
    ) -> Version | None:
        declared = descriptor.version
        if declared is None:
            return None
        # The first descriptor declaring a version id names it.
        return run.versions.resolve(
            declared.id,
            lambda version_id: Version(
                id=version_id,
                name=declared.name or version_id,
                key=declared.key or version_id,
            ),
        )

    def _fetch_content(
        self,
        run: _IndexRun,
        booster_id: str,
        descriptor: BoosterDescriptor,
        content_path: Path,
    ) -> None:
        """Mirror the booster repository, at most once per id per run."""
        if booster_id in run.synced:
            return

        uri = self.repository_uri(typ.cast("str", descriptor.github_repo))
        ref = typ.cast("str", descriptor.git_ref)
        if is_mirrored(content_path):
            try:
                self._mirror.sync(uri, ref, content_path)
            except SyncError as exc:
                log_warning(
                    logger,
                    "Keeping existing content for booster %s: %s",
                    booster_id,
                    exc,
                )
        else:
            self._mirror.sync(uri, ref, content_path)
        run.synced.add(booster_id)


def iter_descriptor_files(root: Path) -> cabc.Iterator[Path]:
    """Yield booster descriptor files below ``root`` in a stable order.

    Hidden files are ignored, as are the fetched-content and ``.git``
    directories.

    Raises
    ------
    OSError
        If a directory cannot be listed.

    """

    def _raise(exc: OSError) -> None:
        raise exc

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames[:] = sorted(
            name for name in dirnames if name not in SKIPPED_DIRECTORIES
        )
        for filename in sorted(filenames):
            lowered = filename.lower()
            if lowered.startswith("."):
                continue
            if lowered.endswith(DESCRIPTOR_SUFFIXES):
                yield Path(dirpath) / filename


def _unnamed_mission(mission_id: str) -> Mission:
    return Mission(id=mission_id, name=mission_id)


def _unnamed_runtime(runtime_id: str) -> Runtime:
    return Runtime(id=runtime_id, name=runtime_id)


def _unnamed_version(version_id: str) -> Version:
    return Version(id=version_id, name=version_id, key=version_id)


def _freeze(value: typ.Any) -> typ.Any:  # noqa: ANN401 - arbitrary YAML values
    """Return ``value`` with mappings made read-only and lists turned into tuples."""
    if isinstance(value, dict):
        return types.MappingProxyType(
            {key: _freeze(item) for key, item in value.items()}
        )
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


def _read_description(
    booster_id: str, content_path: Path, relative: str | None
) -> str | None:
    if not relative:
        return None
    description_path = content_path / relative
    if not description_path.is_file():
        return None
    try:
        raw = description_path.read_bytes()
    except OSError as exc:
        message = f"cannot read description {description_path}: {exc}"
        raise ResolutionError(booster_id, message) from exc
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        log_warning(
            logger,
            "Description %s of booster %s is not valid UTF-8: %s",
            description_path,
            booster_id,
            exc,
        )
        return raw.decode("utf-8", errors="replace")


__all__ = [
    "CONTENT_DIRECTORY",
    "INDEX_FILE",
    "CatalogueIndexer",
    "ResolutionTable",
    "iter_descriptor_files",
]
