"""Booster catalogue service tying indexing, publication and queries together.

Lifecycle: the service starts with an empty snapshot. :meth:`start` launches
the background worker, which mirrors the catalogue repository, indexes it and
publishes the result. Later runs follow the configured period. :meth:`stop`
cancels pending runs and releases the temporary mirrors.

Example:
>>> service = BoosterCatalogueService(CatalogueConfig())
>>> with service:
...     service.wait_until_indexed(timeout=300)
...     missions = service.get_missions()

"""

from __future__ import annotations

import threading
import typing as typ

from .config import LOG_LEVEL_ENV, CatalogueConfig
from .copier import copy_booster
from .errors import SyncError
from .indexer import CatalogueIndexer
from .logging import (
    configure_logging,
    get_logger,
    log_error,
    log_exception,
    log_info,
    log_warning,
)
from .mirror import RepositoryMirror
from .scheduler import RefreshScheduler
from .snapshot import SnapshotStore

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import types
    from pathlib import Path

    from .models import Booster, CatalogueSnapshot, Mission, Runtime, Version
    from .snapshot import MissionRef, RuntimeRef, VersionRef

logger = get_logger(__name__)


class BoosterCatalogueService:
    """Expose the booster catalogue to wizard steps and other collaborators.

    Parameters
    ----------
    config
        Catalogue settings. ``None`` reads them from the environment.
    mirror
        Repository mirror to use; one is built from ``config`` when omitted.

    """

    def __init__(
        self,
        config: CatalogueConfig | None = None,
        *,
        mirror: RepositoryMirror | None = None,
    ) -> None:
        """Wire the mirror, indexer, snapshot store and scheduler."""
        self.config = config if config is not None else CatalogueConfig.from_env()
        self._mirror = mirror or RepositoryMirror(
            clone_submodules=self.config.clone_submodules,
            timeout_s=self.config.git_timeout_s,
        )
        self._indexer = CatalogueIndexer(
            self._mirror,
            repository_base_url=self.config.repository_base_url,
        )
        self._store = SnapshotStore()
        self._scheduler = RefreshScheduler(self.index, self.config.index_period_s)
        self._catalogue_path: Path | None = None
        self._index_lock = threading.Lock()
        self._indexed = threading.Event()

    @property
    def catalogue_path(self) -> Path | None:
        """Return the local catalogue mirror, once one has been cloned."""
        return self._catalogue_path

    @property
    def store(self) -> SnapshotStore:
        """Return the snapshot store backing the queries."""
        return self._store

    def __enter__(self) -> typ.Self:
        """Start background indexing on entry."""
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: types.TracebackType | None,
    ) -> None:
        """Stop indexing and release mirrors on exit."""
        self.stop()

    def start(self) -> None:
        """Install the configured log level, then begin background indexing."""
        if self.config.log_level is not None:
            self._configure_logging(self.config.log_level)
        self._scheduler.start()

    @staticmethod
    def _configure_logging(log_level: str) -> None:
        normalized_level, invalid_level = configure_logging(log_level)
        if invalid_level:
            log_warning(
                logger,
                "Invalid %s %r, falling back to %s",
                LOG_LEVEL_ENV,
                log_level,
                normalized_level,
            )

    def request_refresh(self) -> None:
        """Queue a re-index outside the regular schedule."""
        self._scheduler.request_refresh()

    def stop(self, *, timeout: float | None = None) -> None:
        """Cancel pending runs, let an in-flight run finish, release mirrors."""
        self._scheduler.stop(wait=True, timeout=timeout)
        if self._scheduler.is_indexing:
            # The running index still needs its mirrors; exit cleanup covers them.
            return
        self._mirror.cleanup()
        self._catalogue_path = None

    def wait_until_indexed(self, timeout: float | None = None) -> bool:
        """Block until a snapshot has been published; return False on timeout."""
        return self._indexed.wait(timeout)

    def index(self) -> CatalogueSnapshot | None:
        """Run one indexing pass and publish its snapshot.

        Returns
        -------
        CatalogueSnapshot | None
            The published snapshot, or ``None`` when the run failed or another
            run was already in progress. A failed run keeps the previous
            snapshot.

        """
        if not self._index_lock.acquire(blocking=False):
            log_info(logger, "Indexing already in progress; skipping request")
            return None
        try:
            return self._index_locked()
        finally:
            self._index_lock.release()

    def _index_locked(self) -> CatalogueSnapshot | None:
        log_info(
            logger,
            "Indexing contents from %s using %s ref",
            self.config.repository_uri,
            self.config.git_ref,
        )
        try:
            catalogue_path = self._mirror.sync(
                self.config.repository_uri,
                self.config.git_ref,
                self._catalogue_path,
            )
            self._catalogue_path = catalogue_path
            boosters = self._indexer.index(catalogue_path)
        except SyncError as exc:
            log_error(logger, "Error while performing Git operation: %s", exc)
            return None
        except OSError as exc:
            log_exception(logger, "Error while indexing the catalogue", exc)
            return None
        finally:
            log_info(logger, "Finished content indexing")

        snapshot = self._store.publish(boosters)
        self._indexed.set()
        log_info(
            logger,
            "Published catalogue generation %d with %d boosters",
            snapshot.generation,
            len(snapshot.boosters),
        )
        return snapshot

    def get_boosters(self) -> tuple[Booster, ...]:
        """Return every booster of the current snapshot."""
        return self._store.boosters()

    def get_missions(self, labels: cabc.Iterable[str] = ()) -> tuple[Mission, ...]:
        """Return the missions on offer, ordered by name."""
        return self._store.missions(labels)

    def get_runtimes(
        self,
        mission: MissionRef | None,
        labels: cabc.Iterable[str] = (),
    ) -> tuple[Runtime, ...]:
        """Return the runtimes on offer for ``mission``."""
        return self._store.runtimes(mission, labels)

    def get_versions(
        self,
        mission: MissionRef | None,
        runtime: RuntimeRef | None,
        labels: cabc.Iterable[str] = (),
    ) -> tuple[Version, ...]:
        """Return the versions on offer for a mission/runtime pair."""
        return self._store.versions(mission, runtime, labels)

    def get_booster(
        self,
        mission: MissionRef | None,
        runtime: RuntimeRef | None,
        version: VersionRef | None = None,
    ) -> Booster:
        """Return the booster for a mission/runtime (and optional version).

        Raises
        ------
        InvalidArgumentError
            If ``mission`` or ``runtime`` is ``None``.
        BoosterNotFoundError
            If nothing in the current snapshot matches.

        """
        return self._store.find(mission, runtime, version)

    def copy(self, booster: Booster, destination: Path | str) -> Path:
        """Copy ``booster`` content into ``destination`` and return it."""
        return copy_booster(booster, destination)


__all__ = ["BoosterCatalogueService"]
