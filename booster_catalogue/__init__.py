"""Booster catalogue indexing, snapshots and queries.

The package spans four slices:

* **Descriptors** - msgspec models for missions, runtimes, versions and
  boosters, plus JSON/YAML decoders for descriptor files.
* **Indexing** - git mirrors of the catalogue and booster repositories and
  the tree walker that resolves descriptors into boosters.
* **Snapshots** - an atomically swapped, immutable catalogue snapshot with
  lock-free queries, refreshed by a background scheduler.
* **Content** - copying a booster's file tree into a new project.

Quick examples
--------------

Run the service with settings from the environment::

    >>> from booster_catalogue import BoosterCatalogueService
    >>> with BoosterCatalogueService() as catalogue:
    ...     catalogue.wait_until_indexed(timeout=300)
    ...     mission = catalogue.get_missions()[0]
    ...     runtime = catalogue.get_runtimes(mission)[0]
    ...     booster = catalogue.get_booster(mission, runtime)
    ...     catalogue.copy(booster, "/tmp/my-project")

Decode a single descriptor::

    >>> from booster_catalogue import load_booster
    >>> descriptor = load_booster("rest-http/vert.x/vertx-http.yaml")
"""

from __future__ import annotations

from .config import CatalogueConfig
from .copier import EXCLUDED_ENTRIES, copy_booster
from .errors import (
    BoosterNotFoundError,
    CatalogueConfigError,
    CatalogueError,
    CopyError,
    InvalidArgumentError,
    ParseError,
    ResolutionError,
    SyncError,
)
from .indexer import CatalogueIndexer, ResolutionTable, iter_descriptor_files
from .mirror import RepositoryMirror
from .models import (
    Booster,
    BoosterDescriptor,
    CatalogueIndex,
    CatalogueSnapshot,
    Mission,
    Runtime,
    Version,
)
from .parser import (
    load_booster,
    load_freeform,
    load_index,
    parse_booster,
    parse_freeform,
    parse_index,
)
from .scheduler import RefreshScheduler
from .service import BoosterCatalogueService
from .snapshot import SnapshotStore

__all__ = [
    "EXCLUDED_ENTRIES",
    "Booster",
    "BoosterCatalogueService",
    "BoosterDescriptor",
    "BoosterNotFoundError",
    "CatalogueConfig",
    "CatalogueConfigError",
    "CatalogueError",
    "CatalogueIndex",
    "CatalogueIndexer",
    "CatalogueSnapshot",
    "CopyError",
    "InvalidArgumentError",
    "Mission",
    "ParseError",
    "RefreshScheduler",
    "RepositoryMirror",
    "ResolutionError",
    "ResolutionTable",
    "Runtime",
    "SnapshotStore",
    "SyncError",
    "Version",
    "copy_booster",
    "iter_descriptor_files",
    "load_booster",
    "load_freeform",
    "load_index",
    "parse_booster",
    "parse_freeform",
    "parse_index",
]
