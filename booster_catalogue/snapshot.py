"""Atomically published catalogue snapshots and the queries over them.

Readers never lock: every query dereferences the current snapshot exactly once
and works on that immutable value, so a concurrent :meth:`SnapshotStore.publish`
is observed either fully or not at all. Only publishers serialize among
themselves.
"""

from __future__ import annotations

import threading
import typing as typ

from .errors import BoosterNotFoundError, InvalidArgumentError
from .models import Booster, CatalogueSnapshot, Mission, Runtime, Version

if typ.TYPE_CHECKING:
    import collections.abc as cabc

type MissionRef = Mission | str
type RuntimeRef = Runtime | str
type VersionRef = Version | str


def _entity_id(entity: Mission | Runtime | Version | str) -> str:
    return entity if isinstance(entity, str) else entity.id


class SnapshotStore:
    """Own the current catalogue snapshot and answer queries against it.

    The store starts with an empty snapshot (generation ``0``) until the first
    successful indexing run publishes.
    """

    def __init__(self) -> None:
        """Start with an empty snapshot."""
        self._snapshot = CatalogueSnapshot()
        self._write_lock = threading.Lock()

    def current(self) -> CatalogueSnapshot:
        """Return the live snapshot without blocking or triggering a rebuild."""
        return self._snapshot

    def publish(self, boosters: cabc.Iterable[Booster]) -> CatalogueSnapshot:
        """Replace the current snapshot with one built from ``boosters``.

        The new snapshot is sorted by display name and built completely before
        the single reference assignment that makes it visible.

        Returns
        -------
        CatalogueSnapshot
            The snapshot that was published.

        """
        ordered = tuple(sorted(boosters, key=lambda booster: booster.name))
        with self._write_lock:
            snapshot = CatalogueSnapshot(
                boosters=ordered,
                generation=self._snapshot.generation + 1,
            )
            self._snapshot = snapshot
        return snapshot

    def boosters(self) -> tuple[Booster, ...]:
        """Return every booster of the current snapshot."""
        return self._snapshot.boosters

    def missions(self, labels: cabc.Iterable[str] = ()) -> tuple[Mission, ...]:
        """Return the distinct missions of the current snapshot, by name."""
        wanted = tuple(labels)
        found = {
            booster.mission.id: booster.mission
            for booster in self._snapshot.boosters
            if booster.has_labels(wanted)
        }
        return tuple(sorted(found.values(), key=lambda mission: mission.sort_key))

    def runtimes(
        self,
        mission: MissionRef | None,
        labels: cabc.Iterable[str] = (),
    ) -> tuple[Runtime, ...]:
        """Return the distinct runtimes offered for ``mission``.

        An absent or unknown mission yields an empty tuple.
        """
        if mission is None:
            return ()
        mission_id = _entity_id(mission)
        wanted = tuple(labels)
        found = {
            booster.runtime.id: booster.runtime
            for booster in self._snapshot.boosters
            if booster.mission.id == mission_id and booster.has_labels(wanted)
        }
        return tuple(sorted(found.values(), key=lambda runtime: runtime.sort_key))

    def versions(
        self,
        mission: MissionRef | None,
        runtime: RuntimeRef | None,
        labels: cabc.Iterable[str] = (),
    ) -> tuple[Version, ...]:
        """Return the distinct versions offered for a mission/runtime pair."""
        if mission is None or runtime is None:
            return ()
        mission_id = _entity_id(mission)
        runtime_id = _entity_id(runtime)
        wanted = tuple(labels)
        found = {
            booster.version.id: booster.version
            for booster in self._snapshot.boosters
            if booster.version is not None
            and booster.mission.id == mission_id
            and booster.runtime.id == runtime_id
            and booster.has_labels(wanted)
        }
        return tuple(sorted(found.values(), key=lambda version: version.sort_key))

    def find(
        self,
        mission: MissionRef | None,
        runtime: RuntimeRef | None,
        version: VersionRef | None = None,
    ) -> Booster:
        """Return the first booster matching the mission, runtime and version.

        Without ``version`` any booster of the pair matches. An explicit
        version that no booster declares is not found; there is no fallback to
        an unversioned booster.

        Raises
        ------
        InvalidArgumentError
            If ``mission`` or ``runtime`` is ``None``.
        BoosterNotFoundError
            If no booster of the current snapshot matches.

        """
        if mission is None:
            raise InvalidArgumentError.required("mission")
        if runtime is None:
            raise InvalidArgumentError.required("runtime")

        mission_id = _entity_id(mission)
        runtime_id = _entity_id(runtime)
        version_id = None if version is None else _entity_id(version)

        for booster in self._snapshot.boosters:
            if booster.mission.id != mission_id or booster.runtime.id != runtime_id:
                continue
            if version_id is None:
                return booster
            if booster.version is not None and booster.version.id == version_id:
                return booster

        raise BoosterNotFoundError(mission_id, runtime_id, version_id)


__all__ = ["MissionRef", "RuntimeRef", "SnapshotStore", "VersionRef"]
