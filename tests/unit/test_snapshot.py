"""Unit tests for SnapshotStore publication and queries."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from booster_catalogue.errors import BoosterNotFoundError, InvalidArgumentError
from booster_catalogue.models import Booster, Mission, Runtime, Version
from booster_catalogue.snapshot import SnapshotStore

REST = Mission(id="rest-http", name="REST API Level 0")
CRUD = Mission(id="crud", name="CRUD")
VERTX = Runtime(id="vert.x", name="Eclipse Vert.x")
NODE = Runtime(id="nodejs", name="Node.js")
COMMUNITY = Version(id="community", name="Community", key="ce")
REDHAT = Version(id="redhat", name="Red Hat", key="rh")


def make_booster(
    booster_id: str,
    mission: Mission,
    runtime: Runtime,
    *,
    name: str | None = None,
    version: Version | None = None,
    labels: tuple[str, ...] = (),
) -> Booster:
    """Build a booster whose content path is never touched."""
    return Booster(
        id=booster_id,
        name=name or booster_id,
        mission=mission,
        runtime=runtime,
        version=version,
        github_repo=f"acme/{booster_id}",
        git_ref="master",
        content_path=Path("/nonexistent") / booster_id,
        descriptor_path=".openshiftio/booster.yaml",
        labels=labels,
    )


@pytest.fixture
def store() -> SnapshotStore:
    """Return a store holding a small mixed catalogue."""
    snapshot_store = SnapshotStore()
    snapshot_store.publish(
        [
            make_booster(
                "rest-vertx-ce",
                REST,
                VERTX,
                name="REST Vert.x",
                version=COMMUNITY,
                labels=("community",),
            ),
            make_booster(
                "rest-vertx-rh",
                REST,
                VERTX,
                name="REST Vert.x (Red Hat)",
                version=REDHAT,
                labels=("redhat", "supported"),
            ),
            make_booster("rest-node", REST, NODE, name="REST Node"),
            make_booster(
                "crud-vertx",
                CRUD,
                VERTX,
                name="CRUD Vert.x",
                labels=("community", "database"),
            ),
        ]
    )
    return snapshot_store


class TestPublish:
    """Tests for snapshot publication."""

    def test_initial_snapshot_is_empty(self) -> None:
        """A fresh store answers queries with empty results."""
        empty = SnapshotStore()
        assert empty.current().generation == 0, "Expected generation 0"
        assert empty.boosters() == (), "Expected no boosters"
        assert empty.missions() == (), "Expected no missions"
        with pytest.raises(BoosterNotFoundError):
            empty.find("rest-http", "vert.x")

    def test_publish_sorts_by_name_and_bumps_generation(
        self, store: SnapshotStore
    ) -> None:
        """Published boosters are ordered by display name."""
        snapshot = store.current()
        assert snapshot.generation == 1, "Expected the first generation"
        assert [booster.name for booster in snapshot.boosters] == [
            "CRUD Vert.x",
            "REST Node",
            "REST Vert.x",
            "REST Vert.x (Red Hat)",
        ], "Expected boosters sorted by name"

        republished = store.publish(snapshot.boosters[:1])
        assert republished.generation == 2, "Expected the generation to increase"
        assert store.current() is republished, "Expected the new snapshot to be live"

    def test_previous_snapshot_is_unchanged_by_publish(
        self, store: SnapshotStore
    ) -> None:
        """Readers holding an old snapshot keep a consistent view."""
        before = store.current()
        store.publish([])
        assert len(before.boosters) == 4, "Old snapshot must not be mutated"
        assert store.boosters() == (), "Expected the empty snapshot to be live"

    def test_concurrent_readers_never_see_torn_snapshots(self) -> None:
        """Readers only ever observe one complete published generation."""
        snapshot_store = SnapshotStore()
        generations = {
            size: [
                make_booster(f"b{size}-{index}", REST, VERTX) for index in range(size)
            ]
            for size in (3, 7)
        }
        stop = threading.Event()
        problems: list[str] = []

        def read() -> None:
            while not stop.is_set():
                snapshot = snapshot_store.current()
                ids = snapshot.booster_ids
                if snapshot.generation and len(ids) not in generations:
                    problems.append(f"torn snapshot of {len(ids)} boosters")
                prefixes = {booster_id.split("-")[0] for booster_id in ids}
                if len(prefixes) > 1:
                    problems.append(f"mixed snapshot {ids!r}")

        readers = [threading.Thread(target=read) for _ in range(4)]
        for reader in readers:
            reader.start()
        for round_ in range(200):
            snapshot_store.publish(generations[3 if round_ % 2 else 7])
        stop.set()
        for reader in readers:
            reader.join(timeout=5)

        assert problems == [], f"Readers saw inconsistent snapshots: {problems[:3]}"
        assert snapshot_store.current().generation == 200, (
            "Expected one generation per publish"
        )


class TestQueries:
    """Tests for mission, runtime and version queries."""

    def test_missions_are_distinct_and_sorted(self, store: SnapshotStore) -> None:
        """Each mission is listed once, ordered by name."""
        assert store.missions() == (CRUD, REST), "Expected CRUD then REST"

    def test_missions_filter_by_labels(self, store: SnapshotStore) -> None:
        """Only missions with a booster carrying every label are listed."""
        assert store.missions(["database"]) == (CRUD,), "Expected only CRUD"
        assert store.missions(["redhat", "supported"]) == (REST,), (
            "Expected only REST"
        )
        assert store.missions(["community", "redhat"]) == (), (
            "No booster carries both labels"
        )

    def test_runtimes_for_mission(self, store: SnapshotStore) -> None:
        """Runtimes are scoped to the mission and sorted by name."""
        assert store.runtimes(REST) == (VERTX, NODE), "Expected both runtimes"
        assert store.runtimes("crud") == (VERTX,), "Expected Vert.x for CRUD"
        assert store.runtimes("rest-http", ["community"]) == (VERTX,), (
            "Expected the labelled runtime only"
        )

    @pytest.mark.parametrize("mission", [None, "unknown"])
    def test_runtimes_for_missing_mission_are_empty(
        self, store: SnapshotStore, mission: str | None
    ) -> None:
        """An absent or unknown mission yields no runtimes."""
        assert store.runtimes(mission) == (), "Expected no runtimes"

    def test_versions_for_pair(self, store: SnapshotStore) -> None:
        """Versions are scoped to the pair and unversioned boosters are ignored."""
        assert store.versions(REST, VERTX) == (COMMUNITY, REDHAT), (
            "Expected both versions"
        )
        assert store.versions("rest-http", "vert.x", ["redhat"]) == (REDHAT,), (
            "Expected only the labelled version"
        )
        assert store.versions(REST, NODE) == (), "REST Node declares no version"
        assert store.versions(None, VERTX) == (), "Expected nothing without mission"
        assert store.versions(REST, None) == (), "Expected nothing without runtime"


class TestFind:
    """Tests for SnapshotStore.find."""

    def test_first_match_in_name_order(self, store: SnapshotStore) -> None:
        """Without a version the first booster of the pair is returned."""
        booster = store.find(REST, VERTX)
        assert booster.id == "rest-vertx-ce", "Expected the first pair match"

    def test_accepts_ids(self, store: SnapshotStore) -> None:
        """Queries accept ids as well as entity objects."""
        assert store.find("crud", "vert.x").id == "crud-vertx", (
            "Expected the CRUD booster"
        )

    def test_explicit_version(self, store: SnapshotStore) -> None:
        """An explicit version selects the booster declaring it."""
        assert store.find(REST, VERTX, REDHAT).id == "rest-vertx-rh", (
            "Expected the Red Hat booster"
        )
        assert store.find(REST, VERTX, "community").id == "rest-vertx-ce", (
            "Expected the community booster"
        )

    def test_unknown_version_does_not_fall_back(self, store: SnapshotStore) -> None:
        """A version no booster declares is not found, even for a known pair."""
        with pytest.raises(BoosterNotFoundError) as excinfo:
            store.find(REST, NODE, COMMUNITY)
        assert excinfo.value.version_id == "community", "Expected the version id"
        assert "at version 'community'" in str(excinfo.value), (
            "Expected the version in the message"
        )

    def test_unknown_pair(self, store: SnapshotStore) -> None:
        """An unknown pair raises BoosterNotFoundError naming both ids."""
        with pytest.raises(
            BoosterNotFoundError,
            match="No booster found for mission 'crud' and runtime 'nodejs'",
        ):
            store.find(CRUD, NODE)

    @pytest.mark.parametrize(
        ("mission", "runtime", "name"),
        [
            pytest.param(None, VERTX, "mission", id="mission"),
            pytest.param(REST, None, "runtime", id="runtime"),
        ],
    )
    def test_none_arguments_raise(
        self,
        store: SnapshotStore,
        mission: Mission | None,
        runtime: Runtime | None,
        name: str,
    ) -> None:
        """Missing mission or runtime is an invalid argument."""
        with pytest.raises(InvalidArgumentError, match=f"{name} should not be None"):
            store.find(mission, runtime)
