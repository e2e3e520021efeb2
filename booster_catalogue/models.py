"""Typed booster catalogue structures."""

from __future__ import annotations

import collections.abc as cabc  # noqa: TC003
import types
import typing as typ
from pathlib import Path  # noqa: TC003

import msgspec

_EMPTY_METADATA: cabc.Mapping[str, typ.Any] = types.MappingProxyType({})


class Mission(msgspec.Struct, frozen=True, kw_only=True):
    """High-level use case a booster demonstrates.

    Attributes
    ----------
    id : str
        Identifier, taken from the mission directory name.
    name : str
        Human-readable mission name.

    """

    id: str
    name: str

    @property
    def sort_key(self) -> tuple[str, str]:
        """Return the presentation ordering key (name, then id)."""
        return (self.name, self.id)


class Runtime(msgspec.Struct, frozen=True, kw_only=True):
    """Technology stack a booster targets.

    Attributes
    ----------
    id : str
        Identifier, taken from the runtime directory name.
    name : str
        Human-readable runtime name.

    """

    id: str
    name: str

    @property
    def sort_key(self) -> tuple[str, str]:
        """Return the presentation ordering key (name, then id)."""
        return (self.name, self.id)


class Version(msgspec.Struct, frozen=True, kw_only=True):
    """Selectable build variant of a mission/runtime pair.

    Attributes
    ----------
    id : str
        Identifier, also used as the default build profile.
    name : str
        Human-readable version label.
    key : str
        Short key substituted into generated documentation.

    """

    id: str
    name: str
    key: str

    @property
    def sort_key(self) -> tuple[str, str]:
        """Return the presentation ordering key (name, then id)."""
        return (self.name, self.id)


class NamedRecord(msgspec.Struct, kw_only=True):
    """``{id, name}`` entry of the global catalogue index."""

    id: str
    name: str


class CatalogueIndex(msgspec.Struct, kw_only=True):
    """Global ``metadata.json`` document at the catalogue root."""

    missions: list[NamedRecord] = msgspec.field(default_factory=list)
    runtimes: list[NamedRecord] = msgspec.field(default_factory=list)


class VersionDescriptor(msgspec.Struct, kw_only=True):
    """Version block of a booster descriptor; ``name``/``key`` default to ``id``."""

    id: str
    name: str | None = None
    key: str | None = None


class BoosterDescriptor(msgspec.Struct, kw_only=True, rename="camel"):
    """Draft decoded from a single booster YAML descriptor.

    Field names are camelCase on the wire (``githubRepo``,
    ``boosterDescriptorPath`` and so on).

    Attributes
    ----------
    github_repo
        ``owner/name`` of the booster's content repository, or a full URI.
    git_ref
        Branch, tag or commit of the content repository to check out.
    booster_descriptor_path
        Path, relative to the content tree, of the secondary metadata file.
    booster_description_path
        Path, relative to the content tree, of the optional description.
    build_profile
        Optional build profile to activate downstream.
    name
        Optional display name; defaults to the booster id.
    labels
        Free-form labels used to filter catalogue queries.
    version
        Optional version this booster implements.

    """

    github_repo: str | None = None
    git_ref: str | None = None
    booster_descriptor_path: str | None = None
    booster_description_path: str | None = None
    build_profile: str | None = None
    name: str | None = None
    labels: list[str] = msgspec.field(default_factory=list)
    version: VersionDescriptor | None = None


class Booster(msgspec.Struct, frozen=True, kw_only=True):
    """Fully resolved catalogue entry.

    Instances only exist once every required field has been resolved and the
    content repository has been fetched. ``mission``, ``runtime`` and
    ``version`` are shared with every other booster carrying the same ids.

    ``metadata`` is a read-only mapping, so boosters compare by value but are
    not hashable; key collections of boosters by ``id``.
    """

    id: str
    name: str
    mission: Mission
    runtime: Runtime
    github_repo: str
    git_ref: str
    content_path: Path
    descriptor_path: str
    description_path: str | None = None
    metadata: cabc.Mapping[str, typ.Any] = _EMPTY_METADATA
    description: str | None = None
    build_profile: str | None = None
    version: Version | None = None
    labels: tuple[str, ...] = ()

    @property
    def profile(self) -> str | None:
        """Return the build profile to activate, falling back to the version id."""
        if self.build_profile is not None:
            return self.build_profile
        if self.version is not None:
            return self.version.id
        return None

    def has_labels(self, labels: typ.Iterable[str]) -> bool:
        """Return True when the booster carries every label in ``labels``."""
        return set(labels).issubset(self.labels)


class CatalogueSnapshot(msgspec.Struct, frozen=True, kw_only=True):
    """Immutable, name-sorted result of one indexing run.

    Attributes
    ----------
    boosters
        Boosters sorted by display name.
    generation
        ``0`` for the initial empty snapshot, incremented on every publish.

    """

    boosters: tuple[Booster, ...] = ()
    generation: int = 0

    @property
    def booster_ids(self) -> tuple[str, ...]:
        """Return booster ids in snapshot order."""
        return tuple(booster.id for booster in self.boosters)


__all__ = [
    "Booster",
    "BoosterDescriptor",
    "CatalogueIndex",
    "CatalogueSnapshot",
    "Mission",
    "NamedRecord",
    "Runtime",
    "Version",
    "VersionDescriptor",
]
