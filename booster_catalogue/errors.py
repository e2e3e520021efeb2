"""Errors raised by the booster catalogue."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class CatalogueError(Exception):
    """Base class for booster catalogue errors."""


class SyncError(CatalogueError, RuntimeError):
    """Raised when a remote repository cannot be cloned, fetched or checked out."""

    def __init__(self, remote_uri: str, ref: str, reason: str) -> None:
        """Initialise with the remote coordinates and failure reason."""
        self.remote_uri = remote_uri
        self.ref = ref
        self.reason = reason
        super().__init__(f"Sync of {remote_uri}@{ref} failed: {reason}")

    @classmethod
    def git_missing(cls, remote_uri: str, ref: str) -> SyncError:
        """Return an error for hosts without a git executable."""
        return cls(remote_uri, ref, "git executable not found on PATH")


class ParseError(CatalogueError, ValueError):
    """Raised when a structured document cannot be decoded."""

    def __init__(self, source: str, reason: str) -> None:
        """Initialise with the document source and decoder message."""
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to parse {source}: {reason}")

    @classmethod
    def empty(cls, source: str) -> ParseError:
        """Return an error for documents with no content."""
        return cls(source, "document is empty")

    @classmethod
    def not_a_mapping(cls, source: str, found: object) -> ParseError:
        """Return an error for documents whose top level is not a mapping."""
        return cls(source, f"expected a mapping, found {type(found).__name__}")


class ResolutionError(CatalogueError):
    """Raised when a booster lacks data required to resolve it."""

    def __init__(self, booster_id: str, reason: str) -> None:
        """Initialise with the booster identifier and what is missing."""
        self.booster_id = booster_id
        self.reason = reason
        super().__init__(f"Cannot resolve booster {booster_id}: {reason}")

    @classmethod
    def missing_metadata(cls, booster_id: str, path: Path) -> ResolutionError:
        """Return an error for a booster whose metadata file is absent."""
        return cls(booster_id, f"metadata file {path} does not exist")

    @classmethod
    def outside_layout(cls, booster_id: str, path: Path) -> ResolutionError:
        """Return an error for descriptors not nested under mission/runtime."""
        return cls(
            booster_id,
            f"descriptor {path} is not located under <mission>/<runtime>/",
        )


class BoosterNotFoundError(CatalogueError, LookupError):
    """Raised when no booster matches a catalogue query."""

    def __init__(
        self, mission_id: str, runtime_id: str, version_id: str | None = None
    ) -> None:
        """Initialise with the identifiers that were queried."""
        self.mission_id = mission_id
        self.runtime_id = runtime_id
        self.version_id = version_id
        target = f"mission '{mission_id}' and runtime '{runtime_id}'"
        if version_id is not None:
            target = f"{target} at version '{version_id}'"
        super().__init__(f"No booster found for {target}")


class InvalidArgumentError(CatalogueError, ValueError):
    """Raised when a required query key is missing."""

    @classmethod
    def required(cls, name: str) -> InvalidArgumentError:
        """Return an error for a required argument that was ``None``."""
        return cls(f"{name} should not be None")


class CopyError(CatalogueError, OSError):
    """Raised when booster content cannot be copied to a destination."""

    @classmethod
    def failed(cls, source: Path, destination: Path, reason: object) -> CopyError:
        """Return an error describing the failed copy."""
        return cls(f"Failed to copy {source} to {destination}: {reason}")


class CatalogueConfigError(CatalogueError, ValueError):
    """Raised when catalogue configuration values are invalid."""

    @classmethod
    def invalid_period(cls, value: str) -> CatalogueConfigError:
        """Return an error for a malformed index period."""
        return cls(
            f"Invalid index period: {value!r} "
            "(must be a finite, non-negative number of minutes)"
        )

    @classmethod
    def invalid_timeout(cls, value: str) -> CatalogueConfigError:
        """Return an error for a malformed git timeout."""
        return cls(f"Invalid git timeout: {value!r} (must be a finite, positive number)")

    @classmethod
    def invalid_flag(cls, name: str, value: str) -> CatalogueConfigError:
        """Return an error for a boolean setting that cannot be parsed."""
        return cls(f"Invalid boolean for {name}: {value!r}")

    @classmethod
    def empty_value(cls, name: str) -> CatalogueConfigError:
        """Return an error for a setting that must not be blank."""
        return cls(f"{name} must be non-empty")
