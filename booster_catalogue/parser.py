"""Decoders for the catalogue index, booster descriptors and metadata files."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ParseError
from .models import BoosterDescriptor, CatalogueIndex

YAML_VERSION = (1, 2)


def parse_index(data: bytes, *, source: str = "<index>") -> CatalogueIndex:
    """Decode the global JSON index of missions and runtimes.

    Unknown keys are ignored and either array may be absent.

    Raises
    ------
    ParseError
        If the document is not valid JSON or does not match the index shape.

    """
    try:
        return msgspec.json.decode(data, type=CatalogueIndex)
    except (msgspec.DecodeError, msgspec.ValidationError) as exc:
        raise ParseError(source, str(exc)) from exc


def parse_booster(data: bytes, *, source: str = "<descriptor>") -> BoosterDescriptor:
    """Decode a booster YAML descriptor into a draft.

    Absent optional fields default to ``None`` or empty collections.

    Raises
    ------
    ParseError
        If the YAML is malformed, empty, or has fields of the wrong type.

    """
    loaded = _load_mapping(data, source)
    if loaded is None:
        raise ParseError.empty(source)

    try:
        return msgspec.convert(loaded, type=BoosterDescriptor)
    except msgspec.ValidationError as exc:
        raise ParseError(source, f"schema validation failed: {exc}") from exc


def parse_freeform(data: bytes, *, source: str = "<metadata>") -> dict[str, typ.Any]:
    """Decode an arbitrary YAML mapping; an empty document yields ``{}``."""
    loaded = _load_mapping(data, source)
    if loaded is None:
        return {}
    return _plain(loaded)


def load_index(path: Path | str) -> CatalogueIndex:
    """Read and decode the global index at ``path``."""
    return parse_index(_read(path), source=str(path))


def load_booster(path: Path | str) -> BoosterDescriptor:
    """Read and decode the booster descriptor at ``path``."""
    return parse_booster(_read(path), source=str(path))


def load_freeform(path: Path | str) -> dict[str, typ.Any]:
    """Read and decode the free-form YAML mapping at ``path``."""
    return parse_freeform(_read(path), source=str(path))


def _read(path: Path | str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise ParseError(str(path), f"failed to read file: {exc}") from exc


def _load_mapping(data: bytes, source: str) -> dict[str, typ.Any] | None:
    """Parse YAML and ensure the top level is a mapping (or empty)."""
    try:
        loaded = _yaml().load(data.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ParseError(source, f"document is not UTF-8: {exc}") from exc
    except YAMLError as exc:
        raise ParseError(source, f"failed to parse YAML: {exc}") from exc

    if loaded is None:
        return None
    if not isinstance(loaded, dict):
        raise ParseError.not_a_mapping(source, loaded)
    return loaded


def _plain(value: typ.Any) -> typ.Any:  # noqa: ANN401 - mirrors YAML node types
    """Convert ruamel containers into plain dicts and lists."""
    if isinstance(value, dict):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml


__all__ = [
    "load_booster",
    "load_freeform",
    "load_index",
    "parse_booster",
    "parse_freeform",
    "parse_index",
]
