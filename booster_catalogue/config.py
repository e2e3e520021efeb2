"""Configuration for the booster catalogue service.

Defaults point at the public booster catalogue and index exactly once:

>>> config = CatalogueConfig()
>>> config.git_ref
'master'
>>> config.index_period_minutes
0.0

Each setting can be overridden through the environment; see
:meth:`CatalogueConfig.from_env`.

"""

from __future__ import annotations

import dataclasses as dc
import math
import os

from booster_catalogue.errors import CatalogueConfigError

REPOSITORY_ENV = "LAUNCHPAD_BACKEND_CATALOG_GIT_REPOSITORY"
GIT_REF_ENV = "LAUNCHPAD_BACKEND_CATALOG_GIT_REF"
INDEX_PERIOD_ENV = "LAUNCHPAD_BACKEND_CATALOG_INDEX_PERIOD"
REPOSITORY_BASE_URL_ENV = "LAUNCHPAD_BACKEND_CATALOG_REPOSITORY_BASE_URL"
CLONE_SUBMODULES_ENV = "LAUNCHPAD_BACKEND_CATALOG_CLONE_SUBMODULES"
GIT_TIMEOUT_ENV = "LAUNCHPAD_BACKEND_CATALOG_GIT_TIMEOUT"
LOG_LEVEL_ENV = "LAUNCHPAD_BACKEND_CATALOG_LOG_LEVEL"

_DEFAULT_REPOSITORY = "https://github.com/openshiftio/booster-catalog.git"
_DEFAULT_GIT_REF = "master"
_DEFAULT_INDEX_PERIOD_MINUTES = 0.0
_DEFAULT_REPOSITORY_BASE_URL = "https://github.com/"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dc.dataclass(frozen=True, slots=True)
class CatalogueConfig:
    """Settings consumed by the catalogue core.

    Attributes
    ----------
    repository_uri
        Remote git repository holding the booster descriptors.
    git_ref
        Branch, tag or commit of the catalogue repository to index.
    index_period_minutes
        Minutes between scheduled re-indexing runs. ``0`` indexes once at
        startup and never again.
    repository_base_url
        Prefix joined with a descriptor's ``githubRepo`` to build the clone
        URI of the booster's own content repository.
    clone_submodules
        Whether clones recurse into git submodules.
    git_timeout_s
        Optional per-command timeout for git invocations. ``None`` leaves
        deadlines to the caller.
    log_level
        Log level installed when the service starts. ``None`` leaves logging
        configuration to the host application.

    """

    repository_uri: str = _DEFAULT_REPOSITORY
    git_ref: str = _DEFAULT_GIT_REF
    index_period_minutes: float = _DEFAULT_INDEX_PERIOD_MINUTES
    repository_base_url: str = _DEFAULT_REPOSITORY_BASE_URL
    clone_submodules: bool = True
    git_timeout_s: float | None = None
    log_level: str | None = None

    @property
    def index_period_s(self) -> float:
        """Return the refresh period in seconds."""
        return self.index_period_minutes * 60.0

    @staticmethod
    def _required_from_env(name: str, default: str) -> str:
        raw = os.environ.get(name)
        if raw is None:
            return default
        value = raw.strip()
        if not value:
            raise CatalogueConfigError.empty_value(name)
        return value

    @staticmethod
    def _parse_period_from_env() -> float:
        """Parse the index period, rejecting negative or non-finite values.

        Raises
        ------
        CatalogueConfigError
            If the value is not a finite, non-negative number.

        """
        raw_period = os.environ.get(INDEX_PERIOD_ENV)
        if raw_period is None or not raw_period.strip():
            return _DEFAULT_INDEX_PERIOD_MINUTES

        try:
            period = float(raw_period)
        except ValueError as exc:
            raise CatalogueConfigError.invalid_period(raw_period) from exc

        if period < 0 or not math.isfinite(period):
            raise CatalogueConfigError.invalid_period(raw_period)

        return period

    @staticmethod
    def _parse_timeout_from_env() -> float | None:
        raw_timeout = os.environ.get(GIT_TIMEOUT_ENV)
        if raw_timeout is None or not raw_timeout.strip():
            return None

        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise CatalogueConfigError.invalid_timeout(raw_timeout) from exc

        if timeout <= 0 or not math.isfinite(timeout):
            raise CatalogueConfigError.invalid_timeout(raw_timeout)

        return timeout

    @staticmethod
    def _optional_from_env(name: str) -> str | None:
        raw = os.environ.get(name)
        if raw is None or not raw.strip():
            return None
        return raw.strip()

    @staticmethod
    def _parse_flag_from_env(name: str, *, default: bool) -> bool:
        raw_flag = os.environ.get(name)
        if raw_flag is None or not raw_flag.strip():
            return default

        normalized = raw_flag.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        raise CatalogueConfigError.invalid_flag(name, raw_flag)

    @classmethod
    def from_env(cls) -> CatalogueConfig:
        """Build configuration from environment variables.

        Reads the following environment variables:

        - ``LAUNCHPAD_BACKEND_CATALOG_GIT_REPOSITORY``: catalogue repository URI
        - ``LAUNCHPAD_BACKEND_CATALOG_GIT_REF``: catalogue branch, tag or commit
        - ``LAUNCHPAD_BACKEND_CATALOG_INDEX_PERIOD``: refresh period in minutes
        - ``LAUNCHPAD_BACKEND_CATALOG_REPOSITORY_BASE_URL``: booster clone prefix
        - ``LAUNCHPAD_BACKEND_CATALOG_CLONE_SUBMODULES``: ``true``/``false``
        - ``LAUNCHPAD_BACKEND_CATALOG_GIT_TIMEOUT``: git timeout in seconds
        - ``LAUNCHPAD_BACKEND_CATALOG_LOG_LEVEL``: log level, e.g. ``DEBUG``

        Returns
        -------
        CatalogueConfig
            Configuration with unset variables left at their defaults.

        Raises
        ------
        CatalogueConfigError
            If any variable is present but invalid.

        """
        return cls(
            repository_uri=cls._required_from_env(REPOSITORY_ENV, _DEFAULT_REPOSITORY),
            git_ref=cls._required_from_env(GIT_REF_ENV, _DEFAULT_GIT_REF),
            index_period_minutes=cls._parse_period_from_env(),
            repository_base_url=cls._required_from_env(
                REPOSITORY_BASE_URL_ENV, _DEFAULT_REPOSITORY_BASE_URL
            ),
            clone_submodules=cls._parse_flag_from_env(
                CLONE_SUBMODULES_ENV, default=True
            ),
            git_timeout_s=cls._parse_timeout_from_env(),
            log_level=cls._optional_from_env(LOG_LEVEL_ENV),
        )
