"""Local git mirrors of remote catalogue and booster repositories."""

from __future__ import annotations

import atexit
import os
import shutil
import subprocess
import tempfile
import threading
from pathlib import Path

from .errors import SyncError
from .logging import get_logger, log_debug, log_info

logger = get_logger(__name__)

TEMP_PREFIX = "booster-catalogue-"


class RepositoryMirror:
    """Clone, fetch and check out remote repositories into local directories.

    The first :meth:`sync` for a directory performs a full clone at the
    requested ref. Later calls against the same directory fetch and
    fast-forward instead. Temporary directories created by the mirror are
    removed by :meth:`cleanup`, which also runs at interpreter exit.

    Parameters
    ----------
    clone_submodules
        Initialise and update git submodules after each checkout.
    timeout_s
        Optional timeout applied to every git invocation.

    """

    def __init__(
        self,
        *,
        clone_submodules: bool = True,
        timeout_s: float | None = None,
    ) -> None:
        """Configure submodule handling and the git timeout."""
        self.clone_submodules = clone_submodules
        self.timeout_s = timeout_s
        self._temporary: list[Path] = []
        self._lock = threading.Lock()
        atexit.register(self.cleanup)

    @property
    def temporary_paths(self) -> tuple[Path, ...]:
        """Return temporary mirror directories that are pending cleanup."""
        with self._lock:
            return tuple(self._temporary)

    def sync(
        self,
        remote_uri: str,
        ref: str,
        destination: Path | None = None,
    ) -> Path:
        """Mirror ``remote_uri`` at ``ref`` and return the local directory.

        Parameters
        ----------
        remote_uri
            Clone URI or local path of the remote repository.
        ref
            Branch, tag or commit to check out.
        destination
            Target directory. ``None`` clones into a fresh temporary directory
            registered for cleanup.

        Returns
        -------
        Path
            Directory holding the working tree.

        Raises
        ------
        SyncError
            If git is unavailable, the remote cannot be reached, or ``ref``
            does not resolve.

        """
        git = shutil.which("git")
        if git is None:
            raise SyncError.git_missing(remote_uri, ref)

        temporary = destination is None
        if destination is None:
            destination = self._make_temporary()
        elif is_mirrored(destination):
            self._update(git, remote_uri, ref, destination)
            return destination

        owned = temporary or not destination.exists()
        try:
            self._clone(git, remote_uri, ref, destination)
        except SyncError:
            if owned:
                # Leave no partial clone behind; the next sync starts afresh.
                _clear_directory(destination, remove_root=not temporary)
            raise
        return destination

    def cleanup(self) -> None:
        """Remove every temporary mirror created by this instance."""
        with self._lock:
            paths, self._temporary = self._temporary, []
        for path in paths:
            shutil.rmtree(path, ignore_errors=True)

    def _make_temporary(self) -> Path:
        path = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
        with self._lock:
            self._temporary.append(path)
        log_info(logger, "Created %s", path)
        return path

    def _clone(self, git: str, remote_uri: str, ref: str, destination: Path) -> None:
        log_info(logger, "Cloning %s at %s into %s", remote_uri, ref, destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        self._run(
            [git, "clone", "--quiet", "--", remote_uri, str(destination)],
            remote_uri,
            ref,
        )
        self._checkout(git, remote_uri, ref, destination)

    def _update(self, git: str, remote_uri: str, ref: str, destination: Path) -> None:
        log_info(logger, "Pulling changes for %s at %s", destination, ref)
        self._run(
            [git, "-C", str(destination), "fetch", "--quiet", "--tags", "origin"],
            remote_uri,
            ref,
        )
        self._checkout(git, remote_uri, ref, destination)
        if self._is_remote_branch(git, ref, destination):
            self._run(
                [
                    git,
                    "-C",
                    str(destination),
                    "merge",
                    "--quiet",
                    "--ff-only",
                    f"origin/{ref}",
                ],
                remote_uri,
                ref,
            )

    def _checkout(
        self, git: str, remote_uri: str, ref: str, destination: Path
    ) -> None:
        self._run(
            [git, "-C", str(destination), "checkout", "--quiet", ref],
            remote_uri,
            ref,
        )
        if self.clone_submodules:
            self._run(
                [
                    git,
                    "-C",
                    str(destination),
                    "submodule",
                    "update",
                    "--init",
                    "--recursive",
                    "--quiet",
                ],
                remote_uri,
                ref,
            )

    def _is_remote_branch(self, git: str, ref: str, destination: Path) -> bool:
        result = subprocess.run(  # noqa: S603  # fixed argv to local git repo only
            [
                git,
                "-C",
                str(destination),
                "rev-parse",
                "--verify",
                "--quiet",
                f"refs/remotes/origin/{ref}",
            ],
            check=False,
            capture_output=True,
            text=True,
            timeout=self.timeout_s,
            env=_git_env(),
        )
        return result.returncode == 0

    def _run(self, argv: list[str], remote_uri: str, ref: str) -> str:
        log_debug(logger, "Running %s", " ".join(argv[1:]))
        try:
            result = subprocess.run(  # noqa: S603  # argv built from fixed git verbs
                argv,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
                env=_git_env(),
            )
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"git exited with {exc.returncode}"
            raise SyncError(remote_uri, ref, detail) from exc
        except subprocess.TimeoutExpired as exc:
            message = f"git timed out after {exc.timeout}s"
            raise SyncError(remote_uri, ref, message) from exc
        except OSError as exc:
            raise SyncError(remote_uri, ref, str(exc)) from exc
        return result.stdout


def is_mirrored(path: Path) -> bool:
    """Return True when ``path`` already holds a git working tree."""
    return (path / ".git").exists()


def _clear_directory(path: Path, *, remove_root: bool) -> None:
    """Empty ``path`` after a failed clone, optionally removing it too."""
    if not path.exists():
        return
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child, ignore_errors=True)
        else:
            child.unlink(missing_ok=True)
    if remove_root:
        path.rmdir()


def _git_env() -> dict[str, str]:
    """Return the process environment with interactive prompts disabled."""
    return {**os.environ, "GIT_TERMINAL_PROMPT": "0"}


__all__ = ["TEMP_PREFIX", "RepositoryMirror", "is_mirrored"]
