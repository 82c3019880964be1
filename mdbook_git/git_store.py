"""Revision store backed by the ``git`` executable.

Each lookup shells out to ``git -C <repo>``; revisions are passed through
untouched, so anything ``git rev-parse`` accepts (hashes, branches, tags,
relative refs) works.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path

from .errors import InvalidRevision, PathNotFoundAtRevision

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 10.0


def _run_git(repo_root: Path, args: list[str], timeout_seconds: float) -> subprocess.CompletedProcess[bytes] | None:
    """Execute a git subcommand in bytes mode; ``None`` when git cannot be run at all."""
    logger.debug("git -C %s %s", repo_root, " ".join(args))
    try:
        return subprocess.run(
            ["git", "-C", str(repo_root), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
            timeout=timeout_seconds,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("failed to run git in %s: %s", repo_root, exc)
        return None


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def split_blob_lines(data: bytes) -> list[str]:
    """Split blob content on ``\\n`` only, dropping one ``\\r`` before each break.

    Other separators (form feed, U+2028, a lone ``\\r``) stay inside their
    line so numbering matches git's. A final newline does not start a new line.
    """
    text = _decode(data)
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def find_repository_root(path: Path, timeout_seconds: float = GIT_TIMEOUT_SECONDS) -> Path | None:
    """Resolve the work-tree root containing ``path``, or ``None`` outside a repo."""
    proc = _run_git(path, ["rev-parse", "--show-toplevel"], timeout_seconds)
    if proc is None or proc.returncode != 0:
        return None
    lines = [line.strip() for line in _decode(proc.stdout).splitlines() if line.strip()]
    if not lines:
        return None
    return Path(lines[0]).resolve()


class GitRevisionStore:
    """``RevisionStore`` reading blobs with ``git cat-file``."""

    def __init__(self, repo_root: Path, timeout_seconds: float = GIT_TIMEOUT_SECONDS) -> None:
        self.repo_root = Path(repo_root)
        self.timeout_seconds = timeout_seconds
        self._verified: set[str] = set()
        self._lock = threading.Lock()

    def _git(self, args: list[str]) -> subprocess.CompletedProcess[bytes]:
        proc = _run_git(self.repo_root, args, self.timeout_seconds)
        if proc is None:
            raise InvalidRevision(f"could not run git in {self.repo_root}")
        return proc

    def verify_revision(self, revision: str) -> None:
        """Raise ``InvalidRevision`` unless ``revision`` names a commit."""
        with self._lock:
            if revision in self._verified:
                return
        # A leading dash would be read as an option by git.
        if not revision or revision.startswith("-"):
            raise InvalidRevision(f"invalid revision {revision!r}")
        proc = self._git(["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"])
        if proc.returncode != 0:
            raise InvalidRevision(f"unknown revision {revision!r}")
        with self._lock:
            self._verified.add(revision)

    def read_lines(self, revision: str, path: str) -> list[str]:
        self.verify_revision(revision)
        object_name = f"{revision}:{path}"

        kind = self._git(["cat-file", "-t", object_name])
        if kind.returncode != 0 or _decode(kind.stdout).strip() != "blob":
            raise PathNotFoundAtRevision(revision, path)

        blob = self._git(["cat-file", "blob", object_name])
        if blob.returncode != 0:
            raise PathNotFoundAtRevision(revision, path)
        return split_blob_lines(blob.stdout)


__all__ = [
    "GIT_TIMEOUT_SECONDS",
    "GitRevisionStore",
    "find_repository_root",
    "split_blob_lines",
]
