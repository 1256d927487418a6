"""Git access via subprocess."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol, Union

from ..exceptions import GitCommandError
from ..logging_config import get_logger

logger = get_logger(__name__)

GIT_TIMEOUT_SECONDS = 10


class RevisionReader(Protocol):
    """Reads a file's content as of a committed revision."""

    def show(self, path: str, revision: str = "HEAD") -> Optional[str]:
        ...


@dataclass(frozen=True)
class RepositoryStatus:
    branch: str
    dirty: bool
    ahead: int = 0
    behind: int = 0
    upstream: Optional[str] = None
    changed_files: tuple[str, ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        return {
            "branch": self.branch,
            "dirty": self.dirty,
            "ahead": self.ahead,
            "behind": self.behind,
            "upstream": self.upstream,
            "changed_files": list(self.changed_files),
        }


def _run_git(repo_path: str, *args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["git", "-C", repo_path, *args],
        capture_output=True,
        text=True,
        timeout=GIT_TIMEOUT_SECONDS,
    )


class GitRevisionReader:
    """``git show <revision>:<path>`` for a repository root."""

    def __init__(self, repo_path: Union[str, Path] = "."):
        self.repo_path = Path(repo_path).resolve()

    def _relative(self, path: str) -> str:
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                return candidate.resolve().relative_to(self.repo_path).as_posix()
            except ValueError:
                return candidate.as_posix()
        return candidate.as_posix()

    def show(self, path: str, revision: str = "HEAD") -> Optional[str]:
        """File content at ``revision``; None if git, the revision or the file is unavailable."""
        spec = f"{revision}:{self._relative(path)}"
        try:
            result = _run_git(str(self.repo_path), "show", spec)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug(f"git show {spec} unavailable: {e}")
            return None
        if result.returncode != 0:
            logger.debug(f"git show {spec} failed: {result.stderr.strip()}")
            return None
        return result.stdout


class GitStatusProvider:
    """Repository status from ``git status --porcelain=v2 --branch``."""

    def __init__(self, repo_path: Union[str, Path] = "."):
        self.repo_path = str(Path(repo_path).resolve())

    def repository_status(self) -> RepositoryStatus:
        """
        Raises:
            GitCommandError: If git is missing, times out or fails
        """
        try:
            result = _run_git(self.repo_path, "status", "--porcelain=v2", "--branch")
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise GitCommandError("status", str(e))
        if result.returncode != 0:
            raise GitCommandError("status", result.stderr.strip() or f"exit code {result.returncode}")
        return parse_porcelain_status(result.stdout)


def parse_porcelain_status(output: str) -> RepositoryStatus:
    """Parse porcelain v2 output with branch headers."""
    branch = "HEAD"
    upstream = None
    ahead = behind = 0
    changed: list[str] = []

    for line in output.splitlines():
        if line.startswith("# branch.head "):
            branch = line[len("# branch.head ") :]
        elif line.startswith("# branch.upstream "):
            upstream = line[len("# branch.upstream ") :]
        elif line.startswith("# branch.ab "):
            for part in line[len("# branch.ab ") :].split():
                if part.startswith("+"):
                    ahead = int(part[1:])
                elif part.startswith("-"):
                    behind = int(part[1:])
        elif line.startswith("? "):
            changed.append(line[2:])
        elif line.startswith("1 "):
            changed.append(line.split(" ", 8)[-1])
        elif line.startswith("2 "):
            # renamed: "<path>\t<original path>"
            changed.append(line.split(" ", 9)[-1].split("\t")[0])
        elif line.startswith("u "):
            changed.append(line.split(" ", 10)[-1])

    return RepositoryStatus(
        branch=branch,
        dirty=bool(changed),
        ahead=ahead,
        behind=behind,
        upstream=upstream,
        changed_files=tuple(changed),
    )
