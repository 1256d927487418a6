"""Version-control collaborators."""

from .git import (
    GitRevisionReader,
    GitStatusProvider,
    RepositoryStatus,
    RevisionReader,
    parse_porcelain_status,
)

__all__ = [
    "RevisionReader",
    "GitRevisionReader",
    "GitStatusProvider",
    "RepositoryStatus",
    "parse_porcelain_status",
]
