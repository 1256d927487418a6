"""Core data models shared by the matcher, decision engine and orchestrator.

All records here are plain dataclasses with ``to_dict()`` so they can be
handed to a CLI or UI layer as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Sequence, Union


class ChangeKind(Enum):
    """What happened to a file, as reported by the watcher."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"

    @classmethod
    def parse(cls, value: Union[str, "ChangeKind"]) -> "ChangeKind":
        """Accept our own names plus the watcher's add/change/unlink events."""
        if isinstance(value, ChangeKind):
            return value
        aliases = {"add": cls.ADDED, "change": cls.MODIFIED, "unlink": cls.DELETED}
        lowered = value.lower()
        if lowered in aliases:
            return aliases[lowered]
        return cls(lowered)


def normalize_path(path: str) -> str:
    """Forward slashes, no leading './'."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


@dataclass(frozen=True)
class FileChange:
    """A single changed file."""

    path: str
    kind: ChangeKind = ChangeKind.MODIFIED
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", normalize_path(self.path))
        object.__setattr__(self, "kind", ChangeKind.parse(self.kind))

    @classmethod
    def modified(cls, paths: Sequence[str]) -> list[FileChange]:
        """Build MODIFIED changes for a list of paths (CLI and workflow input)."""
        now = datetime.now()
        return [cls(path=p, kind=ChangeKind.MODIFIED, timestamp=now) for p in paths]

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "kind": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
        }


class SuiteCategory(Enum):
    """Broad category the decision engine reasons about."""

    UNIT = "unit"
    INTEGRATION = "integration"
    E2E = "e2e"
    UI = "ui"


# Runner type tag -> category. Unknown tags are treated as unit suites.
_TYPE_CATEGORIES: dict[str, SuiteCategory] = {
    "jest": SuiteCategory.UNIT,
    "vitest": SuiteCategory.UNIT,
    "postman": SuiteCategory.INTEGRATION,
    "cypress": SuiteCategory.E2E,
    "stagehand": SuiteCategory.E2E,
    "playwright": SuiteCategory.E2E,
    "storybook": SuiteCategory.UI,
}


@dataclass(frozen=True)
class TestSuiteDefinition:
    """A configured test suite.

    Attributes:
        type: Runner type tag (jest, cypress, storybook, postman, stagehand, ...)
        command: Invocation command
        patterns: Globs identifying the suite's own test files
        watch_patterns: Globs of source files that trigger this suite
        priority: Higher runs first
        enabled: Disabled suites are never selected
        name: Suite identity; defaults to the type tag
        coverage_command: Optional command that also emits coverage
        category_override: Explicit category, bypassing the type mapping
    """

    __test__ = False

    type: str
    command: str = ""
    patterns: tuple[str, ...] = ()
    watch_patterns: tuple[str, ...] = ()
    priority: int = 0
    enabled: bool = True
    name: str = ""
    coverage_command: Optional[str] = None
    category_override: Optional[SuiteCategory] = None

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.type)
        object.__setattr__(self, "patterns", _as_tuple(self.patterns))
        object.__setattr__(self, "watch_patterns", _as_tuple(self.watch_patterns))
        if isinstance(self.category_override, str):
            object.__setattr__(self, "category_override", SuiteCategory(self.category_override))

    @property
    def category(self) -> SuiteCategory:
        if self.category_override is not None:
            return self.category_override
        return _TYPE_CATEGORIES.get(self.type.lower(), SuiteCategory.UNIT)

    @property
    def effective_watch_patterns(self) -> tuple[str, ...]:
        """Watch globs, defaulting to everything when none are configured."""
        return self.watch_patterns or ("**/*",)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestSuiteDefinition:
        """Build from a config entry (accepts camelCase keys from JSON configs)."""
        watch = data.get("watch_patterns", data.get("watchPattern", data.get("watch_pattern", ())))
        return cls(
            type=data["type"],
            command=data.get("command", ""),
            patterns=data.get("patterns", data.get("pattern", ())),
            watch_patterns=watch,
            priority=int(data.get("priority", 0)),
            enabled=bool(data.get("enabled", True)),
            name=data.get("name", ""),
            coverage_command=data.get("coverage_command", data.get("coverageCommand")),
            category_override=data.get("category"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "category": self.category.value,
            "command": self.command,
            "patterns": list(self.patterns),
            "watch_patterns": list(self.watch_patterns),
            "priority": self.priority,
            "enabled": self.enabled,
            "coverage_command": self.coverage_command,
        }


def _as_tuple(value: Union[str, Sequence[str], None]) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass
class TestDecision:
    """Which suites to run and why."""

    __test__ = False

    suites: list[TestSuiteDefinition]
    reason: str
    coverage_gaps: list[str] = field(default_factory=list)

    @property
    def suite_names(self) -> list[str]:
        return [s.name for s in self.suites]

    def to_dict(self) -> dict[str, Any]:
        return {
            "suites": [s.to_dict() for s in self.suites],
            "reason": self.reason,
            "coverage_gaps": list(self.coverage_gaps),
        }
