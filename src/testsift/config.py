"""Configuration loading and management for testsift.

Configuration sources are merged in priority order:
    1. Defaults (defined in SelectorConfig)
    2. Global config (~/.testsift.toml)
    3. Project config (./testsift.toml)
    4. Explicit config file (TOML, or JSON for *.json files)
    5. Environment variables (TESTSIFT_* prefix, scalar fields only)
    6. Keyword overrides

Example:
    >>> config = load_config(max_workers=4)
    >>> config.max_workers
    4
    >>> config.coverage.thresholds.unit
    80.0
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from .exceptions import ConfigFileError, ConfigurationError, InvalidConfigError
from .models import TestSuiteDefinition


def _string_list(key: str, value: Any) -> tuple[str, ...]:
    """Coerce a list of strings to a tuple; a bare string is a shape error."""
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise InvalidConfigError(key, value, "must be a list of strings")
    for item in value:
        if not isinstance(item, str):
            raise InvalidConfigError(key, value, "must be a list of strings")
    return tuple(value)


@dataclass(frozen=True)
class CoverageThresholds:
    """Coverage percentages (0-100) that drive suite selection."""

    unit: float = 80.0
    integration: float = 70.0
    e2e: float = 60.0

    def __post_init__(self) -> None:
        for name in ("unit", "integration", "e2e"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise InvalidConfigError(f"coverage.thresholds.{name}", value, "must be a number")
            if not 0.0 <= value <= 100.0:
                raise InvalidConfigError(
                    f"coverage.thresholds.{name}", value, "must be between 0 and 100"
                )
            object.__setattr__(self, name, float(value))


DEFAULT_CRITICAL_PATTERNS = (
    "**/api/**",
    "**/auth/**",
    "**/payment/**",
    "**/core/**",
    "**/*route*",
    "**/*controller*",
)


@dataclass(frozen=True)
class CoverageSettings:
    """Coverage-guided selection.

    Attributes:
        enabled: Use coverage data when selecting suites
        thresholds: Unit/integration/e2e percentages
        persist_path: Directory holding coverage-summary.json and history
        history_limit: Maximum snapshots kept in coverage-history.json
        critical_patterns: Globs whose changes always warrant E2E suites
    """

    enabled: bool = False
    thresholds: CoverageThresholds = field(default_factory=CoverageThresholds)
    persist_path: str = "coverage"
    history_limit: int = 50
    critical_patterns: tuple[str, ...] = DEFAULT_CRITICAL_PATTERNS

    def __post_init__(self) -> None:
        if self.history_limit < 1:
            raise InvalidConfigError("coverage.history_limit", self.history_limit, "must be at least 1")
        object.__setattr__(
            self,
            "critical_patterns",
            _string_list("coverage.critical_patterns", self.critical_patterns),
        )


@dataclass(frozen=True)
class CriticalPathSettings:
    """Paths whose change forces every enabled suite to run.

    ``paths`` are exact prefixes, ``patterns`` are globs.
    """

    enabled: bool = False
    paths: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "paths", _string_list("critical_paths.paths", self.paths))
        object.__setattr__(
            self, "patterns", _string_list("critical_paths.patterns", self.patterns)
        )


@dataclass(frozen=True)
class ComplexitySettings:
    """Cyclomatic complexity classification and file filtering."""

    enabled: bool = True
    warning_threshold: int = 10
    error_threshold: int = 20
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()
    cache_enabled: bool = False
    cache_dir: str = ".testsift-cache"
    cache_ttl_hours: int = 24

    def __post_init__(self) -> None:
        if self.warning_threshold < 1:
            raise InvalidConfigError(
                "complexity.warning_threshold", self.warning_threshold, "must be at least 1"
            )
        if self.error_threshold <= self.warning_threshold:
            raise InvalidConfigError(
                "complexity.error_threshold",
                self.error_threshold,
                "must be greater than warning_threshold",
            )
        if self.cache_ttl_hours < 0:
            raise InvalidConfigError(
                "complexity.cache_ttl_hours", self.cache_ttl_hours, "must be non-negative"
            )
        for name in ("include_patterns", "exclude_patterns"):
            object.__setattr__(self, name, _string_list(f"complexity.{name}", getattr(self, name)))


@dataclass(frozen=True)
class CacheSettings:
    """Per-operation TTLs (seconds) for workflow collaborator calls.

    A TTL of 0 disables caching for that operation.
    """

    repository: float = 30.0
    ticket: float = 60.0
    review: float = 60.0
    deployments: float = 300.0
    coverage: float = 0.0

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value < 0:
                raise InvalidConfigError(f"cache.{f.name}", value, "must be non-negative")

    def ttl_for(self, operation: str) -> float:
        """TTL for an operation name; unknown operations are uncached."""
        return float(getattr(self, operation, 0.0))


def _default_suites() -> tuple[TestSuiteDefinition, ...]:
    return (
        TestSuiteDefinition(
            type="jest",
            patterns=("**/*.test.{js,jsx,ts,tsx}", "**/*.spec.{js,jsx,ts,tsx}"),
            command="npm test",
            coverage_command="npm test -- --coverage",
            watch_patterns=("src/**/*.{js,jsx,ts,tsx}", "**/*.test.{js,jsx,ts,tsx}"),
            priority=3,
        ),
        TestSuiteDefinition(
            type="cypress",
            patterns=("**/*.cy.{js,jsx,ts,tsx}",),
            command="npm run cypress:run",
            watch_patterns=("src/**/*.{js,jsx,ts,tsx}", "cypress/**/*.{js,jsx,ts,tsx}"),
            priority=1,
        ),
        TestSuiteDefinition(
            type="storybook",
            patterns=("**/*.stories.{js,jsx,ts,tsx}",),
            command="npm run test-storybook",
            watch_patterns=("src/**/*.{js,jsx,ts,tsx}", "**/*.stories.{js,jsx,ts,tsx}"),
            priority=2,
        ),
    )


DEFAULT_EXCLUDE_PATTERNS = (
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.git/**",
    "**/coverage/**",
    "**/.next/**",
    "**/.cache/**",
)


@dataclass(frozen=True)
class SelectorConfig:
    """Top-level configuration.

    Attributes:
        project_root: Root against which relative paths resolve
        test_suites: Configured suites, in declaration order
        exclude_patterns: Globs the watcher ignores
        debounce_ms: Watcher debounce window
        coverage: Coverage-guided selection settings
        critical_paths: Critical path settings
        complexity: Complexity analysis settings
        cache: Workflow cache TTLs
        max_workers: Workflow thread pool size (None = auto-detect)
    """

    project_root: str = "."
    test_suites: tuple[TestSuiteDefinition, ...] = field(default_factory=_default_suites)
    exclude_patterns: tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    debounce_ms: int = 1000
    coverage: CoverageSettings = field(default_factory=CoverageSettings)
    critical_paths: CriticalPathSettings = field(default_factory=CriticalPathSettings)
    complexity: ComplexitySettings = field(default_factory=ComplexitySettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "test_suites", tuple(self.test_suites))
        object.__setattr__(
            self, "exclude_patterns", _string_list("exclude_patterns", self.exclude_patterns)
        )
        if self.debounce_ms < 0:
            raise InvalidConfigError("debounce_ms", self.debounce_ms, "must be non-negative")
        if self.max_workers is not None and self.max_workers < 1:
            raise InvalidConfigError("max_workers", self.max_workers, "must be at least 1")
        names = [s.name for s in self.test_suites]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise InvalidConfigError("test_suites", ", ".join(duplicates), "suite names must be unique")

    @property
    def enabled_suites(self) -> list[TestSuiteDefinition]:
        return [s for s in self.test_suites if s.enabled]

    @property
    def root_path(self) -> Path:
        return Path(self.project_root).resolve()

    @property
    def coverage_dir(self) -> Path:
        """Coverage persist directory, resolved against the project root."""
        path = Path(self.coverage.persist_path)
        if path.is_absolute():
            return path
        return self.root_path / path


# Sections that map onto nested settings dataclasses.
_SECTIONS = {
    "coverage": CoverageSettings,
    "critical_paths": CriticalPathSettings,
    "complexity": ComplexitySettings,
    "cache": CacheSettings,
}

# camelCase keys accepted from JSON configs.
_KEY_ALIASES = {
    "projectRoot": "project_root",
    "testSuites": "test_suites",
    "excludePatterns": "exclude_patterns",
    "debounceMs": "debounce_ms",
    "criticalPaths": "critical_paths",
    "persistPath": "persist_path",
    "warningThreshold": "warning_threshold",
    "errorThreshold": "error_threshold",
    "includePatterns": "include_patterns",
    "maxWorkers": "max_workers",
}


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> SelectorConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags)

    Returns:
        Validated SelectorConfig instance

    Raises:
        ConfigurationError: If a config file is invalid, missing, or has the wrong shape
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".testsift.toml"
    if global_config.exists():
        _merge(merged, _load_file(global_config))

    project_config = Path.cwd() / "testsift.toml"
    if project_config.exists():
        _merge(merged, _load_file(project_config))

    if config_file is not None:
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigFileError(config_file, "file not found")
        _merge(merged, _load_file(config_file))

    _merge(merged, _load_env_vars())
    _merge(merged, overrides)

    return build_config(merged)


def build_config(data: dict[str, Any]) -> SelectorConfig:
    """Build a SelectorConfig from a plain (possibly camelCase) mapping."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration must be a table, got {type(data).__name__}")

    data = _normalize_keys(data)
    kwargs: dict[str, Any] = {}

    for key, value in data.items():
        if key in _SECTIONS:
            kwargs[key] = _build_section(key, value)
        elif key == "test_suites":
            kwargs[key] = _build_suites(value)
        else:
            kwargs[key] = value

    try:
        config = SelectorConfig(**kwargs)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")

    return config


def _build_section(name: str, value: Any) -> Any:
    section_cls = _SECTIONS[name]
    if isinstance(value, section_cls):
        return value
    if not isinstance(value, dict):
        raise ConfigurationError(f"Invalid [{name}] config: expected a table")

    value = _normalize_keys(value)
    if name == "coverage" and "thresholds" in value:
        thresholds = value["thresholds"]
        if isinstance(thresholds, dict):
            try:
                value["thresholds"] = CoverageThresholds(**thresholds)
            except TypeError as e:
                raise ConfigurationError(f"Invalid [coverage.thresholds] config: {e}")
        elif not isinstance(thresholds, CoverageThresholds):
            raise ConfigurationError("Invalid [coverage.thresholds] config: expected a table")

    try:
        return section_cls(**value)
    except TypeError as e:
        raise ConfigurationError(f"Invalid [{name}] config: {e}")


def _build_suites(value: Any) -> tuple[TestSuiteDefinition, ...]:
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError("Invalid test_suites config: expected a list")
    suites = []
    for index, entry in enumerate(value):
        if isinstance(entry, TestSuiteDefinition):
            suites.append(entry)
            continue
        if not isinstance(entry, dict) or "type" not in entry:
            raise ConfigurationError(
                f"Invalid test_suites[{index}] config: expected a table with a 'type' key"
            )
        try:
            suites.append(TestSuiteDefinition.from_dict(entry))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid test_suites[{index}] config: {e}")
    return tuple(suites)


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    return {_KEY_ALIASES.get(k, k): v for k, v in data.items()}


def _merge(base: dict[str, Any], incoming: dict[str, Any]) -> None:
    """Merge one level deep so a file can override a single threshold."""
    for key, value in _normalize_keys(incoming).items():
        if key in _SECTIONS and isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = {**base[key], **_normalize_keys(value)}
        else:
            base[key] = value


# Scalar top-level fields that may come from TESTSIFT_* variables.
_ENV_FIELDS: dict[str, type] = {
    "project_root": str,
    "debounce_ms": int,
    "max_workers": int,
}


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from TESTSIFT_* environment variables.

    Supported environment variables:
        TESTSIFT_PROJECT_ROOT: str
        TESTSIFT_DEBOUNCE_MS: int
        TESTSIFT_MAX_WORKERS: int
        TESTSIFT_COVERAGE_ENABLED: bool (true/false/1/0)

    Returns:
        Dict of field_name -> parsed_value for any TESTSIFT_* vars found.
    """
    result: dict[str, Any] = {}

    for field_name, field_type in _ENV_FIELDS.items():
        env_key = f"TESTSIFT_{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue
        try:
            result[field_name] = field_type(env_value)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    coverage_flag = os.environ.get("TESTSIFT_COVERAGE_ENABLED")
    if coverage_flag is not None:
        result["coverage"] = {"enabled": _parse_bool("TESTSIFT_COVERAGE_ENABLED", coverage_flag)}

    return result


def _parse_bool(key: str, value: str) -> bool:
    lower = value.lower()
    if lower in ("true", "1", "yes", "on"):
        return True
    if lower in ("false", "0", "no", "off"):
        return False
    raise InvalidConfigError(key, value, "expected true/false")


def _load_file(path: Path) -> dict[str, Any]:
    """Load a TOML or JSON config file and return the parsed dict.

    Raises:
        ConfigFileError: If parsing fails or the top level is not a table
    """
    try:
        if path.suffix == ".json":
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        else:
            data = _load_toml(path)
    except (OSError, ValueError) as e:
        raise ConfigFileError(path, str(e), cause=e)

    if not isinstance(data, dict):
        raise ConfigFileError(path, "top level must be a table")
    return data


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

    with open(path, "rb") as f:
        return tomllib.load(f)
