"""Configuration file support for reclaim.

Settings are read from ``$XDG_CONFIG_HOME/reclaim/config.toml`` (falling back
to ``~/.config/reclaim/config.toml``). File values act as defaults that
command-line flags override: CLI flag > config file > built-in default.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from reclaim.errors import ConfigError
from reclaim.models import FilterOptions, ProjectType, ScanOptions, SortCriterion, SortOptions

T = TypeVar("T")

APP_NAME = "reclaim"
CONFIG_FILE_NAME = "config.toml"

CONFIG_TEMPLATE = """\
# reclaim configuration
# Uncomment and change as needed. Values are the defaults unless marked
# as an example.

# Project type to scan: all, or one of
# rust, node, python, go, java, cpp, swift, dotnet, ruby, elixir,
# deno, php, haskell, dart, zig, scala
# project_type = "all"

# Directories to scan, example (defaults to the current directory when not set)
# dirs = ["~/Projects"]
# dir = "."

[filtering]
# Ignore projects whose artifacts are smaller than this (e.g. "50MB", "1GiB")
# keep_size = "0"

# Ignore projects built within the last N days (0 = no age filter)
# keep_days = 0

# Sort output by: size, age, name, type, example (unsorted when not set)
# sort = "size"

# Reverse the sort order
# reverse = false

[scanning]
# Number of worker threads (0 = all CPU cores)
# threads = 0

# Report access errors encountered during scanning
# verbose = false

# Directory names to skip during scanning
# skip = []

# Directory names to ignore entirely during scanning
# ignore = []

# Maximum depth to descend below each scanned directory, example
# (unlimited when not set)
# max_depth = 10

[execution]
# Copy compiled executables to <project>/bin/ before cleaning
# keep_executables = false

# Pick projects from an interactive list
# interactive = false

# Preview what would be cleaned without deleting anything
# dry_run = false

# Move artifacts to the trash instead of deleting them permanently
# use_trash = true
"""


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class FilteringConfig(_Section):
    """``[filtering]`` table."""

    keep_size: Optional[str] = None
    keep_days: Optional[int] = Field(None, ge=0)
    sort: Optional[SortCriterion] = None
    reverse: Optional[bool] = None


class ScanningConfig(_Section):
    """``[scanning]`` table."""

    threads: Optional[int] = Field(None, ge=0)
    verbose: Optional[bool] = None
    skip: Optional[list[str]] = None
    ignore: Optional[list[str]] = None
    max_depth: Optional[int] = Field(None, ge=0)


class ExecutionConfig(_Section):
    """``[execution]`` table."""

    keep_executables: Optional[bool] = None
    interactive: Optional[bool] = None
    dry_run: Optional[bool] = None
    use_trash: Optional[bool] = None


class FileConfig(_Section):
    """Contents of the config file. Every value is optional."""

    project_type: Optional[str] = None
    dirs: Optional[list[Path]] = None
    dir: Optional[Path] = None
    filtering: FilteringConfig = Field(default_factory=FilteringConfig)
    scanning: ScanningConfig = Field(default_factory=ScanningConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)

    @field_validator("project_type")
    @classmethod
    def _known_project_type(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.lower()
        if value != "all" and value not in {t.value for t in ProjectType}:
            raise ValueError(f"unknown project type {value!r}")
        return value


def config_path() -> Path:
    """Location of the config file."""
    base = os.environ.get("XDG_CONFIG_HOME")
    config_home = Path(base) if base else Path.home() / ".config"
    return config_home / APP_NAME / CONFIG_FILE_NAME


def expand_tilde(path: Path) -> Path:
    """Expand a leading ``~``; other paths are returned unchanged."""
    return Path(os.path.expanduser(str(path)))


def parse_config(text: str, source: str = "<string>") -> FileConfig:
    """
    Parse TOML config text.

    Raises:
        ConfigError: If the text is not valid TOML or has unknown/invalid keys
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {source}: {e}") from e

    try:
        return FileConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {source}: {e}") from e


def load_config(path: Optional[Path] = None) -> FileConfig:
    """
    Load the config file, returning defaults when it does not exist.

    Args:
        path: File to read (defaults to ``config_path()``)

    Raises:
        ConfigError: If the file exists but cannot be read or parsed
    """
    path = path or config_path()
    if not path.exists():
        return FileConfig()

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    return parse_config(text, str(path))


def init_config(path: Optional[Path] = None) -> bool:
    """
    Write ``CONFIG_TEMPLATE`` unless a config file already exists.

    Returns:
        True if the file was written, False if one was already there
    """
    path = path or config_path()
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    return True


def pick(cli_value: Optional[T], file_value: Optional[T], default: T) -> T:
    """First value that is set: CLI flag, then config file, then default."""
    if cli_value is not None:
        return cli_value
    if file_value is not None:
        return file_value
    return default


def resolve_directories(cli_dirs: Optional[list[Path]], config: FileConfig) -> list[Path]:
    """Directories to scan: CLI arguments, then ``dirs``, then ``dir``, then '.'."""
    if cli_dirs:
        return list(cli_dirs)
    if config.dirs:
        return [expand_tilde(d) for d in config.dirs]
    if config.dir is not None:
        return [expand_tilde(config.dir)]
    return [Path(".")]


def resolve_project_types(
    cli_type: Optional[str], config: FileConfig
) -> Optional[set[ProjectType]]:
    """
    Ecosystems to detect, or None for all of them.

    Raises:
        ConfigError: If the project type is not known
    """
    value = pick(cli_type, config.project_type, "all").lower()
    if value == "all":
        return None
    try:
        return {ProjectType(value)}
    except ValueError as e:
        choices = ", ".join(["all"] + [t.value for t in ProjectType])
        raise ConfigError(f"Unknown project type {value!r} (choose from {choices})") from e


def resolve_skip(
    cli_skip: Optional[list[str]], cli_ignore: Optional[list[str]], config: FileConfig
) -> list[str]:
    """Config-file skip/ignore entries extended with the ones given on the command line."""
    skip: list[str] = []
    for entries in (
        config.scanning.skip,
        config.scanning.ignore,
        cli_skip,
        cli_ignore,
    ):
        for entry in entries or []:
            if entry not in skip:
                skip.append(entry)
    return skip


class Settings(BaseModel):
    """Fully resolved options for one run."""

    model_config = ConfigDict(frozen=True)

    dirs: list[Path]
    kinds: Optional[set[ProjectType]] = None
    scan: ScanOptions
    filter: FilterOptions
    sort: SortOptions
    keep_executables: bool = False
    interactive: bool = False
    dry_run: bool = False
    use_trash: bool = True


def resolve_settings(
    config: FileConfig,
    *,
    dirs: Optional[list[Path]] = None,
    project_type: Optional[str] = None,
    keep_size: Optional[str] = None,
    keep_days: Optional[int] = None,
    sort: Optional[SortCriterion] = None,
    reverse: bool = False,
    threads: Optional[int] = None,
    verbose: bool = False,
    skip: Optional[list[str]] = None,
    ignore: Optional[list[str]] = None,
    max_depth: Optional[int] = None,
    keep_executables: bool = False,
    interactive: bool = False,
    dry_run: bool = False,
    permanent: bool = False,
) -> Settings:
    """
    Layer command-line values over the config file.

    Flags that are switches can only turn a behaviour on; ``permanent``
    turns trash off whatever the file says.
    """
    f, s, e = config.filtering, config.scanning, config.execution
    return Settings(
        dirs=resolve_directories(dirs, config),
        kinds=resolve_project_types(project_type, config),
        scan=ScanOptions(
            verbose=verbose or bool(s.verbose),
            threads=pick(threads, s.threads, 0),
            skip=resolve_skip(skip, ignore, config),
            max_depth=pick(max_depth, s.max_depth, None),
        ),
        filter=FilterOptions(
            min_size=pick(keep_size, f.keep_size, "0"),
            min_age_days=pick(keep_days, f.keep_days, 0),
        ),
        sort=SortOptions(
            criterion=pick(sort, f.sort, None),
            reverse=reverse or bool(f.reverse),
        ),
        keep_executables=keep_executables or bool(e.keep_executables),
        interactive=interactive or bool(e.interactive),
        dry_run=dry_run or bool(e.dry_run),
        use_trash=not permanent and pick(None, e.use_trash, True),
    )


def format_config(config: FileConfig) -> str:
    """Effective settings as TOML-like text (file values merged with defaults)."""

    def show(value, default) -> str:
        value = default if value is None else value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (SortCriterion, ProjectType)):
            return f'"{value.value}"'
        if isinstance(value, (str, Path)):
            return f'"{value}"'
        if isinstance(value, list):
            return "[" + ", ".join(f'"{v}"' for v in value) + "]"
        return str(value)

    f, s, e = config.filtering, config.scanning, config.execution
    dirs = config.dirs if config.dirs else ([config.dir] if config.dir else [Path(".")])

    lines = [
        f"project_type = {show(config.project_type, 'all')}",
        f"dirs = {show(dirs, [])}",
        "",
        "[filtering]",
        f"keep_size = {show(f.keep_size, '0')}",
        f"keep_days = {show(f.keep_days, 0)}",
        f"sort = {show(f.sort, 'none')}",
        f"reverse = {show(f.reverse, False)}",
        "",
        "[scanning]",
        f"threads = {show(s.threads, 0)}",
        f"verbose = {show(s.verbose, False)}",
        f"skip = {show(s.skip, [])}",
        f"ignore = {show(s.ignore, [])}",
        f"max_depth = {show(s.max_depth, 'unlimited')}",
        "",
        "[execution]",
        f"keep_executables = {show(e.keep_executables, False)}",
        f"interactive = {show(e.interactive, False)}",
        f"dry_run = {show(e.dry_run, False)}",
        f"use_trash = {show(e.use_trash, True)}",
    ]
    return "\n".join(lines)
