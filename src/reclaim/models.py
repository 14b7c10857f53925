"""Data models for reclaim."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from reclaim.sizes import format_size


class ProjectType(str, Enum):
    """Supported development ecosystems."""

    RUST = "rust"
    NODE = "node"
    PYTHON = "python"
    GO = "go"
    JAVA = "java"
    CPP = "cpp"
    SWIFT = "swift"
    DOTNET = "dotnet"
    RUBY = "ruby"
    ELIXIR = "elixir"
    DENO = "deno"
    PHP = "php"
    HASKELL = "haskell"
    DART = "dart"
    ZIG = "zig"
    SCALA = "scala"

    @property
    def icon(self) -> str:
        return PROJECT_ICONS[self]

    @property
    def label(self) -> str:
        return PROJECT_LABELS[self]


PROJECT_ICONS: dict[ProjectType, str] = {
    ProjectType.RUST: "🦀",
    ProjectType.NODE: "📦",
    ProjectType.PYTHON: "🐍",
    ProjectType.GO: "🐹",
    ProjectType.JAVA: "☕",
    ProjectType.CPP: "⚙️",
    ProjectType.SWIFT: "🐦",
    ProjectType.DOTNET: "🔷",
    ProjectType.RUBY: "💎",
    ProjectType.ELIXIR: "💧",
    ProjectType.DENO: "🦕",
    ProjectType.PHP: "🐘",
    ProjectType.HASKELL: "λ",
    ProjectType.DART: "🎯",
    ProjectType.ZIG: "⚡",
    ProjectType.SCALA: "🔴",
}

PROJECT_LABELS: dict[ProjectType, str] = {
    ProjectType.RUST: "Rust",
    ProjectType.NODE: "Node.js",
    ProjectType.PYTHON: "Python",
    ProjectType.GO: "Go",
    ProjectType.JAVA: "Java/Kotlin",
    ProjectType.CPP: "C/C++",
    ProjectType.SWIFT: "Swift",
    ProjectType.DOTNET: ".NET/C#",
    ProjectType.RUBY: "Ruby",
    ProjectType.ELIXIR: "Elixir",
    ProjectType.DENO: "Deno",
    ProjectType.PHP: "PHP",
    ProjectType.HASKELL: "Haskell",
    ProjectType.DART: "Dart/Flutter",
    ProjectType.ZIG: "Zig",
    ProjectType.SCALA: "Scala",
}


class SortCriterion(str, Enum):
    """Ordering applied to the project list before display."""

    SIZE = "size"  # largest first
    AGE = "age"  # oldest first
    NAME = "name"  # case-insensitive alphabetical
    TYPE = "type"  # grouped by ecosystem


class RemovalStrategy(str, Enum):
    """How artifact directories are removed."""

    PERMANENT = "permanent"
    TRASH = "trash"

    @classmethod
    def from_use_trash(cls, use_trash: bool) -> RemovalStrategy:
        return cls.TRASH if use_trash else cls.PERMANENT


class BuildArtifact(BaseModel):
    """A regenerable directory owned by a project."""

    path: Path = Field(..., description="Absolute path of the artifact directory")
    size: Optional[int] = Field(
        None,
        description="Size in bytes; None until the sizing pass has measured it",
    )


class Project(BaseModel):
    """A development project with one or more build artifact directories."""

    kind: ProjectType = Field(..., description="Ecosystem that produced the artifacts")
    root_path: Path = Field(..., description="Directory holding the manifest file")
    artifacts: list[BuildArtifact] = Field(default_factory=list)
    name: Optional[str] = Field(None, description="Name read from the manifest")

    @property
    def total_size(self) -> int:
        """Sum of all measured artifact sizes."""
        return sum(a.size or 0 for a in self.artifacts)

    @property
    def primary_artifact(self) -> Optional[BuildArtifact]:
        return self.artifacts[0] if self.artifacts else None

    @property
    def display_label(self) -> str:
        """Line used by selection lists: icon, path and human size."""
        return f"{self.kind.icon} {self.root_path} ({format_size(self.total_size)})"

    def __str__(self) -> str:
        if self.name:
            return f"{self.kind.icon} {self.name} ({self.root_path})"
        return f"{self.kind.icon} {self.root_path}"


class TypeSummary(BaseModel):
    """Count and size of the projects of one ecosystem."""

    count: int = 0
    size: int = 0


class ProjectCollection:
    """Ordered list of projects with aggregate helpers.

    Order is scan order unless the caller sorted the list before wrapping it.
    """

    def __init__(self, projects: Iterable[Project] = ()) -> None:
        self._projects = list(projects)

    def __iter__(self) -> Iterator[Project]:
        return iter(self._projects)

    def __len__(self) -> int:
        return len(self._projects)

    def __getitem__(self, index: int) -> Project:
        return self._projects[index]

    def __bool__(self) -> bool:
        return bool(self._projects)

    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    @property
    def total_size(self) -> int:
        return sum(p.total_size for p in self._projects)

    def by_type(self) -> dict[ProjectType, TypeSummary]:
        """Per-ecosystem breakdown, in ProjectType declaration order."""
        summary: dict[ProjectType, TypeSummary] = {}
        for kind in ProjectType:
            matching = [p for p in self._projects if p.kind == kind]
            if matching:
                summary[kind] = TypeSummary(
                    count=len(matching),
                    size=sum(p.total_size for p in matching),
                )
        return summary

    def display_items(self) -> list[str]:
        return [p.display_label for p in self._projects]

    def subset(self, indices: Iterable[int]) -> ProjectCollection:
        """Projects at the given positions, kept in collection order."""
        wanted = set(indices)
        return ProjectCollection(p for i, p in enumerate(self._projects) if i in wanted)


class ScanOptions(BaseModel):
    """Options controlling directory traversal."""

    model_config = ConfigDict(frozen=True)

    verbose: bool = False
    threads: int = Field(0, description="Worker count; 0 uses every available core")
    skip: list[str] = Field(default_factory=list, description="Directory names to skip")
    max_depth: Optional[int] = Field(None, description="Deepest level to descend (root is 0)")


class FilterOptions(BaseModel):
    """Post-scan filters."""

    model_config = ConfigDict(frozen=True)

    min_size: str = Field("0", description="Smallest total artifact size to keep, e.g. '50MB'")
    min_age_days: int = Field(0, ge=0, description="Keep only artifacts untouched for N days")


class SortOptions(BaseModel):
    """Ordering of the filtered project list."""

    model_config = ConfigDict(frozen=True)

    criterion: Optional[SortCriterion] = None
    reverse: bool = False


class PreservedFile(BaseModel):
    """An executable copied out of an artifact directory before deletion."""

    source: Path
    destination: Path


class CleanResult(BaseModel):
    """Outcome of a cleanup run."""

    model_config = ConfigDict(frozen=True)

    success_count: int = Field(..., description="Projects cleaned without error")
    failure_count: int = Field(0, description="Projects with at least one failed artifact")
    total_freed: int = Field(..., description="Bytes actually removed")
    estimated_size: int = Field(..., description="Bytes reported by the scan")
    errors: list[str] = Field(default_factory=list, description="One message per failed artifact")
