"""Machine-readable JSON output for ``--json`` runs."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from reclaim.models import CleanResult, Project, ProjectCollection, ProjectType
from reclaim.sizes import format_size


class JsonArtifact(BaseModel):
    path: str
    size: int
    size_formatted: str


class JsonProjectEntry(BaseModel):
    """One project in the report."""

    name: Optional[str] = None
    kind: ProjectType = Field(..., serialization_alias="type")
    root_path: str
    artifacts: list[JsonArtifact] = Field(default_factory=list)
    total_size: int
    total_size_formatted: str

    @classmethod
    def from_project(cls, project: Project) -> JsonProjectEntry:
        return cls(
            name=project.name,
            kind=project.kind,
            root_path=str(project.root_path),
            artifacts=[
                JsonArtifact(
                    path=str(a.path),
                    size=a.size or 0,
                    size_formatted=format_size(a.size or 0),
                )
                for a in project.artifacts
            ],
            total_size=project.total_size,
            total_size_formatted=format_size(project.total_size),
        )


class JsonTypeSummary(BaseModel):
    count: int
    size: int
    size_formatted: str


class JsonSummary(BaseModel):
    """Totals over every reported project."""

    total_projects: int
    total_size: int
    total_size_formatted: str
    by_type: dict[str, JsonTypeSummary] = Field(default_factory=dict)

    @classmethod
    def from_projects(cls, projects: list[Project]) -> JsonSummary:
        collection = ProjectCollection(projects)
        by_type = {
            kind.value: JsonTypeSummary(
                count=summary.count,
                size=summary.size,
                size_formatted=format_size(summary.size),
            )
            for kind, summary in sorted(collection.by_type().items(), key=lambda kv: kv[0].value)
        }
        return cls(
            total_projects=len(collection),
            total_size=collection.total_size,
            total_size_formatted=format_size(collection.total_size),
            by_type=by_type,
        )


class JsonCleanupResult(BaseModel):
    """Outcome block present only after a real cleanup."""

    success_count: int
    failure_count: int
    total_freed: int
    total_freed_formatted: str
    estimated_size: int
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_clean_result(cls, result: CleanResult) -> JsonCleanupResult:
        return cls(
            success_count=result.success_count,
            failure_count=result.failure_count,
            total_freed=result.total_freed,
            total_freed_formatted=format_size(result.total_freed),
            estimated_size=result.estimated_size,
            errors=list(result.errors),
        )


class JsonOutput(BaseModel):
    """Top-level JSON document."""

    mode: Literal["dry_run", "cleanup"]
    projects: list[JsonProjectEntry] = Field(default_factory=list)
    summary: JsonSummary
    cleanup: Optional[JsonCleanupResult] = None

    @classmethod
    def from_projects_dry_run(cls, projects: list[Project]) -> JsonOutput:
        return cls(
            mode="dry_run",
            projects=[JsonProjectEntry.from_project(p) for p in projects],
            summary=JsonSummary.from_projects(projects),
        )

    @classmethod
    def from_projects_cleanup(cls, projects: list[Project], result: CleanResult) -> JsonOutput:
        return cls(
            mode="cleanup",
            projects=[JsonProjectEntry.from_project(p) for p in projects],
            summary=JsonSummary.from_projects(projects),
            cleanup=JsonCleanupResult.from_clean_result(result),
        )

    def to_json(self) -> str:
        exclude = {"cleanup"} if self.cleanup is None else None
        return self.model_dump_json(indent=2, by_alias=True, exclude=exclude)
