"""Tests for the JSON report."""

import json
from pathlib import Path

from reclaim.models import BuildArtifact, CleanResult, Project, ProjectType
from reclaim.output import JsonOutput


def sample_projects():
    return [
        Project(
            kind=ProjectType.RUST,
            root_path=Path("/code/engine"),
            artifacts=[BuildArtifact(path=Path("/code/engine/target"), size=2000)],
            name="engine",
        ),
        Project(
            kind=ProjectType.NODE,
            root_path=Path("/code/web"),
            artifacts=[BuildArtifact(path=Path("/code/web/node_modules"), size=1000)],
            name="web",
        ),
        Project(
            kind=ProjectType.NODE,
            root_path=Path("/code/site"),
            artifacts=[BuildArtifact(path=Path("/code/site/node_modules"), size=500)],
        ),
    ]


class TestDryRunOutput:
    def test_structure(self):
        data = json.loads(JsonOutput.from_projects_dry_run(sample_projects()).to_json())

        assert data["mode"] == "dry_run"
        assert "cleanup" not in data
        assert len(data["projects"]) == 3

        first = data["projects"][0]
        assert first["type"] == "rust"
        assert "kind" not in first
        assert first["name"] == "engine"
        assert first["root_path"] == "/code/engine"
        assert first["total_size"] == 2000
        assert first["artifacts"] == [
            {"path": "/code/engine/target", "size": 2000, "size_formatted": "2.0 KB"}
        ]

    def test_missing_name_is_null(self):
        data = json.loads(JsonOutput.from_projects_dry_run(sample_projects()).to_json())
        assert data["projects"][2]["name"] is None

    def test_summary(self):
        summary = json.loads(JsonOutput.from_projects_dry_run(sample_projects()).to_json())["summary"]
        assert summary["total_projects"] == 3
        assert summary["total_size"] == 3500
        assert list(summary["by_type"]) == ["node", "rust"]
        assert summary["by_type"]["node"]["count"] == 2
        assert summary["by_type"]["node"]["size"] == 1500

    def test_empty(self):
        data = json.loads(JsonOutput.from_projects_dry_run([]).to_json())
        assert data["projects"] == []
        assert data["summary"]["total_projects"] == 0
        assert data["summary"]["by_type"] == {}


class TestCleanupOutput:
    def test_includes_result(self):
        result = CleanResult(
            success_count=2,
            failure_count=1,
            total_freed=3000,
            estimated_size=3500,
            errors=["Failed to clean /code/site/node_modules: denied"],
        )
        data = json.loads(JsonOutput.from_projects_cleanup(sample_projects(), result).to_json())

        assert data["mode"] == "cleanup"
        cleanup = data["cleanup"]
        assert cleanup["success_count"] == 2
        assert cleanup["failure_count"] == 1
        assert cleanup["total_freed"] == 3000
        assert cleanup["total_freed_formatted"] == "3.0 KB"
        assert cleanup["estimated_size"] == 3500
        assert cleanup["errors"] == ["Failed to clean /code/site/node_modules: denied"]
