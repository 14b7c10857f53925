"""Tests for the interactive project selector."""

from pathlib import Path
from unittest.mock import patch

import pytest

pytest.importorskip("textual")

from reclaim.models import BuildArtifact, Project, ProjectCollection, ProjectType
from reclaim.tui import select_projects


@pytest.fixture
def collection():
    return ProjectCollection(
        Project(
            kind=ProjectType.GO,
            root_path=Path(f"/code/svc{i}"),
            artifacts=[BuildArtifact(path=Path(f"/code/svc{i}/vendor"), size=100 * (i + 1))],
        )
        for i in range(3)
    )


class TestSelectProjects:
    @patch("reclaim.tui.selector.ProjectSelectorApp.run", return_value=[0, 2])
    def test_keeps_chosen_in_order(self, mock_run, collection):
        chosen = select_projects(collection)
        assert [p.root_path.name for p in chosen] == ["svc0", "svc2"]

    @patch("reclaim.tui.selector.ProjectSelectorApp.run", return_value=None)
    def test_cancel_selects_nothing(self, mock_run, collection):
        assert len(select_projects(collection)) == 0

    @patch("reclaim.tui.selector.ProjectSelectorApp.run", return_value=[])
    def test_empty_selection(self, mock_run, collection):
        assert not select_projects(collection)

    @patch("reclaim.tui.selector.ProjectSelectorApp.run")
    def test_empty_collection_skips_the_app(self, mock_run):
        assert not select_projects(ProjectCollection())
        mock_run.assert_not_called()
