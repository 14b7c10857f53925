"""Multi-select list of projects, built on textual."""

from __future__ import annotations

from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, SelectionList

from reclaim.models import ProjectCollection


class ProjectSelectorApp(App):
    """Pick which projects to clean. Everything starts selected."""

    TITLE = "reclaim"
    SUB_TITLE = "Select projects to clean"

    BINDINGS = [
        Binding("enter", "confirm", "Clean selected", priority=True),
        Binding("a", "select_all", "All"),
        Binding("n", "select_none", "None"),
        Binding("q", "cancel", "Cancel"),
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    def __init__(self, items: list[str]):
        super().__init__()
        self.items = items

    def compose(self) -> ComposeResult:
        yield Header()
        yield SelectionList[int](
            *[(label, index, True) for index, label in enumerate(self.items)],
            id="projects",
        )
        yield Footer()

    @property
    def selection_list(self) -> SelectionList:
        return self.query_one("#projects", SelectionList)

    def action_confirm(self) -> None:
        self.exit(sorted(self.selection_list.selected))

    def action_select_all(self) -> None:
        self.selection_list.select_all()

    def action_select_none(self) -> None:
        self.selection_list.deselect_all()

    def action_cancel(self) -> None:
        self.exit(None)


def select_projects(collection: ProjectCollection) -> ProjectCollection:
    """
    Let the user choose projects from an interactive list.

    Args:
        collection: Candidate projects

    Returns:
        The chosen projects in their original order; empty when cancelled
    """
    if not collection:
        return ProjectCollection()

    app = ProjectSelectorApp(collection.display_items())
    chosen: Optional[list[int]] = app.run()
    if not chosen:
        return ProjectCollection()
    return collection.subset(chosen)
