"""Interactive project selection for reclaim."""

from reclaim.tui.selector import select_projects

__all__ = ["select_projects"]
