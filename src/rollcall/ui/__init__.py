"""Console UI collaborator."""

from rollcall.ui.console import RENDER_PRIORITY, RosterView

__all__ = ["RENDER_PRIORITY", "RosterView"]
