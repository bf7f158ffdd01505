"""Editor selection tracking."""

from typing import Callable, Optional

from .models import SelectionBounds


def selected_text(content: str, bounds: Optional[SelectionBounds]) -> str:
    """Text between the selection bounds, or "" for a missing or empty selection."""
    if bounds is None or bounds.start is None or bounds.end is None:
        return ""
    if bounds.end <= bounds.start:
        return ""
    return content[bounds.start:bounds.end]


class SelectionTracker:
    """Pushes the current selection to a listener after edits and pointer/key events."""

    def __init__(self, on_selection_changed: Optional[Callable[[str], None]] = None):
        self.on_selection_changed = on_selection_changed

    def update(self, content: str, bounds: Optional[SelectionBounds]) -> str:
        text = selected_text(content, bounds)
        if self.on_selection_changed:
            self.on_selection_changed(text)
        return text
