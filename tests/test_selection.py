import pytest

from vibe_studio.models import SelectionBounds
from vibe_studio.selection import SelectionTracker, selected_text

CONTENT = "const answer = 42;"


def test_selected_range():
    assert selected_text(CONTENT, SelectionBounds(start=6, end=12)) == "answer"


@pytest.mark.parametrize("start, end", [(5, 5), (9, 3), (0, 0)])
def test_degenerate_bounds(start, end):
    assert selected_text(CONTENT, SelectionBounds(start=start, end=end)) == ""


@pytest.mark.parametrize("bounds", [None, SelectionBounds(), SelectionBounds(start=2)])
def test_unavailable_bounds(bounds):
    assert selected_text(CONTENT, bounds) == ""


def test_end_past_content_is_clamped():
    assert selected_text("abc", SelectionBounds(start=1, end=50)) == "bc"


def test_tracker_pushes_every_update():
    seen = []
    tracker = SelectionTracker(on_selection_changed=seen.append)

    assert tracker.update(CONTENT, SelectionBounds(start=0, end=5)) == "const"
    tracker.update(CONTENT, SelectionBounds(start=5, end=5))

    assert seen == ["const", ""]


def test_tracker_without_listener():
    assert SelectionTracker().update(CONTENT, SelectionBounds(start=15, end=17)) == "42"
