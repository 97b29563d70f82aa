"""
Tests for interactive shape capture.
"""

import pytest

from core.drawing import PolygonDraft, rectangle_from_drag, move_point, normalize_ring
from core.errors import InputError
from core.models import Point


class TestPolygonDraft:
    """Tests for click-by-click polygon drawing."""

    def test_snap_closes_polygon(self):
        """A click near the first point closes the draft instead of adding a vertex."""
        draft = PolygonDraft()
        assert draft.add_point((0, 0)) is False
        assert draft.add_point((100, 0)) is False
        assert draft.add_point((100, 100)) is False

        assert draft.add_point((5, 5)) is True
        assert draft.closed
        assert len(draft) == 3

        ring = draft.finish()
        assert ring == [Point(0, 0), Point(100, 0), Point(100, 100), Point(0, 0)]

    def test_no_snap_before_three_points(self):
        draft = PolygonDraft()
        draft.add_point((0, 0))
        draft.add_point((50, 0))

        assert draft.add_point((2, 2)) is False
        assert len(draft) == 3

    def test_outside_snap_radius(self):
        draft = PolygonDraft(snap_radius=10)
        for p in [(0, 0), (100, 0), (100, 100)]:
            draft.add_point(p)

        assert draft.add_point((11, 0)) is False
        assert len(draft) == 4

    def test_closed_draft_rejects_points(self):
        draft = PolygonDraft()
        for p in [(0, 0), (100, 0), (100, 100), (0, 1)]:
            draft.add_point(p)

        with pytest.raises(InputError):
            draft.add_point((50, 50))

    def test_undo_and_reset(self):
        draft = PolygonDraft()
        draft.add_point((0, 0))
        draft.add_point((10, 0))

        assert draft.undo_point() == Point(10, 0)
        assert len(draft) == 1

        draft.reset()
        assert len(draft) == 0
        assert draft.undo_point() is None

    def test_finish_too_few_points(self):
        draft = PolygonDraft()
        draft.add_point((0, 0))
        draft.add_point((10, 0))

        with pytest.raises(InputError):
            draft.finish()


class TestRectangleFromDrag:
    """Tests for drag rectangles."""

    def test_normalized_to_top_left(self):
        """Dragging up-left gives the same rectangle as dragging down-right."""
        forward = rectangle_from_drag((10, 20), (50, 80))
        backward = rectangle_from_drag((50, 80), (10, 20))

        assert forward == backward
        assert forward[0] == Point(10, 20)
        assert forward[2] == Point(50, 80)

    def test_too_small(self):
        with pytest.raises(InputError):
            rectangle_from_drag((10, 10), (10.5, 50))


class TestMovePoint:
    """Tests for point-drag edits."""

    def test_moving_first_point_moves_closing_point(self):
        ring = [Point(0, 0), Point(10, 0), Point(10, 10), Point(0, 0)]

        moved = move_point(ring, 0, (2, 3))

        assert moved[0] == Point(2, 3)
        assert moved[-1] == Point(2, 3)
        assert ring[0] == Point(0, 0)  # Input unchanged

    def test_open_ring_last_point_untouched(self):
        ring = [Point(0, 0), Point(10, 0), Point(10, 10), Point(0, 10)]

        moved = move_point(ring, 0, (2, 3))

        assert moved[-1] == Point(0, 10)

    def test_middle_point(self):
        ring = [Point(0, 0), Point(10, 0), Point(10, 10), Point(0, 0)]

        moved = move_point(ring, 2, {"x": 12, "y": 14})

        assert moved[2] == Point(12, 14)
        assert moved[0] == moved[-1] == Point(0, 0)

    def test_index_out_of_range(self):
        with pytest.raises(InputError):
            move_point([Point(0, 0), Point(1, 1), Point(2, 0)], 5, (0, 0))


class TestNormalizeRing:
    """Tests for ring validation."""

    def test_open_ring_is_closed(self):
        ring = normalize_ring([(0, 0), (10, 0), (10, 10)])
        assert len(ring) == 4
        assert ring[0] == ring[-1]

    def test_closed_ring_kept(self):
        ring = normalize_ring([(0, 0), (10, 0), (10, 10), (0, 0)])
        assert len(ring) == 4

    def test_too_few_points(self):
        with pytest.raises(InputError):
            normalize_ring([(0, 0), (10, 0), (0, 0)])
