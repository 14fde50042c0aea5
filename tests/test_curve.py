"""Tests for polyline curves, arc length and curve frames."""

from paramkernel import geom
from paramkernel.curve import (Polyline, arc_lengths, circle_points,
                               closest_point_on_polyline, curve_frames,
                               ensure_polyline, frame_at_length, point_at,
                               point_at_length, polyline, polyline_length,
                               resample_polyline, sample_curve,
                               tangent_at_length)
from paramkernel.frame import world_plane


def _close3(a, b, tol=1e-9):
    return all(abs(a[i] - b[i]) < tol for i in range(3))


SQUARE = polyline([(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)], closed=True)
LINE = polyline([(0, 0, 0), (10, 0, 0)])


class TestPolyline:
    """construction and arc length"""

    def test_closed_drops_repeat(self):
        pl = polyline([(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 0, 0)], closed=True)
        assert len(pl) == 3
        assert pl.closed

    def test_ensure_polyline(self):
        assert ensure_polyline(SQUARE) is SQUARE
        pl = ensure_polyline([(0, 0, 0), (1, 2, 3)])
        assert isinstance(pl, Polyline)
        assert pl.points[1] == [1, 2, 3, 1.0]
        assert ensure_polyline([]) is None
        assert ensure_polyline('abc') is None
        assert ensure_polyline(None) is None

    def test_arc_lengths(self):
        assert arc_lengths(SQUARE) == [0.0, 1.0, 2.0, 3.0, 4.0]
        assert polyline_length(SQUARE) == 4.0
        assert polyline_length(LINE) == 10.0
        assert arc_lengths(Polyline(())) == []

    def test_point_at_length(self):
        assert _close3(point_at_length(LINE, 2.5), [2.5, 0, 0])
        assert _close3(point_at_length(LINE, -3), [0, 0, 0])
        assert _close3(point_at_length(LINE, 100), [10, 0, 0])
        # closed curves wrap around
        assert _close3(point_at_length(SQUARE, 5.0), [1, 0, 0])
        assert _close3(point_at_length(SQUARE, 3.5), [0, 0.5, 0])
        assert _close3(point_at(LINE, 0.25), [2.5, 0, 0])
        assert point_at_length(Polyline(()), 1.0) is None

    def test_tangent(self):
        assert _close3(tangent_at_length(LINE, 5.0), [1, 0, 0])
        assert _close3(tangent_at_length(SQUARE, 1.5), [0, 1, 0])


class TestSampling:
    """resampling and closest points"""

    def test_resample_open(self):
        pts = resample_polyline([(0, 0, 0), (10, 0, 0)], 5)
        assert [p[0] for p in pts] == [0.0, 2.5, 5.0, 7.5, 10.0]
        assert resample_polyline([], 5) == []
        assert len(resample_polyline([(1, 1, 1)], 1)) == 1

    def test_resample_closed(self):
        pts = resample_polyline(SQUARE.points, 4, closed=True)
        for p, q in zip(pts, SQUARE.points):
            assert _close3(p, q)

    def test_sample_curve(self):
        assert len(sample_curve(LINE, 4)) == 5
        assert len(sample_curve(SQUARE, 8)) == 8
        assert sample_curve(None) == []

    def test_closest_point(self):
        s, q, d = closest_point_on_polyline(LINE, (3, 2, 0))
        assert abs(s - 3.0) < 1e-4
        assert _close3(q, [3, 0, 0], 1e-4)
        assert abs(d - 2.0) < 1e-6
        s, q, d = closest_point_on_polyline(LINE, (-5, 1, 0))
        assert s == 0.0
        assert _close3(q, [0, 0, 0])
        s, q, d = closest_point_on_polyline(SQUARE, (0.5, 2, 0))
        assert abs(s - 2.5) < 1e-4
        assert abs(d - 1.0) < 1e-6

    def test_closest_point_empty(self):
        s, q, d = closest_point_on_polyline(Polyline(()), (0, 0, 0))
        assert q is None
        assert d == float('inf')


class TestFrames:
    """parallel-transport frames"""

    path = [(0, 0, 0), (5, 0, 0), (5, 5, 0), (5, 5, 5)]

    def test_frames_orthonormal(self):
        frames = curve_frames(self.path)
        assert len(frames) == 4
        for f, p in zip(frames, self.path):
            assert _close3(f.origin, p)
            assert abs(geom.dot(f.xaxis, f.zaxis)) < 1e-9
            assert _close3(geom.cross(f.xaxis, f.yaxis), f.zaxis)
        assert _close3(frames[0].zaxis, [1, 0, 0])
        assert _close3(frames[-1].zaxis, [0, 0, 1])

    def test_straight_path_does_not_spin(self):
        frames = curve_frames([(0, 0, 0), (0, 0, 1), (0, 0, 2), (0, 0, 3)])
        for f in frames:
            assert _close3(f.xaxis, [1, 0, 0])
            assert _close3(f.zaxis, [0, 0, 1])

    def test_base_plane(self):
        base = world_plane()
        frames = curve_frames([(0, 0, 0), (0, 0, 4)], base=base)
        assert _close3(frames[0].xaxis, base.xaxis)
        assert curve_frames([]) == []

    def test_frame_at_length(self):
        lengths = arc_lengths(LINE)
        frames = curve_frames(LINE.points)
        f = frame_at_length(LINE, 5.0, lengths, frames)
        assert _close3(f.origin, [5, 0, 0])
        assert _close3(f.zaxis, [1, 0, 0])
        assert abs(geom.dot(f.xaxis, f.zaxis)) < 1e-9

    def test_circle_points(self):
        pts = circle_points(world_plane(), 2.0, 4)
        expected = ([2, 0, 0], [0, 2, 0], [-2, 0, 0], [0, -2, 0])
        for p, e in zip(pts, expected):
            assert _close3(p, e)
        assert len(circle_points(world_plane(), 1.0, 1)) == 3
