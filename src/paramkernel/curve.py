"""Polyline curves.

Curves in the kernel are sampled polylines.  Every curve consumer
(sweeps, pipes, flow, curve mirroring) goes through the arc-length
helpers and the parallel-transport frames defined here.

Copyright (c) 2025 paramKernel contributors
MIT License
"""

from __future__ import annotations

import math
from bisect import bisect_left
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from paramkernel import geom
from paramkernel.frame import Plane, plane_from_frame
from paramkernel.settings import CURVE_SEGMENTS, EPSILON, FLOW_SAMPLES


@dataclass(frozen=True)
class Polyline:
    """Ordered point sequence.  A closed polyline has an implicit
    segment from the last point back to the first."""

    points: tuple
    closed: bool = False

    def __len__(self) -> int:
        return len(self.points)


def polyline(points: Sequence, closed: bool = False) -> Polyline:
    """Build a :class:`Polyline` from any sequence of point-like values.
    A repeated closing point is dropped when ``closed`` is set."""
    pts = [geom.point(p) for p in points]
    if closed and len(pts) > 2 and geom.vclose(pts[0], pts[-1]):
        pts = pts[:-1]
    return Polyline(tuple(pts), bool(closed))


def ensure_polyline(value) -> Optional[Polyline]:
    """A :class:`Polyline` as-is, or a polyline through a list of points;
    ``None`` for anything else or fewer than one point."""
    if isinstance(value, Polyline):
        return value
    if isinstance(value, (list, tuple)) and value and all(
            isinstance(p, (list, tuple)) and len(p) in (3, 4) for p in value):
        return polyline(value)
    return None


def _vertices(pl: Polyline) -> list:
    pts = list(pl.points)
    if pl.closed and len(pts) > 1:
        pts.append(pts[0])
    return pts


def arc_lengths(pl: Polyline) -> List[float]:
    """Cumulative arc length at each vertex (closing vertex included for
    closed polylines)."""
    pts = _vertices(pl)
    if not pts:
        return []
    acc = [0.0]
    for i in range(1, len(pts)):
        acc.append(acc[-1] + geom.dist(pts[i], pts[i-1]))
    return acc


def polyline_length(pl: Polyline) -> float:
    acc = arc_lengths(pl)
    return acc[-1] if acc else 0.0


def point_at_length(pl: Polyline, s: float, lengths: Optional[List[float]] = None) -> Optional[list]:
    """Point at arc length ``s``, clamped to the curve (wrapped when
    closed).  ``None`` for an empty polyline."""
    pts = _vertices(pl)
    if not pts:
        return None
    if len(pts) == 1:
        return geom.point(pts[0])
    acc = lengths if lengths is not None else arc_lengths(pl)
    total = acc[-1]
    if total <= EPSILON:
        return geom.point(pts[0])
    if pl.closed:
        s = s % total
    else:
        s = geom.clamp(s, 0.0, total)
    i = max(1, min(len(acc) - 1, bisect_left(acc, s)))
    seg = acc[i] - acc[i-1]
    f = 0.0 if seg <= EPSILON else (s - acc[i-1]) / seg
    return geom.point(geom.lerp(pts[i-1], pts[i], f))


def point_at(pl: Polyline, t: float) -> Optional[list]:
    """Point at normalised arc-length parameter ``t`` in [0, 1]."""
    return point_at_length(pl, t * polyline_length(pl))


def tangent_at_length(pl: Polyline, s: float, lengths: Optional[List[float]] = None) -> list:
    """Unit tangent at arc length ``s``; world X for degenerate curves."""
    acc = lengths if lengths is not None else arc_lengths(pl)
    total = acc[-1] if acc else 0.0
    h = max(total * 1e-4, EPSILON)
    if pl.closed:
        a = point_at_length(pl, s - h, acc)
        b = point_at_length(pl, s + h, acc)
    else:
        a = point_at_length(pl, max(0.0, s - h), acc)
        b = point_at_length(pl, min(total, s + h), acc)
    if a is None or b is None:
        return geom.vector(1, 0, 0)
    return geom.unit(geom.sub(b, a), [1.0, 0.0, 0.0])


def resample_polyline(points: Sequence, count: int, closed: bool = False) -> list:
    """``count`` points evenly spaced by arc length along ``points``.

    For closed input the samples do not repeat the start point.
    """
    if not points:
        return []
    pts = [geom.point(p) for p in points]
    if count <= 1:
        return [pts[0]]
    pl = Polyline(tuple(pts), closed)
    acc = arc_lengths(pl)
    total = acc[-1]
    if total <= EPSILON:
        return [geom.point(pts[0]) for _ in range(count)]
    denom = count if closed else max(count - 1, 1)
    return [point_at_length(pl, total * i / denom, acc) for i in range(count)]


def sample_curve(value, segments: int = CURVE_SEGMENTS) -> list:
    """Points of a polyline-like value resampled to ``segments + 1``
    evenly spaced points (``segments`` when closed)."""
    pl = ensure_polyline(value)
    if pl is None:
        return []
    n = segments if pl.closed else segments + 1
    return resample_polyline(pl.points, n, pl.closed)


# ---------------------------------------------------------------------------
# Closest point
# ---------------------------------------------------------------------------


def closest_point_on_polyline(pl: Polyline, point, samples: int = FLOW_SAMPLES,
                              iterations: int = 32) -> Tuple[float, Optional[list], float]:
    """Closest point to ``point`` on ``pl``.

    A dense arc-length sampling brackets the answer, which is then
    refined by step-halving local search.

    Returns
    -------
    tuple
        ``(arc_length, closest_point, distance)``; ``(0.0, None, inf)``
        for an empty polyline
    """
    acc = arc_lengths(pl)
    if not acc:
        return 0.0, None, math.inf
    total = acc[-1]
    p = geom.point(point)
    samples = max(1, int(samples))
    best_s = 0.0
    best_d = math.inf
    for i in range(samples + 1):
        s = total * i / samples
        d = geom.dist(point_at_length(pl, s, acc), p)
        if d < best_d:
            best_s, best_d = s, d
    step = total / samples
    for _ in range(iterations):
        if step <= EPSILON:
            break
        moved = False
        for cand in (best_s - step, best_s + step):
            if not pl.closed:
                cand = geom.clamp(cand, 0.0, total)
            d = geom.dist(point_at_length(pl, cand, acc), p)
            if d < best_d:
                best_s, best_d = cand, d
                moved = True
        if not moved:
            step *= 0.5
    if pl.closed and total > EPSILON:
        best_s %= total
    return best_s, point_at_length(pl, best_s, acc), best_d


# ---------------------------------------------------------------------------
# Frames
# ---------------------------------------------------------------------------


def curve_frames(points: Sequence, base: Optional[Plane] = None, closed: bool = False) -> List[Plane]:
    """Parallel-transport frames along a point sequence.

    Each frame has its origin on the curve and its z axis along the
    local tangent; the x axis is carried over from the previous frame
    (starting from ``base.xaxis`` or world X) and re-orthogonalised, so
    the frames do not spin about the path.
    """
    pts = [geom.point(p) for p in points]
    if not pts:
        return []
    n = len(pts)
    default_z = base.zaxis if base is not None else geom.vector(0, 0, 1)
    prev_x = geom.vector(base.xaxis) if base is not None else geom.vector(1, 0, 0)
    frames = []
    for i in range(n):
        cur = pts[i]
        if i > 0:
            prev = pts[i-1]
        else:
            prev = pts[-1] if closed else cur
        if i < n - 1:
            nxt = pts[i+1]
        else:
            nxt = pts[0] if closed else cur
        z = geom.unit(geom.sub(nxt, prev), default_z)
        x = geom.sub(prev_x, geom.scale3(z, geom.dot(prev_x, z)))
        if geom.mag(x) <= EPSILON:
            x = geom.orthogonal(z)
        y = geom.cross(z, x)
        frame = plane_from_frame(cur, x, y, z)
        frames.append(frame)
        prev_x = frame.xaxis
    return frames


def frame_at_length(pl: Polyline, s: float, lengths: List[float], frames: List[Plane]) -> Plane:
    """Frame at arc length ``s`` interpolated between per-vertex
    ``frames`` (as returned by :func:`curve_frames` on ``pl.points``)."""
    acc = lengths
    total = acc[-1] if acc else 0.0
    origin = point_at_length(pl, s, acc)
    if len(frames) == 1 or total <= EPSILON:
        return plane_from_frame(origin, frames[0].xaxis, frames[0].yaxis, frames[0].zaxis)
    s = s % total if pl.closed else geom.clamp(s, 0.0, total)
    i = max(1, min(len(acc) - 1, bisect_left(acc, s)))
    seg = acc[i] - acc[i-1]
    f = 0.0 if seg <= EPSILON else (s - acc[i-1]) / seg
    fa = frames[i-1]
    fb = frames[i % len(frames)]
    z = tangent_at_length(pl, s, acc)
    x = geom.lerp(fa.xaxis, fb.xaxis, f)
    x = geom.sub(x, geom.scale3(z, geom.dot(x, z)))
    if geom.mag(x) <= EPSILON:
        x = geom.orthogonal(z)
    return plane_from_frame(origin, x, geom.cross(z, x), z)


def circle_points(plane: Plane, radius: float, segments: int = 24) -> list:
    """``segments`` points of a circle of ``radius`` in ``plane``
    (the start point is not repeated)."""
    segments = max(3, int(segments))
    out = []
    for i in range(segments):
        a = geom.pi2 * i / segments
        out.append(geom.point(geom.combine(plane.origin,
                                           (plane.xaxis, radius*math.cos(a)),
                                           (plane.yaxis, radius*math.sin(a)))))
    return out


__all__ = [
    'Polyline', 'polyline', 'ensure_polyline', 'arc_lengths',
    'polyline_length', 'point_at_length', 'point_at', 'tangent_at_length',
    'resample_polyline', 'sample_curve', 'closest_point_on_polyline',
    'curve_frames', 'frame_at_length', 'circle_points',
]
