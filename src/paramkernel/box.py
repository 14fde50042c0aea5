"""Oriented boxes, box moments and sphere fitting.

A :class:`Box` is a frame plus an axis-aligned extent expressed in that
frame's local coordinates, so any point set can be boxed in any
orientation by mapping it into the frame and taking its bounds.

Copyright (c) 2025 paramKernel contributors
MIT License
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from paramkernel import geom
from paramkernel.frame import (Plane, apply_plane, ensure_domain,
                               ensure_plane, plane_coordinates,
                               plane_from_normal, world_plane)
from paramkernel.mesh import Mesh
from paramkernel.settings import EPSILON
from paramkernel.surface import Surface, sphere_surface
from paramkernel.xform import solve_linear_system

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]

# outward-facing triangles over the corner ordering used by Box.corners
_BOX_TRIANGLES = (
    (0, 1, 3), (0, 3, 2),
    (4, 6, 7), (4, 7, 5),
    (0, 4, 5), (0, 5, 1),
    (2, 3, 7), (2, 7, 6),
    (0, 2, 6), (0, 6, 4),
    (1, 5, 7), (1, 7, 3),
)


# -----------------------------------------------------------------------------
# Box
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Box:
    """Oriented box.

    ``local_min`` and ``local_max`` are sorted ``(x, y, z)`` extents in
    the coordinates of ``plane``.
    """

    plane: Plane
    local_min: Vec3
    local_max: Vec3

    @property
    def size(self) -> Vec3:
        return tuple(self.local_max[i] - self.local_min[i] for i in range(3))

    @property
    def local_center(self) -> Vec3:
        return tuple(0.5 * (self.local_min[i] + self.local_max[i]) for i in range(3))

    @property
    def center(self) -> list:
        return apply_plane(self.plane, self.local_center)

    @property
    def corners(self) -> List[list]:
        """The eight corners, x varying slowest and z fastest, so corner
        ``k`` sits at local ``(k >> 2 & 1, k >> 1 & 1, k & 1)``."""
        lo, hi = self.local_min, self.local_max
        return [apply_plane(self.plane, x, y, z)
                for x in (lo[0], hi[0])
                for y in (lo[1], hi[1])
                for z in (lo[2], hi[2])]

    @property
    def bbox(self) -> list:
        """World axis-aligned bounds ``[min, max]``."""
        return geom.pointbbox(self.corners)

    @property
    def geometry(self) -> Optional[Mesh]:
        """Triangle mesh of the box surface, or ``None`` if any side is
        degenerate."""
        if min(self.size) <= EPSILON:
            return None
        return Mesh(tuple(self.corners), _BOX_TRIANGLES, {'source': 'box'})


def box_from_plane_extents(plane, local_min: Sequence[float], local_max: Sequence[float]) -> Box:
    """Box in ``plane`` between two local corners (in any order)."""
    pl = ensure_plane(plane)
    lo = tuple(float(min(local_min[i], local_max[i])) for i in range(3))
    hi = tuple(float(max(local_min[i], local_max[i])) for i in range(3))
    return Box(pl, lo, hi)


def box_from_points(points: Sequence, plane=None) -> Optional[Box]:
    """Tightest box around ``points`` aligned with ``plane`` (world XY by
    default); ``None`` for an empty point set."""
    if not points:
        return None
    pl = ensure_plane(plane)
    coords = [plane_coordinates(p, pl) for p in points]
    lo = tuple(min(c[i] for c in coords) for i in range(3))
    hi = tuple(max(c[i] for c in coords) for i in range(3))
    return Box(pl, lo, hi)


def box_from_bbox(lo, hi) -> Box:
    """World-aligned box between two corner points."""
    return box_from_plane_extents(world_plane(), geom.xyz(lo), geom.xyz(hi))


def box_from_center_size(center, size, plane=None) -> Box:
    """Box of ``size`` (a number or an ``(x, y, z)`` triple) centred on
    ``center``, aligned with ``plane``."""
    if geom.isgoodnum(size):
        size = (size, size, size)
    base = ensure_plane(plane)
    pl = Plane(geom.point(center), base.xaxis, base.yaxis, base.zaxis)
    half = [abs(s) / 2.0 for s in size[:3]]
    return Box(pl, tuple(-h for h in half), tuple(half))


def box_from_domains(plane, domain_x, domain_y, domain_z) -> Optional[Box]:
    """Box spanning three local domains in ``plane``."""
    dx = ensure_domain(domain_x)
    dy = ensure_domain(domain_y)
    dz = ensure_domain(domain_z)
    if dx is None or dy is None or dz is None:
        return None
    return box_from_plane_extents(plane, (dx.min, dy.min, dz.min), (dx.max, dy.max, dz.max))


def box_from_plane_size(plane, size_x: float, size_y: float, size_z: float) -> Box:
    """Box centred on the plane origin with the given dimensions."""
    hx, hy, hz = abs(size_x) / 2.0, abs(size_y) / 2.0, abs(size_z) / 2.0
    return box_from_plane_extents(plane, (-hx, -hy, -hz), (hx, hy, hz))


def box_from_rectangle(plane, width: float, height: float, depth: float) -> Box:
    """Box over a ``width`` x ``height`` rectangle centred in ``plane``,
    extruded by ``depth`` along the normal (negative depth goes below)."""
    hx, hy = abs(width) / 2.0, abs(height) / 2.0
    return box_from_plane_extents(plane, (-hx, -hy, min(0.0, depth)),
                                  (hx, hy, max(0.0, depth)))


def union_boxes(boxes: Sequence[Optional[Box]]) -> Optional[Box]:
    """World-aligned box enclosing every box in ``boxes``."""
    corners = [c for b in boxes if b is not None for c in b.corners]
    if not corners:
        return None
    return box_from_points(corners)


def ensure_box_data(value, plane=None) -> Optional[Box]:
    """Coerce ``value`` into a :class:`Box`.

    Accepted shapes
    ---------------
    :class:`Box`
        returned as-is, or re-fitted to ``plane`` when one is given
    :class:`Sphere`
        the box around the sphere
    sequence of points
        the bounds of the points (a ``(min, max)`` pair included)
    any other geometry
        the bounds of its collected points

    Returns ``None`` when no points can be found.
    """
    if value is None:
        return None
    if isinstance(value, Box):
        if plane is None:
            return value
        return box_from_points(value.corners, plane)
    if isinstance(value, Sphere):
        return box_from_center_size(value.center, 2.0*value.radius, plane)
    if isinstance(value, (list, tuple)) and value and all(
            isinstance(p, (list, tuple)) and len(p) in (3, 4)
            and all(geom.isgoodnum(c) for c in p) for p in value):
        return box_from_points([geom.point(p) for p in value], plane)
    from paramkernel.walker import collect_points
    return box_from_points(collect_points(value), plane)


@dataclass(frozen=True)
class ContentBoxes:
    """World-aligned and plane-aligned boxes for a list of items."""

    world: tuple
    plane: tuple


def boxes_for_content(items: Sequence, plane=None, union: bool = False) -> ContentBoxes:
    """Bounding boxes for each item (or one enclosing box when
    ``union`` is set), world-aligned and, when ``plane`` is given, also
    aligned with ``plane``.  Items without points are skipped."""
    from paramkernel.walker import collect_points
    if not isinstance(items, (list, tuple)):
        items = [items]
    pl = ensure_plane(plane) if plane is not None else None
    world, planar, everything = [], [], []
    for item in items:
        pts = collect_points(item)
        if not pts:
            continue
        everything.extend(pts)
        world.append(box_from_points(pts))
        if pl is not None:
            planar.append(box_from_points(pts, pl))
    if union:
        world = [box_from_points(everything)] if everything else []
        planar = [box_from_points(everything, pl)] if everything and pl is not None else []
    return ContentBoxes(tuple(world), tuple(planar))


# -----------------------------------------------------------------------------
# Moments and inclusion
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class BoxMetrics:
    """Solid moments of a uniform-density box, in its own frame."""

    volume: float
    area: float
    center: list
    inertia: Vec3
    radii_of_gyration: Vec3
    mass: float


def box_metrics(box: Box, mass: Optional[float] = None) -> BoxMetrics:
    """Volume, surface area, centroid and diagonal inertia tensor.

    Mass defaults to the volume (unit density); an explicit ``mass``
    rescales the inertia linearly.
    """
    a, b, c = box.size
    volume = abs(a * b * c)
    area = 2.0 * (abs(a*b) + abs(b*c) + abs(c*a))
    m = volume if mass is None else float(mass)
    inertia = (m / 12.0 * (b*b + c*c),
               m / 12.0 * (a*a + c*c),
               m / 12.0 * (a*a + b*b))
    if m > 0.0:
        radii = tuple(math.sqrt(i / m) for i in inertia)
    else:
        radii = (0.0, 0.0, 0.0)
    return BoxMetrics(volume, area, box.center, inertia, radii, m)


def box_contains(box: Box, point, tolerance: float = 0.0, strict: bool = False) -> bool:
    """Is ``point`` inside ``box``?

    Non-strict inclusion accepts points up to ``tolerance`` outside the
    faces; strict inclusion requires points to be more than
    ``tolerance`` inside them.
    """
    tol = abs(tolerance)
    c = plane_coordinates(point, box.plane)
    for i in range(3):
        lo, hi = box.local_min[i], box.local_max[i]
        if strict:
            if not (lo + tol < c[i] < hi - tol):
                return False
        elif not (lo - tol <= c[i] <= hi + tol):
            return False
    return True


def box_includes_points(box: Box, points: Sequence, tolerance: float = 0.0,
                        strict: bool = False) -> List[bool]:
    return [box_contains(box, p, tolerance, strict) for p in points]


# -----------------------------------------------------------------------------
# Spheres
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Sphere:
    center: list
    radius: float
    surface: Optional[Surface] = field(default=None, compare=False)


def fit_sphere(points: Sequence) -> Optional[Sphere]:
    """Algebraic least-squares sphere through ``points``.

    Solves ``[x y z 1] . [D E F G] = -(x^2 + y^2 + z^2)`` through the
    normal equations.  Returns ``None`` for fewer than four points, a
    singular system, or a non-positive squared radius.
    """
    if not points or len(points) < 4:
        return None
    ata = [[0.0]*4 for _ in range(4)]
    atb = [0.0]*4
    for p in points:
        row = (p[0], p[1], p[2], 1.0)
        rhs = -(p[0]*p[0] + p[1]*p[1] + p[2]*p[2])
        for i in range(4):
            atb[i] += row[i] * rhs
            for j in range(4):
                ata[i][j] += row[i] * row[j]
    sol = solve_linear_system(ata, atb)
    if sol is None:
        return None
    D, E, F, G = sol
    center = geom.point(-D/2.0, -E/2.0, -F/2.0)
    r2 = geom.mag2(center) - G
    if r2 <= 0.0:
        return None
    return Sphere(center, math.sqrt(r2))


def bounding_sphere(points: Sequence) -> Optional[Sphere]:
    """Sphere centred on the bounding-box centre that encloses every
    point; ``None`` when the radius would be zero."""
    box = geom.pointbbox(points)
    if box is None:
        return None
    center = geom.point(geom.lerp(box[0], box[1], 0.5))
    radius = max(geom.dist(center, p) for p in points)
    if not math.isfinite(radius) or radius <= EPSILON:
        return None
    return Sphere(center, radius)


def _unique_points(points: Sequence, tol: float = EPSILON) -> list:
    out = []
    for p in points:
        if all(geom.dist(p, q) > tol for q in out):
            out.append(p)
    return out


def compute_sphere_from_points(points: Sequence) -> Optional[Sphere]:
    """Best sphere for ``points``.

    Tries the least-squares fit, then a fit through the first four
    distinct points, then the bounding sphere.  ``None`` for empty
    input.
    """
    if not points:
        return None
    pts = [geom.point(p) for p in points]
    result = None
    if len(pts) >= 4:
        result = fit_sphere(pts)
        if result is None:
            uniq = _unique_points(pts)
            base = uniq[:4] if len(uniq) >= 4 else pts[:4]
            result = fit_sphere(base)
    if result is None:
        logger.debug('sphere fit failed for %d points, using bounding sphere', len(pts))
        result = bounding_sphere(pts)
    return result


def sphere_result(center, radius: float, plane=None) -> Sphere:
    """:class:`Sphere` with an attached sphere :class:`Surface`, oriented
    by ``plane``'s normal when one is given."""
    c = geom.point(center)
    if plane is not None:
        base = plane_from_normal(c, ensure_plane(plane).zaxis)
    else:
        base = world_plane(c)
    return Sphere(c, abs(radius), sphere_surface(c, radius, base))


__all__ = [
    'Box', 'BoxMetrics', 'ContentBoxes', 'Sphere', 'box_from_plane_extents',
    'box_from_points', 'box_from_bbox', 'box_from_center_size',
    'box_from_domains', 'box_from_plane_size', 'box_from_rectangle',
    'union_boxes', 'ensure_box_data', 'boxes_for_content', 'box_metrics',
    'box_contains', 'box_includes_points', 'fit_sphere', 'bounding_sphere',
    'compute_sphere_from_points', 'sphere_result',
]
