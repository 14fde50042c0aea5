"""Plane (frame) and domain algebra.

A :class:`Plane` is an orthonormal local coordinate system: an origin
and three unit axes with ``zaxis == xaxis x yaxis``.  Every
constructor in this module returns a valid plane; degenerate input
falls back to the world XY frame rather than raising.

A :class:`Domain` is a directed 1-D interval used to parameterise
curves and surfaces.

Copyright (c) 2025 paramKernel contributors
MIT License
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from paramkernel import geom
from paramkernel.settings import EPSILON
from paramkernel.xform import Basis, Matrix

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Plane
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Plane:
    """Orthonormal frame.  Points are homogeneous ``[x, y, z, 1]`` lists,
    axes are ``[x, y, z, 0]`` direction vectors."""

    origin: list
    xaxis: list
    yaxis: list
    zaxis: list

    def copy(self) -> "Plane":
        return Plane(geom.point(self.origin), geom.vector(self.xaxis),
                     geom.vector(self.yaxis), geom.vector(self.zaxis))


def world_plane(origin=None) -> Plane:
    """World XY plane, optionally moved to ``origin``."""
    o = geom.point(origin) if origin is not None else geom.point(0, 0, 0)
    return Plane(o, geom.vector(1, 0, 0), geom.vector(0, 1, 0),
                 geom.vector(0, 0, 1))


def _is_pointlike(value) -> bool:
    return (isinstance(value, (list, tuple)) and len(value) in (3, 4)
            and all(geom.isgoodnum(c) for c in value))


def normalize_plane_axes(origin, xaxis, yaxis, zaxis=None, tol: float = EPSILON) -> Optional[Plane]:
    """Gram-Schmidt orthonormalisation of a candidate frame.

    ``yaxis`` is corrected against ``xaxis`` and the normal is rebuilt as
    ``x cross y``.  If ``yaxis`` is degenerate (zero or parallel to
    ``xaxis``) it is recovered from ``zaxis`` when one is given, or from
    an arbitrary perpendicular.  Returns ``None`` when ``xaxis`` itself is
    degenerate.
    """
    xu = geom.unit(xaxis) if geom.mag(xaxis) > tol else None
    if xu is None:
        return None
    yproj = geom.sub(geom.vector(yaxis), geom.scale3(xu, geom.dot(yaxis, xu)))
    yu = geom.unit(yproj) if geom.mag(yproj) > tol else None
    if yu is None and zaxis is not None:
        yc = geom.cross(zaxis, xu)
        yu = geom.unit(yc) if geom.mag(yc) > tol else None
    if yu is None:
        yu = geom.unit(geom.cross(geom.orthogonal(xu), xu))
    zu = geom.unit(geom.cross(xu, yu))
    yu = geom.cross(zu, xu)
    return Plane(geom.point(origin), xu, yu, zu)


def plane_from_frame(origin, xaxis, yaxis, zaxis) -> Plane:
    """Plane from an explicit origin and three axes.  The axes are
    re-orthonormalised; a degenerate frame yields world axes at ``origin``."""
    plane = normalize_plane_axes(origin, xaxis, yaxis, zaxis)
    if plane is None:
        logger.debug('degenerate frame, using world axes')
        return world_plane(origin)
    return plane


def plane_from_axes(origin, xaxis, yaxis) -> Plane:
    """Plane from an origin and two (not necessarily orthogonal) axes."""
    plane = normalize_plane_axes(origin, xaxis, yaxis)
    if plane is None:
        logger.debug('degenerate x axis, using world axes')
        return world_plane(origin)
    return plane


def plane_from_points(a, b, c, tol: float = EPSILON) -> Plane:
    """Plane with origin ``a``, x axis along ``b - a`` and normal
    ``(b - a) x (c - a)``.

    Near-collinear (or coincident) points fall back to world-aligned axes
    at ``a``.
    """
    a = geom.point(a)
    x = geom.sub(geom.point(b), a)
    e = geom.sub(geom.point(c), a)
    n = geom.cross(x, e)
    if geom.mag(x) <= tol or geom.mag(n) <= tol * max(1.0, geom.mag(x) * geom.mag(e)):
        logger.debug('collinear points, using world axes')
        return world_plane(a)
    y = geom.cross(n, x)
    return plane_from_frame(a, x, y, n)


def plane_from_normal(origin, normal, xhint=None) -> Plane:
    """Plane through ``origin`` with normal ``normal``.

    The x axis follows ``xhint`` projected into the plane when given,
    otherwise world X (or world Y for normals close to X).
    """
    z = geom.unit(normal) if geom.mag(normal) > EPSILON else None
    if z is None:
        logger.debug('zero-length normal %s, using world axes', geom.vstr(normal))
        return world_plane(origin)
    ref = None
    if xhint is not None:
        proj = geom.sub(geom.vector(xhint), geom.scale3(z, geom.dot(xhint, z)))
        if geom.mag(proj) > EPSILON:
            ref = proj
    if ref is None:
        ref = geom.vector(1, 0, 0) if abs(z[0]) < 0.9 else geom.vector(0, 1, 0)
        ref = geom.sub(ref, geom.scale3(z, geom.dot(ref, z)))
    y = geom.cross(z, ref)
    return plane_from_frame(origin, ref, y, z)


def plane_from_origin_x(origin, xpoint) -> Plane:
    """Plane from an origin and a second point giving the x direction.
    The y axis is chosen perpendicular to world Z where possible."""
    x = geom.sub(geom.point(xpoint), geom.point(origin))
    if geom.mag(x) <= EPSILON:
        logger.debug('coincident points, using world axes')
        return world_plane(origin)
    zref = geom.vector(0, 0, 1)
    if geom.mag(geom.cross(zref, x)) <= EPSILON * geom.mag(x):
        zref = geom.vector(0, -1, 0)
    y = geom.cross(zref, x)
    return plane_from_axes(origin, x, y)


def _plane_from_point_list(points) -> Plane:
    a = geom.point(points[0])
    b = None
    for p in points[1:]:
        if geom.dist(p, a) > EPSILON:
            b = geom.point(p)
            break
    if b is None:
        return world_plane(a)
    x = geom.sub(b, a)
    best = None
    best_mag = 0.0
    for p in points[1:]:
        m = geom.mag(geom.cross(x, geom.sub(geom.point(p), a)))
        if m > best_mag:
            best, best_mag = p, m
    if best is None:
        return plane_from_origin_x(a, b)
    return plane_from_points(a, b, best)


def ensure_plane(value=None) -> Plane:
    """Coerce ``value`` into a :class:`Plane`.

    Accepted shapes
    ---------------
    ``None``
        world XY plane
    :class:`Plane`
        a copy
    point
        world axes moved to the point
    sequence of two points
        origin and x direction (see :func:`plane_from_origin_x`)
    sequence of three or more points
        plane through the points (see :func:`plane_from_points`)
    one-element sequence
        the element, coerced recursively

    Anything else yields the world XY plane.
    """
    if value is None:
        return world_plane()
    if isinstance(value, Plane):
        return value.copy()
    if _is_pointlike(value):
        return world_plane(value)
    if isinstance(value, (list, tuple)):
        if len(value) == 1:
            return ensure_plane(value[0])
        if len(value) >= 2 and all(_is_pointlike(p) for p in value):
            if len(value) == 2:
                return plane_from_origin_x(value[0], value[1])
            return _plane_from_point_list(value)
    logger.debug('cannot interpret %r as a plane, using world XY', type(value).__name__)
    return world_plane()


def plane_normal(plane: Plane) -> list:
    return geom.vector(plane.zaxis)


def apply_plane(plane: Plane, u, v: float = 0.0, w: float = 0.0) -> list:
    """World point for local coordinates ``(u, v, w)``.  ``u`` may also
    be a 3-sequence of local coordinates."""
    if isinstance(u, (list, tuple)):
        u, v, w = u[0], u[1], (u[2] if len(u) > 2 else 0.0)
    return geom.point(geom.combine(plane.origin, (plane.xaxis, u),
                                   (plane.yaxis, v), (plane.zaxis, w)))


def plane_coordinates(point, plane: Plane) -> Tuple[float, float, float]:
    """Local ``(u, v, w)`` coordinates of ``point``; the inverse of
    :func:`apply_plane`."""
    d = geom.sub(geom.point(point), plane.origin)
    return (geom.dot(d, plane.xaxis), geom.dot(d, plane.yaxis),
            geom.dot(d, plane.zaxis))


def plane_vector_coordinates(vec, plane: Plane) -> Tuple[float, float, float]:
    """Local components of a direction vector (the origin is ignored)."""
    return (geom.dot(vec, plane.xaxis), geom.dot(vec, plane.yaxis),
            geom.dot(vec, plane.zaxis))


def plane_matrix(plane: Plane, inverse: bool = False) -> Matrix:
    """Local-to-world matrix of ``plane``, or its analytic inverse
    (world-to-local) when ``inverse`` is true."""
    if not inverse:
        return Basis(plane.origin, plane.xaxis, plane.yaxis, plane.zaxis)
    o = plane.origin
    rows = []
    for ax in (plane.xaxis, plane.yaxis, plane.zaxis):
        rows.append([ax[0], ax[1], ax[2], -geom.dot(ax, o)])
    rows.append([0, 0, 0, 1])
    return Matrix(rows)


def project_point_to_plane(point, plane: Plane) -> list:
    """Orthogonal projection of ``point`` onto ``plane``."""
    u, v, _ = plane_coordinates(point, plane)
    return apply_plane(plane, u, v, 0.0)


def project_along(point, plane: Plane, direction) -> Optional[list]:
    """Project ``point`` onto ``plane`` along ``direction``.  Returns
    ``None`` when the direction is parallel to the plane."""
    denom = geom.dot(plane.zaxis, direction)
    if abs(denom) <= EPSILON:
        return None
    t = geom.dot(plane.zaxis, geom.sub(plane.origin, point)) / denom
    return geom.point(geom.combine(geom.point(point), (direction, t)))


def plane_closest(plane: Plane, point):
    """Closest point on ``plane`` to ``point``.

    Returns
    -------
    tuple
        ``(closest_point, (u, v), distance)`` with ``distance`` signed
        along the plane normal
    """
    u, v, w = plane_coordinates(point, plane)
    return apply_plane(plane, u, v, 0.0), (u, v), w


def plane_at(plane: Plane, origin) -> Plane:
    """Copy of ``plane`` moved to ``origin``."""
    return Plane(geom.point(origin), geom.vector(plane.xaxis),
                 geom.vector(plane.yaxis), geom.vector(plane.zaxis))


def flip_plane(plane: Plane) -> Plane:
    """Swap the x and y axes and reverse the normal."""
    return Plane(geom.point(plane.origin), geom.vector(plane.yaxis),
                 geom.vector(plane.xaxis), geom.neg(plane.zaxis))


def rotate_plane(plane: Plane, angle: float) -> Plane:
    """Rotate the in-plane axes by ``angle`` radians about the normal."""
    c, s = math.cos(angle), math.sin(angle)
    x = geom.combine(geom.vector(0, 0, 0), (plane.xaxis, c), (plane.yaxis, s))
    y = geom.combine(geom.vector(0, 0, 0), (plane.xaxis, -s), (plane.yaxis, c))
    return Plane(geom.point(plane.origin), x, y, geom.vector(plane.zaxis))


def align_plane(plane: Plane, direction) -> Plane:
    """Rotate ``plane`` about its normal so the x axis points along the
    in-plane component of ``direction``.  Directions parallel to the
    normal leave the plane unchanged."""
    du, dv, _ = plane_vector_coordinates(direction, plane)
    if math.hypot(du, dv) <= EPSILON:
        return plane.copy()
    return rotate_plane(plane, math.atan2(dv, du))


# ---------------------------------------------------------------------------
# Domain
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Domain:
    """Directed interval.  ``span`` is signed (``end - start``) while
    ``length`` is always non-negative."""

    start: float
    end: float

    @property
    def min(self) -> float:
        return min(self.start, self.end)

    @property
    def max(self) -> float:
        return max(self.start, self.end)

    @property
    def span(self) -> float:
        return self.end - self.start

    @property
    def length(self) -> float:
        return self.max - self.min

    @property
    def center(self) -> float:
        return 0.5 * (self.start + self.end)


def domain(start: float = 0.0, end: float = 1.0) -> Domain:
    return Domain(float(start), float(end))


_DOMAIN_KEYS = (('start', 'end'), ('min', 'max'), ('t0', 't1'))


def ensure_domain(value, fallback: Optional[Domain] = None) -> Optional[Domain]:
    """Coerce ``value`` into a :class:`Domain`.

    Accepts a :class:`Domain`, a ``(start, end)`` pair, a single number
    (a zero-length domain), or a mapping with ``start``/``end``,
    ``min``/``max`` or ``t0``/``t1`` keys.  ``None`` and anything
    unrecognised return ``fallback``.
    """
    if isinstance(value, Domain):
        return value
    if geom.isgoodnum(value):
        if not math.isfinite(value):
            return fallback
        return domain(value, value)
    if isinstance(value, (list, tuple)):
        if len(value) >= 2 and geom.isgoodnum(value[0]) and geom.isgoodnum(value[1]):
            if math.isfinite(value[0]) and math.isfinite(value[1]):
                return domain(value[0], value[1])
            return fallback
        if len(value) == 1:
            return ensure_domain(value[0], fallback)
        return fallback
    if isinstance(value, dict):
        for lo, hi in _DOMAIN_KEYS:
            if geom.isgoodnum(value.get(lo)) and geom.isgoodnum(value.get(hi)):
                return domain(value[lo], value[hi])
    return fallback


def domain_parameter(d: Domain, t: float) -> float:
    """Actual parameter for normalised ``t`` (0 at ``start``, 1 at ``end``)."""
    return d.start + d.span * t


def domain_normalize(d: Domain, value: float) -> float:
    """Normalised parameter of ``value``; 0 for zero-span domains."""
    if abs(d.span) <= EPSILON:
        return 0.0
    return (value - d.start) / d.span


def remap(value: float, source: Domain, target: Domain) -> float:
    """Map ``value`` linearly from ``source`` onto ``target``."""
    return domain_parameter(target, domain_normalize(source, value))


def domain_divide(d: Domain, count: int) -> list:
    """Split ``d`` into ``count`` consecutive equal sub-domains."""
    count = max(1, int(count))
    step = d.span / count
    return [domain(d.start + i*step, d.start + (i+1)*step) for i in range(count)]


def domain_includes(d: Domain, value: float, tol: float = 0.0) -> bool:
    return d.min - tol <= value <= d.max + tol


def clamp(value: float, d: Domain) -> float:
    """Clamp ``value`` into ``[d.min, d.max]``."""
    return geom.clamp(value, d.min, d.max)


__all__ = [
    'Plane', 'world_plane', 'normalize_plane_axes', 'plane_from_frame',
    'plane_from_axes', 'plane_from_points', 'plane_from_normal',
    'plane_from_origin_x', 'ensure_plane', 'plane_normal', 'apply_plane',
    'plane_coordinates', 'plane_vector_coordinates', 'plane_matrix',
    'project_point_to_plane', 'project_along', 'plane_closest', 'plane_at',
    'flip_plane', 'rotate_plane', 'align_plane', 'Domain', 'domain',
    'ensure_domain', 'domain_parameter', 'domain_normalize', 'remap',
    'domain_divide', 'domain_includes', 'clamp',
]
