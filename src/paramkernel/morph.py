"""Spatial deformations (morphs).

Every operator here is a ``point -> point`` function handed to
:func:`paramkernel.walker.map_points`, so it applies to any geometry
value the walker understands.  With ``rigid=True`` the point function is
replaced by its best affine approximation around the value's centroid
(see :func:`rigidify`), which keeps the value's shape class intact.

Axis-driven operators (twist, taper, stretch) parameterise a point by
its projection onto the segment ``axis_start -> axis_end``: ``t = 0`` at
the start and ``t = 1`` at the end.  Outside the segment ``t`` is
clamped unless ``infinite`` is set.

Copyright (c) 2025 paramKernel contributors
MIT License
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

from paramkernel import geom
from paramkernel.box import ensure_box_data
from paramkernel.curve import (arc_lengths, closest_point_on_polyline,
                               curve_frames, ensure_polyline, frame_at_length)
from paramkernel.frame import (Domain, apply_plane, domain_parameter,
                               ensure_domain, ensure_plane, plane_coordinates,
                               plane_from_frame)
from paramkernel.settings import (EPSILON, TWISTED_BOX_ITERATIONS,
                                  TWISTED_BOX_TOLERANCE)
from paramkernel.surface import Surface, evaluate_surface
from paramkernel.surface_analysis import surface_closest_point, surface_normal
from paramkernel.walker import apply_transform, geometry_bbox, geometry_centroid, map_points
from paramkernel.xform import Matrix, quat_from_unit_vectors, quat_matrix, solve_linear_system

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Twisted boxes
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class TwistedBox:
    """Hexahedron with eight free corners ``A..H``: ``A, B, C, D`` around
    the bottom and ``E, F, G, H`` above them.  Points inside are
    trilinear in ``(u, v, w)``: ``u`` runs ``A->B``, ``v`` runs ``A->D``
    and ``w`` runs bottom to top."""

    corners: tuple


@dataclass(frozen=True)
class TwistedBoxParameters:
    u: float
    v: float
    w: float
    success: bool
    residual: float
    iterations: int


def twisted_box(corners: Sequence) -> Optional[TwistedBox]:
    """Twisted box from eight corners in ``A..H`` order, or ``None``."""
    if corners is None or len(corners) < 8:
        return None
    return TwistedBox(tuple(geom.point(c) for c in corners[:8]))


def twisted_box_from_box(box) -> Optional[TwistedBox]:
    """The twisted box with the corners of an oriented box."""
    b = ensure_box_data(box)
    if b is None:
        return None
    c = b.corners
    return TwistedBox((c[0], c[4], c[6], c[2], c[1], c[5], c[7], c[3]))


def _as_twisted_box(value) -> Optional[TwistedBox]:
    if isinstance(value, TwistedBox):
        return value
    return twisted_box_from_box(value)


def evaluate_twisted_box(tb: TwistedBox, u: float, v: float, w: float) -> list:
    """Trilinear point at ``(u, v, w)``.  Parameters outside [0, 1]
    extrapolate."""
    a, b, c, d, e, f, g, h = tb.corners
    weights = ((1-u)*(1-v)*(1-w), u*(1-v)*(1-w), u*v*(1-w), (1-u)*v*(1-w),
               (1-u)*(1-v)*w, u*(1-v)*w, u*v*w, (1-u)*v*w)
    x = y = z = 0.0
    for k, p in zip(weights, (a, b, c, d, e, f, g, h)):
        x += k*p[0]
        y += k*p[1]
        z += k*p[2]
    return [x, y, z, 1.0]


def _initial_guess(tb: TwistedBox, point) -> list:
    a, b, _, d, e = tb.corners[:5]
    ex, ey, ez = geom.sub(b, a), geom.sub(d, a), geom.sub(e, a)
    rows = [[ex[i], ey[i], ez[i]] for i in range(3)]
    rhs = geom.sub(point, a)
    guess = solve_linear_system(rows, [rhs[0], rhs[1], rhs[2]])
    return guess if guess is not None else [0.5, 0.5, 0.5]


def invert_twisted_box(tb: TwistedBox, point,
                       iterations: int = TWISTED_BOX_ITERATIONS,
                       tolerance: float = TWISTED_BOX_TOLERANCE) -> TwistedBoxParameters:
    """Find ``(u, v, w)`` with ``evaluate_twisted_box(tb, u, v, w)`` at
    ``point``.

    Newton iteration with a finite-difference Jacobian, started from the
    parallelepiped spanned at corner ``A``.  The best parameters found
    are always returned; ``success`` reports whether the residual got
    below ``tolerance`` scaled by the box size.
    """
    p = geom.point(point)
    uvw = _initial_guess(tb, p)
    bbox = geom.pointbbox(list(tb.corners))
    size = max(geom.dist(bbox[0], bbox[1]), 1.0)
    limit = tolerance * size
    h = 1e-6
    residual = float('inf')
    it = 0
    for it in range(1, max(1, int(iterations)) + 1):
        q = evaluate_twisted_box(tb, *uvw)
        r = geom.sub(p, q)
        residual = geom.mag(r)
        if residual <= limit:
            return TwistedBoxParameters(uvw[0], uvw[1], uvw[2], True, residual, it)
        cols = []
        for k in range(3):
            shifted = list(uvw)
            shifted[k] += h
            dq = geom.sub(evaluate_twisted_box(tb, *shifted), q)
            cols.append([c / h for c in dq[:3]])
        jac = [[cols[k][i] for k in range(3)] for i in range(3)]
        step = solve_linear_system(jac, [r[0], r[1], r[2]])
        if step is None:
            logger.debug("invert_twisted_box: singular Jacobian after %d iterations", it)
            break
        uvw = [uvw[k] + step[k] for k in range(3)]
    residual = geom.dist(p, evaluate_twisted_box(tb, *uvw))
    success = residual <= limit
    if not success:
        logger.debug("invert_twisted_box: residual %g after %d iterations", residual, it)
    return TwistedBoxParameters(uvw[0], uvw[1], uvw[2], success, residual, it)


# -----------------------------------------------------------------------------
# Application
# -----------------------------------------------------------------------------

_TETRAHEDRON = ((1, 1, 1), (1, -1, -1), (-1, 1, -1), (-1, -1, 1))


def rigidify(mapping: Callable, value):
    """Apply the best affine approximation of ``mapping`` to ``value``.

    ``mapping`` is sampled at the centroid of ``value`` and at the
    corners of a regular tetrahedron around it, and the affine map that
    fits those samples in the least-squares sense (``numpy.linalg.lstsq``)
    is applied as one matrix.  Values without points come back
    unchanged.
    """
    c = geometry_centroid(value)
    if c is None:
        return value
    bbox = geometry_bbox(value)
    r = max(0.5 * geom.dist(bbox[0], bbox[1]), 1e-3)
    src = [c] + [geom.point(c[0] + r*x, c[1] + r*y, c[2] + r*z) for x, y, z in _TETRAHEDRON]
    dst = [geom.point(mapping(geom.point(p))) for p in src]
    a = np.array([[p[0], p[1], p[2], 1.0] for p in src])
    b = np.array([[p[0], p[1], p[2]] for p in dst])
    sol, _, rank, _ = np.linalg.lstsq(a, b, rcond=None)
    if rank < 4:
        logger.debug("rigidify: rank %d fit, leaving value unchanged", rank)
        return value
    rows = [[float(sol[j][i]) for j in range(4)] for i in range(3)]
    rows.append([0.0, 0.0, 0.0, 1.0])
    return apply_transform(value, Matrix(rows))


def _apply(value, fn: Callable, rigid: bool):
    if rigid:
        return rigidify(fn, value)
    return map_points(value, fn)


def _rotate(v, axis, angle: float) -> list:
    """Rodrigues rotation of ``v`` about unit ``axis``."""
    c, s = math.cos(angle), math.sin(angle)
    k = geom.cross(axis, v)
    d = geom.dot(axis, v) * (1.0 - c)
    return [v[0]*c + k[0]*s + axis[0]*d,
            v[1]*c + k[1]*s + axis[1]*d,
            v[2]*c + k[2]*s + axis[2]*d,
            0.0]


class _Axis:
    """Segment ``start -> end`` used to parameterise points."""

    def __init__(self, start, end):
        self.start = geom.point(start)
        delta = geom.sub(geom.point(end), self.start)
        self.length = geom.mag(delta)
        self.direction = geom.unit(delta)

    @property
    def degenerate(self) -> bool:
        return self.direction is None or self.length <= EPSILON

    def split(self, p):
        """``(s, radial)``: distance along the axis and the offset from it."""
        d = geom.sub(p, self.start)
        s = geom.dot(d, self.direction)
        return s, geom.sub(d, geom.scale3(self.direction, s))

    def parameter(self, s: float, infinite: bool) -> float:
        t = s / self.length
        return t if infinite else geom.clamp(t, 0.0, 1.0)


# -----------------------------------------------------------------------------
# Axis morphs
# -----------------------------------------------------------------------------

def twist(value, axis_start, axis_end, angle: float, infinite: bool = False,
          rigid: bool = False):
    """Rotate points about the axis by ``angle * t`` radians."""
    axis = _Axis(axis_start, axis_end)
    if axis.degenerate:
        logger.debug("twist: degenerate axis")
        return value

    def fn(p):
        s, radial = axis.split(p)
        turned = _rotate(radial, axis.direction, angle * axis.parameter(s, infinite))
        return geom.combine(axis.start, (axis.direction, s), (turned, 1.0))

    return _apply(value, fn, rigid)


def taper(value, axis_start, axis_end, start_radius: float = 1.0,
          end_radius: float = 1.0, flat: bool = False, infinite: bool = False,
          rigid: bool = False):
    """Scale distances from the axis by a factor blended from
    ``start_radius`` at ``t = 0`` to ``end_radius`` at ``t = 1``.  With
    ``flat`` only one direction across the axis is scaled."""
    axis = _Axis(axis_start, axis_end)
    if axis.degenerate:
        logger.debug("taper: degenerate axis")
        return value
    across = geom.orthogonal(axis.direction)

    def fn(p):
        s, radial = axis.split(p)
        t = axis.parameter(s, infinite)
        k = start_radius + (end_radius - start_radius) * t
        if flat:
            a = geom.dot(radial, across)
            radial = geom.combine(radial, (across, a * (k - 1.0)))
        else:
            radial = geom.scale3(radial, k)
        return geom.combine(axis.start, (axis.direction, s), (radial, 1.0))

    return _apply(value, fn, rigid)


def stretch(value, axis_start, axis_end, length: float, infinite: bool = False,
            rigid: bool = False):
    """Stretch the axis segment to ``length``.

    Points along the segment are scaled along the axis; points beyond
    its end move with the end, points before its start stay put.  With
    ``infinite`` the whole of space is scaled along the axis.
    """
    axis = _Axis(axis_start, axis_end)
    if axis.degenerate:
        logger.debug("stretch: degenerate axis")
        return value
    k = length / axis.length

    def fn(p):
        s, radial = axis.split(p)
        if infinite or 0.0 <= s <= axis.length:
            s2 = s * k
        elif s > axis.length:
            s2 = s + (length - axis.length)
        else:
            s2 = s
        return geom.combine(axis.start, (axis.direction, s2), (radial, 1.0))

    return _apply(value, fn, rigid)


def _circle_through(a, b, c):
    """``(center, radius, normal)`` of the circle through three points,
    the normal oriented so ``a -> b -> c`` runs counterclockwise; ``None``
    when they are collinear."""
    ab, bc = geom.sub(b, a), geom.sub(c, b)
    n = geom.cross(ab, bc)
    nn = geom.mag2(n)
    if nn <= EPSILON * max(geom.mag2(ab) * geom.mag2(bc), EPSILON):
        return None
    ac = geom.sub(c, a)
    # circumcenter relative to a
    t1 = geom.scale3(geom.cross(geom.cross(ab, ac), ab), geom.mag2(ac))
    t2 = geom.scale3(geom.cross(ac, geom.cross(ab, ac)), geom.mag2(ab))
    ab_ac = geom.cross(ab, ac)
    denom = 2.0 * geom.mag2(ab_ac)
    off = [(t1[i] + t2[i]) / denom for i in range(3)]
    center = geom.point(a[0] + off[0], a[1] + off[1], a[2] + off[2])
    return center, geom.mag(off), geom.unit(n)


def bend(value, span_start, span_end, through, rigid: bool = False):
    """Bend the straight span ``span_start -> span_end`` onto the circular
    arc from ``span_start`` through ``through`` to ``span_end``.

    A point's fraction along the span picks the arc point at the same
    fraction of the arc angle.  Its offset toward the bulge becomes an
    outward radial offset for minor and major arcs alike, so the local
    frame is rotated, never mirrored.  Its offset across the arc plane
    is kept.  Points beyond the span continue along the arc's end
    tangents.  Collinear input leaves the value unchanged.
    """
    a, b, m = geom.point(span_start), geom.point(span_end), geom.point(through)
    axis = _Axis(a, b)
    circle = _circle_through(a, m, b)
    if axis.degenerate or circle is None:
        logger.debug("bend: degenerate span or straight arc")
        return value
    center, radius, normal = circle
    e1 = geom.unit(geom.sub(a, center))
    e2 = geom.cross(normal, e1)
    vb = geom.sub(b, center)
    sweep = math.atan2(geom.dot(vb, e2), geom.dot(vb, e1))
    if sweep <= 0.0:
        sweep += geom.pi2
    # offsets are measured against the bulge side of the chord
    bulge = geom.cross(axis.direction, normal)
    if geom.dot(bulge, geom.sub(m, a)) < 0.0:
        bulge = geom.neg(bulge)

    def fn(p):
        s, radial = axis.split(p)
        t = geom.clamp(s / axis.length, 0.0, 1.0)
        extra = s - t * axis.length
        theta = t * sweep
        out = geom.combine(geom.vector(0, 0, 0), (e1, math.cos(theta)), (e2, math.sin(theta)))
        tangent = geom.combine(geom.vector(0, 0, 0), (e1, -math.sin(theta)), (e2, math.cos(theta)))
        return geom.combine(center,
                            (out, radius + geom.dot(radial, bulge)),
                            (normal, geom.dot(radial, normal)),
                            (tangent, extra))

    return _apply(value, fn, rigid)


def maelstrom(value, plane, radius0: float, radius1: float, angle: float,
              rigid: bool = False):
    """Whirl about the normal of ``plane``.

    Points within ``radius0`` of the normal axis turn by ``angle``, the
    turn fades linearly to zero at ``radius1`` and nothing beyond it
    moves.
    """
    pl = ensure_plane(plane)
    r0, r1 = sorted((abs(radius0), abs(radius1)))

    def fn(p):
        u, v, w = plane_coordinates(p, pl)
        r = math.hypot(u, v)
        if r >= r1:
            return p
        if r <= r0 or r1 - r0 <= EPSILON:
            k = 1.0
        else:
            k = (r1 - r) / (r1 - r0)
        a = angle * k
        c, s = math.cos(a), math.sin(a)
        return apply_plane(pl, u*c - v*s, u*s + v*c, w)

    return _apply(value, fn, rigid)


# -----------------------------------------------------------------------------
# Box and surface morphs
# -----------------------------------------------------------------------------

def box_morph(value, reference, target, rigid: bool = False):
    """Carry ``value`` from the ``reference`` box into the ``target`` box.

    Either box is a :class:`TwistedBox` or anything
    :func:`paramkernel.box.ensure_box_data` accepts.
    """
    ref = _as_twisted_box(reference)
    tgt = _as_twisted_box(target)
    if ref is None or tgt is None:
        logger.debug("box_morph: unusable box input")
        return value

    def fn(p):
        prm = invert_twisted_box(ref, p)
        return evaluate_twisted_box(tgt, prm.u, prm.v, prm.w)

    return _apply(value, fn, rigid)


def surface_box(surface: Surface, height: float, domain_u=None,
                domain_v=None) -> Optional[TwistedBox]:
    """Twisted box over a patch of ``surface``, ``height`` thick along
    the surface normals at the patch corners."""
    if surface is None:
        return None
    du = ensure_domain(domain_u, surface.domain_u)
    dv = ensure_domain(domain_v, surface.domain_v)
    params = ((du.start, dv.start), (du.end, dv.start), (du.end, dv.end), (du.start, dv.end))
    bottom, top = [], []
    for u, v in params:
        p = evaluate_surface(surface, u, v)
        if p is None:
            return None
        n = surface_normal(surface, u, v)
        bottom.append(p)
        top.append(geom.point(geom.combine(p, (n, height))))
    return TwistedBox(tuple(bottom + top))


def surface_morph(value, reference, surface: Surface, domain_u=None,
                  domain_v=None, domain_w=None, rigid: bool = False):
    """Wrap ``value`` from the ``reference`` box onto ``surface``.

    Box parameters ``u`` and ``v`` are remapped into ``domain_u`` and
    ``domain_v`` (the surface domains by default) and ``w`` into
    ``domain_w``, the offset along the surface normal (by default the
    height of the reference box).
    """
    ref = _as_twisted_box(reference)
    if ref is None or surface is None:
        logger.debug("surface_morph: unusable input")
        return value
    du = ensure_domain(domain_u, surface.domain_u)
    dv = ensure_domain(domain_v, surface.domain_v)
    height = geom.dist(ref.corners[0], ref.corners[4])
    dw = ensure_domain(domain_w, Domain(0.0, height))

    def fn(p):
        prm = invert_twisted_box(ref, p)
        u = domain_parameter(du, prm.u)
        v = domain_parameter(dv, prm.v)
        q = evaluate_surface(surface, u, v)
        if q is None:
            return p
        return geom.combine(q, (surface_normal(surface, u, v), domain_parameter(dw, prm.w)))

    return _apply(value, fn, rigid)


# -----------------------------------------------------------------------------
# Curve flow
# -----------------------------------------------------------------------------

def _curve(value):
    pl = ensure_polyline(value)
    return pl if pl is not None and len(pl) >= 2 else None


def flow(value, base, target, stretch: bool = False, rigid: bool = False):
    """Move ``value`` from along the ``base`` curve to along ``target``.

    Each point is located by its closest point on ``base``; its offset
    is taken in the base frame there and rebuilt in the target frame at
    the same arc length (or the same fraction of the length when
    ``stretch`` is set).  The target frames start from the base's first
    frame rotated onto the target's start tangent, so a curve flowed
    onto a copy of itself does not spin.
    """
    pb, pt = _curve(base), _curve(target)
    if pb is None or pt is None:
        logger.debug("flow: base or target is not a curve")
        return value
    lb, lt = arc_lengths(pb), arc_lengths(pt)
    fb = curve_frames(pb.points, closed=pb.closed)
    z0 = curve_frames(pt.points, closed=pt.closed)[0].zaxis
    q = quat_matrix(quat_from_unit_vectors(fb[0].zaxis, z0))
    x0 = q.mul(fb[0].xaxis)
    ft = curve_frames(pt.points, base=plane_from_frame(pt.points[0], x0, geom.cross(z0, x0), z0),
                      closed=pt.closed)
    total_b, total_t = lb[-1], lt[-1]

    def fn(p):
        s, _, _ = closest_point_on_polyline(pb, p)
        local = plane_coordinates(p, frame_at_length(pb, s, lb, fb))
        if stretch and total_b > EPSILON:
            s2 = s / total_b * total_t
        else:
            s2 = min(s, total_t)
        return apply_plane(frame_at_length(pt, s2, lt, ft), local)

    return _apply(value, fn, rigid)


# -----------------------------------------------------------------------------
# Fields
# -----------------------------------------------------------------------------

def point_deform(value, points: Sequence, motions: Sequence, radius: Optional[float] = None,
                 rigid: bool = False):
    """Drag space with control ``points`` moving by ``motions``.

    Without a ``radius`` the displacement is the inverse-square-distance
    blend of all motions, so control points move exactly by their own
    motion.  With a ``radius`` each motion fades smoothly to zero at
    that distance from its control point.
    """
    ctrl = [geom.point(p) for p in points]
    moves = [geom.vector(m) for m in motions][:len(ctrl)]
    ctrl = ctrl[:len(moves)]
    if not ctrl:
        return value

    def fn(p):
        if radius is not None and radius > EPSILON:
            d = [0.0, 0.0, 0.0, 0.0]
            for c, m in zip(ctrl, moves):
                x = geom.dist(p, c) / radius
                if x < 1.0:
                    d = geom.combine(d, (m, (1.0 - x*x) ** 2))
            return geom.add(p, d)
        num = [0.0, 0.0, 0.0, 0.0]
        den = 0.0
        for c, m in zip(ctrl, moves):
            dd = geom.mag2(geom.sub(p, c))
            if dd <= EPSILON * EPSILON:
                return geom.add(p, m)
            num = geom.combine(num, (m, 1.0 / dd))
            den += 1.0 / dd
        return geom.add(p, geom.scale3(num, 1.0 / den))

    return _apply(value, fn, rigid)


def spatial_deform(value, points: Sequence, vectors: Sequence, falloff: float = 1.0,
                   rigid: bool = False):
    """Displace by a sum of Gaussian force fields.  Each field pushes by
    its vector at its point and decays as ``exp(-(d / falloff)^2)``."""
    ctrl = [geom.point(p) for p in points]
    forces = [geom.vector(v) for v in vectors][:len(ctrl)]
    ctrl = ctrl[:len(forces)]
    if not ctrl or falloff <= EPSILON:
        return value

    def fn(p):
        d = [0.0, 0.0, 0.0, 0.0]
        for c, f in zip(ctrl, forces):
            x = geom.dist(p, c) / falloff
            d = geom.combine(d, (f, math.exp(-x*x)))
        return geom.add(p, d)

    return _apply(value, fn, rigid)


# -----------------------------------------------------------------------------
# Mirrors and inversion
# -----------------------------------------------------------------------------

def mirror_curve(value, curve, rigid: bool = False):
    """Mirror in a curve: each point's offset from its closest curve
    point is reversed across the curve tangent there."""
    pl = _curve(curve)
    if pl is None:
        logger.debug("mirror_curve: not a curve")
        return value
    lengths = arc_lengths(pl)
    frames = curve_frames(pl.points, closed=pl.closed)

    def fn(p):
        s, q, _ = closest_point_on_polyline(pl, p)
        t = frame_at_length(pl, s, lengths, frames).zaxis
        off = geom.sub(p, q)
        along = geom.dot(off, t)
        return geom.combine(q, (t, 2.0 * along), (off, -1.0))

    return _apply(value, fn, rigid)


def mirror_surface(value, surface: Surface, rigid: bool = False):
    """Mirror in a surface: each point is reflected through its closest
    point on ``surface``."""
    if surface is None:
        return value

    def fn(p):
        q = surface_closest_point(surface, p).point
        if q is None:
            return p
        return geom.combine(q, (geom.sub(q, p), 1.0))

    return _apply(value, fn, rigid)


def camera_obscura(value, focus, factor: float = -1.0, rigid: bool = False):
    """Invert ``value`` through ``focus``, scaled by ``factor``."""
    f = geom.point(focus)

    def fn(p):
        return geom.combine(f, (geom.sub(p, f), factor))

    return _apply(value, fn, rigid)


__all__ = [
    'TwistedBox', 'TwistedBoxParameters', 'twisted_box', 'twisted_box_from_box',
    'evaluate_twisted_box', 'invert_twisted_box', 'rigidify', 'twist', 'taper',
    'stretch', 'bend', 'maelstrom', 'box_morph', 'surface_box', 'surface_morph',
    'flow', 'point_deform', 'spatial_deform', 'mirror_curve', 'mirror_surface',
    'camera_obscura',
]
