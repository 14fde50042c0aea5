"""Differential geometry on parametric surfaces.

Everything here works from point evaluations only: tangents and second
derivatives come from finite differences with a step proportional to
the parameter domain, so any :class:`~paramkernel.surface.Surface` can
be analysed regardless of how it was built.

Copyright (c) 2025 paramKernel contributors
MIT License
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from paramkernel import geom
from paramkernel.frame import (Domain, Plane, domain_parameter,
                               plane_coordinates, plane_from_frame,
                               plane_from_normal, plane_from_points,
                               world_plane)
from paramkernel.settings import (CLOSEST_POINT_ITERATIONS,
                                  CLOSEST_POINT_RESOLUTION, CLOSEST_POINT_STEP,
                                  DERIVATIVE_STEP, EPSILON, PLANARITY_TOLERANCE)
from paramkernel.surface import Surface, evaluate_surface, sample_surface_points

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SurfaceDerivatives:
    """Point and partial derivatives at one parameter location."""

    point: list
    du: list
    dv: list
    duu: list
    duv: list
    dvv: list


@dataclass(frozen=True)
class SurfaceCurvature:
    """Curvature at one parameter location.

    ``k1 >= k2`` are the principal curvatures; ``direction1`` and
    ``direction2`` the matching unit principal directions.  Signs follow
    the ``du x dv`` normal orientation.
    """

    gaussian: float
    mean: float
    k1: float
    k2: float
    direction1: list
    direction2: list
    normal: list
    point: list


@dataclass(frozen=True)
class ClosestPointResult:
    """Outcome of :func:`surface_closest_point`.

    ``success`` is true when the parameter step converged; ``residual``
    is the tangential component of the point-to-surface offset, which
    vanishes at an interior closest point.
    """

    point: Optional[list]
    u: float
    v: float
    distance: float
    success: bool
    residual: float
    iterations: int


@dataclass(frozen=True)
class PlanarityResult:
    planar: bool
    deviation: float
    plane: Optional[Plane]


# -----------------------------------------------------------------------------
# Finite differences
# -----------------------------------------------------------------------------

def _stencil(d: Domain, t: float, step: float) -> Tuple[float, float]:
    """Centre and half-width of a difference stencil that stays inside
    the domain."""
    h = abs(d.span) * step
    if h <= 0.0:
        h = step
    lo, hi = d.min, d.max
    if hi - lo >= 2*h:
        t = geom.clamp(t, lo + h, hi - h)
    return t, h


def surface_derivatives(surface: Surface, u: float, v: float,
                        step: float = DERIVATIVE_STEP) -> Optional[SurfaceDerivatives]:
    """Central-difference derivatives at ``(u, v)``.

    Near the domain boundary the stencil is shifted inward, giving a
    one-sided estimate.  Returns ``None`` if the surface does not
    evaluate.
    """
    p = evaluate_surface(surface, u, v)
    if p is None:
        return None
    uc, hu = _stencil(surface.domain_u, u, step)
    vc, hv = _stencil(surface.domain_v, v, step)

    def ev(a, b):
        return evaluate_surface(surface, a, b)

    c = ev(uc, vc)
    pu0 = ev(uc - hu, vc)
    pu1 = ev(uc + hu, vc)
    pv0 = ev(uc, vc - hv)
    pv1 = ev(uc, vc + hv)
    p11 = ev(uc + hu, vc + hv)
    p10 = ev(uc + hu, vc - hv)
    p01 = ev(uc - hu, vc + hv)
    p00 = ev(uc - hu, vc - hv)

    du = geom.scale3(geom.sub(pu1, pu0), 1.0 / (2*hu))
    dv = geom.scale3(geom.sub(pv1, pv0), 1.0 / (2*hv))
    duu = geom.scale3(geom.add(geom.sub(pu1, c), geom.sub(pu0, c)), 1.0 / (hu*hu))
    dvv = geom.scale3(geom.add(geom.sub(pv1, c), geom.sub(pv0, c)), 1.0 / (hv*hv))
    cross_term = geom.sub(geom.sub(p11, p10), geom.sub(p01, p00))
    duv = geom.scale3(cross_term, 1.0 / (4*hu*hv))
    return SurfaceDerivatives(p, geom.vector(du), geom.vector(dv),
                              geom.vector(duu), geom.vector(duv), geom.vector(dvv))


def _fallback_normal(surface: Surface) -> list:
    if surface.plane is not None:
        return geom.vector(surface.plane.zaxis)
    return geom.vector(0, 0, 1)


def surface_normal(surface: Surface, u: float, v: float) -> list:
    """Unit normal ``du x dv``; the surface's plane normal (or world Z)
    where the tangents are degenerate."""
    d = surface_derivatives(surface, u, v)
    if d is None:
        return _fallback_normal(surface)
    n = geom.cross(d.du, d.dv)
    if geom.mag(n) <= EPSILON:
        return _fallback_normal(surface)
    return geom.unit(n)


def surface_frame(surface: Surface, u: float, v: float) -> Plane:
    """Frame at ``(u, v)``: origin on the surface, x along ``du`` and z
    along the normal."""
    d = surface_derivatives(surface, u, v)
    if d is None:
        return world_plane()
    n = surface_normal(surface, u, v)
    if geom.mag(d.du) <= EPSILON:
        return plane_from_normal(d.point, n)
    return plane_from_frame(d.point, d.du, geom.cross(n, d.du), n)


def fundamental_forms(surface: Surface, u: float, v: float):
    """First and second fundamental form coefficients
    ``(E, F, G, e, f, g)`` at ``(u, v)``."""
    d = surface_derivatives(surface, u, v)
    if d is None:
        return (0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    n = surface_normal(surface, u, v)
    E = geom.dot(d.du, d.du)
    F = geom.dot(d.du, d.dv)
    G = geom.dot(d.dv, d.dv)
    e = geom.dot(d.duu, n)
    f = geom.dot(d.duv, n)
    g = geom.dot(d.dvv, n)
    return (E, F, G, e, f, g)


def _tangent_direction(d: SurfaceDerivatives, a: float, b: float) -> Optional[list]:
    vec = geom.add(geom.scale3(d.du, a), geom.scale3(d.dv, b))
    if geom.mag(vec) <= EPSILON:
        return None
    return geom.unit(vec)


def _eigenvector(s, k):
    """Eigenvector of the 2x2 matrix ``s`` for eigenvalue ``k``, or
    ``None`` when every row of ``s - kI`` vanishes."""
    a, b = s[0]
    c, dd = s[1]
    r0 = (b, k - a)
    r1 = (k - dd, c)
    if math.hypot(*r0) >= math.hypot(*r1):
        best = r0
    else:
        best = r1
    if math.hypot(*best) <= 1e-12:
        return None
    return best


def surface_curvature(surface: Surface, u: float, v: float) -> Optional[SurfaceCurvature]:
    """Gaussian, mean and principal curvatures at ``(u, v)``.

    Principal directions come from the eigenproblem of the 2x2 shape
    operator ``I^-1 II``.  At umbilics, or where the first fundamental
    form is singular, the raw tangent directions are reported instead.
    """
    d = surface_derivatives(surface, u, v)
    if d is None:
        return None
    n = surface_normal(surface, u, v)
    E, F, G, e, f, g = fundamental_forms(surface, u, v)
    det = E*G - F*F
    raw1 = geom.unit(d.du, [1.0, 0.0, 0.0])
    raw2 = geom.unit(d.dv, [0.0, 1.0, 0.0])
    if abs(det) <= EPSILON:
        logger.debug('singular first fundamental form at (%g, %g)', u, v)
        return SurfaceCurvature(0.0, 0.0, 0.0, 0.0, raw1, raw2, n, d.point)

    K = (e*g - f*f) / det
    H = (E*g - 2*F*f + G*e) / (2*det)
    disc = math.sqrt(max(H*H - K, 0.0))
    k1 = H + disc
    k2 = H - disc

    shape = ((G*e - F*f) / det, (G*f - F*g) / det), \
            ((E*f - F*e) / det, (E*g - F*f) / det)
    dir1 = dir2 = None
    if disc > 1e-12:
        ev1 = _eigenvector(shape, k1)
        if ev1 is not None:
            dir1 = _tangent_direction(d, ev1[0], ev1[1])
        if dir1 is not None:
            dir2 = geom.unit(geom.cross(n, dir1))
    if dir1 is None or dir2 is None:
        dir1, dir2 = raw1, raw2
    return SurfaceCurvature(K, H, k1, k2, dir1, dir2, n, d.point)


# -----------------------------------------------------------------------------
# Closest point
# -----------------------------------------------------------------------------

def surface_closest_point(surface: Surface, point, resolution: int = CLOSEST_POINT_RESOLUTION,
                          iterations: int = CLOSEST_POINT_ITERATIONS,
                          tolerance: float = CLOSEST_POINT_STEP) -> ClosestPointResult:
    """Closest point on ``surface`` to ``point``.

    A coarse ``resolution`` x ``resolution`` parameter grid brackets the
    answer, then Gauss-Newton steps on the 2x2 normal equations refine
    it, clamped to the domain.  Stops when the parameter step drops
    below ``tolerance`` or after ``iterations`` steps, and always
    returns the best point found.
    """
    p = geom.point(point)
    if surface is None:
        return ClosestPointResult(None, 0.0, 0.0, math.inf, False, math.inf, 0)
    du_dom, dv_dom = surface.domain_u, surface.domain_v
    res = max(1, int(resolution))
    best = (math.inf, du_dom.start, dv_dom.start, None)
    for j in range(res + 1):
        v = domain_parameter(dv_dom, j / res)
        for i in range(res + 1):
            u = domain_parameter(du_dom, i / res)
            q = evaluate_surface(surface, u, v)
            if q is None:
                continue
            dd = geom.dist(q, p)
            if dd < best[0]:
                best = (dd, u, v, q)
    dist, u, v, q = best
    if q is None:
        return ClosestPointResult(None, 0.0, 0.0, math.inf, False, math.inf, 0)

    converged = False
    count = 0
    residual = math.inf
    for count in range(1, iterations + 1):
        d = surface_derivatives(surface, u, v)
        if d is None:
            break
        r = geom.sub(d.point, p)
        a11 = geom.dot(d.du, d.du)
        a12 = geom.dot(d.du, d.dv)
        a22 = geom.dot(d.dv, d.dv)
        b1 = -geom.dot(d.du, r)
        b2 = -geom.dot(d.dv, r)
        det = a11*a22 - a12*a12
        if abs(det) <= 1e-18:
            logger.debug('closest point: singular normal equations at (%g, %g)', u, v)
            break
        su = (b1*a22 - b2*a12) / det
        sv = (a11*b2 - a12*b1) / det
        nu = geom.clamp(u + su, du_dom.min, du_dom.max)
        nv = geom.clamp(v + sv, dv_dom.min, dv_dom.max)
        nq = evaluate_surface(surface, nu, nv)
        if nq is None:
            break
        nd = geom.dist(nq, p)
        step = math.hypot(nu - u, nv - v)
        if nd <= dist:
            u, v, q, dist = nu, nv, nq, nd
        else:
            # overshoot, try half a step before giving up on this one
            hu = 0.5*(u + nu)
            hv = 0.5*(v + nv)
            hq = evaluate_surface(surface, hu, hv)
            hd = geom.dist(hq, p) if hq is not None else math.inf
            if hd < dist:
                u, v, q, dist = hu, hv, hq, hd
            else:
                converged = step < tolerance
                break
        if step < tolerance:
            converged = True
            break

    d = surface_derivatives(surface, u, v)
    if d is not None:
        r = geom.sub(d.point, p)
        ru = geom.dot(r, geom.unit(d.du, [0.0, 0.0, 0.0]))
        rv = geom.dot(r, geom.unit(d.dv, [0.0, 0.0, 0.0]))
        residual = math.hypot(ru, rv)
    if not converged:
        logger.debug('closest point did not converge after %d iterations', count)
    return ClosestPointResult(q, u, v, dist, converged, residual, count)


# -----------------------------------------------------------------------------
# Planarity and offsets
# -----------------------------------------------------------------------------

def is_planar(surface: Surface, tolerance: float = PLANARITY_TOLERANCE,
              samples: int = 8) -> PlanarityResult:
    """Test whether ``surface`` is planar within ``tolerance``.

    A plane is fitted through three well-separated, non-collinear
    sample points; the result reports the largest perpendicular
    deviation of the sample grid from it.
    """
    pts = sample_surface_points(surface, samples, samples)
    if not pts:
        return PlanarityResult(False, math.inf, None)
    a = pts[0]
    b = max(pts, key=lambda q: geom.dist(q, a))
    ab = geom.sub(b, a)
    c = max(pts, key=lambda q: geom.mag(geom.cross(ab, geom.sub(q, a))))
    if geom.dist(a, b) <= EPSILON or \
       geom.mag(geom.cross(ab, geom.sub(c, a))) <= EPSILON * max(1.0, geom.mag(ab)):
        # degenerate (point or line-like) sample set
        return PlanarityResult(True, 0.0, plane_from_normal(a, _fallback_normal(surface)))
    plane = plane_from_points(a, b, c)
    deviation = max(abs(plane_coordinates(q, plane)[2]) for q in pts)
    return PlanarityResult(deviation <= tolerance, deviation, plane)


def offset_surface(surface: Surface, distance: float) -> Surface:
    """Surface displaced by ``distance`` along its normal."""
    base = surface

    def evaluate(u, v):
        q = evaluate_surface(base, u, v)
        if q is None:
            return None
        return geom.add(q, geom.scale3(surface_normal(base, u, v), distance))

    meta = dict(surface.metadata)
    meta['offset'] = distance
    return Surface(evaluate, surface.domain_u, surface.domain_v, surface.plane, meta,
                   closed_u=surface.closed_u, closed_v=surface.closed_v)


__all__ = [
    'SurfaceDerivatives', 'SurfaceCurvature', 'ClosestPointResult',
    'PlanarityResult', 'surface_derivatives', 'surface_normal',
    'surface_frame', 'fundamental_forms', 'surface_curvature',
    'surface_closest_point', 'is_planar', 'offset_surface',
]
