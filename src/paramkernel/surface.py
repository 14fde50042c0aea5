"""Parametric surfaces for paramKernel.

A :class:`Surface` is a pure function ``(u, v) -> point`` together with
the parameter domain it is defined over.  Every factory in this module
(plane, cylinder, cone, sphere, grid, loft, sweep, ...) produces the same
contract, so sampling, triangulation and the differential-geometry
routines in :mod:`paramkernel.surface_analysis` work on all of them.

Free-form surfaces are backed by a row-major control lattice (``grid``)
and evaluated by bilinear lookup over the normalised parameters.  Rows
run along ``v``; the points of a row run along ``u``.

Copyright (c) 2025 paramKernel contributors
MIT License
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from paramkernel import geom
from paramkernel.curve import (Polyline, curve_frames, ensure_polyline,
                               resample_polyline)
from paramkernel.errors import require_callable
from paramkernel.frame import (Domain, Plane, apply_plane, domain,
                               domain_parameter, ensure_domain, ensure_plane,
                               flip_plane, plane_coordinates, world_plane)
from paramkernel.mesh import Mesh, triangle_area, triangle_centroid
from paramkernel.settings import EPSILON
from paramkernel.xform import Rotation


@dataclass(frozen=True)
class Surface:
    """Parametric surface.

    ``plane`` is an orientation hint (``None`` for free-form grids).
    ``grid`` holds the control lattice of grid-backed surfaces as a tuple
    of rows.
    """

    evaluate: Callable
    domain_u: Domain
    domain_v: Domain
    plane: Optional[Plane] = None
    metadata: dict = field(default_factory=dict, compare=False)
    grid: Optional[tuple] = None
    closed_u: bool = False
    closed_v: bool = False

    def __post_init__(self):
        require_callable(self.evaluate, 'surface evaluate')


def _kind(surface: Surface) -> str:
    return surface.metadata.get('type', 'surface')


# -----------------------------------------------------------------------------
# Evaluation
# -----------------------------------------------------------------------------

def grid_lookup(rows: Sequence[Sequence], fu: float, fv: float,
                closed_u: bool = False, closed_v: bool = False) -> list:
    """Bilinear lookup in a row-major lattice at normalised ``(fu, fv)``.

    Closed directions wrap from the last row/column back to the first.
    """
    nrows = len(rows)
    ncols = len(rows[0])
    fu = geom.clamp(fu, 0.0, 1.0)
    fv = geom.clamp(fv, 0.0, 1.0)
    tu = fu * (ncols if closed_u else ncols - 1)
    tv = fv * (nrows if closed_v else nrows - 1)
    iu = math.floor(tu)
    iv = math.floor(tv)
    du = tu - iu
    dv = tv - iv
    if closed_u:
        i0 = iu % ncols
        i1 = (i0 + 1) % ncols
    else:
        i0 = min(iu, ncols - 1)
        i1 = min(i0 + 1, ncols - 1)
    if closed_v:
        j0 = iv % nrows
        j1 = (j0 + 1) % nrows
    else:
        j0 = min(iv, nrows - 1)
        j1 = min(j0 + 1, nrows - 1)
    a = geom.lerp(rows[j0][i0], rows[j0][i1], du)
    b = geom.lerp(rows[j1][i0], rows[j1][i1], du)
    return geom.point(geom.lerp(a, b, dv))


def evaluate_surface(surface: Optional[Surface], u: float, v: float) -> Optional[list]:
    """Point on ``surface`` at ``(u, v)``, or ``None`` for no surface.

    Falls back to bilinear grid lookup when the evaluator yields nothing.
    """
    if surface is None:
        return None
    p = surface.evaluate(u, v)
    if p is None and surface.grid:
        du, dv = surface.domain_u, surface.domain_v
        fu = 0.0 if abs(du.span) <= EPSILON else (u - du.start) / du.span
        fv = 0.0 if abs(dv.span) <= EPSILON else (v - dv.start) / dv.span
        return grid_lookup(surface.grid, fu, fv, surface.closed_u, surface.closed_v)
    if p is None:
        return None
    return geom.point(p)


def surface_domain_point(surface: Surface, fu: float, fv: float) -> Optional[list]:
    """Evaluate at normalised parameters (0..1 across each domain)."""
    return evaluate_surface(surface, domain_parameter(surface.domain_u, fu),
                            domain_parameter(surface.domain_v, fv))


# -----------------------------------------------------------------------------
# Primitive surfaces
# -----------------------------------------------------------------------------

def plane_surface(plane=None, domain_u=None, domain_v=None) -> Surface:
    """Planar surface over ``domain_u x domain_v`` in plane coordinates.

    Parameters are clamped to the domains.  Domains default to ``[0, 1]``.
    """
    pl = ensure_plane(plane)
    du = ensure_domain(domain_u, domain(0.0, 1.0))
    dv = ensure_domain(domain_v, domain(0.0, 1.0))

    def evaluate(u, v):
        return apply_plane(pl, geom.clamp(u, du.min, du.max),
                           geom.clamp(v, dv.min, dv.max), 0.0)

    return Surface(evaluate, du, dv, pl, {'type': 'plane'})


def plane_surface_from_bounds(plane, min_x: float, max_x: float,
                              min_y: float, max_y: float) -> Surface:
    return plane_surface(plane, domain(min_x, max_x), domain(min_y, max_y))


def plane_surface_from_size(plane, size_x: float, size_y: float) -> Surface:
    """Planar surface of the given size centred on the plane origin."""
    hx = abs(size_x) / 2.0
    hy = abs(size_y) / 2.0
    return plane_surface_from_bounds(plane, -hx, hx, -hy, hy)


def cylinder_surface(plane=None, radius: float = 1.0, height: float = 1.0) -> Surface:
    """Cylinder about the plane normal.

    ``u`` is the angle in ``[0, 2 pi]`` measured from the plane x axis,
    ``v`` the height in ``[0, height]``.
    """
    pl = ensure_plane(plane)
    du = domain(0.0, geom.pi2)
    dv = domain(0.0, height)
    r = max(abs(radius), EPSILON)

    def evaluate(u, v):
        a = geom.clamp(u, du.min, du.max)
        h = geom.clamp(v, dv.min, dv.max)
        return apply_plane(pl, r*math.cos(a), r*math.sin(a), h)

    return Surface(evaluate, du, dv, pl, {'type': 'cylinder', 'radius': r, 'height': height},
                   closed_u=True)


def cone_surface(plane=None, radius: float = 1.0, height: float = 1.0) -> Surface:
    """Cone with base radius ``radius`` in the plane, apex at ``height``
    along the normal.  The radius shrinks linearly with ``v``."""
    pl = ensure_plane(plane)
    du = domain(0.0, geom.pi2)
    dv = domain(0.0, height)
    r = max(abs(radius), EPSILON)

    def evaluate(u, v):
        a = geom.clamp(u, du.min, du.max)
        h = geom.clamp(v, dv.min, dv.max)
        t = 0.0 if abs(dv.span) <= EPSILON else geom.clamp((h - dv.start) / dv.span, 0.0, 1.0)
        rr = r * (1.0 - t)
        return apply_plane(pl, rr*math.cos(a), rr*math.sin(a), h)

    return Surface(evaluate, du, dv, pl, {'type': 'cone', 'radius': r, 'height': height},
                   closed_u=True)


def sphere_surface(center=None, radius: float = 1.0, plane=None) -> Surface:
    """Sphere with ``u`` the longitude in ``[0, 2 pi]`` and ``v`` the
    polar angle in ``[0, pi]`` measured from the plane normal."""
    base = ensure_plane(plane)
    c = geom.point(center) if center is not None else geom.point(base.origin)
    pl = Plane(c, base.xaxis, base.yaxis, base.zaxis)
    r = max(abs(radius), EPSILON)
    du = domain(0.0, geom.pi2)
    dv = domain(0.0, math.pi)

    def evaluate(u, v):
        a = geom.clamp(u, du.min, du.max)
        b = geom.clamp(v, dv.min, dv.max)
        sb = math.sin(b)
        return apply_plane(pl, r*sb*math.cos(a), r*sb*math.sin(a), r*math.cos(b))

    return Surface(evaluate, du, dv, pl, {'type': 'sphere', 'radius': r},
                   closed_u=True)


# -----------------------------------------------------------------------------
# Grid-backed (free-form) surfaces
# -----------------------------------------------------------------------------

def grid_surface(rows: Sequence[Sequence], closed_u: bool = False,
                 closed_v: bool = False, metadata=None) -> Optional[Surface]:
    """Bilinear surface over a row-major point lattice.

    Ragged rows are resampled to the longest row.  Requires at least
    two rows of at least two points; returns ``None`` otherwise.
    """
    if not rows:
        return None
    pts_rows = [[geom.point(p) for p in row] for row in rows if row]
    ncols = max((len(r) for r in pts_rows), default=0)
    if len(pts_rows) < 2 or ncols < 2:
        return None
    lattice = tuple(tuple(r) if len(r) == ncols
                    else tuple(resample_polyline(r, ncols, closed_u))
                    for r in pts_rows)
    du = domain(0.0, 1.0)
    dv = domain(0.0, 1.0)

    def evaluate(u, v):
        return grid_lookup(lattice, u, v, closed_u, closed_v)

    meta = {'type': 'grid'}
    meta.update(metadata or {})
    return Surface(evaluate, du, dv, None, meta, lattice, bool(closed_u), bool(closed_v))


def surface_from_points(points: Sequence, count_u: int) -> Optional[Surface]:
    """Grid surface from a flat point list laid out ``count_u`` per row.

    A trailing partial row is dropped.  Returns ``None`` when fewer than
    two full rows are given.
    """
    nu = max(2, int(round(count_u or 0)))
    nv = len(points) // nu
    if nv < 2:
        return None
    rows = [[geom.point(points[j*nu + i]) for i in range(nu)] for j in range(nv)]
    return grid_surface(rows, metadata={'type': 'points'})


def _section(value) -> Optional[Polyline]:
    pl = ensure_polyline(value)
    if pl is None or len(pl) < 2:
        return None
    return pl


def loft_surface(sections: Sequence, closed: bool = False) -> Optional[Surface]:
    """Loft through a sequence of section curves.

    Each section is resampled to a common count (at least 8) so that
    sections with different point counts line up.
    """
    curves = [c for c in (_section(s) for s in sections or ()) if c is not None]
    if not curves:
        return None
    count = max(max(len(c) for c in curves), 8)
    closed_u = bool(closed) or any(c.closed for c in curves)
    rows = [resample_polyline(c.points, count, closed or c.closed) for c in curves]
    return grid_surface(rows, closed_u=closed_u,
                        metadata={'type': 'loft', 'sections': len(curves)})


def ruled_surface(curve_a, curve_b) -> Optional[Surface]:
    """Straight-line surface between two curves."""
    a = _section(curve_a)
    b = _section(curve_b)
    if a is None or b is None:
        return None
    count = max(len(a), len(b), 2)
    rows = [resample_polyline(a.points, count, a.closed),
            resample_polyline(b.points, count, b.closed)]
    return grid_surface(rows, closed_u=a.closed and b.closed,
                        metadata={'type': 'ruled'})


def sweep_surface(rail, profile) -> Optional[Surface]:
    """Sweep ``profile`` along ``rail``.

    The profile is expressed in the frame at the start of the rail and
    carried along the rail's parallel-transport frames.
    """
    r = _section(rail)
    p = _section(profile)
    if r is None or p is None:
        return None
    frames = curve_frames(r.points, closed=r.closed)
    coords = [plane_coordinates(q, frames[0]) for q in p.points]
    rows = [[apply_plane(f, c) for c in coords] for f in frames]
    return grid_surface(rows, closed_u=p.closed, closed_v=r.closed,
                        metadata={'type': 'sweep'})


def extrusion_surface(profile, direction) -> Optional[Surface]:
    """Straight extrusion of ``profile`` by ``direction``."""
    p = _section(profile)
    if p is None or geom.mag(direction) <= EPSILON:
        return None
    rows = [list(p.points), [geom.add(q, geom.vector(direction)) for q in p.points]]
    return grid_surface(rows, closed_u=p.closed,
                        metadata={'type': 'extrusion', 'direction': geom.vector(direction)})


def extrude_along(profile, path) -> Optional[Surface]:
    """Translate ``profile`` along the points of ``path`` (no rotation)."""
    p = _section(profile)
    c = _section(path)
    if p is None or c is None:
        return None
    start = c.points[0]
    rows = [[geom.add(q, geom.sub(s, start)) for q in p.points] for s in c.points]
    return grid_surface(rows, closed_u=p.closed, closed_v=c.closed,
                        metadata={'type': 'extrusion'})


def network_surface(curves_u: Sequence, curves_v: Sequence) -> Optional[Surface]:
    """Surface through a network of curves: the average of the loft
    through the u curves and the loft through the v curves."""
    loft_u = loft_surface(curves_u)
    loft_v = loft_surface(curves_v)
    if loft_u is None and loft_v is None:
        return None
    if loft_u is None or loft_v is None:
        only = loft_u or loft_v
        meta = dict(only.metadata)
        meta['type'] = 'network'
        return Surface(only.evaluate, only.domain_u, only.domain_v, None, meta,
                       only.grid, only.closed_u, only.closed_v)

    # loft_v runs along the v curves, so its parameters are swapped
    def evaluate(u, v):
        a = loft_u.evaluate(u, v)
        b = loft_v.evaluate(v, u)
        return geom.point(geom.lerp(a, b, 0.5))

    return Surface(evaluate, domain(0.0, 1.0), domain(0.0, 1.0), None,
                   {'type': 'network'})


def revolution_surface(profile, axis_origin=None, axis_direction=None,
                       angle_domain=None) -> Optional[Surface]:
    """Revolve ``profile`` about an axis.

    Rows are rotated copies of the profile spaced at most pi/16 apart.
    A full turn produces a surface closed in ``v``.
    """
    p = _section(profile)
    if p is None:
        return None
    origin = geom.point(axis_origin) if axis_origin is not None else geom.point(0, 0, 0)
    axis = geom.unit(axis_direction if axis_direction is not None else [0, 0, 1],
                     [0.0, 0.0, 1.0])
    ad = ensure_domain(angle_domain, domain(0.0, geom.pi2))
    span = ad.span
    nrows = max(3, int(round(abs(span) / (math.pi / 16))))
    full = abs(abs(span) - geom.pi2) <= 1e-6
    rows = []
    last = nrows if not full else nrows - 1
    for i in range(last + 1):
        ang = ad.start + span * i / nrows
        R = Rotation(axis, ang)
        rows.append([geom.add(origin, R.mul(geom.sub(q, origin))) for q in p.points])
    return grid_surface(rows, closed_u=p.closed, closed_v=full,
                        metadata={'type': 'revolution', 'axis_origin': origin,
                                  'axis': axis, 'angles': (ad.start, ad.end)})


def pipe_surface(rail, radii=1.0, radial_segments: int = 24) -> Optional[Surface]:
    """Circular pipe around ``rail``.

    ``radii`` is either one radius or a radius per rail point (the last
    value repeats when the list is short).
    """
    r = _section(rail)
    if r is None:
        return None
    frames = curve_frames(r.points, closed=r.closed)
    if geom.isgoodnum(radii):
        radii = [radii]
    radii = list(radii) or [1.0]
    segs = max(3, int(radial_segments))
    rows = []
    for i, f in enumerate(frames):
        rad = max(abs(radii[min(i, len(radii) - 1)]), EPSILON)
        row = []
        for k in range(segs):
            a = geom.pi2 * k / segs
            row.append(apply_plane(f, rad*math.cos(a), rad*math.sin(a), 0.0))
        rows.append(row)
    return grid_surface(rows, closed_u=True, closed_v=r.closed,
                        metadata={'type': 'pipe'})


def boundary_surface(curve) -> Optional[Surface]:
    """Planar patch over the bounds of a (roughly planar) boundary curve,
    in the plane through the curve's points."""
    c = ensure_polyline(curve)
    if c is None:
        return None
    pts = list(c.points)
    pl = ensure_plane(pts) if len(pts) >= 3 else world_plane()
    coords = [plane_coordinates(q, pl) for q in pts]
    xs = [k[0] for k in coords]
    ys = [k[1] for k in coords]
    s = plane_surface_from_bounds(pl, min(xs), max(xs), min(ys), max(ys))
    meta = dict(s.metadata)
    meta['boundary'] = c
    return Surface(s.evaluate, s.domain_u, s.domain_v, s.plane, meta)


def four_point_surface(a, b, c, d=None) -> Optional[Surface]:
    """Bilinear patch through corners ``a, b, c, d`` in order around the
    boundary.  With three points the last corner is collapsed onto ``c``."""
    if d is None:
        d = c
    rows = [[a, b], [d, c]]
    return grid_surface(rows, metadata={'type': 'four_point'})


# -----------------------------------------------------------------------------
# Derived surfaces
# -----------------------------------------------------------------------------

def isotrim(surface: Surface, domain_u=None, domain_v=None) -> Surface:
    """Sub-surface over new parameter domains (defaults keep the
    original domain)."""
    du = ensure_domain(domain_u, surface.domain_u)
    dv = ensure_domain(domain_v, surface.domain_v)
    meta = dict(surface.metadata)
    meta['trimmed'] = True
    return Surface(surface.evaluate, du, dv, surface.plane, meta)


def flip_surface(surface: Surface) -> Surface:
    """Swap the ``u`` and ``v`` directions, which reverses the normal."""
    ev = surface.evaluate

    def evaluate(u, v):
        return ev(v, u)

    grid = None
    if surface.grid:
        grid = tuple(tuple(surface.grid[j][i] for j in range(len(surface.grid)))
                     for i in range(len(surface.grid[0])))
    plane = flip_plane(surface.plane) if surface.plane is not None else None
    return Surface(evaluate, surface.domain_v, surface.domain_u, plane,
                   dict(surface.metadata), grid, surface.closed_v, surface.closed_u)


# -----------------------------------------------------------------------------
# Sampling and tessellation
# -----------------------------------------------------------------------------

def sample_surface_grid(surface: Optional[Surface], nu: int = 8, nv: int = 8) -> List[list]:
    """Evaluate a regular ``(nv + 1)`` x ``(nu + 1)`` lattice.

    Returns a list of rows, each row holding the ``nu + 1`` points at a
    constant ``v``.
    """
    if surface is None:
        return []
    nu = max(1, int(nu))
    nv = max(1, int(nv))
    du, dv = surface.domain_u, surface.domain_v
    rows = []
    for j in range(nv + 1):
        v = domain_parameter(dv, j / nv)
        rows.append([evaluate_surface(surface, domain_parameter(du, i / nu), v)
                     for i in range(nu + 1)])
    return rows


def sample_surface_points(surface: Optional[Surface], nu: int = 8, nv: int = 8) -> List[list]:
    """Flat list of the :func:`sample_surface_grid` points."""
    return [p for row in sample_surface_grid(surface, nu, nv) for p in row
            if p is not None]


def triangulate_surface_grid(surface: Optional[Surface], nu: int = 16, nv: int = 16) -> Optional[Mesh]:
    """Triangle mesh of the sample lattice.

    Vertex ``(i, j)`` has index ``j * (nu + 1) + i``.  Each quad
    ``(i00, i10, i11, i01)`` is split along the ``i00-i11`` diagonal.
    """
    rows = sample_surface_grid(surface, nu, nv)
    if not rows:
        return None
    nu = len(rows[0]) - 1
    nv = len(rows) - 1
    verts = [p for row in rows for p in row]
    faces = []
    w = nu + 1
    for j in range(nv):
        for i in range(nu):
            i00 = j*w + i
            i10 = i00 + 1
            i01 = i00 + w
            i11 = i01 + 1
            faces.append((i00, i10, i11))
            faces.append((i00, i11, i01))
    return Mesh(tuple(verts), tuple(faces), {'source': _kind(surface)})


surface_to_mesh = triangulate_surface_grid


def surface_area_centroid(surface: Optional[Surface], nu: int = 16,
                          nv: int = 16) -> Tuple[float, Optional[list]]:
    """Approximate area and area centroid from the triangulated lattice.

    Zero-area triangles are skipped.  The centroid is ``None`` when the
    total area vanishes.
    """
    m = triangulate_surface_grid(surface, nu, nv)
    if m is None:
        return 0.0, None
    total = 0.0
    cx = cy = cz = 0.0
    verts = m.vertices
    for i0, i1, i2 in m.faces:
        a = triangle_area(verts[i0], verts[i1], verts[i2])
        if a <= 0.0:
            continue
        c = triangle_centroid(verts[i0], verts[i1], verts[i2])
        total += a
        cx += c[0]*a
        cy += c[1]*a
        cz += c[2]*a
    if total <= 0.0:
        return 0.0, None
    return total, geom.point(cx/total, cy/total, cz/total)


__all__ = [
    'Surface', 'grid_lookup', 'evaluate_surface', 'surface_domain_point',
    'plane_surface', 'plane_surface_from_bounds', 'plane_surface_from_size',
    'cylinder_surface', 'cone_surface', 'sphere_surface', 'grid_surface',
    'surface_from_points', 'loft_surface', 'ruled_surface', 'sweep_surface',
    'extrusion_surface', 'extrude_along', 'network_surface',
    'revolution_surface', 'pipe_surface', 'boundary_surface',
    'four_point_surface', 'isotrim', 'flip_surface', 'sample_surface_grid',
    'sample_surface_points', 'triangulate_surface_grid', 'surface_to_mesh',
    'surface_area_centroid',
]
