"""Structural traversal of geometry values.

Every value the kernel handles belongs to one :class:`GeometryKind`.
:func:`map_geometry` is the one recursive visitor over that closed set:
it rebuilds a value of any kind with its points passed through a point
function and its directions through a vector function.  Transforms
(:func:`apply_transform`) and morphs (:func:`map_points`) are both thin
wrappers around it.

Results are memoised per input object, so a sub-value shared by several
parents is mapped once and the copies stay shared.  Self-referencing
lists and dicts map to self-referencing copies.

Copyright (c) 2025 paramKernel contributors
MIT License
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from paramkernel import geom
from paramkernel.box import Box, Sphere, box_from_points
from paramkernel.curve import Polyline
from paramkernel.errors import require_callable
from paramkernel.frame import Plane, normalize_plane_axes, plane_at
from paramkernel.mesh import Mesh
from paramkernel.settings import SAMPLE_LIMIT
from paramkernel.subd import SubD, subd_with_points
from paramkernel.surface import Surface, evaluate_surface, sample_surface_points
from paramkernel.transform import Transform, as_transform
from paramkernel.xform import Matrix

logger = logging.getLogger(__name__)


class GeometryKind(Enum):
    POINT = 'point'
    PLANE = 'plane'
    POLYLINE = 'polyline'
    SURFACE = 'surface'
    BOX = 'box'
    SPHERE = 'sphere'
    MESH = 'mesh'
    SUBD = 'subd'
    TWISTED_BOX = 'twisted_box'
    GROUP = 'group'
    SEQUENCE = 'sequence'
    RECORD = 'record'
    TRANSFORM = 'transform'
    SCALAR = 'scalar'


# record fields holding directions rather than positions
DIRECTION_KEYS = frozenset(('normal', 'tangent', 'binormal', 'direction'))

# record fields that are never geometry
PASSTHROUGH_KEYS = frozenset(('id', 'ids', 'tag', 'tags', 'name', 'type', 'kind'))

# record fields whose bare 3-number value is a position
POINT_KEYS = frozenset(('point', 'origin', 'center', 'position', 'location',
                        'min', 'max', 'start', 'end', 'corner', 'target'))


@dataclass(frozen=True)
class Group:
    """Ordered collection of values.  Groups may nest."""

    items: tuple = ()
    metadata: dict = field(default_factory=dict, compare=False)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def flatten(self) -> tuple:
        """Leaf items with every nested group expanded, in order."""
        out = []
        for item in self.items:
            if isinstance(item, Group):
                out.extend(item.flatten())
            else:
                out.append(item)
        return tuple(out)


def _is_point(value) -> bool:
    return (isinstance(value, (list, tuple)) and len(value) in (3, 4)
            and all(geom.isgoodnum(c) for c in value))


def _is_homogeneous(value) -> bool:
    return _is_point(value) and len(value) == 4 and value[3] in (0, 1)


def _plain_numbers(key, value) -> bool:
    """True for a record field holding numbers that are not geometry: a
    numeric sequence under a key that names neither a position nor a
    direction, unless it is already homogeneous."""
    if isinstance(value, (list, tuple)) and value \
            and all(geom.isgoodnum(c) for c in value):
        if key in POINT_KEYS or key in DIRECTION_KEYS:
            return not _is_point(value)
        return not _is_homogeneous(value)
    return False


def classify(value) -> GeometryKind:
    """The :class:`GeometryKind` of ``value``.  Anything unrecognised is
    a ``SCALAR`` and passes through mapping untouched."""
    from paramkernel.morph import TwistedBox

    if _is_point(value):
        return GeometryKind.POINT
    if isinstance(value, Plane):
        return GeometryKind.PLANE
    if isinstance(value, Polyline):
        return GeometryKind.POLYLINE
    if isinstance(value, Surface):
        return GeometryKind.SURFACE
    if isinstance(value, Box):
        return GeometryKind.BOX
    if isinstance(value, Sphere):
        return GeometryKind.SPHERE
    if isinstance(value, Mesh):
        return GeometryKind.MESH
    if isinstance(value, SubD):
        return GeometryKind.SUBD
    if isinstance(value, TwistedBox):
        return GeometryKind.TWISTED_BOX
    if isinstance(value, Group):
        return GeometryKind.GROUP
    if isinstance(value, (Transform, Matrix)):
        return GeometryKind.TRANSFORM
    if isinstance(value, (list, tuple)):
        return GeometryKind.SEQUENCE
    if isinstance(value, dict):
        return GeometryKind.RECORD
    return GeometryKind.SCALAR


# -----------------------------------------------------------------------------
# Mapping
# -----------------------------------------------------------------------------

class _Mapper:
    """One traversal.  ``vector_fn`` is called as ``vector_fn(vec,
    anchor)`` where ``anchor`` is the unmapped point the direction is
    attached to, or ``None`` when there is none."""

    def __init__(self, point_fn: Callable, vector_fn: Callable):
        self.point_fn = point_fn
        self.vector_fn = vector_fn
        self.memo: Dict[int, object] = {}
        # keeps inputs alive so their ids stay unique during the walk
        self.seen: List[object] = []

    def point(self, p) -> list:
        if len(p) == 4 and p[3] == 0:
            return geom.vector(self.vector_fn(geom.vector(p), None))
        return geom.point(self.point_fn(geom.point(p)))

    def vector(self, v, anchor=None) -> list:
        return geom.vector(self.vector_fn(geom.vector(v), anchor))

    def __call__(self, value):
        kind = classify(value)
        if kind in (GeometryKind.SCALAR, GeometryKind.TRANSFORM):
            return value
        key = id(value)
        if key in self.memo:
            return self.memo[key]
        self.seen.append(value)
        if kind is GeometryKind.SEQUENCE and isinstance(value, list):
            out = []
            self.memo[key] = out
            out.extend(self(item) for item in value)
            return out
        if kind is GeometryKind.RECORD:
            out = {}
            self.memo[key] = out
            self._record(value, out)
            return out
        result = getattr(self, '_' + kind.value)(value)
        self.memo[key] = result
        return result

    def _point(self, p):
        return self.point(p)

    def _plane(self, pl: Plane) -> Plane:
        origin = self.point(pl.origin)
        x = self.vector(pl.xaxis, pl.origin)
        y = self.vector(pl.yaxis, pl.origin)
        mapped = normalize_plane_axes(origin, x, y, self.vector(pl.zaxis, pl.origin))
        if mapped is None:
            logger.debug("map_geometry: plane collapsed, keeping its axes")
            return plane_at(pl, origin)
        return mapped

    def _polyline(self, pl: Polyline) -> Polyline:
        return Polyline(tuple(self.point(p) for p in pl.points), pl.closed)

    def _surface(self, s: Surface) -> Surface:
        mapper = self

        def evaluate(u, v):
            p = evaluate_surface(s, u, v)
            return None if p is None else mapper.point(p)

        grid = None
        if s.grid:
            grid = tuple(tuple(self.point(p) for p in row) for row in s.grid)
        plane = self._plane(s.plane) if s.plane is not None else None
        return replace(s, evaluate=evaluate, plane=plane, grid=grid,
                       metadata=dict(s.metadata))

    def _box(self, b: Box) -> Box:
        plane = self._plane(b.plane)
        return box_from_points([self.point(c) for c in b.corners], plane)

    def _sphere(self, sp: Sphere) -> Sphere:
        center = self.point(sp.center)
        r = sp.radius
        axes = ([r, 0, 0, 0], [0, r, 0, 0], [0, 0, r, 0])
        radius = sum(geom.mag(self.vector(a, sp.center)) for a in axes) / 3.0
        surface = self._surface(sp.surface) if sp.surface is not None else None
        return Sphere(center, radius, surface)

    def _mesh(self, m: Mesh) -> Mesh:
        return Mesh(tuple(self.point(v) for v in m.vertices), m.faces, dict(m.metadata))

    def _subd(self, sd: SubD) -> SubD:
        return subd_with_points(sd, [self.point(v.point) for v in sd.vertices])

    def _twisted_box(self, tb):
        return type(tb)(tuple(self.point(c) for c in tb.corners))

    def _group(self, g: Group) -> Group:
        return Group(tuple(self(item) for item in g.items), dict(g.metadata))

    def _sequence(self, seq: tuple) -> tuple:
        return tuple(self(item) for item in seq)

    def _record(self, rec: dict, out: dict):
        anchor = None
        for k in ('point', 'origin', 'center', 'position'):
            if _is_point(rec.get(k)):
                anchor = geom.point(rec[k])
                break
        for k, v in rec.items():
            if k in PASSTHROUGH_KEYS or _plain_numbers(k, v):
                out[k] = v
            elif k in DIRECTION_KEYS and _is_point(v):
                out[k] = self.vector(v, anchor)
            else:
                out[k] = self(v)


def map_geometry(value, point_fn: Callable, vector_fn: Callable):
    """Rebuild ``value`` with every point replaced by ``point_fn(point)``
    and every direction by ``vector_fn(vector, anchor)``.

    ``anchor`` is the (unmapped) point a direction belongs to, such as
    a plane's origin, or ``None``.  Ids, tags, numbers, strings and
    transforms pass through unchanged.
    """
    require_callable(point_fn, 'point mapping')
    require_callable(vector_fn, 'vector mapping')
    return _Mapper(point_fn, vector_fn)(value)


def apply_transform(value, transform):
    """``value`` moved by ``transform`` (a :class:`Transform` or
    ``Matrix``).  Points use the full matrix, directions only its linear
    part."""
    m = as_transform(transform).matrix
    lin = m.linear_part()
    return map_geometry(value,
                        lambda p: m.mul(geom.point(p)),
                        lambda v, anchor: lin.mul(geom.vector(v)))


def map_points(value, fn: Callable):
    """``value`` with every point replaced by ``fn(point)``.

    Directions are mapped by differencing: ``fn(a + v) - fn(a)`` around
    their anchor point, or around the centroid of ``value`` when they
    have none.

    Raises
    ------
    KernelContractError
        if ``fn`` is not callable
    """
    require_callable(fn, 'point mapping')
    fallback: List[Optional[list]] = []

    def default_anchor():
        if not fallback:
            fallback.append(geometry_centroid(value) or geom.point(0, 0, 0))
        return fallback[0]

    def point_fn(p):
        return geom.point(fn(geom.point(p)))

    def vector_fn(v, anchor):
        a = geom.point(anchor) if anchor is not None else default_anchor()
        return geom.sub(point_fn(geom.add(a, v)), point_fn(a))

    return map_geometry(value, point_fn, vector_fn)


# -----------------------------------------------------------------------------
# Point collection
# -----------------------------------------------------------------------------

def _points_of(value, kind: GeometryKind) -> list:
    if kind is GeometryKind.POINT:
        return [] if len(value) == 4 and value[3] == 0 else [geom.point(value)]
    if kind is GeometryKind.PLANE:
        return [geom.point(value.origin)]
    if kind is GeometryKind.POLYLINE:
        return list(value.points)
    if kind is GeometryKind.SURFACE:
        if value.grid:
            return [p for row in value.grid for p in row]
        return sample_surface_points(value, 8, 8)
    if kind is GeometryKind.BOX:
        return value.corners
    if kind is GeometryKind.SPHERE:
        c, r = value.center, value.radius
        return [geom.point(c[0] + dx*r, c[1] + dy*r, c[2] + dz*r)
                for dx, dy, dz in ((1, 0, 0), (-1, 0, 0), (0, 1, 0),
                                   (0, -1, 0), (0, 0, 1), (0, 0, -1))]
    if kind is GeometryKind.MESH:
        return list(value.vertices)
    if kind is GeometryKind.SUBD:
        return [v.point for v in value.vertices]
    if kind is GeometryKind.TWISTED_BOX:
        return list(value.corners)
    return []


def _children(value, kind: GeometryKind) -> Sequence:
    if kind in (GeometryKind.GROUP, GeometryKind.SEQUENCE):
        return list(value)
    if kind is GeometryKind.RECORD:
        return [v for k, v in value.items() if k not in PASSTHROUGH_KEYS
                and k not in DIRECTION_KEYS and not _plain_numbers(k, v)]
    return ()


def collect_points(value, limit: int = SAMPLE_LIMIT) -> List[list]:
    """Up to ``limit`` points found anywhere inside ``value``, in
    traversal order.  Shared sub-values are visited once."""
    out: List[list] = []
    seen = set()
    stack = [value]
    while stack and len(out) < limit:
        item = stack.pop()
        kind = classify(item)
        if kind in (GeometryKind.SCALAR, GeometryKind.TRANSFORM):
            continue
        if kind is not GeometryKind.POINT:
            if id(item) in seen:
                continue
            seen.add(id(item))
        out.extend(_points_of(item, kind)[:limit - len(out)])
        stack.extend(reversed(_children(item, kind)))
    return out


def geometry_bbox(value, limit: int = SAMPLE_LIMIT) -> Optional[list]:
    """World ``[min, max]`` bounds of ``value``, or ``None``."""
    return geom.pointbbox(collect_points(value, limit))


def geometry_centroid(value, limit: int = SAMPLE_LIMIT) -> Optional[list]:
    return geom.centroid(collect_points(value, limit))


# -----------------------------------------------------------------------------
# Groups
# -----------------------------------------------------------------------------

def group(items, metadata=None) -> Group:
    """Group ``items`` (a single value becomes a one-item group)."""
    if isinstance(items, Group):
        items = items.items
    elif not isinstance(items, (list, tuple)) or _is_point(items):
        items = (items,)
    return Group(tuple(items), dict(metadata or {}))


def ungroup(value) -> list:
    """The items of a group, one level deep; other values come back as
    a one-item list."""
    if isinstance(value, Group):
        return list(value.items)
    return [value]


def merge_groups(*groups) -> Group:
    """One group holding the items of every argument in order.
    Non-group arguments are added as items.  Metadata is merged, later
    groups winning."""
    items, metadata = [], {}
    for g in groups:
        if isinstance(g, Group):
            items.extend(g.items)
            metadata.update(g.metadata)
        elif g is not None:
            items.append(g)
    return Group(tuple(items), metadata)


def split_group(g, indices: Sequence[int], wrap: bool = False):
    """Split a group into ``(selected, rest)`` groups.

    Out-of-range indices are skipped, or wrapped around the group
    length when ``wrap`` is set.
    """
    g = group(g)
    n = len(g.items)
    picked = []
    for i in indices:
        i = int(i)
        if n and wrap:
            i %= n
        elif i < 0 or i >= n:
            continue
        if i not in picked:
            picked.append(i)
    selected = tuple(g.items[i] for i in picked)
    rest = tuple(item for i, item in enumerate(g.items) if i not in picked)
    return Group(selected, dict(g.metadata)), Group(rest, dict(g.metadata))


__all__ = [
    'GeometryKind', 'Group', 'DIRECTION_KEYS', 'PASSTHROUGH_KEYS', 'classify',
    'map_geometry', 'apply_transform', 'map_points', 'collect_points',
    'geometry_bbox', 'geometry_centroid', 'group', 'ungroup', 'merge_groups',
    'split_group',
]
