"""Tagged polygon meshes (SubD control cages).

A :class:`SubD` is an indexed polygon mesh with explicit edges.  Every
vertex carries a :class:`VertexTag` and every edge an :class:`EdgeTag`.
Topology is always rebuilt from the face list: one edge per unordered
vertex pair, with the ids of the faces that use it.  An edge used by no
face or one face is naked, two faces is interior, and three or more is
non-manifold.

The boolean operations here are approximations.  Union concatenates the
operands.  Intersection and difference keep or drop whole faces by
testing face centroids against the other operand's bounding box.  They
do not perform solid CSG.

Copyright (c) 2025 paramKernel contributors
MIT License
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from paramkernel import geom
from paramkernel.curve import Polyline, arc_lengths, circle_points, curve_frames, ensure_polyline
from paramkernel.frame import apply_plane, plane_coordinates
from paramkernel.mesh import Mesh, fan_triangles
from paramkernel.settings import EPSILON, MERGE_TOLERANCE

logger = logging.getLogger(__name__)


class VertexTag(str, Enum):
    SMOOTH = 'smooth'
    CORNER = 'corner'
    CREASE = 'crease'
    DART = 'dart'


class EdgeTag(str, Enum):
    SMOOTH = 'smooth'
    CREASE = 'crease'


_VERTEX_ALIASES = {
    's': VertexTag.SMOOTH, 'smooth': VertexTag.SMOOTH,
    'c': VertexTag.CREASE, 'crease': VertexTag.CREASE,
    'l': VertexTag.CORNER, 'corner': VertexTag.CORNER,
    'd': VertexTag.DART, 'dart': VertexTag.DART,
}
_VERTEX_CODES = {1: VertexTag.CREASE, 2: VertexTag.CORNER, 3: VertexTag.DART}

_EDGE_ALIASES = {
    's': EdgeTag.SMOOTH, 'smooth': EdgeTag.SMOOTH,
    'c': EdgeTag.CREASE, 'crease': EdgeTag.CREASE, 'sharp': EdgeTag.CREASE,
}


def normalize_vertex_tag(value) -> VertexTag:
    """Vertex tag from text (``'corner'``, ``'l'``, ...), a numeric code
    (1 crease, 2 corner, 3 dart) or a tag.  Anything else is smooth."""
    if isinstance(value, VertexTag):
        return value
    if isinstance(value, str):
        return _VERTEX_ALIASES.get(value.strip().lower(), VertexTag.SMOOTH)
    if geom.isgoodnum(value):
        return _VERTEX_CODES.get(int(round(value)), VertexTag.SMOOTH)
    return VertexTag.SMOOTH


def normalize_edge_tag(value) -> EdgeTag:
    """Edge tag from text (``'crease'``, ``'sharp'``, ...), a numeric code
    (1 crease) or a tag.  Anything else is smooth."""
    if isinstance(value, EdgeTag):
        return value
    if isinstance(value, str):
        return _EDGE_ALIASES.get(value.strip().lower(), EdgeTag.SMOOTH)
    if geom.isgoodnum(value):
        return EdgeTag.CREASE if int(round(value)) == 1 else EdgeTag.SMOOTH
    return EdgeTag.SMOOTH


@dataclass(frozen=True)
class SubDVertex:
    id: int
    point: list
    tag: VertexTag = VertexTag.SMOOTH


@dataclass(frozen=True)
class SubDEdge:
    id: int
    vertices: Tuple[int, int]
    faces: tuple
    tag: EdgeTag = EdgeTag.SMOOTH


@dataclass(frozen=True)
class SubDFace:
    id: int
    vertices: tuple
    edges: tuple
    centroid: list


@dataclass(frozen=True)
class SubD:
    vertices: tuple
    edges: tuple
    faces: tuple
    metadata: dict = field(default_factory=dict, compare=False)

    def polygons(self) -> List[List[list]]:
        """Faces as rings of points."""
        pts = [v.point for v in self.vertices]
        return [[pts[i] for i in f.vertices] for f in self.faces]


def _pair(a: int, b: int) -> Tuple[int, int]:
    return (a, b) if a <= b else (b, a)


def build_subd(points: Sequence, faces: Iterable[Sequence[int]],
               vertex_tags: Optional[Dict[int, object]] = None,
               edge_tags: Optional[Dict[Tuple[int, int], object]] = None,
               metadata=None) -> SubD:
    """Assemble a :class:`SubD` from vertex points and index faces.

    Consecutive repeated indices are collapsed and faces left with fewer
    than three vertices are dropped.  Edges are derived from the faces.
    """
    vertex_tags = vertex_tags or {}
    edge_tags = {_pair(*k): normalize_edge_tag(t) for k, t in (edge_tags or {}).items()}
    pts = [geom.point(p) for p in points]
    verts = tuple(SubDVertex(i, pts[i], normalize_vertex_tag(vertex_tags.get(i)))
                  for i in range(len(pts)))

    clean = []
    for f in faces:
        ring = []
        for i in f:
            i = int(i)
            if not 0 <= i < len(pts):
                continue
            if ring and ring[-1] == i:
                continue
            ring.append(i)
        while len(ring) > 1 and ring[0] == ring[-1]:
            ring.pop()
        if len(set(ring)) >= 3:
            clean.append(tuple(ring))
        else:
            logger.debug("build_subd: dropping degenerate face %s", list(f))

    edge_index: Dict[Tuple[int, int], int] = {}
    edge_faces: List[List[int]] = []
    edge_keys: List[Tuple[int, int]] = []
    face_edges = []
    for fid, ring in enumerate(clean):
        ids = []
        n = len(ring)
        for k in range(n):
            key = _pair(ring[k], ring[(k + 1) % n])
            eid = edge_index.get(key)
            if eid is None:
                eid = len(edge_keys)
                edge_index[key] = eid
                edge_keys.append(key)
                edge_faces.append([])
            if fid not in edge_faces[eid]:
                edge_faces[eid].append(fid)
            ids.append(eid)
        face_edges.append(tuple(ids))

    edges = tuple(SubDEdge(i, edge_keys[i], tuple(edge_faces[i]),
                           edge_tags.get(edge_keys[i], EdgeTag.SMOOTH))
                  for i in range(len(edge_keys)))
    faces_out = tuple(SubDFace(fid, ring, face_edges[fid],
                               geom.centroid([pts[i] for i in ring]))
                      for fid, ring in enumerate(clean))
    return SubD(verts, edges, faces_out, dict(metadata or {}))


def empty_subd() -> SubD:
    return SubD((), (), (), {})


class _PointIndex:
    """Spatial hash for merging coincident points."""

    def __init__(self, tol: float):
        self.tol = max(tol, EPSILON)
        self.cells: Dict[Tuple[int, int, int], List[int]] = {}
        self.points: List[list] = []

    def _cell(self, p):
        return (int(p[0] // self.tol), int(p[1] // self.tol), int(p[2] // self.tol))

    def add(self, p) -> int:
        cx, cy, cz = self._cell(p)
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for dz in (-1, 0, 1):
                    for i in self.cells.get((cx+dx, cy+dy, cz+dz), ()):
                        if geom.dist(self.points[i], p) <= self.tol:
                            return i
        i = len(self.points)
        self.points.append(geom.point(p))
        self.cells.setdefault((cx, cy, cz), []).append(i)
        return i


def subd_from_polygons(polygons: Sequence, tolerance: float = MERGE_TOLERANCE,
                       vertex_tags=None, edge_tags=None, metadata=None) -> SubD:
    """Build a :class:`SubD` from polygon rings.

    Vertices closer than ``tolerance`` are merged, so adjacent polygons
    share edges.  ``vertex_tags`` maps merged vertex ids to tags and
    ``edge_tags`` maps vertex-id pairs to tags.
    """
    index = _PointIndex(tolerance)
    faces = []
    for poly in polygons or ():
        if isinstance(poly, Polyline):
            poly = poly.points
        faces.append([index.add(geom.point(p)) for p in poly])
    return build_subd(index.points, faces, vertex_tags, edge_tags, metadata)


# -----------------------------------------------------------------------------
# Tags and classification
# -----------------------------------------------------------------------------

def set_vertex_tags(subd: SubD, ids: Iterable[int], tag) -> SubD:
    """Copy of ``subd`` with the given vertices retagged.  Unknown ids
    are ignored."""
    t = normalize_vertex_tag(tag)
    wanted = set(ids)
    verts = tuple(replace(v, tag=t) if v.id in wanted else v for v in subd.vertices)
    return SubD(verts, subd.edges, subd.faces, dict(subd.metadata))


def set_edge_tags(subd: SubD, ids: Iterable[int], tag) -> SubD:
    """Copy of ``subd`` with the given edges retagged.  Unknown ids are
    ignored."""
    t = normalize_edge_tag(tag)
    wanted = set(ids)
    edges = tuple(replace(e, tag=t) if e.id in wanted else e for e in subd.edges)
    return SubD(subd.vertices, edges, subd.faces, dict(subd.metadata))


def edge_valence(edge: SubDEdge) -> int:
    return len(edge.faces)


def classify_edges(subd: SubD) -> Dict[str, List[int]]:
    """Edge ids grouped as ``naked`` (0 or 1 faces), ``interior`` (2)
    and ``non_manifold`` (3 or more)."""
    out = {'naked': [], 'interior': [], 'non_manifold': []}
    for e in subd.edges:
        n = edge_valence(e)
        if n <= 1:
            out['naked'].append(e.id)
        elif n == 2:
            out['interior'].append(e.id)
        else:
            out['non_manifold'].append(e.id)
    return out


def boundary_vertex_ids(subd: SubD) -> set:
    """Ids of vertices on a naked edge or a creased edge."""
    ids = set()
    for e in subd.edges:
        if edge_valence(e) <= 1 or e.tag is EdgeTag.CREASE:
            ids.update(e.vertices)
    return ids


def is_boundary_vertex(subd: SubD, vid: int) -> bool:
    return vid in boundary_vertex_ids(subd)


def vertex_neighbors(subd: SubD, vid: int) -> List[int]:
    """Sorted ids of the vertices sharing an edge with ``vid``."""
    out = set()
    for e in subd.edges:
        a, b = e.vertices
        if a == vid:
            out.add(b)
        elif b == vid:
            out.add(a)
    return sorted(out)


def subd_bbox(subd: SubD) -> Optional[list]:
    return geom.pointbbox([v.point for v in subd.vertices])


def subd_with_points(subd: SubD, points: Sequence) -> SubD:
    """Same topology and tags with new vertex positions."""
    pts = [geom.point(p) for p in points]
    verts = tuple(SubDVertex(v.id, pts[v.id], v.tag) for v in subd.vertices)
    faces = tuple(SubDFace(f.id, f.vertices, f.edges,
                           geom.centroid([pts[i] for i in f.vertices]))
                  for f in subd.faces)
    return SubD(verts, subd.edges, faces, dict(subd.metadata))


# -----------------------------------------------------------------------------
# Smoothing
# -----------------------------------------------------------------------------

def smooth_subd(subd: SubD, iterations: int = 1) -> SubD:
    """Tag-aware Laplacian smoothing.

    Each round moves every free vertex halfway toward the centroid of
    its edge neighbours.  Corner and dart vertices and boundary vertices
    (see :func:`boundary_vertex_ids`) stay fixed.
    """
    steps = max(0, int(iterations))
    if steps == 0 or not subd.vertices:
        return subd
    fixed = boundary_vertex_ids(subd)
    for v in subd.vertices:
        if v.tag in (VertexTag.CORNER, VertexTag.DART):
            fixed.add(v.id)
    pts = [list(v.point) for v in subd.vertices]
    for _ in range(steps):
        sums = [[0.0, 0.0, 0.0] for _ in pts]
        counts = [0] * len(pts)
        for e in subd.edges:
            a, b = e.vertices
            for i, j in ((a, b), (b, a)):
                sums[i][0] += pts[j][0]
                sums[i][1] += pts[j][1]
                sums[i][2] += pts[j][2]
                counts[i] += 1
        new = []
        for i, p in enumerate(pts):
            if i in fixed or counts[i] == 0:
                new.append(p)
                continue
            c = [s / counts[i] for s in sums[i]]
            new.append([0.5*(p[0] + c[0]), 0.5*(p[1] + c[1]), 0.5*(p[2] + c[2]), 1.0])
        pts = new
    return subd_with_points(subd, pts)


# -----------------------------------------------------------------------------
# Approximate booleans
# -----------------------------------------------------------------------------

def _face_subset(subd: SubD, keep: Sequence[int]) -> SubD:
    """Sub-SubD made of the listed faces, vertices re-indexed compactly
    and tags carried over."""
    remap: Dict[int, int] = {}
    points, vtags, faces = [], {}, []
    for fid in keep:
        ring = []
        for vid in subd.faces[fid].vertices:
            if vid not in remap:
                remap[vid] = len(points)
                points.append(subd.vertices[vid].point)
                vtags[remap[vid]] = subd.vertices[vid].tag
            ring.append(remap[vid])
        faces.append(ring)
    etags = {}
    for e in subd.edges:
        a, b = e.vertices
        if a in remap and b in remap:
            etags[(remap[a], remap[b])] = e.tag
    return build_subd(points, faces, vtags, etags, subd.metadata)


def subd_union(a: Optional[SubD], b: Optional[SubD]) -> SubD:
    """Both operands in one SubD.  Vertices are not merged."""
    if a is None and b is None:
        return empty_subd()
    if a is None:
        return b
    if b is None:
        return a
    offset = len(a.vertices)
    points = [v.point for v in a.vertices] + [v.point for v in b.vertices]
    vtags = {v.id: v.tag for v in a.vertices}
    vtags.update({v.id + offset: v.tag for v in b.vertices})
    faces = [f.vertices for f in a.faces] + \
        [tuple(i + offset for i in f.vertices) for f in b.faces]
    etags = {e.vertices: e.tag for e in a.edges}
    etags.update({(e.vertices[0] + offset, e.vertices[1] + offset): e.tag for e in b.edges})
    return build_subd(points, faces, vtags, etags, {'operation': 'union'})


def _faces_inside(subd: SubD, box) -> List[int]:
    return [f.id for f in subd.faces if geom.isinsidebbox(box, f.centroid, EPSILON)]


def subd_intersection(a: Optional[SubD], b: Optional[SubD]) -> SubD:
    """Faces of each operand whose centroid lies inside the other
    operand's bounding box.  Disjoint boxes give an empty SubD."""
    if a is None or b is None:
        return a or b or empty_subd()
    ba, bb = subd_bbox(a), subd_bbox(b)
    if ba is None or bb is None or not geom.bboxoverlap(ba, bb):
        return empty_subd()
    return subd_union(_face_subset(a, _faces_inside(a, bb)),
                      _face_subset(b, _faces_inside(b, ba)))


def subd_difference(a: Optional[SubD], b: Optional[SubD]) -> SubD:
    """Faces of ``a`` whose centroid lies outside the bounding box of
    ``b``.  ``a`` is returned unchanged when the boxes are disjoint."""
    if a is None:
        return empty_subd()
    if b is None:
        return a
    ba, bb = subd_bbox(a), subd_bbox(b)
    if ba is None or bb is None or not geom.bboxoverlap(ba, bb):
        return a
    inside = set(_faces_inside(a, bb))
    return _face_subset(a, [f.id for f in a.faces if f.id not in inside])


_FUSE_CODES = {0: 'union', 1: 'intersection', 2: 'a', 3: 'b', 4: 'difference'}


def fuse(a: Optional[SubD], b: Optional[SubD], mode='union', smoothing: int = 0) -> SubD:
    """Combine two SubDs.

    ``mode`` is ``'union'``, ``'intersection'``, ``'difference'``, or
    ``'a'``/``'b'`` to keep one operand, or the numeric codes 0 to 4 for
    the same list in the order union, intersection, a, b, difference.
    The result is optionally smoothed.
    """
    if geom.isgoodnum(mode):
        mode = _FUSE_CODES.get(int(round(mode)), 'union')
    mode = str(mode).strip().lower()
    if mode not in _FUSE_CODES.values():
        logger.debug("fuse: unknown mode %r, using union", mode)
    if mode == 'intersection':
        result = subd_intersection(a, b)
    elif mode == 'difference':
        result = subd_difference(a, b)
    elif mode == 'a':
        result = a or empty_subd()
    elif mode == 'b':
        result = b or empty_subd()
    else:
        result = subd_union(a, b)
    return smooth_subd(result, smoothing)


# -----------------------------------------------------------------------------
# Generators
# -----------------------------------------------------------------------------

# box faces as corner quads, using the Box.corners ordering
_BOX_QUADS = (
    (0, 1, 3, 2), (4, 6, 7, 5),
    (0, 4, 5, 1), (2, 3, 7, 6),
    (0, 2, 6, 4), (1, 5, 7, 3),
)


def subd_box(box, density: int = 1, crease_boundary: bool = False) -> SubD:
    """Closed box cage with each face split into ``density`` x
    ``density`` quads.

    ``box`` is anything :func:`paramkernel.box.ensure_box_data`
    accepts; a zero-size box is grown to a unit cube.  With
    ``crease_boundary`` the twelve box edges are creased and the eight
    corners tagged as corners.
    """
    from paramkernel.box import Box, ensure_box_data

    b = ensure_box_data(box)
    if b is None:
        return empty_subd()
    if min(b.size) <= EPSILON:
        logger.debug("subd_box: growing flat box %s", b.size)
        lo = tuple(c - 0.5 if s <= EPSILON else c for c, s in zip(b.local_min, b.size))
        hi = tuple(c + 0.5 if s <= EPSILON else c for c, s in zip(b.local_max, b.size))
        b = Box(b.plane, lo, hi)
    n = max(1, int(round(density)))
    lo, hi = b.local_min, b.local_max
    local = [(x, y, z) for x in (lo[0], hi[0]) for y in (lo[1], hi[1]) for z in (lo[2], hi[2])]

    def bilinear(q, s, t):
        a = geom.lerp(local[q[0]], local[q[1]], s)
        c = geom.lerp(local[q[3]], local[q[2]], s)
        return geom.lerp(a, c, t)

    polygons = []
    for q in _BOX_QUADS:
        for j in range(n):
            for i in range(n):
                s0, s1 = i / n, (i + 1) / n
                t0, t1 = j / n, (j + 1) / n
                ring = [bilinear(q, s0, t0), bilinear(q, s1, t0),
                        bilinear(q, s1, t1), bilinear(q, s0, t1)]
                polygons.append([apply_plane(b.plane, p[0], p[1], p[2]) for p in ring])
    tol = min(MERGE_TOLERANCE, 0.25 * min(max(s, EPSILON) for s in b.size) / n)
    sd = subd_from_polygons(polygons, tolerance=tol, metadata={'type': 'box', 'density': n})
    if not crease_boundary:
        return sd

    def extremes(p):
        c = plane_coordinates(p, b.plane)
        out = set()
        for k in range(3):
            if abs(c[k] - lo[k]) <= tol:
                out.add((k, 0))
            elif abs(c[k] - hi[k]) <= tol:
                out.add((k, 1))
        return out

    flags = [extremes(v.point) for v in sd.vertices]
    creased = [e.id for e in sd.edges
               if len(flags[e.vertices[0]] & flags[e.vertices[1]]) >= 2]
    corners = [v.id for v in sd.vertices if len(flags[v.id]) == 3]
    sd = set_edge_tags(sd, creased, EdgeTag.CREASE)
    return set_vertex_tags(sd, corners, VertexTag.CORNER)


def _size_profile(size_points) -> List[Tuple[float, float]]:
    if not size_points:
        return []
    if isinstance(size_points, dict):
        items = size_points.items()
    else:
        items = size_points
    return sorted((float(t), abs(float(r))) for t, r in items)


def _blend(profile: List[Tuple[float, float]], t: float) -> float:
    if t <= profile[0][0]:
        return profile[0][1]
    for (t0, r0), (t1, r1) in zip(profile, profile[1:]):
        if t <= t1:
            if t1 - t0 <= EPSILON:
                return r1
            f = (t - t0) / (t1 - t0)
            return r0 + (r1 - r0) * f
    return profile[-1][1]


def subd_pipe(rail, radii=1.0, size_points=None, radial_segments: int = 8,
              caps: bool = False) -> SubD:
    """Quad pipe cage around a rail polyline.

    ``radii`` is one radius or one per rail point.  ``size_points`` maps
    normalised arc-length parameters (0 at the start, 1 at the end) to
    radii; when given, the radius at each rail point is blended linearly
    between them.  ``caps`` closes the ends of an open rail with one
    polygon each.
    """
    pl = ensure_polyline(rail)
    if pl is None or len(pl) < 2:
        return empty_subd()
    segs = max(3, int(radial_segments))
    frames = curve_frames(pl.points, closed=pl.closed)
    if geom.isgoodnum(radii):
        radii = [radii]
    radii = [abs(r) for r in radii] or [1.0]
    profile = _size_profile(size_points)
    acc = arc_lengths(pl)
    total = acc[-1] if acc and acc[-1] > EPSILON else 1.0

    rings = []
    for i, f in enumerate(frames):
        if profile:
            r = _blend(profile, acc[i] / total)
        else:
            r = radii[min(i, len(radii) - 1)]
        r = max(r, EPSILON)
        rings.append(circle_points(f, r, segs))

    polygons = []
    count = len(rings)
    last = count if pl.closed else count - 1
    for i in range(last):
        r0 = rings[i]
        r1 = rings[(i + 1) % count]
        for k in range(segs):
            k1 = (k + 1) % segs
            polygons.append([r0[k], r0[k1], r1[k1], r1[k]])
    if caps and not pl.closed:
        polygons.append(list(reversed(rings[0])))
        polygons.append(list(rings[-1]))
    return subd_from_polygons(polygons, metadata={'type': 'pipe', 'caps': bool(caps)})


def subd_multipipe(rails: Sequence, radius=1.0, caps: bool = False,
                   radial_segments: int = 8) -> SubD:
    """One pipe per rail, combined with :func:`subd_union`."""
    result = None
    for rail in rails or ():
        pipe = subd_pipe(rail, radius, radial_segments=radial_segments, caps=caps)
        if not pipe.faces:
            continue
        result = pipe if result is None else subd_union(result, pipe)
    return result if result is not None else empty_subd()


# -----------------------------------------------------------------------------
# Conversion and listing
# -----------------------------------------------------------------------------

def subd_to_mesh(subd: SubD) -> Mesh:
    """Display mesh of the control cage; polygons are fan-triangulated."""
    faces = [t for f in subd.faces for t in fan_triangles(f.vertices)]
    return Mesh(tuple(v.point for v in subd.vertices), tuple(faces), {'source': 'subd'})


def subd_from_mesh(mesh: Mesh, tolerance: float = MERGE_TOLERANCE) -> SubD:
    """SubD with one face per mesh face, coincident vertices merged."""
    polygons = [[mesh.vertices[i] for i in f] for f in mesh.faces]
    return subd_from_polygons(polygons, tolerance, metadata={'source': 'mesh'})


def subd_control_polygon(subd: SubD) -> List[Tuple[list, list]]:
    """Edges of the control cage as ``(start, end)`` point pairs."""
    pts = [v.point for v in subd.vertices]
    return [(pts[e.vertices[0]], pts[e.vertices[1]]) for e in subd.edges]


def subd_vertices(subd: SubD) -> List[Tuple[list, str]]:
    """``(point, tag)`` for every vertex."""
    return [(geom.point(v.point), v.tag.value) for v in subd.vertices]


def subd_edges(subd: SubD) -> List[Tuple[int, Tuple[list, list], str, int]]:
    """``(id, (start, end), tag, valence)`` for every edge."""
    pts = [v.point for v in subd.vertices]
    return [(e.id, (pts[e.vertices[0]], pts[e.vertices[1]]), e.tag.value, edge_valence(e))
            for e in subd.edges]


def subd_faces(subd: SubD) -> List[Tuple[int, list, int, tuple]]:
    """``(id, centroid, vertex_count, edge_ids)`` for every face."""
    return [(f.id, f.centroid, len(f.vertices), f.edges) for f in subd.faces]


__all__ = [
    'VertexTag', 'EdgeTag', 'SubD', 'SubDVertex', 'SubDEdge', 'SubDFace',
    'normalize_vertex_tag', 'normalize_edge_tag', 'build_subd', 'empty_subd',
    'subd_from_polygons', 'set_vertex_tags', 'set_edge_tags', 'edge_valence',
    'classify_edges', 'boundary_vertex_ids', 'is_boundary_vertex',
    'vertex_neighbors', 'subd_bbox', 'subd_with_points', 'smooth_subd',
    'subd_union', 'subd_intersection', 'subd_difference', 'fuse', 'subd_box',
    'subd_pipe', 'subd_multipipe', 'subd_to_mesh', 'subd_from_mesh',
    'subd_control_polygon', 'subd_vertices', 'subd_edges', 'subd_faces',
]
