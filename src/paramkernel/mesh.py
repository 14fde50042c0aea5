"""Indexed polygon meshes and triangle helpers.

Meshes are the display form of every other value in the kernel:
surfaces triangulate into them, SubDs convert to them, and boxes carry
one as their optional ``geometry``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np

from paramkernel.geom import cross, epsilon, mag, point

Vec3 = Tuple[float, float, float]
TriTuple = Tuple[Vec3, Vec3, Vec3, Vec3]


@dataclass(frozen=True)
class Triangle:
    """Immutable triangle representation in XYZ space."""

    normal: Vec3
    v0: Vec3
    v1: Vec3
    v2: Vec3


@dataclass(frozen=True)
class Mesh:
    """Indexed mesh.  ``vertices`` are homogeneous points and ``faces``
    are tuples of vertex indices (triangles or larger polygons)."""

    vertices: tuple
    faces: tuple
    metadata: dict = field(default_factory=dict, compare=False)


def mesh(vertices: Sequence, faces: Iterable[Sequence[int]], metadata=None) -> Mesh:
    """Build a :class:`Mesh`, copying the vertices and dropping faces
    with fewer than three indices or indices out of range."""
    verts = tuple(point(v) for v in vertices)
    n = len(verts)
    kept = []
    for f in faces:
        f = tuple(int(i) for i in f)
        if len(f) >= 3 and all(0 <= i < n for i in f):
            kept.append(f)
    return Mesh(verts, tuple(kept), dict(metadata or {}))


def to_vec3(point_like: Sequence[float]) -> Vec3:
    """Return the XYZ components of a point/vector as a tuple."""

    if len(point_like) < 3:
        raise ValueError("value must have at least three components")
    return float(point_like[0]), float(point_like[1]), float(point_like[2])


def triangle_normal(v0: Vec3, v1: Vec3, v2: Vec3) -> Vec3 | None:
    """Return the unit normal of a triangle or ``None`` if degenerate."""

    ax, ay, az = v1[0] - v0[0], v1[1] - v0[1], v1[2] - v0[2]
    bx, by, bz = v2[0] - v0[0], v2[1] - v0[1], v2[2] - v0[2]
    n = cross([ax, ay, az, 0.0], [bx, by, bz, 0.0])
    length = mag(n)
    if length <= epsilon:
        return None
    return (n[0] / length, n[1] / length, n[2] / length)


def triangle_area(v0: Vec3, v1: Vec3, v2: Vec3) -> float:
    """Return the area of a triangle."""

    ax, ay, az = v1[0] - v0[0], v1[1] - v0[1], v1[2] - v0[2]
    bx, by, bz = v2[0] - v0[0], v2[1] - v0[1], v2[2] - v0[2]
    n = cross([ax, ay, az, 0.0], [bx, by, bz, 0.0])
    return 0.5 * mag(n)


def triangle_centroid(v0: Vec3, v1: Vec3, v2: Vec3) -> Vec3:
    """Return the centroid of a triangle."""

    return (
        (v0[0] + v1[0] + v2[0]) / 3.0,
        (v0[1] + v1[1] + v2[1]) / 3.0,
        (v0[2] + v1[2] + v2[2]) / 3.0,
    )


def fan_triangles(face: Sequence[int]) -> Iterator[Tuple[int, int, int]]:
    """Fan-triangulate a polygon given as vertex indices."""
    for i in range(1, len(face) - 1):
        yield face[0], face[i], face[i + 1]


def mesh_view(m: Mesh) -> Iterator[TriTuple]:
    """Yield triangles of ``m`` as ``(normal, v0, v1, v2)``.

    Polygons are fan-triangulated.  Normals are unit vectors and
    vertices are ``(x, y, z)`` tuples.  Degenerate (zero area) triangles
    are skipped silently.
    """
    verts = m.vertices
    for face in m.faces:
        for i0, i1, i2 in fan_triangles(face):
            v0 = to_vec3(verts[i0])
            v1 = to_vec3(verts[i1])
            v2 = to_vec3(verts[i2])
            n = triangle_normal(v0, v1, v2)
            if n is None:
                continue
            yield n, v0, v1, v2


def triangles_from_mesh(m: Mesh) -> Iterable[Triangle]:
    """Convert ``mesh_view`` output into ``Triangle`` instances."""

    for normal, v0, v1, v2 in mesh_view(m):
        yield Triangle(normal=normal, v0=v0, v1=v1, v2=v2)


def mesh_area(m: Mesh) -> float:
    return sum(triangle_area(v0, v1, v2) for _, v0, v1, v2 in mesh_view(m))


def triangulate_mesh(m: Mesh) -> Mesh:
    """Copy of ``m`` with every polygon fan-triangulated."""
    faces = [t for f in m.faces for t in fan_triangles(f)]
    return Mesh(m.vertices, tuple(faces), dict(m.metadata))


def mesh_arrays(m: Mesh) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(vertices, triangles)`` as numpy arrays of shape
    ``(n, 3)`` float64 and ``(k, 3)`` int64, ready for a renderer."""
    verts = np.array([to_vec3(v) for v in m.vertices], dtype=np.float64).reshape(-1, 3)
    tris = np.array([t for f in m.faces for t in fan_triangles(f)],
                    dtype=np.int64).reshape(-1, 3)
    return verts, tris


__all__ = [
    "Mesh",
    "Triangle",
    "Vec3",
    "mesh",
    "to_vec3",
    "triangle_normal",
    "triangle_area",
    "triangle_centroid",
    "fan_triangles",
    "mesh_view",
    "triangles_from_mesh",
    "mesh_area",
    "triangulate_mesh",
    "mesh_arrays",
]
