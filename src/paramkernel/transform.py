"""Composable affine transforms.

A :class:`Transform` is a 4x4 :class:`~paramkernel.xform.Matrix` plus
the ordered list of *fragments* it was built from.  Composition keeps
the fragments so that :func:`invert` can undo them one at a time, in
reverse order, instead of inverting the combined matrix.  That keeps
composites that contain near-singular steps (very small scales, for
example) invertible to working precision.

Every builder returns a Transform whose only fragment is its own
matrix.  Degenerate input (zero axes, parallel projection directions,
singular correspondences) produces the identity or a documented
fallback and is logged at debug level.

Copyright (c) 2025 paramKernel contributors
MIT License
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from paramkernel import geom
from paramkernel.errors import KernelContractError
from paramkernel.frame import Plane, ensure_plane, plane_coordinates, plane_matrix
from paramkernel.settings import EPSILON
from paramkernel.xform import (
    Matrix,
    Reflection,
    Rotation,
    Scale,
    Translation,
    identity,
    quat_from_unit_vectors,
    quat_matrix,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transform:
    """Combined ``matrix`` and its ``fragments`` in application order."""

    matrix: Matrix
    fragments: Tuple[Matrix, ...] = ()

    def __len__(self) -> int:
        return len(self.fragments)


def _single(m: Matrix) -> Transform:
    return Transform(m, (m,))


def _about(center, m: Matrix) -> Matrix:
    """``m`` conjugated so it acts about ``center`` instead of the origin."""
    c = geom.point(center)
    return Translation(c).mul(m).mul(Translation(c, inverse=True))


def _in_plane(plane: Plane, local: Matrix) -> Matrix:
    """``local`` expressed in plane coordinates, mapped back to world."""
    return plane_matrix(plane).mul(local).mul(plane_matrix(plane, inverse=True))


# -----------------------------------------------------------------------------
# Builders
# -----------------------------------------------------------------------------

def identity_transform() -> Transform:
    return _single(identity())


def translation(delta) -> Transform:
    return _single(Translation(geom.vector(delta)))


def axis_rotation(origin, axis, angle: float) -> Transform:
    """Rotation by ``angle`` radians about the line through ``origin``
    along ``axis`` (right-handed).  A zero axis gives the identity."""
    if geom.mag(axis) <= EPSILON:
        logger.debug("axis_rotation: zero axis, using identity")
        return identity_transform()
    return _single(_about(origin, Rotation(geom.vector(axis), angle)))


def direction_rotation(center, from_dir, to_dir) -> Transform:
    """Shortest-arc rotation about ``center`` taking ``from_dir`` onto
    ``to_dir``."""
    a = geom.unit(from_dir)
    b = geom.unit(to_dir)
    if a is None or b is None:
        logger.debug("direction_rotation: zero direction, using identity")
        return identity_transform()
    return _single(_about(center, quat_matrix(quat_from_unit_vectors(a, b))))


def mirror(plane) -> Transform:
    """Reflection across ``plane``."""
    p = ensure_plane(plane)
    return _single(Reflection(p.zaxis, p.origin))


def orient(source, target) -> Transform:
    """Map the frame ``source`` onto the frame ``target``."""
    s = ensure_plane(source)
    t = ensure_plane(target)
    return _single(plane_matrix(t).mul(plane_matrix(s, inverse=True)))


def scale(center, factor: float) -> Transform:
    """Uniform scale by ``factor`` about ``center``."""
    return _single(_about(center, Scale(factor, factor, factor)))


def scale_nonuniform(plane, sx: float, sy: float, sz: float) -> Transform:
    """Scale by ``sx``, ``sy`` and ``sz`` along the axes of ``plane``,
    about its origin."""
    return _single(_in_plane(ensure_plane(plane), Scale(sx, sy, sz)))


def _shear_local(kx: float, ky: float) -> Matrix:
    return Matrix([[1, 0, kx, 0],
                   [0, 1, ky, 0],
                   [0, 0, 1, 0],
                   [0, 0, 0, 1]])


def shear(plane, grip, target) -> Transform:
    """Shear parallel to ``plane`` that moves ``grip`` onto the in-plane
    position of ``target``.

    The offset grows linearly with height above the plane and is
    normalised by the grip height (at least 1), so points at the grip's
    height move by the full grip-to-target offset.
    """
    p = ensure_plane(plane)
    gu, gv, gw = plane_coordinates(grip, p)
    tu, tv, _ = plane_coordinates(target, p)
    h = max(abs(gw), 1.0)
    if gw < 0:
        h = -h
    return _single(_in_plane(p, _shear_local((tu - gu) / h, (tv - gv) / h)))


def shear_angle(plane, angle_x: float, angle_y: float) -> Transform:
    """Shear by angles (radians) measured from the plane normal."""
    p = ensure_plane(plane)
    return _single(_in_plane(p, _shear_local(math.tan(angle_x), math.tan(angle_y))))


def _columns(points: Sequence) -> Matrix:
    pts = [geom.point(p) for p in points]
    return Matrix([[pts[j][i] for j in range(4)] for i in range(4)])


def correspondence_transform(source: Sequence, target: Sequence) -> Transform:
    """Affine map taking the four ``source`` points onto the four
    ``target`` points.

    Solved as ``T * S^-1`` where ``S`` and ``T`` hold the homogeneous
    points as columns.  Coplanar (singular) source points give the
    identity.
    """
    if len(source) < 4 or len(target) < 4:
        logger.debug("correspondence_transform: need four point pairs")
        return identity_transform()
    inv = _columns(source[:4]).inverse()
    if inv is None:
        logger.debug("correspondence_transform: singular source points")
        return identity_transform()
    return _single(_columns(target[:4]).mul(inv))


def _lifted(a, b, c) -> list:
    """Fourth point off the plane of ``a, b, c``.  Its distance from
    ``a`` scales with the square root of the spanned area, so mapping
    between triangles of different size scales the normal direction by
    the same factor as the in-plane directions on average."""
    n = geom.cross(geom.sub(b, a), geom.sub(c, a))
    m = geom.mag(n)
    if m <= EPSILON:
        return geom.point(a)
    return geom.point(geom.combine(geom.point(a), (n, 1.0 / math.sqrt(m))))


def triangle_mapping(source: Sequence, target: Sequence) -> Transform:
    """Affine map taking triangle ``source`` onto triangle ``target``."""
    if len(source) < 3 or len(target) < 3:
        return identity_transform()
    s = [geom.point(p) for p in source[:3]]
    t = [geom.point(p) for p in target[:3]]
    return correspondence_transform(s + [_lifted(*s)], t + [_lifted(*t)])


def rectangle_mapping(source: Sequence, target: Sequence) -> Transform:
    """Affine map between rectangles given as corner lists ``a, b, c, d``
    (``a->b`` the first side, ``a->d`` the second)."""
    if len(source) < 4 or len(target) < 4:
        return triangle_mapping(source, target)
    s = [geom.point(source[i]) for i in (0, 1, 3)]
    t = [geom.point(target[i]) for i in (0, 1, 3)]
    return correspondence_transform(s + [_lifted(*s)], t + [_lifted(*t)])


def box_mapping(source, target) -> Transform:
    """Affine map taking box ``source`` onto box ``target``.  Both are
    anything :func:`paramkernel.box.ensure_box_data` accepts."""
    from paramkernel.box import ensure_box_data

    a = ensure_box_data(source)
    b = ensure_box_data(target)
    if a is None or b is None:
        logger.debug("box_mapping: unusable box input")
        return identity_transform()
    ca, cb = a.corners, b.corners
    # origin corner and its x, y and z neighbours
    idx = (0, 4, 2, 1)
    return correspondence_transform([ca[i] for i in idx], [cb[i] for i in idx])


def project(plane) -> Transform:
    """Orthogonal projection onto ``plane``."""
    return _single(_in_plane(ensure_plane(plane), Scale(1.0, 1.0, 0.0)))


def project_along(plane, direction) -> Transform:
    """Projection onto ``plane`` along ``direction``.  A direction
    parallel to the plane falls back to :func:`project`."""
    p = ensure_plane(plane)
    n = p.zaxis
    d = geom.vector(direction)
    dn = geom.dot(d, n)
    if abs(dn) <= EPSILON:
        logger.debug("project_along: direction %s parallel to plane", geom.vstr(d))
        return project(p)
    k = geom.dot(n, p.origin) / dn
    rows = []
    for i in range(3):
        rows.append([(1.0 if i == j else 0.0) - d[i]*n[j]/dn for j in range(3)] + [d[i]*k])
    rows.append([0, 0, 0, 1])
    return _single(Matrix(rows))


def camera_obscura(focus, factor: float = -1.0) -> Transform:
    """Point inversion through ``focus``, scaled by ``factor``."""
    return scale(focus, factor)


# -----------------------------------------------------------------------------
# Composition
# -----------------------------------------------------------------------------

def as_transform(value) -> Transform:
    if isinstance(value, Transform):
        return value
    if isinstance(value, Matrix):
        return _single(value)
    raise KernelContractError('expected a Transform or Matrix, got {!r}'.format(value))


def compose(*transforms) -> Transform:
    """Chain transforms; the first argument is applied first.

    Raises
    ------
    KernelContractError
        if an argument is not a :class:`Transform` or ``Matrix``
    """
    m = identity()
    fragments = []
    for t in transforms:
        t = as_transform(t)
        m = t.matrix.mul(m)
        fragments.extend(t.fragments or (t.matrix,))
    return Transform(m, tuple(fragments))


def _inverse_or_identity(m: Matrix) -> Matrix:
    inv = m.inverse()
    if inv is None:
        logger.debug("invert: singular matrix, using identity")
        return identity()
    return inv


def invert(t) -> Transform:
    """Inverse of ``t``, undoing its fragments one at a time in reverse
    order.  Singular fragments invert to the identity."""
    t = as_transform(t)
    if not t.fragments:
        return _single(_inverse_or_identity(t.matrix))
    return compose(*[_single(_inverse_or_identity(f)) for f in reversed(t.fragments)])


def split(t) -> Tuple[Transform, ...]:
    """The fragments of ``t`` as separate transforms."""
    t = as_transform(t)
    if not t.fragments:
        return (_single(t.matrix),)
    return tuple(_single(f) for f in t.fragments)


def transform_point(t, p) -> list:
    m = as_transform(t).matrix
    return geom.point(m.mul(geom.point(p)))


def transform_vector(t, v) -> list:
    """Map a direction with the linear part of ``t`` only."""
    m = as_transform(t).matrix
    return geom.vector(m.linear_part().mul(geom.vector(v)))


def is_identity(t, tol: float = EPSILON) -> bool:
    return as_transform(t).matrix.isidentity(tol)


__all__ = [
    'Transform', 'identity_transform', 'translation', 'axis_rotation',
    'direction_rotation', 'mirror', 'orient', 'scale', 'scale_nonuniform',
    'shear', 'shear_angle', 'correspondence_transform', 'triangle_mapping',
    'rectangle_mapping', 'box_mapping', 'project', 'project_along',
    'camera_obscura', 'compose', 'invert', 'split', 'transform_point',
    'transform_vector', 'is_identity', 'as_transform',
]
