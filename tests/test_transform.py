"""Tests for composable affine transforms."""

from math import pi, sqrt

import pytest

from paramkernel import geom
from paramkernel.box import box_from_bbox
from paramkernel.errors import KernelContractError
from paramkernel.frame import plane_from_normal, world_plane
from paramkernel.transform import (Transform, as_transform, axis_rotation,
                                   box_mapping, camera_obscura, compose,
                                   correspondence_transform,
                                   direction_rotation, identity_transform,
                                   invert, is_identity, mirror, orient,
                                   project, project_along, rectangle_mapping,
                                   scale, scale_nonuniform, shear, shear_angle,
                                   split, transform_point, transform_vector,
                                   translation, triangle_mapping)
from paramkernel.xform import Matrix, Scale, Translation


def _close3(a, b, tol=1e-9):
    return all(abs(a[i] - b[i]) < tol for i in range(3))


class TestBuilders:
    """Test the individual transform builders."""

    def test_translation(self):
        t = translation((1, 2, 3))
        assert _close3(transform_point(t, (1, 1, 1)), [2, 3, 4])
        assert len(t) == 1
        assert isinstance(t, Transform)

    def test_axis_rotation(self):
        t = axis_rotation((1, 0, 0), (0, 0, 1), pi / 2)
        assert _close3(transform_point(t, (2, 0, 0)), [1, 1, 0])
        assert _close3(transform_point(t, (1, 0, 7)), [1, 0, 7])
        assert is_identity(axis_rotation((0, 0, 0), (0, 0, 0), 1.0))

    def test_direction_rotation(self):
        t = direction_rotation((0, 0, 0), (1, 0, 0), (0, 1, 0))
        assert _close3(transform_point(t, (2, 0, 0)), [0, 2, 0])
        flip = direction_rotation((0, 0, 0), (1, 0, 0), (-3, 0, 0))
        assert _close3(transform_point(flip, (2, 0, 0)), [-2, 0, 0])
        assert is_identity(direction_rotation((0, 0, 0), (0, 0, 0), (1, 0, 0)))

    def test_mirror(self):
        assert _close3(transform_point(mirror(world_plane()), (1, 2, 3)), [1, 2, -3])
        assert _close3(transform_point(mirror((0, 0, 1)), (1, 2, 3)), [1, 2, -1])
        pl = plane_from_normal((1, 1, 1), (1, 1, 0))
        m = mirror(pl)
        assert is_identity(compose(m, m), 1e-9)

    def test_orient(self):
        target = plane_from_normal((0, 0, 0), (1, 0, 0))
        t = orient(world_plane(), target)
        assert _close3(transform_point(t, (0, 0, 1)), [1, 0, 0])
        assert _close3(transform_point(t, (1, 0, 0)), target.xaxis)

    def test_scale(self):
        assert _close3(transform_point(scale((1, 1, 1), 2), (2, 2, 2)), [3, 3, 3])
        t = scale_nonuniform(world_plane(), 1, 2, 3)
        assert _close3(transform_point(t, (1, 1, 1)), [1, 2, 3])

    def test_shear(self):
        t = shear(world_plane(), (0, 0, 2), (1, 0, 2))
        assert _close3(transform_point(t, (0, 0, 2)), [1, 0, 2])
        assert _close3(transform_point(t, (0, 0, 4)), [2, 0, 4])
        assert _close3(transform_point(t, (5, 5, 0)), [5, 5, 0])

    def test_shear_low_grip(self):
        # grip heights below one are normalised by one
        t = shear(world_plane(), (0, 0, 0.5), (1, 0, 0.5))
        assert _close3(transform_point(t, (0, 0, 1)), [1, 0, 1])
        assert _close3(transform_point(t, (0, 0, 0.5)), [0.5, 0, 0.5])

    def test_shear_angle(self):
        t = shear_angle(world_plane(), pi / 4, 0.0)
        assert _close3(transform_point(t, (0, 0, 1)), [1, 0, 1])
        assert _close3(transform_point(t, (3, 2, 0)), [3, 2, 0])

    def test_camera_obscura(self):
        t = camera_obscura((0, 0, 0))
        assert _close3(transform_point(t, (1, 2, 3)), [-1, -2, -3])
        t = camera_obscura((1, 1, 1), -2.0)
        assert _close3(transform_point(t, (2, 1, 1)), [-1, 1, 1])


class TestMappings:
    """Test point-correspondence maps."""

    tetra = [(0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1)]

    def test_correspondence(self):
        target = [(1, 1, 1), (3, 1, 1), (1, 3, 1), (1, 1, 3)]
        t = correspondence_transform(self.tetra, target)
        assert _close3(transform_point(t, (0.5, 0.5, 0.5)), [2, 2, 2])
        for s, d in zip(self.tetra, target):
            assert _close3(transform_point(t, s), d)

    def test_singular_correspondence(self):
        flat = [(0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0)]
        assert is_identity(correspondence_transform(flat, self.tetra))
        assert is_identity(correspondence_transform(flat[:3], self.tetra))

    def test_triangle(self):
        t = triangle_mapping([(0, 0, 0), (1, 0, 0), (0, 1, 0)],
                             [(0, 0, 0), (2, 0, 0), (0, 2, 0)])
        assert _close3(transform_point(t, (0.5, 0.5, 0)), [1, 1, 0])
        assert _close3(transform_point(t, (0, 0, 1)), [0, 0, 2])

    def test_rectangle(self):
        src = [(0, 0, 0), (2, 0, 0), (2, 1, 0), (0, 1, 0)]
        dst = [(10, 0, 0), (10, 2, 0), (9, 2, 0), (9, 0, 0)]
        t = rectangle_mapping(src, dst)
        assert _close3(transform_point(t, (1, 0.5, 0)), [9.5, 1, 0])
        assert _close3(transform_point(t, (0, 0, 1)), [10, 0, 1])

    def test_box(self):
        t = box_mapping(box_from_bbox((0, 0, 0), (1, 1, 1)),
                        box_from_bbox((0, 0, 0), (2, 4, 6)))
        assert _close3(transform_point(t, (0.5, 0.5, 0.5)), [1, 2, 3])
        assert is_identity(box_mapping(None, box_from_bbox((0, 0, 0), (1, 1, 1))))


class TestProjection:
    """Test projections onto planes."""

    def test_project(self):
        assert _close3(transform_point(project(world_plane()), (1, 2, 3)), [1, 2, 0])
        assert _close3(transform_point(project(world_plane((0, 0, 5))), (1, 2, 3)),
                       [1, 2, 5])

    def test_project_along(self):
        t = project_along(world_plane(), (1, 0, 1))
        assert _close3(transform_point(t, (0, 0, 2)), [-2, 0, 0])
        t = project_along(world_plane((0, 0, 1)), (0, 0, 1))
        assert _close3(transform_point(t, (3, 4, 7)), [3, 4, 1])

    def test_parallel_direction(self):
        t = project_along(world_plane(), (1, 0, 0))
        assert _close3(transform_point(t, (1, 2, 3)), [1, 2, 0])


class TestComposition:
    """Test composition, inversion and splitting."""

    def test_compose_order(self):
        move = translation((1, 0, 0))
        turn = axis_rotation((0, 0, 0), (0, 0, 1), pi / 2)
        t = compose(move, turn)
        assert _close3(transform_point(t, (1, 0, 0)), [0, 2, 0])
        t = compose(turn, move)
        assert _close3(transform_point(t, (1, 0, 0)), [1, 1, 0])
        assert len(t) == 2

    def test_compose_matrices(self):
        t = compose(Translation([1, 2, 3, 0]), translation((1, 1, 1)))
        assert _close3(transform_point(t, (0, 0, 0)), [2, 3, 4])
        assert is_identity(compose())

    def test_contract_errors(self):
        with pytest.raises(KernelContractError):
            compose(translation((1, 0, 0)), 'not a transform')
        with pytest.raises(KernelContractError):
            as_transform([[1, 0, 0, 0]] * 4)
        with pytest.raises(ValueError):
            invert(None)

    def test_invert_round_trip(self):
        t = compose(translation((1, 2, 3)),
                    scale((0, 0, 0), 1e-8),
                    axis_rotation((0, 0, 0), (1, 1, 0), 0.7))
        inv = invert(t)
        assert len(inv) == 3
        for p in ((0, 0, 0), (1, 2, 3), (-5, 4, 10)):
            q = transform_point(inv, transform_point(t, p))
            assert _close3(q, p, 1e-6)
        assert is_identity(compose(t, inv), 1e-6)

    def test_singular_fragment(self):
        t = compose(translation((1, 2, 3)), project(world_plane()))
        inv = invert(t)
        assert len(inv) == 2
        assert _close3(transform_point(inv, (0, 0, 0)), [-1, -2, -3])

    def test_invert_bare_matrix(self):
        inv = invert(Scale(2.0))
        assert _close3(transform_point(inv, (2, 4, 6)), [1, 2, 3])
        inv = invert(Transform(Translation([1, 0, 0, 0])))
        assert _close3(transform_point(inv, (0, 0, 0)), [-1, 0, 0])

    def test_split(self):
        move = translation((1, 0, 0))
        turn = axis_rotation((0, 0, 0), (0, 0, 1), pi / 2)
        parts = split(compose(move, turn))
        assert len(parts) == 2
        assert all(len(p) == 1 for p in parts)
        assert parts[0].matrix == move.matrix
        assert len(split(Transform(Scale(2.0)))) == 1

    def test_transform_vector(self):
        v = transform_vector(translation((5, 5, 5)), (1, 0, 0))
        assert v == [1.0, 0.0, 0.0, 0.0]
        v = transform_vector(axis_rotation((3, 3, 3), (0, 0, 1), pi / 2), (1, 0, 0))
        assert _close3(v, [0, 1, 0])
        v = transform_vector(scale((1, 1, 1), 2), (0, 0, 1))
        assert abs(geom.mag(v) - 2.0) < 1e-12

    def test_identity(self):
        assert is_identity(identity_transform())
        assert not is_identity(translation((1, 0, 0)))
        assert is_identity(compose(translation((1, 0, 0)), translation((-1, 0, 0))))
        assert isinstance(identity_transform().matrix, Matrix)
        assert abs(sqrt(2) - geom.mag(transform_vector(
            axis_rotation((0, 0, 0), (0, 0, 1), pi / 4), (1, 1, 0)))) < 1e-12
