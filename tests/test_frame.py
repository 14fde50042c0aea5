import math

from paramkernel import geom
from paramkernel.frame import (Domain, align_plane, apply_plane, clamp,
                               domain, domain_divide, domain_includes,
                               domain_normalize, domain_parameter,
                               ensure_domain, ensure_plane, flip_plane,
                               normalize_plane_axes, plane_closest,
                               plane_coordinates, plane_from_axes,
                               plane_from_normal, plane_from_origin_x,
                               plane_from_points, plane_matrix, project_along,
                               project_point_to_plane, remap, rotate_plane,
                               world_plane)


def _close3(a, b, tol=1e-9):
    return all(abs(a[i] - b[i]) < tol for i in range(3))


def assert_orthonormal(pl):
    for ax in (pl.xaxis, pl.yaxis, pl.zaxis):
        assert abs(geom.mag(ax) - 1.0) < 1e-9
        assert ax[3] == 0.0
    assert abs(geom.dot(pl.xaxis, pl.yaxis)) < 1e-9
    assert abs(geom.dot(pl.xaxis, pl.zaxis)) < 1e-9
    assert abs(geom.dot(pl.yaxis, pl.zaxis)) < 1e-9
    assert _close3(geom.cross(pl.xaxis, pl.yaxis), pl.zaxis)


class TestPlaneConstruction:
    """Plane constructors always return right-handed orthonormal frames"""

    def test_plane_from_three_points(self):
        pl = plane_from_points((0, 0, 0), (1, 0, 0), (0, 1, 0))
        assert _close3(pl.origin, [0, 0, 0])
        assert _close3(pl.xaxis, [1, 0, 0])
        assert _close3(pl.yaxis, [0, 1, 0])
        assert _close3(pl.zaxis, [0, 0, 1])

    def test_tilted_points(self):
        pl = plane_from_points((1, 1, 1), (3, 1, 2), (0, 4, 1))
        assert_orthonormal(pl)
        assert _close3(pl.origin, [1, 1, 1])
        # all three points lie in the plane
        for p in ((1, 1, 1), (3, 1, 2), (0, 4, 1)):
            assert abs(plane_coordinates(p, pl)[2]) < 1e-9

    def test_collinear_points_fall_back(self):
        pl = plane_from_points((1, 2, 3), (2, 2, 3), (5, 2, 3))
        assert _close3(pl.origin, [1, 2, 3])
        assert _close3(pl.zaxis, [0, 0, 1])
        pl = plane_from_points((0, 0, 0), (0, 0, 0), (0, 0, 0))
        assert_orthonormal(pl)

    def test_normalize_plane_axes(self):
        pl = normalize_plane_axes([0, 0, 0], [2, 0, 0, 0], [1, 1, 0, 0])
        assert_orthonormal(pl)
        assert _close3(pl.yaxis, [0, 1, 0])
        assert normalize_plane_axes([0, 0, 0], [0, 0, 0, 0], [0, 1, 0, 0]) is None
        # y parallel to x is recovered from the supplied z
        pl = normalize_plane_axes([0, 0, 0], [1, 0, 0, 0], [1, 0, 0, 0], [0, 0, 1, 0])
        assert _close3(pl.yaxis, [0, 1, 0])

    def test_plane_from_normal(self):
        pl = plane_from_normal([0, 0, 0], [1, 0, 0, 0])
        assert_orthonormal(pl)
        assert _close3(pl.zaxis, [1, 0, 0])
        pl = plane_from_normal([0, 0, 0], [0, 0, 2, 0], xhint=[1, 1, 5, 0])
        assert_orthonormal(pl)
        s = math.sqrt(0.5)
        assert _close3(pl.xaxis, [s, s, 0])
        pl = plane_from_normal([1, 1, 1], [0, 0, 0, 0])
        assert _close3(pl.zaxis, [0, 0, 1])

    def test_plane_from_axes_and_origin_x(self):
        pl = plane_from_axes([0, 0, 0], [0, 1, 0, 0], [-1, 0.5, 0, 0])
        assert_orthonormal(pl)
        assert _close3(pl.zaxis, [0, 0, 1])
        pl = plane_from_origin_x([0, 0, 0], [0, 0, 5])
        assert_orthonormal(pl)
        assert _close3(pl.xaxis, [0, 0, 1])

    def test_ensure_plane_shapes(self):
        assert ensure_plane(None) == world_plane()
        pl = ensure_plane([1, 2, 3])
        assert _close3(pl.origin, [1, 2, 3])
        assert _close3(pl.zaxis, [0, 0, 1])
        pl = ensure_plane([[0, 0, 0], [0, 1, 0]])
        assert _close3(pl.xaxis, [0, 1, 0])
        pl = ensure_plane([[0, 0, 0], [1, 0, 0], [2, 0, 0], [0, 0, 1]])
        assert_orthonormal(pl)
        assert abs(plane_coordinates([0, 0, 1], pl)[2]) < 1e-9
        assert ensure_plane('nonsense') == world_plane()
        original = plane_from_points((0, 0, 0), (0, 1, 0), (0, 0, 1))
        copy = ensure_plane(original)
        assert copy == original
        assert copy.origin is not original.origin
        assert ensure_plane([original]) == original


class TestPlaneOperations:
    """coordinate mapping and plane manipulation"""

    plane = plane_from_points((1, -1, 2), (2, 0, 2), (1, 0, 3))

    def test_round_trip(self):
        for p in ((0, 0, 0), (3, -2, 7), (-1.5, 4, 0.25)):
            c = plane_coordinates(p, self.plane)
            assert _close3(apply_plane(self.plane, c), p)
        assert _close3(apply_plane(self.plane, 0, 0, 0), self.plane.origin)

    def test_plane_matrix_inverse(self):
        M = plane_matrix(self.plane)
        Mi = plane_matrix(self.plane, inverse=True)
        assert M.mul(Mi).isidentity(1e-9)
        p = geom.point(2, 3, 4)
        c = plane_coordinates(p, self.plane)
        assert _close3(Mi.mul(p), c)

    def test_projection(self):
        wp = world_plane()
        assert _close3(project_point_to_plane([1, 2, 3], wp), [1, 2, 0])
        closest, uv, d = plane_closest(wp, [1, 2, -3])
        assert _close3(closest, [1, 2, 0])
        assert uv == (1, 2)
        assert d == -3
        assert _close3(project_along([0, 0, 2], wp, [1, 0, -1, 0]), [2, 0, 0])
        assert project_along([0, 0, 2], wp, [1, 0, 0, 0]) is None

    def test_flip_rotate_align(self):
        f = flip_plane(self.plane)
        assert_orthonormal(f)
        assert _close3(f.zaxis, geom.neg(self.plane.zaxis))
        r = rotate_plane(world_plane(), math.pi / 2)
        assert _close3(r.xaxis, [0, 1, 0])
        assert _close3(r.yaxis, [-1, 0, 0])
        a = align_plane(world_plane(), [0, 3, 7, 0])
        assert _close3(a.xaxis, [0, 1, 0])
        a = align_plane(world_plane(), [0, 0, 1, 0])
        assert a == world_plane()


class TestDomain:
    """directed intervals"""

    def test_properties(self):
        d = domain(4, 1)
        assert d.span == -3
        assert d.length == 3
        assert d.min == 1 and d.max == 4
        assert d.center == 2.5

    def test_ensure_domain(self):
        fb = domain(0, 1)
        assert ensure_domain((2, 5)) == Domain(2.0, 5.0)
        assert ensure_domain([7]) == Domain(7.0, 7.0)
        assert ensure_domain(3) == Domain(3.0, 3.0)
        assert ensure_domain({'min': -1, 'max': 1}) == Domain(-1.0, 1.0)
        assert ensure_domain({'t0': 0, 't1': 2}) == Domain(0.0, 2.0)
        assert ensure_domain(None, fb) is fb
        assert ensure_domain('x', fb) is fb
        assert ensure_domain((float('nan'), 1), fb) is fb
        assert ensure_domain(float('inf'), fb) is fb

    def test_parameters(self):
        d = domain(10, 20)
        assert domain_parameter(d, 0.25) == 12.5
        assert domain_normalize(d, 15) == 0.5
        assert domain_normalize(domain(3, 3), 5) == 0.0
        assert remap(15, d, domain(0, 2)) == 1.0
        assert remap(15, d, domain(2, 0)) == 1.0
        parts = domain_divide(d, 4)
        assert len(parts) == 4
        assert parts[0] == Domain(10.0, 12.5)
        assert parts[-1].end == 20
        assert domain_includes(d, 10)
        assert not domain_includes(d, 9.9)
        assert domain_includes(d, 9.9, 0.2)
        assert clamp(25, d) == 20
        assert clamp(5, domain(10, 0)) == 5
