"""Tests for the geometry walker: classification, mapping and groups."""

from math import pi

import pytest

from paramkernel import geom
from paramkernel.box import Sphere, box_from_bbox
from paramkernel.curve import Polyline, polyline
from paramkernel.errors import KernelContractError
from paramkernel.frame import world_plane
from paramkernel.mesh import mesh
from paramkernel.morph import twisted_box_from_box
from paramkernel.subd import subd_box
from paramkernel.surface import evaluate_surface, plane_surface
from paramkernel.transform import (axis_rotation, identity_transform, scale,
                                   translation)
from paramkernel.walker import (GeometryKind, Group, apply_transform,
                                classify, collect_points, geometry_bbox,
                                geometry_centroid, group, map_geometry,
                                map_points, merge_groups, split_group,
                                ungroup)
from paramkernel.xform import Matrix


def _close3(a, b, tol=1e-9):
    return all(abs(a[i] - b[i]) < tol for i in range(3))


MOVE = translation((1, 2, 3))
UNIT_BOX = box_from_bbox((0, 0, 0), (1, 1, 1))


class TestClassify:
    """Test kind detection."""

    def test_points(self):
        assert classify([1, 2, 3]) is GeometryKind.POINT
        assert classify((1.0, 2.0, 3.0, 1.0)) is GeometryKind.POINT
        assert classify([1, 0, 0, 0]) is GeometryKind.POINT
        assert classify([True, 1, 2]) is GeometryKind.SEQUENCE
        assert classify([1, 2]) is GeometryKind.SEQUENCE

    def test_geometry(self):
        assert classify(world_plane()) is GeometryKind.PLANE
        assert classify(polyline([(0, 0, 0), (1, 0, 0)])) is GeometryKind.POLYLINE
        assert classify(plane_surface(None, (0, 1), (0, 1))) is GeometryKind.SURFACE
        assert classify(UNIT_BOX) is GeometryKind.BOX
        assert classify(Sphere(geom.point(0, 0, 0), 1.0)) is GeometryKind.SPHERE
        assert classify(mesh([(0, 0, 0), (1, 0, 0), (0, 1, 0)], [(0, 1, 2)])) \
            is GeometryKind.MESH
        assert classify(subd_box(UNIT_BOX)) is GeometryKind.SUBD
        assert classify(twisted_box_from_box(UNIT_BOX)) is GeometryKind.TWISTED_BOX

    def test_containers_and_scalars(self):
        assert classify(Group((1, 2))) is GeometryKind.GROUP
        assert classify([[1, 2, 3]]) is GeometryKind.SEQUENCE
        assert classify({'a': 1}) is GeometryKind.RECORD
        assert classify(identity_transform()) is GeometryKind.TRANSFORM
        assert classify(Matrix()) is GeometryKind.TRANSFORM
        assert classify(5) is GeometryKind.SCALAR
        assert classify('text') is GeometryKind.SCALAR
        assert classify(None) is GeometryKind.SCALAR


class TestApplyTransform:
    """Test moving every kind of value."""

    def test_point_and_vector(self):
        assert apply_transform((0, 0, 0), MOVE) == [1.0, 2.0, 3.0, 1.0]
        assert apply_transform([1, 0, 0, 0], MOVE) == [1.0, 0.0, 0.0, 0.0]

    def test_plane(self):
        pl = apply_transform(world_plane(), MOVE)
        assert _close3(pl.origin, [1, 2, 3])
        assert _close3(pl.zaxis, [0, 0, 1])
        turned = apply_transform(world_plane(), axis_rotation((0, 0, 0), (0, 0, 1), pi / 2))
        assert _close3(turned.xaxis, [0, 1, 0])
        assert _close3(turned.zaxis, [0, 0, 1])

    def test_polyline(self):
        pl = apply_transform(polyline([(0, 0, 0), (1, 0, 0), (1, 1, 0)], closed=True), MOVE)
        assert isinstance(pl, Polyline)
        assert pl.closed
        assert _close3(pl.points[2], [2, 3, 3])

    def test_surface(self):
        s = apply_transform(plane_surface(None, (0, 1), (0, 1)), MOVE)
        assert _close3(evaluate_surface(s, 0.5, 0.5), [1.5, 2.5, 3])
        assert _close3(s.plane.origin, [1, 2, 3])

    def test_box_and_sphere(self):
        b = apply_transform(UNIT_BOX, MOVE)
        assert _close3(b.bbox[0], [1, 2, 3])
        assert _close3(b.bbox[1], [2, 3, 4])
        sp = apply_transform(Sphere(geom.point(0, 0, 0), 2.0), scale((0, 0, 0), 2.0))
        assert abs(sp.radius - 4.0) < 1e-9
        sp = apply_transform(Sphere(geom.point(0, 0, 0), 2.0), MOVE)
        assert _close3(sp.center, [1, 2, 3])
        assert abs(sp.radius - 2.0) < 1e-9

    def test_mesh_subd_twisted_box(self):
        m = mesh([(0, 0, 0), (1, 0, 0), (0, 1, 0)], [(0, 1, 2)])
        moved = apply_transform(m, MOVE)
        assert moved.faces == m.faces
        assert _close3(moved.vertices[1], [2, 2, 3])
        sd = apply_transform(subd_box(UNIT_BOX), MOVE)
        assert _close3(geom.centroid([v.point for v in sd.vertices]), [1.5, 2.5, 3.5])
        tb = apply_transform(twisted_box_from_box(UNIT_BOX), MOVE)
        assert _close3(tb.corners[0], [1, 2, 3])

    def test_containers(self):
        g = apply_transform(Group(((0, 0, 0), 'label'), {'k': 1}), MOVE)
        assert isinstance(g, Group)
        assert g.items[1] == 'label'
        assert g.metadata == {'k': 1}
        t = apply_transform(((0, 0, 0), (1, 1, 1)), MOVE)
        assert isinstance(t, tuple)
        assert _close3(t[1], [2, 3, 4])

    def test_record(self):
        rec = {'point': (1, 0, 0), 'normal': (1, 0, 0), 'id': (5, 5, 5),
               'name': 'marker', 'width': 3.0}
        out = apply_transform(rec, axis_rotation((0, 0, 0), (0, 0, 1), pi / 2))
        assert _close3(out['point'], [0, 1, 0])
        assert _close3(out['normal'], [0, 1, 0])
        assert out['normal'][3] == 0.0
        assert out['id'] == (5, 5, 5)
        assert out['name'] == 'marker'
        assert out['width'] == 3.0
        moved = apply_transform(rec, MOVE)
        assert _close3(moved['normal'], [1, 0, 0])

    def test_record_numbers_are_not_points(self):
        rec = {'weights': [0.2, 0.3, 0.5], 'radii': (1.0, 2.0, 3.0),
               'start': (0, 0, 0), 'anchor': [1, 1, 1, 1]}
        out = apply_transform(rec, translation((10, 0, 0)))
        assert out['weights'] == [0.2, 0.3, 0.5]
        assert out['radii'] == (1.0, 2.0, 3.0)
        assert _close3(out['start'], [10, 0, 0])
        assert _close3(out['anchor'], [11, 1, 1])
        assert len(collect_points(rec)) == 2

    def test_passthrough(self):
        t = translation((5, 5, 5))
        assert apply_transform(t, MOVE) is t
        assert apply_transform('abc', MOVE) == 'abc'
        assert apply_transform(None, MOVE) is None
        with pytest.raises(KernelContractError):
            apply_transform((0, 0, 0), 'not a transform')


class TestSharing:
    """Test memoisation of shared and cyclic values."""

    def test_shared_sublist(self):
        shared = [(0, 0, 0), (1, 0, 0)]
        out = apply_transform([shared, shared], MOVE)
        assert out[0] is out[1]
        assert _close3(out[0][1], [2, 2, 3])

    def test_cyclic_list(self):
        a = [(1, 0, 0)]
        a.append(a)
        out = apply_transform(a, MOVE)
        assert out[1] is out
        assert _close3(out[0], [2, 2, 3])

    def test_cyclic_record(self):
        d = {'point': (0, 0, 0)}
        d['self'] = d
        out = apply_transform(d, MOVE)
        assert out['self'] is out
        assert _close3(out['point'], [1, 2, 3])

    def test_calls_once_per_shared_value(self):
        calls = []

        def fn(p):
            calls.append(p)
            return p

        shared = polyline([(0, 0, 0), (1, 0, 0)])
        map_geometry([shared, shared, shared], fn, lambda v, a: v)
        assert len(calls) == 2


class TestMapPoints:
    """Test point-function mapping."""

    @staticmethod
    def stretch_x(p):
        return [2 * p[0], p[1], p[2]]

    def test_points(self):
        out = map_points([(1, 1, 1), (2, 0, 0)], self.stretch_x)
        assert out[0] == [2.0, 1.0, 1.0, 1.0]
        assert _close3(out[1], [4, 0, 0])

    def test_anchored_direction(self):
        out = map_points({'point': (1, 1, 1), 'normal': (1, 0, 0)}, self.stretch_x)
        assert _close3(out['normal'], [2, 0, 0])
        assert out['normal'][3] == 0.0

    def test_unanchored_vector(self):
        out = map_points([1, 0, 0, 0], lambda p: [p[0] + 5, p[1], p[2]])
        assert _close3(out, [1, 0, 0])
        assert out[3] == 0.0

    def test_plane_axes(self):
        pl = map_points(world_plane(), lambda p: [p[1], -p[0], p[2]])
        assert _close3(pl.xaxis, [0, -1, 0])

    def test_not_callable(self):
        with pytest.raises(KernelContractError):
            map_points((0, 0, 0), None)
        with pytest.raises(KernelContractError):
            map_geometry((0, 0, 0), lambda p: p, 'vector')
        with pytest.raises(ValueError):
            map_geometry((0, 0, 0), 3, lambda v, a: v)


class TestCollection:
    """Test point collection and bounds."""

    def test_limit(self):
        pl = polyline([(i, 0, 0) for i in range(10)])
        assert len(collect_points(pl)) == 10
        assert len(collect_points(pl, limit=4)) == 4

    def test_nested(self):
        assert len(collect_points([UNIT_BOX, [(1, 1, 1)]])) == 9
        pl = polyline([(0, 0, 0), (1, 0, 0)])
        assert len(collect_points([pl, pl, Group((pl,))])) == 2
        rec = {'point': (1, 2, 3), 'normal': (0, 0, 1), 'id': (9, 9, 9)}
        assert collect_points(rec) == [[1, 2, 3, 1.0]]
        assert collect_points([1, 0, 0, 0]) == []
        assert collect_points(MOVE) == []

    def test_order(self):
        pts = collect_points([(0, 0, 0), ((1, 1, 1), (2, 2, 2))])
        assert [p[0] for p in pts] == [0, 1, 2]

    def test_bbox(self):
        box = geometry_bbox([(0, 0, 0), (1, 2, 3)])
        assert _close3(box[0], [0, 0, 0])
        assert _close3(box[1], [1, 2, 3])
        box = geometry_bbox(Sphere(geom.point(1, 1, 1), 2.0))
        assert _close3(box[0], [-1, -1, -1])
        assert _close3(box[1], [3, 3, 3])
        assert geometry_bbox('nothing') is None

    def test_centroid(self):
        assert _close3(geometry_centroid(UNIT_BOX), [0.5, 0.5, 0.5])
        assert geometry_centroid([]) is None


class TestGroups:
    """Test group construction and splitting."""

    def test_group(self):
        assert len(group([1, 2, 3])) == 1
        assert group('x').items == ('x',)
        pls = [polyline([(0, 0, 0), (1, 0, 0)]), polyline([(0, 1, 0), (1, 1, 0)])]
        g = group(pls, {'layer': 'a'})
        assert len(g) == 2
        assert list(g) == pls
        assert g.metadata == {'layer': 'a'}
        assert group(g).items == g.items

    def test_flatten(self):
        g = Group((1, Group((2, Group((3,)))), 4))
        assert g.flatten() == (1, 2, 3, 4)

    def test_ungroup(self):
        assert ungroup(Group((1, 2))) == [1, 2]
        assert ungroup(5) == [5]

    def test_merge(self):
        g = merge_groups(Group((1,), {'a': 1}), 2, None, Group((3,), {'a': 2, 'b': 3}))
        assert g.items == (1, 2, 3)
        assert g.metadata == {'a': 2, 'b': 3}

    def test_split(self):
        sel, rest = split_group(Group(('a', 'b', 'c', 'd')), [2, 0, 2, 9])
        assert sel.items == ('c', 'a')
        assert rest.items == ('b', 'd')

    def test_split_wrap(self):
        sel, rest = split_group(['a', 'b', 'c', 'd'], [5, -1], wrap=True)
        assert sel.items == ('b', 'd')
        assert rest.items == ('a', 'c')
        sel, rest = split_group(Group(()), [0, 1], wrap=True)
        assert sel.items == () and rest.items == ()
