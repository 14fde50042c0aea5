import numpy as np
import pytest

from paramkernel.geom import point
from paramkernel.mesh import (Mesh, Triangle, fan_triangles, mesh, mesh_area,
                              mesh_arrays, mesh_view, to_vec3, triangle_area,
                              triangle_centroid, triangle_normal,
                              triangles_from_mesh, triangulate_mesh)


def _quad():
    verts = [point(0, 0), point(1, 0), point(1, 1), point(0, 1)]
    return mesh(verts, [(0, 1, 2, 3)])


def test_mesh_drops_bad_faces():
    m = mesh([point(0, 0), point(1, 0), point(0, 1)],
             [(0, 1, 2), (0, 1), (0, 1, 7)], {'source': 'test'})
    assert m.faces == ((0, 1, 2),)
    assert m.metadata == {'source': 'test'}
    assert isinstance(m, Mesh)


def test_fan_triangles():
    assert list(fan_triangles((0, 1, 2, 3, 4))) == [(0, 1, 2), (0, 2, 3), (0, 3, 4)]
    assert list(fan_triangles((0, 1))) == []


def test_triangle_helpers():
    v0, v1, v2 = (0.0, 0.0, 0.0), (2.0, 0.0, 0.0), (0.0, 2.0, 0.0)
    assert triangle_normal(v0, v1, v2) == (0.0, 0.0, 1.0)
    assert triangle_normal(v0, v1, (4.0, 0.0, 0.0)) is None
    assert triangle_area(v0, v1, v2) == 2.0
    c = triangle_centroid(v0, v1, v2)
    assert abs(c[0] - 2.0 / 3.0) < 1e-12
    assert to_vec3([1, 2, 3, 1]) == (1.0, 2.0, 3.0)
    with pytest.raises(ValueError):
        to_vec3([1, 2])


def test_mesh_view_quad():
    tris = list(mesh_view(_quad()))
    assert len(tris) == 2
    for normal, v0, v1, v2 in tris:
        assert normal == (0.0, 0.0, 1.0)
        assert len(v0) == 3
    assert abs(mesh_area(_quad()) - 1.0) < 1e-12


def test_mesh_view_skips_degenerate():
    m = mesh([point(0, 0), point(1, 0), point(2, 0), point(0, 1)],
             [(0, 1, 2), (0, 1, 3)])
    tris = list(triangles_from_mesh(m))
    assert len(tris) == 1
    assert isinstance(tris[0], Triangle)


def test_triangulate_mesh():
    t = triangulate_mesh(_quad())
    assert t.faces == ((0, 1, 2), (0, 2, 3))
    assert t.vertices == _quad().vertices


def test_mesh_arrays():
    verts, tris = mesh_arrays(_quad())
    assert verts.shape == (4, 3)
    assert verts.dtype == np.float64
    assert tris.shape == (2, 3)
    assert tris.dtype == np.int64
    assert tris.tolist() == [[0, 1, 2], [0, 2, 3]]
    empty_v, empty_t = mesh_arrays(Mesh((), ()))
    assert empty_v.shape == (0, 3)
    assert empty_t.shape == (0, 3)
