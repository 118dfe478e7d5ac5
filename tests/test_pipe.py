import math

import pytest

from buriedpipe.cell import Mat4, Vec2
from buriedpipe.pipe import Pipe

RADIUS = 0.02
THICKNESS = 0.002
NODES = 36


def make_ring(h):
    pipe = Pipe()
    pipe.build_and_init(RADIUS, THICKNESS, NODES)
    hinv = h.inverse()
    rmean = RADIUS - 0.5 * THICKNESS
    mid = Vec2(0.5, 0.5)
    for k in range(NODES):
        a = k * 2.0 * math.pi / NODES
        pipe.add_node(mid + hinv @ Vec2(rmean * math.cos(a), rmean * math.sin(a)), Vec2(), Vec2())
    return pipe


def test_build_and_init_sets_reference_geometry():
    pipe = Pipe()
    pipe.pos.append(Vec2(1.0, 1.0))
    pipe.build_and_init(RADIUS, THICKNESS, NODES)
    assert pipe.pos == []
    assert pipe.node_radius == pytest.approx(0.5 * THICKNESS)
    assert pipe.radius == RADIUS
    assert pipe.angle0 * NODES == pytest.approx(-2.0 * math.pi)


def test_build_and_init_rejects_zero_nodes():
    with pytest.raises(ValueError):
        Pipe().build_and_init(RADIUS, THICKNESS, 0)


def test_add_node_keeps_lists_aligned():
    pipe = Pipe()
    pipe.build_and_init(RADIUS, THICKNESS, 4)
    pipe.add_node(Vec2(0.1, 0.2), Vec2(0.3, 0.0), Vec2())
    pipe.add_node(Vec2(0.4, 0.2), Vec2(), Vec2())
    sizes = {len(pipe.pos), len(pipe.vel), len(pipe.acc), len(pipe.u), len(pipe.lengths),
             len(pipe.angles), len(pipe.forces), len(pipe.moments)}
    assert sizes == {2}
    assert pipe.lengths == [pipe.length0, pipe.length0]
    assert pipe.angles == [pipe.angle0, pipe.angle0]
    assert pipe.vel[0] == Vec2(0.3, 0.0)


def test_update_of_regular_ring_matches_reference():
    h = Mat4(0.1, 0.0, 0.0, 0.1)
    pipe = make_ring(h)
    pipe.update(h)
    for length, angle, u in zip(pipe.lengths, pipe.angles, pipe.u):
        assert length == pytest.approx(pipe.length0)
        assert angle == pytest.approx(pipe.angle0)
        assert u.norm() == pytest.approx(1.0)


def test_update_with_sheared_cell_still_regular():
    h = Mat4(0.1, 0.02, 0.0, 0.12)
    pipe = make_ring(h)
    pipe.update(h)
    assert max(pipe.lengths) == pytest.approx(min(pipe.lengths))
    assert sum(pipe.angles) == pytest.approx(-2.0 * math.pi)


def test_update_shape_gives_circle_around_center():
    h = Mat4(0.1, 0.0, 0.0, 0.1)
    pipe = make_ring(h)
    pipe.update_shape(h)
    expected_center = h @ Vec2(0.5, 0.5)
    assert pipe.center.x == pytest.approx(expected_center.x)
    assert pipe.center.y == pytest.approx(expected_center.y)
    rmean = RADIUS - 0.5 * THICKNESS
    assert len(pipe.polar_pos) == NODES
    for (r, a), c in zip(pipe.polar_pos, pipe.cartesian_pos):
        assert r == pytest.approx(rmean)
        assert 0.0 <= a < 2.0 * math.pi
        assert c.norm() == pytest.approx(r)


def test_update_shape_of_empty_pipe():
    pipe = Pipe()
    pipe.update_shape(Mat4.identity())
    assert pipe.polar_pos == []
    assert pipe.center == Vec2()