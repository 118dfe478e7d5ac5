from buriedpipe.cell import Vec2
from buriedpipe.particle import Interaction, InteractionPipe, Particle


def test_interaction_forces_start_at_zero():
    inter = Interaction(3, 5, 0.25)
    assert (inter.i, inter.j, inter.damp) == (3, 5, 0.25)
    assert inter.fn == 0.0
    assert inter.ft == 0.0


def test_interaction_pipe_forces_start_at_zero():
    inter = InteractionPipe(2, 7, 0.5)
    assert (inter.i, inter.inode, inter.damp) == (2, 7, 0.5)
    assert inter.fn == 0.0
    assert inter.ft == 0.0
    assert inter.proj_div_L == 0.0


def test_particle_defaults_are_at_rest():
    p = Particle()
    assert p.pos == Vec2()
    assert p.vel == Vec2()
    assert p.force == Vec2()
    assert p.mass == 0.0
    assert p.moment == 0.0


def test_particles_are_independent():
    a = Particle()
    b = Particle()
    a.pos = a.pos + Vec2(1.0, 2.0)
    a.vrot = 3.0
    assert b.pos == Vec2()
    assert b.vrot == 0.0


def test_interaction_equality():
    assert Interaction(1, 2, 0.1) == Interaction(1, 2, 0.1)
    assert Interaction(1, 2, 0.1) != Interaction(2, 1, 0.1)