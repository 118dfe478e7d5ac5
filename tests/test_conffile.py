import math
from dataclasses import dataclass, field

import pytest

from buriedpipe.cell import Mat4, PeriodicCell, Vec2
from buriedpipe.conffile import ConfFormatError, load_conf, save_conf
from buriedpipe.loading import Loading
from buriedpipe.particle import Interaction, InteractionPipe, Particle
from buriedpipe.pipe import Pipe


@dataclass
class _Sim:
    pipe: Pipe = field(default_factory=Pipe)
    particles: list = field(default_factory=list)
    interactions: list = field(default_factory=list)
    interactions_pipe: list = field(default_factory=list)
    load: Loading = field(default_factory=Loading)
    cell: PeriodicCell = field(default_factory=PeriodicCell)
    h0: Mat4 = field(default_factory=Mat4)
    t: float = 0.0
    tmax: float = 5.0
    dt: float = 1e-6
    inter_close: float = 0.01
    inter_out: float = 0.1
    inter_hist: float = 0.25
    d_verlet: float = 0.0
    density: float = 2700.0
    kn: float = 1e4
    kt: float = 1e4
    damp_rate: float = 0.95
    v_barrier: float = 0.0
    v_barrier_expo: float = 2.0
    numerical_damping_coeff: float = 0.0
    mu: float = 0.8
    iconf: int = 0
    constrained_in_frame: int = 0
    radius_min: float = 0.0
    radius_max: float = 0.0
    radius_mean: float = 0.0
    fn_max: float = 0.0


def _populated_sim():
    sim = _Sim()
    sim.cell.define(0.1, 0.0, 0.0, 0.1)
    sim.cell.mass = 0.5
    sim.t = 0.25
    sim.iconf = 3
    sim.constrained_in_frame = 1
    sim.load.isostatic_compression(1000.0)
    pipe = sim.pipe
    pipe.build_and_init(0.02, 0.002, 4)
    pipe.node_mass = 0.3
    pipe.k_stretch = 12345.678901234
    pipe.k_bend = 0.125
    pipe.yield_moment = 7.5
    for k in range(4):
        a = k * math.pi / 2.0
        pipe.add_node(Vec2(0.5 + 0.19 * math.cos(a), 0.5 + 0.19 * math.sin(a)), Vec2(0.01, -0.02), Vec2())
    pipe.forces[1] = Vec2(1.5, -2.5)
    pipe.moments[2] = 0.75
    sim.particles = [
        Particle(pos=Vec2(0.1, 0.2), vel=Vec2(0.3, 0.4), radius=0.001, mass=2.0, inertia=1e-6, rot=0.3),
        Particle(pos=Vec2(0.15, 0.2), radius=0.0015, mass=3.0, inertia=2e-6),
        Particle(pos=Vec2(0.9, 0.9), radius=0.0008, mass=1.0, inertia=5e-7),
    ]
    sim.interactions = [
        Interaction(i=0, j=1, damp=0.2, fn=4.5, ft=-0.3),
        Interaction(i=1, j=2, damp=0.1, fn=0.0, ft=0.0),
    ]
    sim.interactions_pipe = [
        InteractionPipe(i=2, inode=1, damp=0.05, proj_div_L=0.4, fn=9.25, ft=0.1),
        InteractionPipe(i=0, inode=3, damp=0.05, proj_div_L=0.1, fn=1e-20, ft=0.0),
    ]
    return sim


def _round_trip(tmp_path, sim):
    path = tmp_path / "conf3"
    save_conf(sim, path)
    loaded = _Sim()
    load_conf(loaded, path)
    return loaded, path


def _write(tmp_path, text):
    path = tmp_path / "conf"
    path.write_text(text)
    return path


def test_header_line(tmp_path):
    path = tmp_path / "conf0"
    save_conf(_populated_sim(), path)
    assert path.read_text().splitlines()[0] == "BuriedPipe 2025"


def test_round_trip_particles(tmp_path):
    sim = _populated_sim()
    loaded, _ = _round_trip(tmp_path, sim)
    assert len(loaded.particles) == len(sim.particles)
    for a, b in zip(loaded.particles, sim.particles):
        assert a.pos.x == pytest.approx(b.pos.x)
        assert a.pos.y == pytest.approx(b.pos.y)
        assert a.vel == pytest.approx(b.vel)
        assert a.radius == pytest.approx(b.radius)
        assert a.mass == pytest.approx(b.mass)
        assert a.rot == pytest.approx(b.rot)


def test_radius_statistics(tmp_path):
    sim = _populated_sim()
    loaded, _ = _round_trip(tmp_path, sim)
    radii = [p.radius for p in sim.particles]
    assert loaded.radius_min == pytest.approx(min(radii))
    assert loaded.radius_max == pytest.approx(max(radii))
    assert loaded.radius_mean == pytest.approx(sum(radii) / len(radii))


def test_negligible_interactions_are_dropped(tmp_path):
    sim = _populated_sim()
    loaded, _ = _round_trip(tmp_path, sim)
    assert [(c.i, c.j) for c in loaded.interactions] == [(0, 1)]
    assert [(c.i, c.inode) for c in loaded.interactions_pipe] == [(2, 1)]
    assert loaded.interactions[0].ft == pytest.approx(-0.3)
    assert loaded.interactions_pipe[0].proj_div_L == pytest.approx(0.4)


def test_fn_max_is_largest_normal_force(tmp_path):
    sim = _populated_sim()
    loaded, _ = _round_trip(tmp_path, sim)
    assert loaded.fn_max == pytest.approx(9.25)


def test_scalars_and_cell(tmp_path):
    sim = _populated_sim()
    loaded, _ = _round_trip(tmp_path, sim)
    assert loaded.t == pytest.approx(sim.t)
    assert loaded.iconf == sim.iconf
    assert loaded.constrained_in_frame == sim.constrained_in_frame
    assert loaded.cell.h == sim.cell.h
    assert loaded.cell.mass == pytest.approx(sim.cell.mass)
    assert loaded.kn == pytest.approx(sim.kn)


def test_load_round_trip(tmp_path):
    sim = _populated_sim()
    sim.load.simple_shear(1000.0, 0.5)
    loaded, _ = _round_trip(tmp_path, sim)
    assert loaded.load.command == sim.load.command
    assert loaded.load.gamma_dot == pytest.approx(0.5)
    assert loaded.load.drive == sim.load.drive


def test_pipe_round_trip(tmp_path):
    sim = _populated_sim()
    loaded, _ = _round_trip(tmp_path, sim)
    assert len(loaded.pipe.pos) == 4
    for a, b in zip(loaded.pipe.pos, sim.pipe.pos):
        assert a.x == pytest.approx(b.x)
        assert a.y == pytest.approx(b.y)
    assert loaded.pipe.forces[1] == pytest.approx(sim.pipe.forces[1])
    assert loaded.pipe.moments[2] == pytest.approx(0.75)
    assert loaded.pipe.k_stretch == pytest.approx(sim.pipe.k_stretch, rel=1e-14)
    assert loaded.pipe.node_radius == pytest.approx(sim.pipe.node_radius)


def test_pipe_geometry_updated_after_load(tmp_path):
    sim = _populated_sim()
    loaded, _ = _round_trip(tmp_path, sim)
    sim.pipe.update(sim.cell.h)
    assert loaded.pipe.lengths == pytest.approx(sim.pipe.lengths)
    assert loaded.pipe.angles == pytest.approx(sim.pipe.angles)


def test_reference_geometry_recomputed(tmp_path):
    sim = _populated_sim()
    sim.pipe.length0 = 99.0
    loaded, _ = _round_trip(tmp_path, sim)
    reference = Pipe()
    reference.build_and_init(0.02, 0.002, 4)
    assert loaded.pipe.length0 == pytest.approx(reference.length0)
    assert loaded.pipe.angle0 == pytest.approx(reference.angle0)


def test_h0_taken_from_h_when_unset(tmp_path):
    sim = _Sim()
    load_conf(sim, _write(tmp_path, "BuriedPipe 2025\nh 0.2 0 0 0.3\n"))
    assert sim.h0 == Mat4(0.2, 0.0, 0.0, 0.3)
    assert sim.cell.h == Mat4(0.2, 0.0, 0.0, 0.3)


def test_h0_kept_when_given_first(tmp_path):
    sim = _Sim()
    load_conf(sim, _write(tmp_path, "BuriedPipe 2025\nh0 1 0 0 1\nh 0.2 0 0 0.3\n"))
    assert sim.h0 == Mat4.identity()


def test_barrier_values_are_made_positive(tmp_path):
    sim = _Sim()
    load_conf(sim, _write(tmp_path, "BuriedPipe 2025\nvBarrier -2\nvBarrierExpo -3\n"))
    assert sim.v_barrier == 2.0
    assert sim.v_barrier_expo == 3.0


def test_wrong_program_name(tmp_path):
    with pytest.raises(ConfFormatError):
        load_conf(_Sim(), _write(tmp_path, "Other 2025\nt 1\n"))


def test_wrong_version(tmp_path):
    with pytest.raises(ConfFormatError):
        load_conf(_Sim(), _write(tmp_path, "BuriedPipe 2024\nt 1\n"))


def test_unknown_token(tmp_path):
    with pytest.raises(ConfFormatError, match="unknown token"):
        load_conf(_Sim(), _write(tmp_path, "BuriedPipe 2025\nfoo 1\n"))


def test_unknown_load_command(tmp_path):
    with pytest.raises(ConfFormatError, match="loading"):
        load_conf(_Sim(), _write(tmp_path, "BuriedPipe 2025\nLoad Twist 1 2\n"))


def test_truncated_particles(tmp_path):
    with pytest.raises(ConfFormatError):
        load_conf(_Sim(), _write(tmp_path, "BuriedPipe 2025\nParticles 2\n0.1 0.2 0 0\n"))


def test_bad_number(tmp_path):
    with pytest.raises(ConfFormatError):
        load_conf(_Sim(), _write(tmp_path, "BuriedPipe 2025\nt abc\n"))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_conf(_Sim(), tmp_path / "absent")