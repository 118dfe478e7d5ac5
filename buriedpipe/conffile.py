"""Reading and writing of simulation configuration files."""

from __future__ import annotations

import os
from typing import Any, Iterator, Union

from .cell import Mat4, Vec2
from .loading import COMMAND_ARGUMENTS, Loading
from .particle import Interaction, InteractionPipe, Particle

PROGRAM_NAME = "BuriedPipe"
FORMAT_VERSION = "2025"

# Interactions whose normal force is below this magnitude are not saved.
_FN_NEGLIGIBLE = 1.0e-15

_REAL_FIELDS = {
    "t": "t",
    "tmax": "tmax",
    "dt": "dt",
    "interClose": "inter_close",
    "interOut": "inter_out",
    "interHist": "inter_hist",
    "dVerlet": "d_verlet",
    "density": "density",
    "kn": "kn",
    "kt": "kt",
    "dampRate": "damp_rate",
    "numericalDampingCoeff": "numerical_damping_coeff",
    "mu": "mu",
}
_INT_FIELDS = {"iconf": "iconf", "constrainedInFrame": "constrained_in_frame"}
_ABS_FIELDS = {"vBarrier": "v_barrier", "vBarrierExpo": "v_barrier_expo"}

PathLike = Union[str, "os.PathLike[str]"]


class ConfFormatError(ValueError):
    """Raised when a configuration file cannot be understood."""


def _short(value: float) -> str:
    return format(value, ".6g")


def _long(value: float) -> str:
    return format(value, ".15g")


def _short_mat(m: Mat4) -> str:
    return " ".join(_short(v) for v in m)


def _long_vec(v: Vec2) -> str:
    return f"{_long(v.x)} {_long(v.y)}"


def save_conf(sim: Any, path: PathLike) -> None:
    """Write the full state of ``sim`` to a text configuration file."""
    lines = [f"{PROGRAM_NAME} {FORMAT_VERSION}"]
    lines += [
        f"t {_short(sim.t)}",
        f"tmax {_short(sim.tmax)}",
        f"dt {_short(sim.dt)}",
        f"interClose {_short(sim.inter_close)}",
        f"interOut {_short(sim.inter_out)}",
        f"interHist {_short(sim.inter_hist)}",
        f"dVerlet {_short(sim.d_verlet)}",
        f"constrainedInFrame {int(sim.constrained_in_frame)}",
        f"density {_short(sim.density)}",
        f"kn {_short(sim.kn)}",
        f"kt {_short(sim.kt)}",
        f"dampRate {_short(sim.damp_rate)}",
        f"numericalDampingCoeff {_short(sim.numerical_damping_coeff)}",
        f"mu {_short(sim.mu)}",
        f"iconf {int(sim.iconf)}",
        f"h0 {_short_mat(sim.h0)}",
        f"h {_short_mat(sim.cell.h)}",
        f"vh {_short_mat(sim.cell.vh)}",
        f"ah {_short_mat(sim.cell.ah)}",
        f"hmass {_short(sim.cell.mass)}",
    ]
    if sim.load.command:
        lines.append(f"Load {sim.load.command}")

    pipe = sim.pipe
    header = [
        pipe.radius,
        pipe.node_radius,
        pipe.node_mass,
        pipe.length0,
        pipe.angle0,
        pipe.k_stretch,
        pipe.k_bend,
        pipe.yield_moment,
    ]
    lines.append(f"Pipe {len(pipe.pos)} " + " ".join(_long(v) for v in header))
    for pos, vel, acc, force, moment, length, angle in zip(
        pipe.pos, pipe.vel, pipe.acc, pipe.forces, pipe.moments, pipe.lengths, pipe.angles
    ):
        lines.append(
            " ".join(
                [_long_vec(pos), _long_vec(vel), _long_vec(acc), _long_vec(force),
                 _long(moment), _long(length), _long(angle)]
            )
        )

    lines.append(f"Particles {len(sim.particles)}")
    for p in sim.particles:
        lines.append(
            " ".join(
                [_long_vec(p.pos), _long_vec(p.vel), _long_vec(p.acc), _long(p.rot), _long(p.vrot),
                 _long(p.arot), _long(p.radius), _long(p.inertia), _long(p.mass)]
            )
        )

    kept = [c for c in sim.interactions if abs(c.fn) >= _FN_NEGLIGIBLE]
    lines.append(f"Interactions {len(kept)}")
    lines += [f"{c.i} {c.j} {_long(c.fn)} {_long(c.ft)} {_long(c.damp)}" for c in kept]

    kept_pipe = [c for c in sim.interactions_pipe if abs(c.fn) >= _FN_NEGLIGIBLE]
    lines.append(f"InteractionsPipe {len(kept_pipe)}")
    lines += [
        f"{c.i} {c.inode} {_long(c.proj_div_L)} {_long(c.fn)} {_long(c.ft)} {_long(c.damp)}"
        for c in kept_pipe
    ]

    with open(path, "w", encoding="utf-8") as out:
        out.write("\n".join(lines) + "\n")


class _Tokens:
    """Whitespace-separated tokens with typed readers."""

    def __init__(self, text: str) -> None:
        self._words = iter(text.split())

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        return next(self._words)

    def word(self, what: str) -> str:
        try:
            return next(self._words)
        except StopIteration:
            raise ConfFormatError(f"unexpected end of file while reading {what}") from None

    def real(self, what: str) -> float:
        text = self.word(what)
        try:
            return float(text)
        except ValueError:
            raise ConfFormatError(f"expected a number for {what}, got {text!r}") from None

    def integer(self, what: str) -> int:
        text = self.word(what)
        try:
            return int(text)
        except ValueError:
            raise ConfFormatError(f"expected an integer for {what}, got {text!r}") from None

    def count(self, what: str) -> int:
        value = self.integer(what)
        if value < 0:
            raise ConfFormatError(f"negative count for {what}: {value}")
        return value

    def vec(self, what: str) -> Vec2:
        return Vec2(self.real(what), self.real(what))

    def mat(self, what: str) -> Mat4:
        return Mat4(self.real(what), self.real(what), self.real(what), self.real(what))


def _read_load(sim: Any, tokens: _Tokens) -> None:
    name = tokens.word("Load")
    if name not in COMMAND_ARGUMENTS:
        raise ConfFormatError(f"unknown command for loading: {name}")
    args = [tokens.word(name) for _ in range(COMMAND_ARGUMENTS[name])]
    try:
        sim.load = Loading.from_command(" ".join([name, *args]))
    except ValueError as exc:
        raise ConfFormatError(str(exc)) from exc


def _read_pipe(sim: Any, tokens: _Tokens) -> None:
    pipe = sim.pipe
    nb = tokens.count("Pipe")
    pipe.radius = tokens.real("Pipe")
    pipe.node_radius = tokens.real("Pipe")
    pipe.node_mass = tokens.real("Pipe")
    pipe.length0 = tokens.real("Pipe")
    pipe.angle0 = tokens.real("Pipe")
    pipe.k_stretch = tokens.real("Pipe")
    pipe.k_bend = tokens.real("Pipe")
    pipe.yield_moment = tokens.real("Pipe")
    try:
        pipe.build_and_init(pipe.radius, 2.0 * pipe.node_radius, nb)
    except ValueError as exc:
        raise ConfFormatError(str(exc)) from exc
    for i in range(nb):
        pos = tokens.vec("pipe node")
        vel = tokens.vec("pipe node")
        acc = tokens.vec("pipe node")
        force = tokens.vec("pipe node")
        moment = tokens.real("pipe node")
        length = tokens.real("pipe node")
        angle = tokens.real("pipe node")
        pipe.add_node(pos, vel, acc)
        pipe.forces[i] = force
        pipe.moments[i] = moment
        pipe.lengths[i] = length
        pipe.angles[i] = angle


def _read_particles(sim: Any, tokens: _Tokens) -> None:
    nb = tokens.count("Particles")
    particles = []
    for _ in range(nb):
        particles.append(
            Particle(
                pos=tokens.vec("particle"),
                vel=tokens.vec("particle"),
                acc=tokens.vec("particle"),
                rot=tokens.real("particle"),
                vrot=tokens.real("particle"),
                arot=tokens.real("particle"),
                radius=tokens.real("particle"),
                inertia=tokens.real("particle"),
                mass=tokens.real("particle"),
            )
        )
    sim.particles = particles
    sim.radius_min = min((p.radius for p in particles), default=1e20)
    sim.radius_max = max((p.radius for p in particles), default=-1e20)
    sim.radius_mean = sum(p.radius for p in particles) / len(particles) if particles else 0.0


def _read_interactions(sim: Any, tokens: _Tokens) -> None:
    nb = tokens.count("Interactions")
    contacts = []
    for _ in range(nb):
        i = tokens.count("interaction")
        j = tokens.count("interaction")
        fn = tokens.real("interaction")
        ft = tokens.real("interaction")
        damp = tokens.real("interaction")
        sim.fn_max = max(sim.fn_max, fn)
        contacts.append(Interaction(i=i, j=j, damp=damp, fn=fn, ft=ft))
    sim.interactions = contacts


def _read_interactions_pipe(sim: Any, tokens: _Tokens) -> None:
    nb = tokens.count("InteractionsPipe")
    contacts = []
    for _ in range(nb):
        i = tokens.count("pipe interaction")
        inode = tokens.count("pipe interaction")
        proj = tokens.real("pipe interaction")
        fn = tokens.real("pipe interaction")
        ft = tokens.real("pipe interaction")
        damp = tokens.real("pipe interaction")
        sim.fn_max = max(sim.fn_max, fn)
        contacts.append(InteractionPipe(i=i, inode=inode, damp=damp, proj_div_L=proj, fn=fn, ft=ft))
    sim.interactions_pipe = contacts


def load_conf(sim: Any, path: PathLike) -> None:
    """Read a configuration file into ``sim``, replacing what the file defines."""
    with open(path, encoding="utf-8") as conf:
        tokens = _Tokens(conf.read())

    prog = tokens.word("header")
    if prog != PROGRAM_NAME:
        raise ConfFormatError(f"this is not a file for {PROGRAM_NAME}")
    version = tokens.word("header")
    if version != FORMAT_VERSION:
        raise ConfFormatError(f"the version-date should be {FORMAT_VERSION}, got {version}")

    sim.fn_max = 0.0

    sections = {
        "Load": _read_load,
        "Pipe": _read_pipe,
        "Particles": _read_particles,
        "Interactions": _read_interactions,
        "InteractionsPipe": _read_interactions_pipe,
    }

    for token in tokens:
        if token in _REAL_FIELDS:
            setattr(sim, _REAL_FIELDS[token], tokens.real(token))
        elif token in _INT_FIELDS:
            setattr(sim, _INT_FIELDS[token], tokens.integer(token))
        elif token in _ABS_FIELDS:
            setattr(sim, _ABS_FIELDS[token], abs(tokens.real(token)))
        elif token == "h0":
            sim.h0 = tokens.mat(token)
        elif token == "h":
            sim.cell.h = tokens.mat(token)
            if abs(sim.h0.xx) < 1e-12:
                sim.h0 = Mat4(*sim.cell.h)
        elif token == "vh":
            sim.cell.vh = tokens.mat(token)
        elif token == "ah":
            sim.cell.ah = tokens.mat(token)
        elif token == "hmass":
            sim.cell.mass = tokens.real(token)
        elif token in sections:
            sections[token](sim, tokens)
        else:
            raise ConfFormatError(f"unknown token: {token}")

    sim.pipe.update(sim.cell.h)