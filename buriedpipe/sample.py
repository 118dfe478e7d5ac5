"""Preparation of a loose sample around the pipe from a parameter file."""

from __future__ import annotations

import math
import random
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar, Union

from .cell import Vec2
from .particle import Particle

T = TypeVar("T")

PathLike = Union[str, Path]


class _PrepaReader:
    """Values of a parameter file, one per line, each followed by a description."""

    def __init__(self, path: PathLike) -> None:
        with open(path, encoding="utf-8") as source:
            entries = []
            for line in source:
                words = line.split(maxsplit=1)
                if not words:
                    continue
                description = words[1].strip() if len(words) > 1 else ""
                entries.append((words[0], description))
        self._entries = iter(entries)
        self._path = path

    def take(self, convert: Callable[[str], T]) -> tuple[T, str]:
        """The next value converted, with its description."""
        try:
            text, description = next(self._entries)
        except StopIteration:
            raise ValueError(f"{self._path}: missing value") from None
        try:
            return convert(text), description
        except ValueError:
            raise ValueError(f"{self._path}: bad value {text!r} for '{description}'") from None

    def _shown(self, convert: Callable[[str], T]) -> T:
        value, description = self.take(convert)
        print(f"{description} -> {value:g}")
        return value

    def real(self) -> float:
        return self._shown(float)

    def integer(self) -> int:
        return self._shown(int)


def set_sample(sim: Any, path: PathLike = "prepa.txt", rng: Optional[random.Random] = None) -> None:
    """Build a sample (cell, pipe and disks on a staggered grid) from a parameter file."""
    rng = rng if rng is not None else random.Random()
    values = _PrepaReader(path)
    print()

    ngw = values.integer()
    if ngw < 1:
        raise ValueError("the number of grains per row must be positive")
    step = 1.0 / (2.0 * ngw)

    radius = values.real()
    delta_r = values.real()
    side = 2.0 * (ngw + 1) * radius
    sim.cell.define(side, 0.0, 0.0, side)
    sim.d_verlet = 0.95 * (radius - delta_r)

    pipe_radius = values.real()
    pipe_thickness = values.real()
    n_nodes = values.integer()
    pipe = sim.pipe
    pipe.build_and_init(pipe_radius, pipe_thickness, n_nodes)

    pipe_h = values.real()
    sig_y = values.real()
    young = values.real()
    poisson = values.real()
    pipe_density = values.real()

    pipe.radius = pipe_radius
    pipe.node_radius = 0.5 * pipe_thickness
    inner = pipe_radius - pipe_thickness
    pipe.node_mass = math.pi * (pipe_radius * pipe_radius - inner * inner) * pipe_density / n_nodes
    pipe.k_stretch = young * (pipe_thickness * pipe_h) / (1.0 - poisson * poisson)
    pipe.k_bend = young * pipe_thickness**3 / (12.0 * (1.0 - poisson * poisson))
    second_moment = pipe_thickness**3 * pipe_h / 12.0
    pipe.yield_moment = 4.0 * second_moment * sig_y / pipe_thickness

    print(f"   Pipe k_stretch   = {pipe.k_stretch:g}")
    print(f"   Pipe k_bend      = {pipe.k_bend:g}")
    print(f"   Pipe yieldMoment = {pipe.yield_moment:g}")

    h = sim.cell.h
    hinv = h.inverse()
    mid = Vec2(0.5, 0.5)
    da = 2.0 * math.pi / n_nodes
    r_mean = pipe_radius - 0.5 * pipe_thickness
    for i in range(n_nodes):
        a = i * da
        pipe.add_node(mid + hinv @ Vec2(r_mean * math.cos(a), r_mean * math.sin(a)), Vec2(), Vec2())

    # Grain masses use the density in force before the file sets a new one.
    particles = []
    mass_tot = 0.0
    index = 0
    y = 0.0
    while y <= 1.0:
        r = radius - delta_r * rng.random()
        mass = math.pi * r * r * sim.density
        mass_tot += mass
        column, row = index % ngw, index // ngw
        x = step + 2 * column * step if row % 2 == 0 else 2 * step + 2 * column * step
        y = step + 2 * row * step
        pos = Vec2(x, y)
        clearance = (h @ (pos - mid)).norm() - 1.01 * r
        if y <= 1.0 - step and clearance > pipe.radius:
            particles.append(Particle(pos=pos, radius=r, mass=mass, inertia=0.5 * mass * r * r))
        index += 1

    if not particles:
        raise ValueError("no grain fits around the pipe")
    sim.particles = particles
    sim.cell.mass = mass_tot / math.sqrt(len(particles))

    vmax = values.real()
    for p in particles:
        vx = vmax * rng.random()
        vy = vmax * rng.random()
        p.vel = Vec2(vx, vy)

    press = values.real()
    sim.load.isostatic_compression(press)

    sim.density = values.real()
    sim.kn, description = values.take(float)
    print(f"{description} -> {sim.kn:g}, so kn/p = {sim.kn / press:g}")
    ktkn = values.real()
    sim.kt = ktkn * sim.kn
    sim.damp_rate = values.real()
    sim.mu = values.real()

    sim.dt, description = values.take(float)
    mass_mini = math.pi * (radius - delta_r) ** 2 * sim.density
    kn_maxi = max(sim.kn, pipe.k_stretch)
    ratio = math.pi * math.sqrt(mass_mini / kn_maxi) / sim.dt
    print(f"{description} -> {sim.dt:g}, so dt_crit/dt = {ratio:g}")

    sim.t = 0.0
    sim.iconf = 0
    sim.inter_close_c = 0.0
    sim.inter_out_c = 0.0
    sim.inter_hist_c = 0.0
    sim.tmax = values.real()
    sim.inter_close = values.real()
    sim.inter_out = values.real()
    sim.inter_hist = values.real()

    sim.constrained_in_frame = 1
    sim.numerical_damping_coeff = 0.7