"""The deformable pipe, modelled as a closed chain of nodes (core-shell)."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .cell import Mat4, Vec2, angle_between_vectors


@dataclass
class Pipe:
    """Ring of nodes; positions, velocities and accelerations in reduced coordinates."""

    pos: list[Vec2] = field(default_factory=list)
    vel: list[Vec2] = field(default_factory=list)
    acc: list[Vec2] = field(default_factory=list)
    u: list[Vec2] = field(default_factory=list)
    lengths: list[float] = field(default_factory=list)
    angles: list[float] = field(default_factory=list)
    forces: list[Vec2] = field(default_factory=list)
    moments: list[float] = field(default_factory=list)

    radius: float = 0.0
    node_radius: float = 0.0
    node_mass: float = 0.0
    length0: float = 0.0
    angle0: float = 0.0

    k_stretch: float = 0.0
    k_bend: float = 0.0
    yield_moment: float = 0.0

    center: Vec2 = Vec2()
    cartesian_pos: list[Vec2] = field(default_factory=list)
    polar_pos: list[tuple[float, float]] = field(default_factory=list)

    def build_and_init(self, ext_radius: float, thickness: float, n: int) -> None:
        """Clear the nodes and set the reference geometry of an n-sided ring."""
        if n < 1:
            raise ValueError("a pipe needs at least one node")
        self.radius = ext_radius
        self.node_radius = 0.5 * thickness
        for name in ("pos", "vel", "acc", "u", "lengths", "angles", "forces", "moments"):
            setattr(self, name, [])
        self.length0 = 2.0 * (self.radius - self.node_radius) * math.sin(math.pi / n)
        self.angle0 = -2.0 * math.pi / n

    def add_node(self, pos: Vec2, vel: Vec2, acc: Vec2) -> None:
        """Append a node with reference side length and angle."""
        self.pos.append(pos)
        self.vel.append(vel)
        self.acc.append(acc)
        self.u.append(Vec2())
        self.lengths.append(self.length0)
        self.angles.append(self.angle0)
        self.forces.append(Vec2())
        self.moments.append(0.0)

    def update(self, h: Mat4) -> None:
        """Recompute side unit vectors, side lengths and node angles in real space."""
        following = self.pos[1:] + self.pos[:1]
        sides = [h @ (nxt - cur) for cur, nxt in zip(self.pos, following)]
        self.lengths = [side.norm() for side in sides]
        self.u = [side.normalized() for side in sides]
        previous = self.u[-1:] + self.u[:-1]
        self.angles = [angle_between_vectors(u, prev) for u, prev in zip(self.u, previous)]

    def update_shape(self, h: Mat4) -> None:
        """Compute the real-space barycenter and node positions relative to it."""
        if not self.pos:
            self.center = Vec2()
            self.cartesian_pos = []
            self.polar_pos = []
            return
        reduced_center = sum(self.pos, Vec2()) / len(self.pos)
        self.cartesian_pos = [h @ (p - reduced_center) for p in self.pos]
        self.center = h @ reduced_center
        self.polar_pos = []
        for c in self.cartesian_pos:
            angle = math.atan2(c.y, c.x)
            if angle < 0.0:
                angle += 2.0 * math.pi
            self.polar_pos.append((c.norm(), angle))