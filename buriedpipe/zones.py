"""Stress measures around grains and in ring-shaped zones around the pipe."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from .cell import Mat4, Vec2

# Number of zone rings laid around the pipe.
_LAYERS = 6


@dataclass
class ParticleData:
    """Mean stress carried by one particle."""

    sigma: Mat4 = field(default_factory=Mat4)
    volume: float = 0.0
    q: float = 0.0
    p: float = 0.0


def _add_dyad(m: Mat4, f: Vec2, b: Vec2, sign: float = 1.0) -> None:
    m.xx += sign * f.x * b.x
    m.xy += sign * f.x * b.y
    m.yx += sign * f.y * b.x
    m.yy += sign * f.y * b.y


@dataclass
class ZoneData:
    """A quadrilateral zone with the stress of the contacts it holds."""

    corners: tuple[Vec2, Vec2, Vec2, Vec2] = (Vec2(), Vec2(), Vec2(), Vec2())
    sigma: Mat4 = field(default_factory=Mat4)
    K: float = 0.0
    pressure: float = 0.0
    nb_particles: int = 0

    def volume(self) -> float:
        """Area of the quadrilateral, as the sum of two triangles."""
        c0, c1, c2, c3 = self.corners
        h1 = 0.5 * abs((c1 - c0).cross(c3 - c0))
        h2 = 0.5 * abs((c1 - c2).cross(c3 - c2))
        return h1 + h2

    def is_inside(self, point: Vec2) -> bool:
        """True if the point lies inside or on the edge of the (convex) zone."""
        c = self.corners
        products = [
            (c[(k + 1) % 4] - c[k]).cross(point - c[k]) for k in range(4)
        ]
        return all(v >= 0 for v in products) or all(v <= 0 for v in products)

    def inside_cell(self, h: Mat4) -> bool:
        """True if all four corners lie in the periodic cell of shape h."""
        cell = ZoneData(
            corners=(
                Vec2(0.0, 0.0),
                Vec2(h.xx, h.yx),
                Vec2(h.xx + h.xy, h.yx + h.yy),
                Vec2(h.xy, h.yy),
            )
        )
        return all(cell.is_inside(c) for c in self.corners)


def _periodic_branch(sim: Any, i: int, j: int) -> Vec2:
    sij = sim.particles[j].pos - sim.particles[i].pos
    sij = Vec2(sij.x - math.floor(sij.x + 0.5), sij.y - math.floor(sij.y + 0.5))
    return sim.cell.h @ sij


def compute_particle_data(sim: Any) -> list[ParticleData]:
    """Mean stress and pressure of each particle from its particle contacts."""
    data = [
        ParticleData(volume=math.pi * p.radius * p.radius) for p in sim.particles
    ]
    for contact in sim.interactions:
        pi = sim.particles[contact.i]
        pj = sim.particles[contact.j]
        branch = _periodic_branch(sim, contact.i, contact.j)
        length = branch.norm()
        n = branch.normalized()
        dn = length - pi.radius - pj.radius
        bi = (pi.radius + 0.5 * dn) * n
        bj = -(pj.radius + 0.5 * dn) * n
        t = Vec2(-n.y, n.x)
        f = contact.fn * n + contact.ft * t
        _add_dyad(data[contact.i].sigma, f, bi)
        _add_dyad(data[contact.j].sigma, f, bj, -1.0)

    for d in data:
        d.sigma = d.sigma / d.volume
        d.p = 0.5 * (d.sigma.xx + d.sigma.yy)
    return data


def material_zones(sim: Any) -> list[ZoneData]:
    """Zones in rings around the pipe, with their stress, pressure and K = sxx/syy."""
    pipe = sim.pipe
    h = sim.cell.h
    nb_nodes = len(pipe.pos)
    if nb_nodes == 0:
        return []

    zone_width = 2.0 * pipe.node_radius
    real = [h @ p for p in pipe.pos]
    center = sum(real, Vec2()) / nb_nodes
    offsets = [r - center for r in real]
    directions = [o.normalized() for o in offsets]
    radii = [o.norm() + pipe.node_radius for o in offsets]

    zones = []
    for layer in range(_LAYERS):
        for i in range(nb_nodes):
            inext = (i + 1) % nb_nodes
            zone = ZoneData(
                corners=(
                    center + (radii[i] + layer * zone_width) * directions[i],
                    center + (radii[i] + (layer + 1) * zone_width) * directions[i],
                    center + (radii[inext] + (layer + 1) * zone_width) * directions[inext],
                    center + (radii[inext] + layer * zone_width) * directions[inext],
                )
            )
            if zone.inside_cell(h):
                zones.append(zone)

    for contact in sim.interactions:
        branch = _periodic_branch(sim, contact.i, contact.j)
        length = branch.norm()
        n = branch.normalized()
        t = Vec2(-n.y, n.x)
        f = contact.fn * n + contact.ft * t
        mid = h @ sim.particles[contact.i].pos + 0.5 * length * n
        for zone in zones:
            if zone.is_inside(mid):
                _add_dyad(zone.sigma, f, branch)

    for contact in sim.interactions_pipe:
        particle = sim.particles[contact.i]
        n = pipe.u[contact.inode].quarter_left_turned()
        branch = particle.radius * n
        t = Vec2(-n.y, n.x)
        f = contact.fn * n + contact.ft * t
        position = h @ particle.pos
        for zone in zones:
            if zone.is_inside(position):
                _add_dyad(zone.sigma, f, branch)

    for zone in zones:
        zone.sigma = zone.sigma / zone.volume()
        zone.pressure = 0.5 * (zone.sigma.xx + zone.sigma.yy)
        if abs(zone.sigma.yy) > 1e-8:
            zone.K = zone.sigma.xx / zone.sigma.yy
    return zones