"""Pipe section forces for polar plots, ghost images of particles and view fitting."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .cell import Mat4, Vec2


@dataclass
class PipeNodeData:
    """Section data at the middle of one pipe side."""

    angle_rad: float = 0.0
    N: float = 0.0
    M: float = 0.0
    external_hoop_stress: float = 0.0


def pipe_node_data(sim: Any) -> list[PipeNodeData]:
    """Axial force, bending moment and external hoop stress for each pipe side.

    The angle is the polar position of the side middle around the pipe center,
    measured from the x axis in the range [0, 2*pi).
    """
    pipe = sim.pipe
    h = sim.cell.h
    count = len(pipe.pos)
    if count == 0:
        return []

    bar_positions = [
        h @ pos + 0.5 * length * u
        for pos, length, u in zip(pipe.pos, pipe.lengths, pipe.u)
    ]
    center = sum(bar_positions, Vec2()) / count
    thickness = 2.0 * pipe.node_radius

    data = []
    for i, bar in enumerate(bar_positions):
        inext = (i + 1) % count
        rel = bar - center
        angle = math.atan2(rel.y, rel.x)
        if angle < 0.0:
            angle += 2.0 * math.pi
        half_side = 0.5 * pipe.lengths[i] * pipe.u[i]
        axial = (pipe.forces[inext] - pipe.forces[i]).dot(pipe.u[i])
        moment = half_side.cross(pipe.forces[inext] + pipe.forces[i])
        hoop = axial / thickness - 6.0 * moment / (thickness * thickness)
        data.append(PipeNodeData(angle_rad=angle, N=axial, M=moment, external_hoop_stress=hoop))
    return data


def ghost_positions(pos: Vec2, mn: float, mx: float) -> list[Vec2]:
    """Reduced positions of the periodic images of a particle lying near the cell border.

    A particle strictly inside the band (mn, mx) in both directions has no ghost.
    Corner images are listed once for each border that produces them.
    """
    if mn < pos.x < mx and mn < pos.y < mx:
        return []

    ghosts: list[Vec2] = []
    if pos.x <= mn:
        ghosts.append(Vec2(pos.x + 1.0, pos.y))
        if pos.y <= mn:
            ghosts.append(Vec2(pos.x + 1.0, pos.y + 1.0))
        if pos.y >= mx:
            ghosts.append(Vec2(pos.x + 1.0, pos.y - 1.0))
    if pos.x >= mx:
        ghosts.append(Vec2(pos.x - 1.0, pos.y))
        if pos.y <= mn:
            ghosts.append(Vec2(pos.x - 1.0, pos.y + 1.0))
        if pos.y >= mx:
            ghosts.append(Vec2(pos.x - 1.0, pos.y - 1.0))
    if pos.y <= mn:
        ghosts.append(Vec2(pos.x, pos.y + 1.0))
        if pos.x <= mn:
            ghosts.append(Vec2(pos.x + 1.0, pos.y + 1.0))
        if pos.x >= mx:
            ghosts.append(Vec2(pos.x - 1.0, pos.y + 1.0))
    if pos.y >= mx:
        ghosts.append(Vec2(pos.x, pos.y - 1.0))
        if pos.x <= mn:
            ghosts.append(Vec2(pos.x + 1.0, pos.y - 1.0))
        if pos.x >= mx:
            ghosts.append(Vec2(pos.x - 1.0, pos.y - 1.0))
    return ghosts


def fit_view(h: Mat4) -> tuple[Vec2, Vec2]:
    """Lower-left and upper-right corners of the box that bounds the cell of shape h."""
    corners = [
        Vec2(0.0, 0.0),
        Vec2(h.xy, h.yy),
        Vec2(h.xy + h.xx, h.yy + h.yx),
        Vec2(h.xx, h.yx),
    ]
    xs = [c.x for c in corners]
    ys = [c.y for c in corners]
    return Vec2(min(xs), min(ys)), Vec2(max(xs), max(ys))