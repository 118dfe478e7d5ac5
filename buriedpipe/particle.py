"""Disk particles and the interaction records between them and the pipe."""

from __future__ import annotations

from dataclasses import dataclass

from .cell import Vec2


@dataclass
class Particle:
    """A disk; pos, vel and acc are in reduced (cell) coordinates."""

    pos: Vec2 = Vec2()
    vel: Vec2 = Vec2()
    acc: Vec2 = Vec2()
    rot: float = 0.0
    vrot: float = 0.0
    arot: float = 0.0
    radius: float = 0.0
    inertia: float = 0.0
    mass: float = 0.0
    force: Vec2 = Vec2()
    moment: float = 0.0


@dataclass
class Interaction:
    """Contact between particles i and j."""

    i: int = 0
    j: int = 0
    damp: float = 0.0
    fn: float = 0.0
    ft: float = 0.0


@dataclass
class InteractionPipe:
    """Contact between particle i and the pipe side starting at node inode."""

    i: int = 0
    inode: int = 0
    damp: float = 0.0
    proj_div_L: float = 0.0
    fn: float = 0.0
    ft: float = 0.0