"""Loadings applied to the collective degrees of freedom of the cell."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .cell import Mat4, PeriodicCell

FORCE_DRIVEN = True
VELOCITY_DRIVEN = False

COMMAND_ARGUMENTS = {
    "BiaxialCompression": 2,
    "IsostaticCompression": 1,
    "SimpleShear": 2,
    "VelocityControl": 4,
}


@dataclass
class Drive:
    """Per-component control mode: True when stress driven, False when velocity driven."""

    xx: bool = VELOCITY_DRIVEN
    xy: bool = VELOCITY_DRIVEN
    yx: bool = VELOCITY_DRIVEN
    yy: bool = VELOCITY_DRIVEN


@dataclass
class Loading:
    """Imposed stress and velocity on the cell, and the command that set them."""

    drive: Drive = field(default_factory=Drive)
    sig: Mat4 = field(default_factory=Mat4)
    vh: Mat4 = field(default_factory=Mat4)
    command: str = ""
    gamma_dot: Optional[float] = None

    def biaxial_compression(self, pressure: float, velocity: float) -> None:
        """Lateral pressure on xx, imposed compression velocity on yy."""
        self.command = "BiaxialCompression %g %g" % (pressure, velocity)
        self.drive = Drive(xx=FORCE_DRIVEN, xy=VELOCITY_DRIVEN, yx=VELOCITY_DRIVEN, yy=VELOCITY_DRIVEN)
        self.sig = Mat4(xx=pressure)
        self.vh = Mat4(yy=-velocity)
        self.gamma_dot = None

    def isostatic_compression(self, pressure: float) -> None:
        """Same pressure on xx and yy, no shear."""
        self.command = "IsostaticCompression %g" % pressure
        self.drive = Drive(xx=FORCE_DRIVEN, xy=VELOCITY_DRIVEN, yx=VELOCITY_DRIVEN, yy=FORCE_DRIVEN)
        self.sig = Mat4(xx=pressure, yy=pressure)
        self.vh = Mat4()
        self.gamma_dot = None

    def simple_shear(self, pressure: float, gamma_dot: float) -> None:
        """Pressure on yy and a shear rate driving vh.xy."""
        self.command = "SimpleShear %g %g" % (pressure, gamma_dot)
        self.drive = Drive(xx=VELOCITY_DRIVEN, xy=VELOCITY_DRIVEN, yx=VELOCITY_DRIVEN, yy=FORCE_DRIVEN)
        self.sig = Mat4(yy=pressure)
        self.vh = Mat4()
        self.gamma_dot = gamma_dot

    def velocity_control(self, vxx: float, vxy: float, vyx: float, vyy: float) -> None:
        """All components driven by imposed velocities."""
        self.command = "VelocityControl %g %g %g %g" % (vxx, vxy, vyx, vyy)
        self.drive = Drive()
        self.sig = Mat4()
        self.vh = Mat4(vxx, vxy, vyx, vyy)
        self.gamma_dot = None

    def servo(self, cell: PeriodicCell) -> None:
        """Update imposed velocities from the current cell (simple shear only)."""
        if self.gamma_dot is not None:
            self.vh.xy = self.gamma_dot * cell.h.yy

    @classmethod
    def from_command(cls, text: str) -> Loading:
        """Build a loading from a stored command such as 'IsostaticCompression 1000'."""
        name, *args = text.split()
        if name not in COMMAND_ARGUMENTS:
            raise ValueError(f"unknown command for loading: {name}")
        if len(args) != COMMAND_ARGUMENTS[name]:
            raise ValueError(f"{name} takes {COMMAND_ARGUMENTS[name]} values, got {len(args)}")
        values = [float(a) for a in args]
        load = cls()
        setter = {
            "BiaxialCompression": load.biaxial_compression,
            "IsostaticCompression": load.isostatic_compression,
            "SimpleShear": load.simple_shear,
            "VelocityControl": load.velocity_control,
        }[name]
        setter(*values)
        return load