"""Two-dimensional vectors, 2x2 matrices and the periodic cell."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, Union, overload


@dataclass(frozen=True, slots=True)
class Vec2:
    """An immutable 2D vector."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __neg__(self) -> Vec2:
        return Vec2(-self.x, -self.y)

    def __mul__(self, scalar: float) -> Vec2:
        return Vec2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vec2:
        return Vec2(self.x / scalar, self.y / scalar)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def dot(self, other: Vec2) -> float:
        """Scalar product."""
        return self.x * other.x + self.y * other.y

    def cross(self, other: Vec2) -> float:
        """Out-of-plane component of the cross product."""
        return self.x * other.y - self.y * other.x

    def norm2(self) -> float:
        """Squared length."""
        return self.x * self.x + self.y * self.y

    def norm(self) -> float:
        """Length."""
        return math.hypot(self.x, self.y)

    def normalized(self) -> Vec2:
        """Unit vector with the same direction; a zero vector stays zero."""
        length = self.norm()
        if length == 0.0:
            return self
        return Vec2(self.x / length, self.y / length)

    def quarter_left_turned(self) -> Vec2:
        """The vector rotated by +90 degrees."""
        return Vec2(-self.y, self.x)

    def quarter_right_turned(self) -> Vec2:
        """The vector rotated by -90 degrees."""
        return Vec2(self.y, -self.x)


@dataclass(slots=True)
class Mat4:
    """A 2x2 matrix stored as xx, xy (first row) and yx, yy (second row)."""

    xx: float = 0.0
    xy: float = 0.0
    yx: float = 0.0
    yy: float = 0.0

    @classmethod
    def identity(cls) -> Mat4:
        """The unit matrix."""
        return cls(1.0, 0.0, 0.0, 1.0)

    def __add__(self, other: Mat4) -> Mat4:
        return Mat4(self.xx + other.xx, self.xy + other.xy, self.yx + other.yx, self.yy + other.yy)

    def __sub__(self, other: Mat4) -> Mat4:
        return Mat4(self.xx - other.xx, self.xy - other.xy, self.yx - other.yx, self.yy - other.yy)

    def __neg__(self) -> Mat4:
        return Mat4(-self.xx, -self.xy, -self.yx, -self.yy)

    def __mul__(self, scalar: float) -> Mat4:
        return Mat4(self.xx * scalar, self.xy * scalar, self.yx * scalar, self.yy * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Mat4:
        return Mat4(self.xx / scalar, self.xy / scalar, self.yx / scalar, self.yy / scalar)

    @overload
    def __matmul__(self, other: Vec2) -> Vec2: ...

    @overload
    def __matmul__(self, other: Mat4) -> Mat4: ...

    def __matmul__(self, other: Union[Vec2, Mat4]) -> Union[Vec2, Mat4]:
        if isinstance(other, Vec2):
            return Vec2(self.xx * other.x + self.xy * other.y, self.yx * other.x + self.yy * other.y)
        if isinstance(other, Mat4):
            return Mat4(
                self.xx * other.xx + self.xy * other.yx,
                self.xx * other.xy + self.xy * other.yy,
                self.yx * other.xx + self.yy * other.yx,
                self.yx * other.xy + self.yy * other.yy,
            )
        return NotImplemented

    def __iter__(self) -> Iterator[float]:
        yield self.xx
        yield self.xy
        yield self.yx
        yield self.yy

    def det(self) -> float:
        """Determinant."""
        return self.xx * self.yy - self.xy * self.yx

    def inverse(self) -> Mat4:
        """Inverse matrix; raises ValueError if the matrix is singular."""
        d = self.det()
        if d == 0.0:
            raise ValueError("singular matrix has no inverse")
        return Mat4(self.yy / d, -self.xy / d, -self.yx / d, self.xx / d)

    def transposed(self) -> Mat4:
        """Transposed matrix."""
        return Mat4(self.xx, self.yx, self.xy, self.yy)


def angle_between_vectors(a: Vec2, b: Vec2) -> float:
    """Signed angle (radians) that turns ``a`` onto ``b``."""
    return math.atan2(a.cross(b), a.dot(b))


@dataclass
class PeriodicCell:
    """Periodic cell: shape matrix h, its rate vh and acceleration ah."""

    h: Mat4 = field(default_factory=Mat4)
    vh: Mat4 = field(default_factory=Mat4)
    ah: Mat4 = field(default_factory=Mat4)
    mass: float = 0.0

    def define(self, a1x: float, a1y: float, a2x: float, a2y: float) -> None:
        """Set h from the two cell vectors a1 (first column) and a2 (second column)."""
        self.h.xx = a1x
        self.h.xy = a2x
        self.h.yx = a1y
        self.h.yy = a2y