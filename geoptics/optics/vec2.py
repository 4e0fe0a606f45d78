from __future__ import annotations

from dataclasses import dataclass
import math


@dataclass(frozen=True)
class Vec2:
    x: float
    y: float

    def __add__(self, o: "Vec2") -> "Vec2":
        return Vec2(self.x + o.x, self.y + o.y)

    def __sub__(self, o: "Vec2") -> "Vec2":
        return Vec2(self.x - o.x, self.y - o.y)

    def __mul__(self, s: float) -> "Vec2":
        return Vec2(self.x * s, self.y * s)

    __rmul__ = __mul__

    def __neg__(self) -> "Vec2":
        return Vec2(-self.x, -self.y)

    def plus_xy(self, dx: float, dy: float) -> "Vec2":
        return Vec2(self.x + dx, self.y + dy)

    def dot(self, o: "Vec2") -> float:
        return self.x * o.x + self.y * o.y

    def cross(self, o: "Vec2") -> float:
        return self.x * o.y - self.y * o.x

    def norm(self) -> float:
        return math.hypot(self.x, self.y)

    def distance(self, o: "Vec2") -> float:
        return math.hypot(self.x - o.x, self.y - o.y)

    def normalized(self) -> "Vec2":
        n = self.norm()
        if n == 0:
            return Vec2(0.0, 0.0)
        return Vec2(self.x / n, self.y / n)

    def perp(self) -> "Vec2":
        return Vec2(-self.y, self.x)

    def angle(self) -> float:
        return math.atan2(self.y, self.x)

    def blend(self, o: "Vec2", ratio: float) -> "Vec2":
        """Linear interpolation: ratio 0 is self, 1 is `o`."""
        return Vec2(self.x + (o.x - self.x) * ratio, self.y + (o.y - self.y) * ratio)

    def average(self, o: "Vec2") -> "Vec2":
        return self.blend(o, 0.5)

    def equals_eps(self, o: "Vec2", eps: float) -> bool:
        return abs(self.x - o.x) <= eps and abs(self.y - o.y) <= eps

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


def rotate(v: Vec2, theta: float) -> Vec2:
    c = math.cos(theta)
    s = math.sin(theta)
    return Vec2(c * v.x - s * v.y, s * v.x + c * v.y)
