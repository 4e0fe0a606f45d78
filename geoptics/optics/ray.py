from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional

from geoptics.optics.vec2 import Vec2

ALONG_RAY_EPSILON = 1e-4


@dataclass(frozen=True)
class Ray:
    """A ray with an origin, a unit direction and a length.

    The length is `math.inf` for a semi-infinite ray. Rays are immutable:
    shortening a ray returns a new one.
    """

    origin: Vec2
    direction: Vec2  # unit vector
    length: float = math.inf

    def __post_init__(self):
        if abs(self.direction.norm() - 1.0) > 1e-6:
            raise ValueError(f"ray direction must be a unit vector, got {self.direction}")
        if not self.length > 0:
            raise ValueError(f"ray length must be positive, got {self.length}")

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.length)

    @property
    def end(self) -> Vec2:
        """End point of a finite ray."""
        return self.point_at_distance(self.length)

    def point_at_distance(self, distance: float) -> Vec2:
        return self.origin + self.direction * distance

    def with_length(self, length: float) -> "Ray":
        return replace(self, length=length)

    def with_final_point(self, point: Vec2) -> "Ray":
        """Returns this ray ending at `point`, which must lie along the ray."""
        return self.with_length((point - self.origin).norm())

    def is_point_along_ray(self, point: Vec2, epsilon: float = ALONG_RAY_EPSILON) -> bool:
        displacement = point - self.origin
        return displacement.normalized().equals_eps(self.direction, epsilon)

    def distance_to(self, point: Vec2) -> float:
        """Signed distance from the origin to the projection of `point` on the ray line."""
        return self.direction.dot(point - self.origin)


def ray_toward(origin: Vec2, target: Vec2) -> Optional[Ray]:
    """Semi-infinite ray from `origin` through `target`, None if the two coincide."""
    d = (target - origin).normalized()
    if d.norm() == 0:
        return None
    return Ray(origin, d)
