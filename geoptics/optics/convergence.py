from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np

from geoptics.optics.ray import Ray
from geoptics.optics.vec2 import Vec2


@dataclass(frozen=True)
class RayLine:
    """Infinite line through `p0` along the unit vector `d`."""

    p0: Vec2
    d: Vec2

    @classmethod
    def from_ray(cls, ray: Ray) -> "RayLine":
        return cls(p0=ray.origin, d=ray.direction)


def estimate_convergence(lines: Iterable[RayLine]) -> Optional[Tuple[Vec2, float]]:
    """Point closest to all the lines, in the least-squares sense.

    Returns (point, spread_rms), spread_rms being the RMS perpendicular
    distance from the lines to the point. None for fewer than two lines or
    when they are all parallel.
    """
    lines = list(lines)
    if len(lines) < 2:
        return None

    origins = np.array([[ln.p0.x, ln.p0.y] for ln in lines], dtype=float)
    dirs = np.array([[ln.d.x, ln.d.y] for ln in lines], dtype=float)
    dirs /= np.linalg.norm(dirs, axis=1, keepdims=True) + 1e-15

    # one projector onto the normal space of each line
    projectors = np.eye(2)[None, :, :] - dirs[:, :, None] * dirs[:, None, :]
    A = projectors.sum(axis=0)
    b = np.einsum("nij,nj->i", projectors, origins)

    # A grows with the number of lines
    if abs(np.linalg.det(A)) < 1e-12 * len(lines) ** 2:
        return None

    p = np.linalg.solve(A, b)
    offsets = np.einsum("nij,nj->ni", projectors, p - origins)
    spread_rms = float(np.sqrt(np.mean(np.sum(offsets**2, axis=1))))

    return Vec2(float(p[0]), float(p[1])), spread_rms
