from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from geoptics.optics.ray import Ray
from geoptics.optics.vec2 import Vec2


def _nearest(ray: Ray, candidates: List[Vec2]) -> Optional[Vec2]:
    # Keep points ahead of the origin and within the ray's length, pick the closest one.
    best = None
    best_s = None
    for p in candidates:
        s = ray.direction.dot(p - ray.origin)
        if s <= 1e-9 or s > ray.length:
            continue
        if best_s is None or s < best_s:
            best_s = s
            best = p
    return best


@dataclass(frozen=True)
class LineSegment:
    start: Vec2
    end: Vec2

    def translated(self, offset: Vec2) -> "LineSegment":
        return LineSegment(self.start + offset, self.end + offset)

    def intersect(self, ray: Ray) -> Optional[Vec2]:
        e = self.end - self.start
        denom = ray.direction.cross(e)
        if abs(denom) < 1e-12:
            # Parallel (or collinear): treated as no crossing.
            return None
        w = self.start - ray.origin
        s = w.cross(e) / denom
        u = w.cross(ray.direction) / denom
        if u < -1e-9 or u > 1 + 1e-9:
            return None
        return _nearest(ray, [ray.point_at_distance(s)])


@dataclass(frozen=True)
class QuadraticCurve:
    """Quadratic Bezier curve B(t) = (1-t)^2 p0 + 2(1-t)t c + t^2 p1, t in [0, 1].

    Lens and mirror surfaces are drawn as these curves. A control point on the
    chord gives a straight segment, which is how flat surfaces are described.
    """

    p0: Vec2
    control: Vec2
    p1: Vec2

    def translated(self, offset: Vec2) -> "QuadraticCurve":
        return QuadraticCurve(self.p0 + offset, self.control + offset, self.p1 + offset)

    def point_at(self, t: float) -> Vec2:
        u = 1.0 - t
        return self.p0 * (u * u) + self.control * (2.0 * u * t) + self.p1 * (t * t)

    def bounds(self) -> Tuple[Vec2, Vec2]:
        """Axis-aligned (min, max) corners of the curve."""
        ts = [0.0, 1.0]
        for a0, ac, a1 in ((self.p0.x, self.control.x, self.p1.x), (self.p0.y, self.control.y, self.p1.y)):
            denom = a0 - 2.0 * ac + a1
            if abs(denom) > 1e-12:
                t = (a0 - ac) / denom
                if 0.0 < t < 1.0:
                    ts.append(t)
        pts = [self.point_at(t) for t in ts]
        return (
            Vec2(min(p.x for p in pts), min(p.y for p in pts)),
            Vec2(max(p.x for p in pts), max(p.y for p in pts)),
        )

    def intersect(self, ray: Ray) -> Optional[Vec2]:
        # Project the curve on the ray's normal: n . (B(t) - o) = 0 is quadratic in t.
        n = ray.direction.perp()
        a = n.dot(self.p0 - self.control * 2.0 + self.p1)
        b = 2.0 * n.dot(self.control - self.p0)
        c = n.dot(self.p0 - ray.origin)

        if abs(a) < 1e-12:
            if abs(b) < 1e-12:
                return None
            ts = [-c / b]
        else:
            disc = b * b - 4.0 * a * c
            if disc < 0:
                return None
            root = math.sqrt(disc)
            ts = [(-b - root) / (2.0 * a), (-b + root) / (2.0 * a)]

        pts = [self.point_at(min(max(t, 0.0), 1.0)) for t in ts if -1e-9 <= t <= 1.0 + 1e-9]
        return _nearest(ray, pts)
