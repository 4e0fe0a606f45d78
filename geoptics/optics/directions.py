from __future__ import annotations

import math
from enum import Enum
from typing import List, Optional

import numpy as np

from geoptics.optics.vec2 import Vec2, rotate

AXIS_DIRECTION = Vec2(1.0, 0.0)

MANY_RAYS_COUNT = 15
MANY_RAYS_SPREAD = math.pi / 4  # half-angle of the fan, radians


class LightRayMode(str, Enum):
    NONE = "none"
    MARGINAL = "marginal"
    PRINCIPAL = "principal"
    MANY = "many"


def _unit(v: Vec2) -> Vec2:
    # Degenerate directions fall back to the optical axis so the ray count never changes.
    u = v.normalized()
    if u.norm() == 0 or not u.is_finite():
        return AXIS_DIRECTION
    return u


def get_ray_directions(
    source: Vec2,
    optic,
    mode: LightRayMode,
    target: Optional[Vec2],
    many_count: int = MANY_RAYS_COUNT,
    many_spread: float = MANY_RAYS_SPREAD,
) -> List[Vec2]:
    """Initial unit directions of the rays leaving `source` for a light ray mode.

    `target` is the image position (may be None), used to aim marginal rays
    at a concave lens.
    """
    mode = LightRayMode(mode)
    source_optic = optic.position - source

    if mode is LightRayMode.MARGINAL:
        top = optic.get_top_point(source, target)
        bottom = optic.get_bottom_point(source, target)
        return [_unit(source_optic), _unit(top - source), _unit(bottom - source)]

    if mode is LightRayMode.PRINCIPAL:
        f = optic.focal_length
        if math.isinf(f):
            # no focal point: the "through focus" ray is axis-parallel
            focal = AXIS_DIRECTION
        else:
            focal = source_optic.plus_xy(-f, 0.0)
            # rays point away from the source
            if focal.x < 0:
                focal = -focal
        return [AXIS_DIRECTION, _unit(source_optic), _unit(focal)]

    if mode is LightRayMode.MANY:
        baseline = _unit(source_optic)
        angles = np.linspace(many_spread, -many_spread, many_count)
        return [_unit(rotate(baseline, float(a))) for a in angles]

    return []
