from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from geoptics.optics.optic import Edge, Optic, SurfaceType
from geoptics.optics.vec2 import Vec2, rotate


@dataclass(frozen=True)
class Guide:
    """Pair of guide arms hinged at one end of a lens.

    The incident arm points from the fulcrum toward the object; the transmitted
    arm shows where light leaving that end of the lens would go. Angles are
    measured from the +x axis, in radians.
    """

    edge: Edge
    fulcrum: Vec2
    incident_angle: float
    transmitted_angle: float

    @property
    def incident_direction(self) -> Vec2:
        return rotate(Vec2(1.0, 0.0), self.incident_angle)

    @property
    def transmitted_direction(self) -> Vec2:
        return rotate(Vec2(1.0, 0.0), self.transmitted_angle)


def deflection_angle(surface: SurfaceType, diameter: float, focal_length: float, edge: Edge) -> float:
    # Chosen so the transmitted arm lines up with the rays for an on-axis object at 2f.
    edge_sign = 1.0 if edge is Edge.TOP else -1.0
    toa = diameter / (4.0 * focal_length)  # 0 for a flat lens
    if surface is SurfaceType.CONCAVE:
        return -edge_sign * (math.atan(3.0 * toa) - math.atan(toa))
    return -edge_sign * 2.0 * math.atan(toa)


def get_guide(optic: Optic, source: Vec2, edge: Edge) -> Guide:
    edge = Edge(edge)
    edge_sign = 1.0 if edge is Edge.TOP else -1.0
    fulcrum = optic.position.plus_xy(0.0, edge_sign * optic.diameter / 2.0)
    incident_angle = (source - fulcrum).angle()
    # an undeflected ray keeps going straight through the fulcrum
    through_angle = incident_angle + math.pi
    transmitted_angle = through_angle + deflection_angle(optic.surface, optic.diameter, optic.focal_length, edge)
    return Guide(edge=edge, fulcrum=fulcrum, incident_angle=incident_angle, transmitted_angle=transmitted_angle)


def get_guides(optic: Optic, source: Vec2) -> Tuple[Guide, ...]:
    """Top and bottom guides of a lens for an object at `source`; empty for a mirror."""
    if not optic.has_guides:
        return ()
    return (get_guide(optic, source, Edge.TOP), get_guide(optic, source, Edge.BOTTOM))
