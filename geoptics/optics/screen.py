from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from geoptics.optics.optic import Optic
from geoptics.optics.shapes import LineSegment
from geoptics.optics.vec2 import Vec2

# Screen heights, in cm. "Near" and "far" refer to the pseudo-3D perspective.
SCREEN_NEAR_HEIGHT = 134.0
SCREEN_FAR_HEIGHT = 112.0

# Spots shorter than this are drawn at full intensity, cm.
FULL_INTENSITY_SPOT_HEIGHT = 7.0


@dataclass(frozen=True)
class ProjectionScreen:
    position: Vec2

    def get_bisector_line(self) -> LineSegment:
        """Vertical line through the middle of the screen, top to bottom."""
        half = (SCREEN_NEAR_HEIGHT + SCREEN_FAR_HEIGHT) / 4.0
        return LineSegment(self.position.plus_xy(0.0, half), self.position.plus_xy(0.0, -half))


@dataclass(frozen=True)
class LightSpot:
    """Elliptical spot cast by the optic's aperture on the screen."""

    center: Vec2
    radius_x: float
    radius_y: float
    intensity: float


def _project_through(point: Vec2, target: Vec2, screen_x: float, optic_x: float) -> Vec2:
    # Extends point->target onto the screen plane.
    target_optic_distance = target.x - optic_x
    if target_optic_distance == 0:
        return point
    ratio = (screen_x - optic_x) / target_optic_distance
    return point.blend(target, ratio)


def get_light_spot(screen: ProjectionScreen, optic: Optic, source: Vec2, target: Optional[Vec2]) -> Optional[LightSpot]:
    """Spot formed on the screen by the rays converging on (or diverging from) `target`.

    None when there is no finite image.
    """
    if target is None:
        return None
    top = optic.get_top_point(source, target)
    bottom = optic.get_bottom_point(source, target)
    spot_top = _project_through(top, target, screen.position.x, optic.position.x)
    spot_bottom = _project_through(bottom, target, screen.position.x, optic.position.x)

    radius_y = spot_top.distance(spot_bottom) / 2.0
    if radius_y == 0:
        intensity = 1.0
    else:
        intensity = min(1.0, max(0.0, FULL_INTENSITY_SPOT_HEIGHT / (2.0 * radius_y)))

    return LightSpot(
        center=spot_top.average(spot_bottom),
        # aspect ratio of 1/2 gives a 3D perspective
        radius_x=radius_y / 2.0,
        radius_y=radius_y,
        intensity=intensity,
    )
