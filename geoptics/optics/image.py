from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from geoptics.optics.optic import Optic
from geoptics.optics.vec2 import Vec2

logger = logging.getLogger(__name__)

# Object distances this close to the focal length form no finite image.
FOCAL_POINT_EPSILON = 1e-9


class ImageType(str, Enum):
    REAL = "real"
    VIRTUAL = "virtual"


@dataclass(frozen=True)
class OpticalImage:
    """Image of one source point, as predicted by the thin lens / mirror equation.

    `position` is None when the object sits on the focal point (the image is at
    infinity). `image_distance` is the signed horizontal offset of the image
    from the optic in model coordinates.
    """

    position: Optional[Vec2]
    image_distance: float
    magnification: float
    image_type: ImageType
    light_intensity: float

    @property
    def is_virtual(self) -> bool:
        return self.image_type is ImageType.VIRTUAL

    @property
    def is_real(self) -> bool:
        return self.image_type is ImageType.REAL

    @property
    def is_inverted(self) -> bool:
        return self.position is not None and self.magnification < 0


def object_distance(object_position: Vec2, optic_position: Vec2) -> float:
    """Horizontal distance from the object to the optic; negative if the object is right of it."""
    return optic_position.x - object_position.x


def is_virtual_image(transmission_sign: int, d_o: float, f: float) -> bool:
    # Lenses and mirrors use different boundaries; keep the two rules separate.
    if transmission_sign > 0:
        return d_o < f or f < 0
    return d_o > f or f > 0


def _optic_image_distance(d_o: float, f: float) -> float:
    # Thin lens law / mirror equation, measured away from the optic on the outgoing side.
    if math.isinf(f):
        return -d_o
    return (f * d_o) / (d_o - f)


def light_intensity(diameter: float, max_diameter: float, magnification: float) -> float:
    """Image brightness in [0, 1]: wider optics are brighter, enlarged images are dimmer."""
    diameter_factor = diameter / max_diameter
    if magnification == 0 or not math.isfinite(magnification):
        magnification_factor = 1.0 if magnification == 0 else 0.0
    else:
        magnification_factor = min(1.0, abs(1.0 / magnification))
    return min(1.0, max(0.0, diameter_factor * magnification_factor))


def solve_image(object_position: Vec2, optic: Optic) -> OpticalImage:
    """OpticalImageSolver: locate and classify the image of `object_position`."""
    sign = optic.transmission_sign
    f = optic.focal_length
    d_o = object_distance(object_position, optic.position)
    image_type = ImageType.VIRTUAL if is_virtual_image(sign, d_o, f) else ImageType.REAL

    if math.isfinite(f) and abs(d_o - f) < FOCAL_POINT_EPSILON:
        logger.debug("object at the focal point (d_o=%s), no finite image", d_o)
        return OpticalImage(
            position=None,
            image_distance=math.inf,
            magnification=math.inf,
            image_type=image_type,
            light_intensity=0.0,
        )

    optic_distance = _optic_image_distance(d_o, f)
    image_distance = sign * optic_distance

    if d_o == 0:
        # object on the optic
        magnification = 1.0
    else:
        magnification = -optic_distance / d_o

    height = magnification * (object_position.y - optic.position.y)
    position = optic.position.plus_xy(image_distance, height)

    return OpticalImage(
        position=position,
        image_distance=image_distance,
        magnification=magnification,
        image_type=image_type,
        light_intensity=light_intensity(optic.diameter, optic.max_diameter, magnification),
    )
