from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields
from enum import Enum
from functools import cached_property
from typing import Optional, Tuple

from geoptics.optics.errors import OpticConfigError
from geoptics.optics.ray import Ray, ray_toward
from geoptics.optics.shapes import LineSegment, QuadraticCurve
from geoptics.optics.vec2 import Vec2

logger = logging.getLogger(__name__)

# Rays are refracted at this line in principal-rays mode; long enough for any view.
PRINCIPAL_LINE_HALF_LENGTH = 800.0

# Extremum points are pulled this far inside the optic so marginal rays always hit it.
EXTREMUM_EROSION = 1e-6

# Lens outlines are stylized: the drawn thickness does not follow the true ROC.
LENS_OFFSET_RADIUS = 100.0


class OpticType(str, Enum):
    LENS = "lens"
    MIRROR = "mirror"


class SurfaceType(str, Enum):
    CONVEX = "convex"
    CONCAVE = "concave"
    FLAT = "flat"


class Edge(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"


DEFAULT_INDEX_OF_REFRACTION = {
    OpticType.LENS: 1.5,
    # a mirror has the focal length of a lens with an index of refraction of 2
    OpticType.MIRROR: 2.0,
}


def is_converging(optic_type: OpticType, surface: SurfaceType) -> bool:
    if optic_type is OpticType.LENS:
        return surface is SurfaceType.CONVEX
    return surface is SurfaceType.CONCAVE


def focal_length_from_curvature(
    optic_type: OpticType,
    surface: SurfaceType,
    radius_of_curvature: float,
    index_of_refraction: float,
) -> float:
    """Lensmaker-style focal length f = +/- R / (2 (n - 1)), positive when converging."""
    if surface is SurfaceType.FLAT:
        return math.inf
    sign = 1.0 if is_converging(optic_type, surface) else -1.0
    return sign * radius_of_curvature / (2.0 * (index_of_refraction - 1.0))


class _LensSurfaces:
    """Lens-specific geometry: two refracting surfaces, rays leave toward +x."""

    transmission_sign = 1
    has_guides = True

    def half_width(self, radius: float, half_height: float) -> float:
        if math.isinf(radius):
            return 0.0
        return 0.5 * half_height * half_height / (radius + LENS_OFFSET_RADIUS)

    def curves(self, surface: SurfaceType, radius: float, diameter: float) -> Tuple[QuadraticCurve, Optional[QuadraticCurve]]:
        h = diameter / 2.0
        w = self.half_width(radius, h)
        top = Vec2(0.0, h)
        bottom = Vec2(0.0, -h)
        if surface is SurfaceType.CONCAVE:
            front = QuadraticCurve(Vec2(-w, h), Vec2(w / 2.0, 0.0), Vec2(-w, -h))
            back = QuadraticCurve(Vec2(w, h), Vec2(-w / 2.0, 0.0), Vec2(w, -h))
        else:
            # convex; flat is the w == 0 limit
            front = QuadraticCurve(top, Vec2(-2.0 * w, 0.0), bottom)
            back = QuadraticCurve(top, Vec2(2.0 * w, 0.0), bottom)
        return front, back

    def extremum_point(self, optic: "Optic", source: Vec2, target: Optional[Vec2], edge: Edge) -> Vec2:
        lo, hi = optic.bounds
        y_edge = hi.y - EXTREMUM_EROSION if edge is Edge.TOP else lo.y + EXTREMUM_EROSION
        position = optic.position

        if optic.surface is not SurfaceType.CONCAVE:
            return Vec2(position.x, y_edge)

        left = Vec2(lo.x, y_edge)
        right = Vec2(hi.x, y_edge)

        # Vertical offsets, measured at the lens centre, of the lines target->right corner
        # and source->left corner. The smaller one crosses both surfaces.
        offsets = []
        if target is not None:
            right_target = right - target
            if right_target.x != 0:
                offsets.append((right.y - position.y) + (position.x - right.x) * right_target.y / right_target.x)
        left_source = left - source
        if left_source.x != 0:
            offsets.append((left.y - position.y) + (position.x - left.x) * left_source.y / left_source.x)
        if not offsets:
            return Vec2(position.x, y_edge)
        offset_y = min(offsets, key=abs)
        return position.plus_xy(0.0, offset_y)

    def orient_outgoing(self, direction: Vec2) -> Vec2:
        return -direction if direction.x < 0 else direction


class _MirrorSurfaces:
    """Mirror-specific geometry: one reflecting curve, rays leave toward -x."""

    transmission_sign = -1
    has_guides = False

    def half_width(self, radius: float, half_height: float) -> float:
        if math.isinf(radius):
            return 0.0
        return radius - math.sqrt(max(radius * radius - half_height * half_height, 0.0))

    def curves(self, surface: SurfaceType, radius: float, diameter: float) -> Tuple[QuadraticCurve, Optional[QuadraticCurve]]:
        h = diameter / 2.0
        w = self.half_width(radius, h)
        curve_sign = 1.0 if surface is SurfaceType.CONVEX else -1.0
        # vertex at the origin, edges bent back for convex and forward for concave
        front = QuadraticCurve(
            Vec2(curve_sign * w, h),
            Vec2(-curve_sign * w, 0.0),
            Vec2(curve_sign * w, -h),
        )
        return front, None

    def extremum_point(self, optic: "Optic", source: Vec2, target: Optional[Vec2], edge: Edge) -> Vec2:
        # The mirror reflects light, so the extremum is on the curve's end point.
        front = optic.front_surface
        end = front.p0 if edge is Edge.TOP else front.p1
        inset = -EXTREMUM_EROSION if edge is Edge.TOP else EXTREMUM_EROSION
        return end.plus_xy(0.0, inset)

    def orient_outgoing(self, direction: Vec2) -> Vec2:
        return -direction if direction.x > 0 else direction


_SURFACES = {
    OpticType.LENS: _LensSurfaces(),
    OpticType.MIRROR: _MirrorSurfaces(),
}


@dataclass(frozen=True)
class Optic:
    """The single lens or mirror of a scene.

    Use `Optic.create` to build one from either a focal length or a
    (radius of curvature, index of refraction) pair. An update is a new Optic,
    see `updated`.
    """

    position: Vec2
    optic_type: OpticType
    surface: SurfaceType
    focal_length: float  # signed, cm; inf for flat
    diameter: float  # cm
    radius_of_curvature: float  # magnitude, cm; inf for flat
    index_of_refraction: float
    max_diameter: float = 130.0

    def __post_init__(self):
        if not (math.isfinite(self.diameter) and self.diameter > 0):
            raise OpticConfigError(f"diameter must be positive, got {self.diameter}")
        if not self.max_diameter >= self.diameter:
            raise OpticConfigError(f"diameter {self.diameter} exceeds max_diameter {self.max_diameter}")
        if math.isnan(self.focal_length) or self.focal_length == 0:
            raise OpticConfigError(f"focal length must be non-zero, got {self.focal_length}")
        if not self.index_of_refraction > 1:
            raise OpticConfigError(f"index of refraction must be > 1, got {self.index_of_refraction}")
        if not self.radius_of_curvature > 0:
            raise OpticConfigError(f"radius of curvature must be positive, got {self.radius_of_curvature}")
        if self.surface is SurfaceType.FLAT:
            if not math.isinf(self.focal_length):
                raise OpticConfigError("a flat optic has an infinite focal length")
        elif math.isinf(self.focal_length):
            raise OpticConfigError(f"a {self.surface.value} optic needs a finite focal length")
        elif (self.focal_length > 0) != is_converging(self.optic_type, self.surface):
            raise OpticConfigError(
                f"focal length {self.focal_length} has the wrong sign for a {self.surface.value} {self.optic_type.value}"
            )

    @classmethod
    def create(
        cls,
        optic_type: OpticType = OpticType.LENS,
        surface: SurfaceType = SurfaceType.CONVEX,
        position: Vec2 = Vec2(0.0, 0.0),
        focal_length: Optional[float] = None,
        diameter: float = 80.0,
        radius_of_curvature: Optional[float] = None,
        index_of_refraction: Optional[float] = None,
        max_diameter: float = 130.0,
    ) -> "Optic":
        optic_type = OpticType(optic_type)
        surface = SurfaceType(surface)
        n = index_of_refraction if index_of_refraction is not None else DEFAULT_INDEX_OF_REFRACTION[optic_type]
        if optic_type is OpticType.MIRROR and n != DEFAULT_INDEX_OF_REFRACTION[optic_type]:
            raise OpticConfigError(f"a mirror has a fixed index of refraction of 2, got {n}")
        if n <= 1:
            raise OpticConfigError(f"index of refraction must be > 1, got {n}")

        if surface is SurfaceType.FLAT:
            f = math.inf
            radius = math.inf
        elif focal_length is not None:
            if focal_length == 0:
                raise OpticConfigError("focal length must be non-zero")
            f = float(focal_length)
            radius = abs(f) * 2.0 * (n - 1.0)
        else:
            if radius_of_curvature is None:
                radius_of_curvature = 80.0 if optic_type is OpticType.LENS else 200.0
            if radius_of_curvature <= 0:
                raise OpticConfigError(f"radius of curvature must be positive, got {radius_of_curvature}")
            radius = float(radius_of_curvature)
            f = focal_length_from_curvature(optic_type, surface, radius, n)

        return cls(
            position=position,
            optic_type=optic_type,
            surface=surface,
            focal_length=f,
            diameter=float(diameter),
            radius_of_curvature=radius,
            index_of_refraction=n,
            max_diameter=float(max_diameter),
        )

    @classmethod
    def from_config(cls, config) -> "Optic":
        """Builds an optic from a `schema.OpticConfig`."""
        return cls.create(
            optic_type=config.type,
            surface=config.surface,
            position=Vec2(float(config.pos.x), float(config.pos.y)),
            focal_length=config.focal_length,
            diameter=config.diameter,
            radius_of_curvature=config.radius_of_curvature,
            index_of_refraction=config.index_of_refraction,
            max_diameter=config.max_diameter,
        )

    def updated(self, **changes) -> "Optic":
        """Returns a validated copy with the given fields changed.

        The copy goes through `create`, so derived values follow the change: a
        new focal length re-derives the radius of curvature, and otherwise the
        focal length is re-derived from the (new) radius, index of refraction
        and surface. A flat surface always gets an infinite focal length.
        """
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise TypeError(f"unknown optic field(s): {', '.join(sorted(unknown))}")

        optic_type = OpticType(changes.get("optic_type", self.optic_type))
        n = changes.get("index_of_refraction")
        if n is None and optic_type is self.optic_type:
            n = self.index_of_refraction

        radius = changes.get("radius_of_curvature", self.radius_of_curvature)
        if radius is not None and math.isinf(radius):
            # coming from a flat optic: fall back to the default radius
            radius = None

        return Optic.create(
            optic_type=optic_type,
            surface=changes.get("surface", self.surface),
            position=changes.get("position", self.position),
            focal_length=changes.get("focal_length"),
            diameter=changes.get("diameter", self.diameter),
            radius_of_curvature=radius,
            index_of_refraction=n,
            max_diameter=changes.get("max_diameter", self.max_diameter),
        )

    @property
    def _surfaces(self):
        return _SURFACES[self.optic_type]

    @property
    def transmission_sign(self) -> int:
        """+1 for transmission through a lens, -1 for reflection off a mirror."""
        return self._surfaces.transmission_sign

    @property
    def has_guides(self) -> bool:
        """Lenses carry a guide at each end; mirrors have none."""
        return self._surfaces.has_guides

    @cached_property
    def _local_curves(self) -> Tuple[QuadraticCurve, Optional[QuadraticCurve]]:
        return self._surfaces.curves(self.surface, self.radius_of_curvature, self.diameter)

    @cached_property
    def front_surface(self) -> QuadraticCurve:
        """Surface that an incoming ray hits first, in model coordinates."""
        return self._local_curves[0].translated(self.position)

    @cached_property
    def back_surface(self) -> Optional[QuadraticCurve]:
        """Exit surface of a lens, in model coordinates. A mirror has none."""
        back = self._local_curves[1]
        return None if back is None else back.translated(self.position)

    @cached_property
    def bounds(self) -> Tuple[Vec2, Vec2]:
        lo, hi = self.front_surface.bounds()
        if self.back_surface is not None:
            blo, bhi = self.back_surface.bounds()
            lo = Vec2(min(lo.x, blo.x), min(lo.y, blo.y))
            hi = Vec2(max(hi.x, bhi.x), max(hi.y, bhi.y))
        return lo, hi

    @property
    def left_focal_point(self) -> Optional[Vec2]:
        if math.isinf(self.focal_length):
            return None
        return self.position.plus_xy(-abs(self.focal_length), 0.0)

    @property
    def right_focal_point(self) -> Optional[Vec2]:
        if math.isinf(self.focal_length):
            return None
        return self.position.plus_xy(abs(self.focal_length), 0.0)

    def get_principal_line(self) -> LineSegment:
        """Vertical line through the optic, used as the surface in principal-rays mode."""
        return LineSegment(
            self.position.plus_xy(0.0, PRINCIPAL_LINE_HALF_LENGTH),
            self.position.plus_xy(0.0, -PRINCIPAL_LINE_HALF_LENGTH),
        )

    def get_front_shape(self, is_principal_mode: bool):
        if is_principal_mode:
            return self.get_principal_line()
        return self.front_surface

    def get_extremum_point(self, source: Vec2, target: Optional[Vec2], edge: Edge) -> Vec2:
        """Most extreme point of the optic that a ray from `source` can hit and still be
        transmitted (or reflected) toward `target`.
        """
        aim = self._surfaces.extremum_point(self, source, target, Edge(edge))
        ray = ray_toward(source, aim)
        if ray is None:
            return aim
        crossing = self.front_surface.intersect(ray.with_length(source.distance(aim)))
        return aim if crossing is None else crossing

    def get_top_point(self, source: Vec2, target: Optional[Vec2]) -> Vec2:
        return self.get_extremum_point(source, target, Edge.TOP)

    def get_bottom_point(self, source: Vec2, target: Optional[Vec2]) -> Vec2:
        return self.get_extremum_point(source, target, Edge.BOTTOM)

    def outgoing_ray(self, origin: Vec2, target: Vec2) -> Optional[Ray]:
        """Semi-infinite ray leaving the optic at `origin` along the line through `target`.

        Lens rays always travel toward +x, mirror rays toward -x.
        """
        direction = (origin - target).normalized()
        if direction.norm() == 0:
            logger.debug("outgoing ray origin coincides with target %s", target)
            return None
        return Ray(origin, self._surfaces.orient_outgoing(direction))
