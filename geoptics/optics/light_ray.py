from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from geoptics.optics.optic import Optic
from geoptics.optics.ray import Ray
from geoptics.optics.screen import ProjectionScreen
from geoptics.optics.vec2 import Vec2

logger = logging.getLogger(__name__)

DEFAULT_LIGHT_SPEED = 400.0  # cm/s


@dataclass(frozen=True)
class RaySegment:
    start: Vec2
    end: Vec2

    @property
    def length(self) -> float:
        return self.start.distance(self.end)


@dataclass(frozen=True)
class LightRay:
    """One traced light ray: the segments drawn so far and whether it reached its target.

    `real_rays` and `virtual_ray` are the complete (unanimated) geometry the
    segments are cut from.
    """

    real_segments: Tuple[RaySegment, ...]
    virtual_segments: Tuple[RaySegment, ...]
    reached_target: bool
    real_rays: Tuple[Ray, ...]
    virtual_ray: Optional[Ray] = None

    @property
    def drawn_length(self) -> float:
        return sum(s.length for s in self.real_segments)


class RayPropagator:
    """Traces initial rays through the optic toward (or away from) the image point."""

    def __init__(self, optic: Optic, target: Optional[Vec2], is_virtual: bool, is_principal_mode: bool):
        self.optic = optic
        self.target = target
        self.is_virtual = is_virtual
        self.is_principal_mode = is_principal_mode

    def first_point(self, initial: Ray) -> Optional[Vec2]:
        return self.optic.get_front_shape(self.is_principal_mode).intersect(initial)

    def real_rays(self, initial: Ray) -> List[Ray]:
        """Sequential real rays; the last one is semi-infinite."""
        first = self.first_point(initial)
        if first is None:
            return [initial]

        incident = initial.with_final_point(first)
        rays = [incident]
        if self.target is None:
            # object at the focal point: no finite image to aim at
            return rays

        back = self.optic.back_surface
        if self.is_principal_mode or back is None:
            # one surface to hit; a mirror has no back surface
            transmitted = self.optic.outgoing_ray(first, self.target)
            if transmitted is not None:
                rays.append(transmitted)
            return rays

        intermediate = self.intermediate_point(initial, first)
        candidate = self.optic.outgoing_ray(intermediate, self.target)
        back_point = back.intersect(candidate) if candidate is not None else None

        if back_point is not None and back_point.distance(first) > 0:
            internal = Ray(first, (back_point - first).normalized()).with_final_point(back_point)
            rays.append(internal)
            transmitted = self.optic.outgoing_ray(back_point, self.target)
        else:
            # steep rays can miss the curved back surface
            transmitted = self.optic.outgoing_ray(first, self.target)
        if transmitted is not None:
            rays.append(transmitted)
        return rays

    def intermediate_point(self, initial: Ray, first: Vec2) -> Vec2:
        """Point where the incident line crosses the vertical line through the optic."""
        optic_source = self.optic.position - initial.origin
        first_source = first - initial.origin
        if first_source.x == 0:
            return first
        return initial.origin.blend(first, optic_source.x / first_source.x)

    def virtual_ray(self, real_rays: List[Ray]) -> Optional[Ray]:
        """Backward extension of the last real ray to the virtual image, if it lines up."""
        if not self.is_virtual or self.target is None or len(real_rays) < 2:
            return None
        last = real_rays[-1]
        virtual = Ray(last.origin, -last.direction)
        if not virtual.is_point_along_ray(self.target):
            return None
        return virtual.with_final_point(self.target)


def clip_to_screen(real_rays: List[Ray], screen: ProjectionScreen) -> bool:
    """ScreenClipper: ends the last real ray on the screen's bisector line.

    Modifies `real_rays` in place and returns True if the ray was clipped.
    """
    if not real_rays:
        return False
    on_screen = screen.get_bisector_line().intersect(real_rays[-1])
    if on_screen is None:
        return False
    real_rays[-1] = real_rays[-1].with_final_point(on_screen)
    return True


def has_reached_target(
    real_rays: List[Ray],
    virtual_ray: Optional[Ray],
    distance_traveled: float,
    is_screen_clipped: bool,
    target: Optional[Vec2],
) -> bool:
    # Only rays that have been refracted (or reflected) can reach the target.
    if len(real_rays) < 2:
        return False

    if is_screen_clipped:
        distance = sum(r.length for r in real_rays)
    else:
        if target is None:
            return False
        distance = sum(r.length for r in real_rays[:-1] if r.is_finite)
        target_ray = virtual_ray if virtual_ray is not None else real_rays[-1]
        distance += target_ray.distance_to(target)
    return distance_traveled > distance


def sample_segments(
    real_rays: List[Ray],
    virtual_ray: Optional[Ray],
    distance_traveled: float,
) -> Tuple[List[RaySegment], List[RaySegment]]:
    """AnimationSampler: the parts of the rays covered after `distance_traveled`."""
    real_segments: List[RaySegment] = []
    virtual_segments: List[RaySegment] = []
    remaining = distance_traveled
    last_index = len(real_rays) - 1

    i = 0
    while remaining > 0 and i < len(real_rays):
        ray = real_rays[i]
        covered = min(remaining, ray.length)
        real_segments.append(RaySegment(ray.origin, ray.point_at_distance(covered)))

        # The virtual ray starts where the last real ray starts.
        if virtual_ray is not None and i == last_index:
            virtual_covered = min(remaining, virtual_ray.length)
            virtual_segments.append(RaySegment(virtual_ray.origin, virtual_ray.point_at_distance(virtual_covered)))

        remaining -= covered
        i += 1

    return real_segments, virtual_segments


def trace_light_ray(
    initial: Ray,
    elapsed_time: float,
    optic: Optic,
    target: Optional[Vec2],
    is_virtual: bool,
    is_principal_mode: bool,
    screen: Optional[ProjectionScreen] = None,
    light_speed: float = DEFAULT_LIGHT_SPEED,
) -> LightRay:
    """Traces one ray from the source and cuts it to what has been drawn after `elapsed_time`."""
    if elapsed_time < 0 or math.isnan(elapsed_time):
        raise ValueError(f"elapsed time must be non-negative, got {elapsed_time}")

    distance_traveled = light_speed * elapsed_time
    propagator = RayPropagator(optic, target, is_virtual, is_principal_mode)
    real_rays = propagator.real_rays(initial)

    is_screen_clipped = False
    if screen is not None and not is_virtual:
        is_screen_clipped = clip_to_screen(real_rays, screen)

    virtual_ray = propagator.virtual_ray(real_rays)
    if is_virtual and len(real_rays) > 1 and virtual_ray is None:
        logger.debug("ray from %s does not line up with virtual image %s", initial.origin, target)

    reached = has_reached_target(real_rays, virtual_ray, distance_traveled, is_screen_clipped, target)
    real_segments, virtual_segments = sample_segments(real_rays, virtual_ray, distance_traveled)

    return LightRay(
        real_segments=tuple(real_segments),
        virtual_segments=tuple(virtual_segments),
        reached_target=reached,
        real_rays=tuple(real_rays),
        virtual_ray=virtual_ray,
    )
