from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from geoptics.optics.convergence import RayLine, estimate_convergence
from geoptics.optics.directions import MANY_RAYS_COUNT, MANY_RAYS_SPREAD, LightRayMode, get_ray_directions
from geoptics.optics.errors import SceneConfigError
from geoptics.optics.guides import Guide, get_guides
from geoptics.optics.image import OpticalImage, solve_image
from geoptics.optics.light_ray import DEFAULT_LIGHT_SPEED, LightRay, RaySegment, trace_light_ray
from geoptics.optics.optic import Optic
from geoptics.optics.ray import Ray
from geoptics.optics.screen import LightSpot, ProjectionScreen, get_light_spot
from geoptics.optics.vec2 import Vec2

logger = logging.getLogger(__name__)

MAX_SOURCES = 2
DEFAULT_ANIMATION_TIME = 10.0  # s


@dataclass(frozen=True)
class RayBundle:
    """All light rays leaving one source point, with the image they form."""

    source: Vec2
    image: OpticalImage
    light_rays: Tuple[LightRay, ...]
    light_spot: Optional[LightSpot] = None
    guides: Tuple[Guide, ...] = ()

    @property
    def real_segments(self) -> Tuple[RaySegment, ...]:
        return tuple(s for lr in self.light_rays for s in lr.real_segments)

    @property
    def virtual_segments(self) -> Tuple[RaySegment, ...]:
        return tuple(s for lr in self.light_rays for s in lr.virtual_segments)

    @property
    def reached_target(self) -> bool:
        return any(lr.reached_target for lr in self.light_rays)

    @property
    def image_visible(self) -> bool:
        # The image shows up once the first ray gets there.
        return self.image.position is not None and self.reached_target

    def convergence(self) -> Optional[Tuple[Vec2, float]]:
        """Least-squares point where the outgoing rays (or their virtual extensions) meet."""
        lines = []
        for lr in self.light_rays:
            if len(lr.real_rays) < 2:
                continue
            ray = lr.virtual_ray if self.image.is_virtual and lr.virtual_ray is not None else lr.real_rays[-1]
            lines.append(RayLine.from_ray(ray))
        return estimate_convergence(lines)


@dataclass(frozen=True)
class RayBundleResult:
    ray_mode: LightRayMode
    elapsed_time: float
    bundles: Tuple[RayBundle, ...]


def build_ray_bundle(
    source: Vec2,
    optic: Optic,
    ray_mode: LightRayMode,
    elapsed_time: float,
    screen: Optional[ProjectionScreen] = None,
    light_speed: float = DEFAULT_LIGHT_SPEED,
    many_rays_count: int = MANY_RAYS_COUNT,
    many_rays_spread: float = MANY_RAYS_SPREAD,
) -> RayBundle:
    ray_mode = LightRayMode(ray_mode)
    image = solve_image(source, optic)
    target = image.position
    directions = get_ray_directions(source, optic, ray_mode, target, many_rays_count, many_rays_spread)
    is_principal = ray_mode is LightRayMode.PRINCIPAL

    light_rays = tuple(
        trace_light_ray(
            Ray(source, direction),
            elapsed_time,
            optic,
            target,
            image.is_virtual,
            is_principal,
            screen=screen,
            light_speed=light_speed,
        )
        for direction in directions
    )

    light_spot = None
    if screen is not None and image.is_real:
        light_spot = get_light_spot(screen, optic, source, target)

    return RayBundle(
        source=source,
        image=image,
        light_rays=light_rays,
        light_spot=light_spot,
        guides=get_guides(optic, source),
    )


def recompute(
    optic: Optic,
    sources: Sequence[Vec2],
    ray_mode: LightRayMode,
    elapsed_time: float,
    screen: Optional[ProjectionScreen] = None,
    light_speed: float = DEFAULT_LIGHT_SPEED,
    many_rays_count: int = MANY_RAYS_COUNT,
    many_rays_spread: float = MANY_RAYS_SPREAD,
) -> RayBundleResult:
    """Builds a fresh, immutable result for every source. Pure: same inputs, same output."""
    if len(sources) > MAX_SOURCES:
        raise SceneConfigError(f"at most {MAX_SOURCES} sources are supported, got {len(sources)}")
    ray_mode = LightRayMode(ray_mode)
    bundles = tuple(
        build_ray_bundle(
            source,
            optic,
            ray_mode,
            elapsed_time,
            screen=screen,
            light_speed=light_speed,
            many_rays_count=many_rays_count,
            many_rays_spread=many_rays_spread,
        )
        for source in sources
    )
    logger.debug(
        "recomputed %d bundle(s), mode=%s, t=%.3f, segments=%s",
        len(bundles),
        ray_mode.value,
        elapsed_time,
        [len(b.real_segments) for b in bundles],
    )
    return RayBundleResult(ray_mode=ray_mode, elapsed_time=elapsed_time, bundles=bundles)


class AnimationClock:
    """Elapsed time of the rays animation, advanced by the host's frame deltas."""

    def __init__(self, max_time: float = DEFAULT_ANIMATION_TIME):
        if not max_time > 0:
            raise ValueError(f"max_time must be positive, got {max_time}")
        self.max_time = float(max_time)
        self.elapsed_time = 0.0

    @property
    def is_finished(self) -> bool:
        return self.elapsed_time >= self.max_time

    def step(self, dt: float) -> float:
        if dt < 0 or math.isnan(dt):
            raise ValueError(f"time step must be non-negative, got {dt}")
        self.elapsed_time = min(self.elapsed_time + dt, self.max_time)
        return self.elapsed_time

    def reset(self) -> None:
        self.elapsed_time = 0.0


Listener = Callable[[RayBundleResult], None]


class OpticsScene:
    """Holds the scene inputs and republishes a new RayBundleResult whenever one changes.

    Listeners registered with `subscribe` are called with each new result.
    """

    def __init__(
        self,
        optic: Optic,
        sources: Sequence[Vec2] = (),
        ray_mode: LightRayMode = LightRayMode.MARGINAL,
        screen: Optional[ProjectionScreen] = None,
        light_speed: float = DEFAULT_LIGHT_SPEED,
        max_animation_time: float = DEFAULT_ANIMATION_TIME,
        many_rays_count: int = MANY_RAYS_COUNT,
        many_rays_spread: float = MANY_RAYS_SPREAD,
    ):
        self._check_sources(sources)
        self.optic = optic
        self.sources: Tuple[Vec2, ...] = tuple(sources)
        self.ray_mode = LightRayMode(ray_mode)
        self.screen = screen
        self.light_speed = float(light_speed)
        self.many_rays_count = int(many_rays_count)
        self.many_rays_spread = float(many_rays_spread)
        self.clock = AnimationClock(max_animation_time)
        self._listeners: List[Listener] = []
        self.result = self._compute()

    @classmethod
    def from_config(cls, config) -> "OpticsScene":
        """Builds a scene from a `schema.SceneConfig`."""
        screen = None
        if config.screen is not None:
            screen = ProjectionScreen(Vec2(float(config.screen.pos.x), float(config.screen.pos.y)))
        settings = config.settings
        return cls(
            optic=Optic.from_config(config.optic),
            sources=[Vec2(float(s.x), float(s.y)) for s in config.sources],
            ray_mode=config.ray_mode,
            screen=screen,
            light_speed=settings.light_speed,
            max_animation_time=settings.max_animation_time,
            many_rays_count=settings.many_rays_count,
            many_rays_spread=math.radians(settings.many_rays_spread),
        )

    @staticmethod
    def _check_sources(sources: Sequence[Vec2]) -> None:
        if len(sources) > MAX_SOURCES:
            raise SceneConfigError(f"at most {MAX_SOURCES} sources are supported, got {len(sources)}")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registers `listener`; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _compute(self) -> RayBundleResult:
        return recompute(
            self.optic,
            self.sources,
            self.ray_mode,
            self.clock.elapsed_time,
            screen=self.screen,
            light_speed=self.light_speed,
            many_rays_count=self.many_rays_count,
            many_rays_spread=self.many_rays_spread,
        )

    def _publish(self) -> RayBundleResult:
        # The whole result is replaced before anyone is notified.
        self.result = self._compute()
        for listener in list(self._listeners):
            listener(self.result)
        return self.result

    def set_optic(self, optic: Optic) -> RayBundleResult:
        self.optic = optic
        return self._publish()

    def set_sources(self, sources: Sequence[Vec2]) -> RayBundleResult:
        self._check_sources(sources)
        self.sources = tuple(sources)
        return self._publish()

    def set_ray_mode(self, ray_mode: LightRayMode) -> RayBundleResult:
        self.ray_mode = LightRayMode(ray_mode)
        # a new mode restarts the animation
        self.clock.reset()
        return self._publish()

    def set_screen(self, screen: Optional[ProjectionScreen]) -> RayBundleResult:
        self.screen = screen
        return self._publish()

    def step(self, dt: float) -> RayBundleResult:
        """Advances the animation by one frame."""
        self.clock.step(dt)
        return self._publish()

    def restart_animation(self) -> RayBundleResult:
        self.clock.reset()
        return self._publish()
