from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from geoptics.optics.directions import LightRayMode
from geoptics.optics.optic import OpticType, SurfaceType


class Vec2Model(BaseModel):
    x: float
    y: float


class OpticConfig(BaseModel):
    type: OpticType = OpticType.LENS
    surface: SurfaceType = SurfaceType.CONVEX
    pos: Vec2Model = Field(default_factory=lambda: Vec2Model(x=0.0, y=0.0))
    diameter: float = Field(default=80.0, gt=0.0, description="Full height of the optic (cm)")
    max_diameter: float = Field(default=130.0, gt=0.0, description="Largest diameter the host allows (cm)")
    # Either the focal length is given directly, or it is derived from ROC and IOR.
    focal_length: Optional[float] = Field(
        default=None,
        description="Signed focal length (cm). Positive is converging. Ignored for flat optics.",
    )
    radius_of_curvature: Optional[float] = Field(default=None, gt=0.0, description="Magnitude of the ROC (cm)")
    index_of_refraction: Optional[float] = Field(
        default=None,
        gt=1.0,
        description="Index of refraction. Mirrors behave like a lens with an index of 2.",
    )

    @field_validator("focal_length")
    @classmethod
    def _nonzero_focal_length(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v == 0.0:
            raise ValueError("focal length must be non-zero")
        return v


class ScreenConfig(BaseModel):
    pos: Vec2Model = Field(default_factory=lambda: Vec2Model(x=200.0, y=0.0))


class SettingsModel(BaseModel):
    light_speed: float = Field(default=400.0, ge=100.0, description="Speed of the rays animation (cm/s)")
    max_animation_time: float = Field(default=10.0, gt=0.0, description="Length of the rays animation (s)")
    many_rays_count: int = Field(default=15, ge=2, le=200)
    many_rays_spread: float = Field(
        default=45.0,
        gt=0.0,
        le=90.0,
        description="Half-angle (degrees) of the 'many' fan around the source-to-optic direction.",
    )


class SceneConfig(BaseModel):
    optic: OpticConfig = Field(default_factory=OpticConfig)
    sources: List[Vec2Model] = Field(default_factory=list, max_length=2)
    ray_mode: LightRayMode = LightRayMode.MARGINAL
    screen: Optional[ScreenConfig] = None
    settings: SettingsModel = Field(default_factory=SettingsModel)
