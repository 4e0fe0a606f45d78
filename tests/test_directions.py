import math
import unittest

from geoptics.optics.directions import LightRayMode, get_ray_directions
from geoptics.optics.image import solve_image
from geoptics.optics.optic import Optic, OpticType, SurfaceType
from geoptics.optics.vec2 import Vec2

OPTICS = [
    Optic.create(OpticType.LENS, SurfaceType.CONVEX, Vec2(0, 0), focal_length=50.0),
    Optic.create(OpticType.LENS, SurfaceType.CONCAVE, Vec2(0, 0), focal_length=-50.0),
    Optic.create(OpticType.MIRROR, SurfaceType.CONCAVE, Vec2(0, 0), focal_length=90.0),
    Optic.create(OpticType.MIRROR, SurfaceType.CONVEX, Vec2(0, 0), focal_length=-90.0),
    Optic.create(OpticType.MIRROR, SurfaceType.FLAT, Vec2(0, 0)),
]

SOURCES = [Vec2(-100, 20), Vec2(-30, -15), Vec2(-50, 10), Vec2(-250, 0), Vec2(0, 0)]

EXPECTED_COUNTS = {
    LightRayMode.NONE: 0,
    LightRayMode.MARGINAL: 3,
    LightRayMode.PRINCIPAL: 3,
    LightRayMode.MANY: 15,
}


class TestRayDirections(unittest.TestCase):
    def test_counts_and_unit_norm_for_all_inputs(self):
        for optic in OPTICS:
            for source in SOURCES:
                target = solve_image(source, optic).position
                for mode, count in EXPECTED_COUNTS.items():
                    directions = get_ray_directions(source, optic, mode, target)
                    self.assertEqual(len(directions), count, (optic.optic_type, optic.surface, source, mode))
                    for d in directions:
                        self.assertAlmostEqual(d.norm(), 1.0, places=9)

    def test_marginal_first_ray_through_center(self):
        optic = OPTICS[0]
        d = get_ray_directions(Vec2(-100, 20), optic, LightRayMode.MARGINAL, Vec2(100, -20))
        expected = Vec2(100, -20).normalized()
        self.assertAlmostEqual(d[0].x, expected.x, places=12)
        self.assertAlmostEqual(d[0].y, expected.y, places=12)
        # top ray aims above the center ray, bottom ray below
        self.assertGreater(d[1].y, d[0].y)
        self.assertLess(d[2].y, d[0].y)

    def test_principal_directions(self):
        d = get_ray_directions(Vec2(-100, 20), OPTICS[0], "principal", Vec2(100, -20))
        self.assertEqual(d[0], Vec2(1.0, 0.0))
        center = Vec2(100, -20).normalized()
        self.assertAlmostEqual(d[1].x, center.x, places=12)
        self.assertAlmostEqual(d[1].y, center.y, places=12)
        # through the left focal point (-50, 0)
        focal = Vec2(50, -20).normalized()
        self.assertAlmostEqual(d[2].x, focal.x, places=12)
        self.assertAlmostEqual(d[2].y, focal.y, places=12)

    def test_principal_focal_ray_points_away_from_source(self):
        # source between the focal point and the lens
        d = get_ray_directions(Vec2(-30, 20), OPTICS[0], LightRayMode.PRINCIPAL, None)
        self.assertGreater(d[2].x, 0)

    def test_many_rays_evenly_spread_around_baseline(self):
        source = Vec2(-100, 20)
        d = get_ray_directions(source, OPTICS[0], LightRayMode.MANY, None)
        baseline = (Vec2(0, 0) - source).angle()
        angles = [v.angle() - baseline for v in d]
        self.assertAlmostEqual(angles[0], math.pi / 4, places=9)
        self.assertAlmostEqual(angles[-1], -math.pi / 4, places=9)
        self.assertAlmostEqual(angles[7], 0.0, places=9)
        step = (math.pi / 2) / 14
        for a, b in zip(angles, angles[1:]):
            self.assertAlmostEqual(a - b, step, places=9)

    def test_many_rays_count_and_spread_are_settings(self):
        d = get_ray_directions(Vec2(-100, 0), OPTICS[0], LightRayMode.MANY, None, many_count=5, many_spread=math.pi / 6)
        self.assertEqual(len(d), 5)
        self.assertAlmostEqual(d[0].angle(), math.pi / 6, places=9)
        self.assertAlmostEqual(d[-1].angle(), -math.pi / 6, places=9)

    def test_none_mode_has_no_rays(self):
        self.assertEqual(get_ray_directions(Vec2(-100, 20), OPTICS[0], LightRayMode.NONE, None), [])


if __name__ == "__main__":
    unittest.main()
