import math
import unittest

from geoptics.optics.image import ImageType, is_virtual_image, light_intensity, solve_image
from geoptics.optics.optic import Optic, OpticType, SurfaceType
from geoptics.optics.vec2 import Vec2


def lens(f=50.0, surface=SurfaceType.CONVEX):
    return Optic.create(OpticType.LENS, surface, Vec2(0, 0), focal_length=f, diameter=80.0)


class TestOpticalImageSolver(unittest.TestCase):
    def test_converging_lens_object_at_2f(self):
        image = solve_image(Vec2(-100, 20), lens())
        self.assertAlmostEqual(image.image_distance, 100.0, places=9)
        self.assertAlmostEqual(image.magnification, -1.0, places=9)
        self.assertAlmostEqual(image.position.x, 100.0, places=9)
        self.assertAlmostEqual(image.position.y, -20.0, places=9)
        self.assertIs(image.image_type, ImageType.REAL)
        self.assertTrue(image.is_inverted)

    def test_converging_lens_object_inside_focal_length(self):
        image = solve_image(Vec2(-30, 20), lens())
        self.assertAlmostEqual(image.image_distance, -75.0, places=9)
        self.assertAlmostEqual(image.magnification, 2.5, places=9)
        self.assertAlmostEqual(image.position.x, -75.0, places=9)
        self.assertAlmostEqual(image.position.y, 50.0, places=9)
        self.assertTrue(image.is_virtual)

    def test_concave_mirror_image_distance_sign(self):
        mirror = Optic.create(OpticType.MIRROR, SurfaceType.CONCAVE, Vec2(0, 0), focal_length=90.0)
        image = solve_image(Vec2(-150, 20), mirror)
        self.assertAlmostEqual(image.image_distance, -225.0, places=9)
        # image lands on the object side, inverted
        self.assertAlmostEqual(image.position.x, -225.0, places=9)
        self.assertAlmostEqual(image.position.y, -30.0, places=9)

    def test_flat_mirror_reflects_object(self):
        flat = Optic.create(OpticType.MIRROR, SurfaceType.FLAT, Vec2(10, 0))
        image = solve_image(Vec2(-90, 25), flat)
        self.assertEqual(image.magnification, 1.0)
        self.assertAlmostEqual(image.position.x, 110.0, places=9)
        self.assertAlmostEqual(image.position.y, 25.0, places=9)
        self.assertTrue(image.is_virtual)

    def test_object_beyond_focal_length_is_real(self):
        for f in (20.0, 50.0, 120.0):
            for d_o in (f * 1.01, f * 1.5, f * 3, f * 10):
                image = solve_image(Vec2(-d_o, 10), lens(f))
                self.assertIs(image.image_type, ImageType.REAL)
                self.assertGreater(image.image_distance, 0)

    def test_object_inside_focal_length_is_virtual_and_magnified(self):
        for f in (20.0, 50.0, 120.0):
            for d_o in (f * 0.1, f * 0.5, f * 0.99):
                image = solve_image(Vec2(-d_o, 10), lens(f))
                self.assertIs(image.image_type, ImageType.VIRTUAL)
                self.assertGreater(abs(image.magnification), 1)

    def test_diverging_lens_is_always_virtual(self):
        for d_o in (10.0, 50.0, 200.0):
            image = solve_image(Vec2(-d_o, 10), lens(-50.0, SurfaceType.CONCAVE))
            self.assertTrue(image.is_virtual)
            self.assertLess(abs(image.magnification), 1)

    def test_object_at_focal_point_has_no_image(self):
        image = solve_image(Vec2(-50, 10), lens())
        self.assertIsNone(image.position)
        self.assertFalse(image.is_inverted)
        self.assertEqual(image.light_intensity, 0.0)

    def test_object_on_optic(self):
        image = solve_image(Vec2(0, 10), lens())
        self.assertEqual(image.magnification, 1.0)
        self.assertAlmostEqual(image.position.x, 0.0, places=12)
        self.assertAlmostEqual(image.position.y, 10.0, places=12)

    def test_virtual_rule_differs_for_lens_and_mirror(self):
        self.assertFalse(is_virtual_image(1, 100.0, 50.0))
        self.assertTrue(is_virtual_image(1, 30.0, 50.0))
        self.assertTrue(is_virtual_image(1, 100.0, -50.0))
        self.assertTrue(is_virtual_image(-1, 150.0, 90.0))
        self.assertTrue(is_virtual_image(-1, 60.0, 90.0))
        self.assertFalse(is_virtual_image(-1, -200.0, -90.0))

    def test_light_intensity(self):
        self.assertAlmostEqual(light_intensity(65.0, 130.0, -1.0), 0.5)
        self.assertAlmostEqual(light_intensity(130.0, 130.0, 4.0), 0.25)
        self.assertAlmostEqual(light_intensity(130.0, 130.0, 0.5), 1.0)
        self.assertEqual(light_intensity(130.0, 130.0, math.inf), 0.0)


if __name__ == "__main__":
    unittest.main()
