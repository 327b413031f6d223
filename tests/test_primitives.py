"""Tests for the shared drawing primitives and their pure geometry helpers."""

import math
import random

import pytest

from render.primitives import (
    ContourLayer, Primitives, Shape, Square, check_overlap, contour_points,
    gradient_endpoints, layout_tuple, scanline_offsets, triangle_points,
    wobbly_rect_points,
)
from conftest import changed_pixels


class TestOverlap:
    def test_overlapping(self):
        a, b = Square(0, 0, 10), Square(5, 5, 10)
        assert check_overlap(a, b) and check_overlap(b, a)

    def test_touching_edges_do_not_overlap(self):
        a = Square(0, 0, 10)
        assert not check_overlap(a, Square(10, 0, 10))
        assert not check_overlap(a, Square(0, 10, 10))
        assert not check_overlap(Square(10, 0, 10), a)

    def test_contained(self):
        assert check_overlap(Square(0, 0, 100), Square(40, 40, 5))

    def test_symmetric_random(self):
        rng = random.Random(3)
        for _ in range(200):
            a = Square(rng.uniform(0, 50), rng.uniform(0, 50), rng.uniform(1, 30))
            b = Square(rng.uniform(0, 50), rng.uniform(0, 50), rng.uniform(1, 30))
            assert check_overlap(a, b) == check_overlap(b, a)

    def test_static_alias(self):
        assert Primitives.check_overlap(Square(0, 0, 2), Square(1, 1, 2))


class TestGeometry:
    def test_triangle_points(self):
        pts = triangle_points(10)
        assert pts[0] == (0.0, -10.0)
        assert pts[1] == pytest.approx((8.66, 5.0))
        assert pts[2] == pytest.approx((-8.66, 5.0))

    def test_wobbly_rect_stays_near_corners(self):
        rng = random.Random(11)
        for _ in range(50):
            pts = wobbly_rect_points(20, 30, 40, 3.0, rng)
            corners = [(20, 30), (60, 30), (60, 70), (20, 70)]
            for (px, py), (cx, cy) in zip(pts, corners):
                assert cx <= px < cx + 3.0
                assert cy <= py < cy + 3.0

    def test_contour_points(self):
        rng = random.Random(5)
        layer = ContourLayer(radius=100, jitter=8, sides=6)
        pts = contour_points(layer, 0.4, rng)
        assert len(pts) == 7
        for x, y in pts:
            assert 96 - 1e-9 <= math.hypot(x, y) <= 104 + 1e-9

    def test_gradient_endpoints(self):
        assert gradient_endpoints(10.0, 0, 200, 100) == ((0.0, 0.0), (300.0, 100.0))
        start, end = gradient_endpoints(1.0, 3, 200, 100, drift=0.2)
        assert start == pytest.approx((math.sin(0.2) * 100, 0.0))
        assert end == pytest.approx((math.cos(0.2) * 100 + 200, 100.0))

    def test_scanline_offsets(self):
        ys = scanline_offsets(0.0, 10, 100)
        assert len(ys) == 10
        assert ys[0] == pytest.approx(0.0)
        for i, y in enumerate(ys):
            assert abs(y - i * 10) <= 0.4 + 1e-9

    def test_layout_tuple(self):
        assert layout_tuple(None) == (0.0, 0.0, 0.0)
        assert layout_tuple({"x": 5, "rotation": 90}) == (5.0, 0.0, 90.0)
        assert layout_tuple((1, 2)) == (1.0, 2.0, 0.0)
        assert layout_tuple([1, 2, 3]) == (1.0, 2.0, 3.0)


class TestPrimitives:
    def test_dimensions_from_canvas(self, drawer):
        assert (drawer.width, drawer.height) == (320, 240)
        assert drawer.get_dimensions() == (320, 240)

    def test_layout_transform_restores(self, drawer, canvas):
        drawer.apply_layout_transform({"x": 10, "y": -20, "rotation": 90})
        assert canvas.apply(0, 0) == pytest.approx((170.0, 100.0))
        assert canvas.apply(1, 0) == pytest.approx((170.0, 101.0))
        drawer.restore_layout_transform()
        assert canvas.apply(0, 0) == (0, 0)

    def test_clear_fades(self, drawer, surface):
        surface.fill((255, 255, 255, 255))
        drawer.clear()
        r, _, _, _ = surface.get_at((10, 10))
        assert 0 < r < 255

    def test_rotating_triangle(self, drawer, surface):
        before = surface.copy()
        drawer.draw_outlined_rotating_triangle(160, 120, 40, 0.5, "#ff8800")
        assert changed_pixels(before, surface) > 0
        # the transform is popped again
        assert drawer.canvas.apply(0, 0) == (0, 0)

    def test_striped_square_has_stripes(self, drawer, surface):
        drawer.draw_striped_square(100, 100, 60, 35, "#ffffff")
        lit = dark = 0
        for x in range(115, 145):
            for y in range(115, 145):
                r = surface.get_at((x, y)).r
                if r > 200:
                    lit += 1
                elif r < 50:
                    dark += 1
        assert lit > 0 and dark > 0
        # nothing outside the rotated square's reach
        assert tuple(surface.get_at((20, 20)))[:3] == (0, 0, 0)
        assert tuple(surface.get_at((250, 200)))[:3] == (0, 0, 0)

    def test_striped_square_zero_size(self, drawer, surface):
        before = surface.copy()
        drawer.draw_striped_square(10, 10, 0, 35, "#ffffff")
        assert changed_pixels(before, surface) == 0

    def test_wobbly_rect_and_contour(self, drawer, surface):
        before = surface.copy()
        drawer.draw_wobbly_rect(50, 50, 80, "#00ffaa")
        drawer.canvas.translate(160, 120)
        drawer.draw_wobbly_contour(Shape([ContourLayer(60, 6, 5)], 0.2, "#ff0066"))
        assert changed_pixels(before, surface) > 0

    def test_gradient_texture_needs_notes(self, drawer, surface):
        before = surface.copy()
        drawer.draw_gradient_texture(1.0, [])
        assert changed_pixels(before, surface) == 0
        drawer.draw_gradient_texture(1.0, [object()])
        assert changed_pixels(before, surface) > 0
