# ========================= render/primitives.py =========================
import math
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from config import AppConfig
from render.canvas import DESTINATION_OUT, Canvas
from utils.color import ColorLike

Point = Tuple[float, float]

TRIANGLE_BLUR = 20
TRIANGLE_WIDTH = 2
STRIPE_WIDTH = 4
WOBBLE = 3.0
CONTOUR_BLUR = 10
CONTOUR_WIDTH = 2
SCANLINE_DENSITY = 150
SCANLINE_STRENGTH = 0.5
GRADIENT_DRIFT = 0.2
DEFAULT_GRADIENT = ("#ee77aa", "#558dff")


@dataclass
class Square:
    x: float
    y: float
    size: float


@dataclass
class ContourLayer:
    radius: float
    jitter: float
    sides: int


@dataclass
class Shape:
    """Cached polygon geometry of one note group."""
    layers: List[ContourLayer] = field(default_factory=list)
    base_angle: float = 0.0
    color: ColorLike = "#ffffff"


# ---------- 純幾何（測試用）----------
def triangle_points(size: float) -> List[Point]:
    return [(0.0, -size), (size * 0.866, size * 0.5), (-size * 0.866, size * 0.5)]


def wobbly_rect_points(x: float, y: float, size: float, wobble: float = WOBBLE,
                       rng: random.Random = random) -> List[Point]:
    """Square corners, each coordinate pushed by U[0, wobble)."""
    corners = [(x, y), (x + size, y), (x + size, y + size), (x, y + size)]
    return [(cx + rng.random() * wobble, cy + rng.random() * wobble) for cx, cy in corners]


def contour_points(layer: ContourLayer, base_angle: float = 0.0,
                   rng: random.Random = random) -> List[Point]:
    """sides+1 vertices (the last closes the loop) at radius ± jitter/2."""
    sides = max(1, int(layer.sides))
    step = math.pi * 2 / sides
    pts = []
    for i in range(sides + 1):
        a = step * i + base_angle
        r = layer.radius + (rng.random() - 0.5) * layer.jitter
        pts.append((math.cos(a) * r, math.sin(a) * r))
    return pts


def gradient_endpoints(t: float, note_count: int, width: float, height: float,
                       drift: float = GRADIENT_DRIFT) -> Tuple[Point, Point]:
    movement = t * drift if note_count > 0 else 0.0
    return ((math.sin(movement) * width * 0.5, 0.0),
            (math.cos(movement) * width * 0.5 + width, height))


def scanline_offsets(t: float, density: int, height: float) -> List[float]:
    return [(i / density) * height + math.sin(t + i * 0.25) * 0.4 for i in range(density)]


def layout_tuple(layout) -> Tuple[float, float, float]:
    """(x, y, rotation) from a layout dict/tuple; missing parts are 0."""
    if not layout:
        return (0.0, 0.0, 0.0)
    if isinstance(layout, dict):
        return (float(layout.get("x", 0.0)), float(layout.get("y", 0.0)),
                float(layout.get("rotation", 0.0)))
    vals = list(layout) + [0.0, 0.0, 0.0]
    return (float(vals[0]), float(vals[1]), float(vals[2]))


def check_overlap(a: Square, b: Square) -> bool:
    return not (a.x + a.size <= b.x or a.x >= b.x + b.size
                or a.y + a.size <= b.y or a.y >= b.y + b.size)


class Primitives:
    """Stateless draw operations over a shared Canvas.

    Width/height are read from the canvas on every call; a resized window is
    picked up on the next draw.
    """

    def __init__(self, canvas: Canvas, cfg: Optional[AppConfig] = None, rng: random.Random = None):
        self.canvas = canvas
        self.cfg = cfg or AppConfig()
        self.rng = rng or random.Random()

    @property
    def width(self) -> int:
        return self.canvas.width

    @property
    def height(self) -> int:
        return self.canvas.height

    def get_dimensions(self) -> Tuple[int, int]:
        return self.canvas.get_dimensions()

    def clear(self):
        c = self.cfg.canvas
        self.canvas.fade(c.background_color, c.clear_alpha)

    # ---------- layout ----------
    def apply_layout_transform(self, layout):
        """Push state and move the origin to the screen centre plus a layout offset."""
        self.canvas.save()
        x, y, rot = layout_tuple(layout)
        self.canvas.translate(self.width / 2 + x, self.height / 2 + y)
        if rot:
            self.canvas.rotate(math.radians(rot))

    def restore_layout_transform(self):
        self.canvas.restore()

    # ---------- 形狀 ----------
    def draw_outlined_rotating_triangle(self, x: float, y: float, size: float, angle: float,
                                        color: ColorLike):
        c = self.canvas
        c.save()
        c.translate(x, y)
        c.rotate(angle)
        c.begin_path()
        c.polyline(triangle_points(size), closed=True)
        c.stroke(color, TRIANGLE_WIDTH, blur=TRIANGLE_BLUR)
        c.restore()

    def draw_striped_square(self, x: float, y: float, size: float, angle_deg: float,
                            bg_color: ColorLike):
        if size <= 0:
            return
        angle = math.radians(angle_deg)
        padded = int(math.ceil(size * math.sqrt(2)))

        # 第一段：離屏 tile 上先填滿，再用 destination-out 擦出斜紋
        tile = self.canvas.create_tile(padded, padded)
        tile.fill_rect(0, 0, padded, padded, bg_color)
        tile.composite = DESTINATION_OUT
        tile.save()
        tile.translate(padded / 2, padded / 2)
        tile.rotate(angle)
        tile.translate(-padded / 2, -padded / 2)
        i = -padded
        while i < padded * 2:
            tile.fill_rect(i, 0, STRIPE_WIDTH, padded, (0, 0, 0, 255))
            i += STRIPE_WIDTH * 2
        tile.restore()

        # 第二段：旋轉後裁成正方形貼上
        c = self.canvas
        c.save()
        c.translate(x + size / 2, y + size / 2)
        c.rotate(angle)
        c.clip_rect(-size / 2, -size / 2, size, size)
        c.draw_image(tile, -padded / 2, -padded / 2, padded, padded)
        c.restore()

    def draw_wobbly_rect(self, x: float, y: float, size: float, color: ColorLike):
        pts = wobbly_rect_points(x, y, size, WOBBLE, self.rng)
        c = self.canvas
        c.begin_path()
        c.polyline(pts, closed=True)
        c.stroke(color, 1.5 + self.rng.random())

    def draw_wobbly_contour(self, shape: Shape, t: float = 0.0):
        c = self.canvas
        for layer in shape.layers:
            c.begin_path()
            c.polyline(contour_points(layer, shape.base_angle, self.rng), closed=True)
            c.stroke(shape.color, CONTOUR_WIDTH, blur=CONTOUR_BLUR)

    # ---------- 漸層 / 材質 ----------
    def draw_morphing_gradient(self, t: float, notes: Sequence, colors: Sequence[ColorLike] = DEFAULT_GRADIENT,
                               drift: float = GRADIENT_DRIFT):
        start, end = gradient_endpoints(t, len(notes or ()), self.width, self.height, drift)
        self.canvas.fill_linear_gradient(start, end, list(colors))

    def draw_scanline_overlay(self, t: float, density: int = SCANLINE_DENSITY,
                              strength: float = SCANLINE_STRENGTH):
        density = max(1, int(density))
        w = self.width
        c = self.canvas
        c.begin_path()
        for y in scanline_offsets(t, density, self.height):
            c.move_to(0, y)
            c.line_to(w, y)
        c.stroke((255, 255, 255, int(max(0.0, min(1.0, strength)) * 255)), 1)

    def draw_gradient_texture(self, t: float, notes: Sequence, colors: Sequence[ColorLike] = DEFAULT_GRADIENT,
                              density: int = SCANLINE_DENSITY, strength: float = SCANLINE_STRENGTH,
                              drift: float = GRADIENT_DRIFT):
        if not notes:
            return
        self.draw_morphing_gradient(t, notes, colors, drift)
        self.draw_scanline_overlay(t, density, strength)

    check_overlap = staticmethod(check_overlap)
