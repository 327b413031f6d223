# ========================= luminodes/grids.py =========================
# 平面/格狀類：scanline gradients / soto grid / phyllotaxis / triangle
import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Tuple

from luminodes.base import Luminode
from render.primitives import Square, check_overlap, layout_tuple
from utils.color import pitch_to_color

log = logging.getLogger(__name__)

SOLID_BLOCK_COLOR = "#efe5da"
PLACEMENT_RETRIES = 100
STRIPE_ANGLE = 35


class ScanlineGradientsLuminode(Luminode):
    name = "scanlineGradients"

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        self.drawer.draw_gradient_texture(t, notes, self.cfg.colors.gradient_colors,
                                          density=int(p["DENSITY"]), strength=p["STRENGTH"],
                                          drift=p["DRIFT_SPEED"])


@dataclass
class SotoSquare:
    x: float
    y: float
    size: float
    angle: float = 0.0


class SotoGridLuminode(Luminode):
    """Vertical stripes, a solid band and one square per pitch.

    A square keeps its place for as long as the instance lives (or until
    clear_squares / remove_square); its colour follows the current palette.
    The striped variant draws each square with diagonal bands at ±35°.
    """
    name = "sotoGrid"

    def __init__(self, drawer, cfg, striped: bool = False, rng: random.Random = None):
        super().__init__(drawer, cfg)
        self.striped = striped
        self.rng = rng or random.Random()
        self.squares: Dict[int, SotoSquare] = {}
        self.solid_top = self.rng.random() < 0.5

    def reset(self):
        self.clear_squares()

    def clear_squares(self):
        self.squares.clear()

    def remove_square(self, pitch: int):
        self.squares.pop(pitch, None)

    def place(self, size: float, w: float, h: float) -> SotoSquare:
        x = y = 0.0
        for _ in range(PLACEMENT_RETRIES):
            x = self.rng.random() * max(0.0, w - size)
            y = self.rng.random() * max(0.0, h - size)
            cand = Square(x, y, size)
            if not any(check_overlap(cand, Square(s.x, s.y, s.size)) for s in self.squares.values()):
                break
        else:
            log.debug("sotoGrid: no free spot for size %.0f, overlapping", size)
        angle = (STRIPE_ANGLE if self.rng.random() > 0.5 else -STRIPE_ANGLE) if self.striped else 0.0
        return SotoSquare(x, y, size, angle)

    def generate_squares(self, notes, p, w: float, h: float) -> List[Tuple[int, SotoSquare]]:
        out = []
        for n in notes:
            if n.pitch not in self.squares:
                size = p["BASE_SIZE"] * (1 + n.velocity * p["VELOCITY_MULTIPLIER"])
                self.squares[n.pitch] = self.place(size, w, h)
            out.append((n.pitch, self.squares[n.pitch]))
        return out

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        w, h = self.canvas.width, self.canvas.height
        sw = p["STRIPE_WIDTH"]
        c = self.canvas

        self.drawer.apply_layout_transform(layout)
        c.translate(-w / 2, -h / 2)

        c.begin_path()
        for i in range(0, int(math.ceil(w / sw)), 2):
            x = i * sw + math.sin(t * 0.5 + i * 0.2) * 3
            c.move_to(x, 0)
            c.line_to(x, h)
        c.stroke("white", sw * 0.5)

        solid_h = h * p["SOLID_HEIGHT_RATIO"]
        c.fill_rect(0, 0 if self.solid_top else h - solid_h, w, solid_h, SOLID_BLOCK_COLOR)

        palette = self.cfg.colors.soto_palette
        for pitch, sq in self.generate_squares(notes, p, w, h):
            color = palette[pitch % len(palette)]
            if self.striped:
                self.drawer.draw_striped_square(sq.x, sq.y, sq.size, sq.angle, color)
            else:
                c.fill_rect(sq.x, sq.y, sq.size, sq.size, color)
        self.drawer.restore_layout_transform()


class PhyllotaxisLuminode(Luminode):
    name = "phyllotaxis"

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        per_note = int(p["DOTS_PER_NOTE"])
        total = len(notes) * per_note
        golden, scale = p["GOLDEN_ANGLE"], p["SCALE"]
        base, top = p["BASE_SIZE"], p["MAX_SIZE"]
        c = self.canvas

        self.drawer.apply_layout_transform(layout)
        c.rotate(t * p["ROTATION_SPEED"])
        for k, note in enumerate(notes):
            c.begin_path()
            for j in range(per_note):
                i = k * per_note + j
                r = scale * math.sqrt(i + 1)
                size = base + (i / total) * (top - base)
                c.arc(math.cos(i * golden) * r, math.sin(i * golden) * r, size,
                      segments=max(8, min(32, int(size * 4))))
            c.fill(pitch_to_color(note.pitch, self.cfg.colors.pitch_color_factor))
        self.drawer.restore_layout_transform()


class TriangleLuminode(Luminode):
    """Glowing triangles orbiting a quarter-screen anchor, mirrored through the centre.

    A note is drawn for LIFETIME seconds after its note-on.
    """
    name = "triangle"
    LIFETIME = 2.0

    def __init__(self, drawer, cfg, radius_scale: float = 1.0, spread: float = 300.0):
        super().__init__(drawer, cfg)
        self.radius_scale = radius_scale
        self.spread = spread

    def visible(self, t, notes):
        return [n for n in notes if t - n.timestamp <= self.LIFETIME]

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        w, h = self.canvas.width, self.canvas.height
        ox, oy = w * 0.25, h * 0.25
        lx, ly, _ = layout_tuple(layout)
        c = self.canvas

        c.save()
        c.translate(lx, ly)
        c.global_alpha = p["OPACITY"]
        for n in self.visible(t, notes):
            progress = t - n.timestamp
            angle = n.pitch * 0.3 + progress * p["ROTATION_SPEED"] * 2
            radius = self.radius_scale * (n.velocity + 0.5) * self.spread
            x = math.cos(angle) * radius + ox
            y = math.sin(angle) * radius * 0.5 + oy
            size = (p["SIZE"] + n.velocity * 12) * 0.25
            rotation = t + n.pitch * 0.2
            color = pitch_to_color(n.pitch, self.cfg.colors.pitch_color_factor)
            self.drawer.draw_outlined_rotating_triangle(x, y, size, rotation, color)
            self.drawer.draw_outlined_rotating_triangle(w - x, h - y, size, rotation, color)
        c.restore()
