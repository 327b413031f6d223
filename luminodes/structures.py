# ========================= luminodes/structures.py =========================
# 有快取幾何的結構類：sphere / gego net / gego shape / woven net / polygons
# 幾何只在 pitch signature 改變時重建；筆觸抖動每幀重新隨機
import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Tuple

from luminodes.base import Luminode, mean_velocity, rotate3d
from notes.model import pitch_signature
from render.primitives import ContourLayer, Shape
from utils.color import hsla, pitch_to_color

log = logging.getLogger(__name__)

TWO_PI = math.pi * 2


@dataclass
class Node:
    x: float
    y: float
    z: float
    offset: float


class SphereLuminode(Luminode):
    name = "sphere"

    def __init__(self, drawer, cfg, rng: random.Random = None):
        super().__init__(drawer, cfg)
        self.rng = rng or random.Random()
        self.base_hue = self.rng.randrange(360)
        self.signature = ""

    def reset(self):
        self.signature = ""

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        lat, lon = int(p["LAT_LINES"]), int(p["LON_LINES"])
        radius = p["BASE_RADIUS"] * (1 + mean_velocity(notes) * 0.8)
        deform = min((len(notes) - 1) / 9.0, 1.0) * p["DEFORM_FACTOR"]

        sig = pitch_signature(notes)
        if sig != self.signature:
            self.signature = sig
            self.base_hue = self.rng.randrange(360)

        if p.get("USE_COLOR"):
            color = pitch_to_color(notes[0].pitch, self.cfg.colors.pitch_color_factor)
        else:
            color = hsla(self.base_hue + t * 2, 0, 80, 0.4)

        ax, ay = t * 0.2, t * 0.3

        def project(x, y, z, wobble):
            x1, y1, z1 = rotate3d(x, y, z, ax, ay)
            d = 1 + deform * math.sin(t + wobble)
            return (x1 * d, y1 * d * 0.8 + z1 * 0.1 * d)

        c = self.canvas
        self.drawer.apply_layout_transform(layout)
        c.begin_path()
        for i in range(1, lat):
            phi = math.pi * i / lat
            r, z = radius * math.sin(phi), radius * math.cos(phi)
            pts = []
            a = 0.0
            while a <= TWO_PI + 0.01:
                pts.append(project(r * math.cos(a), r * math.sin(a), z, a + phi))
                a += 0.1
            c.polyline(pts)
        for i in range(lon):
            theta = TWO_PI * i / lon
            pts = []
            for j in range(lat + 1):
                phi = math.pi * j / lat
                pts.append(project(radius * math.sin(phi) * math.cos(theta),
                                   radius * math.sin(phi) * math.sin(theta),
                                   radius * math.cos(phi), phi + theta))
            c.polyline(pts)
        c.stroke(color, p["LINE_WIDTH"])
        self.drawer.restore_layout_transform()


class GegoNetLuminode(Luminode):
    name = "gegoNet"
    OPACITY_STEPS = 20   # 線條透明度量化，同一階一起畫

    def __init__(self, drawer, cfg, rng: random.Random = None):
        super().__init__(drawer, cfg)
        self.rng = rng or random.Random()
        self.nodes: List[Node] = []
        self.connections: List[Tuple[int, int]] = []
        self.signature = ""

    def reset(self):
        self.nodes, self.connections, self.signature = [], [], ""

    def generate(self, count: int, max_dist: float, max_conn: int):
        rnd = self.rng.random
        self.nodes = [Node(rnd() * 2 - 1, rnd() * 2 - 1, rnd() * 0.8 + 0.2, rnd() * 10)
                      for _ in range(count)]
        self.connections = []
        for i, a in enumerate(self.nodes):
            near = []
            for j, b in enumerate(self.nodes):
                if i == j:
                    continue
                dist = math.sqrt((a.x - b.x) ** 2 + (a.y - b.y) ** 2 + (a.z - b.z) ** 2)
                if dist < max_dist:
                    near.append((dist, j))
            near.sort()
            self.connections.extend((i, j) for _, j in near[:max_conn])

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        vel = mean_velocity(notes)
        sig = pitch_signature(notes)
        if sig != self.signature:
            self.generate(int(p["BASE_NODES"]) + len(notes) * int(p["NODES_PER_NOTE"]),
                          p["CONNECTION_DISTANCE"], int(p["MAX_CONNECTIONS"]))
            self.signature = sig
            log.debug("gegoNet regenerated for %s: %d nodes, %d links",
                      sig, len(self.nodes), len(self.connections))

        deform = 2 + vel * 4
        scale = 1 + vel * 1.2
        cs, sn = math.cos(t * 0.2), math.sin(t * 0.2)

        buckets: Dict[int, List[Tuple[Tuple[float, float], Tuple[float, float]]]] = {}
        for i, j in self.connections:
            ends = []
            depth = 0.0
            for n in (self.nodes[i], self.nodes[j]):
                x, y = n.x * 100, n.y * 100 + math.sin(t + n.offset) * deform
                xr, zr = x * cs - n.z * sn, x * sn + n.z * cs
                ends.append((xr * zr * scale, y * zr * scale))
                depth += zr
            opacity = max(0.0, min(1.0, 0.25 * (2 - depth)))
            buckets.setdefault(round(opacity * self.OPACITY_STEPS), []).append((ends[0], ends[1]))

        self.drawer.apply_layout_transform(layout)
        for level, segs in buckets.items():
            if level <= 0:
                continue
            self.canvas.begin_path()
            for a, b in segs:
                self.canvas.move_to(*a)
                self.canvas.line_to(*b)
            self.canvas.stroke(hsla(0, 0, 100, level / self.OPACITY_STEPS), 0.2)
        self.drawer.restore_layout_transform()


class GegoShapeLuminode(Luminode):
    name = "gegoShape"

    def __init__(self, drawer, cfg, rng: random.Random = None):
        super().__init__(drawer, cfg)
        self.rng = rng or random.Random()
        self.nodes: List[Node] = []
        self.connections: List[Tuple[int, int]] = []
        self.signature = ""

    def reset(self):
        self.nodes, self.connections, self.signature = [], [], ""

    def generate(self, count: int, probability: float):
        rnd = self.rng.random
        self.nodes = []
        for _ in range(count):
            theta = rnd() * TWO_PI
            phi = math.acos(2 * rnd() - 1)
            self.nodes.append(Node(math.sin(phi) * math.cos(theta), math.sin(phi) * math.sin(theta),
                                   math.cos(phi), rnd() * 10))
        self.connections = [(i, j) for i in range(count) for j in range(i + 1, count)
                            if rnd() < probability]
        # 每個節點至少一條連線：孤點接到最近的節點
        linked = {k for pair in self.connections for k in pair}
        for i, a in enumerate(self.nodes):
            if i in linked or count < 2:
                continue
            j = min((k for k in range(count) if k != i),
                    key=lambda k: (a.x - self.nodes[k].x) ** 2 + (a.y - self.nodes[k].y) ** 2
                    + (a.z - self.nodes[k].z) ** 2)
            self.connections.append((i, j))
            linked.update((i, j))

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        vel = mean_velocity(notes)
        sig = pitch_signature(notes)
        if sig != self.signature:
            self.generate(int(p["BASE_NODES"]) + len(notes) * int(p["NODES_PER_NOTE"]),
                          p["CONNECTION_PROBABILITY"])
            self.signature = sig

        deform = 0.1 + vel * 0.2
        radius = p["BASE_SIZE"] * (1 + vel)
        scale = 1 + vel * 0.5
        dot = 3 + vel * 3
        cs, sn = math.cos(t * 0.2), math.sin(t * 0.2)

        proj = []
        for n in self.nodes:
            x, z = n.x * cs - n.z * sn, n.x * sn + n.z * cs
            y = n.y + math.sin(t * 0.001 + n.offset) * deform
            proj.append((x * radius * z * scale, y * radius * z * scale))

        c = self.canvas
        color = hsla(0, 0, 100, 0.4)
        self.drawer.apply_layout_transform(layout)
        c.begin_path()
        for i, j in self.connections:
            (x1, y1), (x2, y2) = proj[i], proj[j]
            dist = math.hypot(x2 - x1, y2 - y1)
            if dist <= 2 * dot:
                continue
            ux, uy = (x2 - x1) / dist, (y2 - y1) / dist
            c.move_to(x1 + ux * dot, y1 + uy * dot)
            c.line_to(x2 - ux * dot, y2 - uy * dot)
        c.stroke(color, 0.4, blur=1, glow_color=(255, 255, 255, 25))
        c.begin_path()
        for x, y in proj:
            c.arc(x, y, dot, segments=16)
        c.stroke(color, 0.5)
        self.drawer.restore_layout_transform()


@dataclass
class WovenCell:
    x: float
    y: float
    size: float
    color: Tuple[int, int, int, int]


class WovenNetLuminode(Luminode):
    name = "wovenNet"
    POSITION_JITTER = 10

    def __init__(self, drawer, cfg, rng: random.Random = None):
        super().__init__(drawer, cfg)
        self.rng = rng or random.Random()
        self.pattern: List[WovenCell] = []
        self.signature = ""

    def reset(self):
        self.pattern, self.signature = [], ""

    def generate(self, notes, p) -> List[WovenCell]:
        if not notes:
            return []
        rnd = self.rng.random
        grid = int(p["BASE_GRID_SIZE"]) + len(notes) * int(p["GRID_SIZE_PER_NOTE"])
        shuffled = list(notes)
        self.rng.shuffle(shuffled)
        vibrant = len(notes) > 1
        factor = self.cfg.colors.pitch_color_factor
        cells, k = [], 0
        for i in range(-grid, grid + 1):
            for j in range(-grid, grid + 1):
                color = (255, 255, 255, 255)
                if vibrant:
                    color = pitch_to_color(shuffled[k % len(shuffled)].pitch, factor)
                    k += 1
                cells.append(WovenCell(i * p["SPACING"] + (rnd() - 0.5) * self.POSITION_JITTER,
                                       j * p["SPACING"] + (rnd() - 0.5) * self.POSITION_JITTER,
                                       p["BASE_SIZE"] + rnd() * p["SIZE_VARIATION"], color))
        return cells

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        sig = pitch_signature(notes)
        if sig != self.signature:
            self.pattern = self.generate(notes, p)
            self.signature = sig
        self.drawer.apply_layout_transform(layout)
        for cell in self.pattern:
            self.drawer.draw_wobbly_rect(cell.x, cell.y, cell.size, cell.color)
        self.drawer.restore_layout_transform()


class PolygonsLuminode(Luminode):
    """Nested jittered polygons, one per note (at least three).

    Geometry is keyed on the distinct pitches only; a velocity change alone
    keeps the current shapes.
    """
    name = "polygons"

    def __init__(self, drawer, cfg, rng: random.Random = None):
        super().__init__(drawer, cfg)
        self.rng = rng or random.Random()
        self.shapes: List[Shape] = []
        self.signature = ""

    def reset(self):
        self.shapes, self.signature = [], ""

    def generate(self, notes, p) -> List[Shape]:
        rnd = self.rng.random
        palette = self.cfg.colors.polygon_colors
        base_layers, max_layers = int(p["BASE_LAYERS"]), int(p["MAX_LAYERS"])
        shapes = []
        for i in range(max(3, len(notes))):
            n_layers = int(base_layers + rnd() * max(0, max_layers - base_layers))
            size = p["MAX_SIZE"] - i * p["SPACING"]
            shape = Shape(base_angle=rnd() * math.pi, color=palette[i % len(palette)])
            for j in range(n_layers):
                shape.layers.append(ContourLayer(
                    radius=size - j * p["LAYER_OFFSET"],
                    jitter=p["JITTER_BASE"] + j * p["JITTER_INCREMENT"],
                    sides=int(p["BASE_SIDES"]) + int(rnd() * int(p["SIDES_VARIATION"])),
                ))
            shapes.append(shape)
        return shapes

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        sig = pitch_signature(notes)
        if sig != self.signature:
            self.shapes = self.generate(notes, p)
            self.signature = sig
            log.debug("polygons regenerated for %s", sig)

        palette = self.cfg.colors.polygon_colors
        self.drawer.apply_layout_transform(layout)
        for i, shape in enumerate(self.shapes):
            # 顏色跟著目前的調色盤走
            current = Shape(shape.layers, shape.base_angle, palette[i % len(palette)])
            self.drawer.draw_wobbly_contour(current, t)
        self.drawer.restore_layout_transform()
