# ========================= render/canvas.py =========================
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pygame

from utils.color import ColorLike, RGBA, to_rgba

SOURCE_OVER = "source-over"
DESTINATION_OUT = "destination-out"   # 畫到哪裡就擦掉哪裡

Point = Tuple[float, float]
Matrix = Tuple[float, float, float, float, float, float]
IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

ARC_SEGMENTS = 48
GRADIENT_STEP = 8   # 漸層先在 1/8 解析度算，再 smoothscale


@dataclass
class _State:
    matrix: Matrix
    global_alpha: float
    composite: str
    clip: Optional[Tuple[pygame.Rect, Tuple[float, float, float, float], Matrix]]


class Canvas:
    """Immediate-mode 2D drawing over a pygame.Surface.

    Mirrors the parts of an HTML canvas context the luminodes need: a
    save/restore state stack with an affine transform, path construction,
    stroke/fill with optional glow, rectangular clipping, offscreen tiles and
    two composite modes (normal and erase). Path points are transformed to
    device space when added, like a canvas context does.
    """

    def __init__(self, surface: pygame.Surface):
        self.surface = surface
        self.matrix: Matrix = IDENTITY
        self.global_alpha = 1.0
        self.composite = SOURCE_OVER
        # (device rect, local rect, matrix at clip time)
        self._clip: Optional[Tuple[pygame.Rect, Tuple[float, float, float, float], Matrix]] = None
        self._stack: List[_State] = []
        self._paths: List[Tuple[List[Point], bool]] = []
        self._fade_layer: Optional[pygame.Surface] = None

    # ---------- 尺寸 ----------
    @property
    def width(self) -> int:
        return self.surface.get_width()

    @property
    def height(self) -> int:
        return self.surface.get_height()

    def get_dimensions(self) -> Tuple[int, int]:
        return self.surface.get_size()

    # ---------- 狀態 ----------
    def save(self):
        self._stack.append(_State(self.matrix, self.global_alpha, self.composite, self._clip))

    def restore(self):
        if not self._stack:
            return
        st = self._stack.pop()
        self.matrix, self.global_alpha, self.composite, self._clip = (
            st.matrix, st.global_alpha, st.composite, st.clip)

    def reset_transform(self):
        self.matrix = IDENTITY

    def translate(self, x: float, y: float):
        a, b, c, d, e, f = self.matrix
        self.matrix = (a, b, c, d, e + a * x + c * y, f + b * x + d * y)

    def rotate(self, angle: float):
        a, b, c, d, e, f = self.matrix
        cs, sn = math.cos(angle), math.sin(angle)
        self.matrix = (a * cs + c * sn, b * cs + d * sn, c * cs - a * sn, d * cs - b * sn, e, f)

    def scale(self, sx: float, sy: float = None):
        sy = sx if sy is None else sy
        a, b, c, d, e, f = self.matrix
        self.matrix = (a * sx, b * sx, c * sy, d * sy, e, f)

    def apply(self, x: float, y: float) -> Point:
        a, b, c, d, e, f = self.matrix
        return (a * x + c * y + e, b * x + d * y + f)

    @property
    def rotation(self) -> float:
        return math.atan2(self.matrix[1], self.matrix[0])

    @property
    def scale_factor(self) -> float:
        return math.hypot(self.matrix[0], self.matrix[1]) or 1.0

    # ---------- 路徑 ----------
    def begin_path(self):
        self._paths = []

    def move_to(self, x: float, y: float):
        self._paths.append(([self.apply(x, y)], False))

    def line_to(self, x: float, y: float):
        if not self._paths:
            self.move_to(x, y)
            return
        self._paths[-1][0].append(self.apply(x, y))

    def arc(self, cx: float, cy: float, radius: float,
            start: float = 0.0, end: float = math.pi * 2, segments: int = ARC_SEGMENTS):
        span = end - start
        n = max(3, int(segments * abs(span) / (math.pi * 2)))
        pts = [self.apply(cx + math.cos(start + span * i / n) * radius,
                          cy + math.sin(start + span * i / n) * radius) for i in range(n + 1)]
        self._paths.append((pts, abs(span) >= math.pi * 2 - 1e-9))

    def rect(self, x: float, y: float, w: float, h: float):
        self._paths.append(([self.apply(x, y), self.apply(x + w, y),
                             self.apply(x + w, y + h), self.apply(x, y + h)], True))

    def polyline(self, points: Sequence[Point], closed: bool = False):
        pts = [self.apply(x, y) for x, y in points]
        if pts:
            self._paths.append((pts, closed))

    # ---------- 繪製 ----------
    def stroke(self, color: ColorLike, width: float = 1.0, blur: float = 0.0,
               glow_color: Optional[ColorLike] = None):
        paths = [(pts, closed) for pts, closed in self._paths if len(pts) >= 2]
        if not paths:
            return
        dev_w = width * self.scale_factor
        w = max(1, int(round(dev_w)))
        ink = self._ink(color, min(1.0, dev_w) if dev_w < 1 else 1.0)
        margin = w + int(math.ceil(blur * 2)) + 2
        box = self._bounds(paths, margin)
        if box is None:
            return
        layer = self._layer(box.size)
        shifted = [([(x - box.x, y - box.y) for x, y in pts], closed) for pts, closed in paths]
        if blur > 0 and self.composite == SOURCE_OVER:
            self._glow(layer, shifted, self._ink(glow_color or color), w, blur)
        for pts, closed in shifted:
            pygame.draw.lines(layer, ink, closed, pts, w)
        self._composite(layer, box.topleft)

    def fill(self, color: ColorLike):
        polys = [pts for pts, _ in self._paths if len(pts) >= 3]
        if not polys:
            return
        box = self._bounds([(p, True) for p in polys], 2)
        if box is None:
            return
        layer = self._layer(box.size)
        ink = self._ink(color)
        for pts in polys:
            pygame.draw.polygon(layer, ink, [(x - box.x, y - box.y) for x, y in pts])
        self._composite(layer, box.topleft)

    def fill_rect(self, x: float, y: float, w: float, h: float, color: ColorLike):
        a, b, c, d, e, f = self.matrix
        rgba = to_rgba(color)
        axis_aligned = abs(b) < 1e-9 and abs(c) < 1e-9
        if (axis_aligned and self.composite == SOURCE_OVER and self._clip is None
                and rgba[3] == 255 and self.global_alpha >= 1.0):
            x0, y0 = self.apply(x, y)
            x1, y1 = self.apply(x + w, y + h)
            r = pygame.Rect(int(min(x0, x1)), int(min(y0, y1)),
                            int(math.ceil(abs(x1 - x0))), int(math.ceil(abs(y1 - y0))))
            self.surface.fill(rgba, r)
            return
        saved = self._paths
        self._paths = []
        self.rect(x, y, w, h)
        self.fill(rgba)
        self._paths = saved

    def fill_circle(self, cx: float, cy: float, radius: float, color: ColorLike):
        saved = self._paths
        self._paths = []
        self.arc(cx, cy, radius, segments=max(8, min(ARC_SEGMENTS, int(radius * 2))))
        self.fill(color)
        self._paths = saved

    def fade(self, color: ColorLike, alpha: float):
        """Translucent full-surface fill; leaves motion trails instead of a hard clear."""
        size = self.surface.get_size()
        if self._fade_layer is None or self._fade_layer.get_size() != size:
            self._fade_layer = pygame.Surface(size, pygame.SRCALPHA)
        r, g, b, _ = to_rgba(color)
        self._fade_layer.fill((r, g, b, int(max(0.0, min(1.0, alpha)) * 255)))
        self.surface.blit(self._fade_layer, (0, 0))

    def clear(self, color: ColorLike = (0, 0, 0, 0)):
        self.surface.fill(to_rgba(color))

    def fill_linear_gradient(self, start: Point, end: Point, colors: Sequence[ColorLike]):
        """Fill the whole surface with a linear gradient, stops evenly spaced over colors."""
        if not colors:
            return
        (x0, y0), (x1, y1) = self.apply(*start), self.apply(*end)
        W, H = self.surface.get_size()
        gw, gh = max(2, W // GRADIENT_STEP), max(2, H // GRADIENT_STEP)
        xs = (np.arange(gw) + 0.5) * (W / gw)
        ys = (np.arange(gh) + 0.5) * (H / gh)
        X, Y = np.meshgrid(xs, ys, indexing="ij")
        dx, dy = x1 - x0, y1 - y0
        denom = dx * dx + dy * dy or 1.0
        t = np.clip(((X - x0) * dx + (Y - y0) * dy) / denom, 0.0, 1.0)
        rgba = [to_rgba(c) for c in colors]
        stops = np.linspace(0.0, 1.0, len(rgba)) if len(rgba) > 1 else np.array([0.0])
        chans = [np.interp(t, stops, [c[i] for c in rgba]) for i in range(3)]
        small = pygame.surfarray.make_surface(np.stack(chans, axis=-1).astype(np.uint8))
        big = pygame.transform.smoothscale(small, (W, H))
        if self.global_alpha < 1.0:
            big.set_alpha(int(self.global_alpha * 255))
        self._blit_clipped(big, (0, 0))

    # ---------- 裁切 / 離屏 ----------
    def clip_rect(self, x: float, y: float, w: float, h: float):
        corners = [self.apply(x, y), self.apply(x + w, y), self.apply(x + w, y + h), self.apply(x, y + h)]
        xs, ys = [p[0] for p in corners], [p[1] for p in corners]
        dev = pygame.Rect(int(min(xs)), int(min(ys)),
                          int(math.ceil(max(xs) - min(xs))) + 1, int(math.ceil(max(ys) - min(ys))) + 1)
        if self._clip is not None:
            dev = dev.clip(self._clip[0])
        self._clip = (dev, (x, y, w, h), self.matrix)

    def create_tile(self, w: int, h: int) -> "Canvas":
        return Canvas(pygame.Surface((max(1, int(w)), max(1, int(h))), pygame.SRCALPHA))

    def draw_image(self, image: Union["Canvas", pygame.Surface], x: float, y: float,
                   w: float = None, h: float = None):
        src = image.surface if isinstance(image, Canvas) else image
        w = float(src.get_width()) if w is None else float(w)
        h = float(src.get_height()) if h is None else float(h)
        if w <= 0 or h <= 0:
            return
        # 同一個 transform 下設的 clip 可以在本地座標精確裁切
        if self._clip is not None and self._clip[2] == self.matrix:
            cx, cy, cw, ch = self._clip[1]
            lx0, ly0 = max(x, cx), max(y, cy)
            lx1, ly1 = min(x + w, cx + cw), min(y + h, cy + ch)
            if lx1 <= lx0 or ly1 <= ly0:
                return
            sx, sy = src.get_width() / w, src.get_height() / h
            crop = pygame.Rect(int((lx0 - x) * sx), int((ly0 - y) * sy),
                               max(1, int((lx1 - lx0) * sx)), max(1, int((ly1 - ly0) * sy)))
            src = src.subsurface(crop.clip(src.get_rect()))
            x, y, w, h = lx0, ly0, lx1 - lx0, ly1 - ly0
        k = self.scale_factor
        size = (max(1, int(round(w * k))), max(1, int(round(h * k))))
        img = src if src.get_size() == size else pygame.transform.smoothscale(src, size)
        deg = math.degrees(self.rotation)
        if abs(deg) > 1e-6:
            img = pygame.transform.rotate(img, -deg)
        center = self.apply(x + w / 2, y + h / 2)
        rect = img.get_rect(center=(int(round(center[0])), int(round(center[1]))))
        if self.composite == DESTINATION_OUT:
            mask = pygame.Surface(img.get_size(), pygame.SRCALPHA)
            mask.fill((255, 255, 255, 255))
            inv = img.copy()
            inv.fill((255, 255, 255, 0), special_flags=pygame.BLEND_RGBA_MAX)
            mask.blit(inv, (0, 0), special_flags=pygame.BLEND_RGBA_SUB)
            img = mask
        elif self.global_alpha < 1.0:
            img = img.copy()
            img.set_alpha(int(self.global_alpha * 255))
        self._composite(img, rect.topleft)

    # ---------- 內部 ----------
    def _ink(self, color: ColorLike, extra_alpha: float = 1.0) -> RGBA:
        r, g, b, a = to_rgba(color)
        a = int(a * self.global_alpha * extra_alpha)
        if self.composite == DESTINATION_OUT:
            return (255, 255, 255, 255 - a)
        return (r, g, b, a)

    def _layer(self, size) -> pygame.Surface:
        layer = pygame.Surface(size, pygame.SRCALPHA)
        if self.composite == DESTINATION_OUT:
            layer.fill((255, 255, 255, 255))
        return layer

    def _bounds(self, paths, margin: int) -> Optional[pygame.Rect]:
        xs = [p[0] for pts, _ in paths for p in pts]
        ys = [p[1] for pts, _ in paths for p in pts]
        if not xs:
            return None
        box = pygame.Rect(int(math.floor(min(xs))) - margin, int(math.floor(min(ys))) - margin, 0, 0)
        box.width = int(math.ceil(max(xs))) + margin - box.x + 1
        box.height = int(math.ceil(max(ys))) + margin - box.y + 1
        box = box.clip(self.surface.get_rect())
        if self._clip is not None:
            box = box.clip(self._clip[0])
        if box.width <= 0 or box.height <= 0:
            return None
        return box

    @staticmethod
    def _glow(layer: pygame.Surface, paths, glow: RGBA, width: int, blur: float):
        glow_layer = pygame.Surface(layer.get_size(), pygame.SRCALPHA)
        gw = width + max(1, int(blur / 3))
        for pts, closed in paths:
            pygame.draw.lines(glow_layer, glow, closed, pts, gw)
        factor = max(2, int(blur / 3))
        W, H = layer.get_size()
        small = pygame.transform.smoothscale(glow_layer, (max(1, W // factor), max(1, H // factor)))
        layer.blit(pygame.transform.smoothscale(small, (W, H)), (0, 0))

    def _composite(self, layer: pygame.Surface, pos):
        if self.composite == DESTINATION_OUT:
            self._blit_clipped(layer, pos, pygame.BLEND_RGBA_MULT)
        else:
            self._blit_clipped(layer, pos)

    def _blit_clipped(self, img: pygame.Surface, pos, flags: int = 0):
        if self._clip is None:
            self.surface.blit(img, pos, special_flags=flags)
            return
        prev = self.surface.get_clip()
        self.surface.set_clip(self._clip[0])
        self.surface.blit(img, pos, special_flags=flags)
        self.surface.set_clip(prev)
