# utils/color.py
import colorsys
from typing import Sequence, Tuple, Union

import pygame

RGBA = Tuple[int, int, int, int]
ColorLike = Union[str, Sequence[float], pygame.Color]


def to_rgba(color: ColorLike) -> RGBA:
    """'#rrggbb' / color name / (r,g,b[,a]) / pygame.Color -> (r,g,b,a) ints."""
    if isinstance(color, pygame.Color):
        return (color.r, color.g, color.b, color.a)
    if isinstance(color, str):
        try:
            c = pygame.Color(color)
        except ValueError:
            c = pygame.Color(255, 255, 255)
        return (c.r, c.g, c.b, c.a)
    vals = [int(max(0, min(255, round(v)))) for v in color]
    if len(vals) == 3:
        vals.append(255)
    return (vals[0], vals[1], vals[2], vals[3])


def hsla(hue: float, sat: float, light: float, alpha: float = 1.0) -> RGBA:
    """CSS-like hsla: hue in degrees, sat/light in percent, alpha 0..1."""
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360.0,
                                  max(0.0, min(1.0, light / 100.0)),
                                  max(0.0, min(1.0, sat / 100.0)))
    return (int(r * 255), int(g * 255), int(b * 255), int(max(0.0, min(1.0, alpha)) * 255))


def pitch_to_color(pitch: int, factor: float = 30.0) -> RGBA:
    return hsla((pitch % 14) * factor, 100, 70, 0.6)
