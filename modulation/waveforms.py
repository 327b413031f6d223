# modulation/waveforms.py
import math
from enum import Enum
from typing import Dict, Sequence

TWO_PI = math.pi * 2


class WaveShape(str, Enum):
    SINE = "sine"
    SQUARE = "square"
    TRIANGLE = "triangle"
    SAW = "saw"
    CUBIC_BEZIER = "cubicBezier"

    @property
    def label(self) -> str:
        return WAVE_SHAPE_NAMES[self.value]


class Easing(str, Enum):
    LINEAR = "linear"
    EASE_IN = "easeIn"
    EASE_OUT = "easeOut"
    EASE_IN_OUT = "easeInOut"
    EASE_IN_CUBIC = "easeInCubic"
    EASE_OUT_CUBIC = "easeOutCubic"
    EASE_IN_OUT_CUBIC = "easeInOutCubic"
    SMOOTHSTEP = "smoothstep"

    @property
    def label(self) -> str:
        return EASING_NAMES[self.value]


WAVE_SHAPE_NAMES: Dict[str, str] = {
    "sine": "Sine",
    "square": "Square",
    "triangle": "Triangle",
    "saw": "Sawtooth",
    "cubicBezier": "Cubic Bezier",
}

EASING_NAMES: Dict[str, str] = {
    "linear": "Linear",
    "easeIn": "Ease In",
    "easeOut": "Ease Out",
    "easeInOut": "Ease In-Out",
    "easeInCubic": "Ease In (Cubic)",
    "easeOutCubic": "Ease Out (Cubic)",
    "easeInOutCubic": "Ease In-Out (Cubic)",
    "smoothstep": "Smoothstep",
}

DEFAULT_BEZIER = (0.5, 0.0, 0.5, 1.0)


def normalize_phase(phase: float) -> float:
    p = math.fmod(phase, TWO_PI)
    if p < 0:
        p += TWO_PI
    # fmod 負數邊界可能剛好回到 2π
    return 0.0 if p >= TWO_PI else p


def cubic_bezier_y(t: float, y1: float, y2: float) -> float:
    """y of a cubic Bezier through (0,0),(x1,y1),(x2,y2),(1,1); x is ignored."""
    mt = 1.0 - t
    return 3 * mt * mt * t * y1 + 3 * mt * t * t * y2 + t * t * t


def generate_waveform(shape, phase: float, cubic_bezier: Sequence[float] = DEFAULT_BEZIER) -> float:
    """Value in [-1, 1] of one waveform period at the given phase (radians)."""
    p = normalize_phase(phase)
    try:
        shape = WaveShape(shape)
    except ValueError:
        shape = WaveShape.SINE

    if shape is WaveShape.SQUARE:
        return 1.0 if p < math.pi else -1.0
    if shape is WaveShape.TRIANGLE:
        if p < math.pi:
            return (p / math.pi) * 2 - 1
        return 1 - ((p - math.pi) / math.pi) * 2
    if shape is WaveShape.SAW:
        return (p / TWO_PI) * 2 - 1
    if shape is WaveShape.CUBIC_BEZIER:
        try:
            _, y1, _, y2 = cubic_bezier
        except (TypeError, ValueError):
            _, y1, _, y2 = DEFAULT_BEZIER
        y = cubic_bezier_y(p / TWO_PI, y1, y2)
        return max(-1.0, min(1.0, y * 2 - 1))
    return math.sin(p)


def apply_easing(t: float, kind) -> float:
    t = max(0.0, min(1.0, t))
    try:
        kind = Easing(kind)
    except ValueError:
        return t

    if kind is Easing.EASE_IN:
        return t * t
    if kind is Easing.EASE_OUT:
        return t * (2 - t)
    if kind is Easing.EASE_IN_OUT:
        return 2 * t * t if t < 0.5 else -1 + (4 - 2 * t) * t
    if kind is Easing.EASE_IN_CUBIC:
        return t * t * t
    if kind is Easing.EASE_OUT_CUBIC:
        u = t - 1
        return u * u * u + 1
    if kind is Easing.EASE_IN_OUT_CUBIC:
        if t < 0.5:
            return 4 * t * t * t
        u = 2 * t - 2
        return (t - 1) * u * u + 1
    if kind is Easing.SMOOTHSTEP:
        return t * t * (3 - 2 * t)
    return t
