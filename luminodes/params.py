# luminodes/params.py
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

SLIDER = "slider"
NUMBER = "number"      # 整數參數
CHECKBOX = "checkbox"  # 布林參數


@dataclass(frozen=True)
class ParamSpec:
    key: str
    label: str
    type: str = SLIDER
    min: float = 0.0
    max: float = 1.0
    step: float = 0.01
    default: Any = 0.0

    @property
    def is_integer(self) -> bool:
        return self.type == NUMBER

    @property
    def is_boolean(self) -> bool:
        return self.type == CHECKBOX


def _slider(key, label, lo, hi, step, default):
    return ParamSpec(key, label, SLIDER, lo, hi, step, default)

def _number(key, label, lo, hi, default):
    return ParamSpec(key, label, NUMBER, lo, hi, 1, default)

def _checkbox(key, label, default=False):
    return ParamSpec(key, label, CHECKBOX, 0, 1, 1, default)


LUMINODE_PARAMS: Dict[str, List[ParamSpec]] = {
    "scanlineGradients": [
        _number("DENSITY", "Line Density", 20, 300, 150),
        _slider("STRENGTH", "Line Strength", 0.0, 1.0, 0.05, 0.5),
        _slider("DRIFT_SPEED", "Drift Speed", 0.0, 1.0, 0.01, 0.2),
    ],
    "lissajous": [
        _slider("SCALE", "Scale", 50, 500, 10, 250),
        _slider("ROTATION_SPEED", "Rotation Speed", 0, 1, 0.01, 0.1),
        _slider("LINE_WIDTH", "Line Width", 0.5, 5, 0.1, 1),
        _slider("SHADOW_BLUR", "Shadow Blur", 0, 50, 1, 25),
    ],
    "harmonograph": [
        _slider("BASE_AMPLITUDE", "Base Amplitude", 50, 200, 5, 100),
        _slider("AMPLITUDE_VARIATION", "Amplitude Variation", 10, 100, 5, 50),
        _slider("VELOCITY_SCALE", "Velocity Scale", 0.5, 3, 0.1, 1.5),
        _number("ITERATIONS", "Iterations", 1000, 5000, 3000),
        _slider("TIME_STEP", "Time Step", 0.001, 0.01, 0.0001, 0.002),
        _slider("SHADOW_BLUR", "Shadow Blur", 0, 50, 1, 25),
    ],
    "sphere": [
        _slider("BASE_RADIUS", "Base Radius", 50, 300, 10, 160),
        _number("LAT_LINES", "Latitude Lines", 3, 30, 12),
        _number("LON_LINES", "Longitude Lines", 3, 50, 20),
        _slider("DEFORM_FACTOR", "Deform Factor", 0.5, 3, 0.1, 1.2),
        _slider("LINE_WIDTH", "Line Width", 0.5, 3, 0.1, 1),
        _checkbox("USE_COLOR", "Color Mode"),
    ],
    "gegoNet": [
        _number("BASE_NODES", "Base Nodes", 3, 10, 5),
        _number("NODES_PER_NOTE", "Nodes Per Note", 5, 30, 15),
        _slider("CONNECTION_DISTANCE", "Connection Distance", 0.3, 1, 0.05, 0.7),
        _number("MAX_CONNECTIONS", "Max Connections", 2, 10, 5),
    ],
    "gegoShape": [
        _number("BASE_NODES", "Base Nodes", 3, 8, 4),
        _number("NODES_PER_NOTE", "Nodes Per Note", 1, 5, 2),
        _slider("BASE_SIZE", "Base Size", 100, 400, 10, 240),
        _slider("CONNECTION_PROBABILITY", "Connection Probability", 0.1, 0.8, 0.05, 0.3),
    ],
    "sotoGrid": [
        _slider("BASE_SIZE", "Base Size", 40, 120, 5, 80),
        _slider("VELOCITY_MULTIPLIER", "Velocity Multiplier", 1, 10, 0.5, 5),
        _slider("STRIPE_WIDTH", "Stripe Width", 1, 8, 0.5, 3),
        _slider("SOLID_HEIGHT_RATIO", "Solid Height Ratio", 0.1, 0.5, 0.05, 0.2),
    ],
    "moireCircles": [
        _number("BASE_COUNT", "Base Count", 3, 15, 8),
        _slider("SPACING", "Spacing", 20, 60, 2, 35),
        _slider("SPEED", "Speed", 0.0005, 0.005, 0.0001, 0.0015),
    ],
    "phyllotaxis": [
        _slider("GOLDEN_ANGLE", "Golden Angle", 2, 4, 0.1, math.pi * (3 - math.sqrt(5))),
        _slider("SCALE", "Scale", 5, 25, 1, 12),
        _slider("BASE_SIZE", "Base Size", 1, 8, 0.5, 3),
        _slider("MAX_SIZE", "Max Size", 3, 15, 1, 9),
        _slider("ROTATION_SPEED", "Rotation Speed", 0.05, 0.5, 0.01, 0.15),
        _number("DOTS_PER_NOTE", "Dots Per Note", 5, 50, 20),
    ],
    "wovenNet": [
        _number("BASE_GRID_SIZE", "Base Grid Size", 3, 10, 5),
        _number("GRID_SIZE_PER_NOTE", "Grid Size Per Note", 1, 5, 2),
        _slider("SPACING", "Spacing", 15, 50, 2, 30),
        _slider("BASE_SIZE", "Base Size", 10, 40, 2, 20),
        _slider("SIZE_VARIATION", "Size Variation", 5, 25, 1, 15),
    ],
    "polygons": [
        _number("BASE_LAYERS", "Base Layers", 1, 5, 2),
        _number("MAX_LAYERS", "Max Layers", 2, 6, 3),
        _slider("MAX_SIZE", "Max Size", 100, 350, 10, 220),
        _slider("SPACING", "Spacing", 20, 60, 2, 40),
        _slider("LAYER_OFFSET", "Layer Offset", 5, 25, 1, 12),
        _slider("JITTER_BASE", "Jitter Base", 1, 10, 0.5, 4),
        _slider("JITTER_INCREMENT", "Jitter Increment", 0.5, 3, 0.1, 1.5),
        _number("BASE_SIDES", "Base Sides", 3, 12, 6),
        _number("SIDES_VARIATION", "Sides Variation", 1, 6, 3),
    ],
    "whitneyLines": [
        _slider("RADIUS", "Radius", 150, 400, 10, 250),
        _number("LINES_PER_NOTE", "Lines Per Note", 5, 25, 10),
        _slider("ROTATION_SPEED", "Rotation Speed", 0.1, 2, 0.1, 0.5),
        _slider("LINE_WIDTH", "Line Width", 0.3, 2, 0.1, 0.8),
        _slider("SHADOW_BLUR", "Shadow Blur", 0, 30, 1, 15),
        _checkbox("USE_COLOR", "Color Mode"),
    ],
    "sinewave": [
        _slider("LINE_WIDTH", "Line Width", 0.5, 6, 0.1, 1.5),
    ],
    "triangle": [
        _slider("SIZE", "Size", 50, 500, 5, 250),
        _slider("ROTATION_SPEED", "Rotation Speed", 0.1, 2, 0.1, 0.8),
        _slider("LINE_WIDTH", "Line Width", 0.5, 3, 0.1, 1.2),
        _slider("OPACITY", "Opacity", 0.1, 1, 0.05, 0.7),
    ],
}


def get_params(luminode: str) -> List[ParamSpec]:
    if luminode == "sotoGridRotated":
        luminode = "sotoGrid"
    return LUMINODE_PARAMS.get(luminode, [])


def get_param(luminode: str, key: str) -> Optional[ParamSpec]:
    for p in get_params(luminode):
        if p.key == key:
            return p
    return None


def available_luminodes() -> List[str]:
    return list(LUMINODE_PARAMS.keys())


def has_params(luminode: str) -> bool:
    return bool(get_params(luminode))


def default_values(luminode: str) -> Dict[str, Any]:
    return {p.key: p.default for p in get_params(luminode)}
