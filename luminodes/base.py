# luminodes/base.py
import math
from typing import Any, Dict, Optional, Sequence, Tuple

from config import AppConfig
from notes.model import Note
from render.primitives import Primitives


def rotate3d(x: float, y: float, z: float, angle_x: float, angle_y: float) -> Tuple[float, float, float]:
    """Rotate around X, then around Y."""
    y1 = y * math.cos(angle_x) - z * math.sin(angle_x)
    z1 = y * math.sin(angle_x) + z * math.cos(angle_x)
    x1 = x * math.cos(angle_y) + z1 * math.sin(angle_y)
    z2 = -x * math.sin(angle_y) + z1 * math.cos(angle_y)
    return (x1, y1, z2)


def mean_velocity(notes: Sequence[Note]) -> float:
    return sum(n.velocity for n in notes) / len(notes) if notes else 0.0


class Luminode:
    """One drawing module. Holds the shared drawer, never owns the surface.

    draw(t, notes, params, layout):
      t      -- seconds, same clock as note timestamps
      notes  -- this frame's notes for the luminode's channel, may be empty
      params -- resolved parameter values; None means the config's current ones
      layout -- (x, y, rotation) offset from the screen centre
    """
    name = ""

    def __init__(self, drawer: Primitives, cfg: AppConfig):
        self.drawer = drawer
        self.canvas = drawer.canvas
        self.cfg = cfg

    def resolve(self, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return params if params is not None else self.cfg.module(self.name)

    def draw(self, t: float, notes: Sequence[Note], params=None, layout=None):
        raise NotImplementedError

    def reset(self):
        """Drop cached geometry."""
        pass
