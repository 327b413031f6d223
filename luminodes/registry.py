# luminodes/registry.py
from typing import Dict, List, Tuple

from config import AppConfig
from luminodes.base import Luminode
from luminodes.curves import (
    HarmonographLuminode, LissajousLuminode, MoireCirclesLuminode,
    SinewaveLuminode, WhitneyLinesLuminode,
)
from luminodes.grids import (
    PhyllotaxisLuminode, ScanlineGradientsLuminode, SotoGridLuminode, TriangleLuminode,
)
from luminodes.structures import (
    GegoNetLuminode, GegoShapeLuminode, PolygonsLuminode, SphereLuminode, WovenNetLuminode,
)
from render.primitives import Primitives

DISPLAY_NAMES: Dict[str, str] = {
    "scanlineGradients": "Scanline Gradients",
    "sotoGrid": "Soto Grid",
    "sotoGridRotated": "Soto Squares",
    "lissajous": "Lissajous",
    "harmonograph": "Harmonograph",
    "sphere": "Sphere",
    "gegoNet": "Gego Net",
    "gegoShape": "Gego Shape",
    "phyllotaxis": "Phyllotaxis",
    "whitneyLines": "Whitney Lines",
    "moireCircles": "Moire Circles",
    "wovenNet": "Woven Net",
    "sinewave": "Sine Wave",
    "triangle": "Triangle",
    "polygons": "Polygons",
}


def build_luminodes(drawer: Primitives, cfg: AppConfig) -> List[Tuple[str, Luminode]]:
    """(channel, instance) pairs in draw order: background, grids, then note shapes."""
    return [
        ("scanlineGradients", ScanlineGradientsLuminode(drawer, cfg)),
        ("sotoGrid", SotoGridLuminode(drawer, cfg, striped=False)),
        ("sotoGridRotated", SotoGridLuminode(drawer, cfg, striped=True)),
        ("lissajous", LissajousLuminode(drawer, cfg)),
        ("harmonograph", HarmonographLuminode(drawer, cfg)),
        ("sphere", SphereLuminode(drawer, cfg)),
        ("gegoNet", GegoNetLuminode(drawer, cfg)),
        ("gegoShape", GegoShapeLuminode(drawer, cfg)),
        ("phyllotaxis", PhyllotaxisLuminode(drawer, cfg)),
        ("whitneyLines", WhitneyLinesLuminode(drawer, cfg)),
        ("moireCircles", MoireCirclesLuminode(drawer, cfg)),
        ("wovenNet", WovenNetLuminode(drawer, cfg)),
        ("sinewave", SinewaveLuminode(drawer, cfg)),
        ("triangle", TriangleLuminode(drawer, cfg)),
        ("polygons", PolygonsLuminode(drawer, cfg)),
    ]
