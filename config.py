# ========================= config.py =========================
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from luminodes.params import available_luminodes, default_values

# 每個 luminode 實例一條 channel（sotoGrid 有兩個實例）
CHANNELS: Tuple[str, ...] = (
    "scanlineGradients",
    "sotoGrid",
    "sotoGridRotated",
    "lissajous",
    "harmonograph",
    "sphere",
    "gegoNet",
    "gegoShape",
    "phyllotaxis",
    "whitneyLines",
    "moireCircles",
    "wovenNet",
    "sinewave",
    "triangle",
    "polygons",
)

# port 名稱片段 -> channel
DEFAULT_BUS_ROUTING: Dict[str, str] = {
    "bus 1": "lissajous",
    "bus 2": "harmonograph",
    "bus 3": "sphere",
    "bus 4": "gegoNet",
    "bus 5": "sinewave",
    "bus 6": "triangle",
    "bus 7": "moireCircles",
    "bus 8": "gegoShape",
    "bus 9": "sotoGrid",
    "bus 10": "sotoGridRotated",
    "bus 11": "scanlineGradients",
    "bus 12": "phyllotaxis",
    "bus 13": "wovenNet",
    "bus 14": "polygons",
    "bus 15": "whitneyLines",
}


def _default_channel_routing() -> Dict[int, str]:
    # MIDI ch 0..14 依序對應到 bus 1..15
    return {i: DEFAULT_BUS_ROUTING[f"bus {i + 1}"] for i in range(len(DEFAULT_BUS_ROUTING))}


def _default_modules() -> Dict[str, Dict[str, Any]]:
    return {name: default_values(name) for name in available_luminodes()}


@dataclass
class CanvasConfig:
    window_w: int = 1600
    window_h: int = 900
    fps: int = 60
    clear_alpha: float = 0.4          # fade 殘影
    background_color: str = "#000000"


@dataclass
class NoteConfig:
    velocity_max: int = 127
    max_age_ms: float = 100000.0


@dataclass
class ColorConfig:
    soto_palette: List[str] = field(default_factory=lambda: [
        "#EF4136",  # red-orange
        "#005BBB",  # blue
        "#FCEE09",  # yellow
        "#2E7D32",  # green
        "#FFFFFF",
        "#4A148C",  # purple
        "#8B0000",  # dark red
    ])
    polygon_colors: List[str] = field(default_factory=lambda: [
        "#f93822", "#fcdc4d", "#00a6a6", "#90be6d", "#f94144", "#ff006e", "#8338ec",
    ])
    gradient_colors: List[str] = field(default_factory=lambda: ["#4444ff", "#ffeeaa", "#ff77cc"])
    pitch_color_factor: float = 30.0


@dataclass
class CCMapping:
    """Control-change layout for a hardware controller.

    device_name is a port-name fragment (either way, case-insensitive);
    None accepts every port. Track CCs select the track under control when
    the value is above 64.
    """
    enabled: bool = True
    device_name: Optional[str] = None
    track_selection: Dict[int, int] = field(default_factory=lambda: {1: 20, 2: 21, 3: 22, 4: 23})  # track id -> CC
    luminode_selection: Optional[int] = 24
    param_start: int = 30       # CC 30 -> 第一個參數，依序往後
    param_max: int = 45
    layout: Dict[int, str] = field(default_factory=lambda: {46: "x", 47: "y", 48: "rotation"})
    motion: Dict[int, str] = field(default_factory=lambda: {
        50: "enabled", 51: "motion_rate", 52: "amplitude", 53: "trajectory_type"})


@dataclass
class AppConfig:
    canvas: CanvasConfig = field(default_factory=CanvasConfig)
    notes: NoteConfig = field(default_factory=NoteConfig)
    colors: ColorConfig = field(default_factory=ColorConfig)
    modules: Dict[str, Dict[str, Any]] = field(default_factory=_default_modules)
    channels: Tuple[str, ...] = CHANNELS
    bus_routing: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_BUS_ROUTING))
    channel_routing: Dict[int, str] = field(default_factory=_default_channel_routing)
    cc_mapping: CCMapping = field(default_factory=CCMapping)
    midi_file: Optional[str] = None
    ports: List[str] = field(default_factory=list)

    def module(self, name: str) -> Dict[str, Any]:
        """Current parameter values of one luminode (sotoGridRotated shares sotoGrid's)."""
        if name == "sotoGridRotated":
            name = "sotoGrid"
        return self.modules.setdefault(name, default_values(name))
