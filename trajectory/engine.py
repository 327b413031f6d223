# ========================= trajectory/engine.py =========================
import logging
import math
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple

log = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]
DEFAULT_TRACK_IDS = (1, 2, 3, 4)


class TrajectoryType(str, Enum):
    WHITNEY = "whitney"
    LISSAJOUS = "lissajous"
    ORBIT = "orbit"
    X_AXIS = "xAxis"
    Y_AXIS = "yAxis"
    TRIANGLE = "triangle"
    CIRCLE = "circle"

    @property
    def label(self) -> str:
        return TRAJECTORY_TYPE_NAMES[self.value]


TRAJECTORY_TYPE_NAMES: Dict[str, str] = {
    "whitney": "Whitney Oscillations",
    "lissajous": "Lissajous Curves",
    "orbit": "Precessing Orbit",
    "xAxis": "X-Axis Movement",
    "yAxis": "Y-Axis Movement",
    "triangle": "Triangle Wave",
    "circle": "Circular Motion",
}


@dataclass(frozen=True)
class TrackTrajectoryConfig:
    enabled: bool = False
    trajectory_type: str = TrajectoryType.WHITNEY.value
    motion_rate: float = 0.5
    ratio_a: float = 1.0
    ratio_b: float = 2.0
    ratio_c: float = 3.0
    offset: Vec3 = (0.0, 0.0, 0.0)
    phase: Vec3 = (0.0, math.pi / 2, math.pi / 4)
    amplitude: float = 100.0
    inversion: bool = False


_CONFIG_FIELDS = {f.name for f in fields(TrackTrajectoryConfig)}


@dataclass
class GlobalTrajectorySettings:
    enabled: bool = True
    speed: float = 0.2
    amplitude: float = 0.4
    phase_offset: float = 0.0


def tri_wave(x: float) -> float:
    """Period-1 triangle wave in [-1, 1]."""
    return 2 * abs(2 * (x - math.floor(x + 0.5))) - 1


# ---------- 軌跡函式：(t, cfg) -> offset ----------
def _whitney(t: float, c: TrackTrajectoryConfig) -> Vec3:
    return (c.offset[0] + c.amplitude * math.cos(c.ratio_a * t + c.phase[0]),
            c.offset[1] + c.amplitude * math.sin(c.ratio_b * t + c.phase[1]),
            c.offset[2] + c.amplitude * math.sin(c.ratio_c * t + c.phase[2]))


def _lissajous(t: float, c: TrackTrajectoryConfig) -> Vec3:
    return (c.offset[0] + c.amplitude * math.sin(c.ratio_a * t + c.phase[0]),
            c.offset[1] + c.amplitude * math.sin(c.ratio_b * t + c.phase[1]),
            c.offset[2] + c.amplitude * math.sin(c.ratio_c * t + c.phase[2]))


def _orbit(t: float, c: TrackTrajectoryConfig) -> Vec3:
    outer, inner = c.amplitude * 0.6, c.amplitude * 0.4
    cx = c.offset[0] + outer * math.cos(c.ratio_a * t + c.phase[0])
    cy = c.offset[1] + outer * math.sin(c.ratio_a * t + c.phase[1])
    return (cx + inner * math.cos(c.ratio_b * t + c.phase[2]),
            cy + inner * math.sin(c.ratio_b * t + c.phase[0]),
            c.offset[2])


def _x_axis(t: float, c: TrackTrajectoryConfig) -> Vec3:
    return (c.offset[0] + c.amplitude * math.sin(c.ratio_a * t + c.phase[0]),
            c.offset[1], c.offset[2])


def _y_axis(t: float, c: TrackTrajectoryConfig) -> Vec3:
    return (c.offset[0],
            c.offset[1] + c.amplitude * math.sin(c.ratio_a * t + c.phase[0]),
            c.offset[2])


def _triangle(t: float, c: TrackTrajectoryConfig) -> Vec3:
    return (c.offset[0] + c.amplitude * tri_wave(c.ratio_a * t + c.phase[0]),
            c.offset[1] + c.amplitude * tri_wave(c.ratio_b * t + c.phase[1]),
            c.offset[2])


def _circle(t: float, c: TrackTrajectoryConfig) -> Vec3:
    return (c.offset[0] + c.amplitude * math.cos(c.ratio_a * t + c.phase[0]),
            c.offset[1] + c.amplitude * math.sin(c.ratio_a * t + c.phase[0]),
            c.offset[2])


TRAJECTORIES: Dict[str, Callable[[float, TrackTrajectoryConfig], Vec3]] = {
    TrajectoryType.WHITNEY.value: _whitney,
    TrajectoryType.LISSAJOUS.value: _lissajous,
    TrajectoryType.ORBIT.value: _orbit,
    TrajectoryType.X_AXIS.value: _x_axis,
    TrajectoryType.Y_AXIS.value: _y_axis,
    TrajectoryType.TRIANGLE.value: _triangle,
    TrajectoryType.CIRCLE.value: _circle,
}


class TrajectoryEngine:
    """Per-track time-based spatial offsets.

    A disabled track (the default) returns its base position unchanged.
    Unknown track ids read as the default config until first updated.
    """

    def __init__(self, track_ids=DEFAULT_TRACK_IDS):
        self.track_ids = tuple(track_ids)
        self.global_settings = GlobalTrajectorySettings()
        self.track_configs: Dict[int, TrackTrajectoryConfig] = {}
        self._init_default_configs()

    def _init_default_configs(self):
        for tid in self.track_ids:
            self.track_configs[tid] = TrackTrajectoryConfig()

    @staticmethod
    def get_default_config() -> TrackTrajectoryConfig:
        return TrackTrajectoryConfig()

    def get_track_config(self, track_id: int) -> TrackTrajectoryConfig:
        return self.track_configs.get(track_id) or self.get_default_config()

    def update_track_config(self, track_id: int, updates: Dict[str, Any]) -> TrackTrajectoryConfig:
        known = {k: v for k, v in updates.items() if k in _CONFIG_FIELDS}
        if len(known) != len(updates):
            log.warning("update_track_config: ignoring unknown fields %s",
                        sorted(set(updates) - set(known)))
        for vec in ("offset", "phase"):
            if vec in known:
                known[vec] = tuple(float(v) for v in known[vec])
        cfg = replace(self.get_track_config(track_id), **known)
        self.track_configs[track_id] = cfg
        return cfg

    def get_position(self, track_id: int, time: float, base_position: Vec3 = (0.0, 0.0, 0.0)) -> Vec3:
        cfg = self.get_track_config(track_id)
        if not cfg.enabled:
            return tuple(base_position)
        fn = TRAJECTORIES.get(cfg.trajectory_type)
        if fn is None:
            return tuple(base_position)
        off = fn(time * cfg.motion_rate, cfg)
        sign = -1.0 if cfg.inversion else 1.0
        return (base_position[0] + off[0] * sign,
                base_position[1] + off[1] * sign,
                base_position[2] + off[2] * sign)

    def reset_track_config(self, track_id: int):
        self.track_configs[track_id] = self.get_default_config()

    def reset_all_configs(self):
        self.track_configs.clear()
        self._init_default_configs()

    def get_all_configs(self) -> Dict[int, TrackTrajectoryConfig]:
        return dict(self.track_configs)

    @staticmethod
    def trajectory_types() -> List[str]:
        return [t.value for t in TrajectoryType]

    @staticmethod
    def trajectory_type_names() -> Dict[str, str]:
        return dict(TRAJECTORY_TYPE_NAMES)

    def set_global_settings(self, **settings):
        self.global_settings = replace(self.global_settings, **settings)

    def get_global_settings(self) -> Dict[str, Any]:
        return asdict(self.global_settings)
