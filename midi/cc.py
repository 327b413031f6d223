# ========================= midi/cc.py =========================
import logging
import math
from typing import Any, Callable, Optional

from config import AppConfig
from luminodes.params import CHECKBOX, NUMBER, get_params
from tracks.manager import TrackManager
from trajectory.engine import TrajectoryEngine

log = logging.getLogger(__name__)

LAYOUT_RANGE = 1000.0     # x / y: -500..500
MAX_MOTION_RATE = 2.0
MAX_AMPLITUDE = 200.0


class CCMapper:
    """Routes controller CC messages to the track under control.

    A track CC above 64 picks the track; after that the luminode CC, the
    parameter CC block, layout CCs and motion CCs act on it.
    """

    def __init__(self, cfg: AppConfig, tracks: TrackManager, trajectory: TrajectoryEngine,
                 notify: Optional[Callable[[str], None]] = None):
        self.cfg = cfg
        self.tracks = tracks
        self.trajectory = trajectory
        self.notify = notify or (lambda msg: None)
        self.current_track: Optional[int] = None
        self.current_luminode: Optional[str] = None

    @property
    def mapping(self):
        return self.cfg.cc_mapping

    def matches_device(self, port_name: str) -> bool:
        if not self.mapping.enabled:
            return False
        frag = self.mapping.device_name
        if not frag:
            return True
        a, b = port_name.lower(), frag.lower()
        return b in a or a in b

    def handle_cc(self, port_name: str, control: int, value: int) -> bool:
        """Apply one CC; True if anything changed."""
        if not self.matches_device(port_name):
            return False
        level = value / 127.0
        changed = self._select_track(control, value)
        if control == self.mapping.luminode_selection:
            changed = self._select_luminode(level) or changed
        if self.current_track is None:
            return changed
        if self.current_luminode:
            changed = self._set_param(control, level) or changed
        changed = self._set_layout(control, level) or changed
        changed = self._set_motion(control, level) or changed
        return changed

    # ---------- 選擇 ----------
    def _select_track(self, control: int, value: int) -> bool:
        for tid, cc in self.mapping.track_selection.items():
            if cc != control:
                continue
            track = self.tracks.get_track(tid)
            if track is None or value <= 64:
                return False
            self.current_track = tid
            self.current_luminode = track.luminode
            self.notify(f"track {tid} active")
            return True
        return False

    def _select_luminode(self, level: float) -> bool:
        if self.current_track is None:
            return False
        names = self.tracks.get_available_luminodes()
        if not names:
            return False
        name = names[min(int(level * len(names)), len(names) - 1)]
        if not self.tracks.set_luminode(self.current_track, name):
            return False
        self.current_luminode = name
        self.notify(f"luminode: {name}")
        return True

    # ---------- 參數 ----------
    def _set_param(self, control: int, level: float) -> bool:
        m = self.mapping
        if not m.param_start <= control <= m.param_max:
            return False
        specs = get_params(self.current_luminode)
        idx = control - m.param_start
        if idx >= len(specs):
            return False
        spec = specs[idx]
        value: Any
        if spec.type == NUMBER:
            steps = (spec.max - spec.min) / spec.step
            value = int(spec.min + math.floor(level * steps + 0.5) * spec.step)
        elif spec.type == CHECKBOX:
            value = level > 0.5
        else:
            value = spec.min + level * (spec.max - spec.min)
        self.cfg.module(self.current_luminode)[spec.key] = value
        log.debug("cc %d -> %s.%s = %r", control, self.current_luminode, spec.key, value)
        self.notify(f"param: {spec.label} = {value}")
        return True

    def _set_layout(self, control: int, level: float) -> bool:
        key = self.mapping.layout.get(control)
        if key in ("x", "y"):
            value = (level - 0.5) * LAYOUT_RANGE
        elif key == "rotation":
            value = level * 360.0
        else:
            return False
        self.notify(f"layout {key}: {value:.1f}")
        return self.tracks.set_layout(self.current_track, {key: value})

    def _set_motion(self, control: int, level: float) -> bool:
        key = self.mapping.motion.get(control)
        if key == "enabled":
            value = level > 0.5
        elif key == "motion_rate":
            value = level * MAX_MOTION_RATE
        elif key == "amplitude":
            value = level * MAX_AMPLITUDE
        elif key == "trajectory_type":
            kinds = self.trajectory.trajectory_types()
            value = kinds[min(int(level * len(kinds)), len(kinds) - 1)]
        else:
            return False
        self.trajectory.update_track_config(self.current_track, {key: value})
        return True
