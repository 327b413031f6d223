# ========================= modulation/engine.py =========================
import logging
import math
import time
import uuid
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from luminodes.params import ParamSpec, get_param
from modulation.waveforms import (
    DEFAULT_BEZIER, EASING_NAMES, WAVE_SHAPE_NAMES, Easing, WaveShape,
    apply_easing, generate_waveform,
)
from notes.model import NoteData

log = logging.getLogger(__name__)

MAX_MODULATORS = 4
# numberOfNotes: 10 個音（乘上 multiplier 後）即滿
NOTE_COUNT_FULL_SCALE = 10.0


class ModulatorType(str, Enum):
    LFO = "lfo"
    NUMBER_OF_NOTES = "numberOfNotes"
    VELOCITY = "velocity"

    @property
    def label(self) -> str:
        return MODULATOR_TYPE_NAMES[self.value]


MODULATOR_TYPE_NAMES: Dict[str, str] = {
    "lfo": "LFO",
    "numberOfNotes": "Number of Notes",
    "velocity": "Velocity",
}


@dataclass
class Modulator:
    id: str
    type: str = ModulatorType.LFO.value
    enabled: bool = True
    target_track: int = 1
    target_config_key: Optional[str] = None   # None 時不作用
    target_luminode: Optional[str] = None
    shape: str = WaveShape.SINE.value
    rate: float = 0.5        # cycles per second
    depth: float = 0.5       # fraction of the parameter range
    offset: float = 0.0      # fraction of the parameter range
    cubic_bezier: Tuple[float, float, float, float] = DEFAULT_BEZIER
    multiplier: float = 1.0
    easing: str = Easing.LINEAR.value
    threshold: float = 0.5

    def matches(self, track_id: int, luminode: str, key: str) -> bool:
        return (self.enabled and self.target_track == track_id
                and self.target_luminode == luminode
                and self.target_config_key == key)


_MODULATOR_FIELDS = {f.name for f in fields(Modulator)} - {"id"}


def _param_range(param) -> Tuple[float, float]:
    if isinstance(param, ParamSpec):
        return float(param.min), float(param.max)
    return float(param["min"]), float(param["max"])


def _param_type(param) -> str:
    if isinstance(param, ParamSpec):
        return param.type
    return param.get("type", "slider")


class ModulationEngine:
    """Bounded list of modulators that reshape luminode parameters.

    An LFO adds a waveform (depth and offset scaled to the parameter range) to
    the base value; note-driven modulators (numberOfNotes, velocity) replace it
    with an eased activity level mapped into [min, max]. Checkbox parameters
    become `activity >= threshold`. Numeric results always stay in [min, max].
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter,
                 max_modulators: int = MAX_MODULATORS):
        self.clock = clock
        self.max_modulators = max_modulators
        self.modulators: List[Modulator] = []
        self.start_time = clock()

    # ---------- 管理 ----------
    def add_modulator(self, type=ModulatorType.LFO) -> Optional[str]:
        if len(self.modulators) >= self.max_modulators:
            log.info("modulator cap (%d) reached", self.max_modulators)
            return None
        try:
            mtype = ModulatorType(type).value
        except ValueError:
            mtype = ModulatorType.LFO.value
        mod = Modulator(id=f"modulator-{uuid.uuid4().hex[:12]}", type=mtype)
        self.modulators.append(mod)
        return mod.id

    def remove_modulator(self, modulator_id: str) -> bool:
        for i, m in enumerate(self.modulators):
            if m.id == modulator_id:
                del self.modulators[i]
                return True
        return False

    def update_modulator(self, modulator_id: str, updates: Dict[str, Any]) -> bool:
        for i, m in enumerate(self.modulators):
            if m.id != modulator_id:
                continue
            known = {k: v for k, v in updates.items() if k in _MODULATOR_FIELDS}
            unknown = set(updates) - set(known)
            if unknown:
                log.warning("update_modulator: ignoring unknown fields %s", sorted(unknown))
            if "cubic_bezier" in known:
                known["cubic_bezier"] = tuple(known["cubic_bezier"])
            self.modulators[i] = replace(m, **known)
            return True
        return False

    def get_modulators(self) -> List[Modulator]:
        return list(self.modulators)

    def get_modulator(self, modulator_id: str) -> Optional[Modulator]:
        return next((m for m in self.modulators if m.id == modulator_id), None)

    def reset(self):
        self.modulators = []

    # ---------- 查詢 ----------
    @staticmethod
    def get_waveform_shapes() -> List[str]:
        return [s.value for s in WaveShape]

    @staticmethod
    def get_waveform_shape_names() -> Dict[str, str]:
        return dict(WAVE_SHAPE_NAMES)

    @staticmethod
    def get_modulator_types() -> List[str]:
        return [t.value for t in ModulatorType]

    @staticmethod
    def get_modulator_type_names() -> Dict[str, str]:
        return dict(MODULATOR_TYPE_NAMES)

    @staticmethod
    def get_easing_kinds() -> List[str]:
        return [e.value for e in Easing]

    @staticmethod
    def get_easing_names() -> Dict[str, str]:
        return dict(EASING_NAMES)

    def get_current_time(self) -> float:
        return self.clock() - self.start_time

    # ---------- 計算 ----------
    def _activity(self, modulator: Modulator, note_data: Optional[NoteData]) -> Optional[float]:
        """Normalized 0..1 activity of a note-driven modulator, None if it has no input."""
        if note_data is None:
            return None
        if modulator.type == ModulatorType.NUMBER_OF_NOTES.value:
            if note_data.count == 0:
                return None
            level = min(1.0, note_data.count * modulator.multiplier / NOTE_COUNT_FULL_SCALE)
        else:
            v = note_data.mean_velocity()
            if v is None:
                return None
            level = v * modulator.multiplier
        return apply_easing(max(0.0, min(1.0, level)), modulator.easing)

    def get_modulated_value(self, base_value, modulator: Modulator, config_param,
                            note_data: Optional[NoteData] = None):
        if not modulator.enabled or not modulator.target_config_key:
            return base_value

        is_bool = _param_type(config_param) == "checkbox"
        lo, hi = _param_range(config_param)
        span = hi - lo

        if modulator.type == ModulatorType.LFO.value:
            phase = self.get_current_time() * modulator.rate * math.pi * 2
            wave = generate_waveform(modulator.shape, phase, modulator.cubic_bezier)
            if is_bool:
                level = max(0.0, min(1.0, (wave * modulator.depth + modulator.offset + 1) / 2))
                return level >= modulator.threshold
            value = float(base_value) + wave * modulator.depth * span + modulator.offset * span
            return max(lo, min(hi, value))

        if modulator.type not in (ModulatorType.NUMBER_OF_NOTES.value, ModulatorType.VELOCITY.value):
            return base_value

        level = self._activity(modulator, note_data)
        if level is None:
            return base_value
        if is_bool:
            return level >= modulator.threshold
        value = lo + level * span
        if _param_type(config_param) == "number":
            value = math.floor(value + 0.5)  # 0.5 一律進位
        return max(lo, min(hi, value))

    def apply_modulation(self, track_id: int, luminode_type: str, key: str, base_value,
                         config_param, note_data: Optional[NoteData] = None):
        value = base_value
        for m in self.modulators:
            if m.matches(track_id, luminode_type, key):
                value = self.get_modulated_value(value, m, config_param, note_data)
        return value

    def get_modulated_config(self, track_id: int, luminode_type: str, base_config: Dict[str, Any],
                             note_data: Optional[NoteData] = None) -> Dict[str, Any]:
        out = dict(base_config)
        relevant = [m for m in self.modulators
                    if m.enabled and m.target_track == track_id
                    and m.target_luminode == luminode_type and m.target_config_key]
        for m in relevant:
            key = m.target_config_key
            param = get_param(luminode_type, key)
            if param is None or key not in out:
                continue
            out[key] = self.get_modulated_value(out[key], m, param, note_data)
        return out
