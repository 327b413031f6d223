# ========================= render/frame.py =========================
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from config import AppConfig
from luminodes.base import Luminode
from luminodes.params import get_params
from modulation.engine import ModulationEngine
from notes.model import Note, NoteData
from notes.store import NoteStore
from render.primitives import Primitives
from trajectory.engine import TrajectoryEngine
from tracks.manager import TrackManager

log = logging.getLogger(__name__)


class FrameOrchestrator:
    """One tick of the visualizer.

    render_frame(t): evict old notes, fade the surface, snapshot notes per
    channel, draw every luminode in order, and return whether any channel
    holds a note. Parameters and layout of a luminode come from the first
    active track assigned to it (modulators plus trajectory); otherwise the
    config values and a centred layout are used.
    """

    def __init__(self, cfg: AppConfig, store: NoteStore, drawer: Primitives,
                 luminodes: Sequence[Tuple[str, Luminode]],
                 tracks: TrackManager = None,
                 modulation: ModulationEngine = None,
                 trajectory: TrajectoryEngine = None,
                 clock: Callable[[], float] = time.perf_counter):
        self.cfg = cfg
        self.store = store
        self.drawer = drawer
        self.luminodes: List[Tuple[str, Luminode]] = list(luminodes)
        self.tracks = tracks or TrackManager([ch for ch, _ in self.luminodes])
        self.modulation = modulation or ModulationEngine(clock=clock)
        self.trajectory = trajectory or TrajectoryEngine(t.id for t in self.tracks.get_tracks())
        self.clock = clock
        self.start_time = clock()
        self.frame_count = 0

    def resolve(self, channel: str, notes: Sequence[Note], t: float) -> Tuple[Dict[str, Any], Dict[str, float]]:
        params = dict(self.cfg.module(channel))
        track = self.tracks.track_for_luminode(channel)
        if track is None:
            return params, {"x": 0.0, "y": 0.0, "rotation": 0.0}

        note_data = NoteData(list(notes))
        for spec in get_params(channel):
            if spec.key in params:
                params[spec.key] = self.modulation.apply_modulation(
                    track.id, channel, spec.key, params[spec.key], spec, note_data)

        layout = dict(track.layout)
        x, y, _ = self.trajectory.get_position(
            track.id, t - self.start_time, (layout.get("x", 0.0), layout.get("y", 0.0), 0.0))
        layout["x"], layout["y"] = x, y
        return params, layout

    def render_frame(self, t: Optional[float] = None) -> bool:
        if t is None:
            t = self.clock()
        self.frame_count += 1

        dropped = self.store.cleanup_old_notes(self.cfg.notes.max_age_ms)
        if dropped:
            log.debug("frame %d: evicted %d notes", self.frame_count, dropped)

        self.drawer.clear()

        snapshot = self.store.get_active_notes_for_tracks()
        silenced = self.tracks.silenced_luminodes()

        for channel, lum in self.luminodes:
            notes = [] if channel in silenced else snapshot.get(channel, [])
            try:
                params, layout = self.resolve(channel, notes, t)
                lum.draw(t, notes, params, layout)
            except Exception:
                log.exception("luminode %s failed, skipped this frame", channel)

        return any(snapshot.values())

    def reset_geometry(self):
        for _, lum in self.luminodes:
            lum.reset()
