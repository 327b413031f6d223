# ========================= tracks/manager.py =========================
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional

log = logging.getLogger(__name__)

DEFAULT_TRACK_LUMINODES = ("lissajous", "harmonograph", "sphere", "gegoNet")


@dataclass
class Track:
    id: int
    name: str
    muted: bool = False
    solo: bool = False
    midi_device: Optional[str] = None
    luminode: Optional[str] = None
    layout: Dict[str, float] = field(default_factory=lambda: {"x": 0.0, "y": 0.0, "rotation": 0.0})


_TRACK_FIELDS = {f.name for f in fields(Track)} - {"id"}


def _default_tracks() -> List[Track]:
    return [Track(id=i + 1, name=f"Track {i + 1}", luminode=lum)
            for i, lum in enumerate(DEFAULT_TRACK_LUMINODES)]


class TrackManager:
    """Four tracks routing a device and a luminode, with mute/solo.

    Callbacks registered with on() fire as callback(payload) on
    'trackUpdated' ({'track_id', 'track'}) and 'tracksReset' (None).
    """

    def __init__(self, available_luminodes: List[str] = None):
        self.tracks: List[Track] = _default_tracks()
        self.available_luminodes = list(available_luminodes or [])
        self.callbacks: Dict[str, List[Callable[[Any], None]]] = {}

    # ---------- 事件 ----------
    def on(self, event: str, callback: Callable[[Any], None]):
        self.callbacks.setdefault(event, []).append(callback)

    def _emit(self, event: str, payload=None):
        for cb in self.callbacks.get(event, []):
            cb(payload)

    def _updated(self, track: Track):
        self._emit("trackUpdated", {"track_id": track.id, "track": track})

    # ---------- 查詢 ----------
    def get_tracks(self) -> List[Track]:
        return self.tracks

    def get_track(self, track_id: int) -> Optional[Track]:
        return next((t for t in self.tracks if t.id == track_id), None)

    def get_active_tracks(self) -> List[Track]:
        """Soloed tracks if any track is soloed, otherwise every unmuted track."""
        soloed = [t for t in self.tracks if t.solo]
        if soloed:
            return soloed
        return [t for t in self.tracks if not t.muted]

    def track_for_luminode(self, luminode: str) -> Optional[Track]:
        return next((t for t in self.get_active_tracks() if t.luminode == luminode), None)

    def silenced_luminodes(self):
        """Luminodes whose tracks are all inactive; their channels draw nothing."""
        active = {t.luminode for t in self.get_active_tracks()}
        return {t.luminode for t in self.tracks if t.luminode and t.luminode not in active}

    def get_available_luminodes(self) -> List[str]:
        return list(self.available_luminodes)

    # ---------- 修改 ----------
    def update_track(self, track_id: int, updates: Dict[str, Any]) -> bool:
        track = self.get_track(track_id)
        if track is None:
            return False
        for k, v in updates.items():
            if k in _TRACK_FIELDS:
                setattr(track, k, v)
            else:
                log.warning("update_track: unknown field %r ignored", k)
        self._updated(track)
        return True

    def toggle_mute(self, track_id: int) -> bool:
        track = self.get_track(track_id)
        if track is None:
            return False
        track.muted = not track.muted
        if track.muted and track.solo:
            track.solo = False
        self._updated(track)
        return True

    def toggle_solo(self, track_id: int) -> bool:
        track = self.get_track(track_id)
        if track is None:
            return False
        track.solo = not track.solo
        if track.solo and track.muted:
            track.muted = False
        self._updated(track)
        return True

    def set_midi_device(self, track_id: int, device: Optional[str]) -> bool:
        return self.update_track(track_id, {"midi_device": device})

    def set_luminode(self, track_id: int, luminode: Optional[str]) -> bool:
        if luminode is not None and self.available_luminodes and luminode not in self.available_luminodes:
            log.warning("set_luminode: unknown luminode %r", luminode)
            return False
        return self.update_track(track_id, {"luminode": luminode})

    def set_layout(self, track_id: int, layout_updates: Dict[str, float]) -> bool:
        track = self.get_track(track_id)
        if track is None:
            return False
        track.layout = {**track.layout, **layout_updates}
        self._updated(track)
        return True

    def reset_tracks(self):
        for t in self.tracks:
            t.muted = False
            t.solo = False
            t.midi_device = None
            t.luminode = None
        self._emit("tracksReset")
