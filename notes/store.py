# ========================= notes/store.py =========================
import logging
import time
from typing import Callable, Dict, Iterable, List

from config import NoteConfig
from notes.model import Note

log = logging.getLogger(__name__)


class NoteStore:
    """Per-channel lists of sounding notes.

    At most one note per (channel, pitch); a repeated note-on while the pitch
    is still sounding is ignored, not refreshed. Notes leave by note-off or by
    age eviction in cleanup_old_notes(). Reads of unknown channels give [].
    """

    def __init__(self, cfg: NoteConfig, channels: Iterable[str],
                 clock: Callable[[], float] = time.perf_counter):
        self.cfg = cfg
        self.clock = clock
        self.active: Dict[str, List[Note]] = {ch: [] for ch in channels}

    def note_on(self, channel: str, pitch: int, raw_velocity: float) -> bool:
        notes = self.active.get(channel)
        if notes is None:
            log.debug("note_on for unknown channel %r ignored", channel)
            return False
        if any(n.pitch == pitch for n in notes):
            return False
        vel = max(0.0, min(1.0, raw_velocity / float(self.cfg.velocity_max)))
        notes.append(Note(pitch=int(pitch), velocity=vel, timestamp=self.clock()))
        return True

    def note_off(self, channel: str, pitch: int) -> bool:
        notes = self.active.get(channel)
        if not notes:
            return False
        for i, n in enumerate(notes):
            if n.pitch == pitch:
                del notes[i]
                return True
        return False

    def cleanup_old_notes(self, max_age_ms: float = None) -> int:
        """Drop notes whose age >= max_age_ms on every channel; returns how many went."""
        if max_age_ms is None:
            max_age_ms = self.cfg.max_age_ms
        now = self.clock()
        limit = max_age_ms / 1000.0
        dropped = 0
        for ch, notes in self.active.items():
            keep = [n for n in notes if (now - n.timestamp) < limit]
            dropped += len(notes) - len(keep)
            # 整個 list 換掉，前一幀拿到的 snapshot 不受影響
            self.active[ch] = keep
        return dropped

    def get_active_notes(self, channel: str) -> List[Note]:
        return list(self.active.get(channel, ()))

    def get_active_notes_for_tracks(self) -> Dict[str, List[Note]]:
        return {ch: list(notes) for ch, notes in self.active.items()}

    def has_active_notes(self) -> bool:
        return any(self.active.values())

    def clear(self, channel: str = None):
        if channel is None:
            for ch in self.active:
                self.active[ch] = []
        elif channel in self.active:
            self.active[channel] = []
