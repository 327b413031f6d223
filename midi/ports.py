# ========================= midi/ports.py =========================
import logging
from typing import Callable, Dict, List, Optional

import mido

from config import AppConfig
from midi.cc import CCMapper
from midi.parser import NOTE_ON, classify
from notes.store import NoteStore
from tracks.manager import TrackManager

log = logging.getLogger(__name__)


def list_input_names() -> List[str]:
    try:
        return list(mido.get_input_names())
    except Exception:
        # 沒有 backend（例如沒裝 python-rtmidi）時當作沒有裝置
        log.warning("MIDI backend unavailable, no input ports", exc_info=True)
        return []


class MidiInput:
    """Live MIDI input ports, polled once per frame.

    Each port feeds one note channel: a track whose midi_device equals the
    port name routes it to that track's luminode, otherwise the longest
    bus-name fragment contained in the port name decides.
    Control changes go to the CC mapper, when one is attached.
    """

    def __init__(self, store: NoteStore, cfg: AppConfig, tracks: TrackManager = None,
                 opener: Callable[[str], object] = mido.open_input, cc: Optional[CCMapper] = None):
        self.store = store
        self.cfg = cfg
        self.tracks = tracks
        self.opener = opener
        self.cc = cc
        self.ports: Dict[str, object] = {}
        self.errors: List[str] = []

    def route(self, port_name: str) -> Optional[str]:
        if self.tracks is not None:
            for t in self.tracks.get_tracks():
                if t.midi_device == port_name and t.luminode:
                    return t.luminode
        lowered = port_name.lower()
        for frag in sorted(self.cfg.bus_routing, key=len, reverse=True):
            if frag.lower() in lowered:
                return self.cfg.bus_routing[frag]
        return None

    def open(self, names: List[str]) -> List[str]:
        """Open the given ports; returns the names that failed."""
        failed = []
        for name in names:
            if name in self.ports:
                continue
            try:
                self.ports[name] = self.opener(name)
                log.info("MIDI input opened: %s -> %s", name, self.route(name))
            except Exception:
                log.exception("cannot open MIDI input %r", name)
                failed.append(name)
        self.errors.extend(failed)
        return failed

    def handle(self, port_name: str, msg) -> bool:
        if msg.type == "control_change":
            return self.cc is not None and self.cc.handle_cc(port_name, msg.control, msg.value)
        note = classify(msg)
        if note is None:
            return False
        channel = self.route(port_name)
        if channel is None:
            log.debug("no route for port %r, message dropped", port_name)
            return False
        kind, _, pitch, vel = note
        if kind == NOTE_ON:
            return self.store.note_on(channel, pitch, vel)
        return self.store.note_off(channel, pitch)

    def poll(self) -> int:
        handled = 0
        for name, port in list(self.ports.items()):
            try:
                for msg in port.iter_pending():
                    handled += int(self.handle(name, msg))
            except Exception:
                log.exception("MIDI input %r failed, closing it", name)
                self._close_one(name)
                self.errors.append(name)
        return handled

    def _close_one(self, name: str):
        port = self.ports.pop(name, None)
        if port is not None:
            try:
                port.close()
            except Exception:
                log.warning("closing %r failed", name, exc_info=True)

    def close(self):
        for name in list(self.ports):
            self._close_one(name)
