# app.py
import os, time, logging
import pygame
from typing import Callable, Optional
from config import AppConfig
from notes.store import NoteStore
from render.renderer import Renderer
from render.primitives import Primitives
from render.frame import FrameOrchestrator
from luminodes.registry import build_luminodes
from luminodes.params import available_luminodes
from modulation.engine import ModulationEngine
from trajectory.engine import TrajectoryEngine
from tracks.manager import TrackManager
from midi.parser import NOTE_ON, parse_midi_events
from midi.cc import CCMapper
from midi.ports import MidiInput
from timeline.scheduler import Timeline
from input.keymap import KeyboardNotes
from utils.crashlog import log_exception, set_state_provider

log = logging.getLogger(__name__)

TRACK_KEYS = {pygame.K_1: 1, pygame.K_2: 2, pygame.K_3: 3, pygame.K_4: 4}

class App:
    def __init__(self, cfg: AppConfig, clock: Callable[[], float] = time.perf_counter):
        self.cfg = cfg
        self.clock = clock
        self.renderer = Renderer(cfg.canvas)

        # 共用同一個 clock：note timestamp、frame t、modulation 起點
        self.store = NoteStore(cfg.notes, cfg.channels, clock=clock)
        self.drawer = Primitives(self.renderer.canvas, cfg)
        self.tracks = TrackManager(available_luminodes() + ["sotoGridRotated"])
        self.modulation = ModulationEngine(clock=clock)
        self.trajectory = TrajectoryEngine([t.id for t in self.tracks.get_tracks()])
        self.frame = FrameOrchestrator(cfg, self.store, self.drawer,
                                       build_luminodes(self.drawer, cfg),
                                       tracks=self.tracks, modulation=self.modulation,
                                       trajectory=self.trajectory, clock=clock)

        self.cc = CCMapper(cfg, self.tracks, self.trajectory, notify=lambda m: self._toast(m, 2.0))
        self.midi = MidiInput(self.store, cfg, self.tracks, cc=self.cc)
        self.keyboard = KeyboardNotes(self.store, cfg.channels)
        self.timeline: Optional[Timeline] = None
        self.running = False
        self.active = False

        # UI 訊息（toast）
        self._msg = ""
        self._msg_time = 0.0

        set_state_provider(self._crash_state)

    def _crash_state(self):
        return {
            "frame": self.frame.frame_count,
            "ports": ", ".join(self.midi.ports) or "-",
            "keys": f"{self.keyboard.channel} @ {self.keyboard.base_pitch}",
            "cc": f"track {self.cc.current_track} / {self.cc.current_luminode}",
            "notes": {ch: len(v) for ch, v in self.store.active.items() if v},
            "tracks": [(t.id, t.luminode, t.muted, t.solo) for t in self.tracks.get_tracks()],
        }

    # ---------- UI 訊息 ----------
    def _toast(self, msg: str, secs: float = 4.0):
        self._msg = msg
        self._msg_time = max(self._msg_time, secs)

    # ---------- 來源 ----------
    def open_ports(self):
        if not self.cfg.ports:
            return
        failed = self.midi.open(self.cfg.ports)
        if failed:
            self._toast(f"MIDI port failed: {', '.join(failed)} (see logs)", 6.0)

    def load_midi_file(self, path: str) -> bool:
        try:
            events, total = parse_midi_events(path)
        except Exception as e:
            log_exception("load_midi_file", e, path=path)
            log.exception("failed to load %s", path)
            self.timeline = None
            self._toast("Failed to load MIDI (see logs)", 6.0)
            return False
        self.timeline = Timeline(events, total, loop=True)
        log.info("loaded %s: %d events, %.1fs", path, len(events), total)
        self._toast(f"Loaded {os.path.basename(path)}", 2.0)
        return True

    def _play_timeline(self, dt: float):
        if self.timeline is None:
            return
        self.timeline.step(dt)
        for ev in self.timeline.due_events():
            channel = self.cfg.channel_routing.get(ev.channel)
            if channel is None:
                continue
            if ev.kind == NOTE_ON:
                self.store.note_on(channel, ev.pitch, ev.velocity)
            else:
                self.store.note_off(channel, ev.pitch)

    # ---------- 事件 ----------
    def handle_event(self, e):
        if e.type == pygame.QUIT:
            self.stop()
        elif e.type == pygame.VIDEORESIZE:
            self.renderer.handle_resize(e.w, e.h)
        elif e.type == pygame.KEYDOWN:
            if e.key == pygame.K_ESCAPE:
                self.stop()
            elif e.key == pygame.K_TAB:
                step = -1 if pygame.key.get_mods() & pygame.KMOD_SHIFT else 1
                self._toast(f"keys -> {self.keyboard.cycle_channel(step)}", 2.0)
            elif e.key in (pygame.K_MINUS, pygame.K_EQUALS):
                base = self.keyboard.shift_octave(-1 if e.key == pygame.K_MINUS else 1)
                self._toast(f"keys base pitch {base}", 2.0)
            elif e.key == pygame.K_SPACE and self.timeline is not None:
                self.timeline.toggle()
            elif e.key == pygame.K_BACKSPACE:
                self.store.clear()
                self.frame.reset_geometry()
            elif e.key in TRACK_KEYS:
                tid = TRACK_KEYS[e.key]
                if pygame.key.get_mods() & pygame.KMOD_SHIFT:
                    self.tracks.toggle_solo(tid)
                else:
                    self.tracks.toggle_mute(tid)
            else:
                self.keyboard.key_down(e.key)
        elif e.type == pygame.KEYUP:
            self.keyboard.key_up(e.key)

    # ---------- Main loop ----------
    def run(self):
        self.running = True
        self.open_ports()
        if self.cfg.midi_file:
            self.load_midi_file(self.cfg.midi_file)
        try:
            while self.running:
                dt = self.renderer.tick(self.cfg.canvas.fps)
                for e in pygame.event.get():
                    self.handle_event(e)
                if not self.running:
                    break

                # ===== 訊息倒數（toast） =====
                if self._msg_time > 0:
                    self._msg_time -= dt
                    if self._msg_time <= 0:
                        self._msg_time = 0
                        self._msg = ""

                self.midi.poll()
                self._play_timeline(dt)

                t = self.clock()
                self.active = self.frame.render_frame(t)
                if not self.active:
                    self.renderer.draw_idle_logo(t)
                self.renderer.draw_status_bar(self._status_text(), self._msg)
                self.renderer.end_frame()
        finally:
            self.midi.close()
            set_state_provider(None)
            pygame.quit()

    def stop(self):
        self.running = False

    def _status_text(self) -> str:
        fields = [f"KEYS: {self.keyboard.channel}",
                  f"NOTES: {sum(len(v) for v in self.store.active.values())}",
                  f"PORTS: {len(self.midi.ports)}",
                  f"FPS: {self.renderer.clock.get_fps():.0f}"]
        if self.timeline is not None:
            fields.append(f"FILE: {'PLAY' if self.timeline.playing else 'PAUSE'} {self.timeline.time:5.1f}s")
        muted = [str(t.id) for t in self.tracks.get_tracks() if t.muted]
        solo = [str(t.id) for t in self.tracks.get_tracks() if t.solo]
        if muted: fields.append("MUTE " + ",".join(muted))
        if solo: fields.append("SOLO " + ",".join(solo))
        return "  |  ".join(fields)
