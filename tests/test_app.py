"""Tests for command-line config and the application wiring."""

import mido
import pygame
import pytest

from app import App
from main import build_parser, config_from_args
from utils.crashlog import log_exception


@pytest.fixture
def app(cfg, clock, tmp_path, monkeypatch):
    monkeypatch.setenv("GLOW_LOG_DIR", str(tmp_path / "logs"))
    return App(cfg, clock=clock)


def _key(kind, key):
    return pygame.event.Event(kind, key=key, mod=0, unicode="", scancode=0)


def _write_song(path):
    mid = mido.MidiFile(ticks_per_beat=480)
    track = mido.MidiTrack()
    track.append(mido.Message("note_on", note=60, velocity=90, channel=5, time=0))
    track.append(mido.Message("note_off", note=60, velocity=0, channel=5, time=480))
    mid.tracks.append(track)
    mid.save(str(path))


class TestCommandLine:
    def test_defaults(self):
        cfg = config_from_args(build_parser().parse_args([]))
        assert (cfg.canvas.window_w, cfg.canvas.window_h) == (1600, 900)
        assert cfg.notes.max_age_ms == 100000.0
        assert cfg.ports == [] and cfg.midi_file is None

    def test_overrides(self):
        args = build_parser().parse_args([
            "--width", "800", "--height", "600", "--max-age-ms", "2000",
            "--clear-alpha", "3", "--port", "A", "--port", "B", "--midi-file", "x.mid"])
        cfg = config_from_args(args)
        assert cfg.canvas.window_w == 800 and cfg.notes.max_age_ms == 2000.0
        assert cfg.canvas.clear_alpha == 1.0
        assert cfg.ports == ["A", "B"] and cfg.midi_file == "x.mid"


class TestApp:
    def test_wiring_shares_clock(self, app, clock):
        assert app.frame.tracks is app.tracks
        assert app.frame.modulation is app.modulation
        assert app.modulation.start_time == clock()
        assert len(app.frame.luminodes) == 15

    def test_load_missing_file(self, app, tmp_path):
        assert app.load_midi_file(str(tmp_path / "nope.mid")) is False
        assert app.timeline is None
        assert "Failed" in app._msg
        assert list((tmp_path / "logs").glob("error-*.txt"))

    def test_file_playback_routes_by_channel(self, app, tmp_path):
        path = tmp_path / "song.mid"
        _write_song(path)
        assert app.load_midi_file(str(path)) is True
        app._play_timeline(0.01)
        # MIDI channel 5 -> bus 6 -> triangle
        assert [n.pitch for n in app.store.get_active_notes("triangle")] == [60]
        app._play_timeline(0.5)
        assert app.store.get_active_notes("triangle") == []

    def test_failed_port_toast(self, cfg, clock, tmp_path, monkeypatch):
        monkeypatch.setenv("GLOW_LOG_DIR", str(tmp_path))
        cfg.ports = ["Ghost Bus 1"]
        app = App(cfg, clock=clock)

        def opener(name):
            raise IOError(name)

        app.midi.opener = opener
        app.open_ports()
        assert "Ghost Bus 1" in app._msg

    def test_keyboard_notes(self, app):
        app.handle_event(_key(pygame.KEYDOWN, pygame.K_c))
        assert [n.pitch for n in app.store.get_active_notes("triangle")] == [64]
        app.handle_event(_key(pygame.KEYUP, pygame.K_c))
        assert app.store.get_active_notes("triangle") == []

    def test_track_keys_and_clear(self, app):
        app.handle_event(_key(pygame.KEYDOWN, pygame.K_2))
        assert app.tracks.get_track(2).muted
        assert "MUTE 2" in app._status_text()
        app.store.note_on("sphere", 60, 100)
        app.handle_event(_key(pygame.KEYDOWN, pygame.K_BACKSPACE))
        assert not app.store.has_active_notes()

    def test_escape_stops(self, app):
        app.running = True
        app.handle_event(_key(pygame.KEYDOWN, pygame.K_ESCAPE))
        assert app.running is False

    def test_frame_renders_to_window(self, app, clock):
        app.store.note_on("lissajous", 60, 100)
        assert app.frame.render_frame(clock()) is True
        app.renderer.draw_status_bar(app._status_text(), "hello")
        app.renderer.draw_idle_logo(clock())


class TestCrashLog:
    def test_error_report_carries_context_and_state(self, app, tmp_path):
        try:
            raise ValueError("bad header")
        except ValueError as e:
            path = log_exception("load", e, path="song.mid")
        text = open(path, encoding="utf-8").read()
        assert "[load] ValueError: bad header" in text
        assert "path: song.mid" in text
        assert "frame: 0" in text
        assert "Traceback" in text
