"""Tests for MIDI parsing, file playback and live/keyboard note input."""

import mido
import pygame
import pytest

from input.keymap import KEY_VELOCITY, KeyboardNotes
from luminodes.params import available_luminodes
from midi import ports
from midi.cc import CCMapper
from midi.parser import NOTE_OFF, NOTE_ON, classify, events_from_tracks, parse_midi_events
from midi.ports import MidiInput
from timeline.scheduler import Timeline
from tracks.manager import TrackManager
from trajectory.engine import TrajectoryEngine

TPB = 480


def _track(*msgs):
    track = mido.MidiTrack()
    track.extend(msgs)
    return track


def _on(note, time=0, channel=0, velocity=100):
    return mido.Message("note_on", note=note, velocity=velocity, time=time, channel=channel)


def _off(note, time=0, channel=0):
    return mido.Message("note_off", note=note, velocity=0, time=time, channel=channel)


class FakePort:
    def __init__(self, messages=(), fail=False):
        self.messages = list(messages)
        self.fail = fail
        self.closed = False

    def iter_pending(self):
        if self.fail:
            raise IOError("device unplugged")
        msgs, self.messages = self.messages, []
        return iter(msgs)

    def close(self):
        self.closed = True


class TestClassify:
    def test_note_messages(self):
        assert classify(_on(60, channel=3)) == (NOTE_ON, 3, 60, 100)
        assert classify(_off(60)) == (NOTE_OFF, 0, 60, 0)

    def test_zero_velocity_note_on_is_off(self):
        assert classify(_on(60, velocity=0)) == (NOTE_OFF, 0, 60, 0)

    def test_other_messages(self):
        assert classify(mido.Message("control_change", control=1, value=64)) is None
        assert classify(mido.MetaMessage("set_tempo", tempo=400000)) is None


class TestEventsFromTracks:
    def test_default_tempo(self):
        events, total = events_from_tracks([_track(_on(60), _off(60, time=TPB))], TPB)
        assert [(e.time, e.kind, e.pitch) for e in events] == [(0.0, NOTE_ON, 60), (0.5, NOTE_OFF, 60)]
        assert total == pytest.approx(0.5)
        assert events[0].velocity == 100

    def test_tempo_change(self):
        track = _track(mido.MetaMessage("set_tempo", tempo=250000), _on(60), _off(60, time=TPB))
        events, total = events_from_tracks([track], TPB)
        assert events[-1].time == pytest.approx(0.25)

    def test_tracks_are_merged(self):
        a = _track(_on(60), _off(60, time=TPB * 2))
        b = _track(_on(64, time=TPB, channel=1), _off(64, time=TPB, channel=1))
        events, total = events_from_tracks([a, b], TPB)
        assert [(e.time, e.pitch) for e in events] == [(0.0, 60), (0.5, 64), (1.0, 60), (1.0, 64)]
        assert total == pytest.approx(1.0)

    def test_unmatched_off_dropped_and_dangling_closed(self):
        track = _track(_off(50), _on(60), _on(62, time=TPB))
        events, total = events_from_tracks([track], TPB)
        assert [(e.kind, e.pitch) for e in events] == [
            (NOTE_ON, 60), (NOTE_ON, 62), (NOTE_OFF, 60), (NOTE_OFF, 62)]
        assert all(e.time == pytest.approx(0.5) for e in events[1:])

    def test_off_sorts_before_on_at_same_time(self):
        track = _track(_on(60), _off(60, time=TPB), _on(60), _off(60, time=TPB))
        events, _ = events_from_tracks([track], TPB)
        assert [e.kind for e in events] == [NOTE_ON, NOTE_OFF, NOTE_ON, NOTE_OFF]

    def test_parse_file(self, tmp_path):
        mid = mido.MidiFile(ticks_per_beat=TPB)
        mid.tracks.append(_track(_on(72, channel=5), _off(72, time=TPB * 4, channel=5)))
        path = tmp_path / "song.mid"
        mid.save(str(path))
        events, total = parse_midi_events(str(path))
        assert [(e.channel, e.pitch, e.kind) for e in events] == [(5, 72, NOTE_ON), (5, 72, NOTE_OFF)]
        assert total == pytest.approx(2.0)

    def test_parse_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            parse_midi_events(str(tmp_path / "missing.mid"))


class TestTimeline:
    def _timeline(self, loop=False):
        events, total = events_from_tracks(
            [_track(_on(60), _off(60, time=TPB), _on(62), _off(62, time=TPB))], TPB)
        return Timeline(events, total, loop=loop)

    def test_releases_due_events(self):
        tl = self._timeline()
        assert [e.pitch for e in tl.due_events()] == [60]
        tl.step(0.3)
        assert list(tl.due_events()) == []
        tl.step(0.2)
        assert [(e.kind, e.pitch) for e in tl.due_events()] == [(NOTE_OFF, 60), (NOTE_ON, 62)]
        tl.step(0.5)
        assert len(list(tl.due_events())) == 1
        assert tl.finished

    def test_pause(self):
        tl = self._timeline()
        tl.toggle()
        tl.step(5.0)
        assert tl.time == 0.0 and not tl.playing

    def test_loop_rewinds_with_overshoot(self):
        tl = self._timeline(loop=True)
        tl.step(1.25)
        assert len(list(tl.due_events())) == 4
        assert tl.time == pytest.approx(0.25) and not tl.finished
        assert [e.pitch for e in tl.due_events()] == [60]

    def test_loop_waits_for_trailing_silence(self):
        events, _ = events_from_tracks([_track(_on(60), _off(60, time=TPB))], TPB)
        tl = Timeline(events, 2.0, loop=True)
        fired = []
        for _ in range(10):
            tl.step(0.25)
            fired.extend((tl.time, e.kind) for e in tl.due_events())
        assert fired == [(0.25, NOTE_ON), (0.5, NOTE_OFF), (0.25, NOTE_ON), (0.5, NOTE_OFF)]

    def test_duration_defaults_to_last_event(self):
        assert Timeline([]).duration == 0.0
        events, _ = events_from_tracks([_track(_on(60), _off(60, time=TPB))], TPB)
        assert Timeline(events).duration == pytest.approx(0.5)


class TestMidiInputRouting:
    def test_longest_bus_fragment_wins(self, store, cfg):
        midi = MidiInput(store, cfg)
        assert midi.route("IAC Driver Bus 1") == "lissajous"
        assert midi.route("IAC Driver Bus 10") == "sotoGridRotated"
        assert midi.route("iac driver BUS 12") == "phyllotaxis"
        assert midi.route("Keystation 49") is None

    def test_track_device_overrides_bus(self, store, cfg):
        tracks = TrackManager()
        tracks.set_midi_device(3, "IAC Driver Bus 1")
        midi = MidiInput(store, cfg, tracks)
        assert midi.route("IAC Driver Bus 1") == "sphere"
        tracks.set_luminode(3, None)
        assert midi.route("IAC Driver Bus 1") == "lissajous"


class TestMidiInputPorts:
    def test_poll_feeds_store(self, store, cfg):
        port = FakePort([_on(60), _on(64, velocity=127), _on(60, velocity=0),
                         mido.Message("control_change", control=7, value=1)])
        midi = MidiInput(store, cfg, opener=lambda name: port)
        assert midi.open(["IAC Driver Bus 6"]) == []
        assert midi.poll() == 3
        notes = store.get_active_notes("triangle")
        assert [(n.pitch, n.velocity) for n in notes] == [(64, 1.0)]

    def test_unrouted_port_drops_messages(self, store, cfg):
        midi = MidiInput(store, cfg, opener=lambda name: FakePort([_on(60)]))
        midi.open(["Keystation"])
        assert midi.poll() == 0
        assert not store.has_active_notes()

    def test_failed_open_is_reported(self, store, cfg):
        def opener(name):
            raise IOError("no such port")

        midi = MidiInput(store, cfg, opener=opener)
        assert midi.open(["IAC Driver Bus 2"]) == ["IAC Driver Bus 2"]
        assert midi.errors == ["IAC Driver Bus 2"]
        assert midi.ports == {}

    def test_broken_port_is_closed(self, store, cfg):
        bad = FakePort(fail=True)
        good = FakePort([_on(61)])
        opened = {"IAC Driver Bus 3": bad, "IAC Driver Bus 4": good}
        midi = MidiInput(store, cfg, opener=opened.__getitem__)
        midi.open(list(opened))
        assert midi.poll() == 1
        assert bad.closed and "IAC Driver Bus 3" not in midi.ports
        assert midi.errors == ["IAC Driver Bus 3"]
        midi.close()
        assert good.closed and midi.ports == {}

    def test_reopen_same_port_skipped(self, store, cfg):
        count = []
        midi = MidiInput(store, cfg, opener=lambda name: count.append(name) or FakePort())
        midi.open(["IAC Driver Bus 1"])
        midi.open(["IAC Driver Bus 1"])
        assert count == ["IAC Driver Bus 1"]

    def test_list_input_names_without_backend(self, monkeypatch):
        def broken():
            raise ImportError("no rtmidi")

        monkeypatch.setattr(ports.mido, "get_input_names", broken)
        assert ports.list_input_names() == []


class TestKeyboardNotes:
    def test_press_and_release(self, store, cfg):
        kb = KeyboardNotes(store, cfg.channels)
        assert kb.channel == "triangle"
        assert kb.key_down(pygame.K_z) is True
        assert kb.key_down(pygame.K_z) is False
        [note] = store.get_active_notes("triangle")
        assert note.pitch == 60 and note.velocity == pytest.approx(KEY_VELOCITY / 127)
        assert kb.key_up(pygame.K_z) is True
        assert store.get_active_notes("triangle") == []

    def test_release_after_channel_switch(self, store, cfg):
        kb = KeyboardNotes(store, cfg.channels)
        kb.key_down(pygame.K_x)
        kb.cycle_channel()
        assert kb.channel == "polygons"
        kb.key_up(pygame.K_x)
        assert store.get_active_notes("triangle") == []

    def test_cycle_wraps(self, store, cfg):
        kb = KeyboardNotes(store, cfg.channels, start_channel="polygons")
        assert kb.cycle_channel() == cfg.channels[0]
        assert kb.cycle_channel(-1) == "polygons"

    def test_unmapped_key(self, store, cfg):
        kb = KeyboardNotes(store, cfg.channels)
        assert kb.key_down(pygame.K_F5) is False
        assert kb.key_up(pygame.K_F5) is False

    def test_octave_shift(self, store, cfg):
        kb = KeyboardNotes(store, cfg.channels)
        kb.key_down(pygame.K_z)
        assert kb.shift_octave(1) == 72
        kb.key_down(pygame.K_x)
        kb.key_up(pygame.K_z)
        assert [n.pitch for n in store.get_active_notes("triangle")] == [74]
        assert kb.shift_octave(-20) == 0
        assert KeyboardNotes(store, cfg.channels, base_pitch=120).shift_octave(1) == 115


def _cc(control, value):
    return mido.Message("control_change", control=control, value=value)


class TestCCMapper:
    @pytest.fixture
    def toasts(self):
        return []

    @pytest.fixture
    def mapper(self, cfg, toasts):
        tracks = TrackManager(available_luminodes())
        return CCMapper(cfg, tracks, TrajectoryEngine(), notify=toasts.append)

    def test_nothing_moves_before_a_track_is_selected(self, mapper):
        assert mapper.handle_cc("Any", 46, 127) is False
        assert mapper.handle_cc("Any", 24, 127) is False
        assert mapper.tracks.get_track(1).layout["x"] == 0.0

    def test_track_selection_needs_value_above_64(self, mapper, toasts):
        assert mapper.handle_cc("Any", 21, 64) is False
        assert mapper.current_track is None
        assert mapper.handle_cc("Any", 21, 100) is True
        assert (mapper.current_track, mapper.current_luminode) == (2, "harmonograph")
        assert toasts == ["track 2 active"]

    def test_luminode_selection_spans_available_list(self, mapper):
        mapper.handle_cc("Any", 20, 127)
        mapper.handle_cc("Any", 24, 0)
        assert mapper.tracks.get_track(1).luminode == "scanlineGradients"
        mapper.handle_cc("Any", 24, 127)
        assert mapper.tracks.get_track(1).luminode == "triangle"
        assert mapper.current_luminode == "triangle"

    def test_params_scaled_into_declared_range(self, mapper, cfg):
        mapper.handle_cc("Any", 20, 127)            # track 1: lissajous
        mapper.handle_cc("Any", 30, 127)
        assert cfg.module("lissajous")["SCALE"] == pytest.approx(500.0)
        mapper.handle_cc("Any", 30, 0)
        assert cfg.module("lissajous")["SCALE"] == pytest.approx(50.0)
        # lissajous has four parameters
        assert mapper.handle_cc("Any", 34, 127) is False

    def test_integer_and_checkbox_params(self, mapper, cfg):
        mapper.handle_cc("Any", 21, 127)            # track 2: harmonograph
        mapper.handle_cc("Any", 33, 64)
        iterations = cfg.module("harmonograph")["ITERATIONS"]
        assert iterations == 3016 and isinstance(iterations, int)
        mapper.handle_cc("Any", 22, 127)            # track 3: sphere
        mapper.handle_cc("Any", 35, 100)
        assert cfg.module("sphere")["USE_COLOR"] is True
        mapper.handle_cc("Any", 35, 10)
        assert cfg.module("sphere")["USE_COLOR"] is False

    def test_layout(self, mapper):
        mapper.handle_cc("Any", 23, 127)
        mapper.handle_cc("Any", 46, 127)
        mapper.handle_cc("Any", 47, 0)
        mapper.handle_cc("Any", 48, 127)
        layout = mapper.tracks.get_track(4).layout
        assert layout["x"] == pytest.approx(500.0)
        assert layout["y"] == pytest.approx(-500.0)
        assert layout["rotation"] == pytest.approx(360.0)

    def test_motion(self, mapper):
        mapper.handle_cc("Any", 20, 127)
        for control, value in ((50, 127), (51, 127), (52, 0), (53, 127)):
            assert mapper.handle_cc("Any", control, value) is True
        traj = mapper.trajectory.get_track_config(1)
        assert traj.enabled is True
        assert traj.motion_rate == pytest.approx(2.0)
        assert traj.amplitude == 0.0
        assert traj.trajectory_type == "circle"
        # 其他 track 不受影響
        assert mapper.trajectory.get_track_config(2).enabled is False

    def test_device_filter_and_disable(self, mapper, cfg):
        cfg.cc_mapping.device_name = "nanoKONTROL"
        assert mapper.handle_cc("IAC Driver Bus 1", 20, 127) is False
        assert mapper.handle_cc("nanoKONTROL2 SLIDER/KNOB", 20, 127) is True
        cfg.cc_mapping.enabled = False
        assert mapper.handle_cc("nanoKONTROL2 SLIDER/KNOB", 21, 127) is False
        assert mapper.current_track == 1

    def test_fed_from_live_port(self, mapper, store, cfg):
        port = FakePort([_cc(20, 127), _cc(46, 0), _on(60)])
        midi = MidiInput(store, cfg, mapper.tracks, opener=lambda name: port, cc=mapper)
        midi.open(["IAC Driver Bus 1"])
        assert midi.poll() == 3
        assert mapper.tracks.get_track(1).layout["x"] == pytest.approx(-500.0)
        assert [n.pitch for n in store.get_active_notes("lissajous")] == [60]
