"""Tests for the track manager."""

import pytest

from luminodes.params import available_luminodes
from tracks.manager import DEFAULT_TRACK_LUMINODES, TrackManager


@pytest.fixture
def tracks():
    return TrackManager(available_luminodes() + ["sotoGridRotated"])


class TestDefaults:
    def test_four_tracks(self, tracks):
        ts = tracks.get_tracks()
        assert [t.id for t in ts] == [1, 2, 3, 4]
        assert tuple(t.luminode for t in ts) == DEFAULT_TRACK_LUMINODES
        assert ts[0].name == "Track 1"
        assert ts[0].layout == {"x": 0.0, "y": 0.0, "rotation": 0.0}
        assert not any(t.muted or t.solo for t in ts)

    def test_layouts_are_independent(self, tracks):
        tracks.set_layout(1, {"x": 5})
        assert tracks.get_track(2).layout["x"] == 0.0

    def test_get_track_unknown(self, tracks):
        assert tracks.get_track(9) is None
        assert tracks.toggle_mute(9) is False
        assert tracks.set_layout(9, {"x": 1}) is False


class TestMuteSolo:
    def test_mute_removes_from_active(self, tracks):
        tracks.toggle_mute(2)
        assert [t.id for t in tracks.get_active_tracks()] == [1, 3, 4]
        assert tracks.silenced_luminodes() == {"harmonograph"}

    def test_solo_wins(self, tracks):
        tracks.toggle_solo(3)
        assert [t.id for t in tracks.get_active_tracks()] == [3]
        assert tracks.track_for_luminode("lissajous") is None
        assert tracks.track_for_luminode("sphere").id == 3

    def test_muting_unsolos(self, tracks):
        tracks.toggle_solo(1)
        tracks.toggle_mute(1)
        t = tracks.get_track(1)
        assert t.muted and not t.solo

    def test_soloing_unmutes(self, tracks):
        tracks.toggle_mute(1)
        tracks.toggle_solo(1)
        t = tracks.get_track(1)
        assert t.solo and not t.muted

    def test_shared_luminode_stays_live(self, tracks):
        tracks.set_luminode(2, "lissajous")
        tracks.toggle_mute(1)
        assert "lissajous" not in tracks.silenced_luminodes()
        assert tracks.track_for_luminode("lissajous").id == 2


class TestUpdates:
    def test_partial_layout(self, tracks):
        tracks.set_layout(1, {"x": 40.0})
        tracks.set_layout(1, {"rotation": 15.0})
        assert tracks.get_track(1).layout == {"x": 40.0, "y": 0.0, "rotation": 15.0}

    def test_update_track_ignores_unknown_fields(self, tracks):
        assert tracks.update_track(1, {"name": "Lead", "colour": "red"}) is True
        assert tracks.get_track(1).name == "Lead"
        assert not hasattr(tracks.get_track(1), "colour")

    def test_set_luminode_validates(self, tracks):
        assert tracks.set_luminode(1, "nope") is False
        assert tracks.get_track(1).luminode == "lissajous"
        assert tracks.set_luminode(1, "sotoGridRotated") is True
        assert tracks.set_luminode(1, None) is True
        assert tracks.get_track(1).luminode is None

    def test_without_list_any_name_is_accepted(self):
        assert TrackManager().set_luminode(1, "anything") is True

    def test_midi_device(self, tracks):
        tracks.set_midi_device(4, "IAC Driver Bus 3")
        assert tracks.get_track(4).midi_device == "IAC Driver Bus 3"

    def test_available_luminodes_copy(self, tracks):
        names = tracks.get_available_luminodes()
        names.append("x")
        assert "x" not in tracks.get_available_luminodes()


class TestEvents:
    def test_track_updated_callback(self, tracks):
        got = []
        tracks.on("trackUpdated", got.append)
        tracks.toggle_mute(2)
        tracks.set_layout(3, {"y": 1})
        assert [p["track_id"] for p in got] == [2, 3]
        assert got[0]["track"].muted

    def test_reset(self, tracks):
        got = []
        tracks.on("tracksReset", got.append)
        tracks.toggle_mute(1)
        tracks.toggle_solo(2)
        tracks.set_midi_device(3, "x")
        tracks.reset_tracks()
        assert got == [None]
        for t in tracks.get_tracks():
            assert not t.muted and not t.solo
            assert t.midi_device is None and t.luminode is None
