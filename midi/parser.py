# midi/parser.py
import mido
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

NOTE_ON = "on"
NOTE_OFF = "off"


@dataclass(frozen=True)
class NoteEvent:
    time: float     # seconds from file start
    kind: str       # NOTE_ON / NOTE_OFF
    channel: int    # MIDI channel 0..15
    pitch: int
    velocity: int


def classify(msg) -> Optional[Tuple[str, int, int, int]]:
    """(kind, channel, pitch, velocity) for note messages, None otherwise.
    note_on with velocity 0 counts as note_off."""
    if msg.type == 'note_on' and msg.velocity > 0:
        return NOTE_ON, msg.channel, msg.note, msg.velocity
    if msg.type == 'note_off' or (msg.type == 'note_on' and msg.velocity == 0):
        return NOTE_OFF, msg.channel, msg.note, 0
    return None


def events_from_tracks(tracks: Iterable, ticks_per_beat: int) -> Tuple[List[NoteEvent], float]:
    tempo = 500000  # default 120 bpm
    time_sec = 0.0
    sounding = set()
    events: List[NoteEvent] = []

    for msg in mido.merge_tracks(list(tracks)):
        time_sec += mido.tick2second(msg.time, ticks_per_beat, tempo)
        if msg.is_meta:
            if msg.type == 'set_tempo':
                tempo = msg.tempo
            continue
        note = classify(msg)
        if note is None:
            continue
        kind, ch, pitch, vel = note
        if kind == NOTE_ON:
            sounding.add((ch, pitch))
        elif (ch, pitch) in sounding:
            sounding.discard((ch, pitch))
        else:
            continue  # 沒有對應 note_on 的 off 不要
        events.append(NoteEvent(time_sec, kind, ch, pitch, vel))

    # 同一時間 off 先於 on，重複音不會被自己的 off 吃掉
    events.sort(key=lambda e: (e.time, e.kind == NOTE_ON))
    # close dangling（排序後才補，永遠在最後）
    for ch, p in sorted(sounding):
        events.append(NoteEvent(time_sec, NOTE_OFF, ch, p, 0))
    return events, time_sec


def parse_midi_events(path: str) -> Tuple[List[NoteEvent], float]:
    mid = mido.MidiFile(path)
    return events_from_tracks(mid.tracks, mid.ticks_per_beat)
