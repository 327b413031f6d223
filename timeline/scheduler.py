# timeline/scheduler.py
from typing import Iterable, Iterator
from midi.parser import NoteEvent


class Timeline:
    """Advances playback time and releases file events as they come due.
    The app routes released events into the note store.
    """
    def __init__(self, events: Iterable[NoteEvent], duration: float = None, loop: bool = False):
        self.events = sorted(events, key=lambda e: e.time)
        self.duration = duration if duration is not None else (self.events[-1].time if self.events else 0.0)
        self.loop = loop
        self.i = 0
        self.time = 0.0
        self.playing = True

    def step(self, dt: float):
        if self.playing:
            self.time += dt

    def due_events(self, tolerance: float = 0.004) -> Iterator[NoteEvent]:
        t = self.time
        while self.i < len(self.events) and self.events[self.i].time <= t + tolerance:
            yield self.events[self.i]
            self.i += 1
        # 整首（含結尾靜音）播完才回頭，超過的時間帶到下一圈
        if self.loop and self.finished and self.events and self.duration > 0 and self.time >= self.duration:
            self.rewind(self.time - self.duration)

    @property
    def finished(self) -> bool:
        return self.i >= len(self.events)

    def toggle(self):
        self.playing = not self.playing

    def rewind(self, carry: float = 0.0):
        self.i = 0
        self.time = carry
