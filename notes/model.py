# notes/model.py
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

@dataclass(frozen=True)
class Note:
    pitch: int        # MIDI note number
    velocity: float   # 0..1
    timestamp: float  # seconds, clock of the store that created it

    def age(self, now: float) -> float:
        return now - self.timestamp


@dataclass
class NoteData:
    """Note activity handed to note-driven modulators."""
    notes: Sequence[Note] = field(default_factory=list)
    velocity: Optional[float] = None  # 單一 velocity 優先於平均值

    @property
    def count(self) -> int:
        return len(self.notes)

    def mean_velocity(self) -> Optional[float]:
        if self.velocity is not None:
            return self.velocity
        if not self.notes:
            return None
        return sum(n.velocity for n in self.notes) / len(self.notes)


def pitch_signature(notes: Sequence[Note]) -> str:
    """Sorted distinct pitches joined with '-', used as a geometry cache key."""
    return "-".join(str(p) for p in sorted({n.pitch for n in notes}))


def pitches(notes: Sequence[Note]) -> List[int]:
    return [n.pitch for n in notes]
