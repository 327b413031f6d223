# ========================= input/keymap.py =========================
import logging
import pygame
from typing import Dict, Sequence, Tuple

from notes.store import NoteStore

log = logging.getLogger(__name__)

KEY_VELOCITY = 110
BASE_PITCH = 60     # C4
MAX_BASE_PITCH = 127 - 12

# 鍵盤下排當琴鍵：白鍵 Z X C V B N M ,，黑鍵 S D G H J，共 13 個半音
PIANO_KEYS: Tuple[int, ...] = (
    pygame.K_z, pygame.K_s, pygame.K_x, pygame.K_d, pygame.K_c, pygame.K_v, pygame.K_g,
    pygame.K_b, pygame.K_h, pygame.K_n, pygame.K_j, pygame.K_m, pygame.K_COMMA,
)


def build_keymap(base_pitch: int = BASE_PITCH, keys: Sequence[int] = PIANO_KEYS) -> Dict[int, int]:
    return {k: base_pitch + i for i, k in enumerate(keys)}


class KeyboardNotes:
    """Plays notes from the computer keyboard into one selectable channel."""

    def __init__(self, store: NoteStore, channels: Sequence[str],
                 base_pitch: int = BASE_PITCH, start_channel: str = "triangle"):
        self.store = store
        self.channels = list(channels)
        self.base_pitch = base_pitch
        self.keymap = build_keymap(base_pitch)
        self.index = self.channels.index(start_channel) if start_channel in self.channels else 0
        self.held: Dict[int, Tuple[str, int]] = {}  # key -> (channel, pitch)

    @property
    def channel(self) -> str:
        return self.channels[self.index]

    def cycle_channel(self, step: int = 1) -> str:
        self.index = (self.index + step) % len(self.channels)
        log.debug("keyboard channel -> %s", self.channel)
        return self.channel

    def shift_octave(self, step: int) -> int:
        """Move the key row by whole octaves; returns the new base pitch."""
        self.base_pitch = max(0, min(MAX_BASE_PITCH, self.base_pitch + 12 * step))
        self.keymap = build_keymap(self.base_pitch)
        return self.base_pitch

    def key_down(self, key: int) -> bool:
        if key not in self.keymap or key in self.held:
            return False
        pitch = self.keymap[key]
        # 記下按下時的 channel/pitch，切換後放開仍關掉同一顆音
        self.held[key] = (self.channel, pitch)
        return self.store.note_on(self.channel, pitch, KEY_VELOCITY)

    def key_up(self, key: int) -> bool:
        held = self.held.pop(key, None)
        if held is None:
            return False
        return self.store.note_off(*held)
