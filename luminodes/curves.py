# ========================= luminodes/curves.py =========================
# 連續曲線類：lissajous / harmonograph / whitney / sinewave / moire
import math
from typing import Dict, List, Tuple

from luminodes.base import Luminode
from notes.model import pitches
from utils.color import hsla, pitch_to_color

TWO_PI = math.pi * 2


def midi_to_freq(pitch: float) -> float:
    return 440.0 * 2 ** ((pitch - 69) / 12.0)


class LissajousLuminode(Luminode):
    name = "lissajous"
    STEP = 0.01

    def curve(self, t: float, ps: List[int], scale: float) -> List[Tuple[float, float]]:
        n = len(ps)
        a = ps[0] % 7 + 1
        b = ps[1 % n] % 7 + 1
        delta = (ps[2 % n] or ps[0]) * 0.1
        pts = []
        i = 0.0
        while i < TWO_PI:
            pts.append((math.sin(a * i + delta + t * 0.5) * scale,
                        math.sin(b * i + t * 0.3) * scale))
            i += self.STEP
        return pts

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        ps = pitches(notes)
        a, b = ps[0] % 7 + 1, ps[1 % len(ps)] % 7 + 1
        color = hsla((a + b) * 20, 100, 60, 0.5)

        self.drawer.apply_layout_transform(layout)
        self.canvas.rotate(math.sin(t * p["ROTATION_SPEED"]) * 0.3)
        self.canvas.begin_path()
        self.canvas.polyline(self.curve(t, ps, p["SCALE"]))
        self.canvas.stroke(color, p["LINE_WIDTH"], blur=p["SHADOW_BLUR"])
        self.drawer.restore_layout_transform()


class HarmonographLuminode(Luminode):
    name = "harmonograph"

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        base, var = p["BASE_AMPLITUDE"], p["AMPLITUDE_VARIATION"]
        iterations, step = int(p["ITERATIONS"]), p["TIME_STEP"]

        self.drawer.apply_layout_transform(layout)
        for idx, note in enumerate(notes):
            vscale = 1 + note.velocity * p["VELOCITY_SCALE"]
            a1 = (base + math.sin(t * 0.3 + idx) * var) * vscale
            a2 = (base + math.cos(t * 0.2 + idx * 2) * var) * vscale
            f1 = note.pitch * 0.03 + 0.01 * math.sin(t + idx)
            f2 = note.pitch * 0.025 + 0.01 * math.cos(t + idx * 1.3)
            p1, p2 = idx * math.pi / 4, idx * math.pi / 3
            d1 = 0.001 + 0.0005 * math.sin(t * 0.5 + idx)
            d2 = 0.001 + 0.0005 * math.cos(t * 0.3 + idx)

            pts = []
            for i in range(iterations):
                tt = i * step + t * 0.2
                pts.append((a1 * math.sin(f1 * tt + p1) * math.exp(-d1 * tt),
                            a2 * math.sin(f2 * tt + p2) * math.exp(-d2 * tt)))
            self.canvas.begin_path()
            self.canvas.polyline(pts)
            self.canvas.stroke(hsla((note.pitch % 12) * 30, 100, 70, 0.4), 1, blur=p["SHADOW_BLUR"])
        self.drawer.restore_layout_transform()


class WhitneyLinesLuminode(Luminode):
    name = "whitneyLines"

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        ps = pitches(notes)
        total = len(ps) * int(p["LINES_PER_NOTE"])
        r = p["RADIUS"]
        use_color = bool(p.get("USE_COLOR", False))

        # 同色的線合成一條 path 一次畫
        groups: Dict[int, List[Tuple[float, float]]] = {}
        for i in range(total):
            angle = t * p["ROTATION_SPEED"] + i * (TWO_PI / total)
            key = ps[i % len(ps)] if use_color else -1
            groups.setdefault(key, []).append((math.cos(angle) * r, math.sin(angle) * r))

        self.drawer.apply_layout_transform(layout)
        for key, ends in groups.items():
            self.canvas.begin_path()
            for x, y in ends:
                self.canvas.move_to(0, 0)
                self.canvas.line_to(x, y)
            if use_color:
                color = pitch_to_color(key, self.cfg.colors.pitch_color_factor)
                self.canvas.stroke(color, p["LINE_WIDTH"], blur=p["SHADOW_BLUR"])
            else:
                self.canvas.stroke((255, 255, 255, 127), p["LINE_WIDTH"],
                                   blur=p["SHADOW_BLUR"], glow_color="white")
        self.drawer.restore_layout_transform()


class SinewaveLuminode(Luminode):
    name = "sinewave"
    LIFETIME = 3.0   # 秒
    BASE_FREQ = 0.0035

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        root_freq = midi_to_freq(min(n.pitch for n in notes))
        half = self.canvas.width // 2

        self.drawer.apply_layout_transform(layout)
        for note in notes:
            if t - note.timestamp > self.LIFETIME:
                continue
            ratio = midi_to_freq(note.pitch) / root_freq
            harmonic = self.BASE_FREQ * ratio * 6
            amplitude = (10 + note.velocity * 80 / ratio) * 3
            phase = t * 2 + ratio * 4
            pts = [(i, math.sin(i * harmonic + phase) * amplitude) for i in range(-half, half + 1)]
            self.canvas.begin_path()
            self.canvas.polyline(pts)
            self.canvas.stroke(pitch_to_color(note.pitch, self.cfg.colors.pitch_color_factor), p["LINE_WIDTH"])
        self.drawer.restore_layout_transform()


class MoireCirclesLuminode(Luminode):
    name = "moireCircles"
    ARC_STEP = 0.2

    def draw(self, t, notes, params=None, layout=None):
        if not notes:
            return
        p = self.resolve(params)
        base_count, spacing, speed = int(p["BASE_COUNT"]), p["SPACING"], p["SPEED"]

        self.drawer.apply_layout_transform(layout)
        for i, note in enumerate(notes):
            velocity = note.velocity or 0.5
            angle_offset = math.sin(t * speed * (i + 1)) * 0.4
            count = base_count + int((note.pitch % 6) * 1.5)
            size_mul = 1 + velocity * 1.5
            hue = (note.pitch % 12) * 30

            self.canvas.begin_path()
            for j in range(1, count):
                radius = j * spacing * size_mul
                pts = []
                a = 0.0
                while a < TWO_PI:
                    pts.append((radius * math.cos(a + angle_offset * j),
                                radius * math.sin(a + angle_offset * j)))
                    a += self.ARC_STEP
                self.canvas.polyline(pts)
            self.canvas.stroke(hsla(hue, 100, 70, 0.15), 1, blur=15, glow_color=hsla(hue, 100, 70, 0.8))
        self.drawer.restore_layout_transform()
