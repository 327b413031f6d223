"""Pytest configuration and shared fixtures."""

import os
import random

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pygame
import pytest

from config import AppConfig, CanvasConfig, NoteConfig
from notes.store import NoteStore
from render.canvas import Canvas
from render.primitives import Primitives

SURFACE_SIZE = (320, 240)


class FakeClock:
    """Manually advanced stand-in for time.perf_counter."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float):
        self.now += dt

    def set(self, t: float):
        self.now = t


@pytest.fixture(scope="session", autouse=True)
def _pygame():
    pygame.display.init()
    yield
    pygame.quit()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cfg() -> AppConfig:
    return AppConfig(canvas=CanvasConfig(window_w=SURFACE_SIZE[0], window_h=SURFACE_SIZE[1]),
                     notes=NoteConfig(max_age_ms=2000))


@pytest.fixture
def store(cfg, clock) -> NoteStore:
    return NoteStore(cfg.notes, cfg.channels, clock=clock)


@pytest.fixture
def surface() -> pygame.Surface:
    surf = pygame.Surface(SURFACE_SIZE, pygame.SRCALPHA)
    surf.fill((0, 0, 0, 255))
    return surf


@pytest.fixture
def canvas(surface) -> Canvas:
    return Canvas(surface)


@pytest.fixture
def drawer(canvas, cfg) -> Primitives:
    return Primitives(canvas, cfg, rng=random.Random(7))


def changed_pixels(before: pygame.Surface, after: pygame.Surface) -> int:
    """Count pixels whose RGB differs between two same-size surfaces."""
    w, h = before.get_size()
    n = 0
    for x in range(0, w, 2):
        for y in range(0, h, 2):
            if before.get_at((x, y))[:3] != after.get_at((x, y))[:3]:
                n += 1
    return n
