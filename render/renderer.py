# render/renderer.py
import math, logging
import pygame
from config import CanvasConfig
from render.canvas import Canvas

STATUS_H = 24
LOGO_TEXT = "GLOW"

class Renderer:
    """Window, clock and the thin chrome drawn over the visuals."""

    def __init__(self, cfg: CanvasConfig):
        pygame.init()
        self.cfg = cfg
        self.screen = pygame.display.set_mode((cfg.window_w, cfg.window_h), pygame.RESIZABLE)
        pygame.display.set_caption("GLOW visualizer")
        self.font_small = pygame.font.SysFont("consolas", 14)
        self.font_logo = pygame.font.SysFont("consolas", 72, bold=True)
        self.clock = pygame.time.Clock()
        self.canvas = Canvas(self.screen)
        self.screen.fill(pygame.Color(cfg.background_color))

    def tick(self, fps=60) -> float:
        return self.clock.tick(fps) / 1000.0

    def handle_resize(self, w: int, h: int):
        # pygame 2 會自己調整 display surface，重新取一次就好
        self.screen = pygame.display.get_surface() or pygame.display.set_mode((w, h), pygame.RESIZABLE)
        self.canvas.surface = self.screen
        self.cfg.window_w, self.cfg.window_h = self.screen.get_size()
        self.screen.fill(pygame.Color(self.cfg.background_color))
        logging.debug("window resized to %dx%d", self.cfg.window_w, self.cfg.window_h)

    def end_frame(self):
        pygame.display.flip()

    def draw_status_bar(self, left_text: str = "", right_text: str = ""):
        w, h = self.screen.get_size()
        y = h - STATUS_H
        pygame.draw.rect(self.screen, (16, 16, 20), (0, y, w, STATUS_H))
        pygame.draw.line(self.screen, (50, 50, 58), (0, y), (w, y), 1)
        if left_text:
            surf = self.font_small.render(left_text, True, (200, 200, 210))
            self.screen.blit(surf, (10, y + (STATUS_H - surf.get_height()) // 2))
        if right_text:
            surf = self.font_small.render(right_text, True, (170, 170, 180))
            self.screen.blit(surf, (w - surf.get_width() - 10, y + (STATUS_H - surf.get_height()) // 2))

    def draw_idle_logo(self, t: float):
        w, h = self.screen.get_size()
        alpha = int(120 + 80 * math.sin(t * 1.5))
        surf = self.font_logo.render(LOGO_TEXT, True, (235, 235, 240))
        surf.set_alpha(max(0, min(255, alpha)))
        self.screen.blit(surf, surf.get_rect(center=(w // 2, h // 2)))
        hint = self.font_small.render("play a MIDI device, load a file, or use keys Z..M", True, (140, 140, 150))
        self.screen.blit(hint, hint.get_rect(center=(w // 2, h // 2 + 56)))
