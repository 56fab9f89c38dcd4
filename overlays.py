"""
overlays.py

Pygame overlay renderer for the ambient player: the bored button with its
countdown ring, the expanded "bored for…" note, the stats panel, and the
loading / no-content cards.
"""

from __future__ import annotations

import math
import pygame

import config

# ── colours ────────────────────────────────────────────────────────────────
WHITE = (255, 255, 255)
DIM   = (200, 200, 200)
FAINT = (255, 255, 255, 46)
BG    = (0, 0, 0, 115)
PANEL = (18, 18, 22, 235)

pygame.font.init()


# ── helpers ────────────────────────────────────────────────────────────────
def _compute_font_sizes(h: int) -> tuple[int, int, int]:
    return max(12, h // 55), max(16, h // 40), max(22, h // 26)


def fmt_elapsed(sec: float) -> str:
    """42s · 3m 5s · 1h 2m"""
    s = int(round(max(0.0, sec)))
    if s < 60:
        return f"{s}s"
    m, s = divmod(s, 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    return f"{h}h {m}m"


def _fonts(sh: int):
    tiny_pt, small_pt, large_pt = _compute_font_sizes(sh)
    return (pygame.font.SysFont("monospace", tiny_pt),
            pygame.font.SysFont("monospace", small_pt),
            pygame.font.SysFont("monospace", large_pt, bold=True))


def _ring(surface, rect: pygame.Rect, fraction: float, width: int) -> None:
    """Progress ring around *rect*, clockwise from 12 o'clock."""
    if fraction <= 0:
        return
    start = math.pi / 2 - 2 * math.pi * min(1.0, fraction)
    pygame.draw.arc(surface, WHITE, rect, start, math.pi / 2, width)


# ── bored button ───────────────────────────────────────────────────────────
def draw_bored_button(surface: pygame.Surface,
                      instance_count: int,
                      countdown_fraction: float,
                      skip_active: bool,
                      expanded: bool,
                      bored_seconds: float,
                      enabled: bool = True) -> pygame.Rect:
    """Draw the button bottom-right; returns its rect for hit testing."""
    sw, sh = surface.get_size()
    FT, FS, FL = _fonts(sh)

    size = max(56, sw // 6)
    rect = pygame.Rect(sw - size - 12, sh - size - 28, size, size)

    btn = pygame.Surface(rect.size, pygame.SRCALPHA)
    pygame.draw.rect(btn, BG, btn.get_rect(), border_radius=14)
    pygame.draw.rect(btn, FAINT, btn.get_rect(), width=2, border_radius=14)
    zzz = FL.render("zzz", True, WHITE if enabled else DIM)
    cnt = FS.render(str(instance_count), True, WHITE if enabled else DIM)
    btn.blit(zzz, ((size - zzz.get_width()) // 2, size // 2 - zzz.get_height()))
    btn.blit(cnt, ((size - cnt.get_width()) // 2, size // 2 + 2))
    surface.blit(btn, rect.topleft)

    if skip_active:
        _ring(surface, rect.inflate(8, 8), countdown_fraction, 4)

    if expanded:
        txt = FT.render(f"Bored on this video for: {fmt_elapsed(bored_seconds)}",
                        True, DIM)
        bg = pygame.Surface((txt.get_width() + 12, txt.get_height() + 6),
                            pygame.SRCALPHA)
        bg.fill(BG)
        bg.blit(txt, (6, 3))
        surface.blit(bg, (sw - bg.get_width() - 12, rect.top - bg.get_height() - 8))

    return rect


# ── stats panel ────────────────────────────────────────────────────────────
def stats_lines(stats) -> list[tuple[str, str]]:
    return [
        ("Elapsed",                fmt_elapsed(stats.total_elapsed_bored_time)),
        ("Plays",                  str(stats.total_video_plays)),
        ("Bored acknowledgements", str(stats.total_boredom_instances)),
        ("Watched",                fmt_elapsed(stats.real_playback_time_total)),
    ]


def draw_stats_panel(surface: pygame.Surface, stats,
                     fraction: float = config.STATS_PANEL_FRACTION) -> pygame.Rect:
    """Bottom sheet covering *fraction* of the window."""
    sw, sh = surface.get_size()
    FT, FS, FL = _fonts(sh)

    h = int(sh * fraction)
    rect = pygame.Rect(0, sh - h, sw, h)
    panel = pygame.Surface(rect.size, pygame.SRCALPHA)
    pygame.draw.rect(panel, PANEL, panel.get_rect(),
                     border_top_left_radius=28, border_top_right_radius=28)

    y = 16
    panel.blit(FL.render("Stats", True, WHITE), (16, y))
    y += FL.get_linesize() + 10
    for title, value in stats_lines(stats):
        panel.blit(FT.render(title, True, DIM), (16, y))
        y += FT.get_linesize()
        panel.blit(FS.render(value, True, WHITE), (16, y))
        y += FS.get_linesize() + 10

    surface.blit(panel, rect.topleft)
    return rect


# ── full-screen cards ──────────────────────────────────────────────────────
def _centre_lines(surface: pygame.Surface, lines: list[tuple[str, tuple]]) -> None:
    sw, sh = surface.get_size()
    _, FS, _ = _fonts(sh)
    surface.fill((0, 0, 0))
    total = len(lines) * FS.get_linesize()
    y = (sh - total) // 2
    for text, colour in lines:
        txt = FS.render(text, True, colour)
        surface.blit(txt, ((sw - txt.get_width()) // 2, y))
        y += FS.get_linesize()


def draw_loading(surface: pygame.Surface) -> None:
    _centre_lines(surface, [("Preparing…", DIM)])


def draw_no_content(surface: pygame.Surface, clips_path: str) -> None:
    _centre_lines(surface, [
        ("No playable videos found.", WHITE),
        ("", DIM),
        (f"Add .mp4 / .mov files to {clips_path}", DIM),
        ("and press R to rescan.", DIM),
    ])
