#!/usr/bin/env python3
"""
events.py  – central hub

• Translates raw Pygame events to high-level action dicts.
• Exposes a thread-safe queue so *any* external source can inject
  the same actions (web remote, HID, etc.).
"""

from __future__ import annotations
import queue

import pygame
from pygame.locals import *

Action = dict      # alias for readability

_BACKGROUND = {
    getattr(pygame, "WINDOWMINIMIZED", None),
    getattr(pygame, "WINDOWHIDDEN", None),
} - {None}
_FOREGROUND = {
    getattr(pygame, "WINDOWRESTORED", None),
    getattr(pygame, "WINDOWSHOWN", None),
} - {None}


class EventManager:
    _fifo: "queue.Queue[Action]" = queue.Queue()      # global, thread-safe

    # ── SDL / keyboard path ────────────────────────────────────────────
    @classmethod
    def handle(cls, event, button_rect=None) -> None:
        """Translate one Pygame event → action and enqueue it."""
        act = cls.translate(event, button_rect)
        if act:
            cls._fifo.put(act)

    # ── external / programmatic path ───────────────────────────────────
    @classmethod
    def post(cls, action: Action) -> None:
        """
        Any thread may call this to inject an already-formed action dict, e.g.:
            EventManager.post({"type": "bored"})
        """
        cls._fifo.put(action)

    # ── main-loop consumer ─────────────────────────────────────────────
    @classmethod
    def poll(cls) -> Action | None:
        """Return next queued action or None (non-blocking)."""
        try:
            return cls._fifo.get_nowait()
        except queue.Empty:
            return None

    @classmethod
    def clear(cls) -> None:
        while cls.poll() is not None:
            pass

    # ── translator ─────────────────────────────────────────────────────
    @staticmethod
    def translate(event, button_rect=None) -> Action | None:
        if event.type == QUIT:
            return {"type": "quit"}

        if event.type in _BACKGROUND:
            return {"type": "background"}
        if event.type in _FOREGROUND:
            return {"type": "foreground"}

        if event.type == KEYDOWN:
            if event.key in (K_ESCAPE, K_q):
                return {"type": "quit"}
            if event.key in (K_b, K_SPACE):
                return {"type": "bored"}
            if event.key == K_s:
                return {"type": "toggle_stats"}
            if event.key == K_r:
                return {"type": "rescan"}
            if event.key == K_f:
                return {"type": "toggle_fullscreen"}

        if event.type == MOUSEBUTTONDOWN and event.button == 1:
            if button_rect is not None and button_rect.collidepoint(event.pos):
                return {"type": "bored"}

        return None
