#!/usr/bin/env python3
"""
app.py – pygame front end for the ambient player

Owns the window and the main loop.  Each frame it turns input into session
actions (through events.EventManager), lets the scheduler fire whatever
timers are due, and draws the session snapshot: both transition layers,
the bored button, and the stats panel when it is open.
"""
from __future__ import annotations

import logging
from typing import Optional

import pygame

import config
from clip_catalog import ClipCatalog
from events import EventManager
from overlays import draw_bored_button, draw_loading, draw_no_content, draw_stats_panel
from renderer import render_layers
from scheduler import Scheduler
from session import AmbientSession
from slot_manager import ThreadedLoader
from stats_store import StatsStore
from transitions import TransitionState

logger = logging.getLogger(__name__)


class AmbientApp:
    def __init__(self, clips_path: str | None = None, stats_path: str | None = None):
        # window ----------------------------------------------------------
        pygame.init()
        pygame.mouse.set_visible(True)
        self.screen = self._open_window()
        pygame.display.set_caption("boredtv")
        self.clock = pygame.time.Clock()

        # core ------------------------------------------------------------
        self.scheduler = Scheduler()
        self.catalog   = ClipCatalog(clips_path or config.CLIPS_PATH)
        self.session   = AmbientSession(
            self.catalog,
            scheduler=self.scheduler,
            stats=StatsStore(stats_path or config.STATS_PATH, self.scheduler),
            loader=ThreadedLoader(self.scheduler),
            audio=config.AUDIO_ENABLED,
        )

        self.stats_open = False
        self.button_rect: Optional[pygame.Rect] = None

        # read by the web remote thread; replaced, never mutated
        self.published: dict = {}
        self.scheduler.schedule_periodic(config.STATS_PUBLISH_INTERVAL, self._publish)

        self.session.start()
        self._publish()

    def _open_window(self) -> pygame.Surface:
        return pygame.display.set_mode(
            (0, 0) if config.FULLSCREEN else config.WINDOWED_SIZE,
            pygame.FULLSCREEN if config.FULLSCREEN else 0,
        )

    def _publish(self) -> None:
        snap = self.session.snapshot()
        self.published = {
            "current": snap.current_clip_id,
            "next": snap.next_clip_id,
            "state": snap.transition_state.value,
            "noContent": snap.no_content,
            "stats": self.session.stats.to_payload(),
            "totals": {
                "elapsedBoredTime": snap.stats.total_elapsed_bored_time,
                "boredomInstances": snap.stats.total_boredom_instances,
                "plays": snap.stats.total_video_plays,
                "realPlaybackTime": snap.stats.real_playback_time_total,
            },
        }

    # ── actions ---------------------------------------------------------
    def _dispatch(self, act: dict) -> bool:
        """Apply one action; False means quit."""
        t = act["type"]
        if t == "quit":
            return False
        if t == "bored":
            self.session.request_bored_press()
        elif t == "toggle_stats":
            self.stats_open ^= True
            if self.stats_open:
                self.session.on_overlay_shown(config.STATS_PANEL_FRACTION)
            else:
                self.session.on_overlay_hidden()
        elif t == "background":
            self.session.on_app_background()
        elif t == "foreground":
            self.session.on_app_foreground()
        elif t == "rescan":
            self.session.rescan()
        elif t == "toggle_fullscreen":
            config.FULLSCREEN ^= True
            self.screen = self._open_window()
        return True

    # ── drawing ---------------------------------------------------------
    def _draw(self) -> None:
        snap = self.session.snapshot()
        if snap.no_content:
            draw_no_content(self.screen, self.catalog.root_dir)
            self.button_rect = None
            return
        if snap.loading:
            draw_loading(self.screen)
            self.button_rect = None
            return

        t = self.session.transitions
        incoming = t.next if snap.transition_state is TransitionState.SLIDING else None
        render_layers(self.screen, t.current, incoming, snap.progress)

        enabled = (snap.transition_state is TransitionState.IDLE
                   and not snap.ephemeral.expanded and not self.stats_open)
        self.button_rect = draw_bored_button(
            self.screen,
            snap.current_record.instance_count,
            snap.countdown_fraction,
            snap.ephemeral.skip_active,
            snap.ephemeral.expanded,
            snap.current_record.time_accumulated,
            enabled,
        )
        if self.stats_open:
            draw_stats_panel(self.screen, snap.stats)

    # ── main loop -------------------------------------------------------
    def run(self) -> None:
        running = True
        try:
            while running:
                for e in pygame.event.get():
                    EventManager.handle(e, self.button_rect)

                while (act := EventManager.poll()):
                    if not self._dispatch(act):
                        running = False

                self.scheduler.run_pending()
                self._draw()
                pygame.display.flip()
                self.clock.tick(config.FPS)
        finally:
            self.session.teardown()
            self.scheduler.cancel_all()
            pygame.quit()
            logger.info("bye")


if __name__ == "__main__":
    AmbientApp().run()
