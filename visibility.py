"""
visibility.py – one signal for "is anybody actually watching?"

Window minimise/restore and the stats panel are both folded into this
object; the core only ever asks `active` (foreground) and `suppressed`
(an overlay hides too much of the clip).
"""
from __future__ import annotations

from dataclasses import dataclass

import config


@dataclass
class VisibilitySignal:
    foreground: bool = True
    overlay_fraction: float = 0.0
    threshold: float = config.OVERLAY_SUPPRESS_FRACTION

    @property
    def active(self) -> bool:
        return self.foreground

    @property
    def suppressed(self) -> bool:
        return self.overlay_fraction > self.threshold

    @property
    def watching(self) -> bool:
        """Foreground and not hidden behind an overlay."""
        return self.foreground and not self.suppressed
