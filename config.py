# config.py
"""
Configuration settings for the ambient clip player.
"""
import os

FPS = 30

# ── Basic Application Settings ──────────────────────────────────────────────

# Directory holding the clips (a "Videos" sub-folder is preferred when present)
CLIPS_PATH = "clips"

# Display settings (9:16 portrait window when not fullscreen)
FULLSCREEN = False
WINDOWED_SIZE = (405, 720)

# Crossfade clip audio during transitions; clips play muted otherwise
AUDIO_ENABLED = False

LOG_LEVEL = "INFO"

# ── Transition timing ──────────────────────────────────────────────────────

TRANSITION_DURATION  = 1.0    # seconds for the slide between clips
TRANSITION_LEAD_TIME = 1.0    # start sliding this long before the clip ends
TRANSITION_TICK      = 1 / 60 # progress / audio fade cadence
END_POLL_INTERVAL    = 0.1    # pre-end check cadence (10 Hz)

# ── Boredom ────────────────────────────────────────────────────────────────

SKIP_COUNTDOWN_SEC    = 5.0   # "I'm bored" → skip after this long
COUNTDOWN_TICK        = 0.05  # 20 Hz
ACCUMULATION_TICK     = 0.25  # 4 Hz
EXPANDED_DISPLAY_SEC  = 2.0   # how long the bored panel stays open

# ── Visibility ─────────────────────────────────────────────────────────────

# An overlay covering more than this share of the window pauses the clocks
OVERLAY_SUPPRESS_FRACTION = 0.6
# Share of the window covered by the stats panel
STATS_PANEL_FRACTION      = 0.65

# ── Startup readiness ──────────────────────────────────────────────────────

READY_POLL_INTERVAL = 0.2
READY_DEADLINE_SEC  = 2.0     # show whatever we have after this long

# ── Persistence ────────────────────────────────────────────────────────────

SAVE_DEBOUNCE_SEC = 1.0

STATS_PATH = os.path.join(
    os.environ.get("XDG_DATA_HOME") or os.path.expanduser("~/.local/share"),
    "boredtv",
    "stats.json",
)

# ── Web remote ─────────────────────────────────────────────────────────────

WEB_PORT = 8080
STATS_PUBLISH_INTERVAL = 0.5  # how often the remote's stats copy is refreshed
