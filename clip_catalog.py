"""
clip_catalog.py

Clip discovery and resolution for the ambient player.

* Scans CLIPS_PATH (preferring a `Videos/` sub-folder when it holds clips)
  and lists the clip IDs – plain filenames, naturally sorted, de-duplicated.
* `resolve(id)` turns an ID into a loaded playback handle.  Anything that
  goes wrong on the way (missing file, unreadable container, GStreamer
  refusing to preroll) is reported as `ResolutionError` so the caller can
  skip the clip and move on.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Callable, Dict, List, Optional

import av  # PyAV – thin FFmpeg bindings

import config

logger = logging.getLogger(__name__)

# ── Regex helpers ───────────────────────────────────────────────────────────
_VIDEO_RE = re.compile(r"\.(?:mkv|mp4|mov|avi|webm|flv)$", re.IGNORECASE)

_SUBDIR = "Videos"


class ResolutionError(Exception):
    """A clip ID could not be turned into a playable handle."""

    def __init__(self, clip_id: str, reason: str):
        super().__init__(f"{clip_id}: {reason}")
        self.clip_id = clip_id
        self.reason  = reason


# ── natural sort ────────────────────────────────────────────────────────────
def _nat_key(s: str) -> list:
    return [int(t) if t.isdigit() else t.lower()
            for t in re.split(r"(\d+)", s)]


# ── Duration probe ──────────────────────────────────────────────────────────
def probe_duration(fp: str) -> float:
    """Return clip length in seconds. Zero on error."""
    try:
        with av.open(fp) as container:
            stream = next(
                (s for s in container.streams if s.type == "video"),
                None,
            )
            if stream is None:
                return 0.0

            if stream.duration and stream.time_base:
                dur = float(stream.duration * stream.time_base)
            elif container.duration:
                dur = container.duration / av.time_base
            else:
                dur = 0.0

            return max(0.0, dur)
    except Exception as exc:
        logger.debug("probe failed for %s: %s", fp, exc)
        return 0.0


def _default_player_factory(clip_id: str, path: str, duration: float):
    from video_player import VideoPlayer   # GStreamer only when really playing
    player = VideoPlayer(clip_id, path, duration)
    player.load()
    return player


PlayerFactory = Callable[[str, str, float], object]


# ── Catalog ─────────────────────────────────────────────────────────────────
class ClipCatalog:
    """Lists clip IDs from a folder and resolves them to playback handles."""

    def __init__(self, root_dir: str | None = None,
                 player_factory: Optional[PlayerFactory] = None,
                 prober: Callable[[str], float] = probe_duration) -> None:
        self.root_dir = os.path.abspath(root_dir or config.CLIPS_PATH)
        self._factory = player_factory or _default_player_factory
        self._probe   = prober
        self._paths: Dict[str, str] = {}
        self.rescan()

    # ----------------------------------------------------------- discovery
    def _scan_dir(self, dir_path: str) -> Dict[str, str]:
        found: Dict[str, str] = {}
        if not os.path.isdir(dir_path):
            return found
        for entry in os.scandir(dir_path):
            if entry.is_file() and _VIDEO_RE.search(entry.name):
                found.setdefault(entry.name, entry.path)
        return found

    def rescan(self) -> List[str]:
        paths = self._scan_dir(os.path.join(self.root_dir, _SUBDIR))
        if not paths:
            paths = self._scan_dir(self.root_dir)
        self._paths = paths
        logger.info("%d clip(s) in %s", len(paths), self.root_dir)
        return self.list_clip_ids()

    def list_clip_ids(self) -> List[str]:
        return sorted(self._paths, key=_nat_key)

    def __len__(self) -> int:
        return len(self._paths)

    def path_for(self, clip_id: str) -> Optional[str]:
        return self._paths.get(clip_id)

    # ----------------------------------------------------------- resolution
    def resolve(self, clip_id: str):
        """Return a loaded, paused handle for *clip_id* or raise ResolutionError."""
        path = self.path_for(clip_id)
        if path is None or not os.path.isfile(path):
            raise ResolutionError(clip_id, "missing")

        duration = self._probe(path)
        if duration <= 0:
            raise ResolutionError(clip_id, "unreadable")

        try:
            return self._factory(clip_id, path, duration)
        except ResolutionError:
            raise
        except Exception as exc:
            raise ResolutionError(clip_id, str(exc)) from exc
