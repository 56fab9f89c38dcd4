# =========  video_player.py  =========
"""
GStreamer-backed playback handle – one per clip.

A VideoPlayer is bound to a single clip for its whole life: `load()`
prerolls it (paused, muted, first frame decoded), after which it can be
played, paused, faded, seeked and finally closed.  Two of them are alive
during a transition, one per slot.

Public API
----------
load()
play() / pause()
decode_frame()  → latest frame (HxWx3 uint8) or None
get_position_sec()
seek_to(sec)
set_volume(0.0-1.0)
is_ready()
close()
Properties
----------
.clip_id   → catalog ID
.path      → file path
.duration  → probed length in seconds
.at_end    → True once the stream hit EOS
.sar       → sample-aspect ratio
"""
import logging
import queue
import threading

import gi
import numpy as np
gi.require_version("Gst", "1.0")
from gi.repository import GLib, Gst

logger = logging.getLogger(__name__)

Gst.init(None)


# ────────────────────────────────────────────────────────────────────────────
class VideoPlayer:
    def __init__(self, clip_id: str, path: str, duration: float = 0.0):
        self.clip_id  = clip_id
        self.path     = path
        self.duration = duration

        self.player = Gst.ElementFactory.make("playbin", None)
        if self.player is None:
            raise RuntimeError("GStreamer playbin unavailable")

        self._vsink = self._build_sink()
        self.player.set_property("video-sink", self._vsink)
        self.player.set_property("audio-sink",
                                 Gst.ElementFactory.make("autoaudiosink", None))
        self.player.set_property("volume", 0.0)

        # state
        self._q, self._last = queue.Queue(maxsize=1), None
        self._w = self._h = 0
        self.sar = 1.0
        self._eos = False
        self._ml = None
        self._ml_thread = None
        self._closed = False

    # ── sink ────────────────────────────────────────────────────────────────
    def _build_sink(self):
        vs = Gst.ElementFactory.make("appsink", None)
        vs.set_property("emit-signals", True)
        vs.set_property("max-buffers", 2)
        vs.set_property("drop", True)
        vs.set_property("sync", True)
        vs.set_property("caps", Gst.Caps.from_string("video/x-raw,format=RGB"))
        vs.connect("new-sample", self._on_sample, "pull-sample")
        vs.connect("new-preroll", self._on_sample, "pull-preroll")
        return vs

    # ── lifecycle ───────────────────────────────────────────────────────────
    def load(self, timeout: float = 5.0):
        """Preroll paused; raises RuntimeError if the clip won't decode."""
        self.player.set_property("uri", Gst.filename_to_uri(self.path))
        self.player.set_state(Gst.State.PAUSED)

        bus = self.player.get_bus()
        msg = bus.timed_pop_filtered(
            int(timeout * Gst.SECOND),
            Gst.MessageType.ASYNC_DONE | Gst.MessageType.ERROR,
        )
        if msg is None:
            self.close()
            raise RuntimeError("preroll timed out")
        if msg.type == Gst.MessageType.ERROR:
            err = msg.parse_error()[0]
            self.close()
            raise RuntimeError(err.message)

        pad = self._vsink.get_static_pad("sink")
        caps = pad.get_current_caps() if pad else None
        if caps is not None:
            st = caps.get_structure(0)
            self._w, self._h = st.get_int("width")[1], st.get_int("height")[1]
            if st.has_field("pixel-aspect-ratio"):
                num, den = st.get_fraction("pixel-aspect-ratio")[-2:]
                self.sar = num / den if den else 1.0

        try:
            self._last = self._bytes_to_arr(self._q.get(timeout=1.0))
        except queue.Empty:
            pass

        # bus watch in a side loop
        self._ml = GLib.MainLoop()
        bus.add_signal_watch()
        bus.connect("message", self._on_bus_msg)
        self._ml_thread = threading.Thread(target=self._ml.run, daemon=True)
        self._ml_thread.start()
        return self

    def play(self):
        if not self._closed:
            self.player.set_state(Gst.State.PLAYING)

    def pause(self):
        if not self._closed:
            self.player.set_state(Gst.State.PAUSED)

    def close(self):
        if self._closed:
            return
        self._closed = True
        if self._ml:
            self._ml.quit()
            self._ml = None
        if self._ml_thread and threading.current_thread() is not self._ml_thread:
            self._ml_thread.join(timeout=0.5)
        self._ml_thread = None
        self.player.set_state(Gst.State.NULL)

    # ── queries / controls ──────────────────────────────────────────────────
    @property
    def at_end(self) -> bool:
        return self._eos

    def is_ready(self) -> bool:
        return self._last is not None

    def decode_frame(self):
        data = None
        while True:
            try:
                data = self._q.get_nowait()
            except queue.Empty:
                break
        if data is not None:
            self._last = self._bytes_to_arr(data)
        return self._last

    def get_position_sec(self) -> float:
        ok, pos = self.player.query_position(Gst.Format.TIME)
        return pos / Gst.SECOND if ok else 0.0

    def seek_to(self, sec: float):
        self._eos = False
        self.player.seek_simple(
            Gst.Format.TIME,
            Gst.SeekFlags.FLUSH | Gst.SeekFlags.ACCURATE,
            int(max(0.0, sec) * Gst.SECOND),
        )

    def set_volume(self, vol: float):
        self.player.set_property("volume", max(0.0, min(1.0, vol)))

    # ── internals ───────────────────────────────────────────────────────────
    def _bytes_to_arr(self, data: bytes):
        if not self._h:
            return None
        stride = len(data) // self._h
        rows   = np.frombuffer(data, np.uint8).reshape((self._h, stride))
        return np.ascontiguousarray(rows[:, : self._w * 3]
                                    .reshape((self._h, self._w, 3)))

    def _on_sample(self, sink, signal):
        samp = sink.emit(signal)
        if samp:
            buf = samp.get_buffer()
            ok, mi = buf.map(Gst.MapFlags.READ)
            if ok:
                try:
                    self._q.put_nowait(bytes(mi.data))
                except queue.Full:
                    pass
                buf.unmap(mi)
        return Gst.FlowReturn.OK

    def _on_bus_msg(self, bus, msg):
        if msg.type == Gst.MessageType.EOS:
            self._eos = True
        elif msg.type == Gst.MessageType.ERROR:
            logger.warning("%s: GStreamer error: %s", self.clip_id,
                           msg.parse_error()[0].message)
            self._eos = True        # let the transition controller move on
        return True
