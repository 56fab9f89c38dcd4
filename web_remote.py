#!/usr/bin/env python3
"""
web_remote.py  –  tiny web UI for the ambient player

Endpoints
---------
/               → HTML page with a bored button, stats toggle and live stats
/stats          → JSON copy of the stats the app last published
/action?cmd=…   → inject control commands (bored, stats, rescan, quit)

Runs on a daemon thread.  It never touches the session directly: commands go
through EventManager and reads come from `app.published`, a dict the main
loop swaps in wholesale.
"""

from __future__ import annotations
import http.server
import json
import logging
import socketserver
import threading
import time
import urllib.parse
from typing import TYPE_CHECKING, Any

from events import EventManager
import config

if TYPE_CHECKING:                       # avoid circular import at runtime
    from app import AmbientApp

logger = logging.getLogger(__name__)

_COMMANDS = {
    "bored":  {"type": "bored"},
    "stats":  {"type": "toggle_stats"},
    "rescan": {"type": "rescan"},
    "quit":   {"type": "quit"},
}


# ── reusable threaded HTTP server ──────────────────────────────────────────
class ReusableTCPServer(socketserver.ThreadingMixIn, http.server.HTTPServer):
    daemon_threads      = True
    allow_reuse_address = True


# ── request handler ────────────────────────────────────────────────────────
class RemoteHandler(http.server.BaseHTTPRequestHandler):
    def log_message(self, *args):
        return  # silence default logging

    def do_GET(self):
        parsed = urllib.parse.urlparse(self.path)
        path, qs = parsed.path, parsed.query

        if path == "/":
            return self._serve_html()
        if path == "/stats":
            return self._serve_json(self.server.app.published)   # type: ignore
        if path == "/action":
            return self._serve_action(qs)

        self.send_error(404, "Not found")

    # ── helpers for each route ───────────────────────────────────────────
    def _serve_html(self):
        b = HTML_PAGE.encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(b)))
        self.end_headers()
        self.wfile.write(b)

    def _serve_json(self, obj: Any):
        b = json.dumps(obj).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(b)))
        self.end_headers()
        self.wfile.write(b)

    def _serve_action(self, query: str):
        qs = urllib.parse.parse_qs(query)
        cmd = qs.get("cmd", [""])[0]

        action = _COMMANDS.get(cmd)
        if action is None:
            return self.send_error(400, "Unknown cmd")
        EventManager.post(dict(action))

        self.send_response(204)
        self.end_headers()


# ── simple HTML UI ─────────────────────────────────────────────────────────
HTML_PAGE = """
<!doctype html><html><head><meta charset="utf-8">
<title>boredtv remote</title>
<style>
 body{background:#000;color:#eee;font-family:monospace;padding:1em;}
 a.button{display:inline-block;margin:4px;padding:6px 12px;border:1px solid #eee;
          text-decoration:none;color:#eee;}
 pre{margin:0.5em 0;font-family:monospace;}
</style></head><body>
<h2>boredtv</h2>
<a class="button" href="#" onclick="act('bored')">zzz I'm bored</a>
<a class="button" href="#" onclick="act('stats')">Toggle stats</a>
<a class="button" href="#" onclick="act('rescan')">Rescan clips</a>
<a class="button" href="#" onclick="act('quit')">Quit</a>

<div><h3>Now</h3><pre id="now"></pre></div>
<div><h3>Stats</h3><pre id="stats"></pre></div>

<script>
 function act(cmd){ fetch('/action?cmd=' + cmd); return false; }
 async function refreshUI(){
   try {
     let r = await fetch('/stats'); let s = await r.json();
     document.getElementById('now').textContent =
       'current  ' + s.current + '\\nnext     ' + s.next + '\\nstate    ' + s.state;
     let txt = '';
     for (let [k,v] of Object.entries(s.totals || {})){
       txt += k.padEnd(20,' ') + v + '\\n';
     }
     document.getElementById('stats').textContent = txt;
   } catch(e){
     console.error(e);
   }
 }
 setInterval(refreshUI, 500);
 refreshUI();
</script>
</body></html>
"""


# ── server bootstrap with auto-restart ────────────────────────────────────
def start(app: "AmbientApp", port: int = getattr(config, "WEB_PORT", 8080)):
    def _serve_loop():
        while True:
            try:
                with ReusableTCPServer(("", port), RemoteHandler) as httpd:
                    httpd.app = app
                    httpd.serve_forever()
            except Exception:
                logger.exception("web remote crashed; restarting")
                time.sleep(1)

    threading.Thread(target=_serve_loop, daemon=True).start()
    logger.info("web remote listening on port %d", port)
