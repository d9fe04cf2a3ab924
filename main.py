"""
main.py — DSA Algorithm Visualizer Flask App
=============================================
The web server that powers the visualizer.

Routes:
  GET  /                         – main UI
  POST /api/search               – ask the translator, load the result
  POST /api/load                 – load an AlgorithmData JSON body as is
  GET  /api/frame?since=N        – svg, playback state, panels, pending speech
  POST /api/playback/<action>    – play / pause / next / previous / reset / toggle
  POST /api/playback/goto        – jump to {"step": n}
  POST /api/playback/speed       – {"speed_ms": n}
  POST /api/graph/drag           – {"id", "x", "y"} pin + reheat
  POST /api/graph/release        – {"id"} unpin
  POST /api/graph/pulse          – {"id"} bounce animation
  POST /api/graph/zoom           – {"k", "x", "y"}
  POST /api/speech/ended         – {"seq"} the page finished an utterance
  POST /api/speech/unsupported   – the page has no speech synthesis
  POST /api/audio/script         – generate the whole-algorithm narration
  POST /api/audio/play           – speak it
  POST /api/audio/stop           – silence it
  GET  /api/export               – JSON snapshot of the session

State management:
  Flask's cookie session only carries an opaque visitor id.  The real
  state (playback timer thread, graph simulation, speech outbox) lives in
  a VisualizerSession held in an in-process registry keyed by that id.
  The oldest sessions are disposed once MAX_SESSIONS is exceeded.
"""

from flask import Flask, render_template_string, request, jsonify, session
from collections import OrderedDict
import logging
import secrets
import threading
import sys
import os

# add project root to path so imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import Config
from engine import PLAYBACK_ACTIONS, VisualizerSession
from payload import AlgorithmData
from translator import GeminiTranslator, TranslatorError, build_query
from ui import (
    algorithm_header,
    audio_panel,
    complexity_panel,
    playback_controls,
    pseudocode_viewer,
    search_panel,
    steps_panel,
    visualization_status,
)

logger = logging.getLogger(__name__)

Config.from_env()

app = Flask(__name__)
app.secret_key = Config.secret_key or secrets.token_hex(32)
app.config["SESSION_FACTORY"] = VisualizerSession
app.config["TRANSLATOR"] = None

MAX_SESSIONS = 256

_sessions: "OrderedDict[str, VisualizerSession]" = OrderedDict()
_sessions_lock = threading.Lock()


# ---------------------------------------------------------------------------
# Session State Helpers
# ---------------------------------------------------------------------------
def get_visualizer() -> VisualizerSession:
    """The caller's VisualizerSession, created on first use."""
    vid = session.get("vid")
    with _sessions_lock:
        if vid and vid in _sessions:
            _sessions.move_to_end(vid)
            return _sessions[vid]
        vid = secrets.token_hex(16)
        session["vid"] = vid
        vis = app.config["SESSION_FACTORY"]()
        _sessions[vid] = vis
        while len(_sessions) > MAX_SESSIONS:
            old_id, old = _sessions.popitem(last=False)
            old.dispose()
            logger.info("evicted visualizer session %s", old_id[:8])
        return vis


def drop_all_sessions() -> None:
    with _sessions_lock:
        while _sessions:
            _, vis = _sessions.popitem()
            vis.dispose()


def get_translator() -> GeminiTranslator:
    if app.config["TRANSLATOR"] is None:
        app.config["TRANSLATOR"] = GeminiTranslator()
    return app.config["TRANSLATOR"]


def error(message: str, status: int):
    return jsonify({"error": message}), status


def body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def build_panels(vis: VisualizerSession) -> dict:
    state = vis.controller.state()
    data = vis.data
    return {
        "header":     algorithm_header(data.name, data.description) if data else algorithm_header(),
        "playback":   playback_controls(state.status.value, state.current_step,
                                        state.total_steps, state.speed_ms),
        "steps":      steps_panel(vis.controller.steps, state.current_step),
        "status":     visualization_status(state.current_step, state.total_steps) if data else "",
        "pseudocode": pseudocode_viewer(data.pseudocode if data else ""),
        "complexity": complexity_panel(data.time_complexity, data.space_complexity) if data else "",
        "audio":      audio_panel(vis.audio_script, vis.narrator.speaking) if data else "",
    }


def frame_response(vis: VisualizerSession, since=None):
    frame = vis.frame(since)
    frame["panels"] = build_panels(vis)
    return jsonify(frame)


def node_args(data: dict):
    node_id = data.get("id")
    if node_id is None:
        raise ValueError("missing node id")
    return str(node_id)


# ---------------------------------------------------------------------------
# Main UI Route
# ---------------------------------------------------------------------------
@app.route("/")
def index():
    vis = get_visualizer()
    panels = build_panels(vis)
    html = render_template_string(INDEX_TEMPLATE,
        svg=vis.renderer.last_svg,
        search=search_panel(),
        poll_ms=250,
        **panels,
    )
    return html


# ---------------------------------------------------------------------------
# API: Loading
# ---------------------------------------------------------------------------
@app.route("/api/search", methods=["POST"])
def api_search():
    data = body()
    query = str(data.get("query") or "").strip()
    if not query:
        return error("Please enter an algorithm to search for", 400)
    full_query = build_query(query, str(data.get("customData") or ""))
    try:
        result = get_translator().search(full_query)
    except TranslatorError as exc:
        logger.warning("search failed for %r: %s", full_query, exc)
        return error("Failed to fetch algorithm data. Please check your API key and try again.", 502)
    vis = get_visualizer()
    vis.load(result)
    return frame_response(vis)


@app.route("/api/load", methods=["POST"])
def api_load():
    try:
        data = AlgorithmData.from_dict(request.get_json(silent=True))
    except ValueError as exc:
        return error(str(exc), 400)
    vis = get_visualizer()
    vis.load(data)
    return frame_response(vis)


@app.route("/api/frame")
def api_frame():
    since = request.args.get("since", type=int)
    return frame_response(get_visualizer(), since)


# ---------------------------------------------------------------------------
# API: Playback
# ---------------------------------------------------------------------------
@app.route("/api/playback/speed", methods=["POST"])
def api_playback_speed():
    vis = get_visualizer()
    try:
        state = vis.set_speed(int(body().get("speed_ms", 0)))
    except (TypeError, ValueError) as exc:
        return error(str(exc), 400)
    return jsonify(state)


@app.route("/api/playback/goto", methods=["POST"])
def api_playback_goto():
    vis = get_visualizer()
    if not vis.loaded:
        return error("Nothing loaded", 404)
    try:
        state = vis.goto(int(body().get("step", -1)))
    except (TypeError, ValueError) as exc:
        return error(str(exc), 400)
    return jsonify(state)


@app.route("/api/playback/<action>", methods=["POST"])
def api_playback(action):
    if action not in PLAYBACK_ACTIONS:
        return error(f"Unknown playback action {action!r}", 400)
    vis = get_visualizer()
    if not vis.loaded:
        return error("Nothing loaded", 404)
    return jsonify(vis.playback(action))


# ---------------------------------------------------------------------------
# API: Graph Interaction
# ---------------------------------------------------------------------------
@app.route("/api/graph/drag", methods=["POST"])
def api_graph_drag():
    data = body()
    try:
        node_id = node_args(data)
        x, y = float(data["x"]), float(data["y"])
    except (KeyError, TypeError, ValueError) as exc:
        return error(f"bad drag request: {exc}", 400)
    if not get_visualizer().drag(node_id, x, y):
        return error(f"No graph node {node_id!r}", 404)
    return jsonify({"ok": True})


@app.route("/api/graph/release", methods=["POST"])
def api_graph_release():
    try:
        node_id = node_args(body())
    except ValueError as exc:
        return error(str(exc), 400)
    if not get_visualizer().release(node_id):
        return error(f"No graph node {node_id!r}", 404)
    return jsonify({"ok": True})


@app.route("/api/graph/pulse", methods=["POST"])
def api_graph_pulse():
    try:
        node_id = node_args(body())
    except ValueError as exc:
        return error(str(exc), 400)
    if not get_visualizer().pulse(node_id):
        return error(f"No graph node {node_id!r}", 404)
    return jsonify({"ok": True})


@app.route("/api/graph/zoom", methods=["POST"])
def api_graph_zoom():
    data = body()
    try:
        k = float(data.get("k", 1.0))
        x, y = float(data.get("x", 0.0)), float(data.get("y", 0.0))
    except (TypeError, ValueError) as exc:
        return error(f"bad zoom request: {exc}", 400)
    vis = get_visualizer()
    if not vis.loaded:
        return error("Nothing loaded", 404)
    return jsonify(vis.zoom(k, x, y))


# ---------------------------------------------------------------------------
# API: Speech feedback from the page
# ---------------------------------------------------------------------------
@app.route("/api/speech/ended", methods=["POST"])
def api_speech_ended():
    try:
        seq = int(body().get("seq"))
    except (TypeError, ValueError):
        return error("missing utterance seq", 400)
    get_visualizer().speech_ended(seq)
    return jsonify({"ok": True})


@app.route("/api/speech/unsupported", methods=["POST"])
def api_speech_unsupported():
    vis = get_visualizer()
    vis.speech_unsupported()
    return jsonify(vis.controller.state().to_dict())


# ---------------------------------------------------------------------------
# API: Audio Explanation
# ---------------------------------------------------------------------------
@app.route("/api/audio/script", methods=["POST"])
def api_audio_script():
    vis = get_visualizer()
    if not vis.loaded:
        return error("Nothing loaded", 404)
    try:
        script = get_translator().generate_audio_script(vis.data)
    except TranslatorError as exc:
        return error(str(exc), 502)
    vis.set_audio_script(script)
    return jsonify({"script": script, "panel": audio_panel(script)})


@app.route("/api/audio/play", methods=["POST"])
def api_audio_play():
    vis = get_visualizer()
    if not vis.play_script():
        return error("No audio explanation to play", 400)
    return jsonify({"speaking": True})


@app.route("/api/audio/stop", methods=["POST"])
def api_audio_stop():
    get_visualizer().stop_audio()
    return jsonify({"speaking": False})


# ---------------------------------------------------------------------------
# API: Export
# ---------------------------------------------------------------------------
@app.route("/api/export")
def api_export():
    vis = get_visualizer()
    if not vis.loaded:
        return error("Nothing loaded", 404)
    return jsonify(vis.export())


# ---------------------------------------------------------------------------
# HTML Template
# ---------------------------------------------------------------------------
INDEX_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>DSA Algorithm Visualizer</title>
  <link rel="preconnect" href="https://fonts.googleapis.com">
  <link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
  <link href="https://fonts.googleapis.com/css2?family=JetBrains+Mono:wght@400;500;700&family=DM+Sans:wght@400;500;700&display=swap" rel="stylesheet">
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }

    :root {
      --bg: #f3f4f6;
      --bg-panel: #ffffff;
      --border: #e5e7eb;
      --text-primary: #1f2937;
      --text-secondary: #6b7280;
      --accent-blue: #2563eb;
      --accent-emerald: #10b981;
      --accent-amber: #f59e0b;
    }

    body {
      font-family: 'DM Sans', -apple-system, BlinkMacSystemFont, sans-serif;
      background: var(--bg);
      color: var(--text-primary);
      display: flex;
      min-height: 100vh;
    }

    #sidebar {
      width: 360px;
      padding: 20px 16px;
      border-right: 1px solid var(--border);
      overflow-y: auto;
      max-height: 100vh;
    }

    #main {
      flex: 1;
      padding: 20px;
      display: flex;
      flex-direction: column;
      gap: 16px;
      overflow-y: auto;
      max-height: 100vh;
    }

    #canvas-container {
      background: var(--bg-panel);
      border: 1px solid var(--border);
      border-radius: 12px;
      padding: 16px;
      display: flex;
      flex-direction: column;
      align-items: center;
    }

    #canvas-svg svg { max-width: 100%; height: auto; user-select: none; }
    #canvas-svg .node { cursor: grab; }

    #bottom-panel {
      display: grid;
      grid-template-columns: 1fr 1fr;
      gap: 16px;
    }

    .panel {
      background: var(--bg-panel);
      border: 1px solid var(--border);
      border-radius: 12px;
      padding: 16px;
      margin-bottom: 16px;
    }

    .panel h3 {
      font-size: 13px;
      font-weight: 700;
      margin-bottom: 12px;
      text-transform: uppercase;
      letter-spacing: 0.5px;
    }

    .algorithm-header h2 { font-size: 22px; margin-bottom: 6px; }
    .algorithm-header p { color: var(--text-secondary); line-height: 1.6; }
    .placeholder { color: var(--text-secondary); font-style: italic; }
    .error { color: #dc2626; margin-top: 8px; font-size: 13px; }

    .button-row { display: flex; gap: 8px; margin-bottom: 12px; }

    button {
      background: #e5e7eb;
      color: var(--text-primary);
      border: none;
      padding: 8px 14px;
      border-radius: 8px;
      cursor: pointer;
      font-size: 13px;
      font-weight: 600;
      font-family: 'DM Sans', sans-serif;
    }
    button:disabled { opacity: 0.5; cursor: not-allowed; }
    #btn-play, .btn-primary { background: var(--accent-blue); color: #fff; }

    input[type="text"], input[type="range"] {
      width: 100%;
      padding: 8px 10px;
      margin: 6px 0;
      border: 1px solid var(--border);
      border-radius: 8px;
      font-size: 13px;
      font-family: 'DM Sans', sans-serif;
    }

    .step-info, .visualization-status {
      font-size: 13px;
      margin: 10px 0;
      color: var(--text-secondary);
      font-family: 'JetBrains Mono', monospace;
    }

    .status-badge { padding: 2px 8px; border-radius: 6px; font-size: 12px; }
    .status-badge.starting { background: #dbeafe; color: #1e40af; }
    .status-badge.in-progress { background: #fef3c7; color: #92400e; }
    .status-badge.completed { background: #d1fae5; color: #065f46; }

    .current-step {
      background: #eff6ff;
      border: 1px solid #bfdbfe;
      border-radius: 8px;
      padding: 12px;
      margin-bottom: 12px;
    }
    .badge, .current-badge {
      background: var(--accent-blue);
      color: #fff;
      padding: 2px 8px;
      border-radius: 6px;
      font-size: 12px;
      margin-right: 6px;
    }
    .step-code, .code-block {
      font-family: 'JetBrains Mono', 'Courier New', monospace;
      font-size: 13px;
      white-space: pre-wrap;
      background: #f9fafb;
      border: 1px solid var(--border);
      border-radius: 6px;
      padding: 10px;
      margin: 8px 0;
    }
    .line-number { color: var(--text-secondary); margin-right: 12px; }
    .step-list { max-height: 240px; overflow-y: auto; display: grid; gap: 6px; }
    .step-item { text-align: left; background: #f9fafb; font-weight: 400; }
    .step-item.active { background: #dbeafe; }
    .step-item p { white-space: nowrap; overflow: hidden; text-overflow: ellipsis; }

    .complexity-card { margin-bottom: 10px; }
    .complexity-card h4 { font-size: 13px; color: var(--text-secondary); }
    .audio-script { font-size: 13px; line-height: 1.6; max-height: 200px; overflow-y: auto; }
  </style>
</head>
<body>
  <div id="sidebar">
    <div id="search">{{ search|safe }}</div>
    <div id="playback">{{ playback|safe }}</div>
    <div id="audio">{{ audio|safe }}</div>
    <div id="complexity">{{ complexity|safe }}</div>
  </div>

  <div id="main">
    <div id="header">{{ header|safe }}</div>
    <div id="canvas-container">
      <div id="canvas-svg">{{ svg|safe }}</div>
      <div id="status">{{ status|safe }}</div>
    </div>

    <div id="bottom-panel">
      <div id="steps">{{ steps|safe }}</div>
      <div class="panel">
        <h3>Pseudocode</h3>
        <div id="pseudocode">{{ pseudocode|safe }}</div>
      </div>
    </div>
  </div>

  <script>
    const POLL_MS = {{ poll_ms }};
    const PANELS = ['header', 'playback', 'steps', 'status', 'pseudocode', 'complexity', 'audio'];
    const hasSpeech = 'speechSynthesis' in window;
    let lastFrame = -1;
    let lastUtterance = null;

    // API helpers
    async function post(url, data) {
      const res = await fetch(url, {
        method: 'POST',
        headers: {'Content-Type': 'application/json'},
        body: JSON.stringify(data || {}),
      });
      return await res.json();
    }

    function setHtml(id, html) {
      const el = document.getElementById(id);
      if (el && html !== undefined && el.dataset.html !== html) {
        el.innerHTML = html;
        el.dataset.html = html;
      }
    }

    // Speech: the server publishes one utterance at a time
    function handleUtterance(u) {
      if (!u || !hasSpeech) return;
      lastUtterance = u.seq;
      speechSynthesis.cancel();
      if (!u.active) return;
      const utterance = new SpeechSynthesisUtterance(u.text);
      utterance.rate = u.rate;
      utterance.volume = u.volume;
      const voices = speechSynthesis.getVoices();
      const voice = voices.find(v => v.lang.startsWith('en') && v.name.includes('Google'))
                 || voices.find(v => v.lang.startsWith('en'));
      if (voice) utterance.voice = voice;
      utterance.onend = () => post('/api/speech/ended', {seq: u.seq});
      speechSynthesis.speak(utterance);
    }

    function applyFrame(data) {
      if (data.error) return;
      if (data.frame !== lastFrame) {
        document.getElementById('canvas-svg').innerHTML = data.svg;
        lastFrame = data.frame;
      }
      if (data.panels) PANELS.forEach(p => setHtml(p, data.panels[p]));
      handleUtterance(data.utterance);
    }

    async function poll() {
      const since = lastUtterance === null ? '' : '?since=' + lastUtterance;
      try {
        const res = await fetch('/api/frame' + since);
        applyFrame(await res.json());
      } finally {
        setTimeout(poll, POLL_MS);
      }
    }

    // Buttons (delegated: panels are re-rendered on every change)
    document.addEventListener('click', async (e) => {
      const btn = e.target.closest('button');
      if (!btn) return;
      if (btn.id === 'btn-search') {
        btn.disabled = true;
        const data = await post('/api/search', {
          query: document.getElementById('search-query').value,
          customData: document.getElementById('search-data').value,
        });
        btn.disabled = false;
        if (data.error) { alert(data.error); return; }
        applyFrame(data);
      }
      else if (btn.id === 'btn-play') await post('/api/playback/' + btn.dataset.action);
      else if (btn.id === 'btn-next') await post('/api/playback/next');
      else if (btn.id === 'btn-prev') await post('/api/playback/previous');
      else if (btn.id === 'btn-reset') await post('/api/playback/reset');
      else if (btn.dataset.step !== undefined) await post('/api/playback/goto', {step: +btn.dataset.step});
      else if (btn.id === 'btn-audio-generate') {
        btn.disabled = true;
        btn.textContent = 'Generating…';
        await post('/api/audio/script');
      }
      else if (btn.id === 'btn-audio-play') await post('/api/audio/play');
      else if (btn.id === 'btn-audio-stop') await post('/api/audio/stop');
    });

    document.addEventListener('change', async (e) => {
      if (e.target.id === 'speed-slider') {
        await post('/api/playback/speed', {speed_ms: +e.target.value});
      }
    });

    // Graph: drag to pin, click to pulse, wheel to zoom
    let drag = null;
    let zoom = {k: 1, x: 0, y: 0};

    function svgPoint(evt) {
      const svg = document.querySelector('#canvas-svg svg');
      const group = svg.querySelector('.graph-container-group') || svg;
      const pt = svg.createSVGPoint();
      pt.x = evt.clientX;
      pt.y = evt.clientY;
      return pt.matrixTransform(group.getScreenCTM().inverse());
    }

    document.getElementById('canvas-svg').addEventListener('mousedown', (e) => {
      const node = e.target.closest('.node');
      if (!node) return;
      drag = {id: node.dataset.id, moved: false};
      e.preventDefault();
    });

    document.addEventListener('mousemove', async (e) => {
      if (!drag) return;
      drag.moved = true;
      const p = svgPoint(e);
      const data = await post('/api/graph/drag', {id: drag.id, x: p.x, y: p.y});
      if (!data.error) lastFrame = -1;
    });

    document.addEventListener('mouseup', async () => {
      if (!drag) return;
      const {id, moved} = drag;
      drag = null;
      await post(moved ? '/api/graph/release' : '/api/graph/pulse', {id});
    });

    document.getElementById('canvas-svg').addEventListener('wheel', async (e) => {
      const svg = document.querySelector('#canvas-svg svg');
      if (!svg || svg.dataset.zoomable !== 'true') return;
      e.preventDefault();
      zoom.k = Math.min(1.0, Math.max(0.5, zoom.k * (e.deltaY < 0 ? 1.1 : 0.9)));
      zoom = await post('/api/graph/zoom', zoom);
    }, {passive: false});

    if (!hasSpeech) post('/api/speech/unsupported');
    poll();
  </script>
</body>
</html>
"""


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, str(Config.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print("=" * 60)
    print("  DSA Algorithm Visualizer")
    print("  Starting Flask server...")
    print("  Open http://localhost:5000")
    print("=" * 60)
    app.run(debug=False, threaded=True)
