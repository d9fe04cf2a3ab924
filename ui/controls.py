"""
controls.py — UI Side Panels
=============================
Every panel is a pure function that takes plain values and returns HTML.

Panels:
  • search_panel          – query box + optional custom data
  • algorithm_header      – name and one-paragraph description
  • playback_controls     – reset/prev/play/next, step counter, speed slider
  • steps_panel           – current step card + clickable list of all steps
  • visualization_status  – Starting / In Progress / Completed badge
  • pseudocode_viewer     – the algorithm's pseudocode block
  • complexity_panel      – time / space complexity strings
  • audio_panel           – whole-algorithm audio explanation

Design:
  - All panels are stateless render functions; no engine objects come in,
    only numbers, strings and AlgorithmStep values.
  - Every piece of user or model text is HTML-escaped here.
  - The page swaps panel HTML in after each /api/frame poll.
"""

from html import escape
from typing import List, Optional, Sequence

from config import Config
from payload.types import AlgorithmStep


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
def search_panel(query: str = "", custom_data: str = "", error: Optional[str] = None) -> str:
    error_html = f'<p class="error">{escape(error)}</p>' if error else ""
    return f"""
    <div class="panel search-panel">
      <h3>🔎 Algorithm</h3>
      <input id="search-query" type="text" value="{escape(query)}"
             placeholder="e.g. bubble sort, BFS, reverse a linked list">
      <input id="search-data" type="text" value="{escape(custom_data)}"
             placeholder="Custom data: 5,3,8,1  or  A-B, B-C">
      <button id="btn-search" class="btn-primary">Visualize</button>
      {error_html}
    </div>
    """


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------
def algorithm_header(name: str = "", description: str = "") -> str:
    if not name:
        return """
        <div class="algorithm-header">
          <p class="placeholder">Search for an algorithm to get started.</p>
        </div>
        """
    return f"""
    <div class="algorithm-header">
      <h2>{escape(name)}</h2>
      <p>{escape(description)}</p>
    </div>
    """


# ---------------------------------------------------------------------------
# Playback Controls
# ---------------------------------------------------------------------------
def playback_controls(
    status: str = "stopped",
    current_step: int = 0,
    total_steps: int = 0,
    speed_ms: Optional[int] = None,
) -> str:
    speed_ms = speed_ms or Config.default_speed_ms
    is_playing = status == "playing"
    play_icon = "⏸" if is_playing else "▶"
    play_label = "Pause" if is_playing else "Play"
    at_start = current_step <= 0
    at_end = total_steps == 0 or current_step >= total_steps - 1
    counter = f"Step {current_step + 1} of {total_steps}" if total_steps else "No steps"

    return f"""
    <div class="panel playback-controls" data-status="{escape(status)}">
      <h3>⏯ Step-by-Step Execution</h3>
      <div class="button-row">
        <button id="btn-reset" title="Reset to beginning">⟲</button>
        <button id="btn-prev" title="Previous step" {'disabled' if at_start else ''}>◀</button>
        <button id="btn-play" title="{play_label}" data-action="{'pause' if is_playing else 'play'}">{play_icon}</button>
        <button id="btn-next" title="Next step" {'disabled' if at_end else ''}>▶</button>
      </div>
      <div class="step-info">{counter}</div>
      <div class="speed-control">
        <label for="speed-slider">Speed:</label>
        <input id="speed-slider" type="range"
               min="{Config.min_speed_ms}" max="{Config.max_speed_ms}" step="{Config.speed_step_ms}"
               value="{speed_ms}" {'disabled' if is_playing else ''}>
        <span class="speed-value">{speed_ms}ms</span>
      </div>
    </div>
    """


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------
def steps_panel(steps: Sequence[AlgorithmStep], current_step: int = 0) -> str:
    if not steps:
        return """
        <div class="panel steps-panel">
          <p class="placeholder">No steps yet.</p>
        </div>
        """

    card = ""
    if 0 <= current_step < len(steps):
        step = steps[current_step]
        card = f"""
      <div class="current-step">
        <div class="current-step-title">
          <span class="badge">Step {step.index}</span>
          <span>{escape(step.description)}</span>
        </div>
        <pre class="step-code">{escape(step.code)}</pre>
        <p class="step-explanation">{escape(step.explanation)}</p>
      </div>"""

    items: List[str] = []
    for i, step in enumerate(steps):
        current = i == current_step
        badge = '<span class="current-badge">Current</span>' if current else ""
        items.append(
            f'<button class="step-item {"active" if current else ""}" data-step="{i}">'
            f'<span class="step-number">Step {step.index}</span>{badge}'
            f'<p>{escape(step.description)}</p></button>'
        )

    return f"""
    <div class="panel steps-panel">
      {card}
      <h4>All Steps:</h4>
      <div class="step-list">
        {''.join(items)}
      </div>
    </div>
    """


def visualization_status(current_step: int, total_steps: int) -> str:
    if current_step == 0:
        label, css = "Starting", "starting"
    elif current_step < total_steps - 1:
        label, css = "In Progress", "in-progress"
    else:
        label, css = "Completed", "completed"
    return f"""
    <div class="visualization-status">
      <p><strong>Current Step:</strong> {current_step + 1} of {total_steps}</p>
      <span class="status-badge {css}">{label}</span>
    </div>
    """


# ---------------------------------------------------------------------------
# Pseudocode / Complexity
# ---------------------------------------------------------------------------
def pseudocode_viewer(pseudocode: str = "") -> str:
    if not pseudocode.strip():
        return """
        <div class="code-block">
          <div class="placeholder">No pseudocode available</div>
        </div>
        """
    lines = [
        f'<div class="code-line" data-line="{i}">'
        f'<span class="line-number">{i + 1}</span>{escape(line)}</div>'
        for i, line in enumerate(pseudocode.splitlines())
    ]
    return f"""
    <div class="code-block">
      {''.join(lines)}
    </div>
    """


def complexity_panel(time_complexity: str = "", space_complexity: str = "") -> str:
    return f"""
    <div class="panel complexity-panel">
      <h3>⏱ Complexity Analysis</h3>
      <div class="complexity-card time">
        <h4>Time Complexity</h4>
        <code>{escape(time_complexity) or "—"}</code>
      </div>
      <div class="complexity-card space">
        <h4>Space Complexity</h4>
        <code>{escape(space_complexity) or "—"}</code>
      </div>
    </div>
    """


# ---------------------------------------------------------------------------
# Audio Explanation
# ---------------------------------------------------------------------------
def audio_panel(script: Optional[str] = None, speaking: bool = False) -> str:
    if script is None:
        body = '<button id="btn-audio-generate" class="btn-secondary">Generate audio explanation</button>'
    else:
        body = f"""
        <div class="button-row">
          <button id="btn-audio-play" {'disabled' if speaking else ''}>🔊 Play</button>
          <button id="btn-audio-stop" {'' if speaking else 'disabled'}>⏹ Stop</button>
        </div>
        <div class="audio-script">{escape(script)}</div>"""
    return f"""
    <div class="panel audio-panel">
      <h3>🎧 Audio Explanation</h3>
      {body}
    </div>
    """
