"""
ui/
---
Presentation layer.

    from ui import SceneRenderer, render_scene
    from ui import playback_controls, steps_panel, …
"""

from ui.canvas import CanvasConfig, SceneRenderer, render_scene

from ui.controls import (
    algorithm_header,
    audio_panel,
    complexity_panel,
    playback_controls,
    pseudocode_viewer,
    search_panel,
    steps_panel,
    visualization_status,
)

__all__ = [
    "SceneRenderer",
    "render_scene",
    "CanvasConfig",
    "search_panel",
    "algorithm_header",
    "playback_controls",
    "steps_panel",
    "visualization_status",
    "pseudocode_viewer",
    "complexity_panel",
    "audio_panel",
]
