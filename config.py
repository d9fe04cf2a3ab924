"""
config.py — Runtime Configuration
==================================
Class-level settings shared by the layout engines, the playback
controller, the translator and the Flask app.

Overrides, lowest to highest precedence:
    1. the defaults below
    2. a JSON file (`Config.load_from_file`, or `DSA_VIS_CONFIG` env var)
    3. individual environment variables (`Config.from_env`)
"""

import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class Config:
    """
    Attributes
    ----------
    canvas_width, canvas_height:
        SVG viewport in pixels.
    margin_top, margin_right, margin_bottom, margin_left:
        Inner drawing area offsets, as used by every layout engine.
    default_speed_ms, min_speed_ms, max_speed_ms, speed_step_ms:
        Playback interval default and the speed slider range.
    force_*:
        Parameters for the graph force simulation.  ``force_alpha_decay``
        of ``None`` means "settle in ``force_max_ticks`` ticks".
    zoom_min, zoom_max:
        Scale extent for the graph container.
    gemini_model:
        Model name for the translator.  ``None`` lets the translator pick
        the first flash / lite model that supports content generation.
    gemini_api_key_env:
        Name of the environment variable holding the API key.
    log_level:
        Root logging level for ``main.py``.
    """

    # canvas
    canvas_width:  int = 600
    canvas_height: int = 400
    margin_top:    int = 20
    margin_right:  int = 20
    margin_bottom: int = 40
    margin_left:   int = 40

    # playback
    default_speed_ms: int = 1000
    min_speed_ms:     int = 200
    max_speed_ms:     int = 2000
    speed_step_ms:    int = 200

    # graph physics
    force_charge:         float = -250.0
    force_link_distance:  float = 160.0
    force_collide_radius: float = 50.0
    force_seed_radius:    float = 120.0
    force_alpha_min:      float = 0.001
    force_alpha_decay:    Optional[float] = None
    force_velocity_decay: float = 0.4
    force_max_ticks:      int   = 300
    drag_alpha_target:    float = 0.3
    drag_ticks:           int   = 30

    # zoom
    zoom_min: float = 0.5
    zoom_max: float = 1.0

    # translator
    gemini_model:       Optional[str] = None
    gemini_api_key_env: str           = "GEMINI_API_KEY"

    # app
    log_level:  str           = "INFO"
    secret_key: Optional[str] = None

    @classmethod
    def load_from_file(cls, path: str) -> None:
        """Merge a JSON object of ``{attribute: value}`` into the class."""
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"config file {path} must contain a JSON object")
        cls.update(data)

    @classmethod
    def update(cls, values: Dict[str, Any]) -> None:
        for key, value in values.items():
            if key.startswith("_") or not hasattr(cls, key) or callable(getattr(cls, key)):
                logger.warning("ignoring unknown config key %r", key)
                continue
            setattr(cls, key, value)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> None:
        env = os.environ if environ is None else environ
        path = env.get("DSA_VIS_CONFIG")
        if path:
            cls.load_from_file(path)
        if env.get("GEMINI_MODEL"):
            cls.gemini_model = env["GEMINI_MODEL"]
        if env.get("DSA_VIS_LOG_LEVEL"):
            cls.log_level = env["DSA_VIS_LOG_LEVEL"].upper()
        if env.get("DSA_VIS_SECRET_KEY"):
            cls.secret_key = env["DSA_VIS_SECRET_KEY"]

    @classmethod
    def api_key(cls, environ: Optional[Dict[str, str]] = None) -> Optional[str]:
        env = os.environ if environ is None else environ
        return env.get(cls.gemini_api_key_env) or None

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        return {
            k: v for k, v in vars(cls).items()
            if not k.startswith("_") and not callable(v) and not isinstance(v, classmethod)
        }
