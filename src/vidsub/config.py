"""Runtime configuration read from the environment.

The only required setting is the API credential for the Gemini service.
Everything else has a default that matches the behaviour of a plain
``vidsub video.mp4`` run.
"""
import os

# Frames sampled per second of video.
DEFAULT_CAPTURE_RATE: float = 2.0

DEFAULT_TARGET_LANGUAGE = "Vietnamese"
DEFAULT_LANG_CODE = "vi"

DEFAULT_MODEL = "gemini-2.5-flash"

# Per-request timeout for the model service, in seconds.
REQUEST_TIMEOUT_S: float = 120.0

_API_KEY_VARS = ("GEMINI_API_KEY", "API_KEY", "GOOGLE_API_KEY")


def get_api_key() -> str | None:
    """Return the first non-empty credential among GEMINI_API_KEY, API_KEY, GOOGLE_API_KEY."""
    for name in _API_KEY_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None


def get_model_name() -> str:
    """Model used for both recognition and translation (VIDSUB_MODEL)."""
    return os.environ.get("VIDSUB_MODEL") or DEFAULT_MODEL
