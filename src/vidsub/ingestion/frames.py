"""Fixed-rate frame sampling.

Probes the container with ffprobe for the canvas size and duration, then
seeks an OpenCV capture to every multiple of ``1 / rate`` and re-encodes the
decoded frame as JPEG.  Seeking per sample (rather than playing through the
stream) keeps sample times exact regardless of the container frame rate.

Every probe, open, seek, decode and encode failure is translated into
``DecodeError`` — callers never see raw subprocess or OpenCV errors.
"""

from __future__ import annotations

import json
import logging
import math
import subprocess
from pathlib import Path
from typing import Callable

import cv2

from vidsub.config import DEFAULT_CAPTURE_RATE
from vidsub.errors import DecodeError
from vidsub.models import Frame, SampledVideo, VideoInfo

logger = logging.getLogger(__name__)

# Guards floor(duration * rate) against float error, e.g. 0.3 * 10 == 2.9999999999999996.
_EPSILON = 1e-9


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def probe_video(source: Path) -> VideoInfo:
    """Return the pixel size and duration of the first video stream in *source*.

    The video stream's own duration is preferred; the container duration is
    used only when the stream does not report one (Matroska/WebM).  Audio
    often runs past the last picture, so the container value can overshoot.

    Raises
    ------
    DecodeError
        If ffprobe is missing or fails, its output cannot be parsed, there is
        no video stream, or the size/duration is not positive.
    """
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_streams",
        "-show_format",
        "-select_streams", "v:0",
        str(source),
    ]
    try:
        result = subprocess.run(
            cmd,
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as exc:
        raise DecodeError(source, f"ffprobe failed: {(exc.stderr or '').strip()}") from exc
    except FileNotFoundError as exc:
        raise DecodeError(source, "ffprobe not found — is FFmpeg installed and in PATH?") from exc

    try:
        data = json.loads(result.stdout)
        stream = data["streams"][0]
        width = int(stream["width"])
        height = int(stream["height"])
        duration = stream.get("duration") or data.get("format", {}).get("duration") or 0
        duration_s = float(duration)
    except (KeyError, IndexError, ValueError, TypeError, json.JSONDecodeError) as exc:
        raise DecodeError(source, f"Could not parse ffprobe output: {exc}") from exc

    if width <= 0 or height <= 0:
        raise DecodeError(source, f"Invalid frame size {width}x{height}")
    if not duration_s > 0 or math.isinf(duration_s):
        raise DecodeError(source, f"Video reports no usable duration ({duration_s!r}s)")

    fps = _parse_frame_rate(stream.get("avg_frame_rate")) or _parse_frame_rate(stream.get("r_frame_rate"))
    return VideoInfo(width=width, height=height, duration_s=duration_s, fps=fps)


def sample_times(duration_s: float, rate: float) -> list[float]:
    """Return ``0, 1/rate, 2/rate, ...`` up to and including *duration_s*.

    Exactly ``floor(duration_s * rate) + 1`` values.  Each time is computed
    from its integer index, so no rounding error accumulates.
    """
    if rate <= 0:
        raise ValueError(f"capture rate must be positive, got {rate!r}")
    if duration_s < 0:
        raise ValueError(f"duration must be non-negative, got {duration_s!r}")
    count = math.floor(duration_s * rate + _EPSILON) + 1
    return [i / rate for i in range(count)]


def sample_frames(
    source: Path,
    rate: float = DEFAULT_CAPTURE_RATE,
    progress_callback: Callable[[float], None] | None = None,
    jpeg_quality: int = 90,
) -> SampledVideo:
    """Sample *source* at *rate* frames per second.

    Parameters
    ----------
    source:
        Path to the input video.
    rate:
        Samples per second.  The sample interval is ``1 / rate``.
    progress_callback:
        Optional callable receiving ``time / duration`` after each captured
        sample and ``1.0`` once sampling is complete.
    jpeg_quality:
        OpenCV JPEG quality (0–100).  Text only has to stay legible.

    Returns
    -------
    SampledVideo
        Frames in ascending time order plus the canvas width and height.

    Raises
    ------
    DecodeError
        If the video cannot be probed or opened, or any seek/decode fails.
        Sampling aborts as a whole; no partial result is returned.
    """
    info = probe_video(source)
    times = sample_times(info.duration_s, rate)
    width, height = info.width, info.height

    capture = cv2.VideoCapture(str(source))
    try:
        if not capture.isOpened():
            raise DecodeError(source, "OpenCV could not open the video")

        # Samples past the last picture show the last picture.
        last_frame_s = _last_frame_time(capture, info)

        frames: list[Frame] = []
        for t in times:
            image, (frame_height, frame_width) = _grab_jpeg(
                capture, source, min(t, last_frame_s), jpeg_quality,
            )
            if (frame_width, frame_height) != (width, height):
                # Rotation metadata or anamorphic storage; the decoded frame is
                # what the recognizer measures boxes against.
                logger.debug(
                    "decoded size %dx%d differs from probed %dx%d",
                    frame_width, frame_height, width, height,
                )
                width, height = frame_width, frame_height
            frames.append(Frame(time=t, image=image))
            if progress_callback is not None:
                progress_callback(min(t / info.duration_s, 1.0))
    finally:
        capture.release()

    if progress_callback is not None:
        progress_callback(1.0)

    logger.info(
        "sampled %d frames from %s (%dx%d, %.2fs at %g/s)",
        len(frames), source.name, width, height, info.duration_s, rate,
    )
    return SampledVideo(frames=frames, width=width, height=height, interval_s=1.0 / rate)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _parse_frame_rate(value: str | None) -> float:
    """Parse an ffprobe rate such as ``"24000/1001"``; 0.0 if absent or invalid."""
    if not value:
        return 0.0
    num, _, den = value.partition("/")
    try:
        rate = float(num) / float(den) if den else float(num)
    except (ValueError, ZeroDivisionError):
        return 0.0
    return rate if rate > 0 and not math.isinf(rate) else 0.0


def _last_frame_time(capture: cv2.VideoCapture, info: VideoInfo) -> float:
    """Return the latest seek target that still lands on a decodable frame.

    A seek to exactly the end of the stream decodes nothing; the last frame
    starts one frame period earlier.  OpenCV's own frame count tightens the
    bound when the probed duration overshoots the stream.
    """
    last = info.duration_s
    if info.fps > 0:
        last = info.duration_s - 1.0 / info.fps

    frame_count = capture.get(cv2.CAP_PROP_FRAME_COUNT)
    fps = capture.get(cv2.CAP_PROP_FPS) or info.fps
    if frame_count > 0 and fps > 0:
        counted = (frame_count - 1) / fps
        if counted < last:
            logger.debug("clamping tail seeks to %.3fs (%d frames at %g fps)", counted, frame_count, fps)
            last = counted

    return max(0.0, last)


def _grab_jpeg(
    capture: cv2.VideoCapture,
    source: Path,
    timestamp_s: float,
    jpeg_quality: int,
) -> tuple[bytes, tuple[int, int]]:
    """Seek *capture* to *timestamp_s*, decode one frame, and JPEG-encode it.

    Returns the JPEG bytes and the decoded ``(height, width)``.
    """
    if not capture.set(cv2.CAP_PROP_POS_MSEC, timestamp_s * 1000.0):
        raise DecodeError(source, f"Seek to {timestamp_s:.3f}s failed")

    ok, pixels = capture.read()
    if not ok or pixels is None:
        raise DecodeError(source, f"No frame could be decoded at {timestamp_s:.3f}s")

    ok, encoded = cv2.imencode(".jpg", pixels, [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality])
    if not ok:
        raise DecodeError(source, f"JPEG encoding failed at {timestamp_s:.3f}s")

    return encoded.tobytes(), pixels.shape[:2]
