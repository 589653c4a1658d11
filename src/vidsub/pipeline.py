"""Sequential frame → subtitle pipeline.

Stages run strictly one after another (sampling finishes before the first
recognition request is sent, and so on).  Each stage reports its own
fractional progress; :func:`run_pipeline` maps those onto one overall
0.0–1.0 value using :data:`STAGE_WEIGHTS`.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Callable

from vidsub.config import DEFAULT_CAPTURE_RATE, DEFAULT_TARGET_LANGUAGE
from vidsub.inference.client import GeminiClient
from vidsub.inference.recognition import run_recognition_stage
from vidsub.inference.translation import apply_translations, translate_texts
from vidsub.ingestion.frames import sample_frames
from vidsub.models import PipelineResult
from vidsub.subtitles.ass import generate_ass
from vidsub.subtitles.events import assemble_events

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Run state, with the message shown to the user while in it."""
    IDLE = "Waiting for video..."
    EXTRACTING_FRAMES = "Extracting frames from video..."
    ANALYZING_TEXT = "Analyzing text with Gemini AI..."
    TRANSLATING = "Translating text..."
    GENERATING_FILE = "Generating subtitle file..."
    DONE = "Processing complete!"
    ERROR = "An error occurred."


# (start, end) slice of overall progress owned by each working stage.
STAGE_WEIGHTS: dict[PipelineStage, tuple[float, float]] = {
    PipelineStage.EXTRACTING_FRAMES: (0.0, 0.2),
    PipelineStage.ANALYZING_TEXT: (0.2, 0.7),
    PipelineStage.TRANSLATING: (0.7, 0.85),
    PipelineStage.GENERATING_FILE: (0.85, 1.0),
}


def scaled_progress(
    callback: Callable[[float], None] | None,
    stage: PipelineStage,
) -> Callable[[float], None]:
    """Wrap *callback* so a stage's 0–1 fraction lands inside that stage's slice."""
    start, end = STAGE_WEIGHTS[stage]

    def _report(fraction: float) -> None:
        if callback is not None:
            callback(start + (end - start) * min(max(fraction, 0.0), 1.0))

    return _report


def run_pipeline(
    video: Path,
    rate: float = DEFAULT_CAPTURE_RATE,
    target_language: str = DEFAULT_TARGET_LANGUAGE,
    client: GeminiClient | None = None,
    progress_callback: Callable[[float], None] | None = None,
    stage_callback: Callable[[PipelineStage], None] | None = None,
) -> PipelineResult:
    """Turn the burned-in text of *video* into a translated ASS document.

    Parameters
    ----------
    video:
        Input video file.
    rate:
        Frames sampled per second.
    target_language:
        Language name given to the translator (e.g. ``"Vietnamese"``).
    client:
        Model client; defaults to the shared one from ``get_client()``.
    progress_callback:
        Receives overall progress in ``[0, 1]``.
    stage_callback:
        Receives each :class:`PipelineStage` as it starts, then ``DONE`` or
        ``ERROR``.

    Raises
    ------
    DecodeError
        If the video cannot be sampled.
    ConfigurationError
        If no API key is configured.
    """
    def _enter(stage: PipelineStage) -> Callable[[float], None]:
        logger.info(stage.value)
        if stage_callback is not None:
            stage_callback(stage)
        return scaled_progress(progress_callback, stage)

    try:
        report = _enter(PipelineStage.EXTRACTING_FRAMES)
        sampled = sample_frames(video, rate, progress_callback=report)

        report = _enter(PipelineStage.ANALYZING_TEXT)
        results = run_recognition_stage(sampled.frames, client, progress_callback=report)
        events = assemble_events(results, sampled.interval_s)

        report = _enter(PipelineStage.TRANSLATING)
        report(0.0)
        mapping = translate_texts([e.text for e in events], target_language, client)
        events = apply_translations(events, mapping)
        report(1.0)

        report = _enter(PipelineStage.GENERATING_FILE)
        document = generate_ass(events, sampled.width, sampled.height)
        report(1.0)
    except Exception:
        if stage_callback is not None:
            stage_callback(PipelineStage.ERROR)
        raise

    if stage_callback is not None:
        stage_callback(PipelineStage.DONE)
    return PipelineResult(
        document=document,
        width=sampled.width,
        height=sampled.height,
        frame_count=len(sampled.frames),
        events=events,
    )
