"""Recognition results → subtitle events.

Every detected span becomes its own event lasting exactly one sample
interval.  The same text detected on consecutive frames is *not* merged
into a longer event.
"""

from __future__ import annotations

from vidsub.inference.models import RecognizedSpan
from vidsub.models import Frame, SubtitleEvent


def span_to_event(time: float, span: RecognizedSpan, interval: float) -> SubtitleEvent:
    """Build the event for one span detected in the frame sampled at *time*."""
    x, y = span.bounding_box.center
    return SubtitleEvent(start=time, end=time + interval, text=span.text, x=x, y=y)


def assemble_events(
    results: list[tuple[Frame, list[RecognizedSpan]]],
    interval: float,
) -> list[SubtitleEvent]:
    """Flatten per-frame recognition results into events, preserving order.

    Parameters
    ----------
    results:
        ``(frame, spans)`` pairs in frame time order, as returned by
        :func:`vidsub.inference.recognition.run_recognition_stage`.
    interval:
        Sample interval in seconds (``1 / capture rate``); the duration of
        every event.

    Returns
    -------
    list[SubtitleEvent]
        One event per span.  A frame with N spans yields N events, all with
        ``start == frame.time``.
    """
    if interval <= 0:
        raise ValueError(f"sample interval must be positive, got {interval!r}")
    return [
        span_to_event(frame.time, span, interval)
        for frame, spans in results
        for span in spans
    ]
