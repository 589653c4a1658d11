"""Subtitle event assembly and ASS document generation."""
from vidsub.subtitles.ass import format_time, generate_ass, output_path_for, write_ass
from vidsub.subtitles.events import assemble_events, span_to_event

__all__ = [
    "format_time",
    "generate_ass",
    "output_path_for",
    "write_ass",
    "assemble_events",
    "span_to_event",
]
