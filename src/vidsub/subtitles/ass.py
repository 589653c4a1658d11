"""Advanced SubStation Alpha (.ass) document generation.

The canvas (``PlayResX``/``PlayResY``) equals the source video resolution,
so the pixel centers reported by the recognizer are used directly in each
event's ``{\\pos(x,y)}`` override tag.  The single ``Default`` style uses
alignment 5 (middle-center), which makes ``\\pos`` anchor the visual center
of the text block.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

from vidsub.models import SubtitleEvent

logger = logging.getLogger(__name__)

STYLE_NAME = "Default"

_HEADER_TEMPLATE = """[Script Info]
Title: Generated Subtitles
ScriptType: v4.00+
WrapStyle: 0
PlayResX: {width}
PlayResY: {height}
ScaledBorderAndShadow: yes
YCbCr Matrix: None

[V4+ Styles]
Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding
Style: {style},Arial,{font_size},&H00FFFFFF,&H000000FF,&H00000000,&H80000000,0,0,0,0,100,100,0,0,1,2,1,5,10,10,10,1

[Events]
Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text
"""


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (1.5 → 2, 2.5 → 3)."""
    return math.floor(value + 0.5)


def format_time(seconds: float) -> str:
    """Format *seconds* as an ASS timestamp ``H:MM:SS.CC``.

    Hours are unpadded; centiseconds are rounded on the total so a carry
    propagates (``59.999`` → ``0:01:00.00``).
    """
    if seconds < 0:
        raise ValueError(f"timestamp must be non-negative, got {seconds!r}")
    total_cs = round_half_up(seconds * 100)
    total_s, cs = divmod(total_cs, 100)
    total_m, s = divmod(total_s, 60)
    h, m = divmod(total_m, 60)
    return f"{h}:{m:02d}:{s:02d}.{cs:02d}"


def font_size_for(height: int) -> int:
    """Style font size scaled to the canvas: one twentieth of its height."""
    return round_half_up(height / 20)


def escape_text(text: str) -> str:
    """Make recognized text safe for a single Dialogue line (newlines → ``\\N``)."""
    return text.replace("\r\n", "\n").replace("\r", "\n").replace("\n", "\\N")


def dialogue_line(event: SubtitleEvent) -> str:
    pos = f"{{\\pos({round_half_up(event.x)},{round_half_up(event.y)})}}"
    return (
        f"Dialogue: 0,{format_time(event.start)},{format_time(event.end)},"
        f"{STYLE_NAME},,0,0,0,,{pos}{escape_text(event.text)}"
    )


def generate_ass(events: list[SubtitleEvent], width: int, height: int) -> str:
    """Render *events* on a *width* x *height* canvas as a complete ASS document.

    With no events the result is just the header, ending after the
    ``[Events]`` format line.
    """
    header = _HEADER_TEMPLATE.format(
        width=width,
        height=height,
        style=STYLE_NAME,
        font_size=font_size_for(height),
    )
    body = "".join(f"{dialogue_line(event)}\n" for event in events)
    return header + body


def output_path_for(video: Path, lang_code: str) -> Path:
    """``clip.mp4`` → ``clip.<lang_code>.ass`` beside the input."""
    return video.with_name(f"{video.stem}.{lang_code}.ass")


def write_ass(document: str, output_path: Path) -> Path:
    """Write *document* as UTF-8 to *output_path*, creating parent directories."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(document, encoding="utf-8")
    logger.info("wrote %s", output_path)
    return output_path
