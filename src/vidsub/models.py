from dataclasses import dataclass, field


@dataclass(frozen=True)
class VideoInfo:
    """Pixel dimensions and duration of the first video stream."""

    width: int
    height: int
    duration_s: float
    fps: float = 0.0    # 0.0 when the container does not report a usable rate


@dataclass(frozen=True)
class Frame:
    """A single sampled still with its source timestamp."""

    time: float         # seconds from the start of the video
    image: bytes        # JPEG-encoded frame

    def __repr__(self) -> str:
        return f"Frame(time={self.time!r}, image=<{len(self.image)} bytes>)"


@dataclass
class SampledVideo:
    """Frame Sampler output: ordered frames plus the canvas they came from."""

    frames: list[Frame]
    width: int
    height: int
    interval_s: float   # 1 / capture rate


@dataclass
class SubtitleEvent:
    """A timed cue anchored at the center of a detected text block."""

    start: float        # seconds
    end: float          # seconds; always start + sample interval
    text: str
    x: float            # bounding-box center, source-frame pixels
    y: float


@dataclass
class PipelineResult:
    """Everything the caller needs after a successful run."""

    document: str
    width: int
    height: int
    frame_count: int
    events: list[SubtitleEvent] = field(default_factory=list)
