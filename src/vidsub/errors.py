from pathlib import Path


class VidsubError(Exception):
    """Base class for all vidsub errors."""


class DecodeError(VidsubError):
    def __init__(self, source: Path, detail: str) -> None:
        super().__init__(
            f"Failed to decode video '{source.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Can ffprobe read '{source.name}', and does OpenCV decode frames up to the duration it reports?\n"
            f"  Tip: Compare the video stream and container durations with `ffprobe -show_entries stream=duration:format=duration '{source}'`."
        )
        self.source = source
        self.detail = detail


class RecognitionError(VidsubError):
    def __init__(self, timestamp_s: float, detail: str) -> None:
        super().__init__(
            f"Text recognition failed for frame at {timestamp_s:.2f}s.\n"
            f"  Cause: {detail}"
        )
        self.timestamp_s = timestamp_s
        self.detail = detail


class TranslationError(VidsubError):
    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Translation request failed.\n"
            f"  Cause: {detail}"
        )
        self.detail = detail


class TranslationCountMismatch(TranslationError):
    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"expected {expected} translations, model returned {received}"
        )
        self.expected = expected
        self.received = received


class ConfigurationError(VidsubError):
    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Configuration error.\n"
            f"  Cause: {detail}\n"
            f"  Tip: export GEMINI_API_KEY=<your key> before running vidsub."
        )
        self.detail = detail
