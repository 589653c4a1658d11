"""Per-frame text recognition through the vision model."""
import json
import logging
from typing import Callable

from google.genai import types
from pydantic import ValidationError

from vidsub.errors import RecognitionError
from vidsub.inference.client import SERVICE_ERRORS, GeminiClient, get_client
from vidsub.inference.models import OCR_RESPONSE_SCHEMA, RecognizedSpan, validate_spans
from vidsub.models import Frame

logger = logging.getLogger(__name__)

OCR_INSTRUCTION = (
    "You are an expert OCR system. Analyze the image to find all text blocks. "
    "Provide the text and bounding box for each. "
    "Respond ONLY with a JSON object matching the provided schema. "
    "If no text is found, return an empty array."
)


def recognize_frame(client: GeminiClient, frame: Frame) -> list[RecognizedSpan]:
    """Return the text blocks the model finds in *frame*, in the order it lists them.

    Raises:
        RecognitionError: on any transport, HTTP, parse or schema failure.
    """
    parts = [client.jpeg_part(frame.image), client.text_part(OCR_INSTRUCTION)]
    config = types.GenerateContentConfig(
        response_mime_type="application/json",
        response_schema=OCR_RESPONSE_SCHEMA,
    )
    try:
        content = client.generate(parts, config)
    except SERVICE_ERRORS as exc:
        raise RecognitionError(frame.time, f"request failed: {exc}") from exc

    if not content.strip():
        raise RecognitionError(frame.time, "response had no text candidate")
    try:
        return validate_spans(json.loads(content))
    except json.JSONDecodeError as exc:
        raise RecognitionError(frame.time, f"response was not JSON: {exc}") from exc
    except ValidationError as exc:
        raise RecognitionError(frame.time, f"response did not match schema: {exc}") from exc


def run_recognition_stage(
    frames: list[Frame],
    client: GeminiClient | None = None,
    progress_callback: Callable[[float], None] | None = None,
) -> list[tuple[Frame, list[RecognizedSpan]]]:
    """Recognize text in every frame, one request at a time.

    A frame whose request fails is logged and contributes no spans; the
    stage never aborts because of a single frame.  ``ConfigurationError``
    from creating the client does propagate.

    Returns list of (frame, spans) tuples in frame order.
    progress_callback(fraction) called after each frame.
    """
    if client is None:
        client = get_client()

    results: list[tuple[Frame, list[RecognizedSpan]]] = []
    total = len(frames)
    failed = 0
    for i, frame in enumerate(frames):
        try:
            spans = recognize_frame(client, frame)
        except RecognitionError as exc:
            logger.warning("skipping frame %d: %s", i, exc)
            spans = []
            failed += 1
        results.append((frame, spans))
        if progress_callback:
            progress_callback((i + 1) / total)

    logger.info(
        "recognized %d text blocks in %d frames (%d failed)",
        sum(len(spans) for _, spans in results), total, failed,
    )
    return results
