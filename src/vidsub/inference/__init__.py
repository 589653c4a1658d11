"""vidsub inference package — shared Gemini client, text recognition, translation."""
from vidsub.inference.client import GeminiClient, get_client, reset_client
from vidsub.inference.models import BoundingBox, RecognizedSpan, OCR_RESPONSE_SCHEMA
from vidsub.inference.recognition import recognize_frame, run_recognition_stage
from vidsub.inference.translation import apply_translations, translate_texts

__all__ = [
    "GeminiClient",
    "get_client",
    "reset_client",
    "BoundingBox",
    "RecognizedSpan",
    "OCR_RESPONSE_SCHEMA",
    "recognize_frame",
    "run_recognition_stage",
    "apply_translations",
    "translate_texts",
]
