"""Batched translation of recognized text.

All distinct snippets go to the model in a single request, separated by a
``---`` line, and come back in the same order with the same separator.  If
the number of translations does not match, every snippet maps to itself so
the run still produces a usable (untranslated) subtitle file.
"""

from __future__ import annotations

import dataclasses
import logging
import re

from vidsub.config import DEFAULT_TARGET_LANGUAGE
from vidsub.errors import TranslationCountMismatch, TranslationError
from vidsub.inference.client import SERVICE_ERRORS, GeminiClient, get_client
from vidsub.models import SubtitleEvent

logger = logging.getLogger(__name__)

SEPARATOR = "---"

# A separator is a line holding only "---", optionally padded with spaces.
_SEPARATOR_RE = re.compile(r"\n[ \t]*---[ \t]*\n")


def distinct_texts(texts: list[str]) -> list[str]:
    """Return the unique strings of *texts* in order of first occurrence."""
    return list(dict.fromkeys(texts))


def build_translation_prompt(snippets: list[str], target_language: str) -> str:
    joined = f"\n{SEPARATOR}\n".join(snippets)
    return (
        f"Translate the following text snippets to {target_language}. "
        "Provide the translation for each snippet on a new line, in the same order. "
        "Do not add any extra formatting or numbering.\n"
        "\n"
        "TEXTS TO TRANSLATE:\n"
        f"{SEPARATOR}\n"
        f"{joined}\n"
        f"{SEPARATOR}\n"
    )


def parse_translations(response_text: str) -> list[str]:
    """Split a model response on separator lines and trim each translation.

    The model sometimes echoes the opening and closing ``---`` fence from the
    prompt; a bare separator at either end is dropped.
    """
    body = f"\n{response_text.strip()}\n"
    pieces = _SEPARATOR_RE.split(body)
    if pieces and not pieces[0].strip():
        pieces = pieces[1:]
    if pieces and not pieces[-1].strip():
        pieces = pieces[:-1]
    return [piece.strip() for piece in pieces]


def translate_texts(
    texts: list[str],
    target_language: str = DEFAULT_TARGET_LANGUAGE,
    client: GeminiClient | None = None,
) -> dict[str, str]:
    """Return a mapping from every distinct text in *texts* to its translation.

    Empty input returns ``{}`` without contacting the model.  A count
    mismatch or failed request is logged and yields the identity mapping.

    Raises
    ------
    ConfigurationError
        If no client is given and no API key is configured.
    """
    if not texts:
        return {}

    if client is None:
        client = get_client()

    unique = distinct_texts(texts)
    try:
        translations = _request_translations(client, unique, target_language)
    except TranslationError as exc:
        logger.error("falling back to untranslated text: %s", exc)
        return {text: text for text in unique}

    logger.info("translated %d distinct snippets to %s", len(unique), target_language)
    return dict(zip(unique, translations))


def apply_translations(
    events: list[SubtitleEvent],
    mapping: dict[str, str],
) -> list[SubtitleEvent]:
    """Return copies of *events* with each text replaced by its translation.

    Texts missing from *mapping*, or mapped to an empty string, are kept.
    """
    return [
        dataclasses.replace(event, text=mapping.get(event.text) or event.text)
        for event in events
    ]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _request_translations(
    client: GeminiClient,
    snippets: list[str],
    target_language: str,
) -> list[str]:
    prompt = build_translation_prompt(snippets, target_language)
    try:
        content = client.generate([client.text_part(prompt)])
    except SERVICE_ERRORS as exc:
        raise TranslationError(f"request failed: {exc}") from exc
    if not content.strip():
        raise TranslationError("response had no text candidate")

    translations = parse_translations(content)
    if len(translations) != len(snippets):
        raise TranslationCountMismatch(len(snippets), len(translations))
    return translations
