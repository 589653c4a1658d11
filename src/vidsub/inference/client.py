"""GeminiClient: thin wrapper around the google-genai SDK.

One client is shared by the whole process.  It is created on first use by
:func:`get_client`, which is also where a missing credential surfaces as
``ConfigurationError``.
"""
import logging
import threading

import httpx
from google import genai
from google.genai import errors, types

from vidsub.config import REQUEST_TIMEOUT_S, get_api_key, get_model_name
from vidsub.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Failures of a single request: API errors the SDK raises for non-2xx replies,
# and transport errors (connect, read timeout) it lets through from httpx.
SERVICE_ERRORS: tuple[type[Exception], ...] = (errors.APIError, httpx.HTTPError)


class GeminiClient:
    """Sends ``generate_content`` requests and returns the response text.

    Usage::

        client = get_client()
        text = client.generate([client.text_part("Say hi")])

    """

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_s: float = REQUEST_TIMEOUT_S,
    ) -> None:
        self.model = model
        self.timeout_s = timeout_s
        self._genai = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_s * 1000)),
        )

    @staticmethod
    def text_part(text: str) -> types.Part:
        return types.Part.from_text(text=text)

    @staticmethod
    def jpeg_part(image: bytes) -> types.Part:
        return types.Part.from_bytes(data=image, mime_type="image/jpeg")

    def generate(
        self,
        parts: list[types.Part],
        config: types.GenerateContentConfig | None = None,
    ) -> str:
        """Send one single-turn request and return the text of the first candidate.

        Returns an empty string when the response carries no text (e.g.
        blocked by safety filters).  Raises one of ``SERVICE_ERRORS`` on
        HTTP or transport failure.
        """
        response = self._genai.models.generate_content(
            model=self.model,
            contents=parts,
            config=config,
        )
        return response.text or ""


# Process-wide client, created lazily by get_client().
_client: GeminiClient | None = None
_CLIENT_LOCK: threading.Lock = threading.Lock()


def get_client() -> GeminiClient:
    """Return the shared client, creating it on first call.

    Raises:
        ConfigurationError: if no API key is set in the environment.
    """
    global _client
    with _CLIENT_LOCK:
        if _client is None:
            api_key = get_api_key()
            if not api_key:
                raise ConfigurationError("GEMINI_API_KEY environment variable not set")
            _client = GeminiClient(api_key, get_model_name())
            logger.debug("created Gemini client for model %s", _client.model)
        return _client


def reset_client() -> None:
    """Drop the shared client so the next get_client() re-reads the environment."""
    global _client
    with _CLIENT_LOCK:
        _client = None
